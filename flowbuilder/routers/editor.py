"""JSON API over an in-process editor session (graph, outputs, canvas, panels)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException

from ..editor.nodes import Node, node_to_dict
from ..editor.session import WorkflowEditor
from ..errors import GraphError
from ..schemas.editor import (
    ActivePath,
    ArmParam,
    InsertBetween,
    LiteralValue,
    NodeCreate,
    PanSet,
    SelectLeaf,
    SelectNode,
    ToggleEntry,
    WheelEvent,
    ZoomSet,
)
from ..services import editor_svc

router = APIRouter(prefix="/editor")


def _checked(editor: WorkflowEditor, result: Any) -> Any:
    """Re-raise the session's rejection so the app maps it to a status code."""
    if result is None:
        raise editor.last_error or GraphError(GraphError.NOT_FOUND, "Operation rejected")
    return result


def _spec(data: NodeCreate):
    try:
        return editor_svc.node_spec(data.node_type, data.variant, data.title, data.values, data.config)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))


def _node(node: Node) -> dict[str, Any]:
    return node_to_dict(node)


# ── Graph ─────────────────────────────────────────────────────────────────

@router.get("/{workflow_id}/graph")
async def get_graph(workflow_id: str):
    editor = editor_svc.get_editor(workflow_id)
    return {
        "workflow_id": workflow_id,
        "selected_node_id": editor.store.selected_node_id,
        **editor.store.to_dict(),
    }


@router.post("/{workflow_id}/nodes")
async def add_node(workflow_id: str, data: NodeCreate):
    editor = editor_svc.get_editor(workflow_id)
    node = await editor.add_node(data.after_node_id, _spec(data))
    return _node(_checked(editor, node))


@router.post("/{workflow_id}/nodes/insert-between")
async def insert_between(workflow_id: str, data: InsertBetween):
    editor = editor_svc.get_editor(workflow_id)
    node = await editor.insert_between(data.from_node_id, data.to_node_id, _spec(data.node))
    return _node(_checked(editor, node))


@router.post("/{workflow_id}/nodes/{node_id}/branches/{branch}")
async def add_branch(workflow_id: str, node_id: str, branch: str, data: NodeCreate):
    editor = editor_svc.get_editor(workflow_id)
    node = await editor.add_branch(node_id, branch, _spec(data))
    return _node(_checked(editor, node))


@router.post("/{workflow_id}/nodes/{node_id}/body")
async def add_to_loop(workflow_id: str, node_id: str, data: NodeCreate):
    editor = editor_svc.get_editor(workflow_id)
    node = await editor.add_to_loop(node_id, _spec(data))
    return _node(_checked(editor, node))


@router.delete("/{workflow_id}/nodes/{node_id}")
async def delete_node(workflow_id: str, node_id: str):
    editor = editor_svc.get_editor(workflow_id)
    removed = _checked(editor, await editor.delete_node(node_id))
    return {"deleted": removed}


@router.post("/{workflow_id}/select")
async def select_node(workflow_id: str, data: SelectNode):
    editor = editor_svc.get_editor(workflow_id)
    node = editor.select_node(data.node_id)
    if data.node_id is not None:
        _checked(editor, node)
    return {"selected_node_id": editor.store.selected_node_id}


# ── Outputs / active path ─────────────────────────────────────────────────

@router.get("/{workflow_id}/outputs")
async def list_outputs(workflow_id: str):
    editor = editor_svc.get_editor(workflow_id)
    return [
        {
            "node_id": source.node_id,
            "title": source.title,
            "variant": source.variant,
            "entries": [vars(e) for e in editor.outputs.entries(source.node_id)],
        }
        for source in editor.outputs.available_outputs()
    ]


@router.post("/{workflow_id}/outputs/toggle")
async def toggle_entry(workflow_id: str, data: ToggleEntry):
    editor = editor_svc.get_editor(workflow_id)
    editor.store.get(data.node_id)
    editor.outputs.toggle(data.node_id, data.path)
    return [vars(e) for e in editor.outputs.entries(data.node_id)]


@router.post("/{workflow_id}/outputs/select")
async def select_leaf(workflow_id: str, data: SelectLeaf):
    editor = editor_svc.get_editor(workflow_id)
    path = _checked(editor, editor.select_output(data.node_id, data.locator))
    return {"path": path}


@router.get("/{workflow_id}/active-path")
async def get_active_path(workflow_id: str):
    editor = editor_svc.get_editor(workflow_id)
    return {"path": editor.channel.peek(), "version": editor.channel.version}


@router.post("/{workflow_id}/active-path")
async def publish_active_path(workflow_id: str, data: ActivePath):
    editor = editor_svc.get_editor(workflow_id)
    editor.publish_path(data.path)
    return {"path": editor.channel.peek(), "version": editor.channel.version}


# ── Canvas ────────────────────────────────────────────────────────────────

@router.get("/{workflow_id}/canvas")
async def get_canvas(workflow_id: str):
    return editor_svc.get_editor(workflow_id).canvas.to_dict()


@router.post("/{workflow_id}/canvas/zoom")
async def set_zoom(workflow_id: str, data: ZoomSet):
    canvas = editor_svc.get_editor(workflow_id).canvas
    canvas.set_zoom(data.zoom)
    return canvas.to_dict()


@router.post("/{workflow_id}/canvas/wheel")
async def wheel(workflow_id: str, data: WheelEvent):
    canvas = editor_svc.get_editor(workflow_id).canvas
    canvas.wheel(data.delta_y, data.accelerator)
    return canvas.to_dict()


@router.post("/{workflow_id}/canvas/pan")
async def set_pan(workflow_id: str, data: PanSet):
    canvas = editor_svc.get_editor(workflow_id).canvas
    canvas.set_pan(data.x, data.y)
    return canvas.to_dict()


@router.post("/{workflow_id}/canvas/reset")
async def reset_canvas(workflow_id: str):
    canvas = editor_svc.get_editor(workflow_id).canvas
    canvas.reset()
    return canvas.to_dict()


# ── Parameters panel ──────────────────────────────────────────────────────

def _panel(editor: WorkflowEditor, node_id: str):
    panel = editor.panels.get(node_id)
    if panel is None or not panel.is_open:
        raise HTTPException(status_code=404, detail="Panel not open")
    return panel


@router.post("/{workflow_id}/nodes/{node_id}/panel")
async def open_panel(workflow_id: str, node_id: str):
    editor = editor_svc.get_editor(workflow_id)
    panel = _checked(editor, editor.open_panel(node_id))
    return panel.to_dict()


@router.post("/{workflow_id}/nodes/{node_id}/panel/arm")
async def arm_param(workflow_id: str, node_id: str, data: ArmParam):
    panel = _panel(editor_svc.get_editor(workflow_id), node_id)
    try:
        panel.arm(data.param_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Parameter not found")
    return panel.to_dict()


@router.put("/{workflow_id}/nodes/{node_id}/panel/params/{param_id}")
async def set_literal(workflow_id: str, node_id: str, param_id: str, data: LiteralValue):
    panel = _panel(editor_svc.get_editor(workflow_id), node_id)
    try:
        panel.set_literal(param_id, data.value)
    except KeyError:
        raise HTTPException(status_code=404, detail="Parameter not found")
    return panel.to_dict()


@router.delete("/{workflow_id}/nodes/{node_id}/panel/params/{param_id}/path")
async def clear_dynamic(workflow_id: str, node_id: str, param_id: str):
    panel = _panel(editor_svc.get_editor(workflow_id), node_id)
    try:
        panel.clear_dynamic(param_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Parameter not found")
    return panel.to_dict()


@router.post("/{workflow_id}/nodes/{node_id}/panel/save")
async def save_panel(workflow_id: str, node_id: str):
    editor = editor_svc.get_editor(workflow_id)
    panel = _panel(editor, node_id)
    saved = await panel.save()
    if saved:
        editor.panels.pop(node_id, None)
    return {"saved": saved, **panel.to_dict()}


# ── Whole workflow ────────────────────────────────────────────────────────

@router.get("/{workflow_id}/validate")
async def validate(workflow_id: str):
    return editor_svc.get_editor(workflow_id).validate().to_dict()


@router.post("/{workflow_id}/snapshot")
async def save_snapshot(workflow_id: str):
    return editor_svc.save(workflow_id)
