"""In-process editor sessions, one per workflow id."""

from __future__ import annotations

import logging
from typing import Any

from ..editor.nodes import NODE_CATALOG, NodeSpec, NodeVariant
from ..editor.session import WorkflowEditor
from . import snapshot_svc

logger = logging.getLogger(__name__)

_sessions: dict[str, WorkflowEditor] = {}


def get_editor(workflow_id: str) -> WorkflowEditor:
    """Return the open session, resuming from a local snapshot when one exists."""
    editor = _sessions.get(workflow_id)
    if editor is None:
        snapshot = snapshot_svc.get_snapshot(workflow_id)
        if snapshot is not None:
            editor = WorkflowEditor.from_snapshot(snapshot)
            logger.info("Resumed %s from snapshot", workflow_id)
        else:
            editor = WorkflowEditor(workflow_id)
        _sessions[workflow_id] = editor
    return editor


def close_editor(workflow_id: str) -> bool:
    return _sessions.pop(workflow_id, None) is not None


def clear() -> None:
    _sessions.clear()


def save(workflow_id: str) -> dict[str, Any]:
    return snapshot_svc.save_snapshot(get_editor(workflow_id).to_snapshot())


def node_spec(
    node_type: str | None = None,
    variant: str | None = None,
    title: str | None = None,
    values: dict[str, Any] | None = None,
    config: dict[str, Any] | None = None,
) -> NodeSpec:
    """Build a NodeSpec from request fields; catalog types imply their variant."""
    extra = {"title": title, "values": dict(values or {}), "config": dict(config or {})}
    if node_type in NODE_CATALOG:
        return NodeSpec.of(node_type, **extra)
    return NodeSpec(variant=NodeVariant(variant or "action"), node_type=node_type, **extra)
