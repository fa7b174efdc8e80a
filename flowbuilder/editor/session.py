"""Workflow editor session - one workflow's store, browsers, canvas and panels."""

from __future__ import annotations

import logging
from typing import Any, TYPE_CHECKING

from ..errors import GraphError
from . import paths
from .browser import OutputsBrowser
from .canvas import CanvasViewModel
from .channel import ActivePathChannel
from .graph import Container, GraphStore
from .mapper import graph_from_api, node_to_api
from .nodes import Node, NodeSpec, NodeVariant, TriggerNode
from .panel import ParametersPanel
from .validation import ValidationResult, validate_workflow

if TYPE_CHECKING:
    from ..api.client import FlowClient

logger = logging.getLogger(__name__)


class WorkflowEditor:
    """Everything an open editor tab works with.

    Structural edits are dry-run on a copy of the graph first, then mirrored
    to the backend when a client is attached, and only then applied locally.
    Rejected edits are logged and return None.

    Usage:
        async with FlowClient.from_settings() as api:
            editor = WorkflowEditor("wf_123", client=api)
            await editor.load()
            node = await editor.add_node(None, NodeSpec.of("http_request"))
    """

    def __init__(
        self,
        workflow_id: str,
        client: "FlowClient | None" = None,
        store: GraphStore | None = None,
        name: str = "",
    ):
        self.workflow_id = workflow_id
        self.name = name or workflow_id
        self.client = client
        self.store = store if store is not None else GraphStore()
        self.channel = ActivePathChannel()
        self.canvas = CanvasViewModel()
        self.outputs = OutputsBrowser(self.store, self.channel)
        self.panels: dict[str, ParametersPanel] = {}
        self.last_error: GraphError | None = None

    def _replace_store(self, store: GraphStore) -> None:
        self.store = store
        self.outputs = OutputsBrowser(store, self.channel, self.outputs.outputs)
        self.panels.clear()

    async def load(self) -> GraphStore:
        """Rebuild the graph from the backend graph and trigger endpoints."""
        if self.client is None:
            raise RuntimeError("Loading a workflow needs an API client")
        graph = await self.client.workflows.get_graph(self.workflow_id) or {}
        listing = await self.client.workflows.list_triggers(self.workflow_id) or {}
        self._replace_store(graph_from_api(graph, listing.get("triggers") or []))
        logger.info("Loaded workflow %s with %d nodes", self.workflow_id, len(self.store))
        return self.store

    def _rejected(self, operation: str, exc: GraphError) -> None:
        self.last_error = exc
        logger.warning("%s rejected: %s", operation, exc)
        return None

    def _scratch(self) -> GraphStore:
        return GraphStore.from_dict(self.store.to_dict())

    # ── Structural edits ──────────────────────────────────────────────────

    async def _create(self, draft: Node, edges: list[tuple[str, str | None]]) -> str:
        """Create ``draft`` remotely with incoming ``(source, branch)`` edges."""
        if self.client is None or isinstance(draft, TriggerNode):
            return draft.id
        api = self.client.workflows
        created = await api.create_node(self.workflow_id, node_to_api(draft, self.workflow_id)) or {}
        node_id = str(created.get("id") or draft.id)
        for source, branch in edges:
            await api.create_edge(self.workflow_id, source, node_id, branch=branch)
        return node_id

    def _tail_edge(self, container: Container, siblings: list[str]) -> list[tuple[str, str | None]]:
        """Incoming edge for a node appended to ``container``."""
        if siblings:
            return [(siblings[-1], None)]
        if container.parent_id is not None:
            return [(container.parent_id, container.slot)]
        return []

    async def add_node(self, after_node_id: str | None, spec: NodeSpec) -> Node | None:
        try:
            scratch = self._scratch()
            draft = scratch.add_node(after_node_id, spec)
            if after_node_id is not None and spec.variant is not NodeVariant.TRIGGER:
                siblings = scratch.siblings(draft.id)
                index = siblings.index(draft.id)
                if index + 1 < len(siblings):
                    return await self.insert_between(after_node_id, siblings[index + 1], spec)
            if after_node_id is None:
                edges = self._tail_edge(Container(None, "root"), self.store.root)
            else:
                edges = [(after_node_id, None)]
            if isinstance(draft, TriggerNode):
                edges = []
            node_id = await self._create(draft, edges)
            return self.store.add_node(after_node_id, spec, node_id=node_id)
        except GraphError as exc:
            return self._rejected("add_node", exc)

    async def insert_between(self, from_node_id: str, to_node_id: str, spec: NodeSpec) -> Node | None:
        try:
            draft = self._scratch().insert_between(from_node_id, to_node_id, spec)
            node_id = draft.id
            if self.client is not None:
                created = await self.client.workflows.insert_between(
                    self.workflow_id,
                    from_node_id,
                    to_node_id,
                    node_to_api(draft, self.workflow_id),
                ) or {}
                node_id = str(created.get("id") or draft.id)
            return self.store.insert_between(from_node_id, to_node_id, spec, node_id=node_id)
        except GraphError as exc:
            return self._rejected("insert_between", exc)

    async def add_branch(self, conditional_id: str, branch: str, spec: NodeSpec) -> Node | None:
        try:
            draft = self._scratch().add_branch(conditional_id, branch, spec)
            parent = self.store.get(conditional_id)
            edges = self._tail_edge(Container(conditional_id, branch), parent.branch(branch))
            node_id = await self._create(draft, edges)
            return self.store.add_branch(conditional_id, branch, spec, node_id=node_id)
        except GraphError as exc:
            return self._rejected("add_branch", exc)

    async def add_to_loop(self, loop_id: str, spec: NodeSpec) -> Node | None:
        try:
            draft = self._scratch().add_to_loop(loop_id, spec)
            parent = self.store.get(loop_id)
            edges = self._tail_edge(Container(loop_id, "body"), parent.body)
            node_id = await self._create(draft, edges)
            return self.store.add_to_loop(loop_id, spec, node_id=node_id)
        except GraphError as exc:
            return self._rejected("add_to_loop", exc)

    async def delete_node(self, node_id: str) -> list[str] | None:
        """Delete a node and its nested nodes; returns the removed ids."""
        try:
            doomed = self._scratch().delete_node(node_id)
            if self.client is not None and not isinstance(self.store.get(node_id), TriggerNode):
                for rid in reversed(doomed):
                    await self.client.workflows.delete_node(self.workflow_id, rid)
            removed = self.store.delete_node(node_id)
        except GraphError as exc:
            return self._rejected("delete_node", exc)
        for rid in removed:
            panel = self.panels.pop(rid, None)
            if panel is not None:
                panel.close()
        return removed

    def select_node(self, node_id: str | None) -> Node | None:
        try:
            self.store.select_node(node_id)
        except GraphError as exc:
            return self._rejected("select_node", exc)
        return self.store.selected_node

    # ── Panels / paths ────────────────────────────────────────────────────

    def open_panel(self, node_id: str) -> ParametersPanel | None:
        """Select ``node_id`` and open a fresh parameters panel for it."""
        if self.select_node(node_id) is None:
            return None
        previous = self.panels.get(node_id)
        if previous is not None:
            previous.close()
        panel = ParametersPanel(
            self.store, self.channel, node_id, client=self.client, workflow_id=self.workflow_id
        )
        self.panels[node_id] = panel
        return panel

    def close_panel(self, node_id: str) -> None:
        panel = self.panels.pop(node_id, None)
        if panel is not None:
            panel.close()

    def armed_panel(self) -> ParametersPanel | None:
        for panel in self.panels.values():
            if panel.is_open and panel.armed_param_id is not None:
                return panel
        return None

    def dispatch_path(self) -> Any:
        """Hand the pending channel path to the panel with an armed parameter."""
        panel = self.armed_panel()
        if panel is None:
            return None
        return panel.receive_path()

    def select_output(self, node_id: str, locator: str) -> str | None:
        """Click a leaf of a preceding node's output."""
        try:
            path = self.outputs.select_leaf(node_id, locator)
        except GraphError as exc:
            return self._rejected("select_output", exc)
        self.dispatch_path()
        return path

    def publish_path(self, path: str) -> str:
        """Publish an already built reference path; raises ParseError if invalid."""
        paths.decode(path)
        self.channel.publish(path)
        self.dispatch_path()
        return path

    # ── Whole workflow ────────────────────────────────────────────────────

    def validate(self) -> ValidationResult:
        return validate_workflow(self.store)

    def to_snapshot(self) -> dict[str, Any]:
        data = self.store.to_dict()
        return {"id": self.workflow_id, "name": self.name, "root": data["root"], "nodes": data["nodes"]}

    @classmethod
    def from_snapshot(cls, snapshot: dict[str, Any], client: "FlowClient | None" = None) -> "WorkflowEditor":
        data = {"nodes": snapshot.get("nodes", [])}
        if "root" in snapshot:
            data["root"] = snapshot["root"]
        store = GraphStore.from_dict(data)
        return cls(str(snapshot["id"]), client=client, store=store, name=snapshot.get("name", ""))
