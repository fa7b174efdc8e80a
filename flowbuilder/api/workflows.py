"""Workflows API - graph topology, node parameters and triggers."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .client import FlowClient


class WorkflowsAPI:
    """Workflow editing endpoints.

    Usage:
        async with FlowClient.from_settings() as api:
            graph = await api.workflows.get_graph("wf_id")
            schema = await api.workflows.get_form_schema("wf_id", "node_id")
            await api.workflows.update_input_params(
                "wf_id", "node_id", {"url": "${node:n1.link}"}
            )
    """

    def __init__(self, client: "FlowClient"):
        self._client = client

    def _wf(self, workflow_id: str) -> str:
        if not workflow_id:
            raise ValueError("workflow_id required")
        return f"{self._client.workspace_prefix}/workflows/{workflow_id}"

    async def get(self, workflow_id: str) -> dict[str, Any]:
        """Get workflow details."""
        return await self._client._get(self._wf(workflow_id))

    async def get_graph(self, workflow_id: str) -> dict[str, Any]:
        """Get the node/edge graph.

        Returns:
            {"nodes": [{"id", "name", "input_params", ...}], "edges": [{"from_node_id", "to_node_id"}]}
        """
        return await self._client._get(f"{self._wf(workflow_id)}/graph")

    # Triggers
    async def list_triggers(self, workflow_id: str) -> dict[str, Any]:
        """Returns {"workflow_id", "triggers": [...], "count"}."""
        return await self._client._get(f"{self._wf(workflow_id)}/triggers")

    async def get_trigger(self, workflow_id: str, trigger_id: str) -> dict[str, Any]:
        return await self._client._get(f"{self._wf(workflow_id)}/triggers/{trigger_id}")

    async def update_trigger(
        self,
        workflow_id: str,
        trigger_id: str,
        name: str | None = None,
        description: str | None = None,
        trigger_type: str | None = None,
        config: dict | None = None,
        input_mapping: dict[str, dict[str, Any]] | None = None,
    ) -> dict[str, Any]:
        """Update a trigger; ``input_mapping`` is ``{name: {type, value}}``."""
        data: dict[str, Any] = {}
        if name is not None:
            data["name"] = name
        if description is not None:
            data["description"] = description
        if trigger_type is not None:
            data["trigger_type"] = trigger_type
        if config is not None:
            data["config"] = config
        if input_mapping is not None:
            data["input_mapping"] = input_mapping
        return await self._client._put(f"{self._wf(workflow_id)}/triggers/{trigger_id}", data)

    # Nodes
    async def get_form_schema(self, workflow_id: str, node_id: str) -> dict[str, Any]:
        """Per-field editor schema for a node.

        Returns:
            {"node_id", "node_name", "form_schema": {field: {"front": {...}, "type",
             "default_value", "value", "required", "is_reference"}}, "output_schema"}
        """
        return await self._client._get(f"{self._wf(workflow_id)}/nodes/{node_id}/form-schema")

    async def update_input_params(
        self, workflow_id: str, node_id: str, input_params: dict[str, Any]
    ) -> dict[str, Any]:
        """Persist literals and reference paths for a node's inputs."""
        return await self._client._put(
            f"{self._wf(workflow_id)}/nodes/{node_id}/input-params",
            {"input_params": input_params},
        )

    async def create_node(self, workflow_id: str, node_data: dict[str, Any]) -> dict[str, Any]:
        return await self._client._post(f"{self._wf(workflow_id)}/nodes", node_data)

    async def insert_between(
        self,
        workflow_id: str,
        from_node_id: str,
        to_node_id: str,
        node_data: dict[str, Any],
    ) -> dict[str, Any]:
        """Create a node and rewire ``from -> new -> to`` in one call."""
        return await self._client._post(
            f"{self._wf(workflow_id)}/nodes/insert-between",
            {"from_node_id": from_node_id, "to_node_id": to_node_id, "node": node_data},
        )

    async def delete_node(self, workflow_id: str, node_id: str) -> dict[str, Any] | None:
        return await self._client._delete(f"{self._wf(workflow_id)}/nodes/{node_id}")

    async def create_edge(
        self,
        workflow_id: str,
        from_node_id: str,
        to_node_id: str,
        branch: str | None = None,
    ) -> dict[str, Any]:
        """Connect two nodes; ``branch`` labels conditional and loop edges."""
        data = {"from_node_id": from_node_id, "to_node_id": to_node_id}
        if branch is not None:
            data["branch"] = branch
        return await self._client._post(f"{self._wf(workflow_id)}/edges", data)
