"""Parameters panel - edit one node's inputs and bind them to reference paths."""

from __future__ import annotations

import logging
from typing import Any, TYPE_CHECKING

from ..errors import ApiError, ParseError, ValidationError
from . import paths
from .channel import ActivePathChannel
from .graph import GraphStore
from .mapper import (
    input_params,
    mapping_from_variables,
    parameters_from_form_schema,
    trigger_variables_from_mapping,
)
from .nodes import Node, TriggerNode, TriggerVariable, node_parameters
from .parameters import (
    Parameter,
    describe,
    serialize_for_display,
    toggle_dynamic,
    with_literal,
)
from .resources import ResourceBrowser

if TYPE_CHECKING:
    from ..api.client import FlowClient

logger = logging.getLogger(__name__)


class ParametersPanel:
    """Working copy of a node's parameters until ``save()`` succeeds.

    At most one parameter is armed at a time. While armed, the next path taken
    from the channel binds that parameter and disarms the panel.
    """

    def __init__(
        self,
        store: GraphStore,
        channel: ActivePathChannel,
        node_id: str,
        client: "FlowClient | None" = None,
        workflow_id: str | None = None,
    ):
        node = store.get(node_id)
        self.store = store
        self.channel = channel
        self.node_id = node_id
        self.client = client
        self.workflow_id = workflow_id
        self.parameters: list[Parameter] = list(node_parameters(node))
        self.armed_param_id: str | None = None
        self.is_open = True
        self.is_saving = False
        self.last_error: str | None = None
        self._resources: ResourceBrowser | None = None
        self._load_seq = 0
        self._armed_version = 0

    @property
    def node(self) -> Node:
        return self.store.get(self.node_id)

    @property
    def resources(self) -> ResourceBrowser:
        """Resource tabs for this panel; each panel loads its own copy."""
        if self._resources is None:
            if self.client is None:
                raise RuntimeError("Resource browsing needs an API client")
            self._resources = ResourceBrowser(self.client.resources, self.channel)
        return self._resources

    def get(self, param_id: str) -> Parameter:
        for param in self.parameters:
            if param.id == param_id:
                return param
        raise KeyError(f"Unknown parameter: {param_id}")

    def _replace(self, updated: Parameter) -> Parameter:
        self.parameters = [updated if p.id == updated.id else p for p in self.parameters]
        return updated

    def display(self, param_id: str) -> str:
        return serialize_for_display(self.get(param_id))

    # ── Path binding ──────────────────────────────────────────────────────

    def arm(self, param_id: str) -> str | None:
        """Arm ``param_id`` for the next path; arming it again disarms."""
        if self.armed_param_id == param_id:
            self.armed_param_id = None
        else:
            self.get(param_id)
            self.armed_param_id = param_id
            self._armed_version = self.channel.version
        return self.armed_param_id

    def receive_path(self) -> Parameter | None:
        """Apply the channel's pending path to the armed parameter, if any.

        With nothing armed the channel is not touched. Paths published
        before the parameter was armed are left in place.
        """
        if self.armed_param_id is None or self.channel.version == self._armed_version:
            return None
        path = self.channel.consume()
        if path is None:
            return None
        param_id, self.armed_param_id = self.armed_param_id, None
        try:
            updated = toggle_dynamic(self.get(param_id), path)
        except ParseError as exc:
            logger.warning("Ignoring malformed path for %s: %s", param_id, exc)
            return None
        logger.debug("Bound %s.%s to %s", self.node_id, param_id, path)
        return self._replace(updated)

    def clear_dynamic(self, param_id: str) -> Parameter:
        return self._replace(toggle_dynamic(self.get(param_id), None))

    def set_literal(self, param_id: str, raw: Any) -> Parameter:
        return self._replace(with_literal(self.get(param_id), raw))

    # ── Validation / persistence ──────────────────────────────────────────

    def _is_bound(self, param: Parameter) -> bool:
        try:
            ref = paths.decode(param.dynamic_path or "")
        except ParseError:
            return False
        return ref.namespace != "node" or ref.id in self.store

    def validate(self) -> None:
        for param in self.parameters:
            if not param.required:
                continue
            if param.is_dynamic and not self._is_bound(param):
                raise ValidationError(param.id, f"{param.label} is bound to a missing node")
            if param.is_empty:
                raise ValidationError(param.id, f"{param.label} is required")

    async def save(self) -> bool:
        """Validate and persist; close on success, stay open on API failure.

        Raises ValidationError before anything is sent.
        """
        self.validate()
        self.last_error = None
        node = self.node
        self.is_saving = True
        try:
            if self.client is not None:
                await self._submit(node)
        except ApiError as exc:
            self.last_error = exc.message
            logger.error("Saving parameters of %s failed: %s", self.node_id, exc.message)
            return False
        finally:
            self.is_saving = False

        if self.node_id not in self.store:
            logger.warning("Node %s was deleted while saving", self.node_id)
        else:
            self.store.set_parameters(self.node_id, self.parameters)
        logger.info("Saved %d parameters on %s", len(self.parameters), self.node_id)
        self.close()
        return True

    async def _submit(self, node: Node) -> None:
        if not self.workflow_id:
            raise ValueError("workflow_id required to save")
        if isinstance(node, TriggerNode):
            variables = [
                TriggerVariable(p.id, p.kind, p.dynamic_path if p.is_dynamic else p.value)
                for p in self.parameters
            ]
            await self.client.workflows.update_trigger(
                self.workflow_id, node.id, input_mapping=mapping_from_variables(variables)
            )
        else:
            await self.client.workflows.update_input_params(
                self.workflow_id, node.id, input_params(self.parameters)
            )

    async def load(self) -> bool:
        """Refresh parameters from the backend.

        The response is dropped when the panel closed, the selection moved
        away, or a newer load started while it was in flight.
        """
        if self.client is None or not self.workflow_id:
            return False
        self._load_seq += 1
        seq = self._load_seq
        selected = self.store.selected_node_id

        if isinstance(self.node, TriggerNode):
            trigger = await self.client.workflows.get_trigger(self.workflow_id, self.node_id)
            variables = trigger_variables_from_mapping((trigger or {}).get("input_mapping"))
            fresh = [describe(v.kind, v.default, id=v.name) for v in variables]
        else:
            data = await self.client.workflows.get_form_schema(self.workflow_id, self.node_id)
            fresh = parameters_from_form_schema((data or {}).get("form_schema") or {})

        if not self.is_open or seq != self._load_seq or self.store.selected_node_id != selected:
            logger.debug("Discarding stale parameters for %s", self.node_id)
            return False
        self.parameters = fresh
        return True

    def close(self) -> None:
        self.is_open = False
        self.armed_param_id = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "node_id": self.node_id,
            "is_open": self.is_open,
            "armed_param_id": self.armed_param_id,
            "last_error": self.last_error,
            "parameters": [
                {**p.to_dict(), "display": serialize_for_display(p)} for p in self.parameters
            ],
        }
