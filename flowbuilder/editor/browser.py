"""Outputs browser - prior nodes' sample outputs as a clickable JSON tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..config import settings
from ..errors import GraphError, ParseError
from . import paths
from .channel import ActivePathChannel
from .graph import GraphStore
from .nodes import Node

logger = logging.getLogger(__name__)


@dataclass
class OutputSource:
    """One predecessor whose output can be referenced."""

    node_id: str
    title: str
    variant: str
    output: Any


@dataclass
class TreeEntry:
    """A visible row of the JSON tree.

    ``path`` is the locator inside the node output (``""`` for the root row);
    ``reference`` is the full reference path emitted when the row is clicked,
    None for the root row.
    """

    path: str
    label: str
    depth: int
    value_type: str
    is_container: bool
    collapsed: bool
    size: int | None
    preview: str | None
    reference: str | None


def _value_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "string"


def _preview(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)


class CollapseState:
    """Per-path collapse flags with automatic collapsing below a depth.

    Containers shallower than ``auto_depth`` start expanded, deeper ones start
    collapsed; ``toggle`` flips whichever default applies.
    """

    def __init__(self, auto_depth: int = 2):
        self.auto_depth = auto_depth
        self._toggled: set[str] = set()

    def is_collapsed(self, path: str, depth: int) -> bool:
        flipped = path in self._toggled
        if depth >= self.auto_depth:
            return not flipped
        return flipped

    def toggle(self, path: str) -> None:
        if path in self._toggled:
            self._toggled.remove(path)
        else:
            self._toggled.add(path)


class OutputsBrowser:
    """Read-only view over the outputs of nodes preceding the selection."""

    def __init__(
        self,
        store: GraphStore,
        channel: ActivePathChannel,
        outputs: dict[str, Any] | None = None,
        collapse_depth: int | None = None,
    ):
        self.store = store
        self.channel = channel
        self.outputs: dict[str, Any] = dict(outputs or {})
        self.collapse_depth = settings.collapse_depth if collapse_depth is None else collapse_depth
        self._collapse: dict[str, CollapseState] = {}

    def set_output(self, node_id: str, output: Any) -> None:
        """Record an output captured from a test run; it wins over samples."""
        self.outputs[node_id] = output

    def output_of(self, node: Node) -> Any:
        if node.id in self.outputs:
            return self.outputs[node.id]
        return node.sample_output

    def available_outputs(self) -> list[OutputSource]:
        """Strict predecessors of the selected node; empty when none selected."""
        selected = self.store.selected_node_id
        if selected is None or selected not in self.store:
            return []
        return [
            OutputSource(
                node_id=node.id,
                title=node.title,
                variant=node.variant.value,
                output=self.output_of(node),
            )
            for node in self.store.predecessors(selected)
        ]

    def _collapse_for(self, node_id: str) -> CollapseState:
        if node_id not in self._collapse:
            self._collapse[node_id] = CollapseState(self.collapse_depth)
        return self._collapse[node_id]

    def toggle(self, node_id: str, path: str) -> None:
        self._collapse_for(node_id).toggle(path)

    def entries(self, node_id: str) -> list[TreeEntry]:
        """Flatten a node's output into visible tree rows."""
        node = self.store.get(node_id)
        state = self._collapse_for(node_id)
        rows: list[TreeEntry] = []
        self._flatten(node_id, self.output_of(node), "", "", 0, state, rows)
        return rows

    def _flatten(
        self,
        node_id: str,
        value: Any,
        path: str,
        label: str,
        depth: int,
        state: CollapseState,
        rows: list[TreeEntry],
    ) -> None:
        value_type = _value_type(value)
        is_container = value_type in ("object", "array") and bool(value)
        collapsed = is_container and state.is_collapsed(path, depth)
        reference = None
        if depth > 0:
            try:
                reference = paths.node_path(node_id, path)
            except ParseError:
                logger.debug("Skipping unaddressable key at %s", path)
        rows.append(
            TreeEntry(
                path=path,
                label=label,
                depth=depth,
                value_type=value_type,
                is_container=is_container,
                collapsed=collapsed,
                size=len(value) if value_type in ("object", "array") else None,
                preview=None if value_type in ("object", "array") else _preview(value),
                reference=reference,
            )
        )
        if not is_container or collapsed:
            return
        if isinstance(value, dict):
            for key, child in value.items():
                child_path = paths.join_key(path, key)
                self._flatten(node_id, child, child_path, str(key), depth + 1, state, rows)
        else:
            for index, child in enumerate(value):
                child_path = paths.join_index(path, index)
                self._flatten(node_id, child, child_path, str(index), depth + 1, state, rows)

    def select_leaf(self, node_id: str, locator: str) -> str:
        """Publish the reference path for ``locator`` inside ``node_id``'s output.

        Only outputs currently listed (predecessors of the selection) can be
        referenced.
        """
        listed = {source.node_id for source in self.available_outputs()}
        if node_id not in listed:
            raise GraphError(
                GraphError.INVALID_TARGET,
                f"Node {node_id!r} does not precede the selected node",
            )
        path = paths.node_path(node_id, locator)
        self.channel.publish(path)
        return path
