"""Graph store - node registry plus single-owner containment lists.

Every node id lives in exactly one ordered list: the top-level chain, one
branch of a conditional, or the body of a loop. All structural changes go
through ``GraphStore`` so that invariant is kept in one place. Each operation
validates its arguments before touching any state, so a rejected call leaves
the graph exactly as it was.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any, NamedTuple

from ..errors import GraphError
from .nodes import (
    BRANCHES,
    ConditionalNode,
    LoopNode,
    Node,
    NodeSpec,
    NodeVariant,
    TriggerNode,
    TriggerVariable,
    build_node,
    child_lists,
    node_from_dict,
    node_to_dict,
)
from .parameters import Parameter

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class Container(NamedTuple):
    """Address of a containing list: ``(None, "root")`` or ``(parent_id, slot)``."""

    parent_id: str | None
    slot: str

    @property
    def key(self) -> str:
        return self.slot if self.parent_id is None else f"{self.parent_id}:{self.slot}"


ROOT = Container(None, "root")


class GraphStore:
    """In-memory workflow graph with consistent mutation operations."""

    def __init__(self) -> None:
        self._nodes: dict[str, Node] = {}
        self._owner: dict[str, Container] = {}
        self.root: list[str] = []
        self.selected_node_id: str | None = None

    # ── Queries ───────────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    @property
    def nodes(self) -> list[Node]:
        """Top-level chain, in order."""
        return [self._nodes[i] for i in self.root]

    @property
    def selected_node(self) -> Node | None:
        if self.selected_node_id is None:
            return None
        return self._nodes.get(self.selected_node_id)

    @property
    def trigger(self) -> TriggerNode | None:
        for node in self._nodes.values():
            if isinstance(node, TriggerNode):
                return node
        return None

    def get(self, node_id: str) -> Node:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise GraphError(GraphError.NOT_FOUND, f"No node with id {node_id!r}") from None

    def container_of(self, node_id: str) -> Container:
        self.get(node_id)
        return self._owner[node_id]

    def siblings(self, node_id: str) -> list[str]:
        """The ordered id list that holds ``node_id`` (a copy)."""
        return list(self._list(self.container_of(node_id)))

    def walk(self) -> Iterator[Node]:
        """All nodes depth-first in display order."""
        yield from self._walk(self.root)

    def _walk(self, ids: list[str]) -> Iterator[Node]:
        for node_id in ids:
            node = self._nodes[node_id]
            yield node
            for child_ids in child_lists(node).values():
                yield from self._walk(child_ids)

    def predecessors(self, node_id: str) -> list[Node]:
        """Nodes whose output is available to ``node_id``, outermost first.

        That is every node earlier in the same list, plus each enclosing
        conditional/loop and everything before it, recursively.
        """
        owner = self.container_of(node_id)
        siblings = self._list(owner)
        earlier = [self._nodes[i] for i in siblings[: siblings.index(node_id)]]
        if owner.parent_id is None:
            return earlier
        parent = self._nodes[owner.parent_id]
        return self.predecessors(parent.id) + [parent] + earlier

    def containment(self) -> dict[str, list[str]]:
        """Map each node id to every list key it appears in.

        Built by scanning the lists themselves, not the owner index, so it can
        be used to check that each id appears exactly once.
        """
        seen: dict[str, list[str]] = {node_id: [] for node_id in self._nodes}
        for container, ids in self._all_lists():
            for node_id in ids:
                seen.setdefault(node_id, []).append(container.key)
        return seen

    def _all_lists(self) -> Iterator[tuple[Container, list[str]]]:
        yield ROOT, self.root
        for node in self._nodes.values():
            for slot, ids in child_lists(node).items():
                yield Container(node.id, slot), ids

    def _list(self, container: Container) -> list[str]:
        if container.parent_id is None:
            return self.root
        return child_lists(self._nodes[container.parent_id])[container.slot]

    def _subtree_ids(self, node_id: str) -> list[str]:
        ids = [node_id]
        for child_ids in child_lists(self._nodes[node_id]).values():
            for child_id in child_ids:
                ids.extend(self._subtree_ids(child_id))
        return ids

    # ── Mutations ─────────────────────────────────────────────────────────

    def _place(self, node: Node, container: Container, index: int) -> Node:
        self._list(container).insert(index, node.id)
        self._nodes[node.id] = node
        self._owner[node.id] = container
        logger.debug("Placed %s %s in %s at %d", node.variant.value, node.id, container.key, index)
        return node

    def _build(self, spec: NodeSpec, nested: bool, node_id: str | None = None) -> Node:
        if node_id is not None and node_id in self._nodes:
            raise GraphError(GraphError.CONFLICT, f"Node id {node_id!r} already exists")
        if spec.variant is NodeVariant.TRIGGER:
            if nested:
                raise GraphError(
                    GraphError.INVALID_TARGET, "A trigger can only start the top-level chain"
                )
            if self.trigger is not None:
                raise GraphError(GraphError.CONFLICT, "Workflow already has a trigger")
        try:
            return build_node(spec, node_id)
        except ValueError as exc:
            raise GraphError(GraphError.INVALID_TARGET, str(exc)) from exc

    def add_node(self, after_node_id: str | None, spec: NodeSpec, node_id: str | None = None) -> Node:
        """Insert a new node right after ``after_node_id`` in its list.

        ``None`` appends to the top-level chain. Triggers always go to the
        head of the top-level chain.
        """
        if after_node_id is not None:
            container = self.container_of(after_node_id)
        else:
            container = ROOT
        if spec.variant is NodeVariant.TRIGGER and after_node_id is not None:
            raise GraphError(GraphError.INVALID_TARGET, "A trigger can only start the workflow")
        node = self._build(spec, nested=False, node_id=node_id)

        if isinstance(node, TriggerNode):
            return self._place(node, ROOT, 0)
        if after_node_id is None:
            return self._place(node, ROOT, len(self.root))
        index = self._list(container).index(after_node_id) + 1
        return self._place(node, container, index)

    def insert_between(
        self, from_node_id: str, to_node_id: str, spec: NodeSpec, node_id: str | None = None
    ) -> Node:
        """Splice a new node between two adjacent nodes of the same list."""
        container = self.container_of(from_node_id)
        self.get(to_node_id)
        ids = self._list(container)
        index = ids.index(from_node_id)
        if index + 1 >= len(ids) or ids[index + 1] != to_node_id:
            raise GraphError(
                GraphError.NOT_ADJACENT,
                f"{to_node_id!r} does not directly follow {from_node_id!r}",
            )
        node = self._build(spec, nested=True, node_id=node_id)
        return self._place(node, container, index + 1)

    def add_branch(
        self, conditional_id: str, branch: str, spec: NodeSpec, node_id: str | None = None
    ) -> Node:
        """Append a new node to the ``'true'`` or ``'false'`` branch."""
        parent = self.get(conditional_id)
        if not isinstance(parent, ConditionalNode):
            raise GraphError(GraphError.INVALID_TARGET, f"{conditional_id!r} is not a conditional")
        if branch not in BRANCHES:
            raise GraphError(GraphError.INVALID_TARGET, f"Unknown branch {branch!r}")
        node = self._build(spec, nested=True, node_id=node_id)
        container = Container(conditional_id, branch)
        return self._place(node, container, len(parent.branch(branch)))

    def add_to_loop(self, loop_id: str, spec: NodeSpec, node_id: str | None = None) -> Node:
        """Append a new node to a loop's body."""
        parent = self.get(loop_id)
        if not isinstance(parent, LoopNode):
            raise GraphError(GraphError.INVALID_TARGET, f"{loop_id!r} is not a loop")
        node = self._build(spec, nested=True, node_id=node_id)
        return self._place(node, Container(loop_id, "body"), len(parent.body))

    def delete_node(self, node_id: str) -> list[str]:
        """Remove a node and, for conditionals/loops, everything nested in it.

        Returns the removed ids, the node itself first.
        """
        container = self.container_of(node_id)
        removed = self._subtree_ids(node_id)
        self._list(container).remove(node_id)
        for rid in removed:
            del self._nodes[rid]
            del self._owner[rid]
        if self.selected_node_id in removed:
            self.selected_node_id = None
        logger.debug("Deleted %s (cascade: %d nodes)", node_id, len(removed))
        return removed

    def select_node(self, node_id: str | None) -> None:
        if node_id is not None:
            self.get(node_id)
        self.selected_node_id = node_id

    def update_node(
        self,
        node_id: str,
        title: str | None = None,
        config: dict[str, Any] | None = None,
        sample_output: Any = _UNSET,
    ) -> Node:
        """Change title, config or sample output; pass ``sample_output=None`` to clear it."""
        node = self.get(node_id)
        if title is not None:
            node.title = title
        if config is not None:
            node.config = dict(config)
        if sample_output is not _UNSET:
            node.sample_output = sample_output
        return node

    def set_parameters(self, node_id: str, parameters: list[Parameter]) -> Node:
        """Replace a node's parameters (a trigger's variable defaults)."""
        node = self.get(node_id)
        if isinstance(node, TriggerNode):
            node.variables = [
                TriggerVariable(name=p.id, kind=p.kind, default=p.dynamic_path if p.is_dynamic else p.value)
                for p in parameters
            ]
        else:
            node.parameters = list(parameters)
        return node

    # ── Serialization ─────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": list(self.root),
            "nodes": [node_to_dict(n) for n in self.walk()],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GraphStore":
        """Rebuild a store, rejecting dangling or multiply-owned ids."""
        store = cls()
        registry = {}
        for raw in data.get("nodes", []):
            node = node_from_dict(raw)
            registry[node.id] = node

        def adopt(ids: list[str], container: Container) -> None:
            for node_id in ids:
                if node_id not in registry:
                    raise GraphError(GraphError.NOT_FOUND, f"Dangling node id {node_id!r}")
                if node_id in store._owner:
                    raise GraphError(GraphError.CONFLICT, f"Node {node_id!r} has two parents")
                store._owner[node_id] = container
                store._nodes[node_id] = registry[node_id]
                for slot, child_ids in child_lists(registry[node_id]).items():
                    adopt(child_ids, Container(node_id, slot))

        if "root" in data:
            root = list(data["root"])
        else:
            nested = {i for n in registry.values() for ids in child_lists(n).values() for i in ids}
            root = [node_id for node_id in registry if node_id not in nested]
        store.root = root
        adopt(root, ROOT)
        orphans = [node_id for node_id in registry if node_id not in store._nodes]
        if orphans:
            logger.warning("Dropping %d unreachable node(s): %s", len(orphans), ", ".join(orphans))
        return store
