"""Tests for the graph store: placement, cascade delete and the single-owner rule."""

from __future__ import annotations

import random

import pytest

from flowbuilder.editor.graph import GraphStore
from flowbuilder.editor.nodes import (
    ActionNode,
    ConditionalNode,
    NodeSpec,
    NodeVariant,
    TriggerNode,
)
from flowbuilder.errors import GraphError


def _assert_single_owner(store: GraphStore) -> None:
    for node_id, lists in store.containment().items():
        assert len(lists) == 1, f"{node_id} appears in {lists}"


class TestAddNode:
    def test_append_to_chain(self, chain_store):
        assert chain_store.root == ["t", "n1", "n2", "n3"]
        assert isinstance(chain_store.get("n1"), ActionNode)
        assert chain_store.get("n1").title == "Fetch user"

    def test_insert_after(self, chain_store):
        node = chain_store.add_node("n1", NodeSpec.of("json_parse"))
        assert chain_store.root == ["t", "n1", node.id, "n2", "n3"]

    def test_insert_after_nested_node_stays_in_branch(self, nested_store):
        node = nested_store.add_node("a", NodeSpec.of("text_replace"))
        assert nested_store.get("if").true_branch == ["a", node.id]
        assert node.id not in nested_store.root

    def test_unknown_after_node(self, chain_store):
        with pytest.raises(GraphError) as exc:
            chain_store.add_node("missing", NodeSpec.of("json_parse"))
        assert exc.value.code == GraphError.NOT_FOUND
        assert len(chain_store) == 4

    def test_second_trigger_conflicts(self, chain_store):
        with pytest.raises(GraphError) as exc:
            chain_store.add_node(None, NodeSpec.of("webhook_trigger"))
        assert exc.value.code == GraphError.CONFLICT

    def test_trigger_goes_to_head(self):
        store = GraphStore()
        store.add_node(None, NodeSpec.of("json_parse"), node_id="x")
        trigger = store.add_node(None, NodeSpec.of("webhook_trigger"))
        assert store.root[0] == trigger.id
        assert isinstance(trigger, TriggerNode)
        assert trigger.trigger_type == "webhook"

    def test_trigger_cannot_be_nested(self, nested_store):
        nested_store.delete_node("t")
        with pytest.raises(GraphError) as exc:
            nested_store.add_branch("if", "true", NodeSpec(variant=NodeVariant.TRIGGER))
        assert exc.value.code == GraphError.INVALID_TARGET

    def test_duplicate_id_conflicts(self, chain_store):
        with pytest.raises(GraphError) as exc:
            chain_store.add_node(None, NodeSpec.of("json_parse"), node_id="n1")
        assert exc.value.code == GraphError.CONFLICT

    def test_variant_mismatch_is_invalid_target(self, chain_store):
        with pytest.raises(GraphError) as exc:
            chain_store.add_node(None, NodeSpec(variant=NodeVariant.LOOP, node_type="http_request"))
        assert exc.value.code == GraphError.INVALID_TARGET


class TestInsertBetween:
    def test_adjacent(self, chain_store):
        node = chain_store.insert_between("n1", "n2", NodeSpec.of("json_parse"))
        assert chain_store.root == ["t", "n1", node.id, "n2", "n3"]

    def test_not_adjacent_leaves_graph_unchanged(self, chain_store):
        before = chain_store.to_dict()
        with pytest.raises(GraphError) as exc:
            chain_store.insert_between("n1", "n3", NodeSpec.of("json_parse"))
        assert exc.value.code == GraphError.NOT_ADJACENT
        assert chain_store.to_dict() == before

    def test_reverse_order_is_not_adjacent(self, chain_store):
        with pytest.raises(GraphError) as exc:
            chain_store.insert_between("n2", "n1", NodeSpec.of("json_parse"))
        assert exc.value.code == GraphError.NOT_ADJACENT

    def test_across_lists_is_not_adjacent(self, nested_store):
        with pytest.raises(GraphError) as exc:
            nested_store.insert_between("a", "b", NodeSpec.of("json_parse"))
        assert exc.value.code == GraphError.NOT_ADJACENT


class TestContainers:
    def test_add_branch(self, nested_store):
        cond = nested_store.get("if")
        assert isinstance(cond, ConditionalNode)
        assert cond.true_branch == ["a"]
        assert cond.false_branch == ["b"]

    def test_add_branch_to_non_conditional(self, chain_store):
        with pytest.raises(GraphError) as exc:
            chain_store.add_branch("n1", "true", NodeSpec.of("json_parse"))
        assert exc.value.code == GraphError.INVALID_TARGET

    def test_unknown_branch(self, nested_store):
        with pytest.raises(GraphError) as exc:
            nested_store.add_branch("if", "maybe", NodeSpec.of("json_parse"))
        assert exc.value.code == GraphError.INVALID_TARGET

    def test_add_to_non_loop(self, nested_store):
        with pytest.raises(GraphError) as exc:
            nested_store.add_to_loop("if", NodeSpec.of("json_parse"))
        assert exc.value.code == GraphError.INVALID_TARGET

    def test_walk_is_depth_first(self, nested_store):
        assert [n.id for n in nested_store.walk()] == ["t", "if", "a", "b", "loop", "c", "d"]


class TestDelete:
    def test_cascade(self, nested_store):
        nested_store.select_node("a")
        removed = nested_store.delete_node("if")
        assert removed == ["if", "a", "b"]
        assert "a" not in nested_store and "b" not in nested_store
        assert nested_store.root == ["t", "loop", "d"]
        assert nested_store.selected_node_id is None

    def test_delete_missing(self, chain_store):
        with pytest.raises(GraphError):
            chain_store.delete_node("nope")

    def test_selection_survives_unrelated_delete(self, chain_store):
        chain_store.select_node("n1")
        chain_store.delete_node("n3")
        assert chain_store.selected_node_id == "n1"


class TestPredecessors:
    def test_chain(self, chain_store):
        assert [n.id for n in chain_store.predecessors("n2")] == ["t", "n1"]
        assert chain_store.predecessors("t") == []

    def test_nested_includes_enclosing_nodes(self, nested_store):
        assert [n.id for n in nested_store.predecessors("b")] == ["t", "if"]
        assert [n.id for n in nested_store.predecessors("c")] == ["t", "if", "loop"]
        assert [n.id for n in nested_store.predecessors("d")] == ["t", "if", "loop"]


class TestSelection:
    def test_select_unknown(self, chain_store):
        with pytest.raises(GraphError):
            chain_store.select_node("zzz")
        assert chain_store.selected_node_id is None

    def test_select_and_clear(self, chain_store):
        chain_store.select_node("n2")
        assert chain_store.selected_node.id == "n2"
        chain_store.select_node(None)
        assert chain_store.selected_node is None


class TestSerialization:
    def test_round_trip(self, nested_store):
        copy = GraphStore.from_dict(nested_store.to_dict())
        assert copy.to_dict() == nested_store.to_dict()
        assert copy.container_of("c").key == "loop:body"

    def test_rejects_double_parent(self, nested_store):
        data = nested_store.to_dict()
        data["root"].append("a")
        with pytest.raises(GraphError) as exc:
            GraphStore.from_dict(data)
        assert exc.value.code == GraphError.CONFLICT

    def test_rejects_dangling_id(self, chain_store):
        data = chain_store.to_dict()
        data["root"].append("ghost")
        with pytest.raises(GraphError) as exc:
            GraphStore.from_dict(data)
        assert exc.value.code == GraphError.NOT_FOUND

    def test_unreachable_nodes_are_logged(self, chain_store, caplog):
        data = chain_store.to_dict()
        data["root"].remove("n3")
        with caplog.at_level("WARNING", logger="flowbuilder.editor.graph"):
            store = GraphStore.from_dict(data)
        assert "n3" not in store
        assert "unreachable" in caplog.text
        assert "n3" in caplog.text


class TestUpdate:
    def test_sample_output_can_be_cleared(self, chain_store):
        chain_store.update_node("n1", title="Renamed")
        assert chain_store.get("n1").sample_output is not None
        chain_store.update_node("n1", sample_output=None)
        assert chain_store.get("n1").sample_output is None
        assert chain_store.get("n1").title == "Renamed"


def test_random_edits_keep_single_owner():
    rng = random.Random(7)
    store = GraphStore()
    store.add_node(None, NodeSpec(variant=NodeVariant.TRIGGER))
    kinds = ["http_request", "if_else", "for_each", "json_parse"]

    for _ in range(200):
        ids = [n.id for n in store.walk()]
        action = rng.choice(["add", "add", "branch", "loop", "between", "delete"])
        target = rng.choice(ids) if ids else None
        try:
            if action == "add":
                store.add_node(target, NodeSpec.of(rng.choice(kinds)))
            elif action == "branch":
                store.add_branch(target, rng.choice(["true", "false"]), NodeSpec.of(rng.choice(kinds)))
            elif action == "loop":
                store.add_to_loop(target, NodeSpec.of(rng.choice(kinds)))
            elif action == "between":
                siblings = store.siblings(target)
                index = siblings.index(target)
                following = siblings[index + 1] if index + 1 < len(siblings) else target
                store.insert_between(target, following, NodeSpec.of("json_parse"))
            elif action == "delete" and len(ids) > 1:
                store.delete_node(target)
        except GraphError:
            pass
        _assert_single_owner(store)
        assert sum(1 for _ in store.walk()) == len(store)
