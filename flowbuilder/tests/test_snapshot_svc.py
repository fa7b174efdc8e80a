"""Tests for the offline snapshot store."""

from __future__ import annotations

import json

from flowbuilder.editor.session import WorkflowEditor
from flowbuilder.services import snapshot_svc


def test_missing_file_reads_empty(snapshot_file):
    assert snapshot_svc.list_snapshots() == []


def test_unreadable_file_reads_empty(snapshot_file):
    snapshot_file.write_text("{not json")
    assert snapshot_svc.list_snapshots() == []


def test_save_upserts_and_stamps(snapshot_file):
    first = snapshot_svc.save_snapshot({"id": "wf1", "name": "One", "nodes": []})
    assert "updatedAt" in first
    snapshot_svc.save_snapshot({"id": "wf2", "name": "Two", "nodes": []})
    snapshot_svc.save_snapshot({"id": "wf1", "name": "Renamed", "nodes": []})

    stored = json.loads(snapshot_file.read_text())
    assert [w["id"] for w in stored["workflows"]] == ["wf1", "wf2"]
    assert snapshot_svc.get_snapshot("wf1")["name"] == "Renamed"


def test_delete(snapshot_file):
    snapshot_svc.save_snapshot({"id": "wf1", "nodes": []})
    assert snapshot_svc.delete_snapshot("wf1") is True
    assert snapshot_svc.delete_snapshot("wf1") is False
    assert snapshot_svc.get_snapshot("wf1") is None


def test_explicit_path(tmp_path):
    path = tmp_path / "nested" / "other.json"
    snapshot_svc.save_snapshot({"id": "x", "nodes": []}, path=path)
    assert snapshot_svc.get_snapshot("x", path=path) is not None


def test_new_workflow_loads_into_editor(snapshot_file):
    draft = snapshot_svc.new_workflow()
    assert draft["status"] == "draft"
    editor = WorkflowEditor.from_snapshot(draft)
    assert editor.store.root == ["trigger-1"]
    assert editor.store.trigger is not None


def test_editor_snapshot_round_trip(nested_store, snapshot_file):
    editor = WorkflowEditor("wf9", store=nested_store, name="Nested")
    snapshot_svc.save_snapshot(editor.to_snapshot())

    restored = WorkflowEditor.from_snapshot(snapshot_svc.get_snapshot("wf9"))
    assert restored.name == "Nested"
    assert restored.store.to_dict() == nested_store.to_dict()
