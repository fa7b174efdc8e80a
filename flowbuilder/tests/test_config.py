"""Tests for environment-driven settings."""

from __future__ import annotations

from pathlib import Path

from flowbuilder.config import EditorSettings


def test_defaults():
    s = EditorSettings(_env_file=None)
    assert s.collapse_depth == 2
    assert s.is_production is False
    assert s.snapshot_file == Path("~/.flowbuilder/workflows.json").expanduser()


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("FB_WORKSPACE_ID", "ws42")
    monkeypatch.setenv("FB_ENVIRONMENT", "Production")
    monkeypatch.setenv("FB_RESOURCE_PAGE_SIZE", "10")
    s = EditorSettings(_env_file=None)
    assert s.workspace_id == "ws42"
    assert s.resource_page_size == 10
    assert s.is_production is True
