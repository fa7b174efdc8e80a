"""Offline workflow snapshots kept in a local JSON file."""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config import settings

logger = logging.getLogger(__name__)

STORAGE_KEY = "workflows"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _path(path: Path | str | None) -> Path:
    return Path(path).expanduser() if path is not None else settings.snapshot_file


def _read(path: Path) -> list[dict[str, Any]]:
    try:
        data = json.loads(path.read_text())
    except FileNotFoundError:
        return []
    except (OSError, ValueError) as exc:
        logger.error("Error loading snapshots from %s: %s", path, exc)
        return []
    items = data.get(STORAGE_KEY) if isinstance(data, dict) else None
    return [w for w in items or [] if isinstance(w, dict) and "id" in w]


def _write(path: Path, workflows: list[dict[str, Any]]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps({STORAGE_KEY: workflows}, indent=2))
    tmp.replace(path)


# ── Snapshot CRUD ─────────────────────────────────────────────────────────

def list_snapshots(path: Path | str | None = None) -> list[dict[str, Any]]:
    return _read(_path(path))


def get_snapshot(workflow_id: str, path: Path | str | None = None) -> dict[str, Any] | None:
    return next((w for w in list_snapshots(path) if w["id"] == workflow_id), None)


def save_snapshot(workflow: dict[str, Any], path: Path | str | None = None) -> dict[str, Any]:
    """Insert or replace ``workflow`` by id, stamping ``updatedAt``."""
    target = _path(path)
    workflows = _read(target)
    saved = {**workflow, "updatedAt": _now()}
    for index, existing in enumerate(workflows):
        if existing["id"] == saved["id"]:
            workflows[index] = saved
            break
    else:
        workflows.append(saved)
    _write(target, workflows)
    logger.info("Saved snapshot %s", saved["id"])
    return saved


def delete_snapshot(workflow_id: str, path: Path | str | None = None) -> bool:
    target = _path(path)
    workflows = _read(target)
    remaining = [w for w in workflows if w["id"] != workflow_id]
    if len(remaining) == len(workflows):
        return False
    _write(target, remaining)
    logger.info("Deleted snapshot %s", workflow_id)
    return True


def new_workflow(name: str = "Untitled Workflow") -> dict[str, Any]:
    """A draft workflow holding only a manual trigger."""
    stamp = _now()
    trigger_id = "trigger-1"
    return {
        "id": f"workflow-{int(time.time() * 1000)}",
        "name": name,
        "description": "",
        "status": "draft",
        "root": [trigger_id],
        "nodes": [
            {
                "id": trigger_id,
                "type": "trigger",
                "title": "Trigger",
                "trigger_type": "manual",
                "variables": [],
                "config": {"description": "Start your workflow"},
                "sample_output": None,
            }
        ],
        "createdAt": stamp,
        "updatedAt": stamp,
        "version": 1,
    }
