"""Pydantic models for the editor API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class NodeCreate(BaseModel):
    node_type: str | None = None
    variant: str | None = None  # trigger/action/conditional/loop
    title: str | None = None
    values: dict[str, Any] | None = None
    config: dict[str, Any] | None = None
    after_node_id: str | None = None


class InsertBetween(BaseModel):
    from_node_id: str
    to_node_id: str
    node: NodeCreate


class SelectNode(BaseModel):
    node_id: str | None = None


class SelectLeaf(BaseModel):
    node_id: str
    locator: str


class ToggleEntry(BaseModel):
    node_id: str
    path: str = ""


class ActivePath(BaseModel):
    path: str


class ZoomSet(BaseModel):
    zoom: float


class WheelEvent(BaseModel):
    delta_y: float
    accelerator: bool = False


class PanSet(BaseModel):
    x: float
    y: float


class ArmParam(BaseModel):
    param_id: str


class LiteralValue(BaseModel):
    value: Any = None
