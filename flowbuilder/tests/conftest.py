"""Shared fixtures: sample graphs, channels and an HTTP client for the editor API."""

from __future__ import annotations

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from flowbuilder.config import settings
from flowbuilder.editor.channel import ActivePathChannel
from flowbuilder.editor.graph import GraphStore
from flowbuilder.editor.nodes import NodeSpec, NodeVariant
from flowbuilder.services import editor_svc

USER_OUTPUT = {
    "user": {"email": "ada@example.com", "name": "Ada", "address": {"city": "London"}},
    "tags": ["vip", "beta"],
    "status": 200,
}


@pytest.fixture
def channel() -> ActivePathChannel:
    return ActivePathChannel()


@pytest.fixture
def chain_store() -> GraphStore:
    """trigger ``t`` -> ``n1`` -> ``n2`` -> ``n3`` on the top-level chain."""
    store = GraphStore()
    store.add_node(None, NodeSpec.of("manual_trigger"), node_id="t")
    store.add_node(None, NodeSpec.of("http_request", title="Fetch user"), node_id="n1")
    store.add_node(None, NodeSpec.of("send_email"), node_id="n2")
    store.add_node(None, NodeSpec.of("text_replace"), node_id="n3")
    store.update_node("n1", sample_output=USER_OUTPUT)
    store.update_node("n2", sample_output={"sent": True})
    return store


@pytest.fixture
def nested_store() -> GraphStore:
    """trigger -> if (true: a, false: b) -> loop (body: c) -> d."""
    store = GraphStore()
    store.add_node(None, NodeSpec(variant=NodeVariant.TRIGGER), node_id="t")
    store.add_node(None, NodeSpec(variant=NodeVariant.CONDITIONAL), node_id="if")
    store.add_branch("if", "true", NodeSpec.of("json_parse"), node_id="a")
    store.add_branch("if", "false", NodeSpec.of("array_join"), node_id="b")
    store.add_node(None, NodeSpec(variant=NodeVariant.LOOP), node_id="loop")
    store.add_to_loop("loop", NodeSpec.of("http_request"), node_id="c")
    store.add_node(None, NodeSpec.of("send_email"), node_id="d")
    return store


@pytest.fixture
def snapshot_file(tmp_path, monkeypatch):
    path = tmp_path / "workflows.json"
    monkeypatch.setattr(settings, "snapshot_path", str(path))
    return path


@pytest_asyncio.fixture
async def client(snapshot_file):
    """HTTPX async test client against the editor app."""
    from flowbuilder.app import app

    editor_svc.clear()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    editor_svc.clear()
