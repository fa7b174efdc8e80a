"""Tests for the lazily loaded workspace resources browser."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from flowbuilder.editor.resources import ResourceBrowser


def _page(items, has_next=False):
    return {"items": items, "metadata": {"has_next": has_next, "page": 1}}


@pytest.fixture
def resources_api():
    api = AsyncMock()
    data = {
        "variables": _page([{"id": "v1", "key": "BASE_URL", "value": "https://x", "is_secret": False}]),
        "credentials": _page([{"id": "c1", "name": "Stripe", "credential_type": "api_key", "api_key": "sk"}]),
        "databases": _page([{"id": "db1", "name": "Main", "host": "localhost", "created_at": "2024"}]),
        "files": _page([]),
    }
    api.list.side_effect = lambda kind, page=1, page_size=50: data[kind]
    return api


@pytest.mark.asyncio
async def test_tab_loads_once_per_instance(resources_api, channel):
    browser = ResourceBrowser(resources_api, channel)
    await browser.select_tab("variables")
    await browser.select_tab("variables")
    assert resources_api.list.await_count == 1

    second = ResourceBrowser(resources_api, channel)
    await second.select_tab("variables")
    assert resources_api.list.await_count == 2


@pytest.mark.asyncio
async def test_concurrent_selects_share_one_load(resources_api, channel):
    browser = ResourceBrowser(resources_api, channel)
    await asyncio.gather(browser.select_tab("credentials"), browser.select_tab("credentials"))
    assert resources_api.list.await_count == 1


@pytest.mark.asyncio
async def test_paginates_until_exhausted(channel):
    api = AsyncMock()
    api.list.side_effect = [
        _page([{"id": "v1", "key": "A"}], has_next=True),
        _page([{"id": "v2", "key": "B"}], has_next=False),
    ]
    browser = ResourceBrowser(api, channel, page_size=1)
    items = await browser.select_tab("variables")
    assert [i["id"] for i in items] == ["v1", "v2"]
    assert api.list.await_args_list[1].kwargs == {"page": 2, "page_size": 1}


@pytest.mark.asyncio
async def test_page_cap(channel):
    api = AsyncMock()
    api.list.return_value = _page([{"id": "v", "key": "A"}], has_next=True)
    browser = ResourceBrowser(api, channel, max_pages=3)
    await browser.select_tab("variables")
    assert api.list.await_count == 3


@pytest.mark.asyncio
async def test_unknown_tab(resources_api, channel):
    browser = ResourceBrowser(resources_api, channel)
    with pytest.raises(ValueError):
        await browser.select_tab("secrets")


@pytest.mark.asyncio
async def test_leaves_per_tab(resources_api, channel):
    browser = ResourceBrowser(resources_api, channel)
    for tab in ("variables", "credentials", "databases"):
        await browser.select_tab(tab)

    assert [l.path for l in browser.leaves("variables")] == ["${value:v1}"]

    cred_paths = [l.path for l in browser.leaves("credentials")]
    assert cred_paths[0] == "${credential:c1}"
    assert "${credential:c1.api_key}" in cred_paths
    assert "${credential:c1.id}" not in cred_paths

    db_paths = [l.path for l in browser.leaves("databases")]
    assert "${database:db1.host}" in db_paths
    assert "${database:db1.created_at}" not in db_paths
    assert all(l.field for l in browser.leaves("databases"))


@pytest.mark.asyncio
async def test_dotted_ids_are_skipped(channel):
    api = AsyncMock()
    api.list.return_value = _page(
        [{"id": "cred.v2", "name": "Old", "token": "x"}, {"id": "c2", "name": "New", "token": "y"}]
    )
    browser = ResourceBrowser(api, channel)
    await browser.select_tab("credentials")
    paths = [l.path for l in browser.leaves("credentials")]
    assert paths == ["${credential:c2}", "${credential:c2.name}", "${credential:c2.token}"]


@pytest.mark.asyncio
async def test_select_publishes(resources_api, channel):
    browser = ResourceBrowser(resources_api, channel)
    await browser.select_tab("variables")
    leaf = browser.leaves("variables")[0]
    assert browser.select(leaf) == "${value:v1}"
    assert channel.consume() == "${value:v1}"
