"""Resources browser - workspace variables, credentials, databases and files."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

from ..config import settings
from ..errors import ParseError
from . import paths
from .channel import ActivePathChannel

if TYPE_CHECKING:
    from ..api.resources import ResourcesAPI

logger = logging.getLogger(__name__)

TAB_NAMESPACES = {
    "variables": "value",
    "credentials": "credential",
    "databases": "database",
    "files": "file",
}

# Bookkeeping columns that are never useful as references
HIDDEN_FIELDS = frozenset({"id", "workspace_id", "created_at", "updated_at"})


@dataclass(frozen=True)
class ResourceLeaf:
    tab: str
    resource_id: str
    resource_name: str
    field: str | None
    label: str
    path: str


def _display_name(tab: str, item: dict[str, Any]) -> str:
    key = "key" if tab == "variables" else "name"
    return str(item.get(key) or item.get("name") or item.get("id"))


class ResourceBrowser:
    """Lazily loaded, per-instance cached workspace resources.

    A tab is fetched the first time it is selected and kept for the lifetime
    of this browser; a new browser (a newly opened panel) fetches again.
    """

    def __init__(
        self,
        api: "ResourcesAPI",
        channel: ActivePathChannel,
        page_size: int | None = None,
        max_pages: int | None = None,
    ):
        self.api = api
        self.channel = channel
        self.page_size = page_size or settings.resource_page_size
        self.max_pages = max_pages or settings.resource_max_pages
        self.active_tab: str | None = None
        self._cache: dict[str, list[dict[str, Any]]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def is_loaded(self, tab: str) -> bool:
        return tab in self._cache

    async def select_tab(self, tab: str) -> list[dict[str, Any]]:
        if tab not in TAB_NAMESPACES:
            raise ValueError(f"Unknown resource tab: {tab}")
        self.active_tab = tab
        lock = self._locks.setdefault(tab, asyncio.Lock())
        async with lock:
            if tab not in self._cache:
                self._cache[tab] = await self._load(tab)
        return self._cache[tab]

    async def _load(self, tab: str) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        for page in range(1, self.max_pages + 1):
            data = await self.api.list(tab, page=page, page_size=self.page_size)
            items.extend(i for i in data.get("items", []) if isinstance(i, dict) and i.get("id"))
            if not (data.get("metadata") or {}).get("has_next"):
                break
        else:
            logger.warning("Stopped loading %s after %d pages", tab, self.max_pages)
        logger.debug("Loaded %d %s", len(items), tab)
        return items

    def items(self, tab: str) -> list[dict[str, Any]]:
        return list(self._cache.get(tab, []))

    def leaves(self, tab: str) -> list[ResourceLeaf]:
        """Clickable leaves for a loaded tab.

        Variables give one leaf each; credentials a whole-object leaf plus one
        per field; databases and files one per field.
        """
        namespace = TAB_NAMESPACES[tab]
        result: list[ResourceLeaf] = []
        for item in self._cache.get(tab, []):
            rid = str(item["id"])
            name = _display_name(tab, item)
            if "." in rid:
                logger.warning("Skipping %s %r: id cannot be used in a reference path", tab, rid)
                continue
            if namespace == "value":
                result.append(ResourceLeaf(tab, rid, name, None, name, paths.encode("value", rid)))
                continue
            if namespace == "credential":
                result.append(ResourceLeaf(tab, rid, name, None, name, paths.encode("credential", rid)))
            for field in item:
                if field in HIDDEN_FIELDS:
                    continue
                try:
                    path = paths.encode(namespace, rid, field)
                except ParseError:
                    continue
                result.append(ResourceLeaf(tab, rid, name, field, f"{name}.{field}", path))
        return result

    def select(self, leaf: ResourceLeaf) -> str:
        self.channel.publish(leaf.path)
        return leaf.path
