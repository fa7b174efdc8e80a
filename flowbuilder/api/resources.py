"""Resources API - workspace-scoped variables, credentials, databases, files."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .client import FlowClient

RESOURCE_KINDS = ("variables", "credentials", "databases", "files")


class ResourcesAPI:
    """Paginated read access to workspace resources.

    Each list call returns ``{"items": [...], "metadata": {"page", "page_size",
    "total_items", "total_pages", "has_next", "has_previous"}}``.
    """

    def __init__(self, client: "FlowClient"):
        self._client = client

    async def list(self, kind: str, page: int = 1, page_size: int = 50) -> dict[str, Any]:
        if kind not in RESOURCE_KINDS:
            raise ValueError(f"Unknown resource kind: {kind}")
        data = await self._client._get(
            f"{self._client.workspace_prefix}/{kind}", page=page, page_size=page_size
        )
        if isinstance(data, list):
            # Unpaginated backends return the bare list
            return {"items": data, "metadata": {"page": page, "has_next": False}}
        return data or {"items": [], "metadata": {"page": page, "has_next": False}}

    async def list_variables(self, page: int = 1, page_size: int = 50) -> dict[str, Any]:
        return await self.list("variables", page, page_size)

    async def list_credentials(self, page: int = 1, page_size: int = 50) -> dict[str, Any]:
        return await self.list("credentials", page, page_size)

    async def list_databases(self, page: int = 1, page_size: int = 50) -> dict[str, Any]:
        return await self.list("databases", page, page_size)

    async def list_files(self, page: int = 1, page_size: int = 50) -> dict[str, Any]:
        return await self.list("files", page, page_size)
