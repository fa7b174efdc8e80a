"""Flow API client - typed wrapper for the workflow backend.

Every response uses the JSON envelope::

    {"status": "success", "code": 200, "message": null, "data": {...}}
    {"status": "error", "code": 422, "error_message": "...", "error_code": "..."}

The client unwraps ``data`` and turns error envelopes, HTTP errors and
transport failures into ``ApiError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, TYPE_CHECKING

import httpx

from ..config import settings
from ..errors import ApiError

if TYPE_CHECKING:
    from .resources import ResourcesAPI
    from .workflows import WorkflowsAPI

logger = logging.getLogger(__name__)


@dataclass
class FlowConfig:
    """Flow API configuration."""

    token: str
    workspace_id: str
    base_url: str = "http://localhost:8000"
    timeout: float = 30.0

    @classmethod
    def from_settings(cls) -> "FlowConfig":
        return cls(
            token=settings.api_token,
            workspace_id=settings.workspace_id,
            base_url=settings.api_base_url,
            timeout=settings.request_timeout_seconds,
        )

    def to_dict(self) -> dict[str, Any]:
        """Export config as dictionary."""
        return {
            "token": self.token[:12] + "..." if self.token else None,
            "workspace_id": self.workspace_id,
            "base_url": self.base_url,
        }


def _error_message(body: Any, fallback: str) -> str:
    if isinstance(body, dict):
        for key in ("error_message", "message", "error", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
        data = body.get("data")
        if isinstance(data, dict):
            return _error_message(data, fallback)
    return fallback


class FlowClient:
    """Workflow backend client with domain-specific sub-APIs.

    Usage:
        async with FlowClient(FlowConfig.from_settings()) as api:
            graph = await api.workflows.get_graph("wf_123")
            creds = await api.resources.list_credentials()
    """

    def __init__(self, config: FlowConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._workflows: WorkflowsAPI | None = None
        self._resources: ResourcesAPI | None = None

    @classmethod
    def from_settings(cls) -> "FlowClient":
        return cls(FlowConfig.from_settings())

    @property
    def workspace_prefix(self) -> str:
        wid = self.config.workspace_id
        if not wid:
            raise ValueError("workspace_id required")
        return f"/frontend/workspaces/{wid}"

    async def __aenter__(self) -> "FlowClient":
        self._client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=self.config.timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.config.token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

        from .resources import ResourcesAPI
        from .workflows import WorkflowsAPI

        self._workflows = WorkflowsAPI(self)
        self._resources = ResourcesAPI(self)
        return self

    async def __aexit__(self, *args):
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def workflows(self) -> "WorkflowsAPI":
        """Workflow graph, node and trigger API."""
        if not self._workflows:
            raise RuntimeError("Client not initialized. Use 'async with' context.")
        return self._workflows

    @property
    def resources(self) -> "ResourcesAPI":
        """Workspace variables, credentials, databases and files."""
        if not self._resources:
            raise RuntimeError("Client not initialized. Use 'async with' context.")
        return self._resources

    # HTTP methods
    async def _request(
        self,
        method: str,
        endpoint: str,
        json: dict | None = None,
        params: dict | None = None,
    ) -> Any:
        if self._client is None:
            raise RuntimeError("Client not initialized. Use 'async with' context.")
        try:
            resp = await self._client.request(method, endpoint, json=json, params=params)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            try:
                body = exc.response.json()
            except ValueError:
                body = exc.response.text
            message = _error_message(body, f"{method} {endpoint} failed: {exc.response.status_code}")
            logger.error("API error %s %s: %s", method, endpoint, message)
            raise ApiError(message, status_code=exc.response.status_code, payload=body) from exc
        except httpx.RequestError as exc:
            logger.error("API unreachable %s %s: %s", method, endpoint, exc)
            raise ApiError(f"{method} {endpoint} failed: {exc}") from exc

        if not resp.content:
            return None
        try:
            body = resp.json()
        except ValueError as exc:
            raise ApiError(f"{method} {endpoint} returned invalid JSON", resp.status_code) from exc
        if isinstance(body, dict) and "status" in body:
            if body.get("status") != "success":
                message = _error_message(body, f"{method} {endpoint} failed")
                raise ApiError(message, status_code=body.get("code", resp.status_code), payload=body)
            return body.get("data")
        return body

    async def _get(self, endpoint: str, **params) -> Any:
        """Make GET request."""
        return await self._request("GET", endpoint, params=params or None)

    async def _post(self, endpoint: str, data: dict | None = None) -> Any:
        """Make POST request."""
        return await self._request("POST", endpoint, json=data)

    async def _put(self, endpoint: str, data: dict | None = None) -> Any:
        """Make PUT request."""
        return await self._request("PUT", endpoint, json=data)

    async def _delete(self, endpoint: str) -> Any:
        """Make DELETE request."""
        return await self._request("DELETE", endpoint)
