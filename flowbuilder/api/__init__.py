"""Flow API client module.

Usage:
    from flowbuilder.api import FlowClient, FlowConfig

    async with FlowClient(FlowConfig(token="...", workspace_id="ws_1")) as api:
        graph = await api.workflows.get_graph("wf_1")
        variables = await api.resources.list_variables()
"""

from .client import FlowClient, FlowConfig
from .resources import RESOURCE_KINDS, ResourcesAPI
from .workflows import WorkflowsAPI

__all__ = [
    "FlowClient",
    "FlowConfig",
    "RESOURCE_KINDS",
    "ResourcesAPI",
    "WorkflowsAPI",
]
