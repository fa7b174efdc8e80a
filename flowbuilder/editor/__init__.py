"""Editor core: codec, parameters, graph store, browsers, panel and canvas."""

from .browser import OutputsBrowser, OutputSource, TreeEntry
from .canvas import CanvasViewModel
from .channel import ActivePathChannel
from .graph import GraphStore
from .nodes import (
    ActionNode,
    ConditionalNode,
    LoopNode,
    NODE_CATALOG,
    NodeSpec,
    NodeVariant,
    TriggerNode,
    TriggerVariable,
)
from .panel import ParametersPanel
from .parameters import Parameter, PrimitiveKind
from .paths import ReferencePath
from .resources import ResourceBrowser, ResourceLeaf
from .session import WorkflowEditor
from .validation import ValidationResult, validate_workflow

__all__ = [
    "ActionNode",
    "ActivePathChannel",
    "CanvasViewModel",
    "ConditionalNode",
    "GraphStore",
    "LoopNode",
    "NODE_CATALOG",
    "NodeSpec",
    "NodeVariant",
    "OutputSource",
    "OutputsBrowser",
    "Parameter",
    "ParametersPanel",
    "PrimitiveKind",
    "ReferencePath",
    "ResourceBrowser",
    "ResourceLeaf",
    "TreeEntry",
    "TriggerNode",
    "TriggerVariable",
    "ValidationResult",
    "WorkflowEditor",
    "validate_workflow",
]
