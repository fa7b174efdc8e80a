"""Workflow node variants and the node-type catalog."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Union

from .parameters import Parameter, PrimitiveKind, describe, empty_value


class NodeVariant(str, Enum):
    TRIGGER = "trigger"
    ACTION = "action"
    CONDITIONAL = "conditional"
    LOOP = "loop"


BRANCHES = ("true", "false")

# Comparison operators offered by conditional nodes
OPERATORS = [
    "equals",
    "not_equals",
    "contains",
    "not_contains",
    "starts_with",
    "ends_with",
    "greater_than",
    "less_than",
    "is_empty",
    "is_not_empty",
    "exists",
]


def new_node_id() -> str:
    return uuid.uuid4().hex


@dataclass
class TriggerVariable:
    """An input variable declared by the trigger."""

    name: str
    kind: PrimitiveKind = PrimitiveKind.STRING
    default: Any = ""

    def __post_init__(self) -> None:
        self.kind = PrimitiveKind(self.kind)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "kind": self.kind.value, "default": self.default}


@dataclass
class TriggerNode:
    id: str
    title: str
    variables: list[TriggerVariable] = field(default_factory=list)
    trigger_type: str = "manual"
    config: dict[str, Any] = field(default_factory=dict)
    sample_output: Any = None

    variant: ClassVar[NodeVariant] = NodeVariant.TRIGGER


@dataclass
class ActionNode:
    id: str
    title: str
    node_type: str = ""
    parameters: list[Parameter] = field(default_factory=list)
    config: dict[str, Any] = field(default_factory=dict)
    sample_output: Any = None

    variant: ClassVar[NodeVariant] = NodeVariant.ACTION


@dataclass
class ConditionalNode:
    id: str
    title: str
    parameters: list[Parameter] = field(default_factory=list)
    true_branch: list[str] = field(default_factory=list)
    false_branch: list[str] = field(default_factory=list)
    config: dict[str, Any] = field(default_factory=dict)
    sample_output: Any = None

    variant: ClassVar[NodeVariant] = NodeVariant.CONDITIONAL

    def branch(self, name: str) -> list[str]:
        if name == "true":
            return self.true_branch
        if name == "false":
            return self.false_branch
        raise KeyError(name)


@dataclass
class LoopNode:
    id: str
    title: str
    parameters: list[Parameter] = field(default_factory=list)
    body: list[str] = field(default_factory=list)
    config: dict[str, Any] = field(default_factory=dict)
    sample_output: Any = None

    variant: ClassVar[NodeVariant] = NodeVariant.LOOP


Node = Union[TriggerNode, ActionNode, ConditionalNode, LoopNode]


def node_parameters(node: Node) -> list[Parameter]:
    """Editable parameters of any node; triggers expose their variables."""
    if isinstance(node, TriggerNode):
        return [
            describe(v.kind, v.default, id=v.name, label=v.name)
            for v in node.variables
        ]
    return node.parameters


def child_lists(node: Node) -> dict[str, list[str]]:
    """Named child-id lists owned by ``node`` (empty for leaf variants)."""
    if isinstance(node, ConditionalNode):
        return {"true": node.true_branch, "false": node.false_branch}
    if isinstance(node, LoopNode):
        return {"body": node.body}
    return {}


# ── Node-type catalog ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class ParamTemplate:
    id: str
    label: str
    kind: PrimitiveKind = PrimitiveKind.STRING
    required: bool = False
    default: Any = None
    options: tuple[str, ...] = ()
    placeholder: str = ""

    def build(self, value: Any = None) -> Parameter:
        raw = self.default if value is None else value
        if raw is None:
            raw = empty_value(self.kind)
        return describe(
            self.kind,
            raw,
            id=self.id,
            label=self.label,
            required=self.required,
            options=list(self.options),
            placeholder=self.placeholder,
        )


@dataclass(frozen=True)
class NodeTemplate:
    key: str
    label: str
    variant: NodeVariant
    category: str = "General"
    params: tuple[ParamTemplate, ...] = ()


_S, _N, _B, _O, _A = (
    PrimitiveKind.STRING,
    PrimitiveKind.NUMBER,
    PrimitiveKind.BOOLEAN,
    PrimitiveKind.OBJECT,
    PrimitiveKind.ARRAY,
)

NODE_CATALOG: dict[str, NodeTemplate] = {
    t.key: t
    for t in (
        NodeTemplate("manual_trigger", "Manual Trigger", NodeVariant.TRIGGER, "Triggers"),
        NodeTemplate("webhook_trigger", "Webhook", NodeVariant.TRIGGER, "Triggers"),
        NodeTemplate(
            "if_else",
            "If/Else",
            NodeVariant.CONDITIONAL,
            "Logic",
            (
                ParamTemplate("operator", "Operator", _S, True, "equals", tuple(OPERATORS)),
                ParamTemplate("left", "Value", _S, True),
                ParamTemplate("right", "Compare To", _S),
            ),
        ),
        NodeTemplate(
            "for_each",
            "For Each",
            NodeVariant.LOOP,
            "Logic",
            (
                ParamTemplate("iteration_array", "Items", _A, True),
                ParamTemplate("loop_variable", "Item Variable", _S, False, "item"),
                ParamTemplate("max_iterations", "Max Iterations", _N, False, 100),
            ),
        ),
        NodeTemplate(
            "http_request",
            "HTTP Request",
            NodeVariant.ACTION,
            "Integration",
            (
                ParamTemplate("url", "URL", _S, True, placeholder="https://"),
                ParamTemplate("method", "Method", _S, True, "GET", ("GET", "POST", "PUT", "PATCH", "DELETE")),
                ParamTemplate("headers", "Headers", _O),
                ParamTemplate("body", "Body", _O),
                ParamTemplate("timeout", "Timeout (s)", _N, False, 30),
            ),
        ),
        NodeTemplate(
            "send_email",
            "Send Email",
            NodeVariant.ACTION,
            "Integration",
            (
                ParamTemplate("credential", "SMTP Credential", _S, True),
                ParamTemplate("to", "To", _S, True),
                ParamTemplate("subject", "Subject", _S, True),
                ParamTemplate("body", "Body", _S),
                ParamTemplate("html", "HTML", _B, False, False),
            ),
        ),
        NodeTemplate(
            "gpt_completion",
            "GPT-4 Completion",
            NodeVariant.ACTION,
            "AI",
            (
                ParamTemplate("api_key", "API Key", _S, True),
                ParamTemplate("prompt", "Prompt", _S, True),
                ParamTemplate("temperature", "Temperature", _N, False, 0.7),
                ParamTemplate("max_tokens", "Max Tokens", _N, False, 500),
            ),
        ),
        NodeTemplate(
            "json_parse",
            "JSON Parse",
            NodeVariant.ACTION,
            "Data",
            (ParamTemplate("text", "JSON Text", _S, True),),
        ),
        NodeTemplate(
            "text_replace",
            "Text Replace",
            NodeVariant.ACTION,
            "Data",
            (
                ParamTemplate("text", "Text", _S, True),
                ParamTemplate("search", "Search", _S, True),
                ParamTemplate("replacement", "Replace With", _S),
                ParamTemplate("all_occurrences", "Replace All", _B, False, True),
            ),
        ),
        NodeTemplate(
            "array_join",
            "Array Join",
            NodeVariant.ACTION,
            "Data",
            (
                ParamTemplate("items", "Items", _A, True),
                ParamTemplate("separator", "Separator", _S, False, ","),
            ),
        ),
    )
}

_DEFAULT_TYPES = {
    NodeVariant.TRIGGER: "manual_trigger",
    NodeVariant.CONDITIONAL: "if_else",
    NodeVariant.LOOP: "for_each",
}


@dataclass
class NodeSpec:
    """What the user picked in the "add node" dialog."""

    variant: NodeVariant
    node_type: str | None = None
    title: str | None = None
    config: dict[str, Any] = field(default_factory=dict)
    values: dict[str, Any] = field(default_factory=dict)
    variables: list[TriggerVariable] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.variant = NodeVariant(self.variant)

    @classmethod
    def of(cls, node_type: str, **kwargs: Any) -> "NodeSpec":
        """Spec for a catalog entry, e.g. ``NodeSpec.of("http_request")``."""
        template = NODE_CATALOG.get(node_type)
        if template is None:
            raise KeyError(f"Unknown node type: {node_type}")
        return cls(variant=template.variant, node_type=node_type, **kwargs)


def _default_title(spec: NodeSpec, template: NodeTemplate | None) -> str:
    if template:
        return template.label
    if spec.node_type:
        return spec.node_type.replace("_", " ").title()
    return spec.variant.value.title()


def build_node(spec: NodeSpec, node_id: str | None = None) -> Node:
    """Materialize a fresh node with variant-specific defaults."""
    node_type = spec.node_type or _DEFAULT_TYPES.get(spec.variant)
    template = NODE_CATALOG.get(node_type) if node_type else None
    if template and template.variant is not spec.variant:
        raise ValueError(
            f"Node type {node_type!r} is a {template.variant.value}, "
            f"not a {spec.variant.value}"
        )
    node_id = node_id or new_node_id()
    title = spec.title or _default_title(spec, template)
    params = [
        p.build(spec.values.get(p.id)) for p in (template.params if template else ())
    ]

    if spec.variant is NodeVariant.TRIGGER:
        return TriggerNode(
            id=node_id,
            title=title,
            variables=list(spec.variables),
            trigger_type=(node_type or "manual").removesuffix("_trigger"),
            config=dict(spec.config),
        )
    if spec.variant is NodeVariant.CONDITIONAL:
        return ConditionalNode(id=node_id, title=title, parameters=params, config=dict(spec.config))
    if spec.variant is NodeVariant.LOOP:
        return LoopNode(id=node_id, title=title, parameters=params, config=dict(spec.config))
    return ActionNode(
        id=node_id,
        title=title,
        node_type=node_type or "",
        parameters=params,
        config=dict(spec.config),
    )


# ── Serialization ─────────────────────────────────────────────────────────

def node_to_dict(node: Node) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": node.id,
        "type": node.variant.value,
        "title": node.title,
        "config": dict(node.config),
        "sample_output": node.sample_output,
    }
    if isinstance(node, TriggerNode):
        data["trigger_type"] = node.trigger_type
        data["variables"] = [v.to_dict() for v in node.variables]
        return data
    data["parameters"] = [p.to_dict() for p in node.parameters]
    if isinstance(node, ActionNode):
        data["node_type"] = node.node_type
    elif isinstance(node, ConditionalNode):
        data["branches"] = {"true": list(node.true_branch), "false": list(node.false_branch)}
    elif isinstance(node, LoopNode):
        data["body"] = list(node.body)
    return data


def node_from_dict(data: dict[str, Any]) -> Node:
    variant = NodeVariant(data.get("type", "action"))
    common = {
        "id": data["id"],
        "title": data.get("title", ""),
        "config": dict(data.get("config") or {}),
        "sample_output": data.get("sample_output"),
    }
    if variant is NodeVariant.TRIGGER:
        return TriggerNode(
            variables=[TriggerVariable(**v) for v in data.get("variables", [])],
            trigger_type=data.get("trigger_type", "manual"),
            **common,
        )
    params = [Parameter.from_dict(p) for p in data.get("parameters", [])]
    if variant is NodeVariant.CONDITIONAL:
        branches = data.get("branches") or {}
        return ConditionalNode(
            parameters=params,
            true_branch=list(branches.get("true", [])),
            false_branch=list(branches.get("false", [])),
            **common,
        )
    if variant is NodeVariant.LOOP:
        return LoopNode(parameters=params, body=list(data.get("body", [])), **common)
    return ActionNode(parameters=params, node_type=data.get("node_type", ""), **common)
