"""Mapping between backend API payloads and editor models."""

from __future__ import annotations

import logging
from typing import Any

from . import paths
from .graph import GraphStore
from .nodes import (
    ActionNode,
    ConditionalNode,
    LoopNode,
    Node,
    NodeVariant,
    TriggerNode,
    TriggerVariable,
    node_parameters,
    node_to_dict,
)
from .parameters import Parameter, PrimitiveKind, describe, editor_for, to_input_value

logger = logging.getLogger(__name__)

SCHEMA_KINDS = {
    "string": PrimitiveKind.STRING,
    "str": PrimitiveKind.STRING,
    "text": PrimitiveKind.STRING,
    "integer": PrimitiveKind.NUMBER,
    "int": PrimitiveKind.NUMBER,
    "number": PrimitiveKind.NUMBER,
    "float": PrimitiveKind.NUMBER,
    "boolean": PrimitiveKind.BOOLEAN,
    "bool": PrimitiveKind.BOOLEAN,
    "array": PrimitiveKind.ARRAY,
    "list": PrimitiveKind.ARRAY,
    "object": PrimitiveKind.OBJECT,
    "dict": PrimitiveKind.OBJECT,
}

# Front-end widgets that only refine plain string fields
_STRING_EDITORS = {"textarea": "textarea", "credential": "credential"}

_NODE_CONFIG_KEYS = ("script_id", "custom_script_id", "description", "max_retries", "timeout_seconds")


def kind_from_schema(schema_type: Any) -> PrimitiveKind | None:
    if not isinstance(schema_type, str):
        return None
    return SCHEMA_KINDS.get(schema_type.strip().lower())


# ── Form schema ───────────────────────────────────────────────────────────

def parameter_from_field(name: str, spec: dict[str, Any]) -> Parameter:
    front = spec.get("front") or {}
    kind = kind_from_schema(spec.get("type")) or PrimitiveKind.STRING
    raw = spec.get("value")
    if raw is None:
        raw = spec.get("default_value")
    if spec.get("is_reference") and not paths.is_reference(raw):
        ref = spec.get("reference_path")
        if paths.is_reference(ref):
            raw = ref
        else:
            logger.debug("Field %s flagged as reference without a valid path", name)
            raw = None

    options = [str(v) for v in (front.get("values") or [])]
    editor = editor_for(kind, options)
    front_type = str(front.get("type") or "").lower()
    if kind is PrimitiveKind.STRING and front_type in _STRING_EDITORS:
        editor = _STRING_EDITORS[front_type]

    return describe(
        kind,
        raw,
        id=name,
        label=spec.get("label") or name,
        required=bool(spec.get("required", False)),
        editor=editor,
        options=options,
        placeholder=front.get("placeholder") or "",
        description=spec.get("description") or "",
    )


def parameters_from_form_schema(form_schema: dict[str, dict[str, Any]]) -> list[Parameter]:
    """One parameter per form-schema field, ordered by ``front.order``."""

    def order(item: tuple[str, dict[str, Any]]) -> int:
        front = item[1].get("front") or {}
        value = front.get("order")
        return value if isinstance(value, int) else 10_000

    return [parameter_from_field(name, spec) for name, spec in sorted(form_schema.items(), key=order)]


def input_params(parameters: list[Parameter]) -> dict[str, Any]:
    """The single map persisted through the input-params endpoint."""
    return {p.id: to_input_value(p) for p in parameters}


# ── Triggers ──────────────────────────────────────────────────────────────

def trigger_variables_from_mapping(input_mapping: dict[str, Any] | None) -> list[TriggerVariable]:
    variables = []
    for name, entry in (input_mapping or {}).items():
        if isinstance(entry, dict):
            kind = kind_from_schema(entry.get("type"))
            value = entry.get("value")
        else:
            kind, value = None, entry
        param = describe(kind, value, id=name)
        default = param.dynamic_path if param.is_dynamic else param.value
        variables.append(TriggerVariable(name=name, kind=param.kind, default=default))
    return variables


def mapping_from_variables(variables: list[TriggerVariable]) -> dict[str, dict[str, Any]]:
    return {v.name: {"type": v.kind.value, "value": v.default} for v in variables}


def trigger_from_api(trigger: dict[str, Any]) -> TriggerNode:
    return TriggerNode(
        id=str(trigger["id"]),
        title=trigger.get("name") or "Trigger",
        trigger_type=str(trigger.get("trigger_type") or "manual").lower(),
        variables=trigger_variables_from_mapping(trigger.get("input_mapping")),
        config=dict(trigger.get("config") or {}),
    )


# ── Nodes / graph ─────────────────────────────────────────────────────────

def _params_from_input(input_params: dict[str, Any]) -> list[Parameter]:
    params = []
    for key, entry in (input_params or {}).items():
        if isinstance(entry, dict) and "value" in entry:
            params.append(
                describe(
                    kind_from_schema(entry.get("type")),
                    entry.get("value"),
                    id=key,
                    required=bool(entry.get("required", False)),
                )
            )
        else:
            # Legacy untyped value
            params.append(describe(None, entry, id=key))
    return params


def node_from_api(api_node: dict[str, Any]) -> Node:
    """Rebuild an editor node; ``is_dynamic`` comes from the path syntax."""
    node_id = str(api_node["id"])
    title = api_node.get("name") or api_node.get("title") or ""
    config = {k: api_node[k] for k in _NODE_CONFIG_KEYS if api_node.get(k) is not None}
    params = _params_from_input(api_node.get("input_params") or {})
    sample = api_node.get("sample_output") or api_node.get("output_params") or None
    variant = str(api_node.get("node_type") or api_node.get("type") or "action").lower()

    if variant == NodeVariant.CONDITIONAL.value:
        return ConditionalNode(id=node_id, title=title, parameters=params, config=config, sample_output=sample)
    if variant == NodeVariant.LOOP.value:
        return LoopNode(id=node_id, title=title, parameters=params, config=config, sample_output=sample)
    return ActionNode(
        id=node_id,
        title=title,
        node_type=str(api_node.get("script_id") or ""),
        parameters=params,
        config=config,
        sample_output=sample,
    )


def graph_from_api(
    graph: dict[str, Any],
    triggers: list[dict[str, Any]] | None = None,
) -> GraphStore:
    """Build a store from ``{"nodes", "edges"}`` plus the workflow triggers.

    Edges without a ``branch`` continue the current list; ``true``/``false``
    edges out of a conditional and ``body`` edges out of a loop start the
    corresponding child list. Nodes are visited at most once.
    """
    nodes = {str(n["id"]): node_from_api(n) for n in graph.get("nodes", [])}
    outgoing: dict[str, list[tuple[str, str | None]]] = {}
    incoming: set[str] = set()
    for edge in graph.get("edges", []):
        src, dst = str(edge["from_node_id"]), str(edge["to_node_id"])
        if src not in nodes or dst not in nodes:
            logger.warning("Skipping edge %s -> %s with unknown endpoint", src, dst)
            continue
        outgoing.setdefault(src, []).append((dst, edge.get("branch")))
        incoming.add(dst)

    visited: set[str] = set()

    def chain(start: str | None) -> list[str]:
        ids: list[str] = []
        current = start
        while current is not None and current not in visited:
            visited.add(current)
            ids.append(current)
            node = nodes[current]
            following = None
            for dst, branch in outgoing.get(current, []):
                if branch in (None, "", "next"):
                    following = following or dst
                elif isinstance(node, ConditionalNode) and branch in ("true", "false"):
                    node.branch(branch).extend(chain(dst))
                elif isinstance(node, LoopNode) and branch == "body":
                    node.body.extend(chain(dst))
            current = following
        return ids

    root: list[str] = []
    for node_id in nodes:
        if node_id not in incoming and node_id not in visited:
            root.extend(chain(node_id))

    registry: list[Node] = [nodes[i] for i in visited]
    if triggers:
        trigger = trigger_from_api(triggers[0])
        registry.append(trigger)
        root.insert(0, trigger.id)

    return GraphStore.from_dict({"root": root, "nodes": [node_to_dict(n) for n in registry]})


def node_to_api(node: Node, workflow_id: str) -> dict[str, Any]:
    """Create/update payload for the backend node endpoints."""
    params = {
        p.id: {"type": p.kind.value, "value": to_input_value(p), "required": p.required}
        for p in node_parameters(node)
    }
    config = node.config
    return {
        "name": node.title,
        "description": config.get("description", ""),
        "workflow_id": workflow_id,
        "node_type": node.variant.value,
        "script_id": config.get("script_id") or getattr(node, "node_type", None) or None,
        "custom_script_id": config.get("custom_script_id"),
        "input_params": params,
        "output_params": {},
        "max_retries": config.get("max_retries", 3),
        "timeout_seconds": config.get("timeout_seconds", 300),
    }
