"""Pre-flight checks for a workflow before it is saved or run."""

from __future__ import annotations

from dataclasses import dataclass, field

from ..errors import ParseError
from . import paths
from .graph import GraphStore
from .nodes import ConditionalNode, LoopNode, Node, TriggerNode, node_parameters
from .parameters import Parameter


@dataclass
class ValidationIssue:
    node_id: str
    node_name: str
    level: str
    message: str
    field: str | None = None

    def to_dict(self) -> dict:
        return {
            "node_id": self.node_id,
            "node_name": self.node_name,
            "level": self.level,
            "message": self.message,
            "field": self.field,
        }


@dataclass
class ValidationResult:
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error(self, node: Node, message: str, field: str | None = None) -> None:
        self.errors.append(ValidationIssue(node.id, node.title, "error", message, field))

    def warn(self, node: Node, message: str, field: str | None = None) -> None:
        self.warnings.append(ValidationIssue(node.id, node.title, "warning", message, field))

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "summary": validation_summary(self),
        }


def _find(params: list[Parameter], param_id: str) -> Parameter | None:
    return next((p for p in params if p.id == param_id), None)


def _check_references(store: GraphStore, node: Node, params: list[Parameter], result: ValidationResult) -> None:
    preceding = {n.id for n in store.predecessors(node.id)}
    for param in params:
        if not param.is_dynamic:
            continue
        try:
            ref = paths.decode(param.dynamic_path or "")
        except ParseError:
            result.error(node, f'Parameter "{param.label}" has a malformed path', param.id)
            continue
        if ref.namespace != "node":
            continue
        if ref.id not in store:
            result.error(node, f'Parameter "{param.label}" references non-existent node: {ref.id}', param.id)
        elif ref.id not in preceding:
            result.error(node, f'Parameter "{param.label}" references a node that does not come before this node', param.id)


def validate_workflow(store: GraphStore) -> ValidationResult:
    """Collect errors (blocking) and warnings (advisory) for every node."""
    result = ValidationResult()
    if not store.root:
        result.errors.append(
            ValidationIssue("workflow", "Workflow", "error", "Workflow must have at least one node")
        )
        return result

    first = store.nodes[0]
    if not isinstance(first, TriggerNode):
        result.error(first, "Workflow must start with a trigger node")

    for node in store.walk():
        params = node_parameters(node)
        reported: set[str] = set()

        if isinstance(node, ConditionalNode):
            operator = _find(params, "operator")
            if operator is None or operator.is_empty:
                result.error(node, "Conditional node must have an operator configured", "operator")
                reported.add("operator")
            if not node.true_branch and not node.false_branch:
                result.warn(node, "Conditional node has no branches")

        if isinstance(node, LoopNode):
            items = _find(params, "iteration_array")
            if items is None or items.is_empty:
                result.error(node, "Loop node must have an iteration array configured", "iteration_array")
                reported.add("iteration_array")

        for param in params:
            if param.required and param.is_empty and param.id not in reported:
                result.error(node, f'Required parameter "{param.label}" is not configured', param.id)

        _check_references(store, node, params, result)

        # Reported only when one or two optional fields are blank
        empty_optional = [p for p in params if not p.required and p.is_empty]
        if 0 < len(empty_optional) < 3:
            for param in empty_optional:
                result.warn(node, f'Optional parameter "{param.label}" is not configured', param.id)

    return result


def validation_summary(result: ValidationResult) -> str:
    if result.is_valid and not result.warnings:
        return "Workflow validation passed with no issues"
    parts = []
    if result.errors:
        n = len(result.errors)
        parts.append(f"{n} error{'s' if n > 1 else ''}")
    if result.warnings:
        n = len(result.warnings)
        parts.append(f"{n} warning{'s' if n > 1 else ''}")
    return f"Validation found {' and '.join(parts)}"
