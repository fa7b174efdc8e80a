"""Parameter model - typed node fields bound to a literal or a reference path."""

from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from . import paths


class PrimitiveKind(str, Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


_PY_TYPES: dict[PrimitiveKind, tuple[type, ...]] = {
    PrimitiveKind.STRING: (str,),
    PrimitiveKind.NUMBER: (int, float),
    PrimitiveKind.BOOLEAN: (bool,),
    PrimitiveKind.OBJECT: (dict,),
    PrimitiveKind.ARRAY: (list,),
}

# Same prefix rule as a browser's parseFloat: "12abc" -> 12, "abc" -> fail
_NUMBER_PREFIX_RE = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_NUMBER_LITERAL_RE = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\s*$")
_TRUE_WORDS = {"true", "1", "yes", "on"}


def empty_value(kind: PrimitiveKind | str) -> Any:
    """The kind's empty default: "", 0, False, {} or []."""
    kind = PrimitiveKind(kind)
    if kind is PrimitiveKind.NUMBER:
        return 0
    if kind is PrimitiveKind.BOOLEAN:
        return False
    if kind is PrimitiveKind.OBJECT:
        return {}
    if kind is PrimitiveKind.ARRAY:
        return []
    return ""


def matches_kind(kind: PrimitiveKind, value: Any) -> bool:
    if kind is PrimitiveKind.NUMBER and isinstance(value, bool):
        return False
    return isinstance(value, _PY_TYPES[kind])


@dataclass
class Parameter:
    """A single editable field of a node.

    When ``is_dynamic`` is set, ``dynamic_path`` is authoritative and ``value``
    holds the kind's empty default. Otherwise ``dynamic_path`` is None and
    ``value`` has the Python type matching ``kind``.
    """

    id: str
    label: str
    kind: PrimitiveKind = PrimitiveKind.STRING
    value: Any = ""
    is_dynamic: bool = False
    dynamic_path: str | None = None
    required: bool = False
    editor: str | None = None
    options: list[str] = field(default_factory=list)
    placeholder: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        self.kind = PrimitiveKind(self.kind)
        if self.is_dynamic:
            if not self.dynamic_path:
                raise ValueError(f"Dynamic parameter {self.id!r} has no path")
            paths.decode(self.dynamic_path)
        elif self.dynamic_path is not None:
            raise ValueError(f"Static parameter {self.id!r} carries a dynamic path")
        elif not matches_kind(self.kind, self.value):
            raise ValueError(
                f"Parameter {self.id!r} of kind {self.kind.value} "
                f"cannot hold {type(self.value).__name__}"
            )
        if self.editor is None:
            self.editor = editor_for(self.kind, self.options)

    @property
    def is_empty(self) -> bool:
        if self.is_dynamic:
            return not (self.dynamic_path or "").strip()
        if self.kind is PrimitiveKind.STRING:
            return not self.value.strip()
        if self.kind in (PrimitiveKind.OBJECT, PrimitiveKind.ARRAY):
            return not self.value
        return False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "kind": self.kind.value,
            "value": self.value,
            "is_dynamic": self.is_dynamic,
            "dynamic_path": self.dynamic_path,
            "required": self.required,
            "editor": self.editor,
            "options": list(self.options),
            "placeholder": self.placeholder,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Parameter":
        return cls(**data)


def editor_for(kind: PrimitiveKind, options: list[str] | None = None) -> str:
    """Which editor widget renders a parameter of ``kind``."""
    if kind is PrimitiveKind.BOOLEAN:
        return "toggle"
    if kind in (PrimitiveKind.OBJECT, PrimitiveKind.ARRAY):
        return "json"
    if options:
        return "select"
    if kind is PrimitiveKind.NUMBER:
        return "number"
    return "input"


# ── Input parsing / display ───────────────────────────────────────────────

def _parse_number(raw: str) -> int | float:
    match = _NUMBER_PREFIX_RE.match(raw)
    if not match:
        return 0
    number = float(match.group(0))
    if math.isnan(number) or math.isinf(number):
        return 0
    if number.is_integer() and "." not in match.group(0) and "e" not in match.group(0).lower():
        return int(number)
    return number


def _parse_json(raw: str, container: type) -> Any:
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        return container()
    return parsed if isinstance(parsed, container) else container()


def parse_from_input(kind: PrimitiveKind | str, raw: Any) -> Any:
    """Turn editor text into the kind's native value.

    Never fails: unparsable numbers become 0 and malformed JSON becomes the
    empty container.
    """
    kind = PrimitiveKind(kind)
    if matches_kind(kind, raw) and not isinstance(raw, str):
        return raw
    text = "" if raw is None else str(raw)

    if kind is PrimitiveKind.NUMBER:
        return _parse_number(text)
    if kind is PrimitiveKind.BOOLEAN:
        return text.strip().lower() in _TRUE_WORDS
    if kind is PrimitiveKind.OBJECT:
        return _parse_json(text, dict)
    if kind is PrimitiveKind.ARRAY:
        return _parse_json(text, list)
    return text


def serialize_for_display(parameter: Parameter) -> str:
    """Render a parameter's value as editor text. Never raises."""
    if parameter.is_dynamic:
        return parameter.dynamic_path or ""
    kind, value = parameter.kind, parameter.value
    if kind in (PrimitiveKind.OBJECT, PrimitiveKind.ARRAY):
        try:
            return json.dumps(value, indent=2, ensure_ascii=False)
        except (TypeError, ValueError):
            return "{}" if kind is PrimitiveKind.OBJECT else "[]"
    if kind is PrimitiveKind.BOOLEAN:
        return "true" if value else "false"
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


# ── Construction / mode switching ─────────────────────────────────────────

def infer_kind(raw: Any) -> PrimitiveKind:
    """Best-effort kind for legacy, untyped values.

    Probes boolean literal, numeric literal, JSON array, JSON object, then
    falls back to string.
    """
    if isinstance(raw, bool):
        return PrimitiveKind.BOOLEAN
    if isinstance(raw, (int, float)):
        return PrimitiveKind.NUMBER
    if isinstance(raw, list):
        return PrimitiveKind.ARRAY
    if isinstance(raw, dict):
        return PrimitiveKind.OBJECT
    if not isinstance(raw, str):
        return PrimitiveKind.STRING

    text = raw.strip()
    if text.lower() in ("true", "false"):
        return PrimitiveKind.BOOLEAN
    if _NUMBER_LITERAL_RE.match(text):
        return PrimitiveKind.NUMBER
    for prefix, container, kind in (
        ("[", list, PrimitiveKind.ARRAY),
        ("{", dict, PrimitiveKind.OBJECT),
    ):
        if text.startswith(prefix):
            try:
                if isinstance(json.loads(text), container):
                    return kind
            except ValueError:
                pass
    return PrimitiveKind.STRING


def coerce_value(kind: PrimitiveKind, raw: Any) -> Any:
    """Fit ``raw`` into ``kind``, leniently."""
    if raw is None:
        return empty_value(kind)
    if matches_kind(kind, raw):
        return raw
    if kind is PrimitiveKind.STRING:
        if isinstance(raw, (dict, list)):
            return json.dumps(raw, ensure_ascii=False)
        if isinstance(raw, bool):
            return "true" if raw else "false"
        return str(raw)
    if kind is PrimitiveKind.NUMBER and isinstance(raw, bool):
        return int(raw)
    if kind is PrimitiveKind.BOOLEAN and isinstance(raw, (int, float)):
        return bool(raw)
    if isinstance(raw, str):
        return parse_from_input(kind, raw)
    return empty_value(kind)


def describe(
    kind: PrimitiveKind | str | None,
    raw_value: Any,
    *,
    id: str = "",
    label: str = "",
    **extra: Any,
) -> Parameter:
    """Normalize a raw API/input value into a Parameter.

    ``kind=None`` is the legacy import path and infers the kind from the
    value's shape. A raw value that is itself a reference path yields a
    dynamic parameter.
    """
    if paths.is_reference(raw_value):
        resolved = PrimitiveKind(kind) if kind else PrimitiveKind.STRING
        return Parameter(
            id=id,
            label=label or id,
            kind=resolved,
            value=empty_value(resolved),
            is_dynamic=True,
            dynamic_path=raw_value,
            **extra,
        )
    resolved = PrimitiveKind(kind) if kind else infer_kind(raw_value)
    return Parameter(
        id=id,
        label=label or id,
        kind=resolved,
        value=coerce_value(resolved, raw_value),
        **extra,
    )


def toggle_dynamic(parameter: Parameter, path: str | None) -> Parameter:
    """Bind ``parameter`` to ``path`` or, with None, revert it to static.

    Raises ParseError when ``path`` is not a valid reference path.
    """
    empty = empty_value(parameter.kind)
    if path is None:
        return replace(parameter, is_dynamic=False, dynamic_path=None, value=empty)
    paths.decode(path)
    return replace(parameter, is_dynamic=True, dynamic_path=path, value=empty)


def with_literal(parameter: Parameter, raw: Any) -> Parameter:
    """Return a static copy of ``parameter`` holding the parsed ``raw`` text."""
    value = parse_from_input(parameter.kind, raw)
    return replace(parameter, is_dynamic=False, dynamic_path=None, value=value)


def to_input_value(parameter: Parameter) -> Any:
    """The value persisted for this parameter: its path or its literal."""
    if parameter.is_dynamic:
        return parameter.dynamic_path
    return parameter.value
