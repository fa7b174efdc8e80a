"""Reference-path codec.

A reference path addresses another node's output or a workspace resource::

    ${node:<nodeId>.<json.path[0].into.output>}
    ${credential:<credentialId>}            whole credential
    ${credential:<credentialId>.<field>}
    ${value:<variableId>}
    ${database:<databaseId>.<field>}
    ${file:<fileId>.<field>}

This module is the only place that formats or parses path strings; everything
else treats them as opaque values.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from ..errors import ParseError

NAMESPACES = ("node", "credential", "value", "database", "file")

# Namespaces whose locator must carry a field after the resource id
FIELD_REQUIRED = frozenset({"database", "file"})
# Namespaces whose locator must be a bare id
FIELD_FORBIDDEN = frozenset({"value"})

PATH_RE = re.compile(r"^\$\{(node|credential|value|database|file):([^}]+)\}$")


@dataclass(frozen=True)
class ReferencePath:
    namespace: str
    id: str
    field: str | None = None

    def encode(self) -> str:
        return encode(self.namespace, self.id, self.field)

    def __str__(self) -> str:
        return self.encode()


def _check_fragment(fragment: str, what: str) -> None:
    if "}" in fragment or "${" in fragment:
        raise ParseError(f"{what} may not contain '}}' or '${{': {fragment!r}")


def encode(namespace: str, locator: str, field: str | None = None) -> str:
    """Build the canonical path string for ``namespace``.

    ``locator`` is the resource/node id; ``field`` is the member inside it
    (for ``node`` this is the JSON path into the node's output).
    """
    if namespace not in NAMESPACES:
        raise ParseError(f"Unknown reference namespace: {namespace!r}")
    if not locator:
        raise ParseError("Reference locator must not be empty")
    _check_fragment(locator, "locator")
    # decode splits on the first '.', so ids cannot contain one
    if "." in locator:
        raise ParseError(f"Reference locator may not contain '.': {locator!r}")
    if field is not None:
        _check_fragment(field, "field")
        if field == "":
            field = None

    if namespace in FIELD_REQUIRED and not field:
        raise ParseError(f"{namespace} references require a field")
    if namespace in FIELD_FORBIDDEN and field:
        raise ParseError(f"{namespace} references take no field")

    body = f"{locator}.{field}" if field else locator
    return f"${{{namespace}:{body}}}"


def decode(path: str) -> ReferencePath:
    """Parse ``path`` into its namespace, id and optional field.

    The locator is split on its first ``.`` only; the remainder is kept
    verbatim so nested node-output paths survive intact.
    """
    if not isinstance(path, str):
        raise ParseError(f"Reference path must be a string, got {type(path).__name__}")
    match = PATH_RE.match(path)
    if not match:
        raise ParseError(f"Malformed reference path: {path!r}")
    namespace, locator = match.group(1), match.group(2)
    if "${" in locator:
        raise ParseError(f"Nested reference in path: {path!r}")

    ref_id, sep, field = locator.partition(".")
    if not ref_id:
        raise ParseError(f"Reference path has an empty id: {path!r}")
    if not sep:
        field = None
    elif not field:
        raise ParseError(f"Reference path has an empty field: {path!r}")

    if namespace in FIELD_REQUIRED and field is None:
        raise ParseError(f"{namespace} reference requires a field: {path!r}")
    if namespace in FIELD_FORBIDDEN and field is not None:
        raise ParseError(f"{namespace} reference takes no field: {path!r}")
    return ReferencePath(namespace=namespace, id=ref_id, field=field)


def is_reference(value: Any) -> bool:
    """Return True when ``value`` is a syntactically valid reference path."""
    if not isinstance(value, str):
        return False
    try:
        decode(value)
    except ParseError:
        return False
    return True


def node_path(node_id: str, locator: str = "") -> str:
    """Path into a node's output.

    The id and locator are always joined with ``.``, including locators that
    start with a bracket: ``${node:n1.[0]}``, ``${node:n1.["first name"]}``.
    """
    return encode("node", node_id, locator or None)


# ── JSON-path helpers ─────────────────────────────────────────────────────

_IDENT_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$-]*$")


def join_key(parent: str, key: str) -> str:
    """Append an object key: ``user`` + ``email`` -> ``user.email``.

    Keys that are not plain identifiers use bracket-quoted notation.
    """
    key = str(key)
    if _IDENT_RE.match(key):
        return f"{parent}.{key}" if parent else key
    escaped = key.replace("\\", "\\\\").replace('"', '\\"')
    return f'{parent}["{escaped}"]'


def join_index(parent: str, index: int) -> str:
    """Append an array index: ``addresses`` + 0 -> ``addresses[0]``."""
    return f"{parent}[{index}]"
