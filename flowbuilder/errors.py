"""Error taxonomy for the workflow editor."""

from __future__ import annotations

from typing import Any


class FlowBuilderError(Exception):
    """Base class for every error raised by flowbuilder."""


class ParseError(FlowBuilderError, ValueError):
    """A reference path or JSON literal could not be parsed."""


class GraphError(FlowBuilderError):
    """A structural graph operation was rejected.

    ``code`` is one of ``NotFound``, ``NotAdjacent``, ``InvalidTarget``
    or ``Conflict``.
    """

    NOT_FOUND = "NotFound"
    NOT_ADJACENT = "NotAdjacent"
    INVALID_TARGET = "InvalidTarget"
    CONFLICT = "Conflict"

    def __init__(self, code: str, message: str = ""):
        self.code = code
        self.message = message or code
        super().__init__(f"{code}: {self.message}")


class ApiError(FlowBuilderError):
    """The backend rejected a request or could not be reached."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        payload: Any = None,
    ):
        self.message = message
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)


class ValidationError(FlowBuilderError):
    """A required field is missing; raised before any network call."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")
