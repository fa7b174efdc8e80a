"""Active-path channel shared by the browsers and parameter panels."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class ActivePathChannel:
    """Single-slot, last-write-wins broadcast of the most recent leaf click.

    Publishers overwrite the slot; a consumer takes the value out with
    ``consume()``. The channel carries no target information: whichever panel
    has a parameter armed decides what to do with the path.
    """

    def __init__(self) -> None:
        self._path: str | None = None
        self._version = 0

    @property
    def version(self) -> int:
        """Incremented on every publish, so readers can detect new values."""
        return self._version

    def publish(self, path: str) -> None:
        if self._path is not None:
            logger.debug("Active path %s overwritten before consumption", self._path)
        self._path = path
        self._version += 1
        logger.debug("Active path published: %s", path)

    def peek(self) -> str | None:
        return self._path

    def consume(self) -> str | None:
        path, self._path = self._path, None
        return path

    def clear(self) -> None:
        self._path = None
