"""Stream parsing exceptions."""

from __future__ import annotations

from vulnzap.exceptions.base import VulnzapError


class FrameParseError(VulnzapError, ValueError):
    """Raised when an event-stream data frame is not a JSON object."""

    def __init__(self, message: str, *, line: str) -> None:
        self.line = line
        super().__init__(message)
