"""Errors raised while talking to the remote scan service."""

from __future__ import annotations

from vulnzap.exceptions.base import VulnzapError


class RemoteRequestError(VulnzapError, RuntimeError):
    """Raised when the scan service answers with a non-success HTTP status."""

    def __init__(self, status_code: int, status_text: str, message: str | None = None) -> None:
        self.status_code = status_code
        self.status_text = status_text
        super().__init__(message or f"Request failed with status {status_code}: {status_text}")


class ProtocolError(VulnzapError, ValueError):
    """Raised when a success response carries a malformed body."""


class ScanConnectionError(VulnzapError, ConnectionError):
    """Raised when the service cannot be reached or an event stream handshake fails."""
