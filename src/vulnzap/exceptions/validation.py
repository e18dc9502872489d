"""Caller input validation exceptions."""

from __future__ import annotations

from vulnzap.exceptions.base import VulnzapError


class InputValidationError(VulnzapError, ValueError):
    """Raised when a caller passes a request that can never be valid."""
