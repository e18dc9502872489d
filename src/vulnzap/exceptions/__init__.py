"""Shared exception hierarchy for VulnZap."""

from __future__ import annotations

from .base import VulnzapError
from .cache import CacheIOError
from .config import ConfigError
from .parsing import FrameParseError
from .remote import ProtocolError, RemoteRequestError, ScanConnectionError
from .validation import InputValidationError

__all__ = [
    "CacheIOError",
    "ConfigError",
    "FrameParseError",
    "InputValidationError",
    "ProtocolError",
    "RemoteRequestError",
    "ScanConnectionError",
    "VulnzapError",
]
