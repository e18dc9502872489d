"""Scan service client: gateway, event streams and the public coordinator."""

from __future__ import annotations

from typing import Any

__all__ = ["BackendGateway", "StreamListener", "VulnzapClient"]


def __getattr__(name: str) -> Any:
    """Lazily expose client classes to avoid import cycles at package import time."""
    if name == "VulnzapClient":
        from .coordinator import VulnzapClient

        return VulnzapClient
    if name == "BackendGateway":
        from .gateway import BackendGateway

        return BackendGateway
    if name == "StreamListener":
        from .stream import StreamListener

        return StreamListener
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
