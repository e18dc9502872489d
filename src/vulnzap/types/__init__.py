"""Shared type aliases for VulnZap."""

from .cache import CacheEntryPayload, SessionPayload
from .common import EventKind, JsonObject, JsonScalar, JsonValue, ListenerState, ScanMode, SessionStatus
from .wire import (
    CommitScanPayload,
    IncrementalFilePayload,
    IncrementalScanPayload,
    IncrementalScanResponse,
    RepositoryScanPayload,
    ScannedFilePayload,
)

__all__ = [
    "CacheEntryPayload",
    "CommitScanPayload",
    "EventKind",
    "IncrementalFilePayload",
    "IncrementalScanPayload",
    "IncrementalScanResponse",
    "JsonObject",
    "JsonScalar",
    "JsonValue",
    "ListenerState",
    "RepositoryScanPayload",
    "ScanMode",
    "ScannedFilePayload",
    "SessionPayload",
    "SessionStatus",
]
