"""Core data models for VulnZap."""

from .entities import (
    CacheEntry,
    ClientEvent,
    CommitScanRequest,
    JobHandle,
    JobResult,
    ListenerOptions,
    RepositoryScanRequest,
    ScanInitResponse,
    ScannedFile,
    ScanRequest,
    SessionState,
)

__all__ = [
    "CacheEntry",
    "ClientEvent",
    "CommitScanRequest",
    "JobHandle",
    "JobResult",
    "ListenerOptions",
    "RepositoryScanRequest",
    "ScanInitResponse",
    "ScanRequest",
    "ScannedFile",
    "SessionState",
]
