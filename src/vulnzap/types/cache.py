"""Typed cache payload structures as persisted to disk."""

from __future__ import annotations

from typing import TypedDict

from vulnzap.types.common import JsonValue

# Field names follow the files written by earlier client releases.
CacheEntryPayload = TypedDict(
    "CacheEntryPayload",
    {
        "jobId": str,
        "timestamp": int,
        "status": str,
        "resolved": bool,
        "resolved_timestamp": int,
        "repository": str,
        "branch": str,
        "results": JsonValue,
    },
)


class SessionPayload(TypedDict):
    """Security-assistant session bookkeeping file."""

    sessionId: str
    path: str
    timestamp: int
    files: list[str]
