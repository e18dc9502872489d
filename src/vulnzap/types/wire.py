"""Request and response bodies exchanged with the scan service."""

from __future__ import annotations

from typing import NotRequired, TypedDict

from vulnzap.types.common import JsonValue


class ScannedFilePayload(TypedDict):
    """A single file included in a commit scan."""

    name: str
    content: str


class CommitScanPayload(TypedDict):
    """Body of ``POST /api/scan/commit``."""

    commitHash: str
    repository: str
    branch: NotRequired[str]
    files: list[ScannedFilePayload]
    userIdentifier: NotRequired[str]


class RepositoryScanPayload(TypedDict):
    """Body of ``POST /api/scan/github``."""

    repository: str
    branch: NotRequired[str]
    userIdentifier: NotRequired[str]


class IncrementalFilePayload(TypedDict):
    """A changed file forwarded by the security assistant."""

    path: str
    content: str
    changed: bool


class IncrementalScanPayload(TypedDict):
    """Body of ``POST /api/scan/incremental``."""

    sessionId: str
    files: list[IncrementalFilePayload]


class IncrementalScanResponse(TypedDict):
    """Envelope returned by the incremental session endpoints."""

    success: bool
    data: NotRequired[JsonValue]
    error: NotRequired[str]

