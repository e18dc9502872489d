"""Dataclasses describing scan requests, jobs, cache entries and events."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, TypeAlias

from vulnzap.exceptions import InputValidationError
from vulnzap.types import (
    CacheEntryPayload,
    CommitScanPayload,
    EventKind,
    JsonObject,
    JsonValue,
    RepositoryScanPayload,
    ScanMode,
    ScannedFilePayload,
    SessionPayload,
)


@dataclass(frozen=True)
class ScannedFile:
    """A file submitted with a commit scan."""

    name: str
    content: str

    def to_payload(self) -> ScannedFilePayload:
        return {"name": self.name, "content": self.content}


@dataclass(frozen=True)
class CommitScanRequest:
    """Request to scan the files touched by a single commit."""

    commit_hash: str
    repository: str
    files: tuple[ScannedFile, ...] = ()
    branch: str | None = None
    user_identifier: str | None = None

    mode: Literal["commit"] = field(default="commit", init=False)

    def __post_init__(self) -> None:
        if not self.commit_hash or not self.commit_hash.strip():
            raise InputValidationError("commit_hash is required for commit scans")
        if not self.repository or not self.repository.strip():
            raise InputValidationError("repository is required for commit scans")

    def to_payload(self) -> CommitScanPayload:
        """Serialize to the JSON body expected by the commit scan endpoint."""
        payload: CommitScanPayload = {
            "commitHash": self.commit_hash,
            "repository": self.repository,
            "files": [scanned.to_payload() for scanned in self.files],
        }
        if self.branch:
            payload["branch"] = self.branch
        if self.user_identifier:
            payload["userIdentifier"] = self.user_identifier
        return payload


@dataclass(frozen=True)
class RepositoryScanRequest:
    """Request to scan a full repository snapshot."""

    repository: str
    branch: str | None = None
    user_identifier: str | None = None

    mode: Literal["repo"] = field(default="repo", init=False)

    def __post_init__(self) -> None:
        if not self.repository or not self.repository.strip():
            raise InputValidationError("repository is required for repository scans")

    def to_payload(self) -> RepositoryScanPayload:
        payload: RepositoryScanPayload = {"repository": self.repository}
        if self.branch:
            payload["branch"] = self.branch
        if self.user_identifier:
            payload["userIdentifier"] = self.user_identifier
        return payload


ScanRequest: TypeAlias = CommitScanRequest | RepositoryScanRequest


@dataclass(frozen=True)
class JobHandle:
    """Identity and initial status of a job accepted by the service."""

    job_id: str
    status: str


@dataclass(frozen=True)
class ScanInitResponse:
    """Public result of starting a scan."""

    data: JobHandle
    success: bool = True

    def to_dict(self) -> JsonObject:
        return {
            "success": self.success,
            "data": {"jobId": self.data.job_id, "status": self.data.status},
        }


@dataclass(frozen=True)
class CacheEntry:
    """Locally persisted state of one scan job."""

    job_id: str
    timestamp: int
    status: str
    resolved: bool = False
    resolved_timestamp: int = 0
    repository: str = ""
    branch: str = ""
    results: JsonValue = None

    def to_payload(self) -> CacheEntryPayload:
        return {
            "jobId": self.job_id,
            "timestamp": self.timestamp,
            "status": self.status,
            "resolved": self.resolved,
            "resolved_timestamp": self.resolved_timestamp,
            "repository": self.repository,
            "branch": self.branch,
            "results": self.results,
        }


@dataclass(frozen=True)
class SessionState:
    """Files seen so far by one security-assistant session."""

    session_id: str
    watched_path: str
    created_at: int
    tracked_files: tuple[str, ...] = ()

    def is_tracked(self, path: str) -> bool:
        return path in self.tracked_files

    def with_file(self, path: str) -> SessionState:
        """Return a copy that also tracks ``path``."""
        if path in self.tracked_files:
            return self
        return SessionState(
            session_id=self.session_id,
            watched_path=self.watched_path,
            created_at=self.created_at,
            tracked_files=(*self.tracked_files, path),
        )

    def to_payload(self) -> SessionPayload:
        return {
            "sessionId": self.session_id,
            "path": self.watched_path,
            "timestamp": self.created_at,
            "files": list(self.tracked_files),
        }


@dataclass(frozen=True)
class JobResult:
    """Authoritative job snapshot fetched from the service."""

    job_id: str
    status: str
    commit_hash: str = ""
    project_id: str = ""
    progress: JsonValue = None
    results: JsonValue = None
    metadata: JsonObject = field(default_factory=dict)
    started_at: JsonValue = None
    completed_at: JsonValue = None
    raw: JsonObject = field(default_factory=dict)


@dataclass(frozen=True)
class ListenerOptions:
    """What a stream listener needs to follow one job."""

    job_id: str
    mode: ScanMode
    commit_hash: str = ""
    repository: str = ""
    branch: str = ""

    @property
    def cache_identifier(self) -> str:
        """Cache key identifier: commit hash for commit scans, job id otherwise."""
        return self.commit_hash if self.mode == "commit" else self.job_id


@dataclass(frozen=True)
class ClientEvent:
    """One event delivered on the public event surface."""

    kind: EventKind
    payload: JsonObject
