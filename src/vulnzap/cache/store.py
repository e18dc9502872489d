"""Cache loading and persistence for scan jobs and sessions."""

from __future__ import annotations

import logging
from pathlib import Path

from vulnzap.cache.paths import CachePaths
from vulnzap.constants.cache import (
    CACHE_FILE_SUFFIX,
    CACHE_TEMP_PREFIX,
    CACHE_TEMP_SUFFIX,
    COMMIT_SCANS_DIRNAME,
    DEFAULT_CACHE_ROOT,
    REPOSITORY_SCANS_DIRNAME,
)
from vulnzap.exceptions import CacheIOError
from vulnzap.io import load_json_file, write_json_atomic
from vulnzap.model import CacheEntry, SessionState
from vulnzap.types import ScanMode

logger = logging.getLogger(__name__)


class ScanCache:
    """One JSON file per (mode, repository, identifier) key.

    Writes replace whole files atomically, so jobs with different keys never
    interfere. Two writers on the same key resolve last-write-wins.
    """

    def __init__(self, root: Path | None = None) -> None:
        self.paths = CachePaths((root or DEFAULT_CACHE_ROOT).expanduser())

    @property
    def root(self) -> Path:
        return self.paths.root

    def save(self, mode: ScanMode, repository: str, identifier: str, entry: CacheEntry) -> None:
        """Create or replace the entry stored under the key."""
        path = self.paths.entry_path(mode, repository, identifier)
        self._write(path, entry.to_payload())

    def get(self, mode: ScanMode, repository: str, identifier: str) -> CacheEntry | None:
        """Return the stored entry, or ``None`` when absent or unreadable."""
        return _read_entry(self.paths.entry_path(mode, repository, identifier))

    def clear(self, mode: ScanMode, repository: str, identifier: str) -> None:
        """Delete the entry; a missing file is not an error."""
        path = self.paths.entry_path(mode, repository, identifier)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.warning("Failed to clear cache entry %s: %s", path, exc)

    def latest_commit_scan(self, repository: str) -> CacheEntry | None:
        """Return the most recently written commit scan for ``repository``."""
        commits_dir = self.paths.mode_dir("commit", repository)
        try:
            if not commits_dir.is_dir():
                return None
            candidates = [
                (path.stat().st_mtime_ns, path) for path in commits_dir.glob(f"*{CACHE_FILE_SUFFIX}") if path.is_file()
            ]
        except OSError as exc:
            logger.warning("Failed to list commit scans in %s: %s", commits_dir, exc)
            return None

        if not candidates:
            return None

        _, newest = max(candidates, key=lambda item: (item[0], item[1].name))
        entry = _read_entry(newest)
        if entry is None:
            logger.warning("Latest commit scan %s is unreadable", newest)
        return entry

    def find_by_job_id(self, job_id: str) -> CacheEntry | None:
        """Search every repository and mode for the entry recorded for ``job_id``."""
        scans_dir = self.paths.scans_dir
        if not scans_dir.is_dir():
            return None

        try:
            for mode_dirname in (COMMIT_SCANS_DIRNAME, REPOSITORY_SCANS_DIRNAME):
                for path in sorted(scans_dir.glob(f"*/{mode_dirname}/*{CACHE_FILE_SUFFIX}")):
                    entry = _read_entry(path)
                    if entry is not None and entry.job_id == job_id:
                        return entry
        except OSError as exc:
            logger.warning("Failed to search cache for job %s: %s", job_id, exc)
        return None

    def get_session(self, session_id: str) -> SessionState | None:
        path = self.paths.session_path(session_id)
        if not path.is_file():
            return None
        try:
            raw = load_json_file(path)
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable session file %s: %s", path, exc)
            return None
        return _normalize_session(raw, fallback_session_id=session_id)

    def save_session(self, session_id: str, state: SessionState) -> None:
        self._write(self.paths.session_path(session_id), state.to_payload())

    def _write(self, path: Path, payload: object) -> None:
        try:
            write_json_atomic(
                path=path,
                payload=payload,
                temp_prefix=CACHE_TEMP_PREFIX,
                temp_suffix=CACHE_TEMP_SUFFIX,
            )
        except OSError as exc:
            raise CacheIOError(f"Failed to write cache file {path}: {exc}") from exc


def _read_entry(path: Path) -> CacheEntry | None:
    if not path.is_file():
        return None
    try:
        raw = load_json_file(path)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable cache file %s: %s", path, exc)
        return None

    entry = _normalize_entry(raw)
    if entry is None:
        logger.debug("Cache file %s does not hold a scan entry", path)
    return entry


def _normalize_entry(raw: object) -> CacheEntry | None:
    if not isinstance(raw, dict):
        return None

    job_id = raw.get("jobId")
    if not isinstance(job_id, str) or not job_id:
        return None

    timestamp = raw.get("timestamp")
    status = raw.get("status")
    resolved = raw.get("resolved")
    resolved_timestamp = raw.get("resolved_timestamp")
    repository = raw.get("repository")
    branch = raw.get("branch")

    return CacheEntry(
        job_id=job_id,
        timestamp=timestamp if _is_int(timestamp) else 0,
        status=status if isinstance(status, str) else "",
        resolved=resolved if isinstance(resolved, bool) else False,
        resolved_timestamp=resolved_timestamp if _is_int(resolved_timestamp) else 0,
        repository=repository if isinstance(repository, str) else "",
        branch=branch if isinstance(branch, str) else "",
        results=raw.get("results"),
    )


def _normalize_session(raw: object, *, fallback_session_id: str) -> SessionState | None:
    if not isinstance(raw, dict):
        return None

    session_id = raw.get("sessionId")
    watched_path = raw.get("path")
    timestamp = raw.get("timestamp")
    files = raw.get("files")

    if not isinstance(session_id, str) or not session_id:
        session_id = fallback_session_id
    if not isinstance(files, list):
        files = []

    tracked: list[str] = []
    for name in files:
        if isinstance(name, str) and name not in tracked:
            tracked.append(name)

    return SessionState(
        session_id=session_id,
        watched_path=watched_path if isinstance(watched_path, str) else "",
        created_at=timestamp if _is_int(timestamp) else 0,
        tracked_files=tuple(tracked),
    )


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
