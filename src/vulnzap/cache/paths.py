"""Cache directory layout."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from vulnzap.constants.cache import (
    CACHE_FILE_SUFFIX,
    COMMIT_SCANS_DIRNAME,
    REPOSITORY_SCANS_DIRNAME,
    SCANS_DIRNAME,
    SESSIONS_DIRNAME,
)
from vulnzap.types import ScanMode
from vulnzap.utils import sanitize_path_segment


@dataclass(frozen=True)
class CachePaths:
    """Resolve cache file locations under a root directory.

    Layout::

        {root}/scans/{repository}/commits/{commitHash}.json
        {root}/scans/{repository}/full/{jobId}.json
        {root}/sessions/{sessionId}.json
    """

    root: Path

    @property
    def scans_dir(self) -> Path:
        return self.root / SCANS_DIRNAME

    @property
    def sessions_dir(self) -> Path:
        return self.root / SESSIONS_DIRNAME

    def repository_dir(self, repository: str) -> Path:
        return self.scans_dir / sanitize_path_segment(repository)

    def mode_dir(self, mode: ScanMode, repository: str) -> Path:
        subdir = COMMIT_SCANS_DIRNAME if mode == "commit" else REPOSITORY_SCANS_DIRNAME
        return self.repository_dir(repository) / subdir

    def entry_path(self, mode: ScanMode, repository: str, identifier: str) -> Path:
        return self.mode_dir(mode, repository) / f"{sanitize_path_segment(identifier)}{CACHE_FILE_SUFFIX}"

    def session_path(self, session_id: str) -> Path:
        return self.sessions_dir / f"{sanitize_path_segment(session_id)}{CACHE_FILE_SUFFIX}"
