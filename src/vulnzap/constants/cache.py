"""Constants for the on-disk scan and session cache."""

from __future__ import annotations

from pathlib import Path

DEFAULT_CACHE_ROOT: Path = Path.home() / ".vulnzap" / "client"

SCANS_DIRNAME: str = "scans"
SESSIONS_DIRNAME: str = "sessions"
COMMIT_SCANS_DIRNAME: str = "commits"
REPOSITORY_SCANS_DIRNAME: str = "full"
CACHE_FILE_SUFFIX: str = ".json"

CACHE_TEMP_PREFIX: str = ".cache-"
CACHE_TEMP_SUFFIX: str = ".tmp"

# Characters replaced in repository names and identifiers before they become path segments.
PATH_SEPARATOR_CHARS: tuple[str, ...] = ("/", "\\")
PATH_SEPARATOR_REPLACEMENT: str = "_"
RESERVED_PATH_SEGMENTS: frozenset[str] = frozenset({"", ".", ".."})
