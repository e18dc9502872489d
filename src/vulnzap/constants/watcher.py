"""Security-assistant session watcher limits and noise filters."""

from __future__ import annotations

MIN_SESSION_TIMEOUT_MS: int = 10_000
MAX_SESSION_TIMEOUT_MS: int = 600_000
DEFAULT_POLL_INTERVAL_SECONDS: float = 1.0

NOISE_DIRECTORY_NAMES: frozenset[str] = frozenset({".git", ".hg", ".svn", "node_modules"})
# Matched anywhere in the relative path, so `node_modules_cache/` and `.gitignore` count too.
NOISE_PATH_MARKERS: tuple[str, ...] = (".git", ".hg", ".svn", "node_modules", ".DS_Store")
NOISE_FILE_SUFFIXES: tuple[str, ...] = (".md", ".lock")

SESSION_CLOSED_MESSAGE: str = "Security assistant session closed due to inactivity."
