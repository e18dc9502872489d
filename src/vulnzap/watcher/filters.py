"""Paths that never count as activity in a watched directory."""

from __future__ import annotations

from vulnzap.constants.watcher import NOISE_FILE_SUFFIXES, NOISE_PATH_MARKERS


def is_noise_path(relative_path: str) -> bool:
    """Return True for VCS, dependency, markdown, OS metadata and lock files."""
    normalized = relative_path.replace("\\", "/").strip("/")
    if not normalized:
        return True
    if any(marker in normalized for marker in NOISE_PATH_MARKERS):
        return True
    return normalized.lower().endswith(NOISE_FILE_SUFFIXES)
