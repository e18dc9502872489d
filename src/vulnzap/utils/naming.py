"""String normalization helpers for cache path segments."""

from __future__ import annotations

from vulnzap.constants.cache import (
    PATH_SEPARATOR_CHARS,
    PATH_SEPARATOR_REPLACEMENT,
    RESERVED_PATH_SEGMENTS,
)


def sanitize_path_segment(raw: str) -> str:
    """Turn a repository name or identifier into a single safe path segment.

    Every separator is replaced, not just the first, so ``org/group/repo``
    becomes ``org_group_repo``. Segments that would resolve to the parent or
    current directory collapse to the replacement character.
    """
    sanitized = raw
    for separator in PATH_SEPARATOR_CHARS:
        sanitized = sanitized.replace(separator, PATH_SEPARATOR_REPLACEMENT)
    if sanitized in RESERVED_PATH_SEGMENTS:
        return PATH_SEPARATOR_REPLACEMENT
    return sanitized
