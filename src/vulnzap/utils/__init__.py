"""Small shared helpers."""

from .clock import now_ms
from .naming import sanitize_path_segment

__all__ = ["now_ms", "sanitize_path_segment"]
