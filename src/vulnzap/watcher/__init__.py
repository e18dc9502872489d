"""Directory watching for security-assistant incremental scan sessions."""

from .filters import is_noise_path
from .session import SessionWatcher
from .snapshot import diff_snapshots, take_snapshot

__all__ = ["SessionWatcher", "diff_snapshots", "is_noise_path", "take_snapshot"]
