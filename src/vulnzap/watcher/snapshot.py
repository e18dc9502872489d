"""Poll-based change detection for a directory tree.

A snapshot maps each regular file, relative to the watched root, to its
``(mtime_ns, size)`` stat signature. Comparing two snapshots yields the files
that appeared or changed in between.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import TypeAlias

from vulnzap.constants.watcher import NOISE_DIRECTORY_NAMES

FileSignature: TypeAlias = tuple[int, int]
Snapshot: TypeAlias = dict[str, FileSignature]


def take_snapshot(root: Path) -> Snapshot:
    """Stat every regular file below ``root``; unreadable entries are skipped."""
    snapshot: Snapshot = {}
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in NOISE_DIRECTORY_NAMES)
        directory = Path(dirpath)
        for filename in filenames:
            path = directory / filename
            try:
                st = path.stat(follow_symlinks=False)
            except OSError:
                continue
            if not stat.S_ISREG(st.st_mode):
                continue
            snapshot[path.relative_to(root).as_posix()] = (st.st_mtime_ns, st.st_size)
    return snapshot


def diff_snapshots(previous: Snapshot, current: Snapshot) -> list[str]:
    """Return paths that are new in ``current`` or whose signature changed."""
    return sorted(path for path, signature in current.items() if previous.get(path) != signature)
