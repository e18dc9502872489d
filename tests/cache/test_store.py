"""Tests for scan cache read/write behavior."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from vulnzap.cache import CachePaths, ScanCache
from vulnzap.exceptions import CacheIOError
from vulnzap.model import CacheEntry, SessionState


def _entry(job_id: str = "j1", **overrides: object) -> CacheEntry:
    fields: dict[str, object] = {
        "job_id": job_id,
        "timestamp": 1_700_000_000_000,
        "status": "queued",
        "repository": "o/r",
        "branch": "main",
        "results": {},
    }
    fields.update(overrides)
    return CacheEntry(**fields)  # type: ignore[arg-type]


def test_save_then_get_returns_entry(cache: ScanCache) -> None:
    entry = _entry()

    cache.save("commit", "o/r", "abc123", entry)

    assert cache.get("commit", "o/r", "abc123") == entry


def test_commit_entry_layout(cache: ScanCache, cache_root: Path) -> None:
    cache.save("commit", "o/r", "abc123", _entry())

    assert (cache_root / "scans" / "o_r" / "commits" / "abc123.json").is_file()


def test_repository_entry_layout(cache: ScanCache, cache_root: Path) -> None:
    cache.save("repo", "o/r", "j9", _entry("j9", results=None))

    assert (cache_root / "scans" / "o_r" / "full" / "j9.json").is_file()


def test_get_missing_entry_returns_none(cache: ScanCache) -> None:
    assert cache.get("commit", "o/r", "nope") is None


def test_saving_same_entry_twice_is_byte_identical(cache: ScanCache, cache_root: Path) -> None:
    path = cache_root / "scans" / "o_r" / "commits" / "abc123.json"

    cache.save("commit", "o/r", "abc123", _entry())
    first = path.read_bytes()
    cache.save("commit", "o/r", "abc123", _entry())

    assert path.read_bytes() == first


def test_save_replaces_previous_entry(cache: ScanCache) -> None:
    cache.save("commit", "o/r", "abc123", _entry())
    updated = _entry(status="completed", resolved=True, resolved_timestamp=1_700_000_000_500)

    cache.save("commit", "o/r", "abc123", updated)

    assert cache.get("commit", "o/r", "abc123") == updated


def test_save_leaves_no_temp_files(cache: ScanCache, cache_root: Path) -> None:
    cache.save("commit", "o/r", "abc123", _entry())

    commits_dir = cache_root / "scans" / "o_r" / "commits"
    assert sorted(path.name for path in commits_dir.iterdir()) == ["abc123.json"]


def test_clear_removes_entry_and_tolerates_missing(cache: ScanCache) -> None:
    cache.save("commit", "o/r", "abc123", _entry())

    cache.clear("commit", "o/r", "abc123")
    cache.clear("commit", "o/r", "abc123")

    assert cache.get("commit", "o/r", "abc123") is None


def test_unreadable_entry_is_treated_as_absent(cache: ScanCache, cache_root: Path) -> None:
    path = cache_root / "scans" / "o_r" / "commits" / "abc123.json"
    path.parent.mkdir(parents=True)
    path.write_text("{not json", encoding="utf-8")

    assert cache.get("commit", "o/r", "abc123") is None


def test_entry_without_job_id_is_treated_as_absent(cache: ScanCache, cache_root: Path) -> None:
    path = cache_root / "scans" / "o_r" / "commits" / "abc123.json"
    path.parent.mkdir(parents=True)
    path.write_text('{"status": "queued"}', encoding="utf-8")

    assert cache.get("commit", "o/r", "abc123") is None


def test_latest_commit_scan_picks_newest_file(cache: ScanCache, cache_root: Path) -> None:
    cache.save("commit", "o/r", "old", _entry("j-old"))
    cache.save("commit", "o/r", "new", _entry("j-new"))
    commits_dir = cache_root / "scans" / "o_r" / "commits"
    os.utime(commits_dir / "old.json", ns=(1_000_000_000, 1_000_000_000))
    os.utime(commits_dir / "new.json", ns=(2_000_000_000, 2_000_000_000))

    latest = cache.latest_commit_scan("o/r")

    assert latest is not None
    assert latest.job_id == "j-new"


def test_latest_commit_scan_ignores_repository_scans(cache: ScanCache) -> None:
    cache.save("repo", "o/r", "j-full", _entry("j-full"))

    assert cache.latest_commit_scan("o/r") is None


def test_latest_commit_scan_for_unknown_repository(cache: ScanCache) -> None:
    assert cache.latest_commit_scan("nobody/none") is None


def test_find_by_job_id_searches_all_repositories(cache: ScanCache) -> None:
    cache.save("commit", "a/one", "c1", _entry("j1", repository="a/one"))
    cache.save("repo", "b/two", "j2", _entry("j2", repository="b/two"))

    found = cache.find_by_job_id("j2")

    assert found is not None
    assert found.repository == "b/two"
    assert cache.find_by_job_id("missing") is None


def test_session_roundtrip(cache: ScanCache, cache_root: Path) -> None:
    state = SessionState(session_id="s1", watched_path="/work", created_at=5, tracked_files=("a.py",))

    cache.save_session("s1", state)

    assert (cache_root / "sessions" / "s1.json").is_file()
    assert cache.get_session("s1") == state
    assert cache.get_session("s2") is None


def test_session_file_drops_duplicate_paths(cache: ScanCache, cache_root: Path) -> None:
    path = cache_root / "sessions" / "s1.json"
    path.parent.mkdir(parents=True)
    path.write_text('{"sessionId": "s1", "path": "/w", "timestamp": 1, "files": ["a", "a", 3, "b"]}', encoding="utf-8")

    state = cache.get_session("s1")

    assert state is not None
    assert state.tracked_files == ("a", "b")


def test_write_failure_raises_cache_io_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    cache = ScanCache(blocker)

    with pytest.raises(CacheIOError):
        cache.save("commit", "o/r", "abc123", _entry())


@pytest.mark.parametrize(
    ("repository", "expected"),
    [
        ("o/r", "o_r"),
        ("org/group/repo", "org_group_repo"),
        ("win\\style", "win_style"),
        ("..", "_"),
        ("", "_"),
    ],
)
def test_repository_names_become_single_segments(tmp_path: Path, repository: str, expected: str) -> None:
    paths = CachePaths(tmp_path)

    entry_path = paths.entry_path("commit", repository, "abc")

    assert entry_path.parent.parent == tmp_path / "scans" / expected
    assert entry_path.resolve().is_relative_to(tmp_path.resolve() / "scans")


def test_identifier_cannot_escape_mode_directory(tmp_path: Path) -> None:
    paths = CachePaths(tmp_path)

    entry_path = paths.entry_path("repo", "o/r", "../../etc/passwd")

    assert entry_path.parent == tmp_path / "scans" / "o_r" / "full"
    assert entry_path.name == ".._.._etc_passwd.json"
