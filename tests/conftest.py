"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from tests.fakes import FakeScanService
from vulnzap.cache import ScanCache


@pytest.fixture
def service() -> FakeScanService:
    return FakeScanService()


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    return tmp_path / "vulnzap-cache"


@pytest.fixture
def cache(cache_root: Path) -> ScanCache:
    return ScanCache(cache_root)
