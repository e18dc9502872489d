"""Config data model for the VulnZap client."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from vulnzap.constants.api import DEFAULT_BASE_URL, DEFAULT_REQUEST_TIMEOUT_SECONDS
from vulnzap.constants.cache import DEFAULT_CACHE_ROOT
from vulnzap.constants.watcher import DEFAULT_POLL_INTERVAL_SECONDS


@dataclass(frozen=True)
class ClientConfig:
    """Resolved client settings."""

    api_key: str = field(repr=False)
    base_url: str = DEFAULT_BASE_URL
    cache_dir: Path = DEFAULT_CACHE_ROOT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS
    watch_poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS
