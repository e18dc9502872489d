"""Configuration filenames and environment variable names."""

from __future__ import annotations

CONFIG_FILENAME: str = "vulnzap.yaml"

ENV_API_KEY: str = "VULNZAP_API_KEY"
ENV_BASE_URL: str = "VULNZAP_BASE_URL"
ENV_CACHE_DIR: str = "VULNZAP_CACHE_DIR"

CONFIG_ALLOWED_KEYS: frozenset[str] = frozenset(
    {"api_key", "base_url", "cache_dir", "request_timeout", "watch_poll_interval"}
)
