"""Config loading from ``vulnzap.yaml`` and the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from vulnzap.config.model import ClientConfig
from vulnzap.constants.api import DEFAULT_BASE_URL, DEFAULT_REQUEST_TIMEOUT_SECONDS
from vulnzap.constants.cache import DEFAULT_CACHE_ROOT
from vulnzap.constants.config import (
    CONFIG_ALLOWED_KEYS,
    CONFIG_FILENAME,
    ENV_API_KEY,
    ENV_BASE_URL,
    ENV_CACHE_DIR,
)
from vulnzap.constants.watcher import DEFAULT_POLL_INTERVAL_SECONDS
from vulnzap.exceptions import ConfigError


def load_config(
    root: Path | None = None,
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> ClientConfig:
    """Load client config from ``vulnzap.yaml`` (optional) and the environment.

    Environment variables win over file values. The API key must come from
    one of the two.
    """
    env = os.environ if environ is None else environ
    raw = _read_config_file(root or Path.cwd(), config_path)

    unknown = sorted(set(raw) - CONFIG_ALLOWED_KEYS)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    api_key = env.get(ENV_API_KEY) or _optional_string(raw, "api_key")
    if not api_key:
        raise ConfigError(f"An API key is required: set {ENV_API_KEY} or `api_key` in {CONFIG_FILENAME}")

    base_url = env.get(ENV_BASE_URL) or _optional_string(raw, "base_url") or DEFAULT_BASE_URL
    if not base_url.startswith(("http://", "https://")):
        raise ConfigError(f"base_url must be an http(s) URL, got {base_url!r}")

    cache_dir_raw = env.get(ENV_CACHE_DIR) or _optional_string(raw, "cache_dir")
    cache_dir = Path(cache_dir_raw).expanduser() if cache_dir_raw else DEFAULT_CACHE_ROOT

    return ClientConfig(
        api_key=api_key,
        base_url=base_url.rstrip("/"),
        cache_dir=cache_dir,
        request_timeout=_positive_number(raw, "request_timeout", DEFAULT_REQUEST_TIMEOUT_SECONDS),
        watch_poll_interval=_positive_number(raw, "watch_poll_interval", DEFAULT_POLL_INTERVAL_SECONDS),
    )


def _read_config_file(root: Path, config_path: Path | None) -> dict[str, Any]:
    path = config_path.resolve() if config_path else (root.resolve() / CONFIG_FILENAME)
    if not path.exists():
        if config_path is not None:
            raise ConfigError(f"Config file not found: {path}")
        return {}

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML config file at {path}: {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Config file at {path} must be a YAML mapping")
    return raw


def _optional_string(raw: dict[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigError(f"{key} must be a string")
    return value.strip() or None


def _positive_number(raw: dict[str, Any], key: str, default: float) -> float:
    value = raw.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{key} must be a positive number")
    return float(value)
