"""Shared file I/O helpers."""

from .json_io import dumps_stable, load_json_file, write_json_atomic

__all__ = ["dumps_stable", "load_json_file", "write_json_atomic"]
