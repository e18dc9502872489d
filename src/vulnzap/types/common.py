"""Cross-module type aliases."""

from __future__ import annotations

from typing import Literal, TypeAlias

ScanMode: TypeAlias = Literal["commit", "repo"]
EventKind: TypeAlias = Literal["update", "completed", "error"]
ListenerState: TypeAlias = Literal["connecting", "streaming", "terminal"]
SessionStatus: TypeAlias = Literal["idle", "active", "closed"]

JsonScalar: TypeAlias = str | int | float | bool | None
JsonValue: TypeAlias = JsonScalar | list["JsonValue"] | dict[str, "JsonValue"]
JsonObject: TypeAlias = dict[str, JsonValue]
