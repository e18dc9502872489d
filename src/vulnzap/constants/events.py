"""Event names and stream framing constants."""

from __future__ import annotations

EVENT_UPDATE: str = "update"
EVENT_COMPLETED: str = "completed"
EVENT_ERROR: str = "error"
EVENT_KINDS: frozenset[str] = frozenset({EVENT_UPDATE, EVENT_COMPLETED, EVENT_ERROR})

FRAME_DATA_PREFIX: str = "data: "
FRAME_TYPE_CONNECTED: str = "connected"
FRAME_TYPE_PROGRESS: str = "progress"
FRAME_TYPE_COMPLETED: str = "completed"
FRAME_TYPE_ERROR: str = "error"
UPDATE_FRAME_TYPES: frozenset[str] = frozenset({FRAME_TYPE_CONNECTED, FRAME_TYPE_PROGRESS})

UNKNOWN_JOB_ID: str = "unknown"

MESSAGE_UNKNOWN_EVENT: str = "Unknown event type"
MESSAGE_PARSE_FAILURE: str = "Failed to parse SSE data"
MESSAGE_CONNECTION_ERROR: str = "SSE connection error"
MESSAGE_PREMATURE_CLOSE: str = "Event stream closed before the scan completed"
MESSAGE_RECONCILE_FAILURE: str = "Failed to fetch completed scan results"
