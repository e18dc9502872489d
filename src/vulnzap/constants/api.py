"""Remote service endpoints and request headers."""

from __future__ import annotations

DEFAULT_BASE_URL: str = "https://engine.vulnzap.com"
DEFAULT_REQUEST_TIMEOUT_SECONDS: float = 30.0
STREAM_CONNECT_TIMEOUT_SECONDS: float = 10.0

API_KEY_HEADER: str = "x-api-key"
EVENT_STREAM_MEDIA_TYPE: str = "text/event-stream"

COMMIT_SCAN_PATH: str = "/api/scan/commit"
REPOSITORY_SCAN_PATH: str = "/api/scan/github"
INCREMENTAL_SCAN_PATH: str = "/api/scan/incremental"
JOB_PATH_TEMPLATE: str = "/api/scan/jobs/{job_id}"
INCREMENTAL_SESSION_PATH_TEMPLATE: str = "/api/scan/incremental/{session_id}"

COMMIT_EVENTS_PATH_TEMPLATE: str = "/api/scan/commit/{job_id}/events"
REPOSITORY_EVENTS_PATH_TEMPLATE: str = "/api/scan/github/{job_id}/events"
