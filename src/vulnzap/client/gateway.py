"""HTTP calls against the VulnZap scan service.

Initiation calls report failures twice: the typed exception is raised to the
caller and an ``error`` event is published on ``BackendGateway.events`` so
subscribers see it even when the caller does not catch it.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from vulnzap.cache import ScanCache
from vulnzap.constants.api import (
    API_KEY_HEADER,
    COMMIT_EVENTS_PATH_TEMPLATE,
    COMMIT_SCAN_PATH,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    EVENT_STREAM_MEDIA_TYPE,
    INCREMENTAL_SCAN_PATH,
    INCREMENTAL_SESSION_PATH_TEMPLATE,
    JOB_PATH_TEMPLATE,
    REPOSITORY_EVENTS_PATH_TEMPLATE,
    REPOSITORY_SCAN_PATH,
    STREAM_CONNECT_TIMEOUT_SECONDS,
)
from vulnzap.constants.events import EVENT_ERROR, UNKNOWN_JOB_ID
from vulnzap.events import EventChannel
from vulnzap.exceptions import CacheIOError, ProtocolError, RemoteRequestError, ScanConnectionError, VulnzapError
from vulnzap.model import CacheEntry, CommitScanRequest, JobHandle, JobResult, RepositoryScanRequest
from vulnzap.types import IncrementalScanPayload, IncrementalScanResponse, JsonObject, ScanMode
from vulnzap.utils import now_ms

logger = logging.getLogger(__name__)


class BackendGateway:
    """One method per remote operation of the scan service."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        cache: ScanCache,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.cache = cache
        self.events = EventChannel("gateway")
        self._api_key = api_key
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def scan_commit(self, request: CommitScanRequest) -> JobHandle:
        """Start a commit scan and record it in the cache as unresolved."""
        handle = await self._initiate(
            COMMIT_SCAN_PATH,
            request.to_payload(),
            action="scan commit",
            subject=request.commit_hash,
        )
        self._save_provisional(
            "commit",
            request.repository,
            request.commit_hash,
            CacheEntry(
                job_id=handle.job_id,
                timestamp=now_ms(),
                status=handle.status,
                repository=request.repository,
                branch=request.branch or "",
                results={},
            ),
        )
        return handle

    async def scan_repository(self, request: RepositoryScanRequest) -> JobHandle:
        """Start a full repository scan and record it in the cache as unresolved."""
        handle = await self._initiate(
            REPOSITORY_SCAN_PATH,
            request.to_payload(),
            action="scan repository",
            subject=request.repository,
        )
        self._save_provisional(
            "repo",
            request.repository,
            handle.job_id,
            CacheEntry(
                job_id=handle.job_id,
                timestamp=now_ms(),
                status=handle.status,
                repository=request.repository,
                branch=request.branch or "",
                results=None,
            ),
        )
        return handle

    async def scan_incremental(self, payload: IncrementalScanPayload) -> JobHandle:
        """Forward changed files of a security-assistant session."""
        return await self._initiate(
            INCREMENTAL_SCAN_PATH,
            payload,
            action="scan incremental change",
            subject=payload["sessionId"],
        )

    async def get_incremental_results(self, session_id: str) -> IncrementalScanResponse:
        url = self._url(INCREMENTAL_SESSION_PATH_TEMPLATE.format(session_id=session_id))
        response = await self._send("GET", url, action="get incremental scan results")
        return _parse_session_envelope(response)

    async def stop_incremental_scan(self, session_id: str) -> IncrementalScanResponse:
        url = self._url(INCREMENTAL_SESSION_PATH_TEMPLATE.format(session_id=session_id))
        response = await self._send("DELETE", url, action="stop incremental scan")
        return _parse_session_envelope(response)

    async def get_scan_from_api(self, job_id: str) -> JobResult:
        """Fetch the authoritative job snapshot. Never reads or writes the cache."""
        url = self._url(JOB_PATH_TEMPLATE.format(job_id=job_id))
        response = await self._send("GET", url, action="get scan from API")
        if not response.is_success:
            raise RemoteRequestError(
                response.status_code,
                response.reason_phrase,
                message=f"Failed to get scan from API: {response.status_code} {response.reason_phrase}",
            )
        data = _envelope_data(response)
        return _job_result(data)

    @asynccontextmanager
    async def event_stream(self, mode: ScanMode, job_id: str) -> AsyncIterator[httpx.Response]:
        """Open the server-sent event stream of a job.

        The response is closed when the ``async with`` block exits, whichever
        way it exits.
        """
        template = COMMIT_EVENTS_PATH_TEMPLATE if mode == "commit" else REPOSITORY_EVENTS_PATH_TEMPLATE
        url = self._url(template.format(job_id=job_id))
        headers = {
            **self._headers(),
            "Accept": EVENT_STREAM_MEDIA_TYPE,
            "Cache-Control": "no-cache",
        }
        timeout = httpx.Timeout(STREAM_CONNECT_TIMEOUT_SECONDS, read=None)
        try:
            async with self._client.stream("GET", url, headers=headers, timeout=timeout) as response:
                if not response.is_success:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise ScanConnectionError(
                        f"Failed to connect to event stream: {response.status_code} - {body}"
                    )
                yield response
        except httpx.TransportError as exc:
            raise ScanConnectionError(f"Event stream transport failure: {exc}") from exc

    def _headers(self) -> dict[str, str]:
        return {API_KEY_HEADER: self._api_key}

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def _send(
        self,
        method: str,
        url: str,
        *,
        action: str,
        json: object | None = None,
    ) -> httpx.Response:
        try:
            return await self._client.request(method, url, headers=self._headers(), json=json)
        except httpx.RequestError as exc:
            raise ScanConnectionError(f"Failed to {action}: {exc}") from exc

    async def _initiate(self, path: str, body: object, *, action: str, subject: str) -> JobHandle:
        try:
            response = await self._send("POST", self._url(path), action=action, json=body)
            if not response.is_success:
                raise RemoteRequestError(
                    response.status_code,
                    response.reason_phrase,
                    message=f"Failed to {action}: {response.status_code} {response.reason_phrase}",
                )
            handle = _job_handle(_envelope_data(response))
        except VulnzapError as exc:
            self._publish_failure(exc, subject=subject)
            raise
        logger.debug("Service accepted %s for %s as job %s", action, subject, handle.job_id)
        return handle

    def _publish_failure(self, error: VulnzapError, *, subject: str) -> None:
        detail: JsonObject = {"type": type(error).__name__, "message": str(error)}
        if isinstance(error, RemoteRequestError):
            detail["statusCode"] = error.status_code
            detail["statusText"] = error.status_text
        self.events.emit(
            EVENT_ERROR,
            {"jobId": subject or UNKNOWN_JOB_ID, "message": str(error), "error": detail},
        )

    def _save_provisional(self, mode: ScanMode, repository: str, identifier: str, entry: CacheEntry) -> None:
        try:
            self.cache.save(mode, repository, identifier, entry)
        except CacheIOError as exc:
            logger.warning("Scan %s started but could not be cached: %s", entry.job_id, exc)


def _response_json(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError as exc:
        raise ProtocolError(f"Invalid response from API: body is not JSON ({exc})") from exc


def _envelope_data(response: httpx.Response) -> JsonObject:
    body = _response_json(response)
    if not isinstance(body, dict):
        raise ProtocolError("Invalid response from API: expected a JSON object")
    data = body.get("data")
    if not isinstance(data, dict):
        raise ProtocolError("Invalid response from API: missing `data` object")
    return data


def _job_handle(data: JsonObject) -> JobHandle:
    job_id = data.get("jobId")
    if not isinstance(job_id, str) or not job_id:
        raise ProtocolError("Invalid response from API: missing jobId")
    status = data.get("status")
    return JobHandle(job_id=job_id, status=status if isinstance(status, str) else "")


def _job_result(data: JsonObject) -> JobResult:
    job_id = data.get("jobId")
    if not isinstance(job_id, str) or not job_id:
        raise ProtocolError("Invalid response from API: missing jobId")

    status = data.get("status")
    commit_hash = data.get("commitHash")
    project_id = data.get("projectId")
    metadata = data.get("metadata")

    return JobResult(
        job_id=job_id,
        status=status if isinstance(status, str) else "",
        commit_hash=commit_hash if isinstance(commit_hash, str) else "",
        project_id=project_id if isinstance(project_id, str) else "",
        progress=data.get("progress"),
        results=data.get("results"),
        metadata=metadata if isinstance(metadata, dict) else {},
        started_at=data.get("startedAt"),
        completed_at=data.get("completedAt"),
        raw=data,
    )


def _parse_session_envelope(response: httpx.Response) -> IncrementalScanResponse:
    """Return the ``{success, data?, error?}`` envelope of a session endpoint.

    A non-2xx response that still carries the envelope is returned as-is so
    the caller can read the service's ``error`` text.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and isinstance(body.get("success"), bool):
        envelope: IncrementalScanResponse = {"success": body["success"]}
        if "data" in body:
            envelope["data"] = body["data"]
        error = body.get("error")
        if isinstance(error, str):
            envelope["error"] = error
        return envelope

    if not response.is_success:
        raise RemoteRequestError(response.status_code, response.reason_phrase)
    raise ProtocolError("Invalid response from API: missing `success` flag")
