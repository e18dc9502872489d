"""Follow scan jobs over their server-sent event streams.

Every job moves through ``connecting -> streaming -> terminal``. The state of
each job lives in ``StreamListener`` keyed by job id, so several jobs can be
followed at once without sharing anything but the cache.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from vulnzap.cache import ScanCache
from vulnzap.client.frames import FrameDecoder, classify_frame, parse_frame
from vulnzap.client.gateway import BackendGateway
from vulnzap.constants.events import (
    EVENT_COMPLETED,
    EVENT_ERROR,
    EVENT_UPDATE,
    MESSAGE_CONNECTION_ERROR,
    MESSAGE_PARSE_FAILURE,
    MESSAGE_PREMATURE_CLOSE,
    MESSAGE_RECONCILE_FAILURE,
    MESSAGE_UNKNOWN_EVENT,
)
from vulnzap.events import EventChannel
from vulnzap.exceptions import (
    CacheIOError,
    FrameParseError,
    InputValidationError,
    ScanConnectionError,
    VulnzapError,
)
from vulnzap.model import CacheEntry, JobResult, ListenerOptions
from vulnzap.types import JsonObject, JsonValue, ListenerState
from vulnzap.utils import now_ms

logger = logging.getLogger(__name__)


class StreamListener:
    """Consume job event streams and reconcile completed jobs into the cache."""

    def __init__(self, gateway: BackendGateway, cache: ScanCache) -> None:
        self.gateway = gateway
        self.cache = cache
        self.events = EventChannel("stream")
        self._states: dict[str, ListenerState] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}

    def state(self, job_id: str) -> ListenerState | None:
        return self._states.get(job_id)

    def listen_for_completion(self, options: ListenerOptions) -> asyncio.Task[None]:
        """Start following ``options.job_id`` in the background.

        Calling this again for a job that is still being followed returns the
        existing task instead of opening a second stream.
        """
        if not options.job_id:
            raise InputValidationError("job_id is required to listen for completion")
        if options.mode == "commit" and not options.commit_hash:
            raise InputValidationError("commit_hash is required for commit mode")

        existing = self._tasks.get(options.job_id)
        if existing is not None and not existing.done():
            return existing

        self._states[options.job_id] = "connecting"
        task = asyncio.create_task(self._run(options), name=f"vulnzap-stream-{options.job_id}")
        self._tasks[options.job_id] = task
        task.add_done_callback(self._forget_task)
        return task

    async def wait(self, job_id: str) -> None:
        """Wait until the job's stream reaches the terminal state.

        Returns at once for jobs that are already terminal or were never followed.
        """
        task = self._tasks.get(job_id)
        if task is not None:
            await asyncio.wait({task})

    async def close(self) -> None:
        """Cancel every stream that is still open."""
        pending = [task for task in self._tasks.values() if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    def _forget_task(self, task: asyncio.Task[None]) -> None:
        for job_id, tracked in list(self._tasks.items()):
            if tracked is task:
                del self._tasks[job_id]

    async def _run(self, options: ListenerOptions) -> None:
        job_id = options.job_id
        try:
            await self._consume(options)
        except (ScanConnectionError, httpx.HTTPError) as exc:
            logger.warning("Event stream for job %s failed: %s", job_id, exc)
            self._emit_error(job_id, MESSAGE_CONNECTION_ERROR, _error_detail(exc))
        finally:
            self._states[job_id] = "terminal"
            logger.debug("Job %s stream is terminal", job_id)

    async def _consume(self, options: ListenerOptions) -> None:
        async with self.gateway.event_stream(options.mode, options.job_id) as response:
            self._states[options.job_id] = "streaming"
            decoder = FrameDecoder()
            async for chunk in response.aiter_text():
                for data in decoder.feed(chunk):
                    if await self._handle_frame(options, data):
                        return
        raise ScanConnectionError(MESSAGE_PREMATURE_CLOSE)

    async def _handle_frame(self, options: ListenerOptions, data: str) -> bool:
        """Publish one frame; return True once the job is complete."""
        job_id = options.job_id
        try:
            frame = parse_frame(data)
        except FrameParseError as exc:
            detail = _error_detail(exc)
            detail["line"] = exc.line
            self._emit_error(job_id, MESSAGE_PARSE_FAILURE, detail)
            return False

        classification = classify_frame(frame)
        if classification.terminal:
            self.events.emit(EVENT_COMPLETED, frame)
            await self._reconcile(options, frame)
            return True

        if classification.kind == EVENT_UPDATE:
            self.events.emit(EVENT_UPDATE, frame)
        elif classification.known:
            message = frame.get("message")
            self._emit_error(
                job_id,
                message if isinstance(message, str) else "Scan reported an error",
                frame.get("error"),
            )
        else:
            self._emit_error(job_id, MESSAGE_UNKNOWN_EVENT, frame)
        return False

    async def _reconcile(self, options: ListenerOptions, frame: JsonObject) -> None:
        """Replace streamed state with the authoritative snapshot and mark the entry resolved."""
        frame_job_id = frame.get("jobId")
        scan_job_id = options.job_id or (frame_job_id if isinstance(frame_job_id, str) else "")
        try:
            result = await self.gateway.get_scan_from_api(scan_job_id)
        except VulnzapError as exc:
            logger.warning("Could not reconcile completed job %s: %s", scan_job_id, exc)
            self._emit_error(options.job_id, MESSAGE_RECONCILE_FAILURE, _error_detail(exc))
            return

        identifier = options.cache_identifier
        entry = _resolved_entry(options, result, self.cache.get(options.mode, options.repository, identifier))
        try:
            self.cache.save(options.mode, options.repository, identifier, entry)
        except CacheIOError as exc:
            logger.warning("Completed job %s could not be cached: %s", result.job_id, exc)

    def _emit_error(self, job_id: str, message: str, error: JsonValue) -> None:
        self.events.emit(EVENT_ERROR, {"jobId": job_id, "message": message, "error": error})


def _resolved_entry(options: ListenerOptions, result: JobResult, previous: CacheEntry | None) -> CacheEntry:
    resolved_at = now_ms()
    return CacheEntry(
        job_id=result.job_id,
        timestamp=previous.timestamp if previous is not None and previous.timestamp else resolved_at,
        status=result.status,
        resolved=True,
        resolved_timestamp=resolved_at,
        repository=(previous.repository if previous is not None else "") or options.repository,
        branch=(previous.branch if previous is not None else "") or options.branch,
        results=result.results,
    )


def _error_detail(exc: BaseException) -> JsonObject:
    return {"type": type(exc).__name__, "message": str(exc)}
