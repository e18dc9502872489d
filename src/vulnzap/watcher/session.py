"""Security-assistant sessions: watch a directory and stream changes to the service.

A session is ``idle`` until its idle timer is armed, ``active`` while the timer
runs, and ``closed`` once the timer fires or the caller stops it. Each relevant
file change re-arms the timer, so only a full ``timeout_ms`` of silence closes
the session.
"""

from __future__ import annotations

import asyncio
import logging
import stat
from dataclasses import dataclass, field
from pathlib import Path

from vulnzap.cache import ScanCache
from vulnzap.client.gateway import BackendGateway
from vulnzap.constants.events import EVENT_COMPLETED, EVENT_ERROR
from vulnzap.constants.watcher import (
    DEFAULT_POLL_INTERVAL_SECONDS,
    MAX_SESSION_TIMEOUT_MS,
    MIN_SESSION_TIMEOUT_MS,
    SESSION_CLOSED_MESSAGE,
)
from vulnzap.events import EventChannel
from vulnzap.exceptions import CacheIOError, VulnzapError
from vulnzap.model import SessionState
from vulnzap.types import IncrementalScanResponse, JsonObject, SessionStatus
from vulnzap.utils import now_ms
from vulnzap.watcher.filters import is_noise_path
from vulnzap.watcher.snapshot import Snapshot, diff_snapshots, take_snapshot

logger = logging.getLogger(__name__)


@dataclass
class WatchSession:
    """Runtime state of one watched directory."""

    session_id: str
    root: Path
    timeout_ms: int
    status: SessionStatus = "idle"
    poll_task: asyncio.Task[None] | None = None
    timer: asyncio.TimerHandle | None = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    in_flight: set[asyncio.Task[None]] = field(default_factory=set)
    watching: asyncio.Event = field(default_factory=asyncio.Event)


class SessionWatcher:
    """Run security-assistant sessions on the current event loop."""

    def __init__(
        self,
        gateway: BackendGateway,
        cache: ScanCache,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> None:
        self.gateway = gateway
        self.cache = cache
        self.poll_interval = poll_interval
        self.events = EventChannel("watcher")
        self._sessions: dict[str, WatchSession] = {}

    def status(self, session_id: str) -> SessionStatus | None:
        session = self._sessions.get(session_id)
        return session.status if session is not None else None

    def security_assistant(self, dir_path: str | Path, session_id: str, timeout_ms: int) -> bool:
        """Start watching ``dir_path``; return False without raising on bad input.

        Must be called from a running event loop.
        """
        root = Path(dir_path)
        if not root.is_dir():
            logger.warning("Security assistant not started: %s is not a directory", root)
            return False
        if isinstance(timeout_ms, bool) or not isinstance(timeout_ms, int):
            logger.warning("Security assistant not started: timeout must be an integer")
            return False
        if not MIN_SESSION_TIMEOUT_MS <= timeout_ms <= MAX_SESSION_TIMEOUT_MS:
            logger.warning(
                "Security assistant not started: timeout %d ms outside [%d, %d]",
                timeout_ms,
                MIN_SESSION_TIMEOUT_MS,
                MAX_SESSION_TIMEOUT_MS,
            )
            return False
        if not session_id:
            logger.warning("Security assistant not started: empty session id")
            return False

        existing = self._sessions.get(session_id)
        if existing is not None and existing.status != "closed":
            logger.warning("Security assistant session %s is already running", session_id)
            return False

        loop = asyncio.get_running_loop()
        session = WatchSession(session_id=session_id, root=root.resolve(), timeout_ms=timeout_ms)
        session.poll_task = loop.create_task(self._observe(session), name=f"vulnzap-watch-{session_id}")
        self._sessions[session_id] = session
        self._arm_timer(session)
        logger.info("Security assistant %s watching %s", session_id, session.root)
        return True

    def handle_change(self, session_id: str, relative_path: str) -> bool:
        """Process one observed change; return False when it is ignored.

        Noise paths are dropped before anything else, so they neither reach the
        service nor re-arm the idle timer.
        """
        session = self._sessions.get(session_id)
        if session is None or session.status == "closed":
            return False
        if is_noise_path(relative_path):
            return False

        self._arm_timer(session)
        task = asyncio.get_running_loop().create_task(self._process_change(session, relative_path))
        session.in_flight.add(task)
        task.add_done_callback(session.in_flight.discard)
        return True

    async def wait_until_watching(self, session_id: str) -> None:
        """Wait until the session has recorded the files present when it started.

        Changes made before this returns may be folded into the starting state.
        """
        session = self._sessions.get(session_id)
        if session is not None:
            await session.watching.wait()

    async def drain(self, session_id: str) -> None:
        """Wait for every change of the session that is still being sent."""
        session = self._sessions.get(session_id)
        if session is not None and session.in_flight:
            await asyncio.gather(*session.in_flight, return_exceptions=True)

    async def stop_security_assistant(self, session_id: str) -> IncrementalScanResponse:
        """Stop watching, end the remote session and return its results."""
        session = self._sessions.pop(session_id, None)
        if session is not None:
            self._stop(session)

        await self.gateway.stop_incremental_scan(session_id)
        results = await self.gateway.get_incremental_results(session_id)
        if not results["success"]:
            self.events.emit(
                EVENT_ERROR,
                {
                    "jobId": session_id,
                    "message": f"Failed to get incremental scan results: {results.get('error')}",
                    "data": results.get("data"),
                },
            )
        return results

    async def aclose(self) -> None:
        """Stop every session and cancel their in-flight change uploads."""
        sessions = list(self._sessions.values())
        self._sessions.clear()
        pending: list[asyncio.Task[None]] = []
        for session in sessions:
            self._stop(session)
            pending.extend(session.in_flight)
            if session.poll_task is not None:
                pending.append(session.poll_task)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def _observe(self, session: WatchSession) -> None:
        try:
            previous: Snapshot = await asyncio.to_thread(take_snapshot, session.root)
        except OSError as exc:
            logger.warning("Failed to scan %s: %s", session.root, exc)
            previous = {}
        finally:
            session.watching.set()

        while session.status != "closed":
            await asyncio.sleep(self.poll_interval)
            try:
                current = await asyncio.to_thread(take_snapshot, session.root)
            except OSError as exc:
                logger.warning("Failed to scan %s: %s", session.root, exc)
                continue
            for relative_path in diff_snapshots(previous, current):
                self.handle_change(session.session_id, relative_path)
            previous = current

    async def _process_change(self, session: WatchSession, relative_path: str) -> None:
        path = session.root / relative_path
        try:
            if not stat.S_ISREG(path.stat().st_mode):
                return
            content = await asyncio.to_thread(path.read_text, encoding="utf-8", errors="replace")
        except OSError as exc:
            self.events.emit(
                EVENT_ERROR,
                {
                    "jobId": session.session_id,
                    "message": f"Failed to scan incremental change for {relative_path}: {exc}",
                    "data": self._session_data(session),
                },
            )
            return

        state = self._load_state(session)
        changed = state.is_tracked(relative_path)
        try:
            await self.gateway.scan_incremental(
                {
                    "sessionId": session.session_id,
                    "files": [{"path": relative_path, "content": content, "changed": changed}],
                }
            )
        except VulnzapError as exc:
            # The gateway has already published the failure as an error event.
            logger.warning("Incremental scan of %s failed: %s", relative_path, exc)
            return

        if changed:
            return
        async with session.lock:
            state = self._load_state(session).with_file(relative_path)
            try:
                self.cache.save_session(session.session_id, state)
            except CacheIOError as exc:
                logger.warning("Session %s file list not saved: %s", session.session_id, exc)

    def _load_state(self, session: WatchSession) -> SessionState:
        state = self.cache.get_session(session.session_id)
        if state is not None:
            return state
        return SessionState(
            session_id=session.session_id,
            watched_path=str(session.root),
            created_at=now_ms(),
        )

    def _arm_timer(self, session: WatchSession) -> None:
        if session.timer is not None:
            session.timer.cancel()
        loop = asyncio.get_running_loop()
        session.timer = loop.call_later(session.timeout_ms / 1000, self._expire, session.session_id)
        session.status = "active"

    def _expire(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return
        self._stop(session)
        logger.info("Security assistant %s closed after %d ms of inactivity", session_id, session.timeout_ms)
        self.events.emit(
            EVENT_COMPLETED,
            {
                "jobId": session_id,
                "message": SESSION_CLOSED_MESSAGE,
                "data": self._session_data(session),
            },
        )

    def _stop(self, session: WatchSession) -> None:
        session.status = "closed"
        if session.timer is not None:
            session.timer.cancel()
            session.timer = None
        if session.poll_task is not None and not session.poll_task.done():
            session.poll_task.cancel()

    @staticmethod
    def _session_data(session: WatchSession) -> JsonObject:
        return {
            "sessionId": session.session_id,
            "path": str(session.root),
            "timestamp": now_ms(),
        }
