"""Public VulnZap client.

``VulnzapClient`` ties the gateway, the stream listener, the session watcher
and the cache together. Starting a scan always attaches a listener, so no job
is left running without someone following it. Every event from the three
components is re-published unchanged on ``VulnzapClient.events``.

Example::

    async with VulnzapClient(api_key="...") as client:
        client.on("completed", print)
        response = await client.scan_commit(
            CommitScanRequest(
                commit_hash="abc123",
                repository="owner/repo",
                files=(ScannedFile(name="src/app.js", content="console.log('hi');"),),
            )
        )
        await client.wait_for_job(response.data.job_id)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from types import TracebackType

import httpx

from vulnzap.cache import ScanCache
from vulnzap.client.gateway import BackendGateway
from vulnzap.client.stream import StreamListener
from vulnzap.config import ClientConfig
from vulnzap.constants.api import DEFAULT_BASE_URL
from vulnzap.constants.cache import DEFAULT_CACHE_ROOT
from vulnzap.events import EventChannel, EventHandler
from vulnzap.exceptions import ConfigError
from vulnzap.model import (
    CacheEntry,
    CommitScanRequest,
    JobResult,
    ListenerOptions,
    RepositoryScanRequest,
    ScanInitResponse,
)
from vulnzap.types import EventKind, IncrementalScanResponse
from vulnzap.watcher import SessionWatcher

logger = logging.getLogger(__name__)


class VulnzapClient:
    """Start scans, follow them to completion and read cached results."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        api_key: str | None = None,
        base_url: str | None = None,
        cache_dir: Path | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if config is None:
            if not api_key:
                raise ConfigError("api_key is required")
            config = ClientConfig(
                api_key=api_key,
                base_url=base_url or DEFAULT_BASE_URL,
                cache_dir=cache_dir or DEFAULT_CACHE_ROOT,
            )
        self.config = config
        self.cache = ScanCache(config.cache_dir)
        self.gateway = BackendGateway(
            api_key=config.api_key,
            base_url=config.base_url,
            cache=self.cache,
            http_client=http_client,
            timeout=config.request_timeout,
        )
        self.listener = StreamListener(self.gateway, self.cache)
        self.watcher = SessionWatcher(self.gateway, self.cache, poll_interval=config.watch_poll_interval)

        self.events = EventChannel("client")
        self.gateway.events.forward_to(self.events)
        self.listener.events.forward_to(self.events)
        self.watcher.events.forward_to(self.events)

    async def __aenter__(self) -> VulnzapClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def on(self, kind: EventKind, handler: EventHandler) -> Callable[[], None]:
        """Subscribe to ``update``, ``completed`` or ``error`` events."""
        return self.events.on(kind, handler)

    async def scan_commit(self, request: CommitScanRequest) -> ScanInitResponse:
        """Start a commit scan and begin following its event stream."""
        handle = await self.gateway.scan_commit(request)
        self.listener.listen_for_completion(
            ListenerOptions(
                job_id=handle.job_id,
                mode="commit",
                commit_hash=request.commit_hash,
                repository=request.repository,
                branch=request.branch or "",
            )
        )
        return ScanInitResponse(data=handle)

    async def scan_repository(self, request: RepositoryScanRequest) -> ScanInitResponse:
        """Start a repository scan and begin following its event stream."""
        handle = await self.gateway.scan_repository(request)
        self.listener.listen_for_completion(
            ListenerOptions(
                job_id=handle.job_id,
                mode="repo",
                repository=request.repository,
                branch=request.branch or "",
            )
        )
        return ScanInitResponse(data=handle)

    async def get_completed_scan(self, job_id: str) -> JobResult:
        """Fetch the service's authoritative snapshot of a job."""
        return await self.gateway.get_scan_from_api(job_id)

    def get_latest_cached_scan(self, repository: str) -> CacheEntry | None:
        """Return the newest cached commit scan of ``repository``."""
        return self.cache.latest_commit_scan(repository)

    def get_cached_scan(self, job_id: str) -> CacheEntry | None:
        """Return the cached entry recorded for ``job_id`` in any repository."""
        return self.cache.find_by_job_id(job_id)

    async def wait_for_job(self, job_id: str) -> None:
        """Wait until the job's event stream has finished."""
        await self.listener.wait(job_id)

    def security_assistant(self, dir_path: str | Path, session_id: str, timeout_ms: int) -> bool:
        """Watch ``dir_path`` and send every change to the incremental scanner."""
        return self.watcher.security_assistant(dir_path, session_id, timeout_ms)

    async def stop_security_assistant(self, session_id: str) -> IncrementalScanResponse:
        return await self.watcher.stop_security_assistant(session_id)

    async def get_incremental_scan_results(self, session_id: str) -> IncrementalScanResponse:
        return await self.gateway.get_incremental_results(session_id)

    async def aclose(self) -> None:
        """Stop sessions, cancel open streams and release the HTTP client."""
        await self.watcher.aclose()
        await self.listener.close()
        await self.gateway.aclose()
        logger.debug("VulnZap client closed")
