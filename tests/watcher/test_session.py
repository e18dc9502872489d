"""Tests for security-assistant sessions."""

from __future__ import annotations

import asyncio
import json
import threading
from pathlib import Path

import httpx
import pytest

from tests.fakes import BASE_URL, FakeScanService, envelope
from vulnzap.cache import ScanCache
from vulnzap.client.gateway import BackendGateway
from vulnzap.constants.watcher import SESSION_CLOSED_MESSAGE
from vulnzap.types import JsonObject
from vulnzap.watcher import SessionWatcher
from vulnzap.watcher import session as session_module

INCREMENTAL_PATH = "/api/scan/incremental"


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    (root / "src").mkdir(parents=True)
    (root / "src" / "app.js").write_text("console.log(1);", encoding="utf-8")
    return root


def _watcher(cache: ScanCache, http_client: httpx.AsyncClient, *, poll_interval: float = 60.0) -> SessionWatcher:
    gateway = BackendGateway(api_key="k", base_url=BASE_URL, cache=cache, http_client=http_client)
    return SessionWatcher(gateway, cache, poll_interval=poll_interval)


def _accept_incremental(service: FakeScanService) -> None:
    service.add(
        "POST",
        INCREMENTAL_PATH,
        lambda request: httpx.Response(200, json=envelope({"jobId": "inc", "status": "queued"})),
    )


def _sent_files(service: FakeScanService) -> list[JsonObject]:
    files: list[JsonObject] = []
    for request in service.requests_to("POST", INCREMENTAL_PATH):
        files.extend(json.loads(request.content)["files"])
    return files


@pytest.mark.parametrize("timeout_ms", [5_000, 600_001, 0])
def test_out_of_range_timeout_is_rejected(cache: ScanCache, project: Path, timeout_ms: int) -> None:
    async def scenario() -> tuple[bool, str | None]:
        async with httpx.AsyncClient() as http_client:
            watcher = _watcher(cache, http_client)
            started = watcher.security_assistant(project, "s1", timeout_ms)
            return started, watcher.status("s1")

    assert asyncio.run(scenario()) == (False, None)


def test_missing_directory_is_rejected(cache: ScanCache, tmp_path: Path) -> None:
    async def scenario() -> bool:
        async with httpx.AsyncClient() as http_client:
            return _watcher(cache, http_client).security_assistant(tmp_path / "missing", "s1", 60_000)

    assert asyncio.run(scenario()) is False


def test_running_session_cannot_start_twice(cache: ScanCache, project: Path) -> None:
    async def scenario() -> tuple[bool, bool, str | None]:
        async with httpx.AsyncClient() as http_client:
            watcher = _watcher(cache, http_client)
            first = watcher.security_assistant(project, "s1", 60_000)
            second = watcher.security_assistant(project, "s1", 60_000)
            status = watcher.status("s1")
            await watcher.aclose()
            return first, second, status

    assert asyncio.run(scenario()) == (True, False, "active")


def test_noise_change_is_dropped_without_resetting_timer(
    service: FakeScanService, cache: ScanCache, project: Path
) -> None:
    _accept_incremental(service)

    async def scenario() -> None:
        async with service.client() as http_client:
            watcher = _watcher(cache, http_client)
            assert watcher.security_assistant(project, "s1", 60_000)
            timer = watcher._sessions["s1"].timer

            assert watcher.handle_change("s1", "node_modules/x/index.js") is False
            assert watcher.handle_change("s1", "README.md") is False
            assert watcher.handle_change("s1", "node_modules_cache/a.js") is False
            await watcher.drain("s1")

            assert watcher._sessions["s1"].timer is timer
            await watcher.aclose()

    asyncio.run(scenario())

    assert service.requests_to("POST", INCREMENTAL_PATH) == []


def test_change_is_sent_and_tracked(service: FakeScanService, cache: ScanCache, project: Path) -> None:
    _accept_incremental(service)

    async def scenario() -> None:
        async with service.client() as http_client:
            watcher = _watcher(cache, http_client)
            assert watcher.security_assistant(project, "s1", 60_000)
            timer = watcher._sessions["s1"].timer

            assert watcher.handle_change("s1", "src/app.js") is True
            await watcher.drain("s1")
            assert watcher._sessions["s1"].timer is not timer

            assert watcher.handle_change("s1", "src/app.js") is True
            await watcher.drain("s1")
            await watcher.aclose()

    asyncio.run(scenario())

    assert _sent_files(service) == [
        {"path": "src/app.js", "content": "console.log(1);", "changed": False},
        {"path": "src/app.js", "content": "console.log(1);", "changed": True},
    ]
    state = cache.get_session("s1")
    assert state is not None
    assert state.tracked_files == ("src/app.js",)
    assert state.watched_path == str(project.resolve())


def test_unreadable_change_is_reported(service: FakeScanService, cache: ScanCache, project: Path) -> None:
    _accept_incremental(service)
    errors: list[JsonObject] = []

    async def scenario() -> None:
        async with service.client() as http_client:
            watcher = _watcher(cache, http_client)
            watcher.events.on("error", errors.append)
            assert watcher.security_assistant(project, "s1", 60_000)
            watcher.handle_change("s1", "src/vanished.js")
            await watcher.drain("s1")
            await watcher.aclose()

    asyncio.run(scenario())

    assert len(errors) == 1
    assert errors[0]["jobId"] == "s1"
    assert errors[0]["message"].startswith("Failed to scan incremental change for src/vanished.js")
    assert errors[0]["data"]["sessionId"] == "s1"
    assert service.requests_to("POST", INCREMENTAL_PATH) == []


def test_rejected_change_is_reported_once_and_not_tracked(
    service: FakeScanService, cache: ScanCache, project: Path
) -> None:
    service.add("POST", INCREMENTAL_PATH, lambda request: httpx.Response(500))
    errors: list[JsonObject] = []

    async def scenario() -> None:
        async with service.client() as http_client:
            watcher = _watcher(cache, http_client)
            watcher.gateway.events.on("error", errors.append)
            watcher.events.on("error", errors.append)
            assert watcher.security_assistant(project, "s1", 60_000)
            watcher.handle_change("s1", "src/app.js")
            await watcher.drain("s1")
            await watcher.aclose()

    asyncio.run(scenario())

    assert len(errors) == 1
    assert errors[0]["jobId"] == "s1"
    assert cache.get_session("s1") is None


def test_polling_picks_up_new_files(service: FakeScanService, cache: ScanCache, project: Path) -> None:
    _accept_incremental(service)

    async def scenario() -> None:
        async with service.client() as http_client:
            watcher = _watcher(cache, http_client, poll_interval=0.02)
            assert watcher.security_assistant(project, "s1", 60_000)
            await watcher.wait_until_watching("s1")
            (project / "src" / "new.py").write_text("print('hi')", encoding="utf-8")
            (project / "NOTES.md").write_text("ignored", encoding="utf-8")
            for _ in range(200):
                if service.requests_to("POST", INCREMENTAL_PATH):
                    break
                await asyncio.sleep(0.02)
            await watcher.drain("s1")
            await watcher.aclose()

    asyncio.run(scenario())

    assert [sent["path"] for sent in _sent_files(service)] == ["src/new.py"]


def test_idle_session_closes_with_completed_event(
    cache: ScanCache, project: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(session_module, "MIN_SESSION_TIMEOUT_MS", 1)
    completed: list[JsonObject] = []

    async def scenario() -> str | None:
        async with httpx.AsyncClient() as http_client:
            watcher = _watcher(cache, http_client)
            watcher.events.on("completed", completed.append)
            assert watcher.security_assistant(project, "s1", 50)
            for _ in range(100):
                if completed:
                    break
                await asyncio.sleep(0.02)
            return watcher.status("s1")

    assert asyncio.run(scenario()) is None
    assert len(completed) == 1
    assert completed[0]["jobId"] == "s1"
    assert completed[0]["message"] == SESSION_CLOSED_MESSAGE
    assert completed[0]["data"]["sessionId"] == "s1"
    assert completed[0]["data"]["path"] == str(project.resolve())


def test_stop_security_assistant_returns_results(service: FakeScanService, cache: ScanCache, project: Path) -> None:
    service.add("DELETE", f"{INCREMENTAL_PATH}/s1", httpx.Response(200, json={"success": True}))
    service.add(
        "GET", f"{INCREMENTAL_PATH}/s1", httpx.Response(200, json={"success": True, "data": {"findings": []}})
    )

    async def scenario() -> tuple[JsonObject, str | None]:
        async with service.client() as http_client:
            watcher = _watcher(cache, http_client)
            assert watcher.security_assistant(project, "s1", 60_000)
            results = await watcher.stop_security_assistant("s1")
            return dict(results), watcher.status("s1")

    results, status = asyncio.run(scenario())

    assert results == {"success": True, "data": {"findings": []}}
    assert status is None


def test_unsuccessful_results_emit_error(service: FakeScanService, cache: ScanCache) -> None:
    service.add("DELETE", f"{INCREMENTAL_PATH}/s9", httpx.Response(200, json={"success": True}))
    service.add("GET", f"{INCREMENTAL_PATH}/s9", httpx.Response(404, json={"success": False, "error": "expired"}))
    errors: list[JsonObject] = []

    async def scenario() -> None:
        async with service.client() as http_client:
            watcher = _watcher(cache, http_client)
            watcher.events.on("error", errors.append)
            results = await watcher.stop_security_assistant("s9")
            assert results["success"] is False

    asyncio.run(scenario())

    assert len(errors) == 1
    assert errors[0]["message"] == "Failed to get incremental scan results: expired"


def test_starting_snapshot_is_taken_off_the_event_loop(
    cache: ScanCache, project: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    snapshot_threads: list[threading.Thread] = []
    real_take_snapshot = session_module.take_snapshot

    def recording_take_snapshot(root: Path) -> dict[str, tuple[int, int]]:
        snapshot_threads.append(threading.current_thread())
        return real_take_snapshot(root)

    monkeypatch.setattr(session_module, "take_snapshot", recording_take_snapshot)

    async def scenario() -> None:
        async with httpx.AsyncClient() as http_client:
            watcher = _watcher(cache, http_client)
            assert watcher.security_assistant(project, "s1", 60_000)
            assert snapshot_threads == []
            await watcher.wait_until_watching("s1")
            await watcher.aclose()

    asyncio.run(scenario())

    assert len(snapshot_threads) == 1
    assert snapshot_threads[0] is not threading.main_thread()
