"""Tests for event channels and forwarding."""

from __future__ import annotations

import asyncio

import pytest

from vulnzap.events import EventChannel
from vulnzap.model import ClientEvent
from vulnzap.types import JsonObject


def test_handlers_receive_payload_until_unsubscribed() -> None:
    channel = EventChannel("test")
    seen: list[JsonObject] = []
    unsubscribe = channel.on("update", seen.append)

    channel.emit("update", {"n": 1})
    unsubscribe()
    channel.emit("update", {"n": 2})

    assert seen == [{"n": 1}]


def test_forwarded_events_keep_the_same_payload_object() -> None:
    upstream = EventChannel("upstream")
    downstream = EventChannel("downstream")
    upstream.forward_to(downstream)
    seen: list[JsonObject] = []
    downstream.on("error", seen.append)
    payload: JsonObject = {"jobId": "j1", "message": "boom"}

    upstream.emit("error", payload)

    assert len(seen) == 1
    assert seen[0] is payload


def test_failing_handler_does_not_block_others() -> None:
    channel = EventChannel("test")
    seen: list[JsonObject] = []

    def explode(payload: JsonObject) -> None:
        raise RuntimeError("handler failure")

    channel.on("completed", explode)
    channel.on("completed", seen.append)

    channel.emit("completed", {"jobId": "j1"})

    assert seen == [{"jobId": "j1"}]


def test_unknown_event_kind_is_rejected() -> None:
    channel = EventChannel("test")

    with pytest.raises(ValueError, match="Unknown event kind"):
        channel.on("progress", lambda payload: None)  # type: ignore[arg-type]
    with pytest.raises(ValueError):
        channel.forward_to(channel)


def test_stream_yields_events_emitted_while_iterating() -> None:
    async def scenario() -> list[ClientEvent]:
        channel = EventChannel("test")
        received: list[ClientEvent] = []

        async def consume() -> None:
            async for event in channel.stream():
                received.append(event)
                if event.kind == "completed":
                    return

        consumer = asyncio.create_task(consume())
        await asyncio.sleep(0)
        channel.emit("update", {"n": 1})
        channel.emit("completed", {"n": 2})
        await asyncio.wait_for(consumer, timeout=1)
        return received

    received = asyncio.run(scenario())

    assert [event.kind for event in received] == ["update", "completed"]
    assert received[1].payload == {"n": 2}
