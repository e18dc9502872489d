"""Named event channels used to publish scan lifecycle events.

Each component (gateway, stream listener, session watcher, client) owns one
``EventChannel``. Components never share handler lists: a downstream channel
is connected with ``forward_to``, which re-publishes every event with the
same payload object.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from typing import TypeAlias

from vulnzap.constants.events import EVENT_KINDS
from vulnzap.model import ClientEvent
from vulnzap.types import EventKind, JsonObject

logger = logging.getLogger(__name__)

EventHandler: TypeAlias = Callable[[JsonObject], None]


class EventChannel:
    """Synchronous publish/subscribe channel for ``update``/``completed``/``error``."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: dict[str, list[EventHandler]] = {kind: [] for kind in EVENT_KINDS}
        self._queues: list[asyncio.Queue[ClientEvent]] = []
        self._forwards: list[EventChannel] = []

    def on(self, kind: EventKind, handler: EventHandler) -> Callable[[], None]:
        """Register ``handler`` for ``kind`` and return a function that removes it."""
        self._check_kind(kind)
        self._handlers[kind].append(handler)

        def unsubscribe() -> None:
            self.off(kind, handler)

        return unsubscribe

    def off(self, kind: EventKind, handler: EventHandler) -> None:
        self._check_kind(kind)
        handlers = self._handlers[kind]
        if handler in handlers:
            handlers.remove(handler)

    def forward_to(self, downstream: EventChannel) -> None:
        """Re-publish every event emitted here on ``downstream``."""
        if downstream is self:
            raise ValueError("an event channel cannot forward to itself")
        self._forwards.append(downstream)

    def emit(self, kind: EventKind, payload: JsonObject) -> None:
        """Deliver ``payload`` to handlers, stream subscribers and forwarded channels."""
        self._check_kind(kind)
        logger.debug("%s emitted %s", self.name, kind)

        for handler in list(self._handlers[kind]):
            try:
                handler(payload)
            except Exception:
                logger.exception("Event handler for %s on %s raised", kind, self.name)

        if self._queues:
            event = ClientEvent(kind=kind, payload=payload)
            for queue in list(self._queues):
                queue.put_nowait(event)

        for downstream in self._forwards:
            downstream.emit(kind, payload)

    async def stream(self) -> AsyncIterator[ClientEvent]:
        """Yield every event emitted after iteration starts.

        The subscription is dropped when the consuming ``async for`` exits.
        """
        queue: asyncio.Queue[ClientEvent] = asyncio.Queue()
        self._queues.append(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues.remove(queue)

    def _check_kind(self, kind: str) -> None:
        if kind not in EVENT_KINDS:
            raise ValueError(f"Unknown event kind {kind!r}; expected one of {sorted(EVENT_KINDS)}")
