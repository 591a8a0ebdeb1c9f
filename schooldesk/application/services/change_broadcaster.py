"""Change broadcaster: in-process fan-out of store events to UI listeners."""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator, Callable
from typing import Any

logger = logging.getLogger(__name__)

RECORDS_CHANGED = "records_changed"
STORE_ERROR = "store_error"

Listener = Callable[[str, dict[str, Any]], None]


class ChangeBroadcaster:
    """Notifies listeners after every resync or mutation, and on errors.

    ``records_changed`` carries no payload: listeners re-pull through the
    store. ``store_error`` carries the user-facing ``message``.

    Two kinds of consumers are supported: plain callbacks registered with
    ``add_listener`` and SSE clients, each of which gets its own
    asyncio.Queue through ``subscribe``.
    """

    def __init__(self, max_queue_size: int = 100) -> None:
        self._queues: list[asyncio.Queue[str | None]] = []
        self._listeners: list[Listener] = []
        self._max_queue_size = max_queue_size

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def subscribe(self) -> AsyncGenerator[str, None]:
        """Subscribe to SSE events. Yields formatted SSE strings.

        The generator automatically unsubscribes when the client disconnects.
        """
        queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=self._max_queue_size)
        self._queues.append(queue)
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield event
        finally:
            if queue in self._queues:
                self._queues.remove(queue)

    async def publish(self, event_type: str, data: dict[str, Any] | None = None) -> None:
        """Deliver an event to every listener and SSE client."""
        payload = data or {}
        for listener in list(self._listeners):
            try:
                listener(event_type, payload)
            except Exception:
                logger.exception("Change listener failed for %s", event_type)

        sse_message = f"event: {event_type}\ndata: {json.dumps(payload)}\n\n"
        dead_queues: list[asyncio.Queue[str | None]] = []

        for queue in self._queues:
            try:
                queue.put_nowait(sse_message)
            except asyncio.QueueFull:
                dead_queues.append(queue)
                logger.warning("SSE client queue full, disconnecting")

        for q in dead_queues:
            self._queues.remove(q)
            _close(q)

    async def shutdown(self) -> None:
        """Disconnect all connected clients."""
        for queue in self._queues:
            _close(queue)
        self._queues.clear()

    @property
    def client_count(self) -> int:
        return len(self._queues)


def _close(queue: asyncio.Queue[str | None]) -> None:
    """Drop pending events so the close marker always fits."""
    while not queue.empty():
        queue.get_nowait()
    queue.put_nowait(None)
