from __future__ import annotations

import asyncio
import logging
from collections import defaultdict

from fastapi import WebSocket

logger = logging.getLogger(__name__)

OPTIMIZER_CHANNEL = "optimizer"


class NotificationHub:
    """Fans run events out to websocket subscribers of a channel.

    Search threads call ``publish_threadsafe``; delivery happens on the bound event loop
    so the caller never waits on a socket.
    """

    def __init__(self) -> None:
        self._connections: dict[str, set[WebSocket]] = defaultdict(set)
        self._lock = asyncio.Lock()
        self._loop: asyncio.AbstractEventLoop | None = None

    def bind_loop(self, loop: asyncio.AbstractEventLoop | None) -> None:
        self._loop = loop

    async def connect(self, channel: str, websocket: WebSocket) -> None:
        await websocket.accept()
        async with self._lock:
            self._connections[channel].add(websocket)

    async def disconnect(self, channel: str, websocket: WebSocket) -> None:
        async with self._lock:
            sockets = self._connections.get(channel)
            if not sockets:
                return
            sockets.discard(websocket)
            if not sockets:
                self._connections.pop(channel, None)

    async def publish(self, channel: str, payload: dict) -> None:
        async with self._lock:
            sockets = list(self._connections.get(channel, set()))

        if not sockets:
            return

        stale: list[WebSocket] = []
        for websocket in sockets:
            try:
                await websocket.send_json(payload)
            except Exception:  # pragma: no cover - network/runtime dependent
                stale.append(websocket)

        if stale:
            async with self._lock:
                active = self._connections.get(channel, set())
                for socket in stale:
                    active.discard(socket)
                if not active:
                    self._connections.pop(channel, None)
            logger.debug("Removed %d stale websocket(s) from channel %s", len(stale), channel)

    def publish_threadsafe(self, channel: str, payload: dict) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            logger.debug("NOTIFICATION DROPPED | channel=%s | event=%s | reason=no event loop", channel, payload.get("event"))
            return
        loop.call_soon_threadsafe(lambda: loop.create_task(self.publish(channel, payload)))


notification_hub = NotificationHub()
