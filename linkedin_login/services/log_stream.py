"""Live login log feed for the admin API.

Package log records are pushed to every connected ``GET /api/logs`` client as
server-sent events: ``data: {"timestamp": ..., "message": "[INFO] ..."}``.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime
from typing import AsyncGenerator, Optional

from fastapi.responses import StreamingResponse

from linkedin_login.utils.logging_config import PACKAGE_LOGGER


class LogHub:
    """Fans log lines out to subscriber queues. ``None`` on a queue means disconnect."""

    MAX_SUBSCRIBERS = 20

    def __init__(self) -> None:
        self._subscribers: list[tuple[asyncio.AbstractEventLoop, asyncio.Queue[Optional[dict]]]] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue[Optional[dict]]:
        if len(self._subscribers) >= self.MAX_SUBSCRIBERS:
            loop, oldest = self._subscribers.pop(0)
            self._send(loop, oldest, None)
        queue: asyncio.Queue[Optional[dict]] = asyncio.Queue(maxsize=200)
        self._subscribers.append((asyncio.get_running_loop(), queue))
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._subscribers = [(loop, q) for loop, q in self._subscribers if q is not queue]

    def publish(self, message: str) -> None:
        """Queue ``message`` for every subscriber. Safe to call from any thread."""
        payload = {"timestamp": datetime.now().isoformat(), "message": message}
        for loop, queue in list(self._subscribers):
            self._send(loop, queue, payload)

    def _send(self, loop: asyncio.AbstractEventLoop, queue: asyncio.Queue, payload: Optional[dict]) -> None:
        try:
            loop.call_soon_threadsafe(self._deliver, queue, payload)
        except RuntimeError:
            # Loop already closed.
            self.unsubscribe(queue)

    def _deliver(self, queue: asyncio.Queue, payload: Optional[dict]) -> None:
        try:
            queue.put_nowait(payload)
        except asyncio.QueueFull:
            # Slow client: drop it and end its stream.
            self.unsubscribe(queue)
            queue.get_nowait()
            queue.put_nowait(None)

    async def event_generator(
        self,
        queue: asyncio.Queue[Optional[dict]],
        heartbeat_interval: float = 30.0,
    ) -> AsyncGenerator[str, None]:
        try:
            while True:
                try:
                    payload = await asyncio.wait_for(queue.get(), timeout=heartbeat_interval)
                except asyncio.TimeoutError:
                    yield ": heartbeat\n\n"
                    continue
                if payload is None:
                    break
                yield f"data: {json.dumps(payload)}\n\n"
        finally:
            self.unsubscribe(queue)

    def create_response(self) -> StreamingResponse:
        queue = self.subscribe()
        return StreamingResponse(
            self.event_generator(queue),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    def disconnect_all(self) -> None:
        for loop, queue in list(self._subscribers):
            self._send(loop, queue, None)
        self._subscribers.clear()


class LogHubHandler(logging.Handler):
    def __init__(self, hub: LogHub):
        super().__init__()
        self.hub = hub

    def emit(self, record):
        try:
            self.hub.publish(f"[{record.levelname}] {self.format(record)}")
        except Exception:
            self.handleError(record)


def attach_log_hub(hub: LogHub) -> LogHubHandler:
    """Send package log records to ``hub`` alongside whatever else handles them."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    handler = LogHubHandler(hub)
    package_logger.addHandler(handler)
    if package_logger.getEffectiveLevel() > logging.INFO:
        package_logger.setLevel(logging.INFO)
    return handler


def detach_log_hub(handler: LogHubHandler) -> None:
    logging.getLogger(PACKAGE_LOGGER).removeHandler(handler)
    handler.hub.disconnect_all()
