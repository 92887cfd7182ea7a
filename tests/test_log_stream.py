import asyncio
import json
import logging

import pytest

from linkedin_login.services.log_stream import LogHub, attach_log_hub, detach_log_hub
from linkedin_login.utils.logging_config import PACKAGE_LOGGER


async def collect(hub, queue):
    return [chunk async for chunk in hub.event_generator(queue, heartbeat_interval=1)]


@pytest.mark.asyncio
async def test_published_lines_reach_every_subscriber():
    hub = LogHub()
    first = hub.subscribe()
    second = hub.subscribe()

    hub.publish("[INFO] hello")
    hub.disconnect_all()

    for queue in (first, second):
        chunks = await asyncio.wait_for(collect(hub, queue), timeout=1)
        assert len(chunks) == 1
        assert chunks[0].startswith("data: ") and chunks[0].endswith("\n\n")
        payload = json.loads(chunks[0][len("data: "):])
        assert payload["message"] == "[INFO] hello"
        assert "timestamp" in payload
    assert hub.subscriber_count == 0


@pytest.mark.asyncio
async def test_unsubscribe_stops_delivery():
    hub = LogHub()
    queue = hub.subscribe()
    hub.unsubscribe(queue)

    hub.publish("ignored")
    await asyncio.sleep(0)

    assert queue.empty()


@pytest.mark.asyncio
async def test_package_log_records_are_streamed():
    hub = LogHub()
    queue = hub.subscribe()
    handler = attach_log_hub(hub)
    try:
        logging.getLogger(f"{PACKAGE_LOGGER}.services.login").warning("[a@example.com] Checkpoint detected")
    finally:
        detach_log_hub(handler)

    chunks = await asyncio.wait_for(collect(hub, queue), timeout=1)
    messages = [json.loads(c[len("data: "):])["message"] for c in chunks]
    assert messages == ["[WARNING] [a@example.com] Checkpoint detected"]
    assert handler not in logging.getLogger(PACKAGE_LOGGER).handlers


@pytest.mark.asyncio
async def test_publish_from_worker_thread():
    hub = LogHub()
    queue = hub.subscribe()

    await asyncio.to_thread(hub.publish, "from a thread")

    payload = await asyncio.wait_for(queue.get(), timeout=1)
    assert payload["message"] == "from a thread"


@pytest.mark.asyncio
async def test_oldest_subscriber_dropped_at_capacity(monkeypatch):
    monkeypatch.setattr(LogHub, "MAX_SUBSCRIBERS", 1)
    hub = LogHub()
    oldest = hub.subscribe()
    hub.subscribe()

    assert hub.subscriber_count == 1
    assert await asyncio.wait_for(oldest.get(), timeout=1) is None
