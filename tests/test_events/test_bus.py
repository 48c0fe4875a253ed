import pytest

from minicrm.events.bus import EventBus
from minicrm.events.types import CompanyCreated


@pytest.mark.asyncio
async def test_publish_only_enqueues():
    bus = EventBus(retry_delay=0)
    received = []

    async def handler(event):
        received.append(event)

    bus.subscribe(CompanyCreated, handler)
    bus.publish(CompanyCreated(company_id=1, actor_id=1))

    assert received == []
    assert bus.pending == 1
    assert await bus.drain() == 1
    assert [e.company_id for e in received] == [1]
    assert bus.pending == 0


@pytest.mark.asyncio
async def test_failing_handler_is_retried():
    bus = EventBus(max_attempts=3, retry_delay=0)
    attempts = []

    async def flaky(event):
        attempts.append(event)
        if len(attempts) < 3:
            raise RuntimeError("temporary failure")

    bus.subscribe(CompanyCreated, flaky)
    bus.publish(CompanyCreated(company_id=7, actor_id=1))
    await bus.drain()

    assert len(attempts) == 3


@pytest.mark.asyncio
async def test_handler_that_keeps_failing_does_not_stop_others():
    bus = EventBus(max_attempts=2, retry_delay=0)
    calls = {"broken": 0, "healthy": 0}

    async def broken(event):
        calls["broken"] += 1
        raise RuntimeError("always fails")

    async def healthy(event):
        calls["healthy"] += 1

    bus.subscribe(CompanyCreated, broken)
    bus.subscribe(CompanyCreated, healthy)
    bus.publish(CompanyCreated(company_id=1, actor_id=1))
    bus.publish(CompanyCreated(company_id=2, actor_id=1))

    assert await bus.drain() == 2
    assert calls == {"broken": 4, "healthy": 2}


@pytest.mark.asyncio
async def test_unsubscribed_event_is_dropped():
    bus = EventBus(retry_delay=0)
    bus.publish(object())
    assert await bus.drain() == 1
