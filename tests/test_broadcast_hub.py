"""Tests for the SSE broadcast hub."""

import asyncio
import json

import pytest

from adminhub.services.broadcast_hub import (
    DEPLOYMENT_TOPICS,
    TOPIC_APP_STATUS,
    TOPIC_HEALTH,
    TOPIC_SERVER_HEALTH,
    BroadcastHub,
)


class TestSubscriptions:
    def test_publish_without_subscribers_is_noop(self):
        hub = BroadcastHub()
        assert hub.publish(TOPIC_SERVER_HEALTH, {"cpuUsage": 1.0}) == 0
        assert hub.subscriber_count() == 0

    def test_subscribe_registers_every_topic(self):
        hub = BroadcastHub()
        subscriber = hub.subscribe(DEPLOYMENT_TOPICS)
        assert hub.subscriber_count(TOPIC_HEALTH) == 1
        assert hub.subscriber_count(TOPIC_APP_STATUS) == 1
        assert hub.subscriber_count(TOPIC_SERVER_HEALTH) == 0
        assert hub.subscriber_count() == 1
        assert not subscriber.closed

    def test_unsubscribe_is_idempotent(self):
        hub = BroadcastHub()
        subscriber = hub.subscribe(DEPLOYMENT_TOPICS)

        assert hub.unsubscribe(subscriber, reason="closed") is True
        assert hub.unsubscribe(subscriber, reason="timeout") is False

        assert subscriber.close_reason == "closed"
        assert hub.subscriber_count() == 0
        assert not hub.has_subscribers(TOPIC_HEALTH)

    def test_unsubscribe_leaves_others(self):
        hub = BroadcastHub()
        first = hub.subscribe([TOPIC_SERVER_HEALTH])
        second = hub.subscribe([TOPIC_SERVER_HEALTH])
        hub.unsubscribe(first)
        assert hub.subscriber_count(TOPIC_SERVER_HEALTH) == 1
        assert hub.publish(TOPIC_SERVER_HEALTH, {}) == 1
        assert not second.closed

    def test_full_buffer_drops_only_that_subscriber(self):
        hub = BroadcastHub(queue_size=1)
        slow = hub.subscribe([TOPIC_SERVER_HEALTH])
        assert hub.publish(TOPIC_SERVER_HEALTH, {"n": 1}) == 1

        fast = hub.subscribe([TOPIC_SERVER_HEALTH])
        delivered = hub.publish(TOPIC_SERVER_HEALTH, {"n": 2})

        assert delivered == 1
        assert slow.close_reason == "write_failed"
        assert not fast.closed
        assert hub.subscriber_count(TOPIC_SERVER_HEALTH) == 1

    def test_close_all(self):
        hub = BroadcastHub()
        subscribers = [hub.subscribe(DEPLOYMENT_TOPICS) for _ in range(3)]
        hub.close_all()
        assert hub.subscriber_count() == 0
        assert all(s.close_reason == "shutdown" for s in subscribers)


class TestStream:
    @pytest.mark.asyncio
    async def test_events_carry_reconnect_hint_in_order(self):
        hub = BroadcastHub(reconnect_ms=1000)
        subscriber = hub.subscribe(DEPLOYMENT_TOPICS)
        stream = hub.stream(subscriber)

        hub.publish(TOPIC_HEALTH, {"healthy": True})
        hub.publish(TOPIC_APP_STATUS, {"appStatuses": {"shop": True}})

        first = await stream.__anext__()
        second = await stream.__anext__()

        assert first["event"] == TOPIC_HEALTH
        assert first["retry"] == 1000
        assert json.loads(first["data"]) == {"healthy": True}
        assert first["id"].isdigit()
        assert second["event"] == TOPIC_APP_STATUS
        assert json.loads(second["data"]) == {"appStatuses": {"shop": True}}

        hub.unsubscribe(subscriber)
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_back_to_back_events_get_distinct_increasing_ids(self):
        hub = BroadcastHub()
        subscriber = hub.subscribe(DEPLOYMENT_TOPICS)
        stream = hub.stream(subscriber)

        for _ in range(3):
            hub.publish(TOPIC_HEALTH, {"healthy": True})
            hub.publish(TOPIC_APP_STATUS, {"appStatuses": {}})

        ids = [int((await stream.__anext__())["id"]) for _ in range(6)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 6

        hub.unsubscribe(subscriber)
        await stream.aclose()

    @pytest.mark.asyncio
    async def test_stream_times_out_and_unsubscribes(self):
        hub = BroadcastHub(timeout_seconds=0.05)
        subscriber = hub.subscribe([TOPIC_SERVER_HEALTH])

        items = [item async for item in hub.stream(subscriber)]

        assert items == []
        assert subscriber.close_reason == "timeout"
        assert hub.subscriber_count() == 0

    @pytest.mark.asyncio
    async def test_removal_wakes_waiting_stream(self):
        hub = BroadcastHub()
        subscriber = hub.subscribe([TOPIC_SERVER_HEALTH])

        async def consume():
            return [item async for item in hub.stream(subscriber)]

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        hub.unsubscribe(subscriber, reason="closed")
        items = await asyncio.wait_for(task, timeout=1.0)

        assert items == []
        assert subscriber.close_reason == "closed"

    @pytest.mark.asyncio
    async def test_cancelled_stream_unsubscribes(self):
        hub = BroadcastHub()
        subscriber = hub.subscribe([TOPIC_SERVER_HEALTH])

        async def consume():
            async for _ in hub.stream(subscriber):
                pass

        task = asyncio.create_task(consume())
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert subscriber.close_reason == "disconnected"
        assert hub.subscriber_count() == 0

    @pytest.mark.asyncio
    async def test_open_stream_subscribes_lazily(self):
        hub = BroadcastHub()
        stream = hub.open_stream([TOPIC_SERVER_HEALTH])
        assert hub.subscriber_count() == 0

        async def first_item():
            return await stream.__anext__()

        task = asyncio.create_task(first_item())
        await asyncio.sleep(0.01)
        assert hub.subscriber_count(TOPIC_SERVER_HEALTH) == 1

        hub.publish(TOPIC_SERVER_HEALTH, {"cpuUsage": 3.5})
        item = await asyncio.wait_for(task, timeout=1.0)
        assert json.loads(item["data"]) == {"cpuUsage": 3.5}
        await stream.aclose()
        assert hub.subscriber_count() == 0
