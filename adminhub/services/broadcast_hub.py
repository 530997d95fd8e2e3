from __future__ import annotations

import asyncio
import itertools
import json
import logging
import threading
import time
import uuid
from dataclasses import dataclass
from typing import Any, AsyncIterator, Iterable, Mapping

from adminhub.core.config import SSE_QUEUE_SIZE, SSE_RECONNECT_MS, SSE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

TOPIC_HEALTH = "health"
TOPIC_APP_STATUS = "appStatus"
TOPIC_SERVER_HEALTH = "serverHealth"

DEPLOYMENT_TOPICS: tuple[str, ...] = (TOPIC_HEALTH, TOPIC_APP_STATUS)
SERVER_TOPICS: tuple[str, ...] = (TOPIC_SERVER_HEALTH,)


@dataclass(frozen=True, slots=True)
class HubEvent:
    name: str
    id: str
    data: str
    retry: int

    def to_sse(self) -> dict[str, Any]:
        return {"event": self.name, "id": self.id, "data": self.data, "retry": self.retry}


class Subscriber:
    """One open stream: its topics, its pending events and its deadline.

    Events are buffered in a bounded queue so publishing never waits on the
    client; a full buffer means the client is not keeping up.
    """

    def __init__(
        self,
        topics: Iterable[str],
        *,
        queue_size: int,
        reconnect_ms: int,
        timeout_seconds: float,
    ) -> None:
        self.id = uuid.uuid4().hex
        self.topics = frozenset(topics)
        self.reconnect_ms = reconnect_ms
        self.deadline = time.monotonic() + timeout_seconds
        self.close_reason: str | None = None
        self._queue: asyncio.Queue[HubEvent | None] = asyncio.Queue(maxsize=queue_size)

    @property
    def closed(self) -> bool:
        return self.close_reason is not None

    def offer(self, event: HubEvent) -> bool:
        if self.closed:
            return False
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            return False
        return True

    def close(self, reason: str) -> None:
        if self.closed:
            return
        self.close_reason = reason
        try:
            # Wake a reader blocked on an empty queue. A full queue means the
            # reader is not blocked and will see the flag on its next pass.
            self._queue.put_nowait(None)
        except asyncio.QueueFull:
            pass

    async def next_event(self, timeout: float) -> HubEvent | None:
        if self.closed:
            return None
        try:
            event = await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
        if event is None or self.closed:
            return None
        return event


class BroadcastHub:
    """Fans published payloads out to every subscriber of a topic.

    Topic membership is held in immutable tuples that are swapped under a
    short lock, so publishing iterates a stable snapshot while subscribes and
    removals proceed concurrently.
    """

    def __init__(
        self,
        *,
        reconnect_ms: int = SSE_RECONNECT_MS,
        timeout_seconds: float = SSE_TIMEOUT_SECONDS,
        queue_size: int = SSE_QUEUE_SIZE,
    ) -> None:
        self.reconnect_ms = reconnect_ms
        self.timeout_seconds = timeout_seconds
        self.queue_size = queue_size
        self._topics: dict[str, tuple[Subscriber, ...]] = {}
        self._lock = threading.Lock()
        self._event_ids = itertools.count(1)

    def _next_event_id(self) -> int:
        with self._lock:
            return next(self._event_ids)

    def subscribe(self, topics: Iterable[str]) -> Subscriber:
        subscriber = Subscriber(
            topics,
            queue_size=self.queue_size,
            reconnect_ms=self.reconnect_ms,
            timeout_seconds=self.timeout_seconds,
        )
        with self._lock:
            for topic in subscriber.topics:
                self._topics[topic] = self._topics.get(topic, ()) + (subscriber,)
        logger.debug("Subscriber %s joined topics=%s", subscriber.id, sorted(subscriber.topics))
        return subscriber

    def unsubscribe(self, subscriber: Subscriber, reason: str = "closed") -> bool:
        """Remove ``subscriber`` from all of its topics.

        Safe to call any number of times from any path; only the first call
        removes and closes, later calls return False.
        """
        removed = False
        with self._lock:
            for topic in subscriber.topics:
                current = self._topics.get(topic, ())
                if subscriber not in current:
                    continue
                remaining = tuple(s for s in current if s is not subscriber)
                if remaining:
                    self._topics[topic] = remaining
                else:
                    self._topics.pop(topic, None)
                removed = True

        if removed:
            subscriber.close(reason)
            logger.debug("Subscriber %s removed reason=%s", subscriber.id, reason)
        return removed

    def publish(self, topic: str, payload: Mapping[str, Any]) -> int:
        """Queue ``payload`` for every subscriber of ``topic``; returns how many accepted it."""
        targets = self._topics.get(topic, ())
        if not targets:
            return 0

        event = HubEvent(
            name=topic,
            id=str(self._next_event_id()),
            data=json.dumps(payload, separators=(",", ":")),
            retry=self.reconnect_ms,
        )

        delivered = 0
        dead: list[Subscriber] = []
        for subscriber in targets:
            if subscriber.offer(event):
                delivered += 1
            else:
                dead.append(subscriber)

        for subscriber in dead:
            if self.unsubscribe(subscriber, reason="write_failed"):
                logger.warning("Dropped subscriber %s on %s: send buffer full", subscriber.id, topic)
        return delivered

    async def stream(self, subscriber: Subscriber) -> AsyncIterator[dict[str, Any]]:
        """Yield SSE-ready dicts for ``subscriber`` until it times out or goes away."""
        reason = "closed"
        try:
            while True:
                remaining = subscriber.deadline - time.monotonic()
                if remaining <= 0:
                    reason = "timeout"
                    break
                event = await subscriber.next_event(remaining)
                if event is None:
                    if subscriber.closed:
                        break
                    reason = "timeout"
                    break
                yield event.to_sse()
        except asyncio.CancelledError:
            reason = "disconnected"
            raise
        finally:
            self.unsubscribe(subscriber, reason=reason)

    async def open_stream(self, topics: Iterable[str]) -> AsyncIterator[dict[str, Any]]:
        """Subscribe on first iteration, so an unstarted response never registers."""
        subscriber = self.subscribe(topics)
        try:
            async for item in self.stream(subscriber):
                yield item
        finally:
            self.unsubscribe(subscriber, reason="closed")

    def subscriber_count(self, topic: str | None = None) -> int:
        if topic is not None:
            return len(self._topics.get(topic, ()))
        unique: set[str] = set()
        for subscribers in self._topics.values():
            unique.update(s.id for s in subscribers)
        return len(unique)

    def has_subscribers(self, topic: str) -> bool:
        return bool(self._topics.get(topic))

    def close_all(self, reason: str = "shutdown") -> None:
        with self._lock:
            targets = {s.id: s for subs in self._topics.values() for s in subs}
            self._topics.clear()
        for subscriber in targets.values():
            subscriber.close(reason)
