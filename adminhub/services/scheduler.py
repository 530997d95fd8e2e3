from __future__ import annotations

import asyncio
import logging
import time
from contextlib import suppress
from typing import Awaitable, Callable

from adminhub.core.config import POLL_INTERVAL_SECONDS
from adminhub.services.aggregator import MetricsAggregator
from adminhub.services.broadcast_hub import (
    TOPIC_APP_STATUS,
    TOPIC_HEALTH,
    TOPIC_SERVER_HEALTH,
    BroadcastHub,
)

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class PeriodicTask:
    """Runs ``tick`` at a fixed rate without ever overlapping two runs.

    Each due tick is started as its own task. If the previous run is still in
    flight the due tick is skipped rather than queued.
    """

    def __init__(
        self,
        name: str,
        tick: Callable[[], Awaitable[None]],
        interval_seconds: float,
    ) -> None:
        self.name = name
        self._tick = tick
        self._interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None
        self._inflight: asyncio.Task[None] | None = None
        self.runs = 0
        self.skipped = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name=f"poll-{self.name}")

    async def stop(self) -> None:
        for task in (self._task, self._inflight):
            if task is None:
                continue
            task.cancel()
            with suppress(asyncio.CancelledError):
                await task
        self._task = None
        self._inflight = None

    def trigger(self) -> bool:
        """Start a run now unless one is already in flight."""
        if self._inflight is not None and not self._inflight.done():
            self.skipped += 1
            logger.debug("Skipping %s tick: previous run still in progress", self.name)
            return False
        self.runs += 1
        self._inflight = asyncio.create_task(self._guarded_tick(), name=f"tick-{self.name}")
        return True

    async def _guarded_tick(self) -> None:
        try:
            await self._tick()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Scheduled %s tick failed", self.name)

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_due = loop.time()
        while True:
            self.trigger()
            next_due += self._interval_seconds
            now = loop.time()
            if next_due < now:
                # The loop itself fell behind; realign instead of bursting.
                next_due = now + self._interval_seconds
            await asyncio.sleep(next_due - now)


class PollScheduler:
    def __init__(
        self,
        aggregator: MetricsAggregator,
        hub: BroadcastHub,
        interval_seconds: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        self._aggregator = aggregator
        self._hub = hub
        self.deployment_task = PeriodicTask(
            "deployment-status", self.broadcast_deployment_status, interval_seconds
        )
        self.server_task = PeriodicTask(
            "server-health", self.broadcast_server_health, interval_seconds
        )

    def start(self) -> None:
        self.deployment_task.start()
        self.server_task.start()

    async def stop(self) -> None:
        await self.deployment_task.stop()
        await self.server_task.stop()

    async def broadcast_deployment_status(self) -> None:
        status = await self._aggregator.collect_deployment_status()

        self._hub.publish(
            TOPIC_HEALTH,
            {"healthy": status.healthy, "message": status.message, "timestamp": _now_ms()},
        )
        self._hub.publish(
            TOPIC_APP_STATUS,
            {"appStatuses": dict(status.liveness), "timestamp": _now_ms()},
        )

    async def broadcast_server_health(self) -> None:
        server = await self._aggregator.collect_server_health()
        message = server.snapshot.to_summary()
        message["runningServices"] = [s.to_dict() for s in server.services]
        message["timestamp"] = _now_ms()
        delivered = self._hub.publish(TOPIC_SERVER_HEALTH, message)
        logger.debug("serverHealth delivered to %d subscriber(s)", delivered)
