from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Mapping, TypeVar

from adminhub.clients.deployer import DeployerClient, FetchErrorKind, FetchResult
from adminhub.core.config import CPU_SAMPLE_ROW
from adminhub.core.models import (
    DeploymentStatus,
    ResourceSnapshot,
    RunningServiceEntry,
    ServerHealth,
    liveness_map,
)
from adminhub.parsers import (
    parse_cpu_usage,
    parse_disk,
    parse_load_average,
    parse_memory,
    parse_running_services,
    parse_uptime,
)
from adminhub.services.registry import ApplicationRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MetricsAggregator:
    """Builds one consistent view of the deployer and its host per poll cycle.

    Each remote call is independent: a failure zeroes only the part of the
    result it feeds, everything else is still filled in.
    """

    def __init__(
        self,
        client: DeployerClient,
        registry: ApplicationRegistry | None = None,
        *,
        cpu_sample_row: int | None = CPU_SAMPLE_ROW,
    ) -> None:
        self._client = client
        self._registry = registry or ApplicationRegistry(client)
        self._cpu_sample_row = cpu_sample_row

    async def _safe_collect(self, name: str, aw: Awaitable[T], default: T) -> T:
        try:
            return await aw
        except Exception:
            logger.exception("Collector failed: %s", name)
            return default

    async def deployer_health(self) -> bool:
        result = await self._client.health()
        if not result.ok:
            logger.error("Deployer health check failed: %s", result.error.message)
        return result.ok

    async def _check_one(self, name: str, url: str) -> bool:
        result = await self._client.check_url(url)
        if not result.ok:
            logger.warning("Application %s is not live: %s", name, result.error.message)
        return result.ok

    async def app_liveness(self) -> Mapping[str, bool]:
        targets = await self._registry.liveness_targets()
        if not targets.ok:
            return liveness_map({})

        names = list(targets.value or {})
        checks = [
            self._safe_collect(f"liveness:{name}", self._check_one(name, targets.value[name]), False)
            for name in names
        ]
        results = await asyncio.gather(*checks)
        return liveness_map(dict(zip(names, results)))

    async def check_application(self, name: str) -> FetchResult[bool]:
        """Live check for one application, distinguishing unknown apps from dead ones."""
        app = await self._registry.get(name)
        if not app.ok:
            return FetchResult.failure(app.error.kind, app.error.message)
        if not app.value.has_liveness_url:
            return FetchResult.failure(
                FetchErrorKind.NOT_CONFIGURED, f"application {name!r} has no URL configured"
            )
        live = await self._check_one(name, app.value.application_url.strip())
        return FetchResult.success(live)

    async def fetch_resource_snapshot(self) -> FetchResult[ResourceSnapshot]:
        result = await self._client.get_health_summary_blocks()
        if not result.ok:
            logger.error("Failed to fetch server health summary: %s", result.error.message)
            return FetchResult.failure(result.error.kind, result.error.message)
        return FetchResult.success(self._build_snapshot(result.value or {}))

    async def resource_snapshot(self) -> ResourceSnapshot:
        """Snapshot for broadcasting; an upstream failure yields the zero snapshot."""
        result = await self.fetch_resource_snapshot()
        return result.value_or(ResourceSnapshot())

    def _build_snapshot(self, blocks: Mapping[str, Any]) -> ResourceSnapshot:
        memory = parse_memory(blocks.get("memory"))
        disk = parse_disk(blocks.get("disk"))
        uptime_text = blocks.get("load_average")
        return ResourceSnapshot(
            cpu_usage=parse_cpu_usage(blocks.get("cpu"), row=self._cpu_sample_row),
            memory_usage=memory.percent,
            total_memory=memory.total,
            used_memory=memory.used,
            disk_usage=disk.percent,
            total_disk=disk.total,
            used_disk=disk.used,
            uptime=parse_uptime(uptime_text),
            load_average=parse_load_average(uptime_text),
        )

    async def fetch_running_services(self) -> FetchResult[tuple[RunningServiceEntry, ...]]:
        result = await self._client.get_running_services_text()
        if not result.ok:
            logger.error("Failed to fetch running services: %s", result.error.message)
            return FetchResult.failure(result.error.kind, result.error.message)
        return FetchResult.success(tuple(parse_running_services(result.value)))

    async def running_services(self) -> tuple[RunningServiceEntry, ...]:
        result = await self.fetch_running_services()
        return result.value_or(())

    async def collect_deployment_status(self) -> DeploymentStatus:
        healthy, liveness = await asyncio.gather(
            self._safe_collect("deployer_health", self.deployer_health(), False),
            self._safe_collect("app_liveness", self.app_liveness(), liveness_map({})),
        )
        return DeploymentStatus(healthy=healthy, liveness=liveness)

    async def collect_server_health(self) -> ServerHealth:
        snapshot, services = await asyncio.gather(
            self._safe_collect("resource_snapshot", self.resource_snapshot(), ResourceSnapshot()),
            self._safe_collect("running_services", self.running_services(), ()),
        )
        logger.info(
            "server health cpu=%.1f mem=%.1f disk=%.1f load=%.2f services=%d",
            snapshot.cpu_usage,
            snapshot.memory_usage,
            snapshot.disk_usage,
            snapshot.load_average,
            len(services),
        )
        return ServerHealth(snapshot=snapshot, services=services)
