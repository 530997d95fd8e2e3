from __future__ import annotations

import logging

from adminhub.clients.deployer import DeployerClient, FetchErrorKind, FetchResult
from adminhub.core.models import ApplicationRecord

logger = logging.getLogger(__name__)


class ApplicationRegistry:
    """Applications configured on the deployer, fetched fresh on every call."""

    def __init__(self, client: DeployerClient) -> None:
        self._client = client

    async def list_applications(self) -> FetchResult[list[ApplicationRecord]]:
        result = await self._client.get_applications()
        if not result.ok:
            logger.error("Failed to fetch application registry: %s", result.error.message)
        return result

    async def get(self, name: str) -> FetchResult[ApplicationRecord]:
        result = await self.list_applications()
        if not result.ok:
            return FetchResult.failure(result.error.kind, result.error.message)
        for app in result.value or []:
            if app.name == name:
                return FetchResult.success(app)
        return FetchResult.failure(FetchErrorKind.NOT_CONFIGURED, f"application {name!r} is not configured")

    async def liveness_targets(self) -> FetchResult[dict[str, str]]:
        """Application name -> liveness URL, skipping apps without a URL."""
        result = await self.list_applications()
        if not result.ok:
            return FetchResult.failure(result.error.kind, result.error.message)
        targets: dict[str, str] = {}
        for app in result.value or []:
            if app.has_liveness_url:
                targets[app.name] = app.application_url.strip()
        return FetchResult.success(targets)
