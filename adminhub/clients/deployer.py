"""Async client for the deployer service.

Every call returns a :class:`FetchResult` instead of raising, so callers can
tell an unreachable deployer apart from a missing configuration or a payload
they could not understand.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Generic, Mapping, TypeVar

import httpx

from adminhub.core.config import (
    DEPLOYER_API_KEY,
    DEPLOYER_API_KEY_HEADER,
    DEPLOYER_BASE_URL,
    DEPLOYER_TIMEOUT_SECONDS,
    LIVENESS_TIMEOUT_SECONDS,
)
from adminhub.core.models import ApplicationRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

HEALTH_PATH = "/health"
CONFIGURATION_PATH = "/api/v1/configuration"
SERVICES_STATUS_PATH = "/api/v1/server/services/status"
HEALTH_SUMMARY_PATH = "/api/v1/server/health/summary"

RUNNING_SERVICES_KEY = "running services"
SUMMARY_KEYS: tuple[str, ...] = ("cpu", "memory", "disk", "load_average")


class FetchErrorKind(str, enum.Enum):
    UNREACHABLE = "unreachable"
    UPSTREAM_ERROR = "upstream_error"
    NOT_CONFIGURED = "not_configured"
    PARSE_FAILURE = "parse_failure"


@dataclass(frozen=True, slots=True)
class FetchError:
    kind: FetchErrorKind
    message: str


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    value: T | None = None
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, default: T) -> T:
        if self.error is not None or self.value is None:
            return default
        return self.value

    @classmethod
    def success(cls, value: T) -> "FetchResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: FetchErrorKind, message: str) -> "FetchResult[T]":
        return cls(error=FetchError(kind=kind, message=message))


class DeployerClient:
    """Thin async wrapper around the deployer REST API.

    One :class:`httpx.AsyncClient` is shared by all calls; call :meth:`aclose`
    on shutdown.
    """

    def __init__(
        self,
        base_url: str | None = DEPLOYER_BASE_URL,
        api_key: str | None = DEPLOYER_API_KEY,
        *,
        timeout: float = DEPLOYER_TIMEOUT_SECONDS,
        liveness_timeout: float = LIVENESS_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or "").rstrip("/")
        self.api_key = api_key
        self.liveness_timeout = liveness_timeout
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "DeployerClient":
        return self

    async def __aexit__(self, *_: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------ #
    # Deployer endpoints
    # ------------------------------------------------------------------ #

    async def health(self) -> FetchResult[bool]:
        """GET /health; success means any 2xx answer."""
        result = await self._request(HEALTH_PATH)
        if not result.ok:
            return FetchResult.failure(result.error.kind, result.error.message)
        return FetchResult.success(True)

    async def get_applications(self) -> FetchResult[list[ApplicationRecord]]:
        result = await self._get_json(CONFIGURATION_PATH)
        if not result.ok:
            return FetchResult.failure(result.error.kind, result.error.message)

        body = result.value
        apps: Any = body
        if isinstance(body, Mapping) and "success" in body:
            if body.get("success") is False:
                return FetchResult.failure(
                    FetchErrorKind.UPSTREAM_ERROR, "deployer reported success=false"
                )
            data = body.get("data")
            apps = data.get("applications") if isinstance(data, Mapping) else None
        if apps is None:
            return FetchResult.success([])
        if not isinstance(apps, Mapping):
            return FetchResult.failure(
                FetchErrorKind.PARSE_FAILURE, "applications is not an object"
            )

        records = [
            ApplicationRecord.from_config(str(name), config)
            for name, config in apps.items()
            if isinstance(config, Mapping)
        ]
        return FetchResult.success(records)

    async def get_running_services_text(self) -> FetchResult[str]:
        result = await self._get_data(SERVICES_STATUS_PATH)
        if not result.ok:
            return FetchResult.failure(result.error.kind, result.error.message)
        text = result.value.get(RUNNING_SERVICES_KEY)
        if not isinstance(text, str):
            return FetchResult.failure(
                FetchErrorKind.PARSE_FAILURE, f"missing {RUNNING_SERVICES_KEY!r} text"
            )
        return FetchResult.success(text)

    async def get_health_summary_blocks(self) -> FetchResult[dict[str, str | None]]:
        """Raw text blocks keyed by cpu/memory/disk/load_average.

        Blocks that are missing or not strings come back as None.
        """
        result = await self._get_data(HEALTH_SUMMARY_PATH)
        if not result.ok:
            return FetchResult.failure(result.error.kind, result.error.message)
        data = result.value
        blocks: dict[str, str | None] = {}
        for key in SUMMARY_KEYS:
            value = data.get(key)
            blocks[key] = value if isinstance(value, str) else None
        return FetchResult.success(blocks)

    # ------------------------------------------------------------------ #
    # Application liveness
    # ------------------------------------------------------------------ #

    async def check_url(self, url: str) -> FetchResult[bool]:
        """Plain GET against an application URL, without deployer credentials."""
        try:
            response = await self._client.get(url, timeout=self.liveness_timeout)
        except httpx.InvalidURL as exc:
            return FetchResult.failure(FetchErrorKind.NOT_CONFIGURED, f"{url!r}: {exc}")
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            return FetchResult.failure(FetchErrorKind.UNREACHABLE, f"{url}: {exc}")
        except httpx.HTTPError as exc:
            return FetchResult.failure(FetchErrorKind.UPSTREAM_ERROR, f"{url}: {exc}")
        if not response.is_success:
            return FetchResult.failure(
                FetchErrorKind.UPSTREAM_ERROR, f"{url} returned {response.status_code}"
            )
        return FetchResult.success(True)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers[DEPLOYER_API_KEY_HEADER] = self.api_key
        return headers

    async def _request(self, path: str) -> FetchResult[httpx.Response]:
        if not self.base_url:
            return FetchResult.failure(
                FetchErrorKind.NOT_CONFIGURED, "deployer base URL is not configured"
            )
        url = f"{self.base_url}{path}"
        try:
            response = await self._client.get(url, headers=self._headers())
        except httpx.InvalidURL as exc:
            return FetchResult.failure(FetchErrorKind.NOT_CONFIGURED, f"{url!r}: {exc}")
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            logger.error("Cannot reach deployer at %s: %s", url, exc)
            return FetchResult.failure(FetchErrorKind.UNREACHABLE, f"{url}: {exc}")
        except httpx.HTTPError as exc:
            logger.error("Request to deployer failed %s: %s", url, exc)
            return FetchResult.failure(FetchErrorKind.UPSTREAM_ERROR, f"{url}: {exc}")

        if not response.is_success:
            logger.error("Deployer %s returned %s", url, response.status_code)
            return FetchResult.failure(
                FetchErrorKind.UPSTREAM_ERROR, f"{url} returned {response.status_code}"
            )
        return FetchResult.success(response)

    async def _get_json(self, path: str) -> FetchResult[Any]:
        result = await self._request(path)
        if not result.ok:
            return FetchResult.failure(result.error.kind, result.error.message)
        try:
            return FetchResult.success(result.value.json())
        except ValueError as exc:
            logger.error("Deployer %s returned invalid JSON: %s", path, exc)
            return FetchResult.failure(FetchErrorKind.PARSE_FAILURE, f"invalid JSON from {path}")

    async def _get_data(self, path: str) -> FetchResult[Mapping[str, Any]]:
        """Unwrap the deployer's ``{"success": true, "data": {...}}`` envelope."""
        result = await self._get_json(path)
        if not result.ok:
            return FetchResult.failure(result.error.kind, result.error.message)
        body = result.value
        if not isinstance(body, Mapping):
            return FetchResult.failure(FetchErrorKind.PARSE_FAILURE, f"{path}: body is not an object")
        if body.get("success") is not True:
            return FetchResult.failure(FetchErrorKind.UPSTREAM_ERROR, f"{path}: success is not true")
        data = body.get("data")
        if not isinstance(data, Mapping):
            return FetchResult.failure(FetchErrorKind.PARSE_FAILURE, f"{path}: data is not an object")
        return FetchResult.success(data)
