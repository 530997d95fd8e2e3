from __future__ import annotations

from fastapi import APIRouter, Request, Response
from sse_starlette.sse import EventSourceResponse

from adminhub.api.schemas import (
    AppLiveData,
    AppLiveResponse,
    ApplicationData,
    ApplicationsResponse,
    DeployerHealthData,
    DeployerHealthResponse,
    HubHealthResponse,
    RunningServiceData,
    RunningServicesResponse,
    ServerHealthSummaryData,
    ServerHealthSummaryResponse,
)
from adminhub.clients.deployer import FetchError, FetchErrorKind
from adminhub.core.config import SSE_PING_SECONDS
from adminhub.core.models import DeploymentStatus
from adminhub.services.aggregator import MetricsAggregator
from adminhub.services.broadcast_hub import DEPLOYMENT_TOPICS, SERVER_TOPICS, BroadcastHub
from adminhub.services.registry import ApplicationRegistry

router = APIRouter(prefix="/api")

_STATUS_BY_KIND: dict[FetchErrorKind, int] = {
    FetchErrorKind.NOT_CONFIGURED: 404,
    FetchErrorKind.UNREACHABLE: 503,
    FetchErrorKind.UPSTREAM_ERROR: 502,
    FetchErrorKind.PARSE_FAILURE: 502,
}


def _hub(request: Request) -> BroadcastHub:
    return request.app.state.hub


def _aggregator(request: Request) -> MetricsAggregator:
    return request.app.state.aggregator


def _registry(request: Request) -> ApplicationRegistry:
    return request.app.state.registry


def _error_meta(response: Response, error: FetchError) -> dict[str, str]:
    response.status_code = _STATUS_BY_KIND.get(error.kind, 502)
    return {"error": error.kind.value, "message": error.message}


@router.get("/health")
def health(request: Request) -> HubHealthResponse:
    hub = _hub(request)
    return HubHealthResponse(
        ok=True,
        data={"status": "ok", "subscribers": hub.subscriber_count()},
        meta={},
    )


# ---------------------------------------------------------------------------
# Deployment
# ---------------------------------------------------------------------------


@router.get("/deployment/health")
async def deployment_health(request: Request) -> DeployerHealthResponse:
    healthy = await _aggregator(request).deployer_health()
    status = DeploymentStatus(healthy=healthy)
    return DeployerHealthResponse(
        ok=True,
        data=DeployerHealthData(healthy=healthy, message=status.message),
        meta={},
    )


@router.get("/deployment/applications")
async def applications(request: Request, response: Response) -> ApplicationsResponse:
    result = await _registry(request).list_applications()
    if not result.ok:
        return ApplicationsResponse(ok=False, data=[], meta=_error_meta(response, result.error))
    items = [ApplicationData.from_record(app) for app in result.value or []]
    return ApplicationsResponse(ok=True, data=items, meta={"count": len(items)})


@router.get("/deployment/applications/{application_name}/health")
async def application_live_status(
    application_name: str, request: Request, response: Response
) -> AppLiveResponse:
    result = await _aggregator(request).check_application(application_name)
    if not result.ok:
        return AppLiveResponse(
            ok=False,
            data=AppLiveData(
                application_name=application_name,
                live=False,
                message=result.error.message,
            ),
            meta=_error_meta(response, result.error),
        )
    live = bool(result.value)
    return AppLiveResponse(
        ok=True,
        data=AppLiveData(
            application_name=application_name,
            live=live,
            message="Application is live" if live else "Application is not responding",
        ),
        meta={},
    )


@router.get("/deployment/health/stream")
async def deployment_stream(request: Request) -> EventSourceResponse:
    hub = _hub(request)
    return EventSourceResponse(hub.open_stream(DEPLOYMENT_TOPICS), ping=SSE_PING_SECONDS)


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


@router.get("/server/services/status")
async def running_services(request: Request, response: Response) -> RunningServicesResponse:
    result = await _aggregator(request).fetch_running_services()
    if not result.ok:
        return RunningServicesResponse(ok=False, data=[], meta=_error_meta(response, result.error))
    items = [RunningServiceData.from_entry(s) for s in result.value or ()]
    return RunningServicesResponse(ok=True, data=items, meta={"count": len(items)})


@router.get("/server/health/summary")
async def server_health_summary(request: Request, response: Response) -> ServerHealthSummaryResponse:
    result = await _aggregator(request).fetch_resource_snapshot()
    if not result.ok:
        return ServerHealthSummaryResponse(ok=False, data=None, meta=_error_meta(response, result.error))
    return ServerHealthSummaryResponse(
        ok=True,
        data=ServerHealthSummaryData.from_snapshot(result.value),
        meta={},
    )


@router.get("/server/health/stream")
async def server_stream(request: Request) -> EventSourceResponse:
    hub = _hub(request)
    return EventSourceResponse(hub.open_stream(SERVER_TOPICS), ping=SSE_PING_SECONDS)
