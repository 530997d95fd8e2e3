from __future__ import annotations

import logging

from fastapi import FastAPI

from adminhub.api.routes import router as api_router
from adminhub.clients.deployer import DeployerClient
from adminhub.core.config import APP_NAME, DEPLOYER_BASE_URL, POLL_INTERVAL_SECONDS
from adminhub.core.logging import setup_logging
from adminhub.services.aggregator import MetricsAggregator
from adminhub.services.broadcast_hub import BroadcastHub
from adminhub.services.registry import ApplicationRegistry
from adminhub.services.scheduler import PollScheduler

setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title=APP_NAME)
app.include_router(api_router)
app.state.hub = BroadcastHub()
app.state.client = DeployerClient()
app.state.registry = ApplicationRegistry(app.state.client)
app.state.aggregator = MetricsAggregator(app.state.client, app.state.registry)


@app.on_event("startup")
async def on_startup() -> None:
    scheduler = PollScheduler(
        aggregator=app.state.aggregator,
        hub=app.state.hub,
        interval_seconds=POLL_INTERVAL_SECONDS,
    )
    scheduler.start()
    app.state.scheduler = scheduler
    logger.info("%s started deployer=%s interval=%ss", APP_NAME, DEPLOYER_BASE_URL, POLL_INTERVAL_SECONDS)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    scheduler: PollScheduler | None = getattr(app.state, "scheduler", None)
    if scheduler is not None:
        await scheduler.stop()
    hub: BroadcastHub | None = getattr(app.state, "hub", None)
    if hub is not None:
        hub.close_all()
    client: DeployerClient | None = getattr(app.state, "client", None)
    if client is not None:
        await client.aclose()
    logger.info("%s stopped", APP_NAME)
