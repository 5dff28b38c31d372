"""delay-sentinel — weather-triggered delay detection for construction sites.

This is the application entry point.  It wires the WeatherClient,
repository, lifecycle tracker, dispatcher and MonitorOrchestrator together
and exposes them over HTTP.  Every component is constructed here and
passed down explicitly; nothing below this module reaches for a global.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from delay_sentinel.api.monitor import create_monitor_router
from delay_sentinel.api.sites import create_sites_router
from delay_sentinel.api.weather import create_weather_router
from delay_sentinel.config import settings
from delay_sentinel.core.cost import CostCalculator
from delay_sentinel.core.lifecycle import DelayLifecycleTracker
from delay_sentinel.core.monitor import MonitorOrchestrator
from delay_sentinel.notify.dispatcher import NotificationDispatcher
from delay_sentinel.notify.webhook import LoggingSink, WebhookSink
from delay_sentinel.store.repository import InMemoryDelayRepository
from delay_sentinel.weather.client import WeatherClient

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

# ── Weather Source ───────────────────────────────────────────────────────────

weather_client = WeatherClient(
    base_url=settings.noaa_base_url,
    user_agent=settings.noaa_user_agent,
    timeout=settings.request_timeout_seconds,
    max_station_distance_miles=settings.max_station_distance_miles,
)

# ── State ────────────────────────────────────────────────────────────────────

repository = InMemoryDelayRepository()

# ── Notifications ────────────────────────────────────────────────────────────

if settings.webhook_url:
    sink: WebhookSink | LoggingSink = WebhookSink(
        settings.webhook_url,
        auth_token=settings.webhook_auth_token,
        timeout=settings.request_timeout_seconds,
    )
else:
    sink = LoggingSink()

dispatcher = NotificationDispatcher(
    repository,
    sink,
    notify_continuing=settings.notify_continuing,
)

# ── Engine ───────────────────────────────────────────────────────────────────

tracker = DelayLifecycleTracker(
    repository,
    cost_calculator=CostCalculator(shift_hours=settings.shift_hours),
)

orchestrator = MonitorOrchestrator(
    repository,
    weather_client,
    tracker,
    dispatcher,
    max_concurrency=settings.max_concurrency,
)

# ── App ──────────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    await weather_client.close()
    await sink.close()


app = FastAPI(
    title=settings.app_name,
    description="Weather-triggered delay detection, cost accrual and alerting",
    version="1.0.0",
    lifespan=lifespan,
)

# ── Routes ───────────────────────────────────────────────────────────────────

app.include_router(create_monitor_router(orchestrator))
app.include_router(create_sites_router(repository))
app.include_router(create_weather_router(weather_client))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    sites = await repository.active_sites()
    open_delays = 0
    for site in sites:
        if await repository.open_delay(site.site_id) is not None:
            open_delays += 1
    return {
        "status": "ok",
        "active_sites": len(sites),
        "monitorable_sites": sum(1 for s in sites if s.is_monitorable),
        "open_delays": open_delays,
        "notifications": "webhook" if settings.webhook_url else "log",
    }
