"""REST endpoint for the current normalised weather at a coordinate.

Path: GET /api/weather/current?lat=..&lng=..

Useful when configuring a site's thresholds: shows exactly what the
monitor would evaluate.  No delay state is read or written.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query

from delay_sentinel.weather.client import WeatherClient
from delay_sentinel.weather.errors import (
    MalformedResponse,
    NoStationFound,
    UpstreamUnavailable,
)


def create_weather_router(client: WeatherClient) -> APIRouter:
    """Factory that wires the weather endpoint to a WeatherClient."""

    router = APIRouter(prefix="/api/weather", tags=["weather"])

    @router.get("/current")
    async def current_weather(
        lat: float = Query(..., ge=-90.0, le=90.0),
        lng: float = Query(..., ge=-180.0, le=180.0),
    ) -> dict[str, Any]:
        try:
            observation = await client.current_observation(lat, lng)
        except NoStationFound as exc:
            raise HTTPException(status_code=404, detail=str(exc))
        except (UpstreamUnavailable, MalformedResponse) as exc:
            raise HTTPException(status_code=502, detail=str(exc))
        return observation.model_dump(mode="json")

    return router
