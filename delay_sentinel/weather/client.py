"""WeatherClient — nearest-station lookup and latest observation from the NWS API.

Flow for one site:
    1. GET /points/{lat},{lng}             → observationStations URL
    2. GET observationStations             → candidate stations (GeoJSON)
    3. pick the nearest by haversine distance (first in list wins ties)
    4. GET /stations/{id}/observations/latest
    5. normalise every quantity into engine units

Architectural rules:
    1. Every request is bounded by the client timeout.  A stalled upstream
       surfaces as UpstreamUnavailable, never as a hang.
    2. Raw upstream values do not leave this module; callers only ever see
       Station and Observation.
    3. Missing values stay None.  Nothing is defaulted to zero here.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from delay_sentinel.domain.observation import Observation, Station
from delay_sentinel.weather.errors import (
    MalformedResponse,
    NoStationFound,
    UpstreamUnavailable,
)
from delay_sentinel.weather.units import Quantity, haversine_miles, normalise

logger = logging.getLogger(__name__)


class WeatherClient:
    """Async client for the National Weather Service observation API.

    Args:
        base_url: API root, e.g. https://api.weather.gov
        user_agent: Identifying User-Agent; the NWS rejects anonymous clients.
        timeout: Per-request timeout in seconds.
        max_station_distance_miles: Nearest stations further than this are
            treated as "no station found".
        http_client: Optional pre-built httpx.AsyncClient (tests pass one
            with a MockTransport).  The caller then owns its lifecycle.
    """

    def __init__(
        self,
        base_url: str = "https://api.weather.gov",
        user_agent: str = "delay-sentinel/1.0",
        timeout: float = 5.0,
        max_station_distance_miles: float = 100.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = {
            "User-Agent": user_agent,
            "Accept": "application/geo+json",
        }
        self._max_distance = max_station_distance_miles
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            headers=self._headers,
            timeout=httpx.Timeout(timeout),
        )

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def close(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> WeatherClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # ── Public API ───────────────────────────────────────────────────────

    async def resolve_station(self, lat: float, lng: float) -> Optional[Station]:
        """Return the nearest observing station to (lat, lng), or None.

        Raises:
            UpstreamUnavailable: On network failure or error status.
            MalformedResponse: If the point or station payloads are unusable.
        """
        # The API only accepts up to four decimal places on /points
        point_url = f"{self._base_url}/points/{lat:.4f},{lng:.4f}"
        point = await self._get_json(point_url, allow_not_found=True)
        if point is None:
            logger.info("Coordinates %.4f,%.4f are outside weather coverage", lat, lng)
            return None

        properties = point.get("properties")
        stations_url = properties.get("observationStations") if isinstance(properties, dict) else None
        if not isinstance(stations_url, str) or not stations_url:
            raise MalformedResponse(point_url, "missing 'properties.observationStations'")

        stations = await self._get_json(stations_url)
        features = stations.get("features")
        if not isinstance(features, list):
            raise MalformedResponse(stations_url, "missing 'features' list")

        nearest: Optional[Station] = None
        skipped = 0
        for feature in features:
            try:
                props = feature["properties"]
                station_lng, station_lat = feature["geometry"]["coordinates"][:2]
                distance = haversine_miles(lat, lng, float(station_lat), float(station_lng))
                candidate_id = str(props["stationIdentifier"])
                candidate_name = str(props.get("name") or "")
            except (KeyError, TypeError, ValueError) as exc:
                skipped += 1
                logger.warning("Ignoring unusable station feature from %s: %r", stations_url, exc)
                continue

            # Strict comparison keeps the first station on equal distance
            if nearest is None or distance < nearest.distance_miles:
                nearest = Station(
                    station_id=candidate_id,
                    name=candidate_name,
                    distance_miles=distance,
                )

        if nearest is None:
            if skipped:
                raise MalformedResponse(stations_url, f"none of {skipped} station feature(s) usable")
            logger.info("No stations listed for %.4f,%.4f", lat, lng)
            return None
        if nearest.distance_miles > self._max_distance:
            logger.info(
                "Nearest station %s is %.1f mi from %.4f,%.4f (limit %.1f mi)",
                nearest.station_id,
                nearest.distance_miles,
                lat,
                lng,
                self._max_distance,
            )
            return None

        logger.debug(
            "Resolved station %s (%.1f mi) for %.4f,%.4f",
            nearest.station_id,
            nearest.distance_miles,
            lat,
            lng,
        )
        return nearest

    async def current_observation(self, lat: float, lng: float) -> Observation:
        """Fetch and normalise the latest observation nearest to (lat, lng).

        Raises:
            NoStationFound: If no station reports within range.
            UpstreamUnavailable: On network failure, timeout or error status.
            MalformedResponse: If the observation cannot be parsed.
        """
        station = await self.resolve_station(lat, lng)
        if station is None:
            raise NoStationFound(lat, lng)

        url = f"{self._base_url}/stations/{station.station_id}/observations/latest"
        data = await self._get_json(url)
        return self._parse_observation(url, data, station)

    # ── Internals ────────────────────────────────────────────────────────

    async def _get_json(self, url: str, allow_not_found: bool = False) -> Any:
        try:
            response = await self._http.get(url, headers=self._headers)
        except httpx.TimeoutException as exc:
            raise UpstreamUnavailable(url, "request timed out") from exc
        except httpx.HTTPError as exc:
            raise UpstreamUnavailable(url, f"{type(exc).__name__}: {exc}") from exc

        if allow_not_found and response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise UpstreamUnavailable(url, f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponse(url, "body is not valid JSON") from exc
        if not isinstance(data, dict):
            raise MalformedResponse(url, "expected a JSON object")
        return data

    @staticmethod
    def _parse_observation(url: str, data: dict[str, Any], station: Station) -> Observation:
        props = data.get("properties")
        if not isinstance(props, dict):
            raise MalformedResponse(url, "missing 'properties'")
        if not props.get("timestamp"):
            raise MalformedResponse(url, "missing 'timestamp'")

        try:
            heat_index = normalise(props.get("heatIndex"), Quantity.TEMPERATURE)
            wind_chill = normalise(props.get("windChill"), Quantity.TEMPERATURE)
            return Observation(
                timestamp=props["timestamp"],
                temperature=normalise(props.get("temperature"), Quantity.TEMPERATURE),
                feels_like=heat_index if heat_index is not None else wind_chill,
                humidity=normalise(props.get("relativeHumidity"), Quantity.PERCENT),
                wind_speed=normalise(props.get("windSpeed"), Quantity.SPEED),
                wind_gust=normalise(props.get("windGust"), Quantity.SPEED),
                wind_direction=normalise(props.get("windDirection"), Quantity.ANGLE),
                precipitation=normalise(props.get("precipitationLastHour"), Quantity.RAINFALL),
                visibility=normalise(props.get("visibility"), Quantity.DISTANCE),
                pressure=normalise(props.get("barometricPressure"), Quantity.PRESSURE),
                conditions=str(props.get("textDescription") or ""),
                station=station,
            )
        except ValidationError as exc:
            raise MalformedResponse(url, f"invalid observation: {exc.error_count()} error(s)") from exc
        except ValueError as exc:
            raise MalformedResponse(url, str(exc)) from exc
