"""Typed failures raised by the weather client.

The orchestrator catches WeatherClientError per site: the site is skipped
for this run and no delay state is touched.
"""

from __future__ import annotations


class WeatherClientError(Exception):
    """Base class for every weather acquisition failure."""


class NoStationFound(WeatherClientError):
    """No reporting station covers the requested coordinates."""

    def __init__(self, lat: float, lng: float, reason: str = "no station within range") -> None:
        self.lat = lat
        self.lng = lng
        self.reason = reason
        super().__init__(f"No weather station for {lat:.4f},{lng:.4f}: {reason}")


class UpstreamUnavailable(WeatherClientError):
    """Network failure, timeout or non-success HTTP status from upstream."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Weather source unavailable ({url}): {reason}")


class MalformedResponse(WeatherClientError):
    """Upstream answered, but the payload could not be understood."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Malformed weather response ({url}): {reason}")
