"""Observation — one normalised weather report for a site.

Values are already converted to °F, mph, inches, miles and inHg by the
weather client.  Raw upstream units never travel past that boundary.
Any numeric field may be None: a sensor or report gap is "unknown", and
the threshold evaluator must never read it as zero.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Station(BaseModel):
    """The observing station a reading came from."""

    station_id: str = Field(..., min_length=1)
    name: str = ""
    distance_miles: float = Field(..., ge=0.0, description="Great-circle distance from the site")

    model_config = {"frozen": True}


class Observation(BaseModel):
    """Latest conditions at the nearest station, in normalised units."""

    timestamp: datetime
    temperature: Optional[float] = Field(default=None, description="°F")
    feels_like: Optional[float] = Field(default=None, description="Heat index or wind chill, °F")
    humidity: Optional[float] = Field(default=None, description="Relative humidity, %")
    wind_speed: Optional[float] = Field(default=None, description="mph")
    wind_gust: Optional[float] = Field(default=None, description="mph")
    wind_direction: Optional[float] = Field(default=None, description="Degrees from north")
    precipitation: Optional[float] = Field(default=None, description="Inches in the last hour")
    visibility: Optional[float] = Field(default=None, description="Miles")
    pressure: Optional[float] = Field(default=None, description="Barometric pressure, inHg")
    conditions: str = ""
    station: Station

    model_config = {"frozen": True}

    @field_validator("timestamp")
    @classmethod
    def timestamp_must_be_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        return v


class WeatherReading(BaseModel):
    """An observation recorded against a site for the audit trail."""

    site_id: str
    observation: Observation

    model_config = {"frozen": True}
