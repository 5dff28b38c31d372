"""Outbound notification payload sent for every lifecycle transition.

This is the wire contract with the notification boundary (webhook, queue).
Violations are embedded as-is so value, threshold and unit survive a
serialise/parse round trip without any unit conversion.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from delay_sentinel.domain.enums import AlertType, Severity
from delay_sentinel.domain.violation import Violation


class LocationPayload(BaseModel):
    address: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None


class StationPayload(BaseModel):
    station_id: str
    name: str = ""
    distance_miles: float


class WeatherSnapshot(BaseModel):
    """The observation the decision was made from, in normalised units."""

    observed_at: str = Field(..., description="ISO-8601 observation timestamp")
    temperature: Optional[float] = None
    wind_speed: Optional[float] = None
    wind_gust: Optional[float] = None
    precipitation: Optional[float] = None
    humidity: Optional[float] = None
    visibility: Optional[float] = None
    conditions: str = ""
    station: Optional[StationPayload] = None


class DelaySnapshot(BaseModel):
    delay_id: str
    start_time: str
    end_time: Optional[str] = None
    duration_hours: Optional[float] = None
    labor_hours_lost: float
    labor_cost: float
    overhead_cost: float
    total_cost: float
    affected_activities: list[str] = Field(default_factory=list)


class AlertPayload(BaseModel):
    site_id: str
    site_name: str
    alert_type: AlertType
    severity: Severity
    message: str
    location: LocationPayload
    weather: Optional[WeatherSnapshot] = None
    violations: list[Violation] = Field(default_factory=list)
    delay: Optional[DelaySnapshot] = None
    timestamp: str = Field(..., description="ISO-8601 time the alert was produced")
