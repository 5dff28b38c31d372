"""Site — a monitored construction project and its weather sensitivity.

Sites are owned by the surrounding product; the engine only reads them.
Validated at the boundary so the lifecycle and cost code never has to
re-check rates or coordinates.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from delay_sentinel.domain.enums import ConditionType


# ── Location ─────────────────────────────────────────────────────────────────

class GeoPoint(BaseModel):
    """WGS84 coordinates of a site."""

    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.lat:.4f},{self.lng:.4f}"


# ── Thresholds ───────────────────────────────────────────────────────────────

class Thresholds(BaseModel):
    """Configured environmental limits.  None means "not configured".

    Units match the normalised Observation: °F, mph, inches/hour, miles.
    Zero is a legitimate limit (e.g. a 0 inch precipitation tolerance).
    """

    temperature_min: Optional[float] = Field(default=None, description="Work stops below this (°F)")
    temperature_max: Optional[float] = Field(default=None, description="Work stops above this (°F)")
    wind_speed: Optional[float] = Field(default=None, ge=0.0, description="Max sustained wind (mph)")
    precipitation: Optional[float] = Field(default=None, ge=0.0, description="Max precipitation (in/hour)")
    visibility_min: Optional[float] = Field(default=None, ge=0.0, description="Work stops below this (miles)")

    model_config = {"frozen": True}

    def limit_for(self, condition: ConditionType) -> Optional[float]:
        """Return the configured limit backing *condition*, if any."""
        return {
            ConditionType.TEMPERATURE_LOW: self.temperature_min,
            ConditionType.TEMPERATURE_HIGH: self.temperature_max,
            ConditionType.WIND_SPEED: self.wind_speed,
            ConditionType.PRECIPITATION: self.precipitation,
            ConditionType.VISIBILITY: self.visibility_min,
        }[condition]

    @property
    def is_empty(self) -> bool:
        return all(self.limit_for(c) is None for c in ConditionType)


# ── Site ─────────────────────────────────────────────────────────────────────

class Site(BaseModel):
    """A construction project location under weather monitoring."""

    site_id: str = Field(..., min_length=1, max_length=128)
    name: str = Field(..., min_length=1, max_length=256)
    address: str = Field(default="")
    location: Optional[GeoPoint] = Field(
        default=None,
        description="Required for monitoring; sites without coordinates are skipped",
    )
    crew_size: int = Field(..., ge=0)
    hourly_rate: float = Field(..., ge=0.0, description="Labor cost per worker-hour")
    daily_overhead: float = Field(default=0.0, ge=0.0, description="Overhead per standard shift")
    thresholds: Optional[Thresholds] = None
    project_type: str = Field(default="general", description="Drives affected-activity lookup")
    active: bool = True

    model_config = {"frozen": True}

    @property
    def is_monitorable(self) -> bool:
        """True if the site has coordinates and at least one configured limit."""
        return (
            self.location is not None
            and self.thresholds is not None
            and not self.thresholds.is_empty
        )

    def __str__(self) -> str:
        return f"{self.site_id} ({self.name})"
