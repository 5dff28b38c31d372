"""DelayEvent — a continuous period during which a site breached a threshold.

Lifecycle:  open → closed
    - open:    end_time and duration_hours are None; cost is the
               provisional full-shift estimate taken at creation
    - closed:  end_time, duration_hours and the prorated final cost are set

DelayEvents are immutable values.  A transition produces a new copy via
with_cost() / closed(), and the repository persists that copy atomically.
Crew size, hourly rate and daily overhead are snapshotted at creation so a
later change to the site never rewrites an existing claim.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from delay_sentinel.domain.violation import Violation


# ── Cost Values ──────────────────────────────────────────────────────────────

class CostBasis(BaseModel):
    """The rates a cost calculation is made from."""

    crew_size: int = Field(..., ge=0)
    hourly_rate: float = Field(..., ge=0.0)
    daily_overhead: float = Field(..., ge=0.0)

    model_config = {"frozen": True}


class CostBreakdown(BaseModel):
    """Labor, overhead and total cost for a number of lost labor hours."""

    labor_hours: float
    labor_cost: float
    overhead_cost: float
    total_cost: float

    model_config = {"frozen": True}


# ── Delay Event ──────────────────────────────────────────────────────────────

class DelayEvent(BaseModel):
    delay_id: UUID = Field(default_factory=uuid4)
    site_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_hours: Optional[float] = None

    violations: list[Violation] = Field(default_factory=list, description="Conditions that opened the delay")
    weather_condition: str = Field(default="", description="Comma-joined condition names")
    affected_activities: list[str] = Field(default_factory=list)

    crew_size: int = Field(..., ge=0)
    hourly_rate: float = Field(..., ge=0.0)
    daily_overhead: float = Field(..., ge=0.0)

    labor_hours_lost: float = 0.0
    labor_cost: float = 0.0
    overhead_cost: float = 0.0
    total_cost: float = 0.0

    auto_generated: bool = True
    notes: str = ""

    model_config = {"frozen": True}

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    @property
    def cost_basis(self) -> CostBasis:
        return CostBasis(
            crew_size=self.crew_size,
            hourly_rate=self.hourly_rate,
            daily_overhead=self.daily_overhead,
        )

    def with_cost(self, cost: CostBreakdown) -> DelayEvent:
        """Return a copy carrying *cost* in its cost fields."""
        return self.model_copy(update={
            "labor_hours_lost": cost.labor_hours,
            "labor_cost": cost.labor_cost,
            "overhead_cost": cost.overhead_cost,
            "total_cost": cost.total_cost,
        })

    def closed(self, end_time: datetime, duration_hours: float, cost: CostBreakdown) -> DelayEvent:
        """Return a closed copy with final duration and cost."""
        note = f"Delay ended at {end_time.isoformat()}. Duration: {duration_hours:.1f} hours."
        notes = f"{self.notes}\n{note}" if self.notes else note
        return self.with_cost(cost).model_copy(update={
            "end_time": end_time,
            "duration_hours": duration_hours,
            "notes": notes,
        })

    def summary(self) -> dict:
        """Lightweight summary suitable for logging and API listings."""
        return {
            "delay_id": str(self.delay_id),
            "site_id": self.site_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_hours": self.duration_hours,
            "weather_condition": self.weather_condition,
            "total_cost": self.total_cost,
            "auto_generated": self.auto_generated,
        }
