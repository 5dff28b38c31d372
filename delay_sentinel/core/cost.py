"""CostCalculator — labor and overhead owed for a weather delay.

Two modes:

    open (provisional):  the delay is assumed to consume a full shift
        labor    = crew_size * hourly_rate * shift_hours
        overhead = daily_overhead
    closed (final):      prorated to the actual elapsed duration h
        labor    = crew_size * hourly_rate * h
        overhead = (h / shift_hours) * daily_overhead

total = labor + overhead, summed after each part is rounded to cents.

These figures go into insurance claims, so a zero or negative duration is
never clamped: it raises InvalidDelayDurationError.
"""

from __future__ import annotations

from datetime import datetime

from delay_sentinel.domain.delay import CostBasis, CostBreakdown

STANDARD_SHIFT_HOURS = 8.0


class InvalidDelayDurationError(ValueError):
    """A delay's computed duration is zero or negative.

    Indicates a clock or data-ordering problem.  Surfaced, never clamped.
    """

    def __init__(self, duration_hours: float, detail: str = "") -> None:
        self.duration_hours = duration_hours
        msg = f"Delay duration must be positive, got {duration_hours!r} hours"
        if detail:
            msg = f"{msg} ({detail})"
        super().__init__(msg)


def elapsed_hours(start: datetime, end: datetime) -> float:
    """Hours from *start* to *end* as a float.

    Raises:
        InvalidDelayDurationError: If end is not after start.
    """
    hours = (end - start).total_seconds() / 3600.0
    if hours <= 0:
        raise InvalidDelayDurationError(
            hours, f"start={start.isoformat()} end={end.isoformat()}"
        )
    return hours


def _money(amount: float) -> float:
    return round(amount, 2)


def _breakdown(hours: float, labor: float, overhead: float) -> CostBreakdown:
    # Total is summed from the rounded parts so the stored figures add up
    labor_cost = _money(labor)
    overhead_cost = _money(overhead)
    return CostBreakdown(
        labor_hours=hours,
        labor_cost=labor_cost,
        overhead_cost=overhead_cost,
        total_cost=_money(labor_cost + overhead_cost),
    )


class CostCalculator:
    """Stateless cost accrual for open and closed delays."""

    def __init__(self, shift_hours: float = STANDARD_SHIFT_HOURS) -> None:
        if shift_hours <= 0:
            raise ValueError("shift_hours must be positive")
        self._shift_hours = shift_hours

    @property
    def shift_hours(self) -> float:
        return self._shift_hours

    def estimate_open_cost(self, basis: CostBasis) -> CostBreakdown:
        """Provisional full-shift estimate for a delay that is still open."""
        labor = basis.crew_size * basis.hourly_rate * self._shift_hours
        overhead = basis.daily_overhead
        return _breakdown(self._shift_hours, labor, overhead)

    def finalize_cost(self, basis: CostBasis, duration_hours: float) -> CostBreakdown:
        """Final cost prorated to *duration_hours*.

        Raises:
            InvalidDelayDurationError: If duration_hours <= 0.
        """
        if duration_hours <= 0:
            raise InvalidDelayDurationError(duration_hours)
        labor = basis.crew_size * basis.hourly_rate * duration_hours
        overhead = (duration_hours / self._shift_hours) * basis.daily_overhead
        return _breakdown(duration_hours, labor, overhead)
