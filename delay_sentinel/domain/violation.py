"""Violation — a single threshold breach found in an observation."""

from __future__ import annotations

from pydantic import BaseModel, Field

from delay_sentinel.domain.enums import ConditionType


class Violation(BaseModel):
    """Measured value, the limit it crossed, and the unit both are in.

    The triple is carried verbatim into alerts and delay records; it is
    never re-converted on the way out.
    """

    condition: ConditionType
    value: float = Field(..., description="Measured value in normalised units")
    threshold: float = Field(..., description="Configured limit that was crossed")
    unit: str = Field(..., min_length=1)

    model_config = {"frozen": True}

    @property
    def ratio(self) -> float | None:
        """value / threshold, or None when the threshold is zero."""
        if self.threshold == 0:
            return None
        return self.value / self.threshold

    def describe(self) -> str:
        return f"{self.condition.value}: {self.value:.1f}{self.unit} (threshold: {self.threshold:g}{self.unit})"
