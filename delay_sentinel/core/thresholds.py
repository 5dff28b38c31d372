"""Threshold evaluation — which configured limits does an observation breach?

Pure function: no I/O, no state, no clock.  The same observation and
thresholds always produce the same ordered list of violations.

Check order is fixed and significant (severity and alert messages are
built from it):

    temperature_low → temperature_high → wind_speed → precipitation → visibility

Maxima use strict greater-than, minima strict less-than.  A limit that is
not configured, or a reading that is unknown (None), is skipped.
"""

from __future__ import annotations

import operator
from dataclasses import dataclass
from typing import Callable, Optional

from delay_sentinel.domain.enums import ConditionType
from delay_sentinel.domain.observation import Observation
from delay_sentinel.domain.site import Thresholds
from delay_sentinel.domain.violation import Violation


@dataclass(frozen=True)
class ThresholdCheck:
    """How one condition kind is read from an observation and compared."""

    condition: ConditionType
    reading: Callable[[Observation], Optional[float]]
    breached: Callable[[float, float], bool]
    unit: str


CHECKS: tuple[ThresholdCheck, ...] = (
    ThresholdCheck(ConditionType.TEMPERATURE_LOW, lambda o: o.temperature, operator.lt, "°F"),
    ThresholdCheck(ConditionType.TEMPERATURE_HIGH, lambda o: o.temperature, operator.gt, "°F"),
    ThresholdCheck(ConditionType.WIND_SPEED, lambda o: o.wind_speed, operator.gt, "mph"),
    ThresholdCheck(ConditionType.PRECIPITATION, lambda o: o.precipitation, operator.gt, "inches"),
    ThresholdCheck(ConditionType.VISIBILITY, lambda o: o.visibility, operator.lt, "miles"),
)

# Every condition kind must have exactly one check.
if sorted(c.condition.value for c in CHECKS) != sorted(c.value for c in ConditionType):
    raise RuntimeError("threshold checks do not cover every ConditionType exactly once")


def evaluate(observation: Observation, thresholds: Optional[Thresholds]) -> list[Violation]:
    """Return the violations *observation* produces against *thresholds*."""
    if thresholds is None:
        return []

    violations: list[Violation] = []
    for check in CHECKS:
        limit = thresholds.limit_for(check.condition)
        if limit is None:
            continue
        value = check.reading(observation)
        if value is None:
            continue
        if check.breached(value, limit):
            violations.append(Violation(
                condition=check.condition,
                value=value,
                threshold=limit,
                unit=check.unit,
            ))
    return violations
