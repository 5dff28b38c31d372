"""Severity classification of a violation set, for notification routing.

Rules, first match wins:
    - 3 or more violations                        → CRITICAL
    - any value/threshold ratio above 2.0         → CRITICAL
    - any value/threshold ratio above 1.5         → HIGH
    - exactly 2 violations                        → HIGH
    - exactly 1 violation                         → MEDIUM
    - none                                        → LOW

Ratios are scanned in violation order.  A zero threshold has no ratio and
contributes nothing to the ratio rules.
"""

from __future__ import annotations

from typing import Sequence

from delay_sentinel.domain.enums import Severity
from delay_sentinel.domain.violation import Violation

CRITICAL_RATIO = 2.0
HIGH_RATIO = 1.5


def classify(violations: Sequence[Violation]) -> Severity:
    if len(violations) >= 3:
        return Severity.CRITICAL

    for violation in violations:
        ratio = violation.ratio
        if ratio is None:
            continue
        if ratio > CRITICAL_RATIO:
            return Severity.CRITICAL
        if ratio > HIGH_RATIO:
            return Severity.HIGH

    if len(violations) == 2:
        return Severity.HIGH
    if len(violations) == 1:
        return Severity.MEDIUM
    return Severity.LOW
