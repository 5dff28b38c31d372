"""Controlled enumerations for the delay-sentinel domain.

Every categorical field in the domain MUST reference an enum defined here.
Free-form strings are not acceptable for classification fields.
"""

from __future__ import annotations

from enum import Enum


class ConditionType(str, Enum):
    """The closed set of environmental conditions a site can be limited on."""

    TEMPERATURE_LOW = "temperature_low"
    TEMPERATURE_HIGH = "temperature_high"
    WIND_SPEED = "wind_speed"
    PRECIPITATION = "precipitation"
    VISIBILITY = "visibility"


class Severity(str, Enum):
    """Alert severity used for notification routing."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AlertType(str, Enum):
    """Kind of lifecycle event an alert describes."""

    NEW_DELAY = "new-delay"
    CONTINUING = "continuing"
    DELAY_ENDED = "delay-ended"


class Transition(str, Enum):
    """Outcome of one lifecycle evaluation for a site."""

    OPENED = "opened"
    CONTINUED = "continued"
    CLOSED = "closed"
    NONE = "none"


class SiteStatus(str, Enum):
    """Per-site result of a monitor run."""

    OPENED = "opened"
    CONTINUED = "continued"
    CLOSED = "closed"
    CLEAR = "clear"
    SKIPPED = "skipped"
    FAILED = "failed"
