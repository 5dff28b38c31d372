"""Work activities a violation typically stops, per project type.

Recorded on each delay so the claim lists what could not be done.
Unknown project types fall back to "general".
"""

from __future__ import annotations

from typing import Sequence

from delay_sentinel.domain.enums import ConditionType
from delay_sentinel.domain.violation import Violation

_TL = ConditionType.TEMPERATURE_LOW
_TH = ConditionType.TEMPERATURE_HIGH
_WS = ConditionType.WIND_SPEED
_PR = ConditionType.PRECIPITATION
_VI = ConditionType.VISIBILITY

ACTIVITIES: dict[str, dict[ConditionType, list[str]]] = {
    "roofing": {
        _WS: ["shingle installation", "underlayment", "flashing work"],
        _PR: ["all roofing work", "material handling"],
        _TL: ["shingle installation", "adhesive application"],
        _TH: ["worker safety", "material handling"],
    },
    "concrete": {
        _TL: ["concrete pouring", "finishing work", "curing"],
        _TH: ["concrete pouring", "curing quality"],
        _PR: ["concrete finishing", "formwork"],
        _WS: ["concrete pumping", "finishing"],
    },
    "framing": {
        _WS: ["crane operations", "tall wall erection", "roof framing"],
        _PR: ["material protection", "worker safety"],
        _TL: ["nail gun operation", "worker efficiency"],
    },
    "painting": {
        _PR: ["all painting work"],
        _TL: ["paint application", "adhesion"],
        _TH: ["paint quality", "worker safety"],
        _WS: ["spray painting", "overspray control"],
    },
    "general": {
        _WS: ["crane operations", "elevated work"],
        _PR: ["outdoor work", "material handling"],
        _TL: ["worker safety", "equipment operation"],
        _TH: ["worker safety", "productivity"],
        _VI: ["equipment operation", "traffic control"],
    },
}


def affected_activities(project_type: str, violations: Sequence[Violation]) -> list[str]:
    """De-duplicated activities, in violation order then table order."""
    table = ACTIVITIES.get(project_type.lower(), ACTIVITIES["general"])
    affected: list[str] = []
    for violation in violations:
        for activity in table.get(violation.condition, []):
            if activity not in affected:
                affected.append(activity)
    return affected
