"""NotificationDispatcher — turns lifecycle outcomes into alerts.

For every transition it:
    1. classifies severity and composes the human-readable message
    2. builds the outbound AlertPayload (site, location, weather snapshot,
       violations, delay/cost snapshot, ISO-8601 timestamp)
    3. records the Alert through the repository
    4. hands the payload to the NotificationSink

The delay state change has already been persisted when dispatch runs.
Failures in steps 1 to 4 are logged and swallowed here: an unreachable
webhook or a broken alert store must never undo or block a delay
transition, and the run report keeps the committed transition.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from delay_sentinel.core.lifecycle import LifecycleOutcome
from delay_sentinel.core.severity import classify
from delay_sentinel.domain.alert import Alert
from delay_sentinel.domain.delay import DelayEvent
from delay_sentinel.domain.enums import AlertType, Severity, Transition
from delay_sentinel.domain.observation import Observation
from delay_sentinel.domain.site import Site
from delay_sentinel.domain.violation import Violation
from delay_sentinel.foundation.clock import Clock, utc_now
from delay_sentinel.models.payload import (
    AlertPayload,
    DelaySnapshot,
    LocationPayload,
    StationPayload,
    WeatherSnapshot,
)
from delay_sentinel.store.errors import PersistenceError
from delay_sentinel.store.repository import DelayRepository

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Outbound delivery of alert payloads (webhook, queue, log)."""

    async def send(self, payload: AlertPayload) -> None:
        ...


_ALERT_TYPES = {
    Transition.OPENED: AlertType.NEW_DELAY,
    Transition.CONTINUED: AlertType.CONTINUING,
    Transition.CLOSED: AlertType.DELAY_ENDED,
}


class NotificationDispatcher:
    """Builds, records and delivers one Alert per lifecycle transition.

    Args:
        repository: Receives every Alert via insert_alert().
        sink: Outbound delivery for the payload.
        notify_continuing: Emit alerts for DELAYED → DELAYED ticks too.
        clock: Source of the payload timestamp.
    """

    def __init__(
        self,
        repository: DelayRepository,
        sink: NotificationSink,
        notify_continuing: bool = True,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._sink = sink
        self._notify_continuing = notify_continuing
        self._clock = clock

    async def dispatch(
        self,
        site: Site,
        outcome: LifecycleOutcome,
        observation: Observation,
    ) -> Optional[Alert]:
        """Emit the alert for *outcome*, or return None if there is none."""
        alert_type = _ALERT_TYPES.get(outcome.transition)
        if alert_type is None:
            return None
        if alert_type == AlertType.CONTINUING and not self._notify_continuing:
            return None

        try:
            alert = self.build_alert(site, outcome, observation)
        except Exception:
            logger.exception("Could not build %s alert for site %s", alert_type.value, site)
            return None

        try:
            await self._repository.insert_alert(alert)
        except PersistenceError as exc:
            logger.warning("Could not record %s alert for site %s: %s", alert_type.value, site, exc)
        except Exception:
            logger.exception("Unexpected error recording %s alert for site %s", alert_type.value, site)

        try:
            await self._sink.send(alert.payload)
        except Exception as exc:
            logger.warning(
                "Notification for site %s (%s) not delivered: %s",
                site,
                alert_type.value,
                exc,
            )
        return alert

    # ── Alert Construction ───────────────────────────────────────────────

    def build_alert(
        self,
        site: Site,
        outcome: LifecycleOutcome,
        observation: Observation,
    ) -> Alert:
        alert_type = _ALERT_TYPES[outcome.transition]
        delay = outcome.delay

        if alert_type == AlertType.DELAY_ENDED:
            severity = Severity.LOW
            message = _ended_message(site, delay)
        else:
            severity = classify(outcome.violations)
            message = _violation_message(site, alert_type, outcome.violations)

        location = site.location
        payload = AlertPayload(
            site_id=site.site_id,
            site_name=site.name,
            alert_type=alert_type,
            severity=severity,
            message=message,
            location=LocationPayload(
                address=site.address,
                lat=location.lat if location else None,
                lng=location.lng if location else None,
            ),
            weather=_weather_snapshot(observation),
            violations=list(outcome.violations),
            delay=_delay_snapshot(delay) if delay is not None else None,
            timestamp=self._clock().isoformat(),
        )
        return Alert(
            site_id=site.site_id,
            alert_type=alert_type,
            severity=severity,
            message=message,
            payload=payload,
        )


# ── Helpers ──────────────────────────────────────────────────────────────────

def _violation_message(site: Site, alert_type: AlertType, violations: list[Violation]) -> str:
    lead = "Weather delay detected" if alert_type == AlertType.NEW_DELAY else "Weather delay continuing"
    details = ", ".join(v.describe() for v in violations)
    return f"{lead} at {site.name}. {details}"


def _ended_message(site: Site, delay: Optional[DelayEvent]) -> str:
    if delay is None or delay.duration_hours is None:
        return f"Weather delay ended at {site.name}."
    return (
        f"Weather delay ended at {site.name}. "
        f"Duration: {delay.duration_hours:.1f} hours, Cost: ${delay.total_cost:,.2f}"
    )


def _weather_snapshot(observation: Observation) -> WeatherSnapshot:
    station = observation.station
    return WeatherSnapshot(
        observed_at=observation.timestamp.isoformat(),
        temperature=observation.temperature,
        wind_speed=observation.wind_speed,
        wind_gust=observation.wind_gust,
        precipitation=observation.precipitation,
        humidity=observation.humidity,
        visibility=observation.visibility,
        conditions=observation.conditions,
        station=StationPayload(
            station_id=station.station_id,
            name=station.name,
            distance_miles=station.distance_miles,
        ),
    )


def _delay_snapshot(delay: DelayEvent) -> DelaySnapshot:
    return DelaySnapshot(
        delay_id=str(delay.delay_id),
        start_time=delay.start_time.isoformat(),
        end_time=delay.end_time.isoformat() if delay.end_time else None,
        duration_hours=delay.duration_hours,
        labor_hours_lost=delay.labor_hours_lost,
        labor_cost=delay.labor_cost,
        overhead_cost=delay.overhead_cost,
        total_cost=delay.total_cost,
        affected_activities=list(delay.affected_activities),
    )
