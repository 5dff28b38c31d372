"""Delay repository — the narrow persistence contract the engine depends on.

Design notes:
    - DelayRepository is a Protocol.  The lifecycle, dispatcher and
      orchestrator only ever see these seven calls, so the storage
      technology can be swapped without touching the state machine.
    - Each call is atomic on its own.  The engine never performs a
      multi-step transaction; a crash between two calls leaves the store
      in a state the next run re-evaluates safely.
    - InMemoryDelayRepository guards every access with an asyncio.Lock and
      enforces "at most one open delay per site" the way a partial unique
      index (site_id WHERE end_time IS NULL) would.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional, Protocol
from uuid import UUID

from delay_sentinel.domain.alert import Alert
from delay_sentinel.domain.delay import DelayEvent
from delay_sentinel.domain.observation import WeatherReading
from delay_sentinel.domain.site import Site
from delay_sentinel.store.errors import DuplicateOpenDelayError, PersistenceError

logger = logging.getLogger(__name__)


class DelayRepository(Protocol):
    """Persistence operations used by the delay detection engine."""

    async def active_sites(self) -> list[Site]:
        """All sites currently flagged active."""
        ...

    async def open_delay(self, site_id: str) -> Optional[DelayEvent]:
        """The site's open delay, if any."""
        ...

    async def create_delay(self, delay: DelayEvent) -> DelayEvent:
        """Insert a new open delay.

        Raises:
            DuplicateOpenDelayError: If the site already has an open delay.
        """
        ...

    async def update_delay(self, delay: DelayEvent) -> DelayEvent:
        """Replace the cost fields of an existing open delay."""
        ...

    async def close_delay(self, delay: DelayEvent) -> DelayEvent:
        """Persist the closed form of an open delay."""
        ...

    async def insert_alert(self, alert: Alert) -> Alert:
        ...

    async def insert_reading(self, reading: WeatherReading) -> WeatherReading:
        ...


class InMemoryDelayRepository:
    """Async-safe, in-memory DelayRepository.

    Used by the service when no external store is wired in, and by tests.
    """

    def __init__(self, sites: Iterable[Site] = ()) -> None:
        self._lock = asyncio.Lock()
        self._sites: dict[str, Site] = {s.site_id: s for s in sites}
        self._delays: dict[UUID, DelayEvent] = {}
        self._open_index: dict[str, UUID] = {}
        self._alerts: list[Alert] = []
        self._readings: list[WeatherReading] = []

    # ── Sites ────────────────────────────────────────────────────────────

    async def add_site(self, site: Site) -> None:
        async with self._lock:
            self._sites[site.site_id] = site

    async def active_sites(self) -> list[Site]:
        async with self._lock:
            return [s for s in self._sites.values() if s.active]

    # ── Delays ───────────────────────────────────────────────────────────

    async def open_delay(self, site_id: str) -> Optional[DelayEvent]:
        async with self._lock:
            delay_id = self._open_index.get(site_id)
            return self._delays.get(delay_id) if delay_id else None

    async def create_delay(self, delay: DelayEvent) -> DelayEvent:
        async with self._lock:
            if not delay.is_open:
                raise PersistenceError(f"Delay {delay.delay_id} is already closed")
            if delay.site_id in self._open_index:
                raise DuplicateOpenDelayError(delay.site_id)
            if delay.delay_id in self._delays:
                raise PersistenceError(f"Delay {delay.delay_id} already exists")
            self._delays[delay.delay_id] = delay
            self._open_index[delay.site_id] = delay.delay_id
            logger.debug("Inserted delay %s for site %s", delay.delay_id, delay.site_id)
            return delay

    async def update_delay(self, delay: DelayEvent) -> DelayEvent:
        async with self._lock:
            self._require_open(delay)
            self._delays[delay.delay_id] = delay
            return delay

    async def close_delay(self, delay: DelayEvent) -> DelayEvent:
        async with self._lock:
            if delay.is_open:
                raise PersistenceError(f"Delay {delay.delay_id} has no end time")
            self._require_open(delay)
            self._delays[delay.delay_id] = delay
            del self._open_index[delay.site_id]
            logger.debug("Closed delay %s for site %s", delay.delay_id, delay.site_id)
            return delay

    async def delays_for(self, site_id: str) -> list[DelayEvent]:
        """All delays recorded for a site, oldest first."""
        async with self._lock:
            return sorted(
                (d for d in self._delays.values() if d.site_id == site_id),
                key=lambda d: d.start_time,
            )

    # ── Alerts & Readings ────────────────────────────────────────────────

    async def insert_alert(self, alert: Alert) -> Alert:
        async with self._lock:
            self._alerts.append(alert)
            return alert

    async def alerts_for(self, site_id: str) -> list[Alert]:
        async with self._lock:
            return [a for a in self._alerts if a.site_id == site_id]

    async def insert_reading(self, reading: WeatherReading) -> WeatherReading:
        async with self._lock:
            self._readings.append(reading)
            return reading

    async def readings_for(self, site_id: str) -> list[WeatherReading]:
        async with self._lock:
            return [r for r in self._readings if r.site_id == site_id]

    # ── Internals ────────────────────────────────────────────────────────

    def _require_open(self, delay: DelayEvent) -> None:
        """Must be called while holding self._lock."""
        if self._open_index.get(delay.site_id) != delay.delay_id:
            raise PersistenceError(
                f"Delay {delay.delay_id} is not the open delay for site {delay.site_id}"
            )
