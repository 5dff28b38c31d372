"""MonitorOrchestrator — one pass over every active site.

Per site, strictly in order:

    observation = weather.current_observation(lat, lng)
    repository.insert_reading(...)
    violations  = evaluate(observation, site.thresholds)
    outcome     = tracker.apply(site, violations)
    dispatcher.dispatch(site, outcome, observation)

Sites are processed concurrently, bounded by an asyncio.Semaphore so the
weather API's rate limits are respected.  A failure on one site is logged
with the site's identity and recorded in the report; it never stops the
other sites.  The orchestrator keeps nothing between runs.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from delay_sentinel.core.cost import InvalidDelayDurationError
from delay_sentinel.core.lifecycle import DelayLifecycleTracker
from delay_sentinel.core.severity import classify
from delay_sentinel.core.thresholds import evaluate
from delay_sentinel.domain.enums import SiteStatus, Transition
from delay_sentinel.domain.observation import Observation, WeatherReading
from delay_sentinel.domain.site import Site
from delay_sentinel.foundation.clock import Clock, utc_now
from delay_sentinel.models.report import MonitorRunReport, SiteResult
from delay_sentinel.notify.dispatcher import NotificationDispatcher
from delay_sentinel.store.errors import PersistenceError
from delay_sentinel.store.repository import DelayRepository
from delay_sentinel.weather.errors import WeatherClientError

logger = logging.getLogger(__name__)


class WeatherSource(Protocol):
    """Anything that can produce the current Observation for coordinates."""

    async def current_observation(self, lat: float, lng: float) -> Observation:
        ...


_STATUS_FOR = {
    Transition.OPENED: SiteStatus.OPENED,
    Transition.CONTINUED: SiteStatus.CONTINUED,
    Transition.CLOSED: SiteStatus.CLOSED,
    Transition.NONE: SiteStatus.CLEAR,
}


class MonitorOrchestrator:
    """Drives weather → thresholds → lifecycle → notification for all sites.

    Args:
        repository: Source of active sites and sink for readings.
        weather: Weather source (normally a WeatherClient).
        tracker: Per-site delay state machine.
        dispatcher: Alert construction and delivery.
        max_concurrency: Maximum sites evaluated at the same time.
        clock: Source of the report timestamps.
    """

    def __init__(
        self,
        repository: DelayRepository,
        weather: WeatherSource,
        tracker: DelayLifecycleTracker,
        dispatcher: NotificationDispatcher,
        max_concurrency: int = 4,
        clock: Clock = utc_now,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._repository = repository
        self._weather = weather
        self._tracker = tracker
        self._dispatcher = dispatcher
        self._max_concurrency = max_concurrency
        self._clock = clock

    # ── Public API ───────────────────────────────────────────────────────

    async def run_once(self) -> MonitorRunReport:
        """Evaluate every active site once and report what happened.

        Raises:
            PersistenceError: Only if the active site list cannot be read.
        """
        started = self._clock()
        sites = await self._repository.active_sites()
        if not sites:
            logger.info("No active sites to monitor")
        else:
            logger.info("Monitoring weather for %d active site(s)", len(sites))

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def bounded(site: Site) -> SiteResult:
            async with semaphore:
                return await self._check_site_guarded(site)

        results = await asyncio.gather(*(bounded(site) for site in sites))

        report = MonitorRunReport(
            started_at=started,
            finished_at=self._clock(),
            results=list(results),
        )
        logger.info(
            "Monitor run finished: %d checked, %d opened, %d continued, %d closed, %d skipped, %d failed",
            report.sites_checked,
            report.delays_opened,
            report.delays_continued,
            report.delays_closed,
            report.sites_skipped,
            report.sites_failed,
        )
        return report

    async def check_site(self, site: Site) -> SiteResult:
        """Run the full pipeline for one site.  Errors propagate."""
        if site.location is None:
            return _skipped(site, "site has no coordinates")
        if site.thresholds is None or site.thresholds.is_empty:
            return _skipped(site, "site has no thresholds configured")

        observation = await self._weather.current_observation(
            site.location.lat, site.location.lng
        )
        await self._record_reading(site, observation)

        violations = evaluate(observation, site.thresholds)
        outcome = await self._tracker.apply(site, violations)
        await self._dispatcher.dispatch(site, outcome, observation)

        return SiteResult(
            site_id=site.site_id,
            site_name=site.name,
            status=_STATUS_FOR[outcome.transition],
            violations=violations,
            severity=classify(violations) if violations else None,
            delay_id=str(outcome.delay.delay_id) if outcome.delay else None,
            station_id=observation.station.station_id,
        )

    # ── Internals ────────────────────────────────────────────────────────

    async def _check_site_guarded(self, site: Site) -> SiteResult:
        try:
            return await self.check_site(site)
        except WeatherClientError as exc:
            logger.warning("Skipping site %s this run, weather unavailable: %s", site, exc)
            return _failed(site, exc)
        except InvalidDelayDurationError as exc:
            logger.error("Refusing to close delay for site %s: %s", site, exc)
            return _failed(site, exc)
        except PersistenceError as exc:
            logger.warning("Persistence failure for site %s, decision discarded: %s", site, exc)
            return _failed(site, exc)
        except Exception as exc:
            logger.exception("Unexpected error checking site %s", site)
            return _failed(site, exc)

    async def _record_reading(self, site: Site, observation: Observation) -> None:
        try:
            await self._repository.insert_reading(
                WeatherReading(site_id=site.site_id, observation=observation)
            )
        except PersistenceError as exc:
            logger.warning("Could not store weather reading for site %s: %s", site, exc)


def _skipped(site: Site, reason: str) -> SiteResult:
    logger.debug("Skipping site %s: %s", site, reason)
    return SiteResult(
        site_id=site.site_id,
        site_name=site.name,
        status=SiteStatus.SKIPPED,
        detail=reason,
    )


def _failed(site: Site, exc: Exception) -> SiteResult:
    return SiteResult(
        site_id=site.site_id,
        site_name=site.name,
        status=SiteStatus.FAILED,
        detail=f"{type(exc).__name__}: {exc}",
    )
