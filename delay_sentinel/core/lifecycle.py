"""DelayLifecycleTracker — the per-site open / continue / close state machine.

States:
    CLEAR    no open DelayEvent for the site
    DELAYED  exactly one open DelayEvent for the site

Transitions, driven by the violation list of the current evaluation:

    CLEAR   + violations     → DELAYED   create event, full-shift estimate
    DELAYED + violations     → DELAYED   nothing written
    DELAYED + no violations  → CLEAR     end = now, prorated final cost
    CLEAR   + no violations  → CLEAR     nothing written

Cost policy: the estimate is taken once at creation and only replaced by
the final figure at close.  Continuing ticks never rewrite cost fields, so
every stored number traces to exactly one calculation.

Concurrency:
    The read-decide-write sequence runs under a per-site asyncio.Lock.  The
    repository additionally rejects a second open delay for a site; that
    rejection means another writer won the race, so the tracker re-reads
    and reports the existing delay as continuing.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

from delay_sentinel.core.activities import affected_activities
from delay_sentinel.core.cost import CostCalculator, elapsed_hours
from delay_sentinel.domain.delay import CostBasis, DelayEvent
from delay_sentinel.domain.enums import Transition
from delay_sentinel.domain.site import Site
from delay_sentinel.domain.violation import Violation
from delay_sentinel.foundation.clock import Clock, utc_now
from delay_sentinel.store.errors import DuplicateOpenDelayError, PersistenceError
from delay_sentinel.store.repository import DelayRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LifecycleOutcome:
    """What one evaluation did to a site's delay state."""

    transition: Transition
    delay: Optional[DelayEvent] = None
    violations: list[Violation] = field(default_factory=list)


class DelayLifecycleTracker:
    """Applies violation results to the persisted delay state of each site.

    Args:
        repository: Where open and closed delays live.
        cost_calculator: Computes the opening estimate and the final cost.
        clock: Source of "now"; injectable for tests.
    """

    def __init__(
        self,
        repository: DelayRepository,
        cost_calculator: CostCalculator | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._repository = repository
        self._costs = cost_calculator or CostCalculator()
        self._clock = clock
        self._site_locks: dict[str, asyncio.Lock] = {}

    # ── Public API ───────────────────────────────────────────────────────

    async def apply(self, site: Site, violations: Sequence[Violation]) -> LifecycleOutcome:
        """Advance *site*'s state machine for the current violation list.

        Raises:
            PersistenceError: If a repository call fails.  Nothing else is
                written for this evaluation.
            InvalidDelayDurationError: If a delay would close with a
                non-positive duration.
        """
        violations = list(violations)
        async with self._lock_for(site.site_id):
            existing = await self._repository.open_delay(site.site_id)

            if violations:
                if existing is not None:
                    logger.debug("Continuing delay %s for site %s", existing.delay_id, site)
                    return LifecycleOutcome(Transition.CONTINUED, existing, violations)
                return await self._open(site, violations)

            if existing is not None:
                return await self._close(site, existing)
            return LifecycleOutcome(Transition.NONE)

    # ── Transitions ──────────────────────────────────────────────────────

    async def _open(self, site: Site, violations: list[Violation]) -> LifecycleOutcome:
        basis = CostBasis(
            crew_size=site.crew_size,
            hourly_rate=site.hourly_rate,
            daily_overhead=site.daily_overhead,
        )
        conditions = ", ".join(v.condition.value for v in violations)
        delay = DelayEvent(
            site_id=site.site_id,
            start_time=self._clock(),
            violations=violations,
            weather_condition=conditions,
            affected_activities=affected_activities(site.project_type, violations),
            crew_size=basis.crew_size,
            hourly_rate=basis.hourly_rate,
            daily_overhead=basis.daily_overhead,
            auto_generated=True,
            notes=f"Auto-generated weather delay: {conditions}",
        ).with_cost(self._costs.estimate_open_cost(basis))

        try:
            created = await self._repository.create_delay(delay)
        except DuplicateOpenDelayError:
            current = await self._repository.open_delay(site.site_id)
            if current is None:
                raise PersistenceError(
                    f"Site {site.site_id} reported a duplicate open delay that cannot be read back"
                )
            logger.info(
                "Open delay for site %s was created concurrently; continuing %s",
                site,
                current.delay_id,
            )
            return LifecycleOutcome(Transition.CONTINUED, current, violations)

        logger.info(
            "Opened delay %s for site %s: %s (estimate $%.2f)",
            created.delay_id,
            site,
            conditions,
            created.total_cost,
        )
        return LifecycleOutcome(Transition.OPENED, created, violations)

    async def _close(self, site: Site, delay: DelayEvent) -> LifecycleOutcome:
        end = self._clock()
        hours = elapsed_hours(delay.start_time, end)
        final = self._costs.finalize_cost(delay.cost_basis, hours)
        closed = await self._repository.close_delay(delay.closed(end, hours, final))
        logger.info(
            "Closed delay %s for site %s after %.2f h (final $%.2f)",
            closed.delay_id,
            site,
            hours,
            closed.total_cost,
        )
        return LifecycleOutcome(Transition.CLOSED, closed)

    # ── Internals ────────────────────────────────────────────────────────

    def _lock_for(self, site_id: str) -> asyncio.Lock:
        # No await between lookup and insert, so this is atomic on the loop
        lock = self._site_locks.get(site_id)
        if lock is None:
            lock = self._site_locks[site_id] = asyncio.Lock()
        return lock
