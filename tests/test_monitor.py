"""Tests for the MonitorOrchestrator: end-to-end runs over fake weather.

Covers the run-level guarantees: one open delay per site across runs,
idempotent re-runs, clearing mid-delay, and per-site failure isolation.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from delay_sentinel.core.lifecycle import DelayLifecycleTracker
from delay_sentinel.core.monitor import MonitorOrchestrator
from delay_sentinel.domain.alert import Alert
from delay_sentinel.domain.delay import DelayEvent
from delay_sentinel.domain.enums import AlertType, Severity, SiteStatus
from delay_sentinel.domain.observation import WeatherReading
from delay_sentinel.domain.site import Site, Thresholds
from delay_sentinel.notify.dispatcher import NotificationDispatcher
from delay_sentinel.store.errors import PersistenceError
from delay_sentinel.store.repository import InMemoryDelayRepository
from delay_sentinel.weather.errors import MalformedResponse, NoStationFound, UpstreamUnavailable

from tests.factories import (
    BASE_TIME,
    FakeClock,
    FakeWeather,
    RecordingSink,
    make_observation,
    make_site,
)

_WINDY = make_observation(wind_speed=45.0)
_CALM = make_observation()


class _Harness:
    """Orchestrator wired to in-memory fakes sharing one clock."""

    def __init__(self, *sites: Site, repo: InMemoryDelayRepository | None = None) -> None:
        self.clock = FakeClock()
        self.repo = repo or InMemoryDelayRepository(sites)
        self.weather = FakeWeather(default=_CALM)
        self.sink = RecordingSink()
        self.orchestrator = MonitorOrchestrator(
            self.repo,
            self.weather,
            DelayLifecycleTracker(self.repo, clock=self.clock),
            NotificationDispatcher(self.repo, self.sink, clock=self.clock),
            max_concurrency=2,
            clock=self.clock,
        )

    async def open_delays(self, site_id: str) -> list[DelayEvent]:
        return [d for d in await self.repo.delays_for(site_id) if d.is_open]

    async def alerts(self, site_id: str, alert_type: AlertType) -> list[Alert]:
        return [a for a in await self.repo.alerts_for(site_id) if a.alert_type == alert_type]


# ── Lifecycle Across Runs ────────────────────────────────────────────────────


class TestRunLifecycle:
    @pytest.mark.asyncio
    async def test_violation_opens_delay(self) -> None:
        site = make_site()
        h = _Harness(site)
        h.weather.set(site, _WINDY)

        report = await h.orchestrator.run_once()

        [result] = report.results
        assert result.status == SiteStatus.OPENED
        assert result.severity == Severity.MEDIUM
        assert result.station_id == "KSPI"
        assert [v.value for v in result.violations] == [45.0]
        assert report.delays_opened == 1
        assert len(await h.open_delays("site-1")) == 1
        assert len(await h.alerts("site-1", AlertType.NEW_DELAY)) == 1

    @pytest.mark.asyncio
    async def test_identical_reruns_create_one_delay(self) -> None:
        site = make_site()
        h = _Harness(site)
        h.weather.set(site, _WINDY)

        first = await h.orchestrator.run_once()
        second = await h.orchestrator.run_once()

        assert first.results[0].status == SiteStatus.OPENED
        assert second.results[0].status == SiteStatus.CONTINUED
        assert second.results[0].delay_id == first.results[0].delay_id
        assert len(await h.repo.delays_for("site-1")) == 1
        assert len(await h.alerts("site-1", AlertType.NEW_DELAY)) == 1
        assert len(await h.alerts("site-1", AlertType.CONTINUING)) == 1

    @pytest.mark.asyncio
    async def test_at_most_one_open_delay_over_many_runs(self) -> None:
        site = make_site()
        h = _Harness(site)
        pattern = [_WINDY, _WINDY, _CALM, _WINDY, _CALM, _CALM, _WINDY, _WINDY, _WINDY, _CALM]

        for obs in pattern:
            h.weather.set(site, obs)
            await h.orchestrator.run_once()
            assert len(await h.open_delays("site-1")) <= 1
            h.clock.advance(minutes=30)

        delays = await h.repo.delays_for("site-1")
        assert len(delays) == 3
        assert all(not d.is_open for d in delays)

    @pytest.mark.asyncio
    async def test_site_clears_mid_delay(self) -> None:
        site = make_site()
        h = _Harness(site)
        h.weather.set(site, _WINDY)
        await h.orchestrator.run_once()

        h.clock.advance(hours=3)
        h.weather.set(site, _CALM)
        report = await h.orchestrator.run_once()

        assert report.results[0].status == SiteStatus.CLOSED
        [delay] = await h.repo.delays_for("site-1")
        assert delay.start_time == BASE_TIME
        assert delay.end_time == BASE_TIME + timedelta(hours=3)
        assert delay.duration_hours == 3.0
        assert delay.labor_cost == 600.0
        assert delay.overhead_cost == 75.0
        assert delay.total_cost == 675.0

        h.clock.advance(minutes=15)
        await h.orchestrator.run_once()
        ended = await h.alerts("site-1", AlertType.DELAY_ENDED)
        assert len(ended) == 1
        assert ended[0].severity == Severity.LOW

    @pytest.mark.asyncio
    async def test_calm_site_reports_clear(self) -> None:
        h = _Harness(make_site())
        report = await h.orchestrator.run_once()
        assert report.results[0].status == SiteStatus.CLEAR
        assert h.sink.payloads == []

    @pytest.mark.asyncio
    async def test_readings_are_recorded(self) -> None:
        h = _Harness(make_site())
        await h.orchestrator.run_once()
        [reading] = await h.repo.readings_for("site-1")
        assert reading.observation == _CALM


# ── Skips & Failures ─────────────────────────────────────────────────────────


class TestSkipsAndFailures:
    @pytest.mark.asyncio
    async def test_site_without_coordinates_skipped(self) -> None:
        h = _Harness(make_site(location=None))
        report = await h.orchestrator.run_once()
        assert report.results[0].status == SiteStatus.SKIPPED
        assert h.weather.calls == []

    @pytest.mark.asyncio
    async def test_site_without_thresholds_never_evaluated(self) -> None:
        h = _Harness(
            make_site("none", thresholds=None),
            make_site("empty", thresholds=Thresholds(), location={"lat": 40.0, "lng": -89.0}),
        )
        h.weather.default = _WINDY
        report = await h.orchestrator.run_once()
        assert {r.status for r in report.results} == {SiteStatus.SKIPPED}
        assert report.sites_skipped == 2
        assert h.weather.calls == []

    @pytest.mark.asyncio
    async def test_upstream_failure_isolated_to_its_site(self) -> None:
        site_a = make_site("site-a", location={"lat": 41.0, "lng": -88.0})
        site_b = make_site("site-b", location={"lat": 42.0, "lng": -87.0})
        h = _Harness(site_a, site_b)
        h.weather.set(site_a, UpstreamUnavailable("https://api.test", "HTTP 503"))
        h.weather.set(site_b, _WINDY)

        report = await h.orchestrator.run_once()

        by_id = {r.site_id: r for r in report.results}
        assert by_id["site-a"].status == SiteStatus.FAILED
        assert "UpstreamUnavailable" in by_id["site-a"].detail
        assert by_id["site-b"].status == SiteStatus.OPENED
        assert await h.repo.delays_for("site-a") == []
        assert await h.repo.alerts_for("site-a") == []
        assert await h.repo.readings_for("site-a") == []
        assert len(await h.open_delays("site-b")) == 1

    @pytest.mark.asyncio
    async def test_weather_failure_leaves_open_delay_untouched(self) -> None:
        site = make_site()
        h = _Harness(site)
        h.weather.set(site, _WINDY)
        await h.orchestrator.run_once()

        h.clock.advance(hours=1)
        for exc in (
            NoStationFound(39.78, -89.65),
            MalformedResponse("https://api.test", "bad json"),
        ):
            h.weather.set(site, exc)
            report = await h.orchestrator.run_once()
            assert report.results[0].status == SiteStatus.FAILED

        [delay] = await h.repo.delays_for("site-1")
        assert delay.is_open

    @pytest.mark.asyncio
    async def test_zero_duration_close_reported_as_failure(self) -> None:
        site = make_site()
        h = _Harness(site)
        h.weather.set(site, _WINDY)
        await h.orchestrator.run_once()

        h.weather.set(site, _CALM)
        report = await h.orchestrator.run_once()

        assert report.results[0].status == SiteStatus.FAILED
        assert "InvalidDelayDurationError" in report.results[0].detail
        assert len(await h.open_delays("site-1")) == 1

    @pytest.mark.asyncio
    async def test_persistence_failure_isolated(self) -> None:
        class _FlakyRepo(InMemoryDelayRepository):
            async def create_delay(self, delay: DelayEvent) -> DelayEvent:
                if delay.site_id == "bad":
                    raise PersistenceError("write timeout")
                return await super().create_delay(delay)

        bad = make_site("bad", location={"lat": 41.0, "lng": -88.0})
        good = make_site("good", location={"lat": 42.0, "lng": -87.0})
        h = _Harness(repo=_FlakyRepo([bad, good]))
        h.weather.default = _WINDY

        report = await h.orchestrator.run_once()

        by_id = {r.site_id: r for r in report.results}
        assert by_id["bad"].status == SiteStatus.FAILED
        assert by_id["good"].status == SiteStatus.OPENED
        assert await h.repo.alerts_for("bad") == []

    @pytest.mark.asyncio
    async def test_reading_store_failure_does_not_block_evaluation(self) -> None:
        class _NoReadings(InMemoryDelayRepository):
            async def insert_reading(self, reading: WeatherReading) -> WeatherReading:
                raise PersistenceError("readings table full")

        site = make_site()
        h = _Harness(repo=_NoReadings([site]))
        h.weather.set(site, _WINDY)
        report = await h.orchestrator.run_once()
        assert report.results[0].status == SiteStatus.OPENED

    @pytest.mark.asyncio
    async def test_alert_store_crash_keeps_committed_transition(self) -> None:
        class _AlertsCrash(InMemoryDelayRepository):
            async def insert_alert(self, alert: Alert) -> Alert:
                raise RuntimeError("driver bug")

        site = make_site()
        h = _Harness(repo=_AlertsCrash([site]))
        h.weather.set(site, _WINDY)

        report = await h.orchestrator.run_once()

        assert report.results[0].status == SiteStatus.OPENED
        assert report.sites_failed == 0
        assert len(await h.open_delays("site-1")) == 1
        assert len(h.sink.payloads) == 1

    @pytest.mark.asyncio
    async def test_active_sites_failure_propagates(self) -> None:
        class _Down(InMemoryDelayRepository):
            async def active_sites(self) -> list[Site]:
                raise PersistenceError("database unreachable")

        h = _Harness(repo=_Down())
        with pytest.raises(PersistenceError):
            await h.orchestrator.run_once()


class TestReport:
    @pytest.mark.asyncio
    async def test_counts_and_serialisation(self) -> None:
        windy = make_site("windy", location={"lat": 41.0, "lng": -88.0})
        calm = make_site("calm", location={"lat": 42.0, "lng": -87.0})
        skipped = make_site("nowhere", location=None)
        h = _Harness(windy, calm, skipped)
        h.weather.set(windy, _WINDY)

        report = await h.orchestrator.run_once()
        data = report.to_dict()

        assert data["sites_checked"] == 3
        assert data["delays_opened"] == 1
        assert data["sites_skipped"] == 1
        assert data["sites_failed"] == 0
        assert data["started_at"] == BASE_TIME.isoformat()
        assert {r["site_id"] for r in data["results"]} == {"windy", "calm", "nowhere"}

    def test_concurrency_must_be_positive(self) -> None:
        repo = InMemoryDelayRepository()
        with pytest.raises(ValueError):
            MonitorOrchestrator(
                repo,
                FakeWeather(),
                DelayLifecycleTracker(repo),
                NotificationDispatcher(repo, RecordingSink()),
                max_concurrency=0,
            )
