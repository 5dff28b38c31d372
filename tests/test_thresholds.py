"""Tests for threshold evaluation."""

from delay_sentinel.core.thresholds import CHECKS, evaluate
from delay_sentinel.domain.enums import ConditionType
from delay_sentinel.domain.site import Thresholds

from tests.factories import make_observation

_ALL = Thresholds(
    temperature_min=32.0,
    temperature_max=95.0,
    wind_speed=25.0,
    precipitation=0.1,
    visibility_min=0.5,
)


class TestEvaluate:
    def test_calm_weather_has_no_violations(self) -> None:
        assert evaluate(make_observation(), _ALL) == []

    def test_no_thresholds_yields_empty(self) -> None:
        stormy = make_observation(wind_speed=80.0, precipitation=3.0)
        assert evaluate(stormy, None) == []
        assert evaluate(stormy, Thresholds()) == []

    def test_wind_violation_carries_value_threshold_unit(self) -> None:
        [v] = evaluate(make_observation(wind_speed=40.0), Thresholds(wind_speed=25.0))
        assert v.condition == ConditionType.WIND_SPEED
        assert v.value == 40.0
        assert v.threshold == 25.0
        assert v.unit == "mph"

    def test_bounds_are_strict(self) -> None:
        at_limit = make_observation(
            temperature=32.0, wind_speed=25.0, precipitation=0.1, visibility=0.5
        )
        assert evaluate(at_limit, _ALL) == []

    def test_minimum_checks_trigger_below(self) -> None:
        obs = make_observation(temperature=20.0, visibility=0.2)
        kinds = [v.condition for v in evaluate(obs, _ALL)]
        assert kinds == [ConditionType.TEMPERATURE_LOW, ConditionType.VISIBILITY]

    def test_fixed_order_of_violations(self) -> None:
        obs = make_observation(
            temperature=100.0, wind_speed=50.0, precipitation=1.0, visibility=0.1
        )
        kinds = [v.condition for v in evaluate(obs, _ALL)]
        assert kinds == [
            ConditionType.TEMPERATURE_HIGH,
            ConditionType.WIND_SPEED,
            ConditionType.PRECIPITATION,
            ConditionType.VISIBILITY,
        ]

    def test_unknown_readings_are_skipped_not_zero(self) -> None:
        # A None temperature must not read as 0°F and trip the minimum
        obs = make_observation(temperature=None, visibility=None, precipitation=None)
        assert evaluate(obs, _ALL) == []

    def test_zero_limit_is_configured(self) -> None:
        [v] = evaluate(make_observation(precipitation=0.01), Thresholds(precipitation=0.0))
        assert v.condition == ConditionType.PRECIPITATION
        assert v.threshold == 0.0

    def test_pure_and_deterministic(self) -> None:
        obs = make_observation(temperature=10.0, wind_speed=60.0)
        first = evaluate(obs, _ALL)
        second = evaluate(obs, _ALL)
        assert first == second
        assert obs.wind_speed == 60.0


class TestCheckTable:
    def test_every_condition_has_one_check(self) -> None:
        assert [c.condition for c in CHECKS] == list(ConditionType)
