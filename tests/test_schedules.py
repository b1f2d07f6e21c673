from datetime import date
from decimal import Decimal

import pytest

from conftest import make_grant, make_milestone, make_settings
from grantvest.core.errors import CalculationFailedError
from grantvest.schemas.grant import (
    CustomVestingEvent,
    PerformanceClause,
    VestingFrequency,
    VestingPolicy,
)
from grantvest.schemas.vesting import SpecialConditionType
from grantvest.services import schedules


def _generate(grant, **settings_overrides):
    settings = make_settings(**settings_overrides)
    return schedules.generate_base_events(schedules.resolve_schedule(grant), grant, settings)


def test_linear_without_cliff_emits_one_event_per_period():
    grant = make_grant(units=Decimal("1200"), vesting_months=12)
    events = _generate(grant)
    assert len(events) == 12
    assert all(event.units == Decimal("100") for event in events)
    assert events[0].vest_date == date(2024, 2, 1)
    assert events[-1].vest_date == date(2025, 1, 1)
    assert all(event.special_conditions is None for event in events)


def test_cliff_collapses_cliff_periods_into_first_event():
    grant = make_grant(units=Decimal("4800"), cliff_months=12, vesting_months=48)
    events = _generate(grant)
    assert len(events) == 37
    assert events[0].vest_date == date(2025, 1, 1)
    assert events[0].units == Decimal("1200")
    assert all(event.units == Decimal("100") for event in events[1:])
    assert events[-1].vest_date == date(2028, 1, 1)

    condition = events[0].special_conditions[0]
    assert condition.type == SpecialConditionType.CLIFF
    assert condition.description == "12-month cliff vesting"
    assert condition.applied_units == Decimal("1200")


def test_quarterly_cadence_steps_three_months():
    grant = make_grant(units=Decimal("1600"), vesting_months=48, cadence=VestingFrequency.QUARTERLY)
    events = _generate(grant)
    assert len(events) == 16
    assert [event.vest_date for event in events[:3]] == [
        date(2024, 4, 1),
        date(2024, 7, 1),
        date(2024, 10, 1),
    ]
    assert all(event.units == Decimal("100") for event in events)


def test_units_are_rounded_to_configured_precision():
    grant = make_grant(units=Decimal("1000"), vesting_months=12)
    events = _generate(grant, shares_precision=2)
    assert events[0].units == Decimal("83.33")
    assert events[0].units.as_tuple().exponent == -2


def test_month_end_vesting_start_does_not_drift():
    grant = make_grant(
        units=Decimal("300"),
        grant_date=date(2024, 1, 31),
        vesting_start=date(2024, 1, 31),
        vesting_months=3,
    )
    events = _generate(grant)
    assert [event.vest_date for event in events] == [
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
    ]


def test_back_weighted_weights_grow_with_period():
    grant = make_grant(
        units=Decimal("1000"),
        vesting_months=48,
        cadence=VestingFrequency.ANNUAL,
        policy=VestingPolicy.BACK_WEIGHTED,
    )
    events = _generate(grant)
    assert [event.units for event in events] == [
        Decimal("100"),
        Decimal("200"),
        Decimal("300"),
        Decimal("400"),
    ]


def test_back_weighted_with_cliff_is_non_decreasing():
    grant = make_grant(cliff_months=12, policy=VestingPolicy.BACK_WEIGHTED)
    events = _generate(grant)
    assert len(events) == 37
    units = [event.units for event in events]
    assert units == sorted(units)
    assert events[0].special_conditions[0].description == "12-month cliff with back-weighted vesting"


def test_performance_emits_only_achieved_milestones_sorted():
    clause = PerformanceClause(
        enabled=True,
        milestones=(
            make_milestone("a", "25", achieved_date=date(2024, 6, 10), description="Revenue target"),
            make_milestone("b", "50", achieved=False, target_date=date(2024, 2, 1)),
            make_milestone("c", "25", target_date=date(2024, 3, 15)),
            make_milestone("d", "10"),
        ),
    )
    grant = make_grant(policy=VestingPolicy.PERFORMANCE_BASED, performance=clause)
    events = _generate(grant)
    assert [event.vest_date for event in events] == [date(2024, 3, 15), date(2024, 6, 10)]
    assert all(event.units == Decimal("1200") for event in events)
    condition = events[1].special_conditions[0]
    assert condition.type == SpecialConditionType.PERFORMANCE
    assert condition.description == "Performance milestone: Revenue target"


def test_performance_delay_shifts_vesting_dates():
    clause = PerformanceClause(
        enabled=True,
        vesting_delay_months=3,
        milestones=(make_milestone("a", "100", achieved_date=date(2024, 6, 10)),),
    )
    grant = make_grant(policy=VestingPolicy.PERFORMANCE_BASED, performance=clause)
    events = _generate(grant)
    assert len(events) == 1
    assert events[0].vest_date == date(2024, 9, 10)
    assert events[0].units == Decimal("4800")


def test_performance_policy_without_enabled_clause_falls_back_to_linear():
    grant = make_grant(
        policy=VestingPolicy.PERFORMANCE_BASED,
        performance=PerformanceClause(enabled=False),
    )
    schedule = schedules.resolve_schedule(grant)
    assert isinstance(schedule, schedules.LinearSchedule)
    events = _generate(grant)
    assert len(events) == 48
    assert schedules.resolve_policy(grant) == VestingPolicy.PERFORMANCE_BASED


def test_custom_schedule_is_used_verbatim():
    grant = make_grant(
        custom_schedule=(
            CustomVestingEvent(vest_date=date(2024, 6, 1), units=Decimal("1000.1234567")),
            CustomVestingEvent(
                vest_date=date(2024, 3, 1), units=Decimal("3799.8765433"), description="Signing"
            ),
        )
    )
    events = _generate(grant)
    assert [event.units for event in events] == [Decimal("1000.1234567"), Decimal("3799.8765433")]
    assert events[0].special_conditions[0].description == "Custom vesting event"
    assert events[1].special_conditions[0].description == "Signing"
    assert events[1].special_conditions[0].type == SpecialConditionType.CUSTOM


def test_resolve_policy_precedence():
    custom = make_grant(
        policy=VestingPolicy.BACK_WEIGHTED,
        custom_schedule=(CustomVestingEvent(vest_date=date(2024, 6, 1), units=Decimal("4800")),),
    )
    assert schedules.resolve_policy(custom) == VestingPolicy.CUSTOM
    assert schedules.resolve_policy(make_grant(policy=VestingPolicy.LINEAR, cliff_months=12)) == (
        VestingPolicy.LINEAR
    )
    assert schedules.resolve_policy(make_grant(cliff_months=6)) == VestingPolicy.CLIFF
    assert schedules.resolve_policy(make_grant()) == VestingPolicy.LINEAR


def test_vesting_period_shorter_than_cadence_fails():
    grant = make_grant(vesting_months=2, cadence=VestingFrequency.QUARTERLY)
    with pytest.raises(CalculationFailedError, match="shorter than one"):
        _generate(grant)


def test_cliff_longer_than_vesting_period_fails():
    grant = make_grant(cliff_months=60, vesting_months=48)
    with pytest.raises(CalculationFailedError, match="exceeds"):
        _generate(grant)


def test_event_limit_is_enforced():
    grant = make_grant(vesting_months=48)
    with pytest.raises(CalculationFailedError, match="limit is 10"):
        _generate(grant, max_events_per_grant=10)


def test_custom_tag_without_entries_uses_linear_schedule():
    grant = make_grant(policy=VestingPolicy.CUSTOM)
    assert isinstance(schedules.resolve_schedule(grant), schedules.LinearSchedule)
    assert schedules.resolve_policy(grant) == VestingPolicy.CUSTOM
    events = _generate(grant)
    assert len(events) == 48
    assert all(event.units == Decimal("100") for event in events)


def test_custom_tag_with_empty_entries_stays_custom():
    grant = make_grant(policy=VestingPolicy.CUSTOM, custom_schedule=())
    assert isinstance(schedules.resolve_schedule(grant), schedules.CustomSchedule)
    assert _generate(grant) == []


def test_back_weighted_with_partial_interval_cliff_fails():
    grant = make_grant(
        units=Decimal("4800"),
        cliff_months=1,
        vesting_months=13,
        cadence=VestingFrequency.ANNUAL,
        policy=VestingPolicy.BACK_WEIGHTED,
    )
    with pytest.raises(CalculationFailedError, match="emits 2 vesting dates") as exc_info:
        _generate(grant)
    assert exc_info.value.context == {"vesting_dates": 2, "intervals": 1}
