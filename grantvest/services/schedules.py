"""Base timeline generation.

A grant is resolved once into one of five schedule variants; each variant has
exactly one generator. Generators return provisional events (cumulative totals
left at zero) and, apart from the performance generator, leave ordering to the
finalizer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Union

from grantvest.core.errors import CalculationFailedError
from grantvest.core.settings import VestingSettings
from grantvest.schemas.grant import (
    CustomVestingEvent,
    Grant,
    PerformanceClause,
    VestingFrequency,
    VestingPolicy,
)
from grantvest.schemas.vesting import SpecialCondition, SpecialConditionType, VestingEvent
from grantvest.services.dates import add_months
from grantvest.services.units import round_units

logger = logging.getLogger(__name__)

CADENCE_MONTHS = {
    VestingFrequency.MONTHLY: 1,
    VestingFrequency.QUARTERLY: 3,
    VestingFrequency.ANNUAL: 12,
}


@dataclass(frozen=True)
class LinearSchedule:
    cliff_months: int
    cadence_months: int
    vesting_months: int


@dataclass(frozen=True)
class CliffSchedule:
    cliff_months: int
    cadence_months: int
    vesting_months: int


@dataclass(frozen=True)
class BackWeightedSchedule:
    cliff_months: int
    cadence_months: int
    vesting_months: int


@dataclass(frozen=True)
class PerformanceSchedule:
    clause: PerformanceClause


@dataclass(frozen=True)
class CustomSchedule:
    entries: tuple[CustomVestingEvent, ...]


Schedule = Union[LinearSchedule, CliffSchedule, BackWeightedSchedule, PerformanceSchedule, CustomSchedule]
StepSchedule = Union[LinearSchedule, CliffSchedule, BackWeightedSchedule]


def resolve_policy(grant: Grant) -> VestingPolicy:
    """Policy label reported for a grant: custom, explicit tag, cliff, then linear."""
    if grant.is_custom:
        return VestingPolicy.CUSTOM
    if grant.policy is not None:
        return grant.policy
    if grant.has_cliff:
        return VestingPolicy.CLIFF
    return VestingPolicy.LINEAR


def resolve_schedule(grant: Grant) -> Schedule:
    if grant.is_custom and grant.custom_schedule is not None:
        return CustomSchedule(entries=grant.custom_schedule)

    step = (grant.cliff_months or 0, CADENCE_MONTHS[grant.cadence], grant.vesting_months)
    policy = resolve_policy(grant)
    if policy == VestingPolicy.CUSTOM:
        logger.info("Custom grant has no custom schedule; using linear schedule")
        return LinearSchedule(*step)
    if policy == VestingPolicy.PERFORMANCE_BASED:
        if grant.has_performance_vesting:
            return PerformanceSchedule(clause=grant.performance)
        logger.info("Performance-based grant has no enabled performance clause; using linear schedule")
        return LinearSchedule(*step)
    if policy == VestingPolicy.BACK_WEIGHTED:
        return BackWeightedSchedule(*step)
    if policy == VestingPolicy.CLIFF:
        return CliffSchedule(*step)
    return LinearSchedule(*step)


def _event(
    grant: Grant,
    vest_date: date,
    units: Decimal,
    conditions: list[SpecialCondition] | None = None,
) -> VestingEvent:
    return VestingEvent(
        vest_date=vest_date,
        units=units,
        unit_type=grant.unit_type,
        company=grant.company,
        special_conditions=conditions or None,
    )


def _step_dates(schedule: StepSchedule, vesting_start: date) -> list[date]:
    if schedule.vesting_months < schedule.cadence_months:
        raise CalculationFailedError(
            f"Vesting period of {schedule.vesting_months} months is shorter than one "
            f"{schedule.cadence_months}-month vesting interval"
        )
    # Offsets are taken from the vesting start so month-end dates do not drift.
    offset = schedule.cliff_months if schedule.cliff_months > 0 else schedule.cadence_months
    dates: list[date] = []
    while offset <= schedule.vesting_months:
        dates.append(add_months(vesting_start, offset))
        offset += schedule.cadence_months
    if not dates:
        raise CalculationFailedError(
            f"Vesting cliff of {schedule.cliff_months} months exceeds the "
            f"{schedule.vesting_months}-month vesting period"
        )
    return dates


def _generate_even(schedule: StepSchedule, grant: Grant, precision: int) -> list[VestingEvent]:
    cadence = Decimal(schedule.cadence_months)
    total_periods = Decimal(schedule.vesting_months) / cadence
    units_per_period = grant.units / total_periods

    events: list[VestingEvent] = []
    for index, vest_date in enumerate(_step_dates(schedule, grant.vesting_start)):
        units = units_per_period
        conditions: list[SpecialCondition] = []
        if index == 0 and schedule.cliff_months > 0:
            units = units_per_period * Decimal(schedule.cliff_months) / cadence
            conditions.append(
                SpecialCondition(
                    type=SpecialConditionType.CLIFF,
                    description=f"{schedule.cliff_months}-month cliff vesting",
                    applied_units=round_units(units, precision),
                )
            )
        events.append(_event(grant, vest_date, round_units(units, precision), conditions))
    return events


def _generate_linear(schedule: LinearSchedule, grant: Grant, precision: int) -> list[VestingEvent]:
    return _generate_even(schedule, grant, precision)


def _generate_cliff(schedule: CliffSchedule, grant: Grant, precision: int) -> list[VestingEvent]:
    return _generate_even(schedule, grant, precision)


def _generate_back_weighted(
    schedule: BackWeightedSchedule, grant: Grant, precision: int
) -> list[VestingEvent]:
    dates = _step_dates(schedule, grant.vesting_start)
    total_periods = schedule.vesting_months // schedule.cadence_months
    if len(dates) > total_periods:
        # Only happens when the cliff is not a whole number of intervals.
        raise CalculationFailedError(
            f"Back-weighted schedule emits {len(dates)} vesting dates but the vesting "
            f"period holds only {total_periods} intervals",
            grant_id=grant.grant_id,
            context={"vesting_dates": len(dates), "intervals": total_periods},
        )
    weight_total = Decimal(total_periods * (total_periods + 1) // 2)

    events: list[VestingEvent] = []
    for index, vest_date in enumerate(dates):
        units = grant.units * Decimal(index + 1) / weight_total
        conditions: list[SpecialCondition] = []
        if index == 0 and schedule.cliff_months > 0:
            conditions.append(
                SpecialCondition(
                    type=SpecialConditionType.CLIFF,
                    description=f"{schedule.cliff_months}-month cliff with back-weighted vesting",
                    applied_units=round_units(units, precision),
                )
            )
        events.append(_event(grant, vest_date, round_units(units, precision), conditions))
    return events


def _generate_performance(
    schedule: PerformanceSchedule, grant: Grant, precision: int
) -> list[VestingEvent]:
    clause = schedule.clause
    events: list[VestingEvent] = []
    for milestone in clause.milestones:
        if not milestone.achieved:
            continue
        vest_date = milestone.vesting_date
        if vest_date is None:
            continue
        if clause.vesting_delay_months:
            vest_date = add_months(vest_date, clause.vesting_delay_months)
        units = round_units(grant.units * milestone.percentage_of_grant / Decimal(100), precision)
        condition = SpecialCondition(
            type=SpecialConditionType.PERFORMANCE,
            description=f"Performance milestone: {milestone.description}",
            applied_units=units,
        )
        events.append(_event(grant, vest_date, units, [condition]))
    return sorted(events, key=lambda event: event.vest_date)


def _generate_custom(schedule: CustomSchedule, grant: Grant, precision: int) -> list[VestingEvent]:
    # Custom units are taken verbatim; precision does not apply here.
    events: list[VestingEvent] = []
    for entry in schedule.entries:
        condition = SpecialCondition(
            type=SpecialConditionType.CUSTOM,
            description=entry.description or "Custom vesting event",
            applied_units=entry.units,
        )
        events.append(_event(grant, entry.vest_date, entry.units, [condition]))
    return events


_GENERATORS: dict[type, Callable[..., list[VestingEvent]]] = {
    LinearSchedule: _generate_linear,
    CliffSchedule: _generate_cliff,
    BackWeightedSchedule: _generate_back_weighted,
    PerformanceSchedule: _generate_performance,
    CustomSchedule: _generate_custom,
}


def generate_base_events(
    schedule: Schedule, grant: Grant, settings: VestingSettings
) -> list[VestingEvent]:
    generator = _GENERATORS[type(schedule)]
    events = generator(schedule, grant, settings.shares_precision)
    if len(events) > settings.max_events_per_grant:
        raise CalculationFailedError(
            f"Schedule produced {len(events)} events; the limit is {settings.max_events_per_grant}",
            grant_id=grant.grant_id,
        )
    logger.debug("Generated %s base events using %s", len(events), type(schedule).__name__)
    return events
