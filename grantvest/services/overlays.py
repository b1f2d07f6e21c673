from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal

from grantvest.schemas.grant import Grant
from grantvest.schemas.vesting import (
    AccelerationEvent,
    SpecialCondition,
    SpecialConditionType,
    VestingEvent,
)
from grantvest.services.units import round_units, sum_units

logger = logging.getLogger(__name__)

POST_TERMINATION_EXERCISE_DAYS = 90


def applicable_triggers(grant: Grant, triggers: list[AccelerationEvent] | None) -> list[AccelerationEvent]:
    if not grant.has_acceleration or not triggers:
        return []
    allowed = grant.acceleration.trigger_events
    return [trigger for trigger in triggers if trigger.type in allowed]


def triggers_out_of_order(triggers: list[AccelerationEvent]) -> bool:
    dates = [trigger.trigger_date for trigger in triggers]
    return any(later < earlier for earlier, later in zip(dates, dates[1:]))


def apply_acceleration(
    events: list[VestingEvent],
    grant: Grant,
    triggers: list[AccelerationEvent] | None,
    precision: int,
) -> list[VestingEvent]:
    """Move unvested units onto each qualifying trigger date.

    Triggers are applied in the order given. Each trigger works against the
    timeline left by the previous one, so the caller's ordering matters.
    """
    clause = grant.acceleration
    accelerated_events = list(events)
    for trigger in applicable_triggers(grant, triggers):
        trigger_date = trigger.trigger_date
        vested = [event for event in accelerated_events if event.vest_date <= trigger_date]
        unvested = [event for event in accelerated_events if event.vest_date > trigger_date]
        if not unvested:
            continue

        unvested_total = sum_units(event.units for event in unvested)
        accelerated_units = round_units(
            unvested_total * clause.percentage_accelerated / Decimal(100), precision
        )
        remaining_units = unvested_total - accelerated_units
        if remaining_units > 0:
            factor = remaining_units / unvested_total
            accelerated_events = vested + [
                event.model_copy(update={"units": round_units(event.units * factor, precision)})
                for event in unvested
            ]
        else:
            accelerated_events = vested

        if accelerated_units > 0:
            condition = SpecialCondition(
                type=SpecialConditionType.ACCELERATION,
                description=(
                    f"{clause.acceleration_type.value}-trigger acceleration due to {trigger.type.value}"
                ),
                applied_units=accelerated_units,
            )
            accelerated_events.append(
                VestingEvent(
                    vest_date=trigger_date,
                    units=accelerated_units,
                    unit_type=grant.unit_type,
                    company=grant.company,
                    special_conditions=[condition],
                )
            )
        logger.info(
            "Accelerated %s units on %s due to %s",
            accelerated_units,
            trigger_date.isoformat(),
            trigger.type.value,
        )
    return accelerated_events


def apply_performance(events: list[VestingEvent], grant: Grant) -> list[VestingEvent]:
    # Milestones are turned into events by the performance schedule itself.
    return events


def apply_termination(
    events: list[VestingEvent], grant: Grant, termination_date: date
) -> list[VestingEvent]:
    surviving = [event for event in events if event.vest_date <= termination_date]
    dropped = len(events) - len(surviving)
    if dropped:
        logger.info("Termination on %s removed %s events", termination_date.isoformat(), dropped)
    if not grant.is_option or not surviving:
        return surviving

    # Latest surviving event; ties resolve to the one appearing last.
    last_index = max(range(len(surviving)), key=lambda index: (surviving[index].vest_date, index))
    last_event = surviving[last_index]
    exercise_deadline = termination_date + timedelta(days=POST_TERMINATION_EXERCISE_DAYS)
    surviving[last_index] = last_event.with_condition(
        SpecialCondition(
            type=SpecialConditionType.TERMINATION,
            description=(
                f"Terminated on {termination_date.isoformat()}. "
                f"Options must be exercised by {exercise_deadline.isoformat()}"
            ),
            applied_units=last_event.units,
        )
    )
    return surviving
