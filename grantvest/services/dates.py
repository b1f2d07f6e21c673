from __future__ import annotations

import calendar
from datetime import date, timedelta

from grantvest.schemas.vesting import DateAdjustment, VestingEvent


SATURDAY = 5


def add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def is_weekend(value: date) -> bool:
    return value.weekday() >= SATURDAY


def shift_to_business_day(value: date, policy: DateAdjustment) -> date:
    if policy == DateAdjustment.NONE or not is_weekend(value):
        return value
    step = timedelta(days=1 if policy == DateAdjustment.NEXT_BUSINESS_DAY else -1)
    while is_weekend(value):
        value += step
    return value


def adjust_for_weekends(events: list[VestingEvent], policy: DateAdjustment) -> list[VestingEvent]:
    if policy == DateAdjustment.NONE:
        return events
    adjusted: list[VestingEvent] = []
    for event in events:
        shifted = shift_to_business_day(event.vest_date, policy)
        if shifted != event.vest_date:
            event = event.model_copy(update={"vest_date": shifted})
        adjusted.append(event)
    return adjusted


def apply_holiday_adjustment(events: list[VestingEvent], policy: DateAdjustment) -> list[VestingEvent]:
    """Holiday shifting is not implemented; events are returned unchanged.

    The setting exists so stored configurations keep loading. The engine
    logs a warning once when it is set to anything other than ``none``.
    """
    return events
