from __future__ import annotations

import logging
from decimal import Decimal

from grantvest.schemas.grant import Grant
from grantvest.schemas.vesting import VestingEvent
from grantvest.services.units import quantum, round_units

logger = logging.getLogger(__name__)


def finalize_events(
    events: list[VestingEvent], grant: Grant, precision: int
) -> tuple[list[VestingEvent], list[str]]:
    """Sort by date, fill cumulative totals and reconcile against the grant.

    A mismatch beyond the rounding tolerance is reported as a warning only.
    """
    ordered = sorted(events, key=lambda event: event.vest_date)

    finalized: list[VestingEvent] = []
    running_total = Decimal("0")
    for event in ordered:
        running_total += event.units
        finalized.append(
            event.model_copy(update={"cumulative_units": round_units(running_total, precision)})
        )

    warnings: list[str] = []
    tolerance = quantum(precision)
    if abs(running_total - grant.units) > tolerance:
        message = (
            f"Vesting calculation mismatch: expected {grant.units}, calculated {running_total}"
        )
        logger.warning(message)
        warnings.append(message)
    return finalized, warnings
