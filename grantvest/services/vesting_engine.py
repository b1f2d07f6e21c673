from __future__ import annotations

import logging
import time
from datetime import date, datetime, timezone
from decimal import Decimal
from functools import lru_cache
from typing import Iterable
from uuid import uuid4

from grantvest.core.context import reset_context, set_calculation_id, set_grant_id
from grantvest.core.errors import VestingCalculationError
from grantvest.core.logging import get_audit_logger
from grantvest.core.settings import VestingSettings, get_settings
from grantvest.schemas.grant import Grant, VestingPolicy
from grantvest.schemas.vesting import (
    CalculationMetadata,
    CalculationOptions,
    CalculationResult,
    DateAdjustment,
    EnrichedVestingEvent,
    PerformanceMetrics,
    PriceContext,
    VestingEvent,
)
from grantvest.services.dates import adjust_for_weekends, apply_holiday_adjustment
from grantvest.services.finalize import finalize_events
from grantvest.services.overlays import (
    applicable_triggers,
    apply_acceleration,
    apply_performance,
    apply_termination,
    triggers_out_of_order,
)
from grantvest.services.schedules import generate_base_events, resolve_policy, resolve_schedule
from grantvest.services.units import sum_units
from grantvest.services.validation import validate_calculation_inputs
from grantvest.services.valuation import enrich_events

logger = logging.getLogger(__name__)

FAILED_METHOD = "failed"
MAX_COMPLEXITY_SCORE = 10


def total_vested_as_of(events: Iterable[VestingEvent], as_of: date) -> Decimal:
    return sum_units(event.units for event in events if event.vest_date <= as_of)


def next_vesting_event(events: Iterable[VestingEvent], as_of: date) -> VestingEvent | None:
    upcoming = [event for event in events if event.vest_date > as_of]
    if not upcoming:
        return None
    return min(upcoming, key=lambda event: event.vest_date)


def complexity_score(grant: Grant) -> int:
    """Observability-only score; it never changes how a grant is calculated."""
    score = 1
    if grant.has_cliff:
        score += 1
    if grant.has_acceleration:
        score += 2
    if grant.has_performance_vesting:
        score += 3
    if grant.is_custom:
        score += 2
    if grant.policy == VestingPolicy.BACK_WEIGHTED:
        score += 1
    return min(score, MAX_COMPLEXITY_SCORE)


def _as_date(value: date | datetime | None) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    return value


def _parameters_used(
    grant: Grant | None, evaluation_date: date | None, options: CalculationOptions
) -> dict:
    return {
        "grant": grant.model_dump(mode="json") if grant is not None else None,
        "evaluation_date": evaluation_date.isoformat() if evaluation_date is not None else None,
        "options": options.model_dump(mode="json"),
    }


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000


class VestingEngine:
    """Turns a grant into its finalized vesting timeline.

    The engine keeps only its settings; every call is independent and safe to
    run concurrently.
    """

    def __init__(self, settings: VestingSettings | None = None) -> None:
        self.settings = settings or get_settings()
        if self.settings.holiday_adjustment != DateAdjustment.NONE:
            logger.warning(
                "Holiday adjustment '%s' is configured but no holiday calendar is available; "
                "vesting dates are not shifted for holidays",
                self.settings.holiday_adjustment.value,
            )

    def calculate(
        self,
        grant: Grant | None,
        evaluation_date: date | datetime | None,
        options: CalculationOptions | None = None,
    ) -> CalculationResult:
        started = time.perf_counter()
        options = options or CalculationOptions()
        evaluation_date = _as_date(evaluation_date)
        grant_token = set_grant_id(grant.grant_id if grant is not None and grant.grant_id else "-")
        calculation_token = set_calculation_id(uuid4().hex)
        try:
            return self._calculate(grant, evaluation_date, options, started)
        except VestingCalculationError as exc:
            if exc.grant_id is None and grant is not None:
                exc.grant_id = grant.grant_id
            logger.warning("Vesting calculation failed (%s): %s", exc.code.value, exc.message)
            return self._failure(exc, grant, evaluation_date, options, started)
        finally:
            reset_context(grant_token, calculation_token)

    def _calculate(
        self,
        grant: Grant,
        evaluation_date: date,
        options: CalculationOptions,
        started: float,
    ) -> CalculationResult:
        validate_calculation_inputs(grant, evaluation_date)
        settings = self.settings
        precision = settings.shares_precision
        method = resolve_policy(grant)
        warnings: list[str] = []

        events = generate_base_events(resolve_schedule(grant), grant, settings)

        if options.include_acceleration and settings.enable_acceleration and grant.has_acceleration:
            if triggers_out_of_order(applicable_triggers(grant, options.acceleration_events)):
                warnings.append(
                    "Acceleration triggers were not supplied in date order; "
                    "they were applied in the order given"
                )
            events = apply_acceleration(events, grant, options.acceleration_events, precision)

        if (
            options.include_performance
            and settings.enable_performance_vesting
            and grant.has_performance_vesting
        ):
            events = apply_performance(events, grant)

        termination_date = options.termination_date or grant.termination_date
        if termination_date is not None:
            events = apply_termination(events, grant, termination_date)

        events = adjust_for_weekends(events, settings.weekend_adjustment)
        events = apply_holiday_adjustment(events, settings.holiday_adjustment)
        events, reconciliation_warnings = finalize_events(events, grant, precision)
        warnings.extend(reconciliation_warnings)

        total_vested = total_vested_as_of(events, evaluation_date)
        result = CalculationResult(
            success=True,
            events=events,
            total_vested=total_vested,
            total_remaining=grant.units - total_vested,
            next_vesting_event=next_vesting_event(events, evaluation_date),
            warnings=warnings,
            metadata=CalculationMetadata(
                calculated_at=datetime.now(timezone.utc),
                calculation_method=method.value,
                parameters_used=_parameters_used(grant, evaluation_date, options),
                performance_metrics=PerformanceMetrics(
                    calculation_duration_ms=_elapsed_ms(started),
                    events_generated=len(events),
                    complexity_score=complexity_score(grant),
                ),
            ),
        )
        get_audit_logger().info(
            "vesting.calculated method=%s events=%s total_vested=%s warnings=%s",
            method.value,
            len(events),
            total_vested,
            len(warnings),
        )
        return result

    def _failure(
        self,
        exc: VestingCalculationError,
        grant: Grant | None,
        evaluation_date: date | None,
        options: CalculationOptions,
        started: float,
    ) -> CalculationResult:
        total_units = grant.units if grant is not None and grant.units is not None else Decimal("0")
        return CalculationResult(
            success=False,
            events=[],
            total_vested=Decimal("0"),
            total_remaining=total_units,
            error=exc.message,
            error_code=exc.code.value,
            metadata=CalculationMetadata(
                calculated_at=datetime.now(timezone.utc),
                calculation_method=FAILED_METHOD,
                parameters_used=_parameters_used(grant, evaluation_date, options),
                performance_metrics=PerformanceMetrics(
                    calculation_duration_ms=_elapsed_ms(started),
                    events_generated=0,
                    complexity_score=0,
                ),
            ),
        )

    def enrich(
        self, events: list[VestingEvent], price_context: PriceContext
    ) -> list[EnrichedVestingEvent]:
        return enrich_events(
            events,
            price_context,
            self.settings.currency_precision,
            self.settings.default_currency,
        )


@lru_cache(maxsize=1)
def get_engine() -> VestingEngine:
    return VestingEngine(get_settings())


def calculate(
    grant: Grant | None,
    evaluation_date: date | datetime | None,
    options: CalculationOptions | None = None,
) -> CalculationResult:
    return get_engine().calculate(grant, evaluation_date, options)


def enrich(events: list[VestingEvent], price_context: PriceContext) -> list[EnrichedVestingEvent]:
    return get_engine().enrich(events, price_context)
