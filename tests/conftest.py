"""Global test fixtures and shared test infrastructure.

Provides:
- Grant factories (make_grant, make_option_grant, make_acceleration, make_milestone)
- Settings/engine factories with deterministic defaults (no .env lookup)
- Shared pytest fixtures for the engine and a fixed evaluation date
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

import pytest

from grantvest.core.context import clear_context
from grantvest.core.settings import VestingSettings
from grantvest.schemas.grant import (
    AccelerationClause,
    AccelerationMode,
    AccelerationTrigger,
    EquityType,
    Grant,
    PerformanceMilestone,
    VestingFrequency,
)
from grantvest.services.vesting_engine import VestingEngine


# ---------------------------------------------------------------------------
# Settings / engine factories
# ---------------------------------------------------------------------------


def make_settings(**overrides: Any) -> VestingSettings:
    return VestingSettings(_env_file=None, **overrides)


def make_engine(**overrides: Any) -> VestingEngine:
    return VestingEngine(make_settings(**overrides))


# ---------------------------------------------------------------------------
# Grant factories
# ---------------------------------------------------------------------------


def make_grant(**overrides: Any) -> Grant:
    defaults: dict[str, Any] = dict(
        grant_id="grant-1",
        company="Acme Corp",
        unit_type=EquityType.RSU,
        units=Decimal("4800"),
        grant_date=date(2024, 1, 1),
        vesting_start=date(2024, 1, 1),
        cliff_months=0,
        vesting_months=48,
        cadence=VestingFrequency.MONTHLY,
    )
    defaults.update(overrides)
    return Grant(**defaults)


def make_option_grant(**overrides: Any) -> Grant:
    defaults: dict[str, Any] = dict(unit_type=EquityType.ISO, strike_price=Decimal("1.25"))
    defaults.update(overrides)
    return make_grant(**defaults)


def make_acceleration(
    *,
    percentage: str = "100",
    triggers: tuple[AccelerationTrigger, ...] = (AccelerationTrigger.ACQUISITION,),
    mode: AccelerationMode = AccelerationMode.SINGLE,
    enabled: bool = True,
) -> AccelerationClause:
    return AccelerationClause(
        enabled=enabled,
        trigger_events=frozenset(triggers),
        acceleration_type=mode,
        percentage_accelerated=Decimal(percentage),
    )


def make_milestone(
    milestone_id: str,
    percentage: str,
    *,
    achieved: bool = True,
    achieved_date: date | None = None,
    target_date: date | None = None,
    description: str | None = None,
) -> PerformanceMilestone:
    return PerformanceMilestone(
        id=milestone_id,
        description=description or f"Milestone {milestone_id}",
        percentage_of_grant=Decimal(percentage),
        achieved=achieved,
        achieved_date=achieved_date,
        target_date=target_date,
    )


# ---------------------------------------------------------------------------
# Shared pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_calculation_context():
    yield
    clear_context()


@pytest.fixture
def engine() -> VestingEngine:
    return make_engine()


@pytest.fixture
def evaluation_date() -> date:
    return date(2025, 6, 15)
