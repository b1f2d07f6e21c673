from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from grantvest.schemas.grant import AccelerationTrigger, EquityType


class DateAdjustment(str, Enum):
    NONE = "none"
    NEXT_BUSINESS_DAY = "next_business_day"
    PREVIOUS_BUSINESS_DAY = "previous_business_day"


class CalculationSource(str, Enum):
    AUTOMATED = "automated"
    MANUAL = "manual"
    CORRECTED = "corrected"


class SpecialConditionType(str, Enum):
    CLIFF = "cliff"
    ACCELERATION = "acceleration"
    PERFORMANCE = "performance"
    TERMINATION = "termination"
    CUSTOM = "custom"


class SpecialCondition(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: SpecialConditionType
    description: str
    applied_units: Decimal = Field(ge=0)


class VestingEvent(BaseModel):
    vest_date: date
    units: Decimal = Field(ge=0)
    cumulative_units: Decimal = Field(default=Decimal("0"), ge=0)
    unit_type: EquityType
    company: str
    calculation_source: CalculationSource = CalculationSource.AUTOMATED
    special_conditions: list[SpecialCondition] | None = None

    def with_condition(self, condition: SpecialCondition) -> VestingEvent:
        conditions = [*(self.special_conditions or []), condition]
        return self.model_copy(update={"special_conditions": conditions})


class AccelerationEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: AccelerationTrigger
    trigger_date: date = Field(alias="date")
    description: str | None = None


class CalculationOptions(BaseModel):
    include_acceleration: bool = False
    include_performance: bool = False
    termination_date: date | None = None
    acceleration_events: list[AccelerationEvent] | None = None


class PriceContext(BaseModel):
    company: str
    price: Decimal | None = Field(default=None, ge=0)
    price_date: date | None = None
    currency: str | None = None
    data_source: str | None = None
    confidence: float | None = Field(default=None, ge=0, le=1)


class EnrichedVestingEvent(VestingEvent):
    price_at_vesting: Decimal | None = None
    estimated_value: Decimal | None = None
    currency: str | None = None


class PerformanceMetrics(BaseModel):
    calculation_duration_ms: float = 0.0
    events_generated: int = 0
    complexity_score: int = 0


class CalculationMetadata(BaseModel):
    calculated_at: datetime
    calculation_method: str
    parameters_used: dict[str, Any] = Field(default_factory=dict)
    performance_metrics: PerformanceMetrics = Field(default_factory=PerformanceMetrics)


class CalculationResult(BaseModel):
    success: bool
    events: list[VestingEvent] = Field(default_factory=list)
    total_vested: Decimal = Decimal("0")
    total_remaining: Decimal = Decimal("0")
    next_vesting_event: VestingEvent | None = None
    error: str | None = None
    error_code: str | None = None
    warnings: list[str] = Field(default_factory=list)
    metadata: CalculationMetadata
