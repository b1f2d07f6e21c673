from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EquityType(str, Enum):
    ISO = "ISO"
    NSO = "NSO"
    RSU = "RSU"
    ESPP = "ESPP"
    OTHER = "other"


class VestingFrequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"


class VestingPolicy(str, Enum):
    LINEAR = "linear"
    CLIFF = "cliff"
    BACK_WEIGHTED = "back-weighted"
    PERFORMANCE_BASED = "performance-based"
    CUSTOM = "custom"


class AccelerationTrigger(str, Enum):
    ACQUISITION = "acquisition"
    IPO = "ipo"
    CHANGE_OF_CONTROL = "change_of_control"
    INVOLUNTARY_TERMINATION = "involuntary_termination"
    DEATH = "death"
    DISABILITY = "disability"


class AccelerationMode(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"


OPTION_TYPES = frozenset({EquityType.ISO, EquityType.NSO})


class _RecordModel(BaseModel):
    # Decrypted records arrive with camelCase keys; callers in Python use field names.
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class AccelerationClause(_RecordModel):
    enabled: bool = False
    trigger_events: frozenset[AccelerationTrigger] = Field(
        default_factory=frozenset, alias="triggerEvents"
    )
    acceleration_type: AccelerationMode = Field(
        default=AccelerationMode.SINGLE, alias="accelerationType"
    )
    percentage_accelerated: Decimal = Field(
        default=Decimal("100"), ge=0, le=100, alias="percentageAccelerated"
    )
    conditions: str | None = None


class PerformanceMilestone(_RecordModel):
    id: str
    description: str = ""
    target_date: date | None = Field(default=None, alias="targetDate")
    percentage_of_grant: Decimal = Field(ge=0, le=100, alias="percentageOfGrant")
    achieved: bool = False
    achieved_date: date | None = Field(default=None, alias="achievedDate")

    @property
    def vesting_date(self) -> date | None:
        return self.achieved_date or self.target_date


class PerformanceClause(_RecordModel):
    enabled: bool = False
    milestones: tuple[PerformanceMilestone, ...] = ()
    vesting_delay_months: int | None = Field(default=None, ge=0, alias="vestingDelay")


class CustomVestingEvent(_RecordModel):
    vest_date: date = Field(alias="date")
    units: Decimal = Field(ge=0, alias="sharesVested")
    description: str | None = None
    conditions: str | None = None


class Grant(_RecordModel):
    """A decrypted equity grant.

    Presence and range rules (positive units, ordered dates, strike price by
    equity type) are enforced by the validator so they surface as typed
    calculation errors rather than schema errors.
    """

    grant_id: str | None = Field(default=None, alias="id")
    company: str | None = None
    unit_type: EquityType | None = Field(default=None, alias="type")
    units: Decimal | None = Field(default=None, alias="shares")
    strike_price: Decimal | None = Field(default=None, ge=0, alias="strikePrice")

    grant_date: date | None = Field(default=None, alias="grantDate")
    vesting_start: date | None = Field(default=None, alias="vestingStart")
    exercise_deadline: date | None = Field(default=None, alias="exerciseDeadline")
    termination_date: date | None = Field(default=None, alias="terminationDate")

    cliff_months: int | None = Field(default=None, alias="vestingCliff")
    vesting_months: int = Field(default=0, alias="vestingPeriod")
    cadence: VestingFrequency = Field(default=VestingFrequency.MONTHLY, alias="vestingFrequency")
    policy: VestingPolicy | None = Field(default=None, alias="vestingType")

    acceleration: AccelerationClause | None = Field(default=None, alias="acceleratedVesting")
    performance: PerformanceClause | None = Field(default=None, alias="performanceVesting")
    custom_schedule: tuple[CustomVestingEvent, ...] | None = Field(
        default=None, alias="customVestingSchedule"
    )
    notes: str | None = None

    @property
    def is_option(self) -> bool:
        return self.unit_type in OPTION_TYPES

    @property
    def is_rsu(self) -> bool:
        return self.unit_type == EquityType.RSU

    @property
    def has_acceleration(self) -> bool:
        return self.acceleration is not None and self.acceleration.enabled

    @property
    def has_performance_vesting(self) -> bool:
        return self.performance is not None and self.performance.enabled

    @property
    def is_custom(self) -> bool:
        return self.policy == VestingPolicy.CUSTOM or bool(self.custom_schedule)

    @property
    def has_cliff(self) -> bool:
        return bool(self.cliff_months and self.cliff_months > 0)
