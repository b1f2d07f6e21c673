from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from grantvest.schemas.vesting import DateAdjustment


class VestingSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VESTING_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    environment: str = Field(default="development")
    log_level: str = Field(default="INFO")
    shares_precision: int = Field(default=6, ge=0, le=12)
    currency_precision: int = Field(default=2, ge=0, le=8)
    weekend_adjustment: DateAdjustment = Field(default=DateAdjustment.NONE)
    # Accepted for compatibility with stored configs; no holiday calendar is applied.
    holiday_adjustment: DateAdjustment = Field(default=DateAdjustment.NONE)
    max_events_per_grant: int = Field(default=1000, ge=1)
    enable_acceleration: bool = Field(default=True)
    enable_performance_vesting: bool = Field(default=True)
    default_currency: str = Field(default="USD")


@lru_cache(maxsize=1)
def get_settings() -> VestingSettings:
    return VestingSettings()
