import math
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import AmountDisplay

BASE_DIR = Path(__file__).resolve().parent.parent

DEFAULT_DAILY_THRESHOLD = 8.0
DEFAULT_OVERTIME_MULTIPLIER = 1.5
DEFAULT_TIER2_THRESHOLD = 0.0
DEFAULT_TIER2_MULTIPLIER = 2.0


def _finite_or(value: Any, default: float) -> Any:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


class FeatureFlags(BaseModel):
    use_profile_capacity: bool = True
    use_profile_working_days: bool = True
    apply_holidays: bool = True
    apply_time_off: bool = True
    enable_tiered_ot: bool = False
    amount_display: AmountDisplay = AmountDisplay.EARNED

    @field_validator("amount_display", mode="before")
    @classmethod
    def normalize_display(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip().lower()
            if value not in {d.value for d in AmountDisplay}:
                return AmountDisplay.EARNED
        if value is None:
            return AmountDisplay.EARNED
        return value


class CalculationParams(BaseModel):
    daily_threshold: float = Field(default=DEFAULT_DAILY_THRESHOLD, description="Default daily capacity in hours")
    overtime_multiplier: float = Field(default=DEFAULT_OVERTIME_MULTIPLIER, description="Tier 1 overtime multiplier")
    tier2_threshold_hours: float = Field(
        default=DEFAULT_TIER2_THRESHOLD,
        description="Cumulative overtime hours before tier 2 applies; negative disables tier 2",
    )
    tier2_multiplier: float = Field(default=DEFAULT_TIER2_MULTIPLIER, description="Tier 2 overtime multiplier")

    @field_validator("daily_threshold", mode="before")
    @classmethod
    def coerce_threshold(cls, value: Any) -> float:
        number = _finite_or(value, DEFAULT_DAILY_THRESHOLD)
        return max(number, 0.0)

    @field_validator("overtime_multiplier", mode="before")
    @classmethod
    def coerce_multiplier(cls, value: Any) -> float:
        number = _finite_or(value, DEFAULT_OVERTIME_MULTIPLIER)
        return number if number >= 1 else 1.0

    @field_validator("tier2_threshold_hours", mode="before")
    @classmethod
    def coerce_tier2_threshold(cls, value: Any) -> float:
        return _finite_or(value, DEFAULT_TIER2_THRESHOLD)

    @field_validator("tier2_multiplier", mode="before")
    @classmethod
    def coerce_tier2_multiplier(cls, value: Any) -> float:
        number = _finite_or(value, DEFAULT_TIER2_MULTIPLIER)
        return number if number >= 1 else 1.0


class Settings(BaseSettings):
    env: str = Field(default="dev", description="Deployment environment")
    log_level: str = "INFO"
    flags: FeatureFlags = Field(default_factory=FeatureFlags)
    params: CalculationParams = Field(default_factory=CalculationParams)

    model_config = SettingsConfigDict(env_prefix="OTCALC_", env_nested_delimiter="__", extra="ignore")

    @classmethod
    def env_files(cls, env: str | None = None) -> list[Path]:
        """Existing env files for ``env``, most specific first."""
        env = env or os.getenv("OTCALC_ENV", "dev")
        candidates = [BASE_DIR / f".env.{env}", BASE_DIR / ".env"]
        return [path for path in candidates if path.exists()]

    @classmethod
    def load(cls, env: str | None = None) -> "Settings":
        found = cls.env_files(env)
        return cls(_env_file=found[0] if found else None)


@lru_cache
def get_settings() -> Settings:
    return Settings.load()
