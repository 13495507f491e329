"""
Diary Models

Session summaries logged by anglers through the diary, their per-period
breakdowns, per-angler venue statistics, and the tactical and personal
outputs derived from them.
"""

from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Stored session data
# =============================================================================


class PeriodWeather(BaseModel):
    """Weather logged for one period of a session"""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    temp: Optional[float] = None
    wind_speed: Optional[float] = Field(default=None, description="mph")
    wind_dir: Optional[str] = None
    precip: Optional[float] = Field(default=None, description="Rate, mm/hr")


class TechniqueCatch(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    style: Optional[str] = None
    catches: Optional[float] = None
    minutes: Optional[float] = None


class FlyCatch(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    fly: Optional[str] = None
    catches: Optional[float] = None


class SpotCatch(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    spot: Optional[str] = None
    catches: Optional[float] = None


class SessionPeriod(BaseModel):
    """One weather period within a logged session"""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    weather: Optional[PeriodWeather] = None
    techniques: List[TechniqueCatch] = Field(default_factory=list)
    flies: List[FlyCatch] = Field(default_factory=list)
    spots: List[SpotCatch] = Field(default_factory=list)
    catches: float = 0.0
    catch_by_hour: Dict[str, float] = Field(default_factory=dict)

    @field_validator("techniques", "flies", "spots", "catch_by_hour", mode="before")
    @classmethod
    def null_to_empty(cls, v, info):
        if v is None:
            return {} if info.field_name == "catch_by_hour" else []
        return v

    @field_validator("catches", mode="before")
    @classmethod
    def null_catches_is_zero(cls, v):
        return 0.0 if v is None else v


class SessionSummary(BaseModel):
    """A logged diary session at a venue"""

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    session_date: date
    total_fish: int = 0
    weather_periods: List[SessionPeriod] = Field(default_factory=list)

    @field_validator("weather_periods", mode="before")
    @classmethod
    def null_periods_is_empty(cls, v):
        return [] if v is None else v

    @field_validator("total_fish", mode="before")
    @classmethod
    def null_total_is_zero(cls, v):
        return 0 if v is None else v


class AnglerVenueStats(BaseModel):
    """Aggregated diary statistics for one angler at one venue"""

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    general_ability: Optional[float] = None
    total_sessions: int = 0
    total_fish: int = 0
    catch_rate: Optional[float] = None
    fish_per_hour: Optional[float] = None
    technique_stats: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("total_sessions", "total_fish", mode="before")
    @classmethod
    def null_count_is_zero(cls, v):
        return 0 if v is None else v

    @field_validator("technique_stats", mode="before")
    @classmethod
    def null_stats_is_empty(cls, v):
        return {} if v is None else v


# =============================================================================
# Derived outputs
# =============================================================================


class TacticalTechnique(BaseModel):
    model_config = ConfigDict(frozen=True)

    technique: str
    weighted_catches: float
    weighted_minutes: int
    score: float


class TacticalItem(BaseModel):
    """A fly or spot with its similarity-weighted catches"""

    model_config = ConfigDict(frozen=True)

    name: str
    weighted_catches: float
    score: float


class TacticalAdvice(BaseModel):
    """What has worked in diary sessions logged in similar conditions"""

    model_config = ConfigDict(frozen=True)

    techniques: List[TacticalTechnique] = Field(default_factory=list)
    flies: List[TacticalItem] = Field(default_factory=list)
    spots: List[TacticalItem] = Field(default_factory=list)
    catch_by_hour: Dict[str, float] = Field(default_factory=dict)
    session_count: int = Field(default=0, ge=0)
    period_count: int = Field(default=0, ge=0)


class PersonalStats(BaseModel):
    """The caller's own record at the venue, once they have logged enough sessions"""

    model_config = ConfigDict(frozen=True)

    has_personal: bool = False
    total_sessions: int = 0
    general_ability: Optional[float] = None
    total_fish: Optional[int] = None
    catch_rate: Optional[float] = None
    fish_per_hour: Optional[float] = None
    technique_stats: Optional[Dict[str, Any]] = None
    message: Optional[str] = None
