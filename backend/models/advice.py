"""
Advice Models

Request/response models for the advice endpoints.
"""

from datetime import date
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.diary import PersonalStats, TacticalAdvice
from models.prediction import ConfidenceNote, ParamsSource, Prediction


class WeatherReading(BaseModel):
    """An injected weather reading (forecast or manual override)."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    temp: Optional[float] = Field(default=None, description="Air temperature, Celsius")
    wind_speed_mph: Optional[float] = Field(default=None, ge=0)
    precip_mm: Optional[float] = Field(default=None, ge=0, description="Accumulated precipitation, mm")
    pressure: Optional[float] = Field(default=None, description="hPa")
    humidity: Optional[float] = Field(default=None, ge=0, le=100)
    wind_dir: Optional[str] = Field(default=None, max_length=3)


class AdviceRequest(BaseModel):
    """One advice request for a venue and date"""

    venue: str = Field(..., min_length=1, max_length=200)
    target_date: date
    user_id: Optional[str] = None
    weather_override: Optional[WeatherReading] = None
    seasonal_window: bool = Field(
        default=False,
        description="Restrict scoring to reports within the tuned ISO-week window",
    )
    weather_matched: bool = Field(
        default=False,
        description="Weight reports by similarity to the weather reading",
    )
    top_weighted: bool = Field(
        default=False,
        description="Score only the most heavily weighted reports (3x the rod-average top_n)",
    )

    @field_validator("venue")
    @classmethod
    def strip_venue(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("venue must not be blank")
        return v

    @field_validator("user_id")
    @classmethod
    def blank_user_is_anonymous(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class ModelInfo(BaseModel):
    """Provenance of the parameters and profile behind a prediction"""

    model_config = ConfigDict(frozen=True)

    params_source: ParamsSource
    params_sources: Dict[str, ParamsSource] = Field(default_factory=dict)
    data_quality: str = "unknown"
    character_notes: Optional[str] = None


class DataConfidence(BaseModel):
    """Coarse per-source data sufficiency labels"""

    model_config = ConfigDict(frozen=True)

    report_data: Literal["high", "medium", "low"] = "low"
    tactical_data: Literal["high", "medium", "low", "none"] = "none"
    personal_data: Literal["available", "insufficient"] = "insufficient"


class AdviceResponse(BaseModel):
    """Structured advice payload consumed by downstream text generation"""

    model_config = ConfigDict(frozen=True, protected_namespaces=())

    prediction: Prediction
    season: str
    weather_category: str
    report_count: int = Field(..., ge=0)
    personal_report_count: int = Field(..., ge=0)
    matched_report_count: int = Field(..., ge=0)
    target_week: int = Field(..., ge=1, le=53)
    params_used_source: ParamsSource
    confidence_note: ConfidenceNote
    model_info: ModelInfo
    weather: Optional[WeatherReading] = Field(
        default=None,
        description="Reading used for weather matching and diary analysis",
    )
    weather_source: Optional[Literal["override", "historical"]] = None
    tactical: TacticalAdvice = Field(default_factory=TacticalAdvice)
    personal: PersonalStats = Field(default_factory=PersonalStats)
    data_confidence: DataConfidence = Field(default_factory=DataConfidence)


class BasicAdviceResponse(BaseModel):
    """Pre-computed advice looked up by venue, season and weather category"""

    model_config = ConfigDict(frozen=True)

    advice_text: str
    prediction: Prediction
    season: str
    weather_category: str
    report_count: int = Field(..., ge=0)
    fallback: bool = False


class ConditionsResponse(BaseModel):
    """Season and weather bucket for a date"""

    season: str
    weather_category: str
    target_week: int
