"""
Prediction Models

Pydantic models for tuned prediction parameters, venue profiles and the
structured prediction the engine produces.
"""

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ParamsSource(str, Enum):
    """Which tier of the params fallback chain produced a parameter set"""
    TUNED = "tuned"
    GLOBAL_DEFAULT = "global_default"
    HARDCODED_FALLBACK = "hardcoded_fallback"


class ConfidenceTier(str, Enum):
    """Discrete confidence label derived from the count of valid observations"""
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class PredictionTarget(str, Enum):
    """Metric a parameter set was tuned for"""
    ROD_AVERAGE = "rod_average"
    METHODS = "methods"
    FLIES = "flies"
    SPOTS = "spots"


class PredictionParams(BaseModel):
    """
    Tuned coefficients for one (venue, target) pair.

    Read-only after resolution; ``source`` records which fallback tier
    supplied the values.
    """

    model_config = ConfigDict(frozen=True)

    week_window: int = Field(..., ge=0, le=26)
    top_n: int = Field(..., ge=1)
    year_decay: float = Field(..., gt=0, le=1)
    w_temperature: float = Field(..., ge=0)
    w_wind_speed: float = Field(..., ge=0)
    w_precipitation: float = Field(..., ge=0)
    w_pressure: float = Field(..., ge=0)
    w_humidity: float = Field(..., ge=0)
    use_cross_venue: bool = False
    venue_weight: float = Field(..., ge=0)
    source: ParamsSource


HARDCODED_PARAMS = PredictionParams(
    week_window=2,
    top_n=10,
    year_decay=0.7,
    w_temperature=1.0,
    w_wind_speed=0.25,
    w_precipitation=1.0,
    w_pressure=0.0,
    w_humidity=1.0,
    use_cross_venue=False,
    venue_weight=3.0,
    source=ParamsSource.HARDCODED_FALLBACK,
)


class VenueProfile(BaseModel):
    """Venue-level statistical metadata used to calibrate confidence reporting."""

    model_config = ConfigDict(frozen=True)

    venue: str
    region: Optional[str] = None
    report_count: int = Field(default=0, ge=0)
    rod_avg_mean: Optional[float] = None
    rod_avg_std: Optional[float] = None
    rod_mae: Optional[float] = Field(default=None, ge=0)
    rod_mae_ci: Optional[Tuple[float, float]] = None
    character_notes: Optional[str] = None
    cross_venue_rule: Optional[str] = None
    data_quality_flag: str = "unknown"


class RankedItem(BaseModel):
    """A categorical attribute with its raw mention count and decayed score"""

    model_config = ConfigDict(frozen=True)

    name: str
    frequency: int = Field(..., ge=0)
    score: float = Field(..., ge=0)


class RodAveragePrediction(BaseModel):
    """Expected catch rate with its empirical range and confidence tier"""

    model_config = ConfigDict(frozen=True)

    predicted: float = Field(..., ge=0)
    range: Tuple[float, float]
    confidence: ConfidenceTier

    @model_validator(mode="after")
    def range_contains_prediction(self) -> "RodAveragePrediction":
        lo, hi = self.range
        if not lo <= self.predicted <= hi:
            raise ValueError(
                f"predicted {self.predicted} outside range [{lo}, {hi}]"
            )
        return self

    @classmethod
    def empty(cls) -> "RodAveragePrediction":
        """Result when no valid catch-rate observation exists"""
        return cls(predicted=0.0, range=(0.0, 0.0), confidence=ConfidenceTier.LOW)


class Prediction(BaseModel):
    """The structured output of one advice request"""

    model_config = ConfigDict(frozen=True)

    rod_average: RodAveragePrediction
    methods: List[RankedItem] = Field(default_factory=list)
    flies: List[RankedItem] = Field(default_factory=list)
    spots: List[RankedItem] = Field(default_factory=list)


class ConfidenceNote(BaseModel):
    """Confidence annotation, calibrated by the venue profile when one exists"""

    model_config = ConfigDict(frozen=True)

    tier: ConfidenceTier
    basis: str = Field(..., pattern=r"^(sample_size|venue_profile)$")
    expected_error: Optional[float] = None
    error_interval: Optional[Tuple[float, float]] = None
    data_quality: str = "unknown"
    character_notes: Optional[str] = None
