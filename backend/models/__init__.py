"""
Data Models

Pydantic models for the Fishing Advice API.
"""

from models.observation import Observation, WeatherCovariates

from models.prediction import (
    HARDCODED_PARAMS,
    ConfidenceNote,
    ConfidenceTier,
    ParamsSource,
    Prediction,
    PredictionParams,
    PredictionTarget,
    RankedItem,
    RodAveragePrediction,
    VenueProfile,
)

from models.advice import (
    AdviceRequest,
    AdviceResponse,
    BasicAdviceResponse,
    ConditionsResponse,
    DataConfidence,
    ModelInfo,
    WeatherReading,
)

from models.diary import (
    AnglerVenueStats,
    PersonalStats,
    SessionPeriod,
    SessionSummary,
    TacticalAdvice,
    TacticalItem,
    TacticalTechnique,
)

__all__ = [
    # Observations
    "Observation",
    "WeatherCovariates",
    # Prediction
    "HARDCODED_PARAMS",
    "ConfidenceNote",
    "ConfidenceTier",
    "ParamsSource",
    "Prediction",
    "PredictionParams",
    "PredictionTarget",
    "RankedItem",
    "RodAveragePrediction",
    "VenueProfile",
    # Advice
    "AdviceRequest",
    "AdviceResponse",
    "BasicAdviceResponse",
    "ConditionsResponse",
    "DataConfidence",
    "ModelInfo",
    "WeatherReading",
    # Diary
    "AnglerVenueStats",
    "PersonalStats",
    "SessionPeriod",
    "SessionSummary",
    "TacticalAdvice",
    "TacticalItem",
    "TacticalTechnique",
]
