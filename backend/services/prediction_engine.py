"""
Prediction Engine

Pure statistics behind fishing advice:
- a single recency/personal weighting function shared by every consumer
- weighted ranking of categorical attributes (methods, flies, spots)
- a weighted rod-average prediction with an empirical 10th-90th percentile
  range and a sample-size confidence tier
- a confidence annotation calibrated by the venue profile when available
- top-weighted report selection and a historical stand-in weather reading

Nothing here performs I/O; the orchestrator feeds it normalized observations.
"""

import math
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Literal, Optional, Sequence

import numpy as np

from models.advice import WeatherReading
from models.observation import Observation, WeatherCovariates
from models.prediction import (
    ConfidenceNote,
    ConfidenceTier,
    PredictionParams,
    RankedItem,
    RodAveragePrediction,
    VenueProfile,
)
from services.conditions import (
    precipitation_category_daily,
    precipitation_category_weekly,
    within_week_window,
)

# A user's own history counts this much more than population history at equal recency
PERSONAL_WEIGHT_BOOST = 1.5

DAYS_PER_YEAR = 365

# Empirical range bounds over the raw catch-rate population
RANGE_LOW_PERCENTILE = 0.1
RANGE_HIGH_PERCENTILE = 0.9

# Confidence tiers by count of valid catch-rate observations
HIGH_CONFIDENCE_MIN_SAMPLES = 15
MEDIUM_CONFIDENCE_MIN_SAMPLES = 5

# Weather similarity: weight multiplier is 1 / (SIMILARITY_EPSILON + distance)
SIMILARITY_EPSILON = 0.05
MPH_PER_MS = 2.237

# Venue-profile data quality flags that do not cap the confidence tier
TRUSTED_DATA_QUALITY = frozenset({"good", "ok"})

# Top-weighted selection keeps this many reports per rod-average top_n
TOP_WEIGHTED_MULTIPLIER = 3

# Report-data confidence by count of scored reports
REPORT_DATA_HIGH_MIN = 20
REPORT_DATA_MEDIUM_MIN = 8

# Historical reading: the seasonal window is widened by this many weeks
HISTORICAL_EXTRA_WEEKS = 2
HISTORICAL_DEFAULT_TEMP = 10.0
HISTORICAL_DEFAULT_WIND_MS = 4.0
HISTORICAL_DEFAULT_PRESSURE = 1013.0
HISTORICAL_DEFAULT_HUMIDITY = 75.0
HISTORICAL_WIND_DIR = "W"

CategoricalField = Literal["methods", "flies", "spots"]


def round_half_up(value: float, places: int = 1) -> float:
    """Round with halves away from zero (0.25 -> 0.3), unlike round()'s banker's rounding."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


# =============================================================================
# Weighting
# =============================================================================


def recency_weight(
    observed_date: date,
    target_date: date,
    is_personal: bool,
    year_decay: float,
) -> float:
    """
    Weight of one observation by temporal distance and provenance.

    ``year_decay ** (days / 365)`` where ``days`` is the absolute calendar-day
    distance to the target, boosted by ``PERSONAL_WEIGHT_BOOST`` for the
    caller's own reports. A same-day observation has decay 1.0.
    """
    days = abs((target_date - observed_date).days)
    decay = year_decay ** (days / DAYS_PER_YEAR)
    return decay * PERSONAL_WEIGHT_BOOST if is_personal else decay


def weather_distance(
    reading: WeatherReading,
    covariates: WeatherCovariates,
    params: PredictionParams,
) -> float:
    """
    Covariate-weighted mean of normalized differences between a reading and
    an observation's weekly weather. 0.0 is identical; 1.0 when nothing is
    comparable.
    """
    total_weight = 0.0
    total_distance = 0.0

    if reading.temp is not None and covariates.temp is not None:
        total_distance += params.w_temperature * abs(reading.temp - covariates.temp) / 10
        total_weight += params.w_temperature

    if reading.wind_speed_mph is not None and covariates.wind_speed is not None:
        wind_ms = reading.wind_speed_mph / MPH_PER_MS
        total_distance += params.w_wind_speed * abs(wind_ms - covariates.wind_speed) / 5
        total_weight += params.w_wind_speed

    if params.w_precipitation > 0:
        reading_cat = precipitation_category_daily(reading.precip_mm)
        report_cat = precipitation_category_weekly(covariates.precipitation)
        total_distance += params.w_precipitation * abs(reading_cat - report_cat) / 3
        total_weight += params.w_precipitation

    if params.w_pressure > 0 and reading.pressure is not None and covariates.pressure is not None:
        total_distance += params.w_pressure * abs(reading.pressure - covariates.pressure) / 30
        total_weight += params.w_pressure

    if params.w_humidity > 0 and reading.humidity is not None and covariates.humidity is not None:
        total_distance += params.w_humidity * abs(reading.humidity - covariates.humidity) / 30
        total_weight += params.w_humidity

    return total_distance / total_weight if total_weight > 0 else 1.0


def observation_weight(
    observation: Observation,
    target_date: date,
    params: PredictionParams,
    reading: Optional[WeatherReading] = None,
) -> float:
    """
    The one weighting function used by both ranking and rod-average prediction.

    When ``reading`` is given the recency weight is further scaled by weather
    similarity to the observation's covariates.
    """
    weight = recency_weight(
        observation.observed_date,
        target_date,
        observation.is_personal,
        params.year_decay,
    )
    if reading is not None:
        distance = weather_distance(reading, observation.weather_covariates, params)
        weight *= 1.0 / (SIMILARITY_EPSILON + distance)
    return weight


# =============================================================================
# Ranking
# =============================================================================


def rank_items(
    observations: Iterable[Observation],
    field: CategoricalField,
    target_date: date,
    params: PredictionParams,
    top_n: Optional[int] = None,
    reading: Optional[WeatherReading] = None,
) -> List[RankedItem]:
    """
    Rank the values of one categorical field by decayed weighted mentions.

    Every raw occurrence counts (a name repeated within one observation is
    counted each time). Blank names are ignored; names match exactly and
    case-sensitively. Sorted by score descending, ties kept in first-seen
    order, truncated to ``top_n`` (defaults to ``params.top_n``).
    """
    limit = params.top_n if top_n is None else top_n
    frequencies: Dict[str, int] = {}
    scores: Dict[str, float] = {}

    for obs in observations:
        items = getattr(obs, field)
        if not items:
            continue
        weight = observation_weight(obs, target_date, params, reading)
        for item in items:
            name = item.strip()
            if not name:
                continue
            frequencies[name] = frequencies.get(name, 0) + 1
            scores[name] = scores.get(name, 0.0) + weight

    # dicts keep first-seen order and sorted() is stable
    ranked = sorted(scores, key=lambda name: scores[name], reverse=True)[:limit]
    return [
        RankedItem(
            name=name,
            frequency=frequencies[name],
            score=round_half_up(scores[name], 2),
        )
        for name in ranked
    ]


# =============================================================================
# Rod average
# =============================================================================


def confidence_tier(sample_count: int) -> ConfidenceTier:
    """Count-based confidence; deliberately ignores weighted magnitude."""
    if sample_count >= HIGH_CONFIDENCE_MIN_SAMPLES:
        return ConfidenceTier.HIGH
    if sample_count >= MEDIUM_CONFIDENCE_MIN_SAMPLES:
        return ConfidenceTier.MEDIUM
    return ConfidenceTier.LOW


def percentile_value(sorted_values: Sequence[float], p: float) -> float:
    """Value at index floor(n * p), clamped to the valid index range."""
    index = math.floor(len(sorted_values) * p)
    index = max(0, min(index, len(sorted_values) - 1))
    return float(sorted_values[index])


def predict_rod_average(
    observations: Iterable[Observation],
    target_date: date,
    params: PredictionParams,
    reading: Optional[WeatherReading] = None,
) -> RodAveragePrediction:
    """
    Weighted-mean catch rate with an unweighted percentile range.

    Only observations with a positive catch rate count. Weighting moves the
    central estimate only; the range reflects raw historical spread and is
    widened if needed so that it always contains the prediction.
    """
    valid = [obs for obs in observations if obs.has_catch_rate]
    if not valid:
        return RodAveragePrediction.empty()

    rates = np.array([obs.catch_rate for obs in valid], dtype=float)
    weights = np.array(
        [observation_weight(obs, target_date, params, reading) for obs in valid],
        dtype=float,
    )

    if weights.sum() > 0:
        mean = float(np.average(rates, weights=weights))
    else:
        # every weight underflowed; fall back to the plain mean
        mean = float(rates.mean())
    predicted = round_half_up(mean, 1)

    sorted_rates = np.sort(rates)
    low = round_half_up(percentile_value(sorted_rates, RANGE_LOW_PERCENTILE), 1)
    high = round_half_up(percentile_value(sorted_rates, RANGE_HIGH_PERCENTILE), 1)

    return RodAveragePrediction(
        predicted=predicted,
        range=(min(low, predicted), max(high, predicted)),
        confidence=confidence_tier(len(valid)),
    )


# =============================================================================
# Confidence annotation
# =============================================================================


def annotate_confidence(
    rod_average: RodAveragePrediction,
    profile: Optional[VenueProfile],
) -> ConfidenceNote:
    """
    Decorate the sample-size tier with venue-profile calibration.

    Without a profile the note carries the sample-size tier alone. A profile
    contributes its historical model error, and an untrusted data-quality
    flag caps the tier at MEDIUM.
    """
    if profile is None:
        return ConfidenceNote(tier=rod_average.confidence, basis="sample_size")

    tier = rod_average.confidence
    if (
        tier == ConfidenceTier.HIGH
        and profile.data_quality_flag.lower() not in TRUSTED_DATA_QUALITY
    ):
        tier = ConfidenceTier.MEDIUM

    return ConfidenceNote(
        tier=tier,
        basis="venue_profile",
        expected_error=profile.rod_mae,
        error_interval=profile.rod_mae_ci,
        data_quality=profile.data_quality_flag,
        character_notes=profile.character_notes,
    )


# =============================================================================
# Report selection
# =============================================================================


def select_top_weighted(
    observations: Sequence[Observation],
    target_date: date,
    params: PredictionParams,
    reading: Optional[WeatherReading] = None,
) -> List[Observation]:
    """
    The ``params.top_n * TOP_WEIGHTED_MULTIPLIER`` most heavily weighted
    observations, heaviest first. Equal weights keep their input order.
    """
    limit = params.top_n * TOP_WEIGHTED_MULTIPLIER
    weighted = [
        (observation_weight(obs, target_date, params, reading), obs)
        for obs in observations
    ]
    weighted.sort(key=lambda pair: pair[0], reverse=True)
    return [obs for _, obs in weighted[:limit]]


def report_data_confidence(scored_count: int) -> str:
    if scored_count >= REPORT_DATA_HIGH_MIN:
        return "high"
    if scored_count >= REPORT_DATA_MEDIUM_MIN:
        return "medium"
    return "low"


# =============================================================================
# Historical weather
# =============================================================================


def _mean(values: List[float]) -> Optional[float]:
    return float(np.mean(values)) if values else None


def historical_reading(
    observations: Iterable[Observation],
    target_week: int,
    week_window: int,
) -> WeatherReading:
    """
    A stand-in reading when no weather was supplied.

    Averages the weekly covariates of fishery reports with a recorded
    temperature whose ISO week is within ``week_window + HISTORICAL_EXTRA_WEEKS``
    of ``target_week``. Missing averages fall back to fixed mild defaults;
    precipitation is always dry.
    """
    window = week_window + HISTORICAL_EXTRA_WEEKS
    seasonal = [
        obs.weather_covariates
        for obs in observations
        if not obs.is_personal
        and obs.weather_covariates.temp is not None
        and within_week_window(obs.observed_date, target_week, window)
    ]

    temp = _mean([c.temp for c in seasonal])
    wind_ms = _mean([c.wind_speed for c in seasonal if c.wind_speed is not None])
    pressure = _mean([c.pressure for c in seasonal if c.pressure is not None])
    humidity = _mean([c.humidity for c in seasonal if c.humidity is not None])

    if wind_ms is None:
        wind_ms = HISTORICAL_DEFAULT_WIND_MS

    return WeatherReading(
        temp=round_half_up(temp, 1) if temp is not None else HISTORICAL_DEFAULT_TEMP,
        wind_speed_mph=round_half_up(max(wind_ms, 0.0) * MPH_PER_MS, 1),
        wind_dir=HISTORICAL_WIND_DIR,
        precip_mm=0.0,
        pressure=round_half_up(pressure, 0) if pressure is not None else HISTORICAL_DEFAULT_PRESSURE,
        humidity=(
            min(max(round_half_up(humidity, 0), 0.0), 100.0)
            if humidity is not None
            else HISTORICAL_DEFAULT_HUMIDITY
        ),
    )
