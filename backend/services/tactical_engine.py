"""
Tactical Engine

Diary-network statistics: what worked in logged session periods whose
weather resembles the reading, and the caller's own venue record.

Each period of a seasonal session is weighted by

    1 / (SIMILARITY_EPSILON + period distance) * recency(0.8) * angler ability

and the heaviest ``MAX_WEIGHTED_PERIODS`` periods are aggregated into weighted
technique, fly, spot and catch-by-hour tallies. Nothing here performs I/O.
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from models.advice import WeatherReading
from models.diary import (
    AnglerVenueStats,
    PeriodWeather,
    PersonalStats,
    SessionPeriod,
    SessionSummary,
    TacticalAdvice,
    TacticalItem,
    TacticalTechnique,
)
from services.conditions import (
    precipitation_category_daily,
    precipitation_category_hourly,
    quadrant_distance,
    within_week_window,
)
from services.prediction_engine import SIMILARITY_EPSILON, recency_weight, round_half_up

# Session recency decays faster than the tuned report decay
TACTICAL_YEAR_DECAY = 0.8

MAX_WEIGHTED_PERIODS = 50
MAX_TECHNIQUES = 8
MAX_FLIES = 10
MAX_SPOTS = 6

# Normalizers for the period distance
PERIOD_TEMP_SCALE = 10.0
PERIOD_WIND_MPH_SCALE = 15.0

DEFAULT_ABILITY = 1.0

# Sessions an angler must log at a venue before personal stats are shown
PERSONAL_MIN_SESSIONS = 3

TACTICAL_HIGH_MIN = 20
TACTICAL_MEDIUM_MIN = 5


@dataclass
class WeightedPeriod:
    period: SessionPeriod
    weight: float


def period_weather_distance(
    reading: Optional[WeatherReading],
    weather: Optional[PeriodWeather],
) -> float:
    """
    Unweighted mean of normalized differences between a reading and a
    period's logged weather. 1.0 when nothing is comparable.
    """
    if reading is None or weather is None:
        return 1.0

    total = 0.0
    compared = 0

    if reading.temp is not None and weather.temp is not None:
        total += abs(reading.temp - weather.temp) / PERIOD_TEMP_SCALE
        compared += 1

    if reading.wind_speed_mph is not None and weather.wind_speed is not None:
        total += abs(reading.wind_speed_mph - weather.wind_speed) / PERIOD_WIND_MPH_SCALE
        compared += 1

    if reading.wind_dir and weather.wind_dir:
        total += quadrant_distance(reading.wind_dir, weather.wind_dir) / 2
        compared += 1

    if reading.precip_mm is not None and weather.precip is not None:
        reading_cat = precipitation_category_daily(reading.precip_mm)
        period_cat = precipitation_category_hourly(weather.precip)
        total += abs(reading_cat - period_cat) / 3
        compared += 1

    return total / compared if compared else 1.0


def weight_periods(
    sessions: Iterable[SessionSummary],
    abilities: Mapping[str, float],
    target_date: date,
    target_week: int,
    week_window: int,
    reading: Optional[WeatherReading] = None,
) -> Tuple[int, List[WeightedPeriod]]:
    """
    Weight every period of the sessions inside the seasonal week window.

    Returns:
        (seasonal session count, weighted periods in session order)
    """
    seasonal = [
        s for s in sessions if within_week_window(s.session_date, target_week, week_window)
    ]

    weighted: List[WeightedPeriod] = []
    for session in seasonal:
        ability = abilities.get(session.user_id) if session.user_id else None
        ability = DEFAULT_ABILITY if ability is None else max(ability, 0.0)
        recency = recency_weight(session.session_date, target_date, False, TACTICAL_YEAR_DECAY)

        for period in session.weather_periods:
            distance = period_weather_distance(reading, period.weather)
            weight = (1.0 / (SIMILARITY_EPSILON + distance)) * recency * ability
            weighted.append(WeightedPeriod(period=period, weight=weight))

    return len(seasonal), weighted


def _hour_key(hour: str):
    try:
        return (0, float(hour), hour)
    except ValueError:
        return (1, 0.0, hour)


def _ranked_items(tallies: Dict[str, List[float]], limit: int) -> List[TacticalItem]:
    items = [
        TacticalItem(
            name=name,
            weighted_catches=round_half_up(catches, 1),
            score=round_half_up(weight, 2),
        )
        for name, (catches, weight) in tallies.items()
    ]
    items.sort(key=lambda item: item.weighted_catches, reverse=True)
    return items[:limit]


def summarize_periods(
    session_count: int,
    weighted: Sequence[WeightedPeriod],
) -> TacticalAdvice:
    """Aggregate the heaviest periods into weighted tactical tallies."""
    top = sorted(weighted, key=lambda wp: wp.weight, reverse=True)[:MAX_WEIGHTED_PERIODS]

    techniques: Dict[str, List[float]] = {}
    flies: Dict[str, List[float]] = {}
    spots: Dict[str, List[float]] = {}
    hours: Dict[str, float] = {}

    for wp in top:
        w = wp.weight
        for t in wp.period.techniques:
            name = (t.style or "").strip()
            if not name:
                continue
            entry = techniques.setdefault(name, [0.0, 0.0, 0.0])
            entry[0] += (t.catches or 0.0) * w
            entry[1] += (t.minutes or 0.0) * w
            entry[2] += w
        for f in wp.period.flies:
            name = (f.fly or "").strip()
            if not name:
                continue
            entry = flies.setdefault(name, [0.0, 0.0])
            entry[0] += (f.catches or 0.0) * w
            entry[1] += w
        for s in wp.period.spots:
            name = (s.spot or "").strip()
            if not name:
                continue
            entry = spots.setdefault(name, [0.0, 0.0])
            entry[0] += (s.catches or 0.0) * w
            entry[1] += w
        for hour, count in wp.period.catch_by_hour.items():
            hours[hour] = hours.get(hour, 0.0) + count * w

    ranked_techniques = [
        TacticalTechnique(
            technique=name,
            weighted_catches=round_half_up(catches, 1),
            weighted_minutes=int(round_half_up(minutes, 0)),
            score=round_half_up(weight, 2),
        )
        for name, (catches, minutes, weight) in techniques.items()
    ]
    ranked_techniques.sort(key=lambda t: t.weighted_catches, reverse=True)

    return TacticalAdvice(
        techniques=ranked_techniques[:MAX_TECHNIQUES],
        flies=_ranked_items(flies, MAX_FLIES),
        spots=_ranked_items(spots, MAX_SPOTS),
        catch_by_hour={
            hour: round_half_up(hours[hour], 1) for hour in sorted(hours, key=_hour_key)
        },
        session_count=session_count,
        period_count=len(top),
    )


def tactical_data_confidence(period_count: int) -> str:
    if period_count >= TACTICAL_HIGH_MIN:
        return "high"
    if period_count >= TACTICAL_MEDIUM_MIN:
        return "medium"
    if period_count > 0:
        return "low"
    return "none"


def personal_stats(stats: Optional[AnglerVenueStats]) -> PersonalStats:
    """
    The caller's venue record, or a prompt to log more sessions when fewer
    than ``PERSONAL_MIN_SESSIONS`` exist.
    """
    if stats is not None and stats.total_sessions >= PERSONAL_MIN_SESSIONS:
        return PersonalStats(
            has_personal=True,
            total_sessions=stats.total_sessions,
            general_ability=stats.general_ability,
            total_fish=stats.total_fish,
            catch_rate=stats.catch_rate,
            fish_per_hour=stats.fish_per_hour,
            technique_stats=stats.technique_stats,
        )

    total = stats.total_sessions if stats is not None else 0
    return PersonalStats(
        has_personal=False,
        total_sessions=total,
        message=(
            "Log more sessions to unlock personalised advice "
            f"(need {PERSONAL_MIN_SESSIONS}+, have {total})"
        ),
    )
