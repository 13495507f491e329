"""
Basic Advice Service

Looks up advice pre-computed offline per (venue, season, weather_category).
The season/weather bucket is the lookup key, with a widening fallback:

    exact bucket -> same season, neutral weather -> any row for the venue -> none
"""

import json
import math
import re
import time
from datetime import date
from typing import Any, List, Mapping, Optional, Sequence, Tuple

import structlog

from models.advice import BasicAdviceResponse, WeatherReading
from models.prediction import Prediction, RankedItem, RodAveragePrediction
from repositories.basic_advice_repository import BasicAdviceRepository
from services.conditions import NEUTRAL_WEATHER_CATEGORY, categorize
from services.metrics import ADVICE_LATENCY, ADVICE_REQUESTS
from services.prediction_engine import confidence_tier, round_half_up

logger = structlog.get_logger(__name__)

MAX_METHODS = 5
MAX_FLIES = 6
MAX_SPOTS = 5

_RANGE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*-\s*(\d+(?:\.\d+)?)\s*$")


def parse_range(value: Optional[str]) -> Tuple[float, float]:
    """Parse a stored ``"lo - hi"`` range; anything else is (0.0, 0.0)."""
    if not value:
        return (0.0, 0.0)
    match = _RANGE_PATTERN.match(value)
    if not match:
        return (0.0, 0.0)
    lo, hi = float(match.group(1)), float(match.group(2))
    return (min(lo, hi), max(lo, hi))


def _first_present(item: Mapping[str, Any], keys: Sequence[str]) -> Any:
    for key in keys:
        if item.get(key) is not None:
            return item[key]
    return None


def _non_negative(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) and number > 0 else 0.0


def parse_ranked(value: Any, name_key: str, limit: int) -> List[RankedItem]:
    """
    Map a stored ranked list to RankedItems.

    Entries are dicts keyed by ``name_key`` (or ``name``), or bare strings.
    ``frequency`` is the entry's own stored frequency; ``score`` is the first
    of ``count``, ``score`` or ``frequency`` present.
    """
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return []
    if not isinstance(value, list):
        return []

    items: List[RankedItem] = []
    for entry in value:
        if isinstance(entry, str):
            name, frequency, score = entry, 0.0, 0.0
        elif isinstance(entry, Mapping):
            name = _first_present(entry, (name_key, "name"))
            frequency = _non_negative(entry.get("frequency"))
            score = _non_negative(_first_present(entry, ("count", "score", "frequency")))
        else:
            continue

        if name is None or not str(name).strip():
            continue

        items.append(
            RankedItem(
                name=str(name).strip(),
                frequency=int(frequency),
                score=round_half_up(score, 2),
            )
        )
        if len(items) >= limit:
            break
    return items


def prediction_from_row(row: Mapping[str, Any]) -> Prediction:
    """Rebuild a Prediction from a basic_advice row."""
    predicted = round_half_up(_non_negative(row.get("expected_rod_average")), 1)
    lo, hi = parse_range(row.get("rod_average_range"))
    report_count = max(int(row.get("report_count") or 0), 0)

    return Prediction(
        rod_average=RodAveragePrediction(
            predicted=predicted,
            range=(min(lo, predicted), max(hi, predicted)),
            confidence=confidence_tier(report_count),
        ),
        methods=parse_ranked(row.get("methods_ranked"), "method", MAX_METHODS),
        flies=parse_ranked(row.get("flies_ranked"), "fly", MAX_FLIES),
        spots=parse_ranked(row.get("spots_ranked"), "spot", MAX_SPOTS),
    )


class BasicAdviceService:
    """Service for pre-computed advice lookups"""

    def __init__(self, advice_repo: BasicAdviceRepository):
        self.advice_repo = advice_repo

    async def _find_row(
        self, venue: str, season: str, weather_category: str
    ) -> Tuple[Optional[Mapping[str, Any]], bool]:
        """Walk the fallback chain; returns (row, used_fallback)."""
        row = await self.advice_repo.get_advice(venue, season, weather_category)
        if row is not None:
            return row, False

        if weather_category != NEUTRAL_WEATHER_CATEGORY:
            row = await self.advice_repo.get_advice(venue, season, NEUTRAL_WEATHER_CATEGORY)
            if row is not None:
                return row, True

        return await self.advice_repo.get_any_advice(venue), True

    async def get_basic_advice(
        self,
        venue: str,
        target_date: date,
        weather: Optional[WeatherReading] = None,
    ) -> BasicAdviceResponse:
        """
        Pre-computed advice for a venue and date.

        ``season`` and ``weather_category`` in the response always describe
        the requested date and weather; ``fallback`` is set when the row came
        from a wider bucket.

        Raises:
            RepositoryError: basic advice could not be read
        """
        started = time.perf_counter()
        conditions = categorize(target_date, weather)

        try:
            row, used_fallback = await self._find_row(
                venue, conditions.season, conditions.weather_category
            )
        except Exception:
            ADVICE_REQUESTS.labels(kind="basic", outcome="unavailable").inc()
            raise
        finally:
            ADVICE_LATENCY.labels(kind="basic").observe(time.perf_counter() - started)

        if row is None:
            logger.info("basic_advice_missing", venue=venue, season=conditions.season)
            ADVICE_REQUESTS.labels(kind="basic", outcome="empty").inc()
            return BasicAdviceResponse(
                advice_text=f"No pre-computed advice is available for {venue} yet.",
                prediction=Prediction(rod_average=RodAveragePrediction.empty()),
                season=conditions.season,
                weather_category=conditions.weather_category,
                report_count=0,
                fallback=True,
            )

        logger.info(
            "basic_advice_found",
            venue=venue,
            season=conditions.season,
            weather_category=conditions.weather_category,
            fallback=used_fallback,
        )
        ADVICE_REQUESTS.labels(kind="basic", outcome="ok").inc()
        return BasicAdviceResponse(
            advice_text=row.get("advice_text") or "",
            prediction=prediction_from_row(row),
            season=conditions.season,
            weather_category=conditions.weather_category,
            report_count=max(int(row.get("report_count") or 0), 0),
            fallback=used_fallback,
        )
