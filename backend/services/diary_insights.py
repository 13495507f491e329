"""
Diary Insights Service

Reads the diary network for a venue and turns it into tactical advice and,
for a signed-in caller, their personal venue record.

Diary data supplements the report-based prediction, so every read here is
best-effort: a failure is logged and yields the empty result.
"""

import asyncio
import json
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog
from pydantic import ValidationError

from models.advice import WeatherReading
from models.diary import AnglerVenueStats, PersonalStats, SessionSummary, TacticalAdvice
from repositories.diary_repository import DiaryRepository
from services.conditions import iso_week
from services.report_aggregator import parse_observed_date
from services.tactical_engine import personal_stats, summarize_periods, weight_periods

logger = structlog.get_logger(__name__)


def _decode_json(value: Any) -> Any:
    """jsonb columns may arrive as text depending on the driver codec."""
    if isinstance(value, str):
        return json.loads(value)
    return value


def session_from_row(row: Mapping[str, Any]) -> SessionSummary:
    """
    Raises:
        ValueError/TypeError/ValidationError: the row is malformed
    """
    return SessionSummary(
        user_id=str(row["user_id"]) if row.get("user_id") is not None else None,
        session_date=parse_observed_date(row.get("session_date")),
        total_fish=row.get("total_fish"),
        weather_periods=_decode_json(row.get("weather_periods")),
    )


def stats_from_row(row: Mapping[str, Any]) -> AnglerVenueStats:
    technique_stats = _decode_json(row.get("technique_stats"))
    return AnglerVenueStats(
        user_id=str(row["user_id"]) if row.get("user_id") is not None else None,
        general_ability=row.get("general_ability"),
        total_sessions=row.get("total_sessions"),
        total_fish=row.get("total_fish"),
        catch_rate=row.get("catch_rate"),
        fish_per_hour=row.get("fish_per_hour"),
        technique_stats=technique_stats if isinstance(technique_stats, dict) else None,
    )


class DiaryInsightsService:
    """Service for diary-network tactical advice and personal stats"""

    def __init__(self, diary_repo: DiaryRepository):
        self._repo = diary_repo

    async def _venue_id(self, venue: str) -> Optional[Any]:
        try:
            return await self._repo.get_venue_id(venue)
        except Exception as e:
            logger.warning("diary_venue_lookup_failed", venue=venue, error=str(e))
            return None

    def _sessions(self, rows: List[Mapping[str, Any]], venue: str) -> List[SessionSummary]:
        sessions: List[SessionSummary] = []
        for row in rows:
            try:
                sessions.append(session_from_row(row))
            except (KeyError, ValueError, TypeError, ValidationError) as e:
                logger.warning("diary_session_skipped", venue=venue, error=str(e))
        return sessions

    @staticmethod
    def _abilities(rows: List[Mapping[str, Any]]) -> Dict[str, float]:
        abilities: Dict[str, float] = {}
        for row in rows:
            user_id = row.get("user_id")
            ability = row.get("general_ability")
            if user_id is None or ability is None:
                continue
            try:
                abilities[str(user_id)] = float(ability)
            except (TypeError, ValueError):
                continue
        return abilities

    async def get_insights(
        self,
        venue: str,
        target_date: date,
        week_window: int,
        reading: Optional[WeatherReading] = None,
        user_id: Optional[str] = None,
    ) -> Tuple[TacticalAdvice, PersonalStats]:
        """
        Tactical advice from seasonal diary sessions, plus the caller's record.

        Never raises. An unknown venue gives empty tactical advice and, like
        an anonymous caller, no personal message.
        """
        venue_id = await self._venue_id(venue)
        if venue_id is None:
            return TacticalAdvice(), PersonalStats()

        reads = [
            self._repo.get_session_summaries(venue_id),
            self._repo.get_angler_abilities(venue_id),
        ]
        if user_id:
            reads.append(self._repo.get_angler_stats(user_id, venue_id))
        results = await asyncio.gather(*reads, return_exceptions=True)

        for source, result in zip(("sessions", "abilities", "angler_stats"), results):
            if isinstance(result, Exception):
                logger.warning("diary_read_failed", venue=venue, source=source, error=str(result))

        session_rows = results[0] if not isinstance(results[0], Exception) else []
        ability_rows = results[1] if not isinstance(results[1], Exception) else []

        session_count, weighted = weight_periods(
            self._sessions(session_rows, venue),
            self._abilities(ability_rows),
            target_date,
            iso_week(target_date),
            week_window,
            reading,
        )
        tactical = summarize_periods(session_count, weighted)

        personal = PersonalStats()
        if user_id:
            stats_row = results[2]
            stats = None
            if stats_row is not None and not isinstance(stats_row, Exception):
                try:
                    stats = stats_from_row(stats_row)
                except (ValueError, TypeError, ValidationError) as e:
                    logger.warning("angler_stats_invalid", venue=venue, error=str(e))
            personal = personal_stats(stats)

        logger.info(
            "diary_insights_built",
            venue=venue,
            session_count=tactical.session_count,
            period_count=tactical.period_count,
            has_personal=personal.has_personal,
        )
        return tactical, personal
