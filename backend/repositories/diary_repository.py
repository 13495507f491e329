"""
Diary Repository

Data access layer for diary-derived session data:
- venue_metadata: venue name -> id resolution
- session_summaries: logged sessions with per-period weather breakdowns
- angler_venue_stats: per-angler aggregates at a venue
"""

from typing import Any, List, Mapping, Optional

from repositories.base import ReadRepository


def _like_pattern(value: str) -> str:
    """Substring ILIKE pattern with the LIKE wildcards in ``value`` escaped."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class DiaryRepository(ReadRepository):
    """Raw SQL reads for diary sessions and angler statistics."""

    async def get_venue_id(self, venue: str) -> Optional[Any]:
        """Id of the first venue whose name contains ``venue`` (case-insensitive)."""
        row = await self._fetch_one(
            """
            SELECT id, name
            FROM venue_metadata
            WHERE name ILIKE :pattern ESCAPE '\\'
            ORDER BY length(name), name
            LIMIT 1
            """,
            {"pattern": _like_pattern(venue)},
        )
        return row["id"] if row else None

    async def get_session_summaries(self, venue_id: Any) -> List[Mapping[str, Any]]:
        return await self._fetch_all(
            """
            SELECT user_id, session_date, total_fish, weather_periods
            FROM session_summaries
            WHERE venue_id = :venue_id
            ORDER BY session_date DESC
            """,
            {"venue_id": venue_id},
        )

    async def get_angler_abilities(self, venue_id: Any) -> List[Mapping[str, Any]]:
        """general_ability for every angler with stats at the venue."""
        return await self._fetch_all(
            """
            SELECT user_id, general_ability
            FROM angler_venue_stats
            WHERE venue_id = :venue_id
            """,
            {"venue_id": venue_id},
        )

    async def get_angler_stats(
        self, user_id: str, venue_id: Any
    ) -> Optional[Mapping[str, Any]]:
        return await self._fetch_one(
            """
            SELECT user_id, general_ability, total_sessions, total_fish,
                   catch_rate, fish_per_hour, technique_stats
            FROM angler_venue_stats
            WHERE user_id = :user_id
              AND venue_id = :venue_id
            LIMIT 1
            """,
            {"user_id": user_id, "venue_id": venue_id},
        )
