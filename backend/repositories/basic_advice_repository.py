"""
Basic Advice Repository

Data access layer for the basic_advice table: advice pre-computed offline per
(venue, season, weather_category).
"""

from typing import Any, Mapping, Optional

from repositories.base import ReadRepository

_COLUMNS = """
    venue, season, weather_category, advice_text, expected_rod_average,
    rod_average_range, report_count, methods_ranked, flies_ranked, spots_ranked
"""


class BasicAdviceRepository(ReadRepository):
    """Raw SQL reads for pre-computed advice."""

    async def get_advice(
        self, venue: str, season: str, weather_category: str
    ) -> Optional[Mapping[str, Any]]:
        """Exact (venue, season, weather_category) match."""
        return await self._fetch_one(
            f"""
            SELECT {_COLUMNS}
            FROM basic_advice
            WHERE venue = :venue
              AND season = :season
              AND weather_category = :weather_category
            LIMIT 1
            """,
            {"venue": venue, "season": season, "weather_category": weather_category},
        )

    async def get_any_advice(self, venue: str) -> Optional[Mapping[str, Any]]:
        """Any pre-computed advice for the venue."""
        return await self._fetch_one(
            f"""
            SELECT {_COLUMNS}
            FROM basic_advice
            WHERE venue = :venue
            ORDER BY season, weather_category
            LIMIT 1
            """,
            {"venue": venue},
        )
