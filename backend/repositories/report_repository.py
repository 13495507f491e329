"""
Report Repository

Data access layer for the two historical report sources:
- fishing_reports: fishery-wide weekly reports
- diary_as_reports: a user's diary sessions projected into report shape

Rows are returned raw; schema normalization happens in ReportAggregator.
"""

from typing import Any, Dict, List, Mapping

import structlog

from repositories.base import ReadRepository

logger = structlog.get_logger(__name__)


class ReportRepository(ReadRepository):
    """Raw SQL reads for fishery and diary reports."""

    async def get_fishery_reports(self, venue: str) -> List[Mapping[str, Any]]:
        """All fishery-wide reports recorded for a venue."""
        rows = await self._fetch_all(
            """
            SELECT venue, report_date, year, rod_average,
                   methods, flies, best_spots,
                   t_mean_week, wind_speed_mean_week, precip_total_mm_week,
                   pressure_mean_week, humidity_mean_week
            FROM fishing_reports
            WHERE venue = :venue
            ORDER BY report_date
            """,
            {"venue": venue},
        )
        logger.debug("fishery_reports_fetched", venue=venue, count=len(rows))
        return rows

    async def get_diary_reports(self, venue: str, user_id: str) -> List[Mapping[str, Any]]:
        """A single user's diary-derived reports for a venue."""
        params: Dict[str, Any] = {"venue": venue, "user_id": user_id}
        rows = await self._fetch_all(
            """
            SELECT venue, date, year, rod_average,
                   methods, flies, best_spots,
                   t_mean_week, wind_speed_mean_week, precip_total_mm_week,
                   pressure_mean_week, humidity_mean_week
            FROM diary_as_reports
            WHERE venue = :venue
              AND user_id = :user_id
            ORDER BY date
            """,
            params,
        )
        logger.debug("diary_reports_fetched", venue=venue, count=len(rows))
        return rows
