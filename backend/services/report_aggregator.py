"""
Report Aggregator

Merges fishery-wide reports and a user's diary-derived reports into one
collection of ``Observation`` records. This is the only place that knows the
two source schemas differ (``report_date`` vs ``date``, ``best_spots`` vs
``spots``, JSON-text vs native arrays, nullable arrays).
"""

import asyncio
import json
from datetime import date, datetime
from typing import Any, List, Mapping, Optional, Sequence

import structlog
from pydantic import ValidationError

from models.observation import Observation, WeatherCovariates
from repositories.base import RepositoryError
from repositories.report_repository import ReportRepository

logger = structlog.get_logger(__name__)


class ReportSourceError(RepositoryError):
    """A report source could not be read. Fatal for the request."""
    pass


def parse_observed_date(value: Any) -> date:
    """Accept a date, a datetime or an ISO ``YYYY-MM-DD[...]`` string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f"unparseable date: {value!r}")


def _categorical(value: Any) -> Optional[Sequence[Any]]:
    """Native array, JSON-encoded array text, or null."""
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.startswith("["):
            decoded = json.loads(text)
            return decoded if isinstance(decoded, list) else None
        return [text]
    return value


def _covariates(row: Mapping[str, Any]) -> WeatherCovariates:
    return WeatherCovariates(
        temp=row.get("t_mean_week"),
        wind_speed=row.get("wind_speed_mean_week"),
        precipitation=row.get("precip_total_mm_week"),
        pressure=row.get("pressure_mean_week"),
        humidity=row.get("humidity_mean_week"),
    )


def normalize_row(
    row: Mapping[str, Any], venue: str, is_personal: bool
) -> Observation:
    """
    Map one raw report row to an Observation.

    Raises:
        ValueError/TypeError/ValidationError: the row is malformed
    """
    raw_date = row.get("report_date") if "report_date" in row else row.get("date")
    spots = row.get("best_spots") if "best_spots" in row else row.get("spots")

    return Observation(
        venue=row.get("venue") or venue,
        observed_date=parse_observed_date(raw_date),
        is_personal=is_personal,
        catch_rate=row.get("rod_average"),
        methods=_categorical(row.get("methods")),
        flies=_categorical(row.get("flies")),
        spots=_categorical(spots),
        weather_covariates=_covariates(row),
    )


class ReportAggregator:
    """
    Reads both report sources for a venue and normalizes them.

    Unlike the params and profile lookups, a read failure here is fatal and
    is raised as ``ReportSourceError``. A single malformed row is skipped.
    """

    def __init__(self, report_repo: ReportRepository):
        self._repo = report_repo

    async def _read(self, source: str, coro) -> List[Mapping[str, Any]]:
        try:
            return await coro
        except Exception as e:
            logger.error("report_source_failed", source=source, error=str(e))
            raise ReportSourceError(f"{source} reports unavailable: {e}", e) from e

    def _normalize_all(
        self, rows: List[Mapping[str, Any]], venue: str, is_personal: bool
    ) -> List[Observation]:
        observations: List[Observation] = []
        for row in rows:
            try:
                observations.append(normalize_row(row, venue, is_personal))
            except (ValueError, TypeError, ValidationError) as e:
                logger.warning(
                    "observation_skipped",
                    venue=venue,
                    is_personal=is_personal,
                    error=str(e),
                )
        return observations

    async def aggregate(
        self,
        venue: str,
        target_date: date,
        user_id: Optional[str] = None,
    ) -> List[Observation]:
        """
        Fetch and normalize every observation for a venue.

        Fishery reports are read unconditionally; the caller's diary reports
        only when ``user_id`` is given. General observations come first,
        followed by personal ones, each in source order.

        Raises:
            ReportSourceError: either source could not be read
        """
        reads = [self._read("fishery", self._repo.get_fishery_reports(venue))]
        if user_id:
            reads.append(self._read("diary", self._repo.get_diary_reports(venue, user_id)))

        results = await asyncio.gather(*reads, return_exceptions=True)
        for result in results:
            if isinstance(result, BaseException):
                raise result

        observations = self._normalize_all(results[0], venue, is_personal=False)
        if user_id:
            observations.extend(self._normalize_all(results[1], venue, is_personal=True))

        logger.info(
            "reports_aggregated",
            venue=venue,
            target_date=target_date.isoformat(),
            total=len(observations),
            personal=sum(1 for obs in observations if obs.is_personal),
        )
        return observations
