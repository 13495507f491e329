"""
Prediction Config Repository

Data access layer for the offline-tuned model configuration:
- prediction_params: zero-or-one row per (venue, target)
- venue_profiles: zero-or-one row per venue
"""

from typing import Any, Mapping, Optional

from repositories.base import ReadRepository


class PredictionConfigRepository(ReadRepository):
    """Raw SQL reads for tuned params and venue profiles."""

    async def get_params_row(self, venue: str, target: str) -> Optional[Mapping[str, Any]]:
        """The tuned params row for (venue, target), if any."""
        return await self._fetch_one(
            """
            SELECT venue, target, week_window, top_n, year_decay,
                   w_temperature, w_wind_speed, w_precipitation,
                   w_pressure, w_humidity, use_cross_venue, venue_weight
            FROM prediction_params
            WHERE venue = :venue
              AND target = :target
            LIMIT 1
            """,
            {"venue": venue, "target": target},
        )

    async def get_venue_profile_row(self, venue: str) -> Optional[Mapping[str, Any]]:
        """The statistical profile row for a venue, if any."""
        return await self._fetch_one(
            """
            SELECT venue, region, report_count, rod_avg_mean, rod_avg_std,
                   rod_mae, rod_mae_ci_lo, rod_mae_ci_hi, character_notes,
                   cross_venue_rule, data_quality_flag
            FROM venue_profiles
            WHERE venue = :venue
            LIMIT 1
            """,
            {"venue": venue},
        )
