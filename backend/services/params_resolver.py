"""
Prediction Params Resolver

Resolves tuned coefficients for a (venue, target) pair through a fixed
three-tier chain:

1. venue-specific tuned row            -> source "tuned"
2. reserved global-default venue row   -> source "global_default"
3. hardcoded constants                 -> source "hardcoded_fallback"

Both lookups in this module are best-effort: a data-access failure or an
unusable row is treated as a miss and logged, never raised.
"""

import asyncio
from typing import Any, Dict, Iterable, Mapping, Optional

import structlog
from pydantic import ValidationError

from models.prediction import (
    HARDCODED_PARAMS,
    ParamsSource,
    PredictionParams,
    PredictionTarget,
    VenueProfile,
)
from repositories.prediction_config_repository import PredictionConfigRepository

logger = structlog.get_logger(__name__)

GLOBAL_DEFAULT_VENUE = "_global_default"

_PARAM_FIELDS = (
    "week_window",
    "top_n",
    "year_decay",
    "w_temperature",
    "w_wind_speed",
    "w_precipitation",
    "w_pressure",
    "w_humidity",
    "venue_weight",
)


def params_from_row(row: Mapping[str, Any], source: ParamsSource) -> PredictionParams:
    """Build an immutable PredictionParams from a prediction_params row."""
    values: Dict[str, Any] = {name: row[name] for name in _PARAM_FIELDS}
    values["use_cross_venue"] = bool(row.get("use_cross_venue") or False)
    return PredictionParams(**values, source=source)


def profile_from_row(row: Mapping[str, Any]) -> VenueProfile:
    """Build a VenueProfile, folding the split CI columns into one pair."""
    ci_lo = row.get("rod_mae_ci_lo")
    ci_hi = row.get("rod_mae_ci_hi")
    return VenueProfile(
        venue=row["venue"],
        region=row.get("region"),
        report_count=row.get("report_count") or 0,
        rod_avg_mean=row.get("rod_avg_mean"),
        rod_avg_std=row.get("rod_avg_std"),
        rod_mae=row.get("rod_mae"),
        rod_mae_ci=(ci_lo, ci_hi) if ci_lo is not None and ci_hi is not None else None,
        character_notes=row.get("character_notes"),
        cross_venue_rule=row.get("cross_venue_rule"),
        data_quality_flag=row.get("data_quality_flag") or "unknown",
    )


class PredictionParamsResolver:
    """
    Three-tier params lookup. ``resolve`` never raises.
    """

    def __init__(
        self,
        config_repo: PredictionConfigRepository,
        global_default_venue: str = GLOBAL_DEFAULT_VENUE,
    ):
        self._repo = config_repo
        self._global_default_venue = global_default_venue

    async def _try_tier(
        self, venue: str, target: str, source: ParamsSource
    ) -> Optional[PredictionParams]:
        """One lookup-or-miss tier. Errors and malformed rows are misses."""
        try:
            row = await self._repo.get_params_row(venue, target)
        except Exception as e:
            logger.warning(
                "params_lookup_failed",
                venue=venue,
                target=target,
                tier=source.value,
                error=str(e),
            )
            return None

        if row is None:
            return None

        try:
            return params_from_row(row, source)
        except (KeyError, TypeError, ValueError, ValidationError) as e:
            logger.warning(
                "params_row_invalid",
                venue=venue,
                target=target,
                tier=source.value,
                error=str(e),
            )
            return None

    async def resolve(self, venue: str, target: str = PredictionTarget.ROD_AVERAGE.value) -> PredictionParams:
        """
        Resolve params for (venue, target).

        Returns:
            The first tier that produced a usable row, or the hardcoded
            constants. ``source`` records which tier was used.
        """
        if isinstance(target, PredictionTarget):
            target = target.value

        params = await self._try_tier(venue, target, ParamsSource.TUNED)
        if params is None and venue != self._global_default_venue:
            params = await self._try_tier(
                self._global_default_venue, target, ParamsSource.GLOBAL_DEFAULT
            )
        if params is None:
            params = HARDCODED_PARAMS

        logger.debug("params_resolved", venue=venue, target=target, source=params.source.value)
        return params

    async def resolve_targets(
        self,
        venue: str,
        targets: Iterable[PredictionTarget] = tuple(PredictionTarget),
    ) -> Dict[PredictionTarget, PredictionParams]:
        """Resolve several targets for one venue concurrently."""
        targets = list(targets)
        resolved = await asyncio.gather(
            *(self.resolve(venue, target.value) for target in targets)
        )
        return dict(zip(targets, resolved))


class VenueProfileLookup:
    """
    Best-effort venue profile read. ``get_profile`` never raises; absence and
    failure both yield None.
    """

    def __init__(self, config_repo: PredictionConfigRepository):
        self._repo = config_repo

    async def get_profile(self, venue: str) -> Optional[VenueProfile]:
        try:
            row = await self._repo.get_venue_profile_row(venue)
            if row is None:
                return None
            return profile_from_row(row)
        except Exception as e:
            logger.warning("venue_profile_lookup_failed", venue=venue, error=str(e))
            return None
