"""
Params Resolver and Venue Profile Lookup Tests

Tests for:
- Three-tier params fallback (tuned -> global default -> hardcoded)
- Failures and malformed rows treated as misses
- Best-effort venue profile lookup
"""

from unittest.mock import AsyncMock

import pytest

from models.prediction import HARDCODED_PARAMS, ParamsSource, PredictionTarget
from repositories.base import RepositoryError
from services.params_resolver import (
    GLOBAL_DEFAULT_VENUE,
    PredictionParamsResolver,
    VenueProfileLookup,
)


def _config_repo(params_by_venue=None, params_error=None, profile=None, profile_error=None):
    """Mock PredictionConfigRepository keyed by venue"""
    params_by_venue = params_by_venue or {}
    repo = AsyncMock()

    async def get_params_row(venue, target):
        if params_error is not None:
            raise params_error
        return params_by_venue.get(venue)

    repo.get_params_row = AsyncMock(side_effect=get_params_row)
    if profile_error is not None:
        repo.get_venue_profile_row = AsyncMock(side_effect=profile_error)
    else:
        repo.get_venue_profile_row = AsyncMock(return_value=profile)
    return repo


# =============================================================================
# PARAMS RESOLVER TESTS
# =============================================================================


class TestPredictionParamsResolver:
    """Tests for the three-tier params fallback chain"""

    @pytest.mark.asyncio
    async def test_unknown_venue_falls_back_to_hardcoded(self):
        resolver = PredictionParamsResolver(_config_repo())

        params = await resolver.resolve("Unknown Lake", "rod_average")

        assert params == HARDCODED_PARAMS
        assert params.source == ParamsSource.HARDCODED_FALLBACK
        assert params.year_decay == 0.7
        assert params.top_n == 10
        assert params.week_window == 2
        assert params.venue_weight == 3.0
        assert params.use_cross_venue is False

    @pytest.mark.asyncio
    async def test_tuned_row_wins(self, params_row):
        repo = _config_repo({"Rutland Water": params_row, GLOBAL_DEFAULT_VENUE: params_row})
        resolver = PredictionParamsResolver(repo)

        params = await resolver.resolve("Rutland Water", "rod_average")

        assert params.source == ParamsSource.TUNED
        assert params.year_decay == 0.6
        assert params.top_n == 8
        assert params.use_cross_venue is True
        repo.get_params_row.assert_awaited_once_with("Rutland Water", "rod_average")

    @pytest.mark.asyncio
    async def test_global_default_used_when_venue_missing(self, params_row):
        repo = _config_repo({GLOBAL_DEFAULT_VENUE: params_row})
        resolver = PredictionParamsResolver(repo)

        params = await resolver.resolve("Grafham Water", "flies")

        assert params.source == ParamsSource.GLOBAL_DEFAULT
        assert params.top_n == 8
        repo.get_params_row.assert_any_await(GLOBAL_DEFAULT_VENUE, "flies")

    @pytest.mark.asyncio
    async def test_custom_global_default_key(self, params_row):
        repo = _config_repo({"__defaults__": params_row})
        resolver = PredictionParamsResolver(repo, global_default_venue="__defaults__")

        params = await resolver.resolve("Grafham Water")

        assert params.source == ParamsSource.GLOBAL_DEFAULT

    @pytest.mark.asyncio
    async def test_data_access_error_is_a_miss(self):
        repo = _config_repo(params_error=RepositoryError("connection refused"))
        resolver = PredictionParamsResolver(repo)

        params = await resolver.resolve("Rutland Water", "rod_average")

        assert params.source == ParamsSource.HARDCODED_FALLBACK
        assert repo.get_params_row.await_count == 2

    @pytest.mark.asyncio
    async def test_unexpected_error_is_a_miss(self):
        repo = _config_repo(params_error=RuntimeError("boom"))
        resolver = PredictionParamsResolver(repo)

        params = await resolver.resolve("Rutland Water", "rod_average")

        assert params.source == ParamsSource.HARDCODED_FALLBACK

    @pytest.mark.asyncio
    async def test_malformed_tuned_row_falls_through(self, params_row):
        bad_row = dict(params_row, year_decay=1.7)
        incomplete_row = {"venue": "Grafham Water", "top_n": 4}
        repo = _config_repo({"Rutland Water": bad_row, GLOBAL_DEFAULT_VENUE: params_row})
        resolver = PredictionParamsResolver(repo)

        assert (await resolver.resolve("Rutland Water")).source == ParamsSource.GLOBAL_DEFAULT

        repo = _config_repo({"Grafham Water": incomplete_row})
        resolver = PredictionParamsResolver(repo)
        assert (await resolver.resolve("Grafham Water")).source == ParamsSource.HARDCODED_FALLBACK

    @pytest.mark.asyncio
    async def test_resolve_targets_covers_every_target(self, params_row):
        repo = _config_repo({"Rutland Water": params_row})
        resolver = PredictionParamsResolver(repo)

        resolved = await resolver.resolve_targets("Rutland Water")

        assert set(resolved) == set(PredictionTarget)
        assert all(p.source == ParamsSource.TUNED for p in resolved.values())
        assert repo.get_params_row.await_count == 4


# =============================================================================
# VENUE PROFILE LOOKUP TESTS
# =============================================================================


class TestVenueProfileLookup:
    """Tests for the best-effort venue profile read"""

    @pytest.mark.asyncio
    async def test_profile_found(self, profile_row):
        lookup = VenueProfileLookup(_config_repo(profile=profile_row))

        profile = await lookup.get_profile("Rutland Water")

        assert profile.venue == "Rutland Water"
        assert profile.rod_mae == 0.9
        assert profile.rod_mae_ci == (0.7, 1.1)
        assert profile.data_quality_flag == "good"

    @pytest.mark.asyncio
    async def test_partial_interval_is_dropped(self, profile_row):
        row = dict(profile_row, rod_mae_ci_hi=None, data_quality_flag=None)
        lookup = VenueProfileLookup(_config_repo(profile=row))

        profile = await lookup.get_profile("Rutland Water")

        assert profile.rod_mae_ci is None
        assert profile.data_quality_flag == "unknown"

    @pytest.mark.asyncio
    async def test_missing_profile_is_none(self):
        lookup = VenueProfileLookup(_config_repo(profile=None))
        assert await lookup.get_profile("Unknown Lake") is None

    @pytest.mark.asyncio
    async def test_lookup_failure_is_swallowed(self):
        lookup = VenueProfileLookup(_config_repo(profile_error=RepositoryError("timeout")))
        assert await lookup.get_profile("Rutland Water") is None
