"""
Pytest Configuration and Shared Fixtures

This module provides common fixtures and configuration for all tests.
"""

import os
from datetime import date
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add backend directory to path for imports
import sys
from pathlib import Path

backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

os.environ.setdefault("ENVIRONMENT", "test")


# =============================================================================
# DATABASE MOCK FIXTURES
# =============================================================================


def make_result(rows: List[Dict[str, Any]]) -> MagicMock:
    """Mock SQLAlchemy result whose ``mappings().all()`` returns ``rows``"""
    result = MagicMock()
    result.mappings.return_value.all.return_value = rows
    return result


def make_session_factory(
    rows: Optional[List[Dict[str, Any]]] = None,
    error: Optional[Exception] = None,
):
    """
    Mock async_sessionmaker.

    Every call opens a context-managed session whose ``execute`` returns
    ``rows`` (or raises ``error``). Returns (factory, session).
    """
    session = AsyncMock()
    if error is not None:
        session.execute = AsyncMock(side_effect=error)
    else:
        session.execute = AsyncMock(return_value=make_result(rows or []))

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)

    factory = MagicMock(return_value=context)
    return factory, session


@pytest.fixture
def session_factory():
    """Factory fixture building a mock session factory per test"""
    return make_session_factory


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================


@pytest.fixture
def make_observation():
    """Factory fixture for Observation records"""
    from models.observation import Observation

    def _create(
        observed_date: date = date(2024, 6, 1),
        catch_rate: Optional[float] = 4.0,
        is_personal: bool = False,
        venue: str = "Rutland Water",
        **kwargs,
    ):
        return Observation(
            venue=venue,
            observed_date=observed_date,
            catch_rate=catch_rate,
            is_personal=is_personal,
            **kwargs,
        )

    return _create


@pytest.fixture
def tuned_params():
    """A tuned parameter set distinct from the hardcoded constants"""
    from models.prediction import ParamsSource, PredictionParams

    return PredictionParams(
        week_window=3,
        top_n=5,
        year_decay=0.5,
        w_temperature=1.0,
        w_wind_speed=0.5,
        w_precipitation=0.0,
        w_pressure=0.0,
        w_humidity=0.0,
        use_cross_venue=False,
        venue_weight=2.0,
        source=ParamsSource.TUNED,
    )


@pytest.fixture
def fishery_row():
    """Sample fishing_reports row"""
    return {
        "venue": "Rutland Water",
        "report_date": date(2024, 6, 1),
        "year": 2024,
        "rod_average": 4.5,
        "methods": ["Washing line", "Dry fly"],
        "flies": ["Cormorant", "Hopper"],
        "best_spots": ["North Arm"],
        "t_mean_week": 15.2,
        "wind_speed_mean_week": 4.1,
        "precip_total_mm_week": 6.0,
        "pressure_mean_week": 1014.0,
        "humidity_mean_week": 72.0,
    }


@pytest.fixture
def diary_row():
    """Sample diary_as_reports row (personal source schema)"""
    return {
        "venue": "Rutland Water",
        "date": "2024-05-20",
        "year": 2024,
        "rod_average": 6.0,
        "methods": None,
        "flies": '["Blob", "Diawl Bach"]',
        "best_spots": None,
        "t_mean_week": None,
        "wind_speed_mean_week": None,
        "precip_total_mm_week": None,
        "pressure_mean_week": None,
        "humidity_mean_week": None,
    }


@pytest.fixture
def params_row():
    """Sample prediction_params row"""
    return {
        "venue": "Rutland Water",
        "target": "rod_average",
        "week_window": 3,
        "top_n": 8,
        "year_decay": 0.6,
        "w_temperature": 1.2,
        "w_wind_speed": 0.3,
        "w_precipitation": 0.8,
        "w_pressure": 0.1,
        "w_humidity": 0.5,
        "use_cross_venue": 1,
        "venue_weight": 2.5,
    }


@pytest.fixture
def profile_row():
    """Sample venue_profiles row"""
    return {
        "venue": "Rutland Water",
        "region": "East Midlands",
        "report_count": 240,
        "rod_avg_mean": 3.8,
        "rod_avg_std": 1.4,
        "rod_mae": 0.9,
        "rod_mae_ci_lo": 0.7,
        "rod_mae_ci_hi": 1.1,
        "character_notes": "Large reservoir; boat fishing dominates in summer",
        "cross_venue_rule": None,
        "data_quality_flag": "good",
    }
