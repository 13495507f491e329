"""
API Dependencies

FastAPI dependency injection for database access, services and the internal
API key.
"""

import hmac
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import APIKeyHeader

from config.settings import settings
from config.database import db_manager

# API Key header for service-to-service auth
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


# =============================================================================
# Database Dependencies
# =============================================================================


async def get_session_factory():
    """
    Get the async session factory.

    Repositories open one short-lived session per query from this factory.

    Returns:
        async_sessionmaker (None if the database is not configured)
    """
    return db_manager.get_session_factory()


# =============================================================================
# Authentication Dependencies
# =============================================================================


async def verify_api_key(
    api_key: Optional[str] = Depends(api_key_header)
) -> bool:
    """
    Verify API key for service-to-service authentication.

    Args:
        api_key: API key from X-API-Key header

    Returns:
        True if valid

    Raises:
        HTTPException: If API key is missing or invalid
    """
    if not api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key required"
        )

    if not settings.internal_api_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="API key authentication not configured"
        )

    # Constant-time comparison
    if not hmac.compare_digest(api_key, settings.internal_api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key"
        )

    return True


# =============================================================================
# Service Dependencies
# =============================================================================


async def get_advice_service(
    session_factory=Depends(get_session_factory),
):
    """
    Get AdviceService instance.

    Args:
        session_factory: Database session factory

    Returns:
        AdviceService instance
    """
    from repositories.diary_repository import DiaryRepository
    from repositories.prediction_config_repository import PredictionConfigRepository
    from repositories.report_repository import ReportRepository
    from services.advice_service import AdviceService
    from services.diary_insights import DiaryInsightsService
    from services.params_resolver import PredictionParamsResolver, VenueProfileLookup
    from services.report_aggregator import ReportAggregator

    config_repo = PredictionConfigRepository(session_factory)
    return AdviceService(
        params_resolver=PredictionParamsResolver(config_repo, settings.global_default_venue),
        profile_lookup=VenueProfileLookup(config_repo),
        report_aggregator=ReportAggregator(ReportRepository(session_factory)),
        diary_insights=DiaryInsightsService(DiaryRepository(session_factory)),
    )


async def get_basic_advice_service(
    session_factory=Depends(get_session_factory),
):
    """
    Get BasicAdviceService instance.

    Args:
        session_factory: Database session factory

    Returns:
        BasicAdviceService instance
    """
    from repositories.basic_advice_repository import BasicAdviceRepository
    from services.basic_advice_service import BasicAdviceService

    return BasicAdviceService(BasicAdviceRepository(session_factory))
