"""
Advice API Endpoints

Statistical prediction, pre-computed basic advice and season/weather
bucketing for a venue and date.
"""

from datetime import date
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import get_advice_service, get_basic_advice_service
from config.settings import settings
from models.advice import (
    AdviceRequest,
    AdviceResponse,
    BasicAdviceResponse,
    ConditionsResponse,
    WeatherReading,
)
from repositories.base import RepositoryError
from services.advice_service import AdviceService, AdviceUnavailableError
from services.basic_advice_service import BasicAdviceService
from services.conditions import categorize, iso_week

logger = structlog.get_logger(__name__)

router = APIRouter()


def unavailable_detail(reason: str, public_reason: str) -> str:
    """503 detail; raw driver text is only exposed outside production"""
    return f"Advice unavailable: {public_reason if settings.is_production else reason}"


def weather_from_query(
    temp: Optional[float] = Query(None, description="Air temperature, Celsius"),
    wind_speed_mph: Optional[float] = Query(None, ge=0),
    precip_mm: Optional[float] = Query(None, ge=0),
    pressure: Optional[float] = Query(None, description="hPa"),
    humidity: Optional[float] = Query(None, ge=0, le=100),
) -> Optional[WeatherReading]:
    """Optional weather reading supplied as query parameters"""
    values = {
        "temp": temp,
        "wind_speed_mph": wind_speed_mph,
        "precip_mm": precip_mm,
        "pressure": pressure,
        "humidity": humidity,
    }
    if all(v is None for v in values.values()):
        return None
    return WeatherReading(**values)


# =============================================================================
# Endpoints
# =============================================================================


@router.post(
    "/prediction",
    response_model=AdviceResponse,
    summary="Predict catch rate and rank methods, flies and spots",
    responses={
        200: {"description": "Prediction generated"},
        422: {"description": "Invalid request"},
        503: {"description": "Historical reports could not be read"},
    },
)
async def get_prediction(
    request: AdviceRequest,
    service: AdviceService = Depends(get_advice_service),
):
    """
    Generate a statistical prediction for a venue and date.

    A venue with no matching reports yields a zero/LOW prediction; a report
    source that cannot be read yields 503.
    """
    try:
        return await service.get_advice(request)
    except AdviceUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=unavailable_detail(e.reason, "reports could not be read"),
        )


@router.get(
    "/basic",
    response_model=BasicAdviceResponse,
    summary="Get pre-computed advice",
    responses={
        200: {"description": "Advice found, or the empty default"},
        503: {"description": "Basic advice could not be read"},
    },
)
async def get_basic_advice(
    venue: str = Query(..., min_length=1, max_length=200),
    target_date: date = Query(..., description="YYYY-MM-DD"),
    weather: Optional[WeatherReading] = Depends(weather_from_query),
    service: BasicAdviceService = Depends(get_basic_advice_service),
):
    """Look up advice pre-computed for the venue, season and weather bucket."""
    try:
        return await service.get_basic_advice(venue.strip(), target_date, weather)
    except RepositoryError as e:
        logger.error("basic_advice_unavailable", venue=venue, error=e.message)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=unavailable_detail(e.message, "basic advice could not be read"),
        )


@router.get(
    "/conditions",
    response_model=ConditionsResponse,
    summary="Season and weather category for a date",
)
async def get_conditions(
    target_date: date = Query(..., description="YYYY-MM-DD"),
    weather: Optional[WeatherReading] = Depends(weather_from_query),
):
    conditions = categorize(target_date, weather)
    return ConditionsResponse(
        season=conditions.season,
        weather_category=conditions.weather_category,
        target_week=iso_week(target_date),
    )
