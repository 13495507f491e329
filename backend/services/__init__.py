"""
Business Logic Services

Service layer for the Fishing Advice API.
"""

from services.advice_service import AdviceService, AdviceUnavailableError
from services.basic_advice_service import BasicAdviceService
from services.diary_insights import DiaryInsightsService
from services.params_resolver import PredictionParamsResolver, VenueProfileLookup
from services.report_aggregator import ReportAggregator, ReportSourceError

__all__ = [
    "AdviceService",
    "AdviceUnavailableError",
    "BasicAdviceService",
    "DiaryInsightsService",
    "PredictionParamsResolver",
    "VenueProfileLookup",
    "ReportAggregator",
    "ReportSourceError",
]
