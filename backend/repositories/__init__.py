"""
Repository Pattern Implementations

Read-only data access layer for the Fishing Advice API.
"""

from repositories.base import (
    ReadRepository,
    RepositoryError,
    DataSourceUnavailableError,
)

from repositories.report_repository import ReportRepository
from repositories.prediction_config_repository import PredictionConfigRepository
from repositories.basic_advice_repository import BasicAdviceRepository
from repositories.diary_repository import DiaryRepository

__all__ = [
    # Base classes and exceptions
    "ReadRepository",
    "RepositoryError",
    "DataSourceUnavailableError",
    # Repository implementations
    "ReportRepository",
    "PredictionConfigRepository",
    "BasicAdviceRepository",
    "DiaryRepository",
]
