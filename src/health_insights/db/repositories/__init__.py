"""Repository implementations for derived state."""

from .base import SQLiteRepository
from .insight_cache_repository import InsightCacheRepository
from .muscle_usage_repository import MuscleUsageRepository
from .report_repository import ReportRepository

__all__ = [
    "SQLiteRepository",
    "InsightCacheRepository",
    "MuscleUsageRepository",
    "ReportRepository",
]
