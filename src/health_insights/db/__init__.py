"""Persistence for the insight cache, muscle usage state and reports."""

from .repositories import (
    InsightCacheRepository,
    MuscleUsageRepository,
    ReportRepository,
    SQLiteRepository,
)

__all__ = [
    "InsightCacheRepository",
    "MuscleUsageRepository",
    "ReportRepository",
    "SQLiteRepository",
]
