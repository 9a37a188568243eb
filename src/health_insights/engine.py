"""Wiring for the Health Insights engine.

Builds the repositories and services against one database and sets up
logging the way the host application should run it.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from .config import Settings, get_settings
from .db.repositories import InsightCacheRepository, MuscleUsageRepository, ReportRepository
from .services import InsightsService, RecoveryService, ReportService
from .services.base import Clock
from .utils.log_sanitizer import LogSanitizationFilter, install_log_sanitizer


logger = logging.getLogger(__name__)


def configure_logging(settings: Optional[Settings] = None) -> LogSanitizationFilter:
    """Install the log sanitizer and apply the configured level to the package logger."""
    settings = settings or get_settings()
    sanitizer = install_log_sanitizer()
    logging.getLogger("health_insights").setLevel(settings.log_level.upper())
    return sanitizer


@dataclass
class HealthInsightsEngine:
    """The engine's services, sharing one settings object and clock."""
    settings: Settings
    insights: InsightsService
    recovery: RecoveryService
    reports: ReportService


def create_engine(
    settings: Optional[Settings] = None,
    clock: Optional[Clock] = None,
) -> HealthInsightsEngine:
    """Build all repositories and services for ``settings.database_path``."""
    settings = settings or get_settings()
    db_path = settings.database_path

    cache_repo = InsightCacheRepository(db_path=db_path)
    usage_repo = MuscleUsageRepository(db_path=db_path)
    report_repo = ReportRepository(db_path=db_path)

    insights = InsightsService(cache_repo, settings=settings, clock=clock)
    engine = HealthInsightsEngine(
        settings=settings,
        insights=insights,
        recovery=RecoveryService(usage_repo, report_repo=report_repo, settings=settings, clock=clock),
        reports=ReportService(report_repo, insights_service=insights, settings=settings, clock=clock),
    )
    logger.info("Health Insights engine ready (database: %s)", db_path)
    return engine


@lru_cache
def get_engine() -> HealthInsightsEngine:
    """Get the process-wide engine built from the environment settings."""
    configure_logging()
    return create_engine()
