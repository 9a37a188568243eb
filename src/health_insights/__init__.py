"""Health Insights - analytics and insights engine for personal health data."""

__version__ = "0.1.0"

from .analytics import (
    InsightInputs,
    aggregate,
    analyze_progression,
    analyze_trend,
    build_heatmap,
)
from .config import Settings, get_settings
from .engine import HealthInsightsEngine, configure_logging, create_engine, get_engine
from .exceptions import HealthInsightsError
from .services import (
    InsightsService,
    RecoveryService,
    ReportService,
    assess_risk,
    compose_report,
)

__all__ = [
    "InsightInputs",
    "aggregate",
    "analyze_progression",
    "analyze_trend",
    "build_heatmap",
    "Settings",
    "get_settings",
    "HealthInsightsEngine",
    "configure_logging",
    "create_engine",
    "get_engine",
    "HealthInsightsError",
    "InsightsService",
    "RecoveryService",
    "ReportService",
    "assess_risk",
    "compose_report",
]
