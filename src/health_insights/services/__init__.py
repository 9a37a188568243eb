"""Services that connect the analytics to persistent state."""

from .base import BaseService
from .insights_service import InsightsService
from .recovery_service import (
    RecoveryService,
    assess_risk,
    muscle_state,
    recovery_window_hours,
)
from .report_service import ReportService, compose_report, latest_biomarkers

__all__ = [
    "BaseService",
    "InsightsService",
    "RecoveryService",
    "assess_risk",
    "muscle_state",
    "recovery_window_hours",
    "ReportService",
    "compose_report",
    "latest_biomarkers",
]
