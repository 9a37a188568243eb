"""
Report Composer & Share Tokens

Reports are immutable snapshots assembled from analytics output plus
caller-supplied profile and biomarker context. A snapshot can be shared
through an opaque token; resolving the token only ever bumps its access
counter.
"""

import secrets
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ..analytics.aggregation import summarize_period
from ..analytics.detectors import InsightInputs, run_detectors
from ..config import Settings
from ..db.repositories.report_repository import ReportRepository
from ..exceptions import ReportNotFoundError, ShareGrantNotFoundError, ValidationError
from ..models.insights import Insight
from ..models.records import (
    ActivityLog,
    BiomarkerReading,
    NutritionLog,
    WeightLog,
    WorkoutSession,
)
from ..models.reports import HealthSummary, ReportSnapshot, ShareGrant, UserContext
from ..utils.timeutils import ensure_utc, utcnow
from .base import BaseService, Clock
from .insights_service import InsightsService


# 32 random bytes = 256 bits of entropy, hex encoded
SHARE_TOKEN_BYTES = 32

# Biomarker types always present in a health summary, even with no reading
TRACKED_BIOMARKERS = ("weight", "body_fat", "blood_pressure", "blood_glucose", "heart_rate", "waist")

REPORT_SECTIONS = ("insights", "health")


def compose_report(
    user_context: UserContext,
    aggregates: Dict[str, Any],
    insights: Sequence[Insight],
    biomarkers: Sequence[BiomarkerReading],
    period_start: date,
    period_end: date,
    report_type: str = "comprehensive",
    title: Optional[str] = None,
    report_id: Optional[str] = None,
    generated_at: Optional[datetime] = None,
) -> ReportSnapshot:
    """
    Assemble a report snapshot from already computed parts.

    Nothing is recomputed here; the snapshot holds exactly what it is given.

    Raises:
        ValidationError: If the period is inverted
    """
    if period_start > period_end:
        raise ValidationError(
            "Report period start must not be after its end",
            field="period_start",
            details={"start": period_start.isoformat(), "end": period_end.isoformat()},
        )

    return ReportSnapshot(
        id=report_id or str(uuid.uuid4()),
        user_id=user_context.user_id,
        report_type=report_type,
        title=title or f"Report {period_start.isoformat()} - {period_end.isoformat()}",
        period_start=period_start,
        period_end=period_end,
        user=user_context.model_copy(deep=True),
        aggregates=aggregates,
        insights=tuple(insight.model_copy(deep=True) for insight in insights),
        biomarkers=tuple(reading.model_copy(deep=True) for reading in biomarkers),
        generated_at=ensure_utc(generated_at) if generated_at else utcnow(),
    )


def latest_biomarkers(
    biomarkers: Iterable[BiomarkerReading],
    types: Sequence[str] = TRACKED_BIOMARKERS,
) -> Dict[str, Optional[BiomarkerReading]]:
    """Most recent reading per biomarker type; tracked types default to None."""
    latest: Dict[str, Optional[BiomarkerReading]] = {t: None for t in types}
    for reading in biomarkers:
        current = latest.get(reading.type)
        if current is None or reading.recorded_at > current.recorded_at:
            latest[reading.type] = reading
    return latest


class ReportService(BaseService):
    """Generates, stores and shares report snapshots."""

    def __init__(
        self,
        report_repo: ReportRepository,
        insights_service: Optional[InsightsService] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(settings=settings, clock=clock)
        self._report_repo = report_repo
        self._insights_service = insights_service

    def generate_report(
        self,
        user_context: UserContext,
        period_start: date,
        period_end: date,
        nutrition_logs: Sequence[NutritionLog] = (),
        activity_logs: Sequence[ActivityLog] = (),
        sessions: Sequence[WorkoutSession] = (),
        weight_logs: Sequence[WeightLog] = (),
        biomarkers: Sequence[BiomarkerReading] = (),
        sections: Sequence[str] = REPORT_SECTIONS,
        insight_inputs: Optional[InsightInputs] = None,
    ) -> ReportSnapshot:
        """
        Summarize a period, compose a comprehensive report and store it.

        Args:
            user_context: Profile of the report's subject
            period_start: First day covered
            period_end: Last day covered
            nutrition_logs: Nutrition records for the period
            activity_logs: Activity records for the period
            sessions: Completed workouts for the period
            weight_logs: Weight readings for the period
            biomarkers: Biomarker readings; only those inside the period are kept
            sections: Optional sections to include (``insights``, ``health``)
            insight_inputs: The user's recent records for the cached insight set.
                Without them the insights describe the report period only and
                the insight cache is left untouched.

        Returns:
            The stored ReportSnapshot
        """
        unknown = set(sections) - set(REPORT_SECTIONS)
        if unknown:
            raise ValidationError(
                f"Unknown report sections: {', '.join(sorted(unknown))}",
                field="sections",
                details={"supported": list(REPORT_SECTIONS)},
            )

        summary = summarize_period(
            nutrition_logs, activity_logs, sessions, period_start, period_end, period="custom"
        )

        insights: List[Insight] = []
        if "insights" in sections:
            period_inputs = InsightInputs(
                nutrition_logs=nutrition_logs,
                activity_logs=activity_logs,
                sessions=sessions,
                weight_logs=weight_logs,
            )
            insights = self._report_insights(user_context.user_id, period_inputs, insight_inputs)

        period_biomarkers: List[BiomarkerReading] = []
        if "health" in sections:
            period_biomarkers = sorted(
                (b for b in biomarkers if period_start <= b.recorded_at.date() <= period_end),
                key=lambda b: b.recorded_at,
                reverse=True,
            )

        report = compose_report(
            user_context,
            aggregates=summary.to_dict(),
            insights=insights,
            biomarkers=period_biomarkers,
            period_start=period_start,
            period_end=period_end,
            generated_at=self.now(),
        )
        self._report_repo.save_report(report)

        self.logger.info(
            "Generated report %s for user %s (%s to %s)",
            report.id, report.user_id, period_start.isoformat(), period_end.isoformat(),
        )
        return report

    def _report_insights(
        self,
        user_id: str,
        period_inputs: InsightInputs,
        insight_inputs: Optional[InsightInputs],
    ) -> List[Insight]:
        # Period-only insights never reach the user's cached set
        if insight_inputs is None:
            return run_detectors(period_inputs)
        if self._insights_service is not None:
            return self._insights_service.detect_insights(user_id, insight_inputs)
        return run_detectors(
            insight_inputs.within_window(self.settings.insight_window_days, self.now())
        )

    def get_report(self, report_id: str) -> ReportSnapshot:
        report = self._report_repo.get_report(report_id)
        if report is None:
            raise ReportNotFoundError(report_id)
        return report

    def issue_share_token(
        self,
        report_id: str,
        expires_in_hours: Optional[float] = None,
        use_default_expiry: bool = False,
    ) -> ShareGrant:
        """
        Create a share grant for a stored report.

        Args:
            report_id: Report to share
            expires_in_hours: Lifetime of the grant; None means it never expires
            use_default_expiry: Apply the configured default lifetime when
                ``expires_in_hours`` is not given

        Raises:
            ReportNotFoundError: If the report does not exist
            ValidationError: If ``expires_in_hours`` is not positive
        """
        if expires_in_hours is None and use_default_expiry:
            expires_in_hours = self.settings.default_share_expiry_hours
        if expires_in_hours is not None and expires_in_hours <= 0:
            raise ValidationError("expires_in_hours must be positive", field="expires_in_hours")

        if self._report_repo.get_report(report_id) is None:
            raise ReportNotFoundError(report_id)

        now = self.now()
        grant = ShareGrant(
            token=secrets.token_hex(SHARE_TOKEN_BYTES),
            report_id=report_id,
            created_at=now,
            expires_at=now + timedelta(hours=expires_in_hours) if expires_in_hours is not None else None,
        )
        self._report_repo.save_share(grant)

        self.logger.info(
            "Issued share for report %s (expires %s)",
            report_id, grant.expires_at.isoformat() if grant.expires_at else "never",
        )
        return grant

    def resolve_share_token(self, token: str) -> Optional[ReportSnapshot]:
        """
        Dereference a share token.

        Returns:
            The shared snapshot, or None when the token is unknown or expired.
            A successful lookup increments the grant's access count.
        """
        if not token:
            return None

        grant = self._report_repo.get_share(token)
        if grant is None:
            self.logger.debug("Share lookup for unknown token")
            return None
        if grant.is_expired(self.now()):
            self.logger.debug("Share lookup for expired grant on report %s", grant.report_id)
            return None

        report = self._report_repo.get_report(grant.report_id)
        if report is None:
            return None

        self._report_repo.increment_access_count(token)
        return report

    def require_shared_report(self, token: str) -> ReportSnapshot:
        """Like ``resolve_share_token`` but raises for the route layer."""
        report = self.resolve_share_token(token)
        if report is None:
            raise ShareGrantNotFoundError()
        return report

    def health_summary(
        self,
        user_context: UserContext,
        biomarkers: Iterable[BiomarkerReading],
    ) -> HealthSummary:
        """Health conditions and the latest reading of each biomarker type."""
        return HealthSummary(
            health_conditions=list(user_context.health_conditions),
            latest_biomarkers=latest_biomarkers(biomarkers),
        )
