"""
Muscle Recovery & Injury Risk

Tracks when each muscle was last trained and how hard, and derives a
recovery state per muscle plus an aggregate injury-risk level.

Recovery windows by reported session intensity (0-10):
    <= 3  -> 24h
    <= 6  -> 48h
    <= 8  -> 72h
    >  8  -> 96h

A muscle that is still inside its window is recovering. It is overused
when it is also trained more often per week than its window allows
(``7 * 24 / window`` sessions).
"""

import logging
import math
import uuid
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from ..config import Settings
from ..db.repositories.muscle_usage_repository import MuscleUsageRepository
from ..db.repositories.report_repository import ReportRepository
from ..exceptions import ValidationError
from ..models.recovery import (
    InjuryRiskAssessment,
    MuscleRecoveryStatus,
    MuscleState,
    MuscleUsageRecord,
    RiskLevel,
)
from ..models.reports import ReportSnapshot
from ..utils.timeutils import ensure_utc, utcnow
from .base import BaseService, Clock


logger = logging.getLogger(__name__)


# (max intensity, window hours), checked in order
RECOVERY_WINDOW_STEPS = ((3, 24), (6, 48), (8, 72))
MAX_RECOVERY_WINDOW_HOURS = 96

HOURS_PER_WEEK = 7 * 24

NO_HISTORY_RECOMMENDATION = "Start tracking your workouts to get injury risk assessments"


def recovery_window_hours(intensity: float) -> int:
    """Map a session intensity to the muscle's recovery window in hours."""
    for max_intensity, hours in RECOVERY_WINDOW_STEPS:
        if intensity <= max_intensity:
            return hours
    return MAX_RECOVERY_WINDOW_HOURS


def supported_frequency(window_hours: int) -> float:
    """Sessions per week a recovery window allows."""
    return HOURS_PER_WEEK / window_hours


def muscle_state(
    record: MuscleUsageRecord,
    now: datetime,
    declared_workout_frequency: Optional[float] = None,
) -> MuscleRecoveryStatus:
    """
    Evaluate one muscle's recovery state at ``now``.

    ``declared_workout_frequency`` stands in for the record's own
    frequency when the record has none.
    """
    now = ensure_utc(now)
    window = record.recovery_window_hours
    hours_since = max((now - record.last_worked_at).total_seconds() / 3600, 0.0)

    frequency = record.workout_frequency_per_week
    if frequency <= 0 and declared_workout_frequency:
        frequency = declared_workout_frequency

    supported = supported_frequency(window)

    if hours_since >= window:
        state = MuscleState.RECOVERED
    elif frequency > supported:
        state = MuscleState.OVERUSED
    else:
        state = MuscleState.RECOVERING

    return MuscleRecoveryStatus(
        muscle_id=record.muscle_id,
        muscle_name=record.muscle_name,
        state=state,
        hours_since_worked=hours_since,
        hours_remaining=max(window - hours_since, 0.0),
        recovery_window_hours=window,
        workout_frequency_per_week=frequency,
        supported_frequency_per_week=supported,
        consecutive_overuse_cycles=record.overuse_streak_cycles if state == MuscleState.OVERUSED else 0,
    )


def _risk_level(overused: Sequence[MuscleRecoveryStatus]) -> RiskLevel:
    long_overuse = sum(1 for m in overused if m.is_long_overuse)
    if long_overuse >= 2:
        return RiskLevel.VERY_HIGH
    if len(overused) >= 3 or long_overuse >= 1:
        return RiskLevel.HIGH
    if overused:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def _muscle_recommendation(status: MuscleRecoveryStatus) -> str:
    rest_hours = math.ceil(status.hours_remaining)
    if status.is_long_overuse:
        return (
            f"{status.muscle_name} has been overused for {status.consecutive_overuse_cycles} "
            f"recovery cycles in a row. Rest it for at least {rest_hours} more hours "
            "and reduce its weekly training frequency."
        )
    return (
        f"Give your {status.muscle_name} {rest_hours} more hours to recover. "
        f"It is trained {status.workout_frequency_per_week:g}x per week but its recovery "
        f"window supports about {status.supported_frequency_per_week:.1f}x."
    )


def _general_guidance(risk: RiskLevel, declared_workout_frequency: float) -> List[str]:
    guidance: List[str] = []
    if risk in (RiskLevel.HIGH, RiskLevel.VERY_HIGH):
        guidance.append("Take a full rest day before your next session.")
    elif risk == RiskLevel.MODERATE:
        guidance.append("Lower the intensity for overused muscles and prioritize sleep and protein.")
    else:
        guidance.append("Recovery looks good. Keep training at your current pace.")

    if declared_workout_frequency >= 6:
        guidance.append(
            f"Training {declared_workout_frequency:g} days per week leaves little room for recovery. "
            "Schedule at least one full rest day."
        )
    return guidance


def assess_risk(
    records: Sequence[MuscleUsageRecord],
    declared_workout_frequency: float = 3,
    now: Optional[datetime] = None,
    recent_days: int = 7,
) -> InjuryRiskAssessment:
    """
    Aggregate per-muscle states into an injury-risk assessment.

    Risk levels:
        low       no overused muscle
        moderate  one or two overused muscles
        high      three or more, or any muscle overused for more than one cycle in a row
        very_high two or more muscles in long overuse

    A rest day is needed at high risk and above, or when more than half of
    the muscles worked in the last ``recent_days`` days are still recovering.

    Args:
        records: The user's muscle usage records
        declared_workout_frequency: Training days per week from the user's plan
        now: Evaluation instant (defaults to the current UTC time)
        recent_days: Window that defines "recently trained"

    Returns:
        InjuryRiskAssessment; a low-risk fallback when there is no history
    """
    now = ensure_utc(now) if now is not None else utcnow()

    if not records:
        return InjuryRiskAssessment(
            risk_level=RiskLevel.LOW,
            overused_muscles=[],
            recommendations=[NO_HISTORY_RECOMMENDATION],
            needs_rest_day=False,
            assessed_at=now,
        )

    statuses = [muscle_state(r, now, declared_workout_frequency) for r in records]

    overused = sorted(
        (s for s in statuses if s.state == MuscleState.OVERUSED),
        key=lambda s: (-s.consecutive_overuse_cycles, -s.hours_remaining, s.muscle_name),
    )
    risk = _risk_level(overused)

    recent_hours = recent_days * 24
    recent = [s for s in statuses if s.hours_since_worked <= recent_hours]
    still_recovering = [s for s in recent if s.state != MuscleState.RECOVERED]
    mostly_recovering = bool(recent) and len(still_recovering) * 2 > len(recent)

    needs_rest_day = risk in (RiskLevel.HIGH, RiskLevel.VERY_HIGH) or mostly_recovering

    recommendations = [_muscle_recommendation(s) for s in overused]
    recommendations.extend(_general_guidance(risk, declared_workout_frequency))

    logger.debug(
        "Assessed %d muscles: %d overused, risk=%s, rest_day=%s",
        len(statuses), len(overused), risk.value, needs_rest_day,
    )

    return InjuryRiskAssessment(
        risk_level=risk,
        overused_muscles=overused,
        recommendations=recommendations,
        needs_rest_day=needs_rest_day,
        assessed_at=now,
    )


class RecoveryService(BaseService):
    """Maintains per-muscle usage state and produces risk assessments."""

    def __init__(
        self,
        usage_repo: MuscleUsageRepository,
        report_repo: Optional[ReportRepository] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(settings=settings, clock=clock)
        self._usage_repo = usage_repo
        self._report_repo = report_repo

    def record_muscle_usage(
        self,
        user_id: str,
        muscle_id: str,
        muscle_name: str,
        intensity: float,
        workout_frequency: Optional[float] = None,
    ) -> MuscleUsageRecord:
        """
        Record that a muscle was just trained.

        Updates the muscle's single record in place, or creates it with the
        default frequency on first use. Hitting a muscle again before its
        previous window has elapsed extends its overuse streak; otherwise
        the streak resets.

        Raises:
            ValidationError: If an identifier is blank or intensity is outside 0-10
        """
        if not user_id or not muscle_id or not muscle_name:
            raise ValidationError(
                "user_id, muscle_id and muscle_name are required",
                field="muscle_id" if user_id else "user_id",
            )
        if intensity is None or not 0 <= intensity <= 10:
            raise ValidationError("intensity must be between 0 and 10", field="intensity")
        if workout_frequency is not None and workout_frequency < 0:
            raise ValidationError("workout_frequency must not be negative", field="workout_frequency")

        now = self.now()
        window = recovery_window_hours(intensity)
        existing = self._usage_repo.get(user_id, muscle_id)

        if existing is None:
            record = MuscleUsageRecord(
                user_id=user_id,
                muscle_id=muscle_id,
                muscle_name=muscle_name,
                last_worked_at=now,
                workout_frequency_per_week=(
                    workout_frequency if workout_frequency else self.settings.default_workout_frequency
                ),
                intensity=intensity,
                recovery_window_hours=window,
            )
        else:
            still_recovering = now - existing.last_worked_at < timedelta(hours=existing.recovery_window_hours)
            record = existing.model_copy(
                update={
                    "muscle_name": muscle_name,
                    "last_worked_at": now,
                    "workout_frequency_per_week": workout_frequency or existing.workout_frequency_per_week,
                    "intensity": intensity,
                    "recovery_window_hours": window,
                    "recovered": False,
                    "overuse_streak_cycles": existing.overuse_streak_cycles + 1 if still_recovering else 0,
                }
            )

        self._usage_repo.save(record)
        self.logger.debug(
            "Recorded usage of %s for user %s (intensity=%s, window=%dh, streak=%d)",
            muscle_id, user_id, intensity, window, record.overuse_streak_cycles,
        )
        return record

    def refresh_recovered(self, user_id: str) -> List[MuscleUsageRecord]:
        """Flag muscles whose window has elapsed and return the user's records."""
        now = self.now()
        records = self._usage_repo.list_for_user(user_id)
        elapsed = [
            r.muscle_id
            for r in records
            if not r.recovered and now - r.last_worked_at >= timedelta(hours=r.recovery_window_hours)
        ]
        if elapsed:
            self._usage_repo.mark_recovered(user_id, elapsed)
            records = [
                r.model_copy(update={"recovered": True}) if r.muscle_id in elapsed else r
                for r in records
            ]
        return records

    def assess_user(
        self,
        user_id: str,
        declared_frequency: Optional[float] = None,
        persist: bool = True,
    ) -> InjuryRiskAssessment:
        """
        Assess a user's injury risk from their stored muscle usage.

        When a report repository is configured and the user has history,
        the assessment is also stored as an ``injury_risk`` report.
        """
        if not user_id:
            raise ValidationError("user_id is required", field="user_id")

        frequency = declared_frequency or self.settings.default_workout_frequency
        records = self.refresh_recovered(user_id)
        assessment = assess_risk(
            records,
            declared_workout_frequency=frequency,
            now=self.now(),
            recent_days=self.settings.recent_training_days,
        )

        if records and persist and self._report_repo is not None:
            today = assessment.assessed_at.date()
            self._report_repo.save_report(
                ReportSnapshot(
                    id=str(uuid.uuid4()),
                    user_id=user_id,
                    report_type="injury_risk",
                    title="Injury Risk Assessment",
                    period_start=today,
                    period_end=today,
                    aggregates={"injury_risk": assessment.model_dump(mode="json")},
                    generated_at=assessment.assessed_at,
                )
            )

        self.logger.info(
            "Injury risk for user %s: %s (%d overused)",
            user_id, assessment.risk_level.value, len(assessment.overused_muscles),
        )
        return assessment
