"""Report snapshot and share grant models."""

import copy
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .insights import Insight
from .records import BiomarkerReading
from ..utils.timeutils import utcnow


class UserContext(BaseModel):
    """Profile information supplied by the caller for a report."""
    user_id: str
    name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    weight: Optional[float] = None
    height: Optional[float] = None
    goal: Optional[str] = None
    health_conditions: List[str] = Field(default_factory=list)


class ReportSnapshot(BaseModel):
    """
    A point-in-time report. Immutable once created.

    Aggregates are deep-copied on construction and the insight and biomarker
    collections are tuples, so nothing the caller still holds can change the
    snapshot.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    report_type: str = "comprehensive"
    title: str
    period_start: date
    period_end: date
    user: Optional[UserContext] = None
    aggregates: Dict[str, Any] = Field(default_factory=dict)
    insights: Tuple[Insight, ...] = ()
    biomarkers: Tuple[BiomarkerReading, ...] = ()
    generated_at: datetime = Field(default_factory=utcnow)

    @field_validator("aggregates", mode="before")
    @classmethod
    def _copy_aggregates(cls, value: Any) -> Any:
        return copy.deepcopy(value)


class ShareGrant(BaseModel):
    """A capability token granting read access to one report snapshot."""
    token: str
    report_id: str
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: Optional[datetime] = None
    access_count: int = 0

    def is_expired(self, now: datetime) -> bool:
        """Whether ``now`` is past the grant's expiry instant."""
        return self.expires_at is not None and now > self.expires_at


class HealthSummary(BaseModel):
    """Health conditions plus the latest reading for each biomarker type."""
    health_conditions: List[str] = Field(default_factory=list)
    latest_biomarkers: Dict[str, Optional[BiomarkerReading]] = Field(default_factory=dict)
