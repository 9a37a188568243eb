"""Insight models produced by the pattern, correlation and prediction detectors."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class InsightKind(str, Enum):
    """What sort of finding an insight represents."""
    PATTERN = "pattern"
    PREDICTION = "prediction"
    CORRELATION = "correlation"


class Insight(BaseModel):
    """A single finding emitted by one detector."""
    kind: InsightKind
    detector: str
    title: str
    description: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    supporting_data: Optional[Dict[str, Any]] = None


class InsightCacheEntry(BaseModel):
    """A cached insight set for one subject.

    Keyed by ``(user_id, insight_set)``; the default set name is ``"all"``.
    The entry is replaced wholesale on regeneration.
    """
    user_id: str
    insight_set: str = "all"
    insights: List[Insight] = Field(default_factory=list)
    generated_at: datetime
    valid_until: datetime

    def is_valid(self, now: datetime) -> bool:
        """Whether the entry may still be served verbatim at ``now``."""
        return self.valid_until > now
