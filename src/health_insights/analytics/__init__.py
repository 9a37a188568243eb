"""Pure analytics over a user's health records.

Everything in this package is side-effect free: callers fetch the records
for a window and pass them in; nothing here touches storage.
"""

from .aggregation import (
    DailyBuckets,
    PeriodComparison,
    PeriodSummary,
    aggregate,
    compare_periods,
    summarize_period,
    to_timed_records,
    volume_by_muscle,
)
from .detectors import DETECTORS, InsightInputs, run_detectors
from .heatmap import HeatmapDay, build_heatmap
from .progression import ProgressionResult, analyze_progression, estimate_one_rep_max
from .trends import (
    SUPPORTED_METRICS,
    TrendDirection,
    TrendSummary,
    analyze_trend,
    metric_series,
)

__all__ = [
    # Aggregation
    "DailyBuckets",
    "PeriodComparison",
    "PeriodSummary",
    "aggregate",
    "compare_periods",
    "summarize_period",
    "to_timed_records",
    "volume_by_muscle",
    # Trends
    "SUPPORTED_METRICS",
    "TrendDirection",
    "TrendSummary",
    "analyze_trend",
    "metric_series",
    # Progression
    "ProgressionResult",
    "analyze_progression",
    "estimate_one_rep_max",
    # Heatmap
    "HeatmapDay",
    "build_heatmap",
    # Detectors
    "DETECTORS",
    "run_detectors",
    "InsightInputs",
]
