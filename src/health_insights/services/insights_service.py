"""
Insight generation with a persistent time-boxed cache.

A cached set is authoritative until its ``valid_until`` deadline, however
much new data has arrived since it was computed. On a miss or expiry all
detectors run, their results are gathered, and only then is the whole set
written back in one upsert.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from typing import List, Optional, Sequence

from ..analytics.detectors import DETECTORS, Detector, InsightInputs, run_detectors
from ..config import Settings
from ..db.repositories.insight_cache_repository import InsightCacheRepository
from ..exceptions import DatabaseError, ValidationError
from ..models.insights import Insight, InsightCacheEntry
from .base import BaseService, Clock


class InsightsService(BaseService):
    """Runs the insight detectors for a user and caches the result."""

    def __init__(
        self,
        cache_repo: InsightCacheRepository,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        detectors: Sequence[Detector] = DETECTORS,
    ) -> None:
        super().__init__(settings=settings, clock=clock)
        self._cache_repo = cache_repo
        self._detectors = tuple(detectors)

    @property
    def cache_ttl(self) -> timedelta:
        return timedelta(hours=self.settings.insight_cache_ttl_hours)

    def detect_insights(
        self,
        user_id: str,
        inputs: InsightInputs,
        insight_set: str = "all",
    ) -> List[Insight]:
        """
        Return the user's insight set, regenerating it if the cache is stale.

        Args:
            user_id: Subject the insights belong to
            inputs: Recent records; only the last ``insight_window_days`` days are used
            insight_set: Cache key within the user; ``"all"`` by default

        Returns:
            Insights in detector order. Empty when no detector found a signal.

        Raises:
            ValidationError: If ``user_id`` is blank
        """
        if not user_id:
            raise ValidationError("user_id is required", field="user_id")

        now = self.now()
        cached = self._read_cache(user_id, insight_set)
        if cached is not None and cached.is_valid(now):
            self.logger.debug("Insight cache hit for user %s (%s)", user_id, insight_set)
            return cached.insights

        insights = self._run_detectors(inputs.within_window(self.settings.insight_window_days, now))

        entry = InsightCacheEntry(
            user_id=user_id,
            insight_set=insight_set,
            insights=insights,
            generated_at=now,
            valid_until=now + self.cache_ttl,
        )
        self._write_cache(entry)

        self.logger.info(
            "Generated %d insights for user %s (%s)", len(insights), user_id, insight_set
        )
        return insights

    def invalidate(self, user_id: str, insight_set: str = "all") -> bool:
        """Drop a cached set so the next request regenerates it."""
        removed = self._cache_repo.delete(user_id, insight_set)
        if removed:
            self.logger.info("Invalidated insight cache for user %s (%s)", user_id, insight_set)
        return removed

    def _run_detectors(self, inputs: InsightInputs) -> List[Insight]:
        """Evaluate every detector and gather the non-empty results in order."""
        if not self.settings.parallel_detectors:
            return run_detectors(inputs, self._detectors)

        workers = max(1, min(self.settings.detector_workers, len(self._detectors)))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="insight-detector") as pool:
            results = list(pool.map(lambda detector: detector(inputs), self._detectors))
        return [insight for insight in results if insight is not None]

    def _read_cache(self, user_id: str, insight_set: str) -> Optional[InsightCacheEntry]:
        """Read the cached entry; a storage failure counts as a miss."""
        try:
            return self._cache_repo.get(user_id, insight_set)
        except DatabaseError as e:
            self.logger.warning(f"Insight cache read failed for user '{user_id}': {e.message}")
            return None

    def _write_cache(self, entry: InsightCacheEntry) -> None:
        """Write the entry; on failure the previous set stays in place."""
        try:
            self._cache_repo.upsert(entry)
        except DatabaseError as e:
            self.logger.warning(f"Insight cache write failed for user '{entry.user_id}': {e.message}")
