"""SQLite-backed cache of generated insight sets.

One row per (user_id, insight_set). Regenerating a set replaces the row
wholesale with a single upsert, so readers see either the previous set or
the new one, never a mix.
"""

import json
import logging
import sqlite3
from datetime import datetime
from typing import List, Optional

from ...models.insights import Insight, InsightCacheEntry
from .base import SQLiteRepository


logger = logging.getLogger(__name__)


class InsightCacheRepository(SQLiteRepository):
    """Persistent store for insight cache entries."""

    def _ensure_table_exists(self) -> None:
        """Ensure the insight_cache table exists."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS insight_cache (
                    user_id TEXT NOT NULL,
                    insight_set TEXT NOT NULL DEFAULT 'all',
                    insights_json TEXT NOT NULL,
                    generated_at TEXT NOT NULL,
                    valid_until TEXT NOT NULL,
                    PRIMARY KEY (user_id, insight_set)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_insight_cache_valid_until
                ON insight_cache(valid_until)
            """)

    def _row_to_entry(self, row: sqlite3.Row) -> InsightCacheEntry:
        """Convert a database row to an InsightCacheEntry."""
        insights = [Insight.model_validate(item) for item in json.loads(row["insights_json"])]
        return InsightCacheEntry(
            user_id=row["user_id"],
            insight_set=row["insight_set"],
            insights=insights,
            generated_at=self._from_db_time(row["generated_at"]),
            valid_until=self._from_db_time(row["valid_until"]),
        )

    def get(self, user_id: str, insight_set: str = "all") -> Optional[InsightCacheEntry]:
        """
        Retrieve the cached entry for a user, expired or not.

        Freshness is the caller's decision (see ``InsightCacheEntry.is_valid``).
        """
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM insight_cache WHERE user_id = ? AND insight_set = ?",
                (user_id, insight_set),
            ).fetchone()
            return self._row_to_entry(row) if row else None

    def upsert(self, entry: InsightCacheEntry) -> InsightCacheEntry:
        """
        Insert or replace the entry for ``(user_id, insight_set)``.

        The whole insight list is written in one statement; last writer wins.
        """
        payload = json.dumps([insight.model_dump(mode="json") for insight in entry.insights])
        with self._get_connection() as conn:
            conn.execute("""
                INSERT INTO insight_cache
                (user_id, insight_set, insights_json, generated_at, valid_until)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(user_id, insight_set) DO UPDATE SET
                    insights_json = excluded.insights_json,
                    generated_at = excluded.generated_at,
                    valid_until = excluded.valid_until
            """, (
                entry.user_id,
                entry.insight_set,
                payload,
                self._to_db_time(entry.generated_at),
                self._to_db_time(entry.valid_until),
            ))

        logger.debug(
            "Cached %d insights for user %s (%s) until %s",
            len(entry.insights), entry.user_id, entry.insight_set, entry.valid_until.isoformat(),
        )
        return entry

    def delete(self, user_id: str, insight_set: str = "all") -> bool:
        """Delete one cached set. Returns True if a row was removed."""
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM insight_cache WHERE user_id = ? AND insight_set = ?",
                (user_id, insight_set),
            )
            return cursor.rowcount > 0

    def list_for_user(self, user_id: str) -> List[InsightCacheEntry]:
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM insight_cache WHERE user_id = ? ORDER BY insight_set",
                (user_id,),
            ).fetchall()
            return [self._row_to_entry(row) for row in rows]

    def purge_expired(self, now: datetime) -> int:
        """
        Delete entries whose validity window has passed.

        Returns:
            Number of entries removed
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                "DELETE FROM insight_cache WHERE valid_until <= ?",
                (self._to_db_time(now),),
            )
            return cursor.rowcount
