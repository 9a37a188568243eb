"""SQLite-backed repository for per-muscle recovery state."""

import sqlite3
from typing import List, Optional

from ...models.recovery import MuscleUsageRecord
from .base import SQLiteRepository


class MuscleUsageRepository(SQLiteRepository):
    """
    One row per (user_id, muscle_id).

    ``save`` updates the existing row in place; there is never more than
    one record for a muscle.
    """

    def _ensure_table_exists(self) -> None:
        """Ensure the muscle_usage table exists."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS muscle_usage (
                    user_id TEXT NOT NULL,
                    muscle_id TEXT NOT NULL,
                    muscle_name TEXT NOT NULL,
                    last_worked_at TEXT NOT NULL,
                    workout_frequency_per_week REAL NOT NULL DEFAULT 3,
                    intensity REAL NOT NULL,
                    recovery_window_hours INTEGER NOT NULL,
                    recovered INTEGER NOT NULL DEFAULT 0,
                    overuse_streak_cycles INTEGER NOT NULL DEFAULT 0,
                    PRIMARY KEY (user_id, muscle_id)
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_muscle_usage_last_worked
                ON muscle_usage(user_id, last_worked_at)
            """)

    def _row_to_record(self, row: sqlite3.Row) -> MuscleUsageRecord:
        return MuscleUsageRecord(
            user_id=row["user_id"],
            muscle_id=row["muscle_id"],
            muscle_name=row["muscle_name"],
            last_worked_at=self._from_db_time(row["last_worked_at"]),
            workout_frequency_per_week=row["workout_frequency_per_week"],
            intensity=row["intensity"],
            recovery_window_hours=row["recovery_window_hours"],
            recovered=bool(row["recovered"]),
            overuse_streak_cycles=row["overuse_streak_cycles"],
        )

    def get(self, user_id: str, muscle_id: str) -> Optional[MuscleUsageRecord]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM muscle_usage WHERE user_id = ? AND muscle_id = ?",
                (user_id, muscle_id),
            ).fetchone()
            return self._row_to_record(row) if row else None

    def save(self, record: MuscleUsageRecord) -> MuscleUsageRecord:
        """Insert the record, or update the existing one for the same muscle."""
        with self._get_connection() as conn:
            conn.execute("""
                INSERT INTO muscle_usage
                (user_id, muscle_id, muscle_name, last_worked_at, workout_frequency_per_week,
                 intensity, recovery_window_hours, recovered, overuse_streak_cycles)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, muscle_id) DO UPDATE SET
                    muscle_name = excluded.muscle_name,
                    last_worked_at = excluded.last_worked_at,
                    workout_frequency_per_week = excluded.workout_frequency_per_week,
                    intensity = excluded.intensity,
                    recovery_window_hours = excluded.recovery_window_hours,
                    recovered = excluded.recovered,
                    overuse_streak_cycles = excluded.overuse_streak_cycles
            """, (
                record.user_id,
                record.muscle_id,
                record.muscle_name,
                self._to_db_time(record.last_worked_at),
                record.workout_frequency_per_week,
                record.intensity,
                record.recovery_window_hours,
                int(record.recovered),
                record.overuse_streak_cycles,
            ))
        return record

    def list_for_user(self, user_id: str) -> List[MuscleUsageRecord]:
        """All records for a user, most recently worked first."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM muscle_usage WHERE user_id = ? ORDER BY last_worked_at DESC",
                (user_id,),
            ).fetchall()
            return [self._row_to_record(row) for row in rows]

    def mark_recovered(self, user_id: str, muscle_ids: List[str]) -> int:
        """Flag muscles whose recovery window has elapsed. Returns rows updated."""
        if not muscle_ids:
            return 0
        placeholders = ",".join("?" for _ in muscle_ids)
        with self._get_connection() as conn:
            cursor = conn.execute(
                f"UPDATE muscle_usage SET recovered = 1 "
                f"WHERE user_id = ? AND recovered = 0 AND muscle_id IN ({placeholders})",
                (user_id, *muscle_ids),
            )
            return cursor.rowcount
