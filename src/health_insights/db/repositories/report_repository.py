"""SQLite-backed repository for report snapshots and their share grants.

Report content is written once and never updated. Share grants only ever
change through ``increment_access_count``.
"""

import json
import logging
import sqlite3
from typing import List, Optional

from ...models.reports import ReportSnapshot, ShareGrant
from .base import SQLiteRepository


logger = logging.getLogger(__name__)


class ReportRepository(SQLiteRepository):
    """Persistent store for reports and share grants."""

    def _ensure_table_exists(self) -> None:
        """Ensure the reports and report_shares tables exist."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS reports (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    report_type TEXT NOT NULL,
                    title TEXT NOT NULL,
                    snapshot_json TEXT NOT NULL,
                    generated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_reports_user
                ON reports(user_id, generated_at)
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS report_shares (
                    token TEXT PRIMARY KEY,
                    report_id TEXT NOT NULL REFERENCES reports(id) ON DELETE CASCADE,
                    created_at TEXT NOT NULL,
                    expires_at TEXT,
                    access_count INTEGER NOT NULL DEFAULT 0
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_report_shares_report
                ON report_shares(report_id)
            """)

    # Reports

    def save_report(self, report: ReportSnapshot) -> ReportSnapshot:
        """Persist a new snapshot. Existing ids are never overwritten."""
        with self._get_connection() as conn:
            conn.execute("""
                INSERT INTO reports (id, user_id, report_type, title, snapshot_json, generated_at)
                VALUES (?, ?, ?, ?, ?, ?)
            """, (
                report.id,
                report.user_id,
                report.report_type,
                report.title,
                report.model_dump_json(),
                self._to_db_time(report.generated_at),
            ))
        logger.debug("Stored %s report %s for user %s", report.report_type, report.id, report.user_id)
        return report

    def get_report(self, report_id: str) -> Optional[ReportSnapshot]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT snapshot_json FROM reports WHERE id = ?",
                (report_id,),
            ).fetchone()
            return ReportSnapshot.model_validate_json(row["snapshot_json"]) if row else None

    def list_reports(self, user_id: str, limit: int = 20, offset: int = 0) -> List[ReportSnapshot]:
        """A user's reports, newest first."""
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT snapshot_json FROM reports WHERE user_id = ? "
                "ORDER BY generated_at DESC LIMIT ? OFFSET ?",
                (user_id, limit, offset),
            ).fetchall()
            return [ReportSnapshot.model_validate_json(row["snapshot_json"]) for row in rows]

    # Share grants

    def _row_to_grant(self, row: sqlite3.Row) -> ShareGrant:
        return ShareGrant(
            token=row["token"],
            report_id=row["report_id"],
            created_at=self._from_db_time(row["created_at"]),
            expires_at=self._from_db_time(row["expires_at"]),
            access_count=row["access_count"],
        )

    def save_share(self, grant: ShareGrant) -> ShareGrant:
        with self._get_connection() as conn:
            conn.execute("""
                INSERT INTO report_shares (token, report_id, created_at, expires_at, access_count)
                VALUES (?, ?, ?, ?, ?)
            """, (
                grant.token,
                grant.report_id,
                self._to_db_time(grant.created_at),
                self._to_db_time(grant.expires_at),
                grant.access_count,
            ))
        return grant

    def get_share(self, token: str) -> Optional[ShareGrant]:
        with self._get_connection() as conn:
            row = conn.execute(
                "SELECT * FROM report_shares WHERE token = ?",
                (token,),
            ).fetchone()
            return self._row_to_grant(row) if row else None

    def increment_access_count(self, token: str) -> Optional[int]:
        """
        Atomically add one to a grant's access count.

        Returns:
            The new count, or None if the token does not exist
        """
        with self._get_connection() as conn:
            cursor = conn.execute(
                "UPDATE report_shares SET access_count = access_count + 1 WHERE token = ?",
                (token,),
            )
            if cursor.rowcount == 0:
                return None
            row = conn.execute(
                "SELECT access_count FROM report_shares WHERE token = ?",
                (token,),
            ).fetchone()
            return row["access_count"]
