"""Base class for the SQLite-backed repositories.

Each repository owns its tables, creates them on construction and opens a
short-lived connection per operation. A ``with self._get_connection()``
block is one transaction: it commits on success and rolls back on any
error.
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional, Union

from ...config import get_settings
from ...exceptions import DatabaseError
from ...utils.timeutils import ensure_utc, parse_datetime


logger = logging.getLogger(__name__)


class SQLiteRepository(ABC):
    """
    Abstract base class for SQLite repositories.

    Subclasses implement ``_ensure_table_exists``; ``sqlite3.Error`` raised
    inside a connection block surfaces as ``DatabaseError``.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        """
        Initialize the repository.

        Args:
            db_path: Path to SQLite database file. If None, uses
                ``Settings.database_path``.
        """
        if db_path:
            self.db_path = Path(db_path)
        else:
            self.db_path = Path(get_settings().database_path)

        self._ensure_table_exists()

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get database connection with context manager."""
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise DatabaseError(f"Could not open database: {e}", operation="connect") from e

        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            logger.error("Database operation failed on %s: %s", self.__class__.__name__, e)
            raise DatabaseError(str(e), operation=self.__class__.__name__) from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @abstractmethod
    def _ensure_table_exists(self) -> None:
        """Create the repository's tables and indexes if missing."""

    @staticmethod
    def _to_db_time(value: Optional[datetime]) -> Optional[str]:
        return ensure_utc(value).isoformat() if value is not None else None

    @staticmethod
    def _from_db_time(value: Optional[str]) -> Optional[datetime]:
        return parse_datetime(value) if value else None
