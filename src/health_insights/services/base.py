"""
Base service class.

Services wire the pure analytics to the repositories. They own a logger,
the engine settings and a clock, which tests replace to move time forward
without sleeping.
"""

import logging
from abc import ABC
from datetime import datetime
from typing import Callable, Optional

from ..config import Settings, get_settings
from ..utils.timeutils import ensure_utc, utcnow


Clock = Callable[[], datetime]


class BaseService(ABC):
    """
    Abstract base class for all services.

    Provides common functionality:
    - Logging setup
    - Settings lookup
    - An injectable UTC clock
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._clock = clock or utcnow
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    @property
    def logger(self) -> logging.Logger:
        """Get the logger instance."""
        return self._logger

    @property
    def settings(self) -> Settings:
        return self._settings

    def now(self) -> datetime:
        """Current time from the service clock, always aware UTC."""
        return ensure_utc(self._clock())
