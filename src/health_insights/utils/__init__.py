"""Utility modules for the Health Insights engine."""

from .log_sanitizer import LogSanitizationFilter, install_log_sanitizer, sanitize_string
from .timeutils import day_key, ensure_utc, parse_datetime, utcnow

__all__ = [
    "LogSanitizationFilter",
    "install_log_sanitizer",
    "sanitize_string",
    "day_key",
    "ensure_utc",
    "parse_datetime",
    "utcnow",
]
