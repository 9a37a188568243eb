"""Log sanitization filter to keep share tokens and PII out of logs.

Share tokens are bearer capabilities: anyone holding one can read the
report it points to. This module provides a logging filter that redacts
them, together with other sensitive values, before a record is emitted:
- Report share tokens (64 hex characters)
- Bearer tokens and JWTs
- Password, secret and token fields
- Email addresses

Usage:
    from health_insights.utils.log_sanitizer import install_log_sanitizer

    # Apply to all loggers at application startup
    install_log_sanitizer()
"""

import logging
import re
from typing import Any


class LogSanitizationFilter(logging.Filter):
    """Logging filter that redacts sensitive information from log messages."""

    # Order matters - more specific patterns should come before general ones
    PATTERNS: list[tuple[re.Pattern, str]] = [
        # JWT tokens (three base64-encoded segments separated by dots) - before Bearer
        (re.compile(r'\beyJ[a-zA-Z0-9_-]+\.eyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+'), '[REDACTED_JWT]'),

        # Bearer tokens in Authorization headers
        (re.compile(r'Bearer\s+[a-zA-Z0-9_\-\.]+', re.IGNORECASE), 'Bearer [REDACTED_TOKEN]'),

        # Password and secret fields
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'(secret["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.IGNORECASE), r'\1[REDACTED]'),
        (re.compile(r'(api_key["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.IGNORECASE), r'\1[REDACTED]'),

        # Share token fields (share_token=..., token: ...)
        (re.compile(r'((?:share_)?token["\']?\s*[:=]\s*["\']?)[^"\'&\s]+', re.IGNORECASE), r'\1[REDACTED]'),

        # Email addresses
        (re.compile(r'\b[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}\b'), '[REDACTED_EMAIL]'),

        # Bare share tokens and other long hex strings (32+ chars)
        (re.compile(r'\b[a-fA-F0-9]{32,}\b'), '[REDACTED_HEX_TOKEN]'),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Sanitize the log record in place and let it through."""
        if record.msg:
            record.msg = self._sanitize(str(record.msg))

        if record.args:
            record.args = self._sanitize_args(record.args)

        return True

    def _sanitize(self, text: str) -> str:
        for pattern, replacement in self.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def _sanitize_args(self, args: Any) -> Any:
        """Recursively sanitize log arguments."""
        if isinstance(args, str):
            return self._sanitize(args)
        elif isinstance(args, tuple):
            return tuple(self._sanitize_args(arg) for arg in args)
        elif isinstance(args, list):
            return [self._sanitize_args(arg) for arg in args]
        elif isinstance(args, dict):
            return {k: self._sanitize_args(v) for k, v in args.items()}
        else:
            str_val = str(args)
            sanitized = self._sanitize(str_val)
            # Keep non-string args untouched unless they carried something sensitive
            return sanitized if sanitized != str_val else args


def install_log_sanitizer(logger_name: str | None = None) -> LogSanitizationFilter:
    """Install the log sanitization filter.

    Args:
        logger_name: If provided, install only on the named logger.
                    If None, install on the root logger and its handlers.

    Returns:
        The installed filter, so callers can remove it again.
    """
    sanitizer = LogSanitizationFilter()

    if logger_name:
        logging.getLogger(logger_name).addFilter(sanitizer)
    else:
        root_logger = logging.getLogger()
        root_logger.addFilter(sanitizer)
        for handler in root_logger.handlers:
            handler.addFilter(sanitizer)

    return sanitizer


def sanitize_string(text: str) -> str:
    """Sanitize a string without going through the logging system."""
    return LogSanitizationFilter()._sanitize(text)
