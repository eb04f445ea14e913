"""Logging helpers shared by the CLI, feed client and resolver.

Structured fields travel through ``extra=extra_context(...)`` so plain
handlers keep the short console format while richer handlers can pick the
fields up from the record.
"""
from __future__ import annotations

import logging
import os
import sys
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

_CONTEXT_FIELDS = (
    "event",
    "component",
    "action",
    "outcome",
    "target",
    "package_id",
    "status_code",
    "duration_ms",
    "attempt",
    "count",
)


def configure_logging(level: Optional[str] = None) -> None:
    """Install a single stderr handler on the root logger.

    The level comes from ``level`` when given, otherwise from the
    ``DEPTREE_LOG_LEVEL`` environment variable, otherwise INFO. Calling this
    more than once replaces the handler installed by a previous call.
    """
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_deptree_handler", False):
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    handler._deptree_handler = True  # type: ignore[attr-defined]
    root.addHandler(handler)

    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    root.setLevel(getattr(logging, level_name, logging.INFO))


def add_file_handler(path: str) -> logging.Handler:
    """Mirror log records into ``path`` using the verbose file format."""
    file_handler = logging.FileHandler(path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(Constants.LOG_FILE_FORMAT))
    logging.getLogger().addHandler(file_handler)
    return file_handler


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when ``logger`` would emit DEBUG records."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build the ``extra`` mapping for a structured log call.

    Unknown keys are kept under ``context`` so they never clash with
    ``LogRecord`` attributes.
    """
    extra: Dict[str, Any] = {}
    other: Dict[str, Any] = {}
    for key, value in fields.items():
        if value is None:
            continue
        if key in _CONTEXT_FIELDS:
            extra[key] = value
        else:
            other[key] = value
    if other:
        extra["context"] = other
    return extra


def safe_url(url: str) -> str:
    """Strip credentials, query string and fragment from a URL for logging."""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return "<invalid-url>"
    netloc = parts.hostname or ""
    if parts.port:
        netloc = f"{netloc}:{parts.port}"
    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, "", ""))


class Timer:
    """Context manager measuring wall-clock duration in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        """Elapsed milliseconds, measured up to now while still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
