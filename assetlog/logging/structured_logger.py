"""
Structured Logger - leveled NDJSON writer underneath AssetLog

Every record is one JSON object per line, compatible with the usual log
aggregation platforms (ELK, Splunk, CloudWatch, etc.)

Features:
- Five ordered levels (DEBUG, INFO, WARN, ERROR, FATAL)
- Structured fields attached per record or per derived view
- Derived views share the output sink and never modify their parent
- FATAL records terminate the process after being written

Usage:
    from assetlog.logging.structured_logger import StructuredLogger, resolve_level

    logger = StructuredLogger("billing", level=resolve_level("info"))
    logger.info("Invoice sent", invoice_id="inv-42")

    view = logger.with_fields({"request_id": "abc123"})
    view.info("Processing started")
"""

import json
import os
import sys
import threading
import traceback
from datetime import datetime, timezone
from enum import IntEnum

from beartype.typing import Any, Dict, Optional, TextIO

from assetlog.constants import DEFAULT_LOGGER_NAME
from assetlog.exceptions import UnsupportedLevel


class LogLevel(IntEnum):
    """Ordered severity levels"""

    DEBUG = 10
    INFO = 20
    WARN = 30
    ERROR = 40
    FATAL = 50


def resolve_level(name: str) -> LogLevel:
    """
    Resolve a severity name to its level.

    Args:
        name: Severity name in any letter casing (e.g. "info", "Warn")

    Returns:
        The matching LogLevel

    Raises:
        UnsupportedLevel: name is not one of the five known levels
    """
    level_upper = str(name).upper()
    if level_upper in LogLevel.__members__:
        return LogLevel[level_upper]
    raise UnsupportedLevel(name)


class StructuredLogger:
    """
    Leveled logger writing NDJSON records to a shared output sink.

    Example:
        logger = StructuredLogger("billing", level=LogLevel.INFO)
        logger.info("Request completed", status_code=200)

        # Output:
        # {"timestamp":"2024-01-20T10:15:30.123456+00:00","level":"INFO","logger":"billing","message":"Request completed","status_code":200}
    """

    def __init__(
        self,
        name: str = DEFAULT_LOGGER_NAME,
        level: LogLevel = LogLevel.INFO,
        output_stream: Optional[TextIO] = None,
        fields: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize structured logger.

        Args:
            name: Logger name, written to every record
            level: Minimum level to output
            output_stream: Object with write/flush (default: sys.stderr)
            fields: Fields attached to every record of this logger
        """
        self.name = name
        self.level = level
        self.output_stream = output_stream or sys.stderr
        self._fields: Dict[str, Any] = dict(fields or {})

    @property
    def fields(self) -> Dict[str, Any]:
        return dict(self._fields)

    def is_enabled_for(self, level: LogLevel) -> bool:
        return level >= self.level

    def _format_log(self, level: LogLevel, message: str, extra: Optional[Dict[str, Any]] = None) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level.name,
            "logger": self.name,
            "message": message,
        }
        # Fields never replace the core keys
        for key, value in {**self._fields, **(extra or {})}.items():
            log_entry.setdefault(key, value)
        return json.dumps(log_entry, default=str)

    def _write(self, level: LogLevel, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: bool = False):
        if not self.is_enabled_for(level):
            return

        if exc_info:
            extra = dict(extra or {})
            exc_type, exc_value, exc_tb = sys.exc_info()
            if exc_type is not None:
                extra["exception"] = {
                    "type": exc_type.__name__,
                    "message": str(exc_value),
                    "traceback": "".join(traceback.format_tb(exc_tb)),
                }

        log_line = self._format_log(level, message, extra)

        try:
            self.output_stream.write(log_line + "\n")
            self.output_stream.flush()
        except Exception:
            # Fallback to stderr if output stream fails
            if self.output_stream is not sys.stderr:
                sys.stderr.write("Logging error: failed to write to output stream\n")
                sys.stderr.write(log_line + "\n")

    def emit(self, level: LogLevel, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: bool = False):
        """
        Log a message at the given level.

        FATAL records are written, the sink is flushed and the process exits
        with status 1. On the main thread this raises SystemExit; any other
        thread ends the process with os._exit, since SystemExit would only
        stop that thread.

        Args:
            level: Level of the record
            message: Log message
            extra: Additional structured fields
            exc_info: Include the traceback of the exception being handled
        """
        self._write(level, message, extra, exc_info=exc_info)
        if level >= LogLevel.FATAL:
            self.sync()
            if threading.current_thread() is threading.main_thread():
                sys.exit(1)
            os._exit(1)

    def debug(self, message: str, **extra):
        self.emit(LogLevel.DEBUG, message, extra)

    def info(self, message: str, **extra):
        self.emit(LogLevel.INFO, message, extra)

    def warn(self, message: str, **extra):
        self.emit(LogLevel.WARN, message, extra)

    def error(self, message: str, exc_info: bool = False, **extra):
        self.emit(LogLevel.ERROR, message, extra, exc_info=exc_info)

    def fatal(self, message: str, exc_info: bool = False, **extra):
        """
        Log fatal message and exit the process.

        Example:
            logger.fatal("Cannot open database", exc_info=True)
        """
        self.emit(LogLevel.FATAL, message, extra, exc_info=exc_info)

    def with_fields(self, fields: Dict[str, Any]) -> "StructuredLogger":
        """
        Return a view of this logger with additional fields.

        The view writes to the same output stream. This logger is not changed.

        Args:
            fields: Fields to add to every record of the view

        Returns:
            New logger instance

        Example:
            view = logger.with_fields({"request_id": "abc-123"})
            view.info("Request started")
        """
        return StructuredLogger(self.name, self.level, self.output_stream, {**self._fields, **fields})

    def sync(self):
        """Flush buffered records of the output stream"""
        try:
            self.output_stream.flush()
        except Exception:
            sys.stderr.write("Logging error: failed to flush output stream\n")

    def close(self):
        """Close the output stream unless it is a standard stream"""
        if self.output_stream in (sys.stdout, sys.stderr):
            return
        close = getattr(self.output_stream, "close", None)
        if close is not None:
            close()
