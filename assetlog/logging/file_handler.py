"""
File Handler - output destinations for AssetLog

Turns the symbolic output identifiers of a logger config ("stdout", "stderr"
or a file path) into write destinations and combines them into one sink.

Features:
- Size based rotation with a limited number of backups
- Backups older than the max age are removed after each rotation
- Thread-safe write operations
- Automatic directory creation
- Fan-out to several destinations, one failing destination does not stop the others

Usage:
    from assetlog.logging.file_handler import build_sink

    sink = build_sink(["stdout", "/var/log/app/app.log"])
    sink.write('{"message": "Test"}\\n')
    sink.close()
"""

import os
import sys
import time
from pathlib import Path
from threading import Lock

from beartype.typing import Iterable, List, Optional

from assetlog.constants import (
    DEFAULT_MAX_AGE_DAYS,
    DEFAULT_MAX_BACKUPS,
    DEFAULT_MAX_SIZE_MB,
    MEGABYTE,
    SECONDS_PER_DAY,
    STDERR,
    STDOUT,
)
from assetlog.logging.config import RotationPolicy


class StandardStreamHandler:
    """
    Destination for "stdout" or "stderr".

    The stream is looked up on ``sys`` at write time, so redirected or
    captured streams receive the records.
    """

    def __init__(self, stream_name: str):
        self.stream_name = stream_name

    @property
    def stream(self):
        return getattr(sys, self.stream_name)

    def write(self, content: str):
        self.stream.write(content)

    def flush(self):
        self.stream.flush()

    def close(self):
        """Standard streams are never closed, only flushed"""
        self.flush()

    def __repr__(self):
        return f"StandardStreamHandler({self.stream_name!r})"


class RotatingFileHandler:
    """
    Rotating file destination.

    Rotates the log file when it reaches max_bytes, keeping backup_count
    backups and removing backups older than max_age_seconds.

    Example:
        handler = RotatingFileHandler("/var/log/app/app.log", max_bytes=52428800)
        handler.write('{"timestamp": "2024-01-20", "message": "Test"}\\n')
        handler.close()
    """

    def __init__(
        self,
        filepath: str,
        max_bytes: int = DEFAULT_MAX_SIZE_MB * MEGABYTE,
        backup_count: int = DEFAULT_MAX_BACKUPS,
        max_age_seconds: int = DEFAULT_MAX_AGE_DAYS * SECONDS_PER_DAY,
        encoding: str = "utf-8",
    ):
        """
        Initialize rotating file handler.

        Args:
            filepath: Path to log file
            max_bytes: Maximum file size before rotation (default: 50MB)
            backup_count: Number of backup files to keep (default: 1)
            max_age_seconds: Age after which backups are removed, 0 keeps them (default: 1 day)
            encoding: File encoding (default: utf-8)
        """
        self.filepath = Path(filepath)
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.max_age_seconds = max_age_seconds
        self.encoding = encoding
        self._file = None
        self._lock = Lock()

    def _ensure_directory(self):
        self.filepath.parent.mkdir(parents=True, exist_ok=True)

    def write(self, content: str):
        """
        Write content to file with automatic rotation.

        Args:
            content: Content to write (should include newline if needed)
        """
        with self._lock:
            if self._should_rotate():
                self._rotate()

            if self._file is None or self._file.closed:
                self._ensure_directory()
                self._file = open(self.filepath, "a", encoding=self.encoding)

            self._file.write(content)
            self._file.flush()

    def _should_rotate(self) -> bool:
        if not self.filepath.exists():
            return False
        try:
            return self.filepath.stat().st_size >= self.max_bytes
        except OSError:
            return False

    def _backup_path(self, index: int) -> Path:
        return Path(f"{self.filepath}.{index}")

    def _rotate(self):
        """
        Rotate log files.

        Rotation pattern:
            app.log     -> app.log.1
            app.log.1   -> app.log.2
            ...
            app.log.N   -> deleted (N >= backup_count)
        """
        if self._file and not self._file.closed:
            self._file.close()
            self._file = None

        if self.backup_count < 1:
            self.filepath.unlink()
            return

        oldest_backup = self._backup_path(self.backup_count)
        if oldest_backup.exists():
            oldest_backup.unlink()

        for i in range(self.backup_count - 1, 0, -1):
            src = self._backup_path(i)
            if src.exists():
                src.replace(self._backup_path(i + 1))

        self.filepath.replace(self._backup_path(1))
        self._remove_expired_backups()

    def _remove_expired_backups(self):
        if self.max_age_seconds <= 0:
            return
        cutoff = time.time() - self.max_age_seconds
        for i in range(1, self.backup_count + 1):
            backup = self._backup_path(i)
            try:
                if backup.stat().st_mtime < cutoff:
                    backup.unlink()
            except FileNotFoundError:
                continue

    def flush(self):
        """Flush file buffer to disk"""
        with self._lock:
            if self._file and not self._file.closed:
                self._file.flush()
                os.fsync(self._file.fileno())

    def close(self):
        with self._lock:
            if self._file and not self._file.closed:
                self._file.flush()
                self._file.close()
                self._file = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        return f"RotatingFileHandler({str(self.filepath)!r})"


class MultiFileHandler:
    """
    Write to multiple destinations simultaneously.

    Each write is delivered to every destination under one lock, so records
    from concurrent callers are not interleaved. A destination that fails is
    reported once on stderr and skipped for that write only.

    Example:
        handler = MultiFileHandler([
            StandardStreamHandler("stdout"),
            RotatingFileHandler("/var/log/app/app.log"),
        ])
        handler.write("Log entry\\n")
    """

    def __init__(self, handlers: List):
        self.handlers = list(handlers)
        self._lock = Lock()
        self._reported = set()

    def _report_failure(self, handler, action: str, error: Exception):
        if id(handler) in self._reported:
            return
        self._reported.add(id(handler))
        try:
            sys.stderr.write(f"Logging error: failed to {action} {handler!r}: {error}\n")
        except Exception:
            pass  # stderr itself is the broken destination

    def write(self, content: str):
        with self._lock:
            for handler in self.handlers:
                try:
                    handler.write(content)
                except Exception as e:
                    self._report_failure(handler, "write to", e)

    def flush(self):
        with self._lock:
            for handler in self.handlers:
                try:
                    handler.flush()
                except Exception as e:
                    self._report_failure(handler, "flush", e)

    def close(self):
        with self._lock:
            for handler in self.handlers:
                try:
                    handler.close()
                except Exception as e:
                    self._report_failure(handler, "close", e)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def resolve_sink(identifier: str, rotation: Optional[RotationPolicy] = None):
    """
    Map an output identifier to a destination.

    Args:
        identifier: "stdout", "stderr" or a file path
        rotation: Rotation limits for file destinations (default: RotationPolicy())

    Returns:
        StandardStreamHandler or RotatingFileHandler
    """
    if identifier == STDOUT:
        return StandardStreamHandler(STDOUT)
    if identifier == STDERR:
        return StandardStreamHandler(STDERR)

    rotation = rotation or RotationPolicy()
    return RotatingFileHandler(
        identifier,
        max_bytes=rotation.max_bytes,
        backup_count=rotation.backup_count,
        max_age_seconds=rotation.max_age_seconds,
    )


def build_sink(identifiers: Iterable[str], rotation: Optional[RotationPolicy] = None) -> MultiFileHandler:
    """Resolve every identifier and combine the destinations into one fan-out sink"""
    return MultiFileHandler([resolve_sink(identifier, rotation) for identifier in identifiers])
