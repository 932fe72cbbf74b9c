"""Logging framework for PyConstVal.
Provides structured logging with configurable verbosity, an in-memory entry
buffer for tests and tooling, and a bridge from the standard logging module.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from collections import deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any, TextIO


class LogLevel(IntEnum):
    """Log levels for PyConstVal."""

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3
    TRACE = 4

    @classmethod
    def parse(cls, name: str | int) -> LogLevel:
        """Parse a level from its name (case-insensitive) or number."""
        if isinstance(name, int):
            return cls(name)
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown log level: {name!r}") from None


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[31m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    GRAY = "\033[90m"


def supports_color(stream: TextIO) -> bool:
    """Check if the stream supports ANSI colors."""
    if not hasattr(stream, "isatty") or not stream.isatty():
        return False
    if sys.platform == "win32":
        return bool(os.environ.get("TERM")) or "ANSICON" in os.environ
    return True


@dataclass
class LogEntry:
    """A log entry with metadata."""

    level: LogLevel
    message: str
    category: str = "general"
    timestamp: float = field(default_factory=time.time)
    context: dict[str, Any] = field(default_factory=dict)

    def format(self, color: bool = True, show_time: bool = True) -> str:
        """Format the log entry for display."""
        parts = []
        if show_time:
            stamp = time.strftime("%H:%M:%S", time.localtime(self.timestamp))
            parts.append(f"{Colors.GRAY}{stamp}{Colors.RESET}" if color else stamp)
        marker = self._marker(color)
        if marker:
            parts.append(marker)
        if self.category != "general":
            tag = f"[{self.category}]"
            parts.append(f"{Colors.CYAN}{tag}{Colors.RESET}" if color else tag)
        parts.append(self.message)
        return " ".join(parts)

    def _marker(self, color: bool) -> str:
        markers = {
            LogLevel.NORMAL: ("•", Colors.WHITE),
            LogLevel.VERBOSE: ("→", Colors.BLUE),
            LogLevel.DEBUG: ("⚙", Colors.MAGENTA),
            LogLevel.TRACE: ("⋯", Colors.GRAY),
        }
        if self.level not in markers:
            return ""
        char, col = markers[self.level]
        return f"{col}{char}{Colors.RESET}" if color else char


class ConstValLogger:
    """Main logger for PyConstVal."""

    def __init__(
        self,
        level: LogLevel = LogLevel.NORMAL,
        color: bool = True,
        stream: TextIO | None = None,
        file_path: Path | None = None,
        max_entries: int = 10000,
    ):
        self.level = level
        self._stream = stream or sys.stderr
        self._color = color and supports_color(self._stream)
        self._file_handle: TextIO | None = None
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)
        self._counters: dict[str, int] = {}
        if file_path is not None:
            self.open_file(file_path)

    def set_level(self, level: LogLevel) -> None:
        """Set the logging level."""
        self.level = level

    def enabled_for(self, level: LogLevel) -> bool:
        """Check if a message at this level would be shown."""
        return level <= self.level

    def _emit(self, entry: LogEntry) -> None:
        self._entries.append(entry)
        if not self.enabled_for(entry.level):
            return
        self._stream.write(entry.format(color=self._color) + "\n")
        self._stream.flush()
        if self._file_handle:
            self._file_handle.write(entry.format(color=False) + "\n")
            self._file_handle.flush()

    def log(
        self,
        level: LogLevel,
        message: str,
        category: str = "general",
        **context: Any,
    ) -> None:
        """Log a message at the specified level."""
        self._emit(LogEntry(level=level, message=message, category=category, context=context))

    def info(self, message: str, **context: Any) -> None:
        self.log(LogLevel.NORMAL, message, **context)

    def verbose(self, message: str, **context: Any) -> None:
        self.log(LogLevel.VERBOSE, message, **context)

    def debug(self, message: str, **context: Any) -> None:
        self.log(LogLevel.DEBUG, message, **context)

    def trace(self, message: str, **context: Any) -> None:
        self.log(LogLevel.TRACE, message, **context)

    def warning(self, message: str, category: str = "general") -> None:
        """Log a warning (shown unless QUIET)."""
        text = f"{Colors.YELLOW}⚠{Colors.RESET} {message}" if self._color else f"⚠ {message}"
        self._emit(LogEntry(level=LogLevel.NORMAL, message=text, category=category))

    def error(self, message: str, category: str = "general") -> None:
        """Log an error (always shown)."""
        text = f"{Colors.RED}✗{Colors.RESET} {message}" if self._color else f"✗ {message}"
        self._emit(LogEntry(level=LogLevel.QUIET, message=text, category=category))

    @contextmanager
    def timer(self, name: str, category: str = "timing"):
        """Context manager for timing operations."""
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - start
            self.verbose(f"{name}: {elapsed:.3f}s", category=category)

    def count(self, name: str, increment: int = 1) -> int:
        """Increment a counter and return new value."""
        self._counters[name] = self._counters.get(name, 0) + increment
        return self._counters[name]

    def get_count(self, name: str) -> int:
        return self._counters.get(name, 0)

    def get_entries(
        self,
        level: LogLevel | None = None,
        category: str | None = None,
    ) -> list[LogEntry]:
        """Get logged entries, optionally filtered."""
        entries = list(self._entries)
        if level is not None:
            entries = [e for e in entries if e.level == level]
        if category is not None:
            entries = [e for e in entries if e.category == category]
        return entries

    def clear(self) -> None:
        """Forget buffered entries and counters."""
        self._entries.clear()
        self._counters.clear()

    def open_file(self, path: Path) -> None:
        """Open a file for logging."""
        self.close()
        self._file_handle = open(path, "w", encoding="utf-8")

    def close(self) -> None:
        """Close any open file handles."""
        if self._file_handle:
            self._file_handle.close()
            self._file_handle = None


_logger: ConstValLogger | None = None


def get_logger() -> ConstValLogger:
    """Get the global logger instance."""
    global _logger
    if _logger is None:
        _logger = ConstValLogger()
    return _logger


def set_logger(logger: ConstValLogger) -> None:
    """Set the global logger instance."""
    global _logger
    _logger = logger


def configure_logging(
    level: LogLevel = LogLevel.NORMAL,
    color: bool = True,
    file_path: Path | None = None,
    stream: TextIO | None = None,
) -> ConstValLogger:
    """Configure and return the global logger."""
    global _logger
    if _logger is not None:
        _logger.close()
    _logger = ConstValLogger(level=level, color=color, stream=stream, file_path=file_path)
    return _logger


class PythonLoggingBridge(logging.Handler):
    """Bridge the standard logging module into the PyConstVal logger."""

    _LEVELS = {
        logging.DEBUG: LogLevel.DEBUG,
        logging.INFO: LogLevel.NORMAL,
    }

    def __init__(self, target: ConstValLogger | None = None):
        super().__init__()
        self.target = target

    def emit(self, record: logging.LogRecord) -> None:
        target = self.target or get_logger()
        message = self.format(record)
        if record.levelno >= logging.ERROR:
            target.error(message, category="python")
        elif record.levelno >= logging.WARNING:
            target.warning(message, category="python")
        else:
            level = self._LEVELS.get(record.levelno, LogLevel.TRACE)
            target.log(level, message, category="python")


def setup_python_logging(level: int = logging.INFO) -> logging.Logger:
    """Route logging.getLogger("pyconstval") into the PyConstVal logger."""
    logger = logging.getLogger("pyconstval")
    logger.setLevel(level)
    if not any(isinstance(h, PythonLoggingBridge) for h in logger.handlers):
        logger.addHandler(PythonLoggingBridge())
    return logger


__all__ = [
    "LogLevel",
    "LogEntry",
    "Colors",
    "ConstValLogger",
    "get_logger",
    "set_logger",
    "configure_logging",
    "PythonLoggingBridge",
    "setup_python_logging",
    "supports_color",
]
