"""Logging setup for codescope.

Three output modes:
- Human mode: [LEVEL] message (colored if TTY)
- Verbose mode: [LEVEL][HH:MM:SS] message
- CI/JSON mode: {"level":"...","ts":"...","msg":"..."}

Library modules log through ``logging.getLogger(__name__)``; everything below
the ``codescope`` logger shares the handler configured here.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from typing import Any, TextIO

ROOT_LOGGER = "codescope"


class LogMode(Enum):
    """Logging output mode."""

    HUMAN = "human"
    VERBOSE = "verbose"
    JSON = "json"


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    RED = "\033[31m"
    GRAY = "\033[90m"


LEVEL_COLORS = {
    logging.DEBUG: Colors.GRAY,
    logging.INFO: Colors.GREEN,
    logging.WARNING: Colors.YELLOW,
    logging.ERROR: Colors.RED,
    logging.CRITICAL: Colors.RED,
}


def _is_tty(stream: TextIO | None = None) -> bool:
    """Check if the stream is a TTY (supports colors)."""
    if stream is None:
        stream = sys.stderr
    return hasattr(stream, "isatty") and stream.isatty()


class HumanFormatter(logging.Formatter):
    """Format: [LEVEL] message, colored when writing to a TTY."""

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        level_name = record.levelname
        if self.use_colors:
            color = LEVEL_COLORS.get(record.levelno, Colors.RESET)
            return f"{color}[{level_name}]{Colors.RESET} {record.getMessage()}"
        return f"[{level_name}] {record.getMessage()}"


class VerboseFormatter(logging.Formatter):
    """Format: [LEVEL][HH:MM:SS] message, colored when writing to a TTY."""

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        level_name = record.levelname
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        if self.use_colors:
            color = LEVEL_COLORS.get(record.levelno, Colors.RESET)
            return f"{color}[{level_name}]{Colors.RESET}[{timestamp}] {record.getMessage()}"
        return f"[{level_name}][{timestamp}] {record.getMessage()}"


class JSONFormatter(logging.Formatter):
    """JSON lines output for CI.

    Format: {"level":"INFO","ts":"2026-01-31T19:45:23+00:00","msg":"..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "level": record.levelname,
            "ts": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "msg": record.getMessage(),
        }
        if hasattr(record, "extra_data"):
            log_entry.update(record.extra_data)
        return json.dumps(log_entry)


class CodescopeLogger(logging.Logger):
    """Logger with structured logging support."""

    def structured(self, level: int, msg: str, **kwargs: Any) -> None:
        """Log a message with additional structured data.

        Args:
            level: Log level
            msg: Log message
            **kwargs: Additional data merged into JSON output
        """
        if not self.isEnabledFor(level):
            return
        record = self.makeRecord(self.name, level, "(unknown)", 0, msg, (), None)
        if kwargs:
            record.extra_data = kwargs  # type: ignore[attr-defined]
        self.handle(record)


logging.setLoggerClass(CodescopeLogger)


def get_logger(name: str = ROOT_LOGGER) -> CodescopeLogger:
    """Get a codescope logger instance."""
    return logging.getLogger(name)  # type: ignore[return-value]


def setup_logging(
    mode: LogMode = LogMode.HUMAN,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """Configure the ``codescope`` logger.

    Args:
        mode: Output mode (human, verbose, json)
        level: Minimum log level
        stream: Output stream (default: stderr, stdout is kept for results)
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()

    target = stream or sys.stderr
    use_colors = _is_tty(target)

    if mode == LogMode.JSON:
        formatter: logging.Formatter = JSONFormatter()
    elif mode == LogMode.VERBOSE:
        formatter = VerboseFormatter(use_colors=use_colors)
    else:
        formatter = HumanFormatter(use_colors=use_colors)

    handler = logging.StreamHandler(target)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def configure_from_cli(verbose: bool = False, quiet: bool = False, ci: bool = False) -> None:
    """Configure logging based on CLI flags.

    Args:
        verbose: Enable verbose mode with timestamps and debug output
        quiet: Warnings and errors only
        ci: JSON lines output
    """
    if ci:
        mode = LogMode.JSON
    elif verbose:
        mode = LogMode.VERBOSE
    else:
        mode = LogMode.HUMAN

    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    setup_logging(mode=mode, level=level)
