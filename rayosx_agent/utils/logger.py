"""
Logging utilities for the X-ray agent.

This module provides a unified logging interface for the agent,
using loguru for powerful, flexible logging capabilities.

"""

import inspect
import logging
import sys
from pathlib import Path

from loguru import logger as _logger

DEFAULT_FORMAT = "[{time:YYYY-MM-DD HH:mm:ss}] [{extra[label]}] {message}"
CONSOLE_FORMAT = (
    "<green>[{time:YYYY-MM-DD HH:mm:ss}]</green> <level>[{extra[label]}] {message}</level>"
)

# Labels written for loguru levels whose name differs from the agent log vocabulary
LEVEL_LABELS = {"SUCCESS": "OK", "WARNING": "WARN"}


def _add_label(record: dict) -> None:
    name = record["level"].name
    record["extra"]["label"] = LEVEL_LABELS.get(name, name)


class InterceptHandler(logging.Handler):
    """
    Logging handler intercepting standard library logs and redirecting to loguru.

    This allows seamless integration with libraries that use the standard logging module.
    """

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding loguru level if it exists
        level: str | int
        try:
            level = _logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where the logged message originated
        frame, depth = inspect.currentframe(), 0
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        _logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(
    level: str = "INFO",
    log_file: str | Path | None = None,
    rotation: str = "20 MB",
    retention: str = "4 weeks",
    colorize: bool = True,
) -> None:
    """
    Configure logging for the agent.

    Every line goes to stderr and, when ``log_file`` is given, is appended to
    that file as ``[timestamp] [LEVEL] message``.

    Args:
        level: Minimum log level to capture
        log_file: Path to the append-only log file (created if missing)
        rotation: When to rotate the log file (size or time)
        retention: How long to keep rotated log files
        colorize: Whether to colorize console output
    """
    _logger.remove()
    _logger.configure(patcher=_add_label)

    _logger.add(
        sys.stderr,
        level=level,
        format=CONSOLE_FORMAT if colorize else DEFAULT_FORMAT,
        colorize=colorize,
        backtrace=False,
        diagnose=False,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        _logger.add(
            str(log_path),
            level=level,
            format=DEFAULT_FORMAT,
            rotation=rotation,
            retention=retention,
            encoding="utf-8",
            backtrace=False,
            diagnose=False,
        )

    # Intercept standard library logging
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # httpx logs every request at INFO; keep it for debugging only
    for log_name in ["httpx", "httpcore"]:
        logging.getLogger(log_name).handlers = [InterceptHandler()]
        logging.getLogger(log_name).setLevel(logging.WARNING)


# Export loguru's logger as the module's logger
logger = _logger
