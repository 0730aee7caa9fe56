"""Logging configuration using loguru.

Logs go to stderr so that command output on stdout (JSON, CSV) stays
pipeable.
"""

import sys

from loguru import logger

DEFAULT_LOG_LEVEL = "WARNING"


def format_record(_record: dict) -> str:
    """Format a log record for humans."""
    return (
        "<green>{time:HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>\n"
        "{exception}"
    )


def setup_logging(log_level: str = DEFAULT_LOG_LEVEL, json_logs: bool = False) -> None:
    """Configure loguru for the CLI.

    Args:
        log_level: Minimum log level to output
        json_logs: If True, output logs as JSON lines
    """
    # Remove default handler
    logger.remove()

    if json_logs:
        logger.add(
            sys.stderr,
            format="{message}",
            level=log_level.upper(),
            serialize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format=format_record,
            level=log_level.upper(),
            colorize=sys.stderr.isatty(),
        )


# Re-export logger for convenience
__all__ = [
    "DEFAULT_LOG_LEVEL",
    "logger",
    "setup_logging",
]
