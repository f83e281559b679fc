"""
Central logging levels for calendarreader.

Keeps third-party parsing libraries quiet while leaving package loggers at the
requested verbosity.
"""

import logging
import os
from typing import Optional

# Third-party loggers that get chatty while parsing calendar data
NOISY_LOGGERS: dict[str, int] = {
    "icalendar": logging.WARNING,
    "asyncio": logging.WARNING,
}

PACKAGE_LOGGERS = [
    "calendarreader",
    "calendarreader.engine",
    "calendarreader.ics_decoder",
    "calendarreader.csv_decoder",
    "calendarreader.recurrence",
    "calendarreader.vcal_compat",
    "calendarreader.export",
]


def configure_logging(level: Optional[str] = None) -> None:
    """
    Apply logger levels for calendarreader and its dependencies.

    Args:
        level: Level name for package loggers (DEBUG, INFO, WARNING, ERROR).
            Falls back to INFO for unknown names.

    Environment Variables:
        CALENDARREADER_DEBUG: Set to '1', 'true', 'yes' to force debug logging
    """
    if os.getenv("CALENDARREADER_DEBUG", "").lower() in ("1", "true", "yes"):
        level = "DEBUG"

    package_level = logging.INFO
    if level and level.upper() in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        package_level = getattr(logging, level.upper())

    for logger_name, noisy_level in NOISY_LOGGERS.items():
        # Debug runs still surface third-party warnings, never their debug chatter
        logging.getLogger(logger_name).setLevel(max(noisy_level, package_level))

    for logger_name in PACKAGE_LOGGERS:
        logging.getLogger(logger_name).setLevel(package_level)

    logging.getLogger(__name__).debug(
        "Package loggers set to %s", logging.getLevelName(package_level)
    )


def get_logging_status() -> dict[str, str]:
    """
    Get current logging configuration status.

    Returns:
        Dictionary mapping logger names to their current levels
    """
    status = {"root": logging.getLevelName(logging.getLogger().level)}
    for logger_name in [*PACKAGE_LOGGERS[:1], *NOISY_LOGGERS]:
        status[logger_name] = logging.getLevelName(logging.getLogger(logger_name).level)
    return status
