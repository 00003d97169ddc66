"""Loguru setup for the CLI and the Gemini client.

Lifecycle components log through structlog (see verifivue.utils.logging);
this module covers the operator-facing side. Logs always go to stderr so
that CLI tables and JSON output on stdout stay machine-readable.
"""

import sys
from loguru import logger

from verifivue.config.settings import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[component]}</cyan> | "
    "<level>{message}</level>"
)

DEFAULT_EXTRA = {"component": "verifivue"}


def configure_logging() -> None:
    """
    Install the single loguru sink for this process.

    Colorized console lines when stderr is a TTY and LOG_FORMAT is console,
    JSON records otherwise. Level follows LOG_LEVEL.
    """
    logger.remove()
    logger.configure(extra=DEFAULT_EXTRA)

    if sys.stderr.isatty() and settings.log_format.lower() == "console":
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=settings.log_level,
            colorize=True,
        )
    else:
        logger.add(
            sys.stderr,
            format="{message}",
            level=settings.log_level,
            serialize=True,
            diagnose=False,  # never dump local variables (document bytes, keys)
        )


def get_logger(component: str):
    """
    Get a logger bound to a component name.

    Example:
        >>> log = get_logger("llm.gemini")
        >>> log.info("Analyzing document")
    """
    return logger.bind(component=component)


configure_logging()

__all__ = ["logger", "get_logger", "configure_logging"]
