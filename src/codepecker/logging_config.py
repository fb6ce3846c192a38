"""
Process-wide structlog setup for the command line.

Library code only calls ``structlog.get_logger``; this module decides
where those events go and which levels are shown.
"""

import logging
import sys

import structlog


LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "off": None,
}


def configure_logging(level: str = "info", stream=None):
    """
    Route structlog events to stderr, dropping those below ``level``.

    Args:
        level: One of off/debug/info/warn/error
        stream: Output stream (defaults to stderr)
    """
    try:
        min_level = LOG_LEVELS[level.lower()]
    except KeyError:
        raise ValueError(f"Unknown log level {level!r}, expected one of {sorted(LOG_LEVELS)}") from None

    if min_level is None:
        # make_filtering_bound_logger only takes standard levels, so discard output instead
        wrapper_class = structlog.make_filtering_bound_logger(logging.CRITICAL)
        logger_factory = structlog.ReturnLoggerFactory()
    else:
        wrapper_class = structlog.make_filtering_bound_logger(min_level)
        logger_factory = structlog.PrintLoggerFactory(stream or sys.stderr)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=wrapper_class,
        logger_factory=logger_factory,
        cache_logger_on_first_use=False,
    )
