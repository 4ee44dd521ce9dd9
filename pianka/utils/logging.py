"""Structured logging configuration for Pianka.

Diagnostics go to stderr so that command output on stdout (for example a
database dump redirected to a file) stays clean.
"""

from __future__ import annotations

import logging
import sys

import structlog


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog for the current invocation.

    At DEBUG level (verbose), every resolution step and external command
    is logged. Otherwise only warnings and errors are shown.

    Args:
        verbose: Whether -v/--verbose was given.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        # Resolve sys.stderr per call so redirected streams are honoured.
        logger_factory=lambda *args: structlog.PrintLogger(sys.stderr),
        cache_logger_on_first_use=False,
    )

