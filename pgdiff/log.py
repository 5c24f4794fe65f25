"""Structured logging for pgdiff.

Standard output is reserved for the diff document, so every log line goes to
standard error as one JSON object. Lines emitted during a run carry the run's
``mode`` and correlation ``key``.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def _stderr_logger(*_args: Any) -> structlog.PrintLogger:
    # Resolved per logger so a replaced or reopened sys.stderr is honoured.
    return structlog.PrintLogger(sys.stderr)


def setup_logging(level: str = "info") -> None:
    """Configure structlog to write JSON lines at *level* and above to stderr."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
            structlog.processors.JSONRenderer(default=str),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def bind_run(mode: str, key: str) -> None:
    """Attach *mode* and *key* to every log line until :func:`unbind_run`."""
    structlog.contextvars.bind_contextvars(mode=mode, key=key)


def unbind_run() -> None:
    structlog.contextvars.unbind_contextvars("mode", "key")


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]
