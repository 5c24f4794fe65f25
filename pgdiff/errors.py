"""
errors
======

Exception taxonomy for pgdiff.

Every failure path of a run raises a subclass of :class:`PgDiffError`. The CLI
catches that base class, prints the message and exits non-zero. Nothing is
retried and nothing is swallowed.
"""

from __future__ import annotations


class PgDiffError(Exception):
    """Base class for all pgdiff errors."""


class ConfigurationError(PgDiffError):
    """Configuration is missing or invalid (YAML, env vars, CLI flags)."""


class DataSourceError(PgDiffError):
    """A query against the database failed or the connection could not be made."""


class FormatError(PgDiffError):
    """A persisted snapshot is missing, corrupt or unreadable."""


class PreconditionViolation(PgDiffError):
    """A snapshot already exists for the correlation key given to ``start``."""


class InternalConsistencyError(PgDiffError):
    """The diff engine reached a state its own checks should have ruled out."""
