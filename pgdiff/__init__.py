"""
pgdiff
======

Find which PostgreSQL tables, and which rows, changed between two points in
time, using the activity counters of ``pg_stat_user_tables``.

Modules, leaves first:

- :mod:`pgdiff.source`: read-only database access
- :mod:`pgdiff.snapshot`: immutable statistics snapshots and their JSON form
- :mod:`pgdiff.diffing`: snapshot comparison and row-level refinement
- :mod:`pgdiff.storage`: one snapshot file per correlation key
- :mod:`pgdiff.cli`: the ``pgdiff start|end KEY`` entry point
"""

from .catalog import DEFAULT_CATALOG, Catalog, CounterSpec, load_catalog
from .diffing import Diff, compute_diff, diff_counters, refine
from .errors import (
    ConfigurationError,
    DataSourceError,
    FormatError,
    InternalConsistencyError,
    PgDiffError,
    PreconditionViolation,
)
from .snapshot import Snapshot, TableFilter, capture, deserialize, serialize
from .source import DbTarget, StatSource, connect
from .storage import SnapshotStore

__all__ = [
    "Catalog",
    "ConfigurationError",
    "CounterSpec",
    "DEFAULT_CATALOG",
    "DataSourceError",
    "DbTarget",
    "Diff",
    "FormatError",
    "InternalConsistencyError",
    "PgDiffError",
    "PreconditionViolation",
    "Snapshot",
    "SnapshotStore",
    "StatSource",
    "TableFilter",
    "capture",
    "compute_diff",
    "connect",
    "deserialize",
    "diff_counters",
    "load_catalog",
    "refine",
    "serialize",
]
