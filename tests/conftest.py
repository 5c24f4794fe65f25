"""Shared fixtures for pgdiff tests.

Provides an in-memory statistics source so snapshot and diff logic can be
exercised without a PostgreSQL server.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional, Sequence

import pytest
import structlog

from pgdiff.snapshot import Snapshot

T0 = dt.datetime(2026, 1, 1, 12, 0, 0, tzinfo=dt.timezone.utc)
T1 = T0 + dt.timedelta(minutes=5)


def stat_row(table: str, ins: int = 0, upd: int = 0, dele: int = 0, **extra: Any) -> Dict[str, Any]:
    """Build a ``pg_stat_user_tables``-shaped row."""
    row: Dict[str, Any] = {
        "relid": 16384,
        "schemaname": "public",
        "relname": table,
        "seq_scan": 1,
        "idx_scan": 0,
        "n_tup_ins": ins,
        "n_tup_upd": upd,
        "n_tup_del": dele,
        "n_live_tup": ins - dele,
    }
    row.update(extra)
    return row


def make_snapshot(captured_at: dt.datetime = T0, **tables: Dict[str, Any]) -> Snapshot:
    return Snapshot(captured_at=captured_at, tables=tables)


class FakeSource:
    """In-memory stand-in for :class:`pgdiff.source.StatSource`."""

    def __init__(
        self,
        stats: Optional[List[Dict[str, Any]]] = None,
        columns: Optional[Dict[str, List[str]]] = None,
        rows: Optional[Dict[str, List[Dict[str, Any]]]] = None,
    ) -> None:
        self.stats = stats or []
        self.columns = columns or {}
        self.rows = rows or {}
        self.row_queries: List[tuple] = []

    def table_statistics(self) -> List[Dict[str, Any]]:
        return [dict(r) for r in self.stats]

    def timestamp_columns(self, table: str) -> List[str]:
        return list(self.columns.get(table, []))

    def rows_touched_since(self, table: str, columns: Sequence[str], since: dt.datetime) -> List[Dict[str, Any]]:
        self.row_queries.append((table, list(columns), since))
        return [
            dict(r)
            for r in self.rows.get(table, [])
            if any(r.get(c) is not None and r[c] >= since for c in columns)
        ]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's database settings out of the tests."""
    for var in (
        "DATABASE_URL",
        "PGDIFF_DATABASE_URL",
        "PGDIFF_SNAPSHOT_DIR",
        "PGDIFF_SNAPSHOT_PREFIX",
        "PGDIFF_LOG_LEVEL",
        "PGDIFF_CONNECT_TIMEOUT",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo logging configuration made by a test, including bound run context."""
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
