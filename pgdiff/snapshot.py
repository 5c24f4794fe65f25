"""
snapshot
========

Point-in-time capture of per-table activity statistics.

A :class:`Snapshot` is what ``pgdiff start`` persists and what ``pgdiff end``
compares against a fresh one. It is immutable once built and survives a trip
through :func:`serialize` / :func:`deserialize` unchanged.

Design choices
--------------
- Row values are normalised to JSON-native types at capture time, so a
  snapshot read back from disk compares equal to the one that was written.
- ``captured_at`` is always a timezone-aware UTC datetime. It is taken right
  before the statistics query, so the row-level refinement window can only be
  too wide, never too narrow.
- Table filtering (include/exclude patterns) happens at capture time; both
  ends of a run should use the same filter.

Public helpers
--------------
- :func:`capture`
- :func:`serialize`, :func:`deserialize`
- :func:`filter_tables` (include/exclude patterns)
"""

from __future__ import annotations

import datetime as dt
import decimal
import fnmatch
import json
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .errors import DataSourceError, FormatError
from .log import get_logger
from .source import StatSource

log = get_logger("snapshot")

TableStat = Mapping[str, Any]

TABLE_NAME_FIELD = "relname"


@dataclass(frozen=True)
class TableFilter:
    """Include/exclude patterns for table selection."""
    include: List[str] = field(default_factory=list)
    exclude: List[str] = field(default_factory=list)
    case_sensitive: bool = False


@dataclass(frozen=True)
class Snapshot:
    """Per-table statistics as read at one instant.

    Attributes:
        captured_at: When the statistics were read (UTC, timezone-aware).
        tables: Table name -> statistics row, values normalised by
            :func:`to_json_value`. Read-only.
    """

    captured_at: dt.datetime
    tables: Mapping[str, TableStat]

    def __post_init__(self) -> None:
        frozen = {
            str(name): MappingProxyType({str(k): to_json_value(v) for k, v in stat.items()})
            for name, stat in self.tables.items()
        }
        object.__setattr__(self, "captured_at", _as_utc(self.captured_at))
        object.__setattr__(self, "tables", MappingProxyType(frozen))

    def as_dict(self) -> Dict[str, Any]:
        """Return plain, JSON-ready data for this snapshot."""
        return {
            "captured_at": self.captured_at.isoformat(),
            "tables": {name: dict(stat) for name, stat in self.tables.items()},
        }


def _as_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def to_json_value(value: Any) -> Any:
    """Convert a driver value into a JSON-native value."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, decimal.Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    return str(value)


# ---- table filter helpers ----
def sql_like_to_fnmatch(pattern: str) -> str:
    """Convert SQL LIKE patterns (% and _) to fnmatch syntax (* and ?)."""
    return pattern.replace("%", "*").replace("_", "?")


def matches_pattern(name: str, pattern: str, case_sensitive: bool = False) -> bool:
    """Return True if name matches pattern (LIKE by default, regex via ``re:``)."""
    if pattern.startswith("re:"):
        flags = 0 if case_sensitive else re.IGNORECASE
        return re.search(pattern[3:], name, flags) is not None
    fm = sql_like_to_fnmatch(pattern)
    if case_sensitive:
        return fnmatch.fnmatchcase(name, fm)
    return fnmatch.fnmatchcase(name.lower(), fm.lower())


def filter_tables(tables: Sequence[str], table_filter: Optional[TableFilter]) -> List[str]:
    """Filter tables using include/exclude patterns, keeping input order.

    Include patterns keep a table if it matches *any* include pattern.
    Exclude patterns drop a table if it matches *any* exclude pattern.
    """
    result = list(tables)
    if table_filter is None:
        return result
    cs = table_filter.case_sensitive
    if table_filter.include:
        result = [t for t in result if any(matches_pattern(t, p, cs) for p in table_filter.include)]
    if table_filter.exclude:
        result = [t for t in result if not any(matches_pattern(t, p, cs) for p in table_filter.exclude)]
    return result


# ---- capture ----
def capture(
    source: StatSource,
    table_filter: Optional[TableFilter] = None,
    clock: Callable[[], dt.datetime] = _utcnow,
) -> Snapshot:
    """Read current table statistics from *source* into a :class:`Snapshot`.

    Parameters
    ----------
    source:
        Live statistics source.
    table_filter:
        Optional include/exclude patterns applied to table names.
    clock:
        Returns the capture instant; defaults to the current UTC time.

    Returns
    -------
    Snapshot
        The captured snapshot, tables keyed by ``relname``.

    Raises
    ------
    DataSourceError
        If the statistics query fails or returns rows without a table name.
    """
    captured_at = clock()
    rows = source.table_statistics()

    tables: Dict[str, Dict[str, Any]] = {}
    for row in rows:
        name = row.get(TABLE_NAME_FIELD)
        if not name:
            raise DataSourceError(f"statistics row without {TABLE_NAME_FIELD}: {sorted(row)}")
        tables[str(name)] = row

    kept = filter_tables(list(tables), table_filter)
    snapshot = Snapshot(captured_at=captured_at, tables={name: tables[name] for name in kept})
    log.info("snapshot.captured", tables=len(kept), skipped=len(tables) - len(kept))
    return snapshot


# ---- serialization ----
def serialize(snapshot: Snapshot) -> bytes:
    """Encode *snapshot* as a UTF-8 JSON document."""
    return json.dumps(snapshot.as_dict(), indent=2, ensure_ascii=False).encode("utf-8")


def deserialize(data: bytes | str) -> Snapshot:
    """Decode a document produced by :func:`serialize`.

    Naive timestamps are read as UTC.

    Raises
    ------
    FormatError
        If *data* is not a well-formed snapshot document.
    """
    try:
        text = data.decode("utf-8") if isinstance(data, bytes) else data
        doc = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FormatError(f"snapshot is not valid JSON: {e}") from e

    if not isinstance(doc, dict):
        raise FormatError("snapshot document must be a JSON object")

    raw_ts = doc.get("captured_at")
    if not isinstance(raw_ts, str):
        raise FormatError("snapshot is missing captured_at")
    try:
        captured_at = dt.datetime.fromisoformat(raw_ts)
    except ValueError as e:
        raise FormatError(f"snapshot captured_at is not an ISO 8601 timestamp: {raw_ts!r}") from e

    tables = doc.get("tables")
    if not isinstance(tables, dict):
        raise FormatError("snapshot is missing the tables mapping")
    for name, stat in tables.items():
        if not isinstance(stat, dict):
            raise FormatError(f"snapshot entry for table {name!r} is not an object")

    return Snapshot(captured_at=captured_at, tables=tables)
