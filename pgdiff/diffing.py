"""
diffing
=======

Comparison of two snapshots.

This module contains:
- the :class:`Diff` container (table -> category -> payload)
- counter comparison between two statistics rows
- row-level refinement: fetch rows whose lifecycle timestamps fall after the
  old snapshot
- :func:`compute_diff`, which ties the three together

Categories recorded per table
-----------------------------
- ``schema``: the table was created, or removed/renamed
- one entry per changed counter, keyed by its display name, holding
  ``new - old``
- ``data``: rows touched since the old snapshot, or :data:`EMPTY_DATA_DIFF`
  when the table has no recognised lifecycle column

Only tables whose insert or update counter moved are refined. Deleted rows
cannot be fetched by a live query, so the delete counter alone never triggers
a row lookup.
"""

from __future__ import annotations

import datetime as dt
import re
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Tuple

from .catalog import DEFAULT_CATALOG, Catalog
from .errors import FormatError, InternalConsistencyError
from .log import get_logger
from .snapshot import Snapshot, TableStat
from .source import StatSource

log = get_logger("diffing")

SCHEMA_KEY = "schema"
DATA_KEY = "data"
EMPTY_DATA_DIFF: Mapping[str, List[Any]] = MappingProxyType({"dataDiff": []})

_NUMERIC_KEY = re.compile(r"^\d+$")


def removed_message(table: str) -> str:
    return f"{table} has been removed or renamed."


def created_message(table: str) -> str:
    return f"{table} has been created."


class Diff:
    """Changes between two snapshots, grouped by table.

    Tables and categories keep insertion order, so rendering is deterministic
    for a given pair of snapshots.
    """

    def __init__(self) -> None:
        self._diffs: Dict[str, Dict[str, Any]] = {}

    def add(self, table: str, key: str, payload: Any) -> None:
        self._diffs.setdefault(table, {})[key] = payload

    def __contains__(self, table: object) -> bool:
        return table in self._diffs

    def __getitem__(self, table: str) -> Mapping[str, Any]:
        return self._diffs[table]

    def __iter__(self) -> Iterator[str]:
        return iter(self._diffs)

    def __len__(self) -> int:
        return len(self._diffs)

    def tables(self) -> List[str]:
        return list(self._diffs)

    def as_dict(self) -> Dict[str, Dict[str, Any]]:
        """Return a copy of the diff as plain nested dicts."""
        return {table: dict(entries) for table, entries in self._diffs.items()}


def _counter_value(value: Any, field_name: str) -> int | float:
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        return value
    raise FormatError(f"counter {field_name} is not numeric: {value!r}")


def diff_counters(old_stat: TableStat, new_stat: TableStat, catalog: Catalog = DEFAULT_CATALOG) -> Tuple[Dict[str, Any], bool]:
    """Compare the tracked counters of one table.

    Fields are taken from *old_stat*. Purely numeric field names and fields
    outside the catalog are ignored. A value missing on either side counts
    as 0.

    Parameters
    ----------
    old_stat, new_stat:
        Raw statistics rows for the same table.
    catalog:
        Tracked counters and whether each one triggers row refinement.

    Returns
    -------
    tuple[dict, bool]
        ``(deltas, dirty)``: display name -> ``new - old`` for every counter
        that changed, and whether any changed counter triggers refinement.
    """
    deltas: Dict[str, Any] = {}
    dirty = False
    for key, old_value in old_stat.items():
        if _NUMERIC_KEY.match(key):
            continue
        if not catalog.is_tracked(key):
            continue
        new_value = new_stat.get(key)
        if old_value == new_value:
            continue
        deltas[catalog.display_name(key)] = _counter_value(new_value, key) - _counter_value(old_value, key)
        if catalog.triggers_row_diff(key):
            dirty = True
    return deltas, dirty


def refine(table: str, since: dt.datetime, source: StatSource, catalog: Catalog = DEFAULT_CATALOG) -> Any:
    """Fetch rows of *table* touched at or after *since*.

    A row matches when ANY recognised lifecycle column is ``>= since``.

    Returns
    -------
    list[dict] | dict
        The matching rows verbatim, or a copy of :data:`EMPTY_DATA_DIFF` when
        the table has no recognised lifecycle timestamp column.
    """
    columns = catalog.recognised_columns(source.timestamp_columns(table))
    if not columns:
        log.info("refine.skipped", table=table, reason="no lifecycle timestamp column")
        return {k: list(v) for k, v in EMPTY_DATA_DIFF.items()}

    rows = source.rows_touched_since(table, columns, since)
    log.info("refine.rows", table=table, columns=columns, rows=len(rows))
    return rows


def compute_diff(old: Snapshot, new: Snapshot, source: StatSource, catalog: Catalog = DEFAULT_CATALOG) -> Diff:
    """Compare *old* against *new* and refine dirty tables through *source*.

    Parameters
    ----------
    old:
        Snapshot taken by ``start``.
    new:
        Snapshot taken by ``end``; *source* must be the live database it came
        from.
    source:
        Used for the row-level follow-up queries.
    catalog:
        Counter and lifecycle-column configuration.

    Returns
    -------
    Diff
        Tables of *old* in order, then tables only in *new*.

    Raises
    ------
    InternalConsistencyError
        If a table selected for refinement is missing from *new*.
    """
    diff = Diff()
    dirty: List[str] = []

    for table, old_stat in old.tables.items():
        new_stat = new.tables.get(table)
        if new_stat is None:
            diff.add(table, SCHEMA_KEY, removed_message(table))
            continue
        deltas, needs_rows = diff_counters(old_stat, new_stat, catalog)
        for display_name, delta in deltas.items():
            diff.add(table, display_name, delta)
        if needs_rows:
            dirty.append(table)

    for table in new.tables:
        if table not in old.tables:
            diff.add(table, SCHEMA_KEY, created_message(table))

    for table in dirty:
        if table not in new.tables:
            raise InternalConsistencyError(f"refinement requested for {table}, which is not in the new snapshot")
        diff.add(table, DATA_KEY, refine(table, old.captured_at, source, catalog))

    log.info("diff.computed", tables_changed=len(diff), tables_refined=len(dirty))
    return diff
