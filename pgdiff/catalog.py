"""
catalog
=======

Counter and lifecycle-column catalogs.

The diff engine only looks at a handful of ``pg_stat_user_tables`` columns and
only trusts a handful of column names when it goes looking for touched rows.
Both lists are configuration data, so they live here as an immutable
:class:`Catalog` that is built once at startup (from defaults, optionally
overridden by the YAML config) and handed to the engine.

Public helpers
--------------
- :data:`DEFAULT_CATALOG`
- :func:`load_catalog` (build a catalog from the ``catalog:`` config section)
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .errors import ConfigurationError


@dataclass(frozen=True)
class CounterSpec:
    """How one raw statistics column is reported."""
    display_name: str
    triggers_row_diff: bool = False


# Deleted rows cannot be fetched by a live query, so only inserts and
# updates send a table to row-level refinement.
DEFAULT_COUNTERS: Mapping[str, CounterSpec] = MappingProxyType({
    "n_tup_ins": CounterSpec("insert_count", triggers_row_diff=True),
    "n_tup_upd": CounterSpec("update_count", triggers_row_diff=True),
    "n_tup_del": CounterSpec("delete_count", triggers_row_diff=False),
})

SCAN_COUNTERS: Mapping[str, CounterSpec] = MappingProxyType({
    "seq_scan": CounterSpec("sequence_scan_count", triggers_row_diff=False),
    "idx_scan": CounterSpec("index_scan_count", triggers_row_diff=False),
})

DEFAULT_LIFECYCLE_COLUMNS: Tuple[str, ...] = (
    "created",
    "created_at",
    "created_on",
    "updated",
    "updated_at",
    "updated_on",
    "modified",
    "modified_at",
    "modified_on",
    "deleted",
    "deleted_at",
    "deleted_on",
    "started",
    "finished",
)


@dataclass(frozen=True)
class Catalog:
    """Tracked counters plus recognised lifecycle timestamp columns.

    Attributes:
        counters: Raw statistic column name -> :class:`CounterSpec`.
        lifecycle_columns: Column names trusted as "row touched at" markers,
            in the order they are used to build the refinement predicate.
    """

    counters: Mapping[str, CounterSpec]
    lifecycle_columns: Tuple[str, ...]

    def is_tracked(self, raw_name: str) -> bool:
        return raw_name in self.counters

    def display_name(self, raw_name: str) -> str:
        return self.counters[raw_name].display_name

    def triggers_row_diff(self, raw_name: str) -> bool:
        spec = self.counters.get(raw_name)
        return spec is not None and spec.triggers_row_diff

    def recognised_columns(self, columns: Sequence[str]) -> List[str]:
        """Return lifecycle columns present in *columns*, in catalog order.

        Matching is exact and case-sensitive.
        """
        present = set(columns)
        return [c for c in self.lifecycle_columns if c in present]


DEFAULT_CATALOG = Catalog(counters=DEFAULT_COUNTERS, lifecycle_columns=DEFAULT_LIFECYCLE_COLUMNS)


def _parse_counter(raw_name: str, value: Any) -> CounterSpec:
    if isinstance(value, str):
        return CounterSpec(display_name=value)
    if not isinstance(value, dict) or not value.get("display_name"):
        raise ConfigurationError(
            f"catalog.counters.{raw_name} must be a display name or a mapping with display_name"
        )
    return CounterSpec(
        display_name=str(value["display_name"]),
        triggers_row_diff=bool(value.get("triggers_row_diff", False)),
    )


def load_catalog(section: Optional[Dict[str, Any]]) -> Catalog:
    """Build a :class:`Catalog` from the ``catalog:`` section of the config.

    Parameters
    ----------
    section:
        Parsed YAML mapping, or None for the defaults. Recognised keys are
        ``counters`` (replaces the default counter table),
        ``track_scan_counters`` (adds ``seq_scan``/``idx_scan``) and
        ``lifecycle_columns`` (replaces the default column list).

    Returns
    -------
    Catalog
        An immutable catalog.

    Raises
    ------
    ConfigurationError
        If a section has the wrong shape.
    """
    if not section:
        return DEFAULT_CATALOG
    if not isinstance(section, dict):
        raise ConfigurationError("catalog must be a mapping")

    counters: Dict[str, CounterSpec] = dict(DEFAULT_COUNTERS)
    raw_counters = section.get("counters")
    if raw_counters is not None:
        if not isinstance(raw_counters, dict) or not raw_counters:
            raise ConfigurationError("catalog.counters must be a non-empty mapping")
        counters = {str(k): _parse_counter(str(k), v) for k, v in raw_counters.items()}

    if section.get("track_scan_counters"):
        for raw_name, spec in SCAN_COUNTERS.items():
            counters.setdefault(raw_name, spec)

    lifecycle = DEFAULT_LIFECYCLE_COLUMNS
    raw_columns = section.get("lifecycle_columns")
    if raw_columns is not None:
        if not isinstance(raw_columns, list) or not all(isinstance(c, str) for c in raw_columns):
            raise ConfigurationError("catalog.lifecycle_columns must be a list of column names")
        lifecycle = tuple(raw_columns)

    return Catalog(counters=MappingProxyType(counters), lifecycle_columns=lifecycle)
