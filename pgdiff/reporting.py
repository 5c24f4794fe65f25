"""
reporting
=========

Rendering of a computed :class:`~pgdiff.diffing.Diff`.

Primary API
-----------
- :func:`render_json`: the document ``pgdiff end`` prints on stdout
- :func:`generate_summary_md`: optional Markdown summary for humans

"""

from __future__ import annotations

import datetime as dt
import json
import re
from pathlib import Path
from typing import Any, List

from .diffing import DATA_KEY, SCHEMA_KEY, Diff
from .snapshot import Snapshot
from .utils import write_text


def render_json(diff: Diff) -> str:
    """Return *diff* as pretty-printed JSON.

    Row values the JSON encoder does not know (timestamps, decimals, UUIDs)
    are rendered with ``str``.
    """
    return json.dumps(diff.as_dict(), indent=4, ensure_ascii=False, default=str)


def md_anchor(title: str) -> str:
    """Create an approximate GitHub-style markdown anchor from a section title."""
    return re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")


def _data_line(payload: Any) -> str:
    if isinstance(payload, list):
        return f"- rows touched since start: {len(payload)}\n"
    return "- rows touched since start: unknown (no lifecycle timestamp column)\n"


def generate_summary_md(out_path: Path, key: str, old: Snapshot, new: Snapshot, diff: Diff) -> Path:
    """Generate a Markdown summary of *diff*.

    Parameters
    ----------
    out_path:
        File to write.
    key:
        Correlation key of the run.
    old, new:
        The compared snapshots (used for the capture window).
    diff:
        Result of :func:`~pgdiff.diffing.compute_diff`.

    Returns
    -------
    pathlib.Path
        *out_path*, once written.
    """
    now = dt.datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    lines: List[str] = []
    lines.append(f"# Database Changes: {key}\n\n")
    lines.append(f"_Generated: {now}_\n\n")
    lines.append(f"- Start: {old.captured_at.isoformat()} ({len(old.tables)} table(s))\n")
    lines.append(f"- End: {new.captured_at.isoformat()} ({len(new.tables)} table(s))\n")
    lines.append(f"- Tables changed: {len(diff)}\n\n")

    if not len(diff):
        lines.append("No differences\n")
        write_text(out_path, "".join(lines))
        return out_path

    lines.append("## Contents\n")
    for table in diff:
        lines.append(f"- [{table}](#{md_anchor(table)})\n")
    lines.append("\n")

    for table in diff:
        lines.append(f"## {table}\n\n")
        entries = diff[table]
        for category, payload in entries.items():
            if category == SCHEMA_KEY:
                lines.append(f"- {payload}\n")
            elif category == DATA_KEY:
                lines.append(_data_line(payload))
            else:
                lines.append(f"- {category}: {payload:+}\n")
        lines.append("\n")

    write_text(out_path, "".join(lines))
    return out_path
