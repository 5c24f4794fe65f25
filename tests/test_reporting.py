"""Unit tests for reporting module."""

import datetime as dt
import json
from decimal import Decimal
from pathlib import Path

from conftest import T0, T1, make_snapshot, stat_row
from pgdiff.diffing import EMPTY_DATA_DIFF, Diff
from pgdiff.reporting import generate_summary_md, md_anchor, render_json


def _sample_diff() -> Diff:
    diff = Diff()
    diff.add("orders", "insert_count", 3)
    diff.add("orders", "data", [{"id": 7, "created_at": T1, "total": Decimal("9.50")}])
    diff.add("audit_log", "update_count", 2)
    diff.add("audit_log", "data", dict(EMPTY_DATA_DIFF))
    diff.add("legacy", "schema", "legacy has been removed or renamed.")
    return diff


class TestRenderJson:
    """Tests for render_json function."""

    def test_empty_diff(self) -> None:
        """Test an empty diff renders as an empty object."""
        assert json.loads(render_json(Diff())) == {}

    def test_driver_values_rendered(self) -> None:
        """Test timestamps and decimals in rows are rendered as strings."""
        doc = json.loads(render_json(_sample_diff()))
        row = doc["orders"]["data"][0]
        assert row["created_at"] == str(T1)
        assert row["total"] == "9.50"
        assert doc["audit_log"]["data"] == {"dataDiff": []}
        assert doc["legacy"] == {"schema": "legacy has been removed or renamed."}

    def test_four_space_indent(self) -> None:
        """Test output is pretty-printed."""
        diff = Diff()
        diff.add("t", "delete_count", 1)
        assert render_json(diff) == '{\n    "t": {\n        "delete_count": 1\n    }\n}'


def test_md_anchor() -> None:
    assert md_anchor("Audit Log (v2)") == "audit-log-v2"


class TestGenerateSummaryMd:
    """Tests for generate_summary_md function."""

    def test_summary_sections(self, tmp_path: Path) -> None:
        """Test each changed table gets a section with its entries."""
        old = make_snapshot(T0, orders=stat_row("orders"), legacy=stat_row("legacy"))
        new = make_snapshot(T1, orders=stat_row("orders", 3))
        out = generate_summary_md(tmp_path / "summary.md", "JIRA-123", old, new, _sample_diff())

        text = out.read_text(encoding="utf-8")
        assert text.startswith("# Database Changes: JIRA-123\n")
        assert "- Tables changed: 3" in text
        assert "- [orders](#orders)" in text
        assert "## orders" in text
        assert "- insert_count: +3" in text
        assert "- rows touched since start: 1" in text
        assert "- rows touched since start: unknown" in text
        assert "- legacy has been removed or renamed." in text

    def test_summary_window(self, tmp_path: Path) -> None:
        """Test the capture window is reported."""
        old = make_snapshot(T0)
        new = make_snapshot(T0 + dt.timedelta(hours=1))
        text = generate_summary_md(tmp_path / "s.md", "k", old, new, Diff()).read_text(encoding="utf-8")
        assert "- Start: 2026-01-01T12:00:00+00:00 (0 table(s))" in text
        assert "- End: 2026-01-01T13:00:00+00:00 (0 table(s))" in text

    def test_no_differences(self, tmp_path: Path) -> None:
        """Test an empty diff is reported explicitly."""
        out = generate_summary_md(tmp_path / "s.md", "k", make_snapshot(T0), make_snapshot(T1), Diff())
        text = out.read_text(encoding="utf-8")
        assert "No differences" in text
        assert "## Contents" not in text
