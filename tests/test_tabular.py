"""Tests for the CSV-backed rule and work-item sources."""

import csv
from pathlib import Path

import pytest
from conftest import RULE_HEADER, WORK_ITEM_HEADER

from pmtriage.classifier.rules import RuleScope
from pmtriage.config_schema import ScoringConfig, SourcesConfig
from pmtriage.core.errors import SourceLoadError
from pmtriage.sources.tabular import load_rule_store, load_work_items, read_records, read_rows


def write_csv(path: Path, rows: list[list[str]], encoding: str = "utf-8") -> Path:
    with open(path, "w", encoding=encoding, newline="") as f:
        csv.writer(f).writerows(rows)
    return path


class TestReadRows:
    """Tests for raw row reading."""

    def test_byte_order_mark_is_dropped(self, data_dir: Path) -> None:
        path = write_csv(data_dir / "rules.csv", [RULE_HEADER], encoding="utf-8-sig")
        assert read_rows(path)[0][0] == "Scope"

    def test_missing_file(self, data_dir: Path) -> None:
        with pytest.raises(SourceLoadError, match="not found") as exc_info:
            read_rows(data_dir / "missing.csv")
        assert exc_info.value.path.endswith("missing.csv")

    def test_undecodable_file(self, data_dir: Path) -> None:
        path = data_dir / "rules.csv"
        path.write_bytes(b"\xff\xfe\x00bad")
        with pytest.raises(SourceLoadError, match="Failed to read"):
            read_rows(path)


class TestLoadRuleStore:
    """Tests for loading rules from CSV."""

    def test_loads_rules(self, data_dir: Path, sample_rule_rows: list[list[str]]) -> None:
        store = load_rule_store(write_csv(data_dir / "rules.csv", sample_rule_rows))
        assert len(store) == 4
        assert [r.target_id for r in store.rules_for(RuleScope.ITEM)] == ["I1", "I2"]

    def test_default_priority_from_config(self, data_dir: Path) -> None:
        rows = [RULE_HEADER, ["PROJECT", "", "P1", "turbine", "", "soon"]]
        store = load_rule_store(
            write_csv(data_dir / "rules.csv", rows), ScoringConfig(default_priority=50)
        )
        assert next(iter(store)).priority == 50

    def test_empty_file(self, data_dir: Path) -> None:
        path = data_dir / "rules.csv"
        path.write_text("")
        assert len(load_rule_store(path)) == 0


class TestLoadWorkItems:
    """Tests for loading work items from CSV."""

    def test_loads_open_items(self, data_dir: Path) -> None:
        rows = [
            WORK_ITEM_HEADER,
            ["1", "Wind", "Turbine", "Fix bolt", "Open", "Ann", "", "", "", "conv-1", "s|e|<a@m>"],
            ["2", "Wind", "Turbine", "Old", "Closed", "Bob", "", "", "", "", ""],
            ["3", "Hydro", "Pump", "Seal", "Done", "Cy", "", "", "", "", ""],
            ["", "", "", "", "", "", "", "", "", "", ""],
        ]
        path = write_csv(data_dir / "work_items.csv", rows)

        items = load_work_items(path)
        assert [i.id for i in items] == ["1", "3"]
        assert items[0].linked_thread_ids == ("conv-1",)
        assert items[0].tracked_message_ids == ["a@m"]

        items = load_work_items(path, SourcesConfig(closed_statuses=["Closed", "Done"]))
        assert [i.id for i in items] == ["1"]

    def test_missing_columns(self, data_dir: Path) -> None:
        path = write_csv(data_dir / "work_items.csv", [["Id", "Title"], ["1", "Fix"]])
        with pytest.raises(SourceLoadError, match="missing columns"):
            load_work_items(path)

    def test_header_only(self, data_dir: Path) -> None:
        path = write_csv(data_dir / "work_items.csv", [WORK_ITEM_HEADER])
        assert read_records(path) == []
