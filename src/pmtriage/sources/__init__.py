"""Tabular sources for rules and work items."""

from pmtriage.sources.tabular import load_rule_store, load_work_items, read_records, read_rows

__all__ = [
    "load_rule_store",
    "load_work_items",
    "read_records",
    "read_rows",
]
