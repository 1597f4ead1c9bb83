"""CSV-backed stand-in for the rule and work-item sheets.

Rules are read as raw rows (header included) so the sheet ingestion rules
apply unchanged. Work items are read as records keyed by the header row.

Usage:
    from pmtriage.sources.tabular import load_rule_store, load_work_items

    store = load_rule_store(Path(config.sources.rules_path), config.scoring)
    items = load_work_items(Path(config.sources.work_items_path), config.sources)
"""

from __future__ import annotations

import csv
from pathlib import Path

from pmtriage.classifier.rules import RuleStore
from pmtriage.config_schema import ScoringConfig, SourcesConfig
from pmtriage.core.errors import SourceLoadError
from pmtriage.core.logging import get_logger
from pmtriage.engine.work_items import REQUIRED_COLUMNS, WorkItem, parse_work_item_records

logger = get_logger(__name__)


def read_rows(path: Path) -> list[list[str]]:
    """Read every row of a CSV file, header included.

    Raises:
        SourceLoadError: If the file is missing or unreadable
    """
    if not path.exists():
        raise SourceLoadError(f"Source file not found: {path}", path=str(path))

    try:
        with open(path, encoding="utf-8-sig", newline="") as f:
            return [row for row in csv.reader(f)]
    except (OSError, csv.Error, UnicodeDecodeError) as e:
        raise SourceLoadError(f"Failed to read {path}: {e}", path=str(path)) from e


def read_records(path: Path) -> list[dict[str, str]]:
    """Read a CSV file as records keyed by its header row.

    Raises:
        SourceLoadError: If the file is unreadable or lacks a required column
    """
    rows = read_rows(path)
    if not rows:
        return []

    header = [cell.strip() for cell in rows[0]]
    missing = [column for column in REQUIRED_COLUMNS if column not in header]
    if missing:
        raise SourceLoadError(
            f"Work item file {path} is missing columns: {', '.join(missing)}\n"
            f"Expected a header row with: {', '.join(REQUIRED_COLUMNS)}",
            path=str(path),
        )

    return [dict(zip(header, row)) for row in rows[1:] if any(cell.strip() for cell in row)]


def load_rule_store(path: Path, scoring: ScoringConfig | None = None) -> RuleStore:
    """Load classification rules from a CSV file."""
    scoring = scoring or ScoringConfig()
    store = RuleStore.from_rows(read_rows(path), default_priority=scoring.default_priority)
    logger.info("Classification rules loaded", path=str(path), rules=len(store))
    return store


def load_work_items(path: Path, sources: SourcesConfig | None = None) -> list[WorkItem]:
    """Load open work items from a CSV file."""
    sources = sources or SourcesConfig()
    items = parse_work_item_records(read_records(path), closed_statuses=sources.closed_statuses)
    logger.info("Open work items loaded", path=str(path), items=len(items))
    return items
