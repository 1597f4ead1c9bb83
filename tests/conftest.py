"""Pytest fixtures and configuration for pmtriage tests.

Provides common fixtures for configuration, rule sheets and work items.
"""

from pathlib import Path
from typing import Any

import pytest

from pmtriage.classifier.rules import RuleStore
from pmtriage.config_schema import AppConfig
from pmtriage.engine.work_items import WorkItem

RULE_HEADER = ["Scope", "ProjectID", "TargetValue", "MatchText", "MatchSender", "Priority"]

WORK_ITEM_HEADER = [
    "Id",
    "Project",
    "Package",
    "Title",
    "Status",
    "BallHolder",
    "SentOn",
    "DueDate",
    "HistoryLog",
    "LinkedThreadIDs",
    "ActiveMessageIDs",
]


def make_item(
    id: str,
    parent_id: str = "",
    item_id: str = "",
    title: str | None = None,
    assignee: str = "",
    linked_thread_ids: tuple[str, ...] = (),
    active_message_ids: tuple[str, ...] = (),
    status: str = "Open",
) -> WorkItem:
    """Create a WorkItem with sensible defaults."""
    return WorkItem(
        id=id,
        parent_id=parent_id,
        item_id=item_id,
        title=title if title is not None else f"Item {id}",
        status=status,
        assignee=assignee,
        linked_thread_ids=linked_thread_ids,
        active_message_ids=active_message_ids,
    )


def ref(message_id: str, store: str = "store1", entry: str = "entry1") -> str:
    """Build a 'store|entry|message-id' active message reference."""
    return f"{store}|{entry}|{message_id}"


@pytest.fixture
def sample_rule_rows() -> list[list[str]]:
    """Return a small rule sheet, header row first."""
    return [
        RULE_HEADER,
        ["PROJECT", "", "P1", "turbine", "", "1"],
        ["PACKAGE", "P1", "I1", "turbine,bolt", "", "2"],
        ["PROJECT", "", "P2", "pump", "*@acme.com", "3"],
        ["PACKAGE", "P2", "I2", "impeller", "", "2"],
    ]


@pytest.fixture
def sample_rule_store(sample_rule_rows: list[list[str]]) -> RuleStore:
    """Return the sample rule sheet as a RuleStore."""
    return RuleStore.from_rows(sample_rule_rows)


@pytest.fixture
def sample_config_dict() -> dict[str, Any]:
    """Return a minimal valid config as a dictionary."""
    return {
        "schema_version": 1,
        "scoring": {
            "keyword_points": 100,
            "sender_points": 200,
        },
        "sources": {
            "rules_path": "data/rules.csv",
            "work_items_path": "data/work_items.csv",
        },
    }


@pytest.fixture
def sample_config(sample_config_dict: dict[str, Any]) -> AppConfig:
    """Return a minimal valid AppConfig instance."""
    return AppConfig(**sample_config_dict)


@pytest.fixture
def sample_config_yaml() -> str:
    """Return a minimal valid config.yaml content."""
    return """
schema_version: 1

scoring:
  keyword_points: 100
  sender_points: 200
  default_parent_id: "Random"

linking:
  reply_weight: 1000
  message_id_weight: 500
  thread_weight: 100

sources:
  rules_path: "data/rules.csv"
  work_items_path: "data/work_items.csv"
  closed_statuses: ["Closed", "Done"]
"""


@pytest.fixture
def temp_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def config_file(temp_config_dir: Path, sample_config_yaml: str) -> Path:
    """Create a temporary config file with valid content."""
    config_path = temp_config_dir / "config.yaml"
    config_path.write_text(sample_config_yaml)
    return config_path


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Create a temporary data directory."""
    data = tmp_path / "data"
    data.mkdir()
    return data
