"""Classification rules and their tabular ingestion.

A rule votes for a project (PARENT scope) or a package (ITEM scope) when
its keywords appear in the message text or its sender patterns appear in
the sender/recipient addresses. Rules arrive as rows of a sheet:

    Scope | ProjectID | TargetValue | MatchText | MatchSender | Priority

The header row is skipped, short rows are dropped, and the scope string is
parsed into RuleScope here so the classifier never sees raw strings.

Usage:
    from pmtriage.classifier.rules import RuleStore

    store = RuleStore.from_rows(sheet_rows)
    for rule in store.rules_for(RuleScope.PARENT):
        ...
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from pmtriage.config_schema import LOWEST_PRIORITY
from pmtriage.core.logging import get_logger

logger = get_logger(__name__)

RULE_ROW_WIDTH = 6

# Sheet spellings accepted for each scope
_SCOPE_ALIASES = {
    "parent": "PARENT",
    "project": "PARENT",
    "item": "ITEM",
    "package": "ITEM",
}


class RuleScope(StrEnum):
    """Hierarchy level a rule votes for."""

    PARENT = "PARENT"
    ITEM = "ITEM"

    @classmethod
    def parse(cls, value: str) -> RuleScope | None:
        """Parse a sheet scope cell, or None when it names no known level."""
        canonical = _SCOPE_ALIASES.get((value or "").strip().lower())
        return cls(canonical) if canonical else None


@dataclass(frozen=True, slots=True)
class Rule:
    """A single weighted classification rule.

    Attributes:
        scope: Level the rule votes for
        parent_id: Declared project of an ITEM rule (blank for PARENT rules)
        target_id: Project or package id receiving the rule's score
        match_text: Comma-separated keywords
        match_sender: Comma-separated sender patterns (optional leading '*')
        priority: 1 = highest; LOWEST_PRIORITY when the cell was not a number
    """

    scope: RuleScope
    parent_id: str
    target_id: str
    match_text: str = ""
    match_sender: str = ""
    priority: int = LOWEST_PRIORITY

    @property
    def keywords(self) -> tuple[str, ...]:
        """Lowercased, trimmed, non-empty keywords."""
        return split_patterns(self.match_text)

    @property
    def sender_patterns(self) -> tuple[str, ...]:
        """Lowercased sender patterns with any leading wildcard removed."""
        return tuple(p[1:] if p.startswith("*") else p for p in split_patterns(self.match_sender))


class RuleStore:
    """Ordered, read-only collection of classification rules."""

    def __init__(self, rules: Iterable[Rule] = ()):
        self._rules: tuple[Rule, ...] = tuple(rules)

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[Sequence[Any]],
        default_priority: int = LOWEST_PRIORITY,
    ) -> RuleStore:
        """Build a store from raw sheet rows (header row included)."""
        return cls(parse_rule_rows(rows, default_priority=default_priority))

    def rules_for(self, scope: RuleScope) -> Iterator[Rule]:
        """Yield rules of one scope in sheet order."""
        return (rule for rule in self._rules if rule.scope is scope)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"RuleStore({len(self._rules)} rules)"


def split_patterns(raw: str | None) -> tuple[str, ...]:
    """Split a comma-separated cell into lowercased, trimmed entries."""
    if not raw or not raw.strip():
        return ()
    return tuple(part.strip().lower() for part in raw.split(",") if part.strip())


def parse_priority(raw: Any, default: int = LOWEST_PRIORITY) -> int:
    """Parse a priority cell; blank or non-numeric values become the default."""
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return default


def _cell(row: Sequence[Any], index: int) -> str:
    if index < len(row) and row[index] is not None:
        return str(row[index]).strip()
    return ""


def parse_rule_rows(
    rows: Sequence[Sequence[Any]],
    default_priority: int = LOWEST_PRIORITY,
) -> list[Rule]:
    """Parse sheet rows into rules.

    Row 0 is the header and is always skipped. Rows with fewer than six
    cells, an unknown scope or a blank target are dropped.

    Args:
        rows: Raw rows as returned by the sheet or CSV reader
        default_priority: Priority for blank or non-numeric priority cells

    Returns:
        Parsed rules in sheet order
    """
    rules: list[Rule] = []

    for row_number, row in enumerate(rows[1:], start=2):
        if len(row) < RULE_ROW_WIDTH:
            logger.debug("rule_row_skipped", row=row_number, reason="short_row", cells=len(row))
            continue

        scope = RuleScope.parse(_cell(row, 0))
        if scope is None:
            logger.debug("rule_row_skipped", row=row_number, reason="unknown_scope")
            continue

        if not _cell(row, 2):
            logger.debug("rule_row_skipped", row=row_number, reason="blank_target")
            continue

        rules.append(
            Rule(
                scope=scope,
                parent_id=_cell(row, 1),
                target_id=_cell(row, 2),
                match_text=_cell(row, 3),
                match_sender=_cell(row, 4),
                priority=parse_priority(_cell(row, 5), default=default_priority),
            )
        )

    logger.debug("rules_parsed", count=len(rules), rows=max(len(rows) - 1, 0))
    return rules
