"""Work items, message identity and their ingestion from sheet records.

A work item tracks the messages it was built from in two multi-value
columns, both ';'-separated in the sheet:

- LinkedThreadIDs: conversation ids the item is attached to
- ActiveMessageIDs: 'store|entry|message-id' references, oldest first

Only the message-id part of an active reference takes part in matching.

Usage:
    from pmtriage.engine.work_items import MessageIdentity, parse_work_item_records

    items = parse_work_item_records(sheet_records, closed_statuses=["Closed"])
    identity = MessageIdentity(message_id="<a@x>", in_reply_to="<b@x>", conversation_id="AAQk")
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from pmtriage.core.logging import get_logger

logger = get_logger(__name__)

# Sheet column names
COLUMN_ID = "Id"
COLUMN_PROJECT = "Project"
COLUMN_PACKAGE = "Package"
COLUMN_TITLE = "Title"
COLUMN_STATUS = "Status"
COLUMN_ASSIGNEE = "BallHolder"
COLUMN_SENT_ON = "SentOn"
COLUMN_DUE_DATE = "DueDate"
COLUMN_HISTORY = "HistoryLog"
COLUMN_LINKED_THREADS = "LinkedThreadIDs"
COLUMN_ACTIVE_MESSAGES = "ActiveMessageIDs"

REQUIRED_COLUMNS = (
    COLUMN_ID,
    COLUMN_PROJECT,
    COLUMN_PACKAGE,
    COLUMN_TITLE,
    COLUMN_STATUS,
    COLUMN_ASSIGNEE,
    COLUMN_LINKED_THREADS,
    COLUMN_ACTIVE_MESSAGES,
)

# Active message references are 'store|entry|message-id'
REFERENCE_SEPARATOR = "|"
REFERENCE_FIELDS = 3


@dataclass(frozen=True, slots=True)
class MessageIdentity:
    """Identity headers of the message being triaged.

    Attributes:
        message_id: The message's own Internet Message-ID
        in_reply_to: Message-ID this message replies to
        conversation_id: Mail client conversation/thread id
    """

    message_id: str = ""
    in_reply_to: str = ""
    conversation_id: str = ""


@dataclass(frozen=True, slots=True)
class WorkItem:
    """An open work item as read from the tracking sheet.

    Attributes:
        id: Row identifier in the tracking sheet
        parent_id: Project the item belongs to
        item_id: Package the item belongs to
        title: Short description
        status: Workflow status
        assignee: Who currently holds the ball
        linked_thread_ids: Conversation ids attached to the item
        active_message_ids: 'store|entry|message-id' references, oldest first
    """

    id: str
    parent_id: str = ""
    item_id: str = ""
    title: str = ""
    status: str = ""
    assignee: str = ""
    linked_thread_ids: tuple[str, ...] = ()
    active_message_ids: tuple[str, ...] = ()
    sent_on: datetime | None = None
    due_date: datetime | None = None
    history_log: str = ""

    @property
    def tracked_message_ids(self) -> list[str | None]:
        """Normalized message-id of each active reference, oldest first.

        Malformed references keep their position as None.
        """
        return [message_id_of(ref) for ref in self.active_message_ids]

    def display_label(self) -> str:
        """Label used in selection lists."""
        return f"{self.title} [{self.assignee}]"


def normalize_message_id(message_id: str | None) -> str:
    """Strip whitespace and one pair of surrounding angle brackets."""
    if not message_id or not message_id.strip():
        return ""
    value = message_id.strip()
    if value.startswith("<") and value.endswith(">"):
        value = value[1:-1].strip()
    return value


def message_id_of(reference: str) -> str | None:
    """Extract the normalized message-id from a 'store|entry|message-id' reference.

    Returns:
        The message-id, or None when the reference has fewer than three fields
    """
    parts = reference.split(REFERENCE_SEPARATOR)
    if len(parts) < REFERENCE_FIELDS:
        return None
    return normalize_message_id(parts[2]) or None


def split_multi_value(raw: str | None) -> tuple[str, ...]:
    """Split a ';'-separated sheet cell into trimmed, non-empty values."""
    if not raw or not raw.strip():
        return ()
    return tuple(part.strip() for part in raw.split(";") if part.strip())


def _parse_datetime(raw: str) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None


def _value(record: Mapping[str, Any], column: str) -> str:
    value = record.get(column)
    return str(value).strip() if value is not None else ""


def parse_work_item_record(record: Mapping[str, Any]) -> WorkItem:
    """Build a WorkItem from one sheet record keyed by column name."""
    return WorkItem(
        id=_value(record, COLUMN_ID),
        parent_id=_value(record, COLUMN_PROJECT),
        item_id=_value(record, COLUMN_PACKAGE),
        title=_value(record, COLUMN_TITLE),
        status=_value(record, COLUMN_STATUS),
        assignee=_value(record, COLUMN_ASSIGNEE),
        linked_thread_ids=split_multi_value(_value(record, COLUMN_LINKED_THREADS)),
        active_message_ids=split_multi_value(_value(record, COLUMN_ACTIVE_MESSAGES)),
        sent_on=_parse_datetime(_value(record, COLUMN_SENT_ON)),
        due_date=_parse_datetime(_value(record, COLUMN_DUE_DATE)),
        history_log=_value(record, COLUMN_HISTORY),
    )


def parse_work_item_records(
    records: Iterable[Mapping[str, Any]],
    closed_statuses: Iterable[str] = ("Closed",),
) -> list[WorkItem]:
    """Parse sheet records into the list of open work items.

    Args:
        records: Rows keyed by column name
        closed_statuses: Statuses (case-insensitive) that exclude an item

    Returns:
        Open work items in sheet order
    """
    closed = {status.strip().lower() for status in closed_statuses}
    items: list[WorkItem] = []
    skipped = 0

    for record in records:
        item = parse_work_item_record(record)
        if item.status.lower() in closed:
            skipped += 1
            continue
        items.append(item)

    logger.debug("work_items_parsed", open=len(items), closed=skipped)
    return items
