"""Work-item matching engines.

This package provides the message-to-work-item engines:
- Work item model, message identity and sheet-record ingestion
- Thread matcher for picking the directly-linked item
- Grouping engine and selection-list builder for interactive pickers
"""

from pmtriage.engine.grouping import (
    Bucket,
    EntryKind,
    GroupingEngine,
    GroupingResult,
    SelectionEntry,
    build_selection_list,
)
from pmtriage.engine.thread_matcher import MatchTier, ThreadMatch, ThreadMatcher
from pmtriage.engine.work_items import (
    MessageIdentity,
    WorkItem,
    normalize_message_id,
    parse_work_item_records,
    split_multi_value,
)

__all__ = [
    # Grouping
    "Bucket",
    "EntryKind",
    "GroupingEngine",
    "GroupingResult",
    "SelectionEntry",
    "build_selection_list",
    # Thread matching
    "MatchTier",
    "ThreadMatch",
    "ThreadMatcher",
    # Work items
    "MessageIdentity",
    "WorkItem",
    "normalize_message_id",
    "parse_work_item_records",
    "split_multi_value",
]
