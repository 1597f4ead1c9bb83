"""Partition open work items into priority-ordered buckets for a message.

Four passes run in a fixed order; each item lands in the first bucket that
claims it:

1. Linked: items tied to the message by identity, ranked by link weight
   (reply to a tracked message > message already tracked > same thread).
2. Package: items of the package in context.
3. Project: items of the project in context.
4. Other: everything else, in input order.

When no package/project context is supplied it is taken from the top
linked item. With no context at all, passes 2 and 3 claim nothing.

Usage:
    from pmtriage.engine.grouping import GroupingEngine, build_selection_list

    result = GroupingEngine(config.linking).group(open_items, identity)
    for entry in build_selection_list(result, expanded=False):
        print(entry.label)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from pmtriage.config_schema import LinkingConfig
from pmtriage.core.logging import get_logger
from pmtriage.engine.work_items import MessageIdentity, WorkItem, normalize_message_id

logger = get_logger(__name__)


class Bucket(StrEnum):
    """Grouping bucket, in claim order."""

    LINKED = "Linked"
    PACKAGE = "Package"
    PROJECT = "Project"
    OTHER = "Other"


@dataclass(frozen=True)
class GroupingResult:
    """Open work items split into four disjoint, ordered buckets.

    Attributes:
        linked: Items tied to the message, strongest link first
        package: Items of the package in context
        project: Items of the project in context
        other: All remaining items
        detected_package: Package context used for the package pass
        detected_project: Project context used for the project pass
    """

    linked: tuple[WorkItem, ...] = ()
    package: tuple[WorkItem, ...] = ()
    project: tuple[WorkItem, ...] = ()
    other: tuple[WorkItem, ...] = ()
    detected_package: str = ""
    detected_project: str = ""

    @property
    def best_match(self) -> WorkItem | None:
        """The strongest linked item, if any."""
        return self.linked[0] if self.linked else None

    def buckets(self) -> list[tuple[Bucket, tuple[WorkItem, ...]]]:
        return [
            (Bucket.LINKED, self.linked),
            (Bucket.PACKAGE, self.package),
            (Bucket.PROJECT, self.project),
            (Bucket.OTHER, self.other),
        ]


class GroupingEngine:
    """Builds the categorized work-item list for a message."""

    def __init__(self, linking: LinkingConfig | None = None):
        """Initialize the engine.

        Args:
            linking: Link weights (defaults when omitted)
        """
        self._linking = linking or LinkingConfig()

    def link_weight(self, item: WorkItem, identity: MessageIdentity) -> int:
        """Score how directly a message is tied to a work item.

        Returns:
            Reply weight when In-Reply-To hits a tracked message (newer hits
            weigh more), message-id weight when the message itself is tracked,
            thread weight when the conversation is linked, otherwise 0
        """
        tracked = item.tracked_message_ids

        in_reply_to = normalize_message_id(identity.in_reply_to)
        if in_reply_to:
            for position_from_end, tracked_id in enumerate(reversed(tracked)):
                if tracked_id == in_reply_to:
                    return self._reply_weight(position_from_end)

        message_id = normalize_message_id(identity.message_id)
        if message_id and message_id in tracked:
            return self._linking.message_id_weight

        conversation_id = (identity.conversation_id or "").strip()
        if conversation_id and conversation_id in item.linked_thread_ids:
            return self._linking.thread_weight

        return 0

    def group(
        self,
        items: Sequence[WorkItem],
        identity: MessageIdentity,
        package_context: str | None = None,
        project_context: str | None = None,
    ) -> GroupingResult:
        """Partition open work items relative to a message.

        Args:
            items: All open work items
            identity: The message's identity headers
            package_context: Package to favour; derived from the top linked item when blank
            project_context: Project to favour; derived from the top linked item when blank

        Returns:
            GroupingResult whose buckets together hold every input item exactly once
        """
        package = (package_context or "").strip()
        project = (project_context or "").strip()

        if not items:
            return GroupingResult(detected_package=package, detected_project=project)

        # Claims are tracked by position so duplicate ids cannot drop items
        claimed: set[int] = set()

        weighted: list[tuple[int, int]] = []
        for index, item in enumerate(items):
            weight = self.link_weight(item, identity)
            if weight > 0:
                weighted.append((weight, index))
                claimed.add(index)
        weighted.sort(key=lambda pair: pair[0], reverse=True)
        linked = tuple(items[index] for _, index in weighted)

        if linked:
            package = package or linked[0].item_id
            project = project or linked[0].parent_id

        package_items = self._claim(items, claimed, lambda item: item.item_id, package)
        project_items = self._claim(items, claimed, lambda item: item.parent_id, project)
        other = tuple(item for index, item in enumerate(items) if index not in claimed)

        result = GroupingResult(
            linked=linked,
            package=package_items,
            project=project_items,
            other=other,
            detected_package=package,
            detected_project=project,
        )

        logger.debug(
            "work_items_grouped",
            linked=len(result.linked),
            package=len(result.package),
            project=len(result.project),
            other=len(result.other),
            detected_package=package or None,
            detected_project=project or None,
        )
        return result

    def _reply_weight(self, position_from_end: int) -> int:
        # Counts down from the newest entry, not up as a literal
        # base + step * position reading would, so the newest hit ranks highest.
        # Floored above message_id_weight to keep reply hits in their own tier.
        weight = self._linking.reply_weight - self._linking.reply_position_step * position_from_end
        return max(weight, self._linking.message_id_weight + 1)

    @staticmethod
    def _claim(items, claimed, key, context) -> tuple[WorkItem, ...]:
        if not context:
            return ()
        wanted = context.casefold()
        picked: list[WorkItem] = []
        for index, item in enumerate(items):
            if index in claimed:
                continue
            if key(item).casefold() == wanted:
                picked.append(item)
                claimed.add(index)
        return tuple(picked)


# ---------------------------------------------------------------------------
# Selection list
# ---------------------------------------------------------------------------


class EntryKind(StrEnum):
    """Kind of row in a selection list."""

    HEADER = "header"
    ITEM = "item"
    MORE = "more"


NO_LINKED_HEADER = "No linked items - select one to update"
MORE_LABEL = "More..."


@dataclass(frozen=True, slots=True)
class SelectionEntry:
    """One row of a selection list.

    Only ITEM rows carry an item and are selectable.
    """

    kind: EntryKind
    label: str
    item: WorkItem | None = None
    bucket: Bucket | None = None

    @property
    def selectable(self) -> bool:
        return self.kind is EntryKind.ITEM


def _item_entries(bucket: Bucket, items: Sequence[WorkItem]) -> list[SelectionEntry]:
    return [
        SelectionEntry(
            kind=EntryKind.ITEM,
            label=f"[{bucket.value}] {item.display_label()}",
            item=item,
            bucket=bucket,
        )
        for item in items
    ]


def _header(text: str) -> SelectionEntry:
    return SelectionEntry(kind=EntryKind.HEADER, label=text)


def build_selection_list(result: GroupingResult, expanded: bool = False) -> list[SelectionEntry]:
    """Render a grouping result as a labeled selection list.

    Linked and package sections are always shown. Project and other sections
    sit behind a single "More..." entry until expanded.

    Args:
        result: Grouping to render
        expanded: Show project and other sections instead of the expander

    Returns:
        Ordered header, item and expander entries
    """
    entries: list[SelectionEntry] = []

    if result.linked:
        entries.append(_header("LINKED ITEMS"))
        entries.extend(_item_entries(Bucket.LINKED, result.linked))
    else:
        entries.append(_header(NO_LINKED_HEADER))

    if result.package:
        title = f"PACKAGE: {result.detected_package}" if result.detected_package else "PACKAGE ITEMS"
        entries.append(_header(title))
        entries.extend(_item_entries(Bucket.PACKAGE, result.package))

    if not (result.project or result.other):
        return entries

    if not expanded:
        entries.append(SelectionEntry(kind=EntryKind.MORE, label=MORE_LABEL))
        return entries

    if result.project:
        title = f"PROJECT: {result.detected_project}" if result.detected_project else "PROJECT ITEMS"
        entries.append(_header(title))
        entries.extend(_item_entries(Bucket.PROJECT, result.project))

    if result.other:
        entries.append(_header("OTHER"))
        entries.extend(_item_entries(Bucket.OTHER, result.other))

    return entries
