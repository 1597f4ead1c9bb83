"""Find the open work item a message directly belongs to.

Two strategies, tried in order across the whole item list:

1. Hard match: the message's In-Reply-To equals the message-id of one of an
   item's active message references.
2. Soft match: the message's conversation id is linked to the item.

The first item (in list order) satisfying the strongest strategy wins.
A hard match on any item beats a soft match on an earlier one.

Usage:
    from pmtriage.engine.thread_matcher import ThreadMatcher

    match = ThreadMatcher().find_match(identity, open_items)
    if match:
        preselect(match.item)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum

from pmtriage.core.logging import get_logger
from pmtriage.engine.work_items import MessageIdentity, WorkItem, normalize_message_id

logger = get_logger(__name__)


class MatchTier(StrEnum):
    """How a message was tied to a work item."""

    HARD = "hard"
    SOFT = "soft"


@dataclass(frozen=True, slots=True)
class ThreadMatch:
    """A work item matched to a message.

    Attributes:
        item: The matched work item
        tier: Which strategy produced the match
    """

    item: WorkItem
    tier: MatchTier


class ThreadMatcher:
    """Matches a message to at most one open work item by identity headers."""

    def find_match(
        self,
        identity: MessageIdentity,
        items: Sequence[WorkItem],
    ) -> ThreadMatch | None:
        """Return the best directly-linked work item for a message.

        Args:
            identity: The message's identity headers
            items: Open work items in sheet order

        Returns:
            ThreadMatch for the winning item, or None when nothing matches
        """
        if not items:
            return None

        in_reply_to = normalize_message_id(identity.in_reply_to)
        if in_reply_to:
            for item in items:
                if in_reply_to in item.tracked_message_ids:
                    logger.debug(
                        "thread_match_found",
                        tier=MatchTier.HARD.value,
                        item_id=item.id,
                        title=item.title,
                    )
                    return ThreadMatch(item=item, tier=MatchTier.HARD)

        conversation_id = (identity.conversation_id or "").strip()
        if conversation_id:
            for item in items:
                if conversation_id in item.linked_thread_ids:
                    logger.debug(
                        "thread_match_found",
                        tier=MatchTier.SOFT.value,
                        item_id=item.id,
                        title=item.title,
                    )
                    return ThreadMatch(item=item, tier=MatchTier.SOFT)

        logger.debug("thread_match_not_found", items=len(items))
        return None
