"""Weighted keyword/sender classifier for the project/package hierarchy.

Scoring runs in two phases over a RuleStore:

1. PARENT rules score projects. Every keyword they match is claimed.
2. ITEM rules score packages using only keywords not claimed in phase 1,
   and each package score is back-propagated into the package's project.

A rule earns keyword_points when any of its keywords appears as a whole
word in the subject+body, sender_points when any of its sender patterns is
contained in the sender or a To recipient, and a priority bonus of
(priority_base - priority) once it has matched anything. Keyword and
sender points add up.

Selection is done per level: the unique top scorer wins, a tie at the top
marks the result ambiguous and lists every tied target as a candidate.

Usage:
    from pmtriage.classifier.text_classifier import TextClassifier

    classifier = TextClassifier(store, scoring=config.scoring)
    result = classifier.classify(subject, body, sender, to_recipients)
    if result.is_ambiguous:
        prompt_user(result.candidates)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from functools import lru_cache

import regex

from pmtriage.classifier.rules import Rule, RuleScope, RuleStore
from pmtriage.config_schema import ScoringConfig
from pmtriage.core.logging import get_logger

logger = get_logger(__name__)

# Regex timeout in seconds for keyword searches over message text
REGEX_TIMEOUT = 1.0

_LEVEL_NOUNS = {
    RuleScope.PARENT: "projects",
    RuleScope.ITEM: "packages",
}


@dataclass(frozen=True, slots=True)
class ClassificationCandidate:
    """A target tied for the top score at one level.

    Attributes:
        name: Project or package id
        score: The tied score
        type: Level the candidate belongs to
    """

    name: str
    score: int
    type: RuleScope


@dataclass(frozen=True)
class ClassificationResult:
    """Outcome of classifying one message.

    Attributes:
        suggested_item_id: Winning package, or "" when none or tied
        suggested_parent_id: Winning project, or the default project when none or tied
        is_ambiguous: True when either level has a tie at the top
        ambiguity_reason: Human-readable description of the tie(s)
        candidates: Tied targets, only populated when ambiguous
    """

    suggested_item_id: str
    suggested_parent_id: str
    is_ambiguous: bool = False
    ambiguity_reason: str = ""
    candidates: tuple[ClassificationCandidate, ...] = ()

    def candidates_for(self, scope: RuleScope) -> list[ClassificationCandidate]:
        """Tied candidates of one level, highest score first."""
        return sorted(
            (c for c in self.candidates if c.type is scope),
            key=lambda c: c.score,
            reverse=True,
        )


class ScoreBoard:
    """Score accumulator with an implicit zero for unseen targets.

    Targets keep the order in which they first scored, so ranking (a stable
    sort on score) never depends on hashing.
    """

    def __init__(self) -> None:
        self._scores: dict[str, int] = {}

    def add(self, target: str, points: int) -> None:
        self._scores[target] = self._scores.get(target, 0) + points

    def __getitem__(self, target: str) -> int:
        return self._scores.get(target, 0)

    def __contains__(self, target: object) -> bool:
        return target in self._scores

    def __len__(self) -> int:
        return len(self._scores)

    def ranked(self) -> list[tuple[str, int]]:
        """Targets by score descending; equal scores keep first-scored order."""
        return sorted(self._scores.items(), key=lambda item: item[1], reverse=True)

    def as_dict(self) -> dict[str, int]:
        return dict(self._scores)


@dataclass
class ScoreSheet:
    """Raw scores behind a classification, useful for debugging rule sets."""

    parent_scores: ScoreBoard = field(default_factory=ScoreBoard)
    item_scores: ScoreBoard = field(default_factory=ScoreBoard)
    claimed_keywords: set[str] = field(default_factory=set)


class TextClassifier:
    """Suggests a project and package for a message from weighted rules.

    The classifier holds only its rule snapshot and scoring weights; each
    call is a pure function of its arguments.
    """

    def __init__(self, rules: RuleStore, scoring: ScoringConfig | None = None):
        """Initialize the classifier.

        Args:
            rules: Rule snapshot to score against
            scoring: Scoring weights (defaults when omitted)
        """
        self._rules = rules
        self._scoring = scoring or ScoringConfig()

    @property
    def rule_count(self) -> int:
        return len(self._rules)

    def score(
        self,
        subject: str | None,
        body: str | None,
        sender: str | None,
        to_recipients: str | Sequence[str] | None = None,
    ) -> ScoreSheet:
        """Run both scoring phases and return the raw score boards.

        Args:
            subject: Message subject
            body: Message body text
            sender: Sender address
            to_recipients: To recipients, as a list or one ';'-separated string

        Returns:
            ScoreSheet with project scores, package scores and claimed keywords
        """
        text = f"{subject or ''} {body or ''}".lower()
        senders = candidate_senders(sender, to_recipients)
        sheet = ScoreSheet()

        for rule in self._rules.rules_for(RuleScope.PARENT):
            matched = matched_keywords(text, rule.keywords)
            points = self._match_points(rule, bool(matched), senders)
            if points == 0:
                continue

            sheet.claimed_keywords.update(matched)
            score = points + self._priority_bonus(rule.priority)
            sheet.parent_scores.add(rule.target_id, score)
            logger.debug(
                "rule_matched",
                scope=rule.scope.value,
                target=rule.target_id,
                keywords=matched,
                score=score,
            )

        for rule in self._rules.rules_for(RuleScope.ITEM):
            unclaimed = [k for k in rule.keywords if k not in sheet.claimed_keywords]
            matched = matched_keywords(text, unclaimed)
            points = self._match_points(rule, bool(matched), senders)
            if points == 0:
                continue

            score = points + self._priority_bonus(rule.priority)
            if score <= 0:
                logger.debug("rule_score_not_positive", target=rule.target_id, score=score)
                continue

            sheet.item_scores.add(rule.target_id, score)
            if rule.parent_id:
                sheet.parent_scores.add(rule.parent_id, score)
            logger.debug(
                "rule_matched",
                scope=rule.scope.value,
                target=rule.target_id,
                parent=rule.parent_id or None,
                keywords=matched,
                score=score,
            )

        return sheet

    def classify(
        self,
        subject: str | None,
        body: str | None,
        sender: str | None,
        to_recipients: str | Sequence[str] | None = None,
    ) -> ClassificationResult:
        """Classify a message into a project and package.

        Args:
            subject: Message subject
            body: Message body text
            sender: Sender address
            to_recipients: To recipients, as a list or one ';'-separated string

        Returns:
            ClassificationResult with suggestions, or tied candidates when ambiguous
        """
        sheet = self.score(subject, body, sender, to_recipients)

        parent_winner, parent_ties = _select(sheet.parent_scores, RuleScope.PARENT)
        item_winner, item_ties = _select(sheet.item_scores, RuleScope.ITEM)

        tied_levels = [
            scope for scope, ties in ((RuleScope.PARENT, parent_ties), (RuleScope.ITEM, item_ties))
            if ties
        ]
        reason = " and ".join(
            f"multiple {_LEVEL_NOUNS[scope]} have matching scores" for scope in tied_levels
        )

        result = ClassificationResult(
            suggested_item_id=item_winner or "",
            suggested_parent_id=parent_winner or self._scoring.default_parent_id,
            is_ambiguous=bool(tied_levels),
            ambiguity_reason=reason[:1].upper() + reason[1:],
            candidates=tuple(parent_ties + item_ties),
        )

        logger.debug(
            "message_classified",
            project=result.suggested_parent_id,
            package=result.suggested_item_id or None,
            ambiguous=result.is_ambiguous,
            candidates=len(result.candidates),
        )
        return result

    def _match_points(self, rule: Rule, keyword_matched: bool, senders: Sequence[str]) -> int:
        points = 0
        if keyword_matched:
            points += self._scoring.keyword_points
        if matches_sender(senders, rule.sender_patterns):
            points += self._scoring.sender_points
        return points

    def _priority_bonus(self, priority: int) -> int:
        bonus = self._scoring.priority_base - priority
        if self._scoring.clamp_priority_bonus:
            return max(bonus, 0)
        return bonus


def _select(
    board: ScoreBoard,
    scope: RuleScope,
) -> tuple[str | None, list[ClassificationCandidate]]:
    """Pick the winner of one level, or the tied top candidates."""
    ranked = board.ranked()
    if not ranked or ranked[0][1] <= 0:
        return None, []

    top_name, top_score = ranked[0]
    if len(ranked) > 1 and ranked[1][1] == top_score:
        return None, [
            ClassificationCandidate(name=name, score=score, type=scope)
            for name, score in ranked
            if score == top_score
        ]
    return top_name, []


@lru_cache(maxsize=1024)
def _keyword_pattern(keyword: str) -> regex.Pattern:
    return regex.compile(rf"\b{regex.escape(keyword)}\b")


def matched_keywords(text: str, keywords: Iterable[str]) -> list[str]:
    """Return the keywords that occur in text as whole words.

    Both text and keywords are expected lowercased. "ship" does not match
    "shipment".
    """
    matched: list[str] = []
    for keyword in keywords:
        if not keyword:
            continue
        try:
            if _keyword_pattern(keyword).search(text, timeout=REGEX_TIMEOUT):
                matched.append(keyword)
        except (regex.error, TimeoutError):
            logger.warning("keyword_match_failed", keyword=keyword)
    return matched


def matches_sender(senders: Sequence[str], patterns: Iterable[str]) -> bool:
    """Check whether any sender contains any pattern as a substring.

    Patterns arrive with their leading '*' already stripped, so
    '*@acme.com' matches 'john@acme.com' and also 'john@notacme.com.org'.
    """
    if not senders:
        return False
    return any(pattern and pattern in sender for pattern in patterns for sender in senders)


def split_recipients(recipients: str | Sequence[str] | None) -> list[str]:
    """Split a ';'-separated recipient string (or list) into lowercased addresses."""
    if not recipients:
        return []
    parts = recipients.split(";") if isinstance(recipients, str) else recipients
    return [p.strip().lower() for p in parts if p and p.strip()]


def candidate_senders(
    sender: str | None,
    to_recipients: str | Sequence[str] | None,
) -> list[str]:
    """Sender followed by To recipients, lowercased, blanks removed."""
    senders = [sender.strip().lower()] if sender and sender.strip() else []
    return senders + split_recipients(to_recipients)
