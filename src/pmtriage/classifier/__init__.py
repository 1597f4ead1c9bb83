"""Message classification components.

This package provides rule-based project/package classification:
- Rule model and sheet-row ingestion
- Weighted two-level text classifier with ambiguity detection
"""

from pmtriage.classifier.rules import Rule, RuleScope, RuleStore, parse_rule_rows
from pmtriage.classifier.text_classifier import (
    ClassificationCandidate,
    ClassificationResult,
    ScoreBoard,
    ScoreSheet,
    TextClassifier,
)

__all__ = [
    # Rules
    "Rule",
    "RuleScope",
    "RuleStore",
    "parse_rule_rows",
    # Classifier
    "ClassificationCandidate",
    "ClassificationResult",
    "ScoreBoard",
    "ScoreSheet",
    "TextClassifier",
]
