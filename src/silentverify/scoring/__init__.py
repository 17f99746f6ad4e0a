"""Rule-based confidence scoring."""

from .confidence import ConfidenceScorer
from .models import ScoreResult
from .rules import RULE_TABLE, Rule, RuleSet, apply_rules

__all__ = [
    "ConfidenceScorer",
    "ScoreResult",
    "RULE_TABLE",
    "Rule",
    "RuleSet",
    "apply_rules",
]
