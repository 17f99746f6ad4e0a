"""Declarative boost/penalty rules keyed by finding type.

Every rule whose predicate holds contributes its weight; rules are evaluated in
declaration order and the applied reasons keep that order. Adding a finding
type is a new ``RULE_TABLE`` entry, not new control flow.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Tuple

from silentverify.signals.evidence import EvidenceSignals
from silentverify.signals.expectations import ExpectationStrength

DEFAULT_BASE_SCORE = 50


@dataclass(frozen=True)
class RuleContext:
    """Everything a rule predicate may look at."""
    signals: EvidenceSignals
    strength: ExpectationStrength
    expectation: Mapping[str, Any] = field(default_factory=dict)

    @property
    def proven(self) -> bool:
        return self.strength is ExpectationStrength.PROVEN


@dataclass(frozen=True)
class Rule:
    weight: int
    reason: str
    predicate: Callable[[RuleContext], bool]


@dataclass(frozen=True)
class RuleSet:
    base_score: int
    boosts: Tuple[Rule, ...] = ()
    penalties: Tuple[Rule, ...] = ()


@dataclass
class RuleOutcome:
    total_boosts: int = 0
    total_penalties: int = 0
    boosts: List[str] = field(default_factory=list)
    penalties: List[str] = field(default_factory=list)


def _zero_requests(ctx: RuleContext) -> bool:
    return (ctx.expectation.get("totalRequests") or 0) == 0


RULE_TABLE: Mapping[str, RuleSet] = MappingProxyType({
    "network_silent_failure": RuleSet(
        base_score=70,
        boosts=(
            Rule(10, "Network request failed", lambda c: c.signals.network_failed),
            Rule(8, "Console errors present", lambda c: c.signals.console_errors),
            Rule(6, "Silent failure: no user feedback on network error",
                 lambda c: c.signals.network_failed and not c.signals.ui_feedback_detected),
        ),
        penalties=(
            Rule(10, "UI feedback detected (suggests not silent)",
                 lambda c: c.signals.ui_feedback_detected),
        ),
    ),
    "validation_silent_failure": RuleSet(
        base_score=60,
        boosts=(
            Rule(10, "Validation errors in console", lambda c: c.signals.console_errors),
            Rule(8, "Silent validation: errors logged but no visible feedback",
                 lambda c: c.signals.console_errors and not c.signals.ui_feedback_detected),
        ),
        penalties=(
            Rule(10, "Error feedback visible (not silent)", lambda c: c.signals.ui_feedback_detected),
        ),
    ),
    "missing_feedback_failure": RuleSet(
        base_score=55,
        boosts=(
            Rule(10, "Slow requests detected", lambda c: c.signals.slow_requests),
            Rule(8, "Network activity without user feedback",
                 lambda c: c.signals.network_failed and not c.signals.ui_feedback_detected),
        ),
        penalties=(
            Rule(10, "Loading indicator detected", lambda c: c.signals.ui_feedback_detected),
        ),
    ),
    "no_effect_silent_failure": RuleSet(
        base_score=50,
        boosts=(
            Rule(10, "Expected URL change did not occur", lambda c: not c.signals.url_changed),
            Rule(6, "DOM state unchanged", lambda c: not c.signals.dom_changed),
            Rule(5, "No visible changes", lambda c: not c.signals.screenshot_changed),
        ),
        penalties=(
            Rule(10, "Network activity detected (potential effect)", lambda c: c.signals.network_failed),
            Rule(8, "UI feedback changed (potential effect)", lambda c: c.signals.ui_feedback_detected),
        ),
    ),
    "missing_network_action": RuleSet(
        base_score=65,
        boosts=(
            Rule(10, "Code promise verified via AST analysis", lambda c: c.proven),
            Rule(8, "Zero network activity despite code promise",
                 lambda c: not c.signals.network_failed and _zero_requests(c)),
            Rule(6, "Console errors may have prevented action", lambda c: c.signals.console_errors),
        ),
        penalties=(
            Rule(15, "Other network requests occurred", lambda c: c.signals.network_failed),
        ),
    ),
    "missing_state_action": RuleSet(
        base_score=60,
        boosts=(
            Rule(10, "State mutation proven via cross-file analysis", lambda c: c.proven),
            Rule(8, "DOM unchanged (no state mutation visible)", lambda c: not c.signals.dom_changed),
        ),
        penalties=(
            Rule(10, "Network activity (deferred state update possible)", lambda c: c.signals.network_failed),
            Rule(8, "UI feedback suggests state managed differently",
                 lambda c: c.signals.ui_feedback_detected),
        ),
    ),
    "navigation_silent_failure": RuleSet(
        base_score=75,
        boosts=(
            Rule(10, "Expected URL change did not occur", lambda c: not c.signals.url_changed),
            Rule(8, "No user-visible feedback on navigation failure",
                 lambda c: not c.signals.ui_feedback_detected),
            Rule(6, "Navigation errors in console", lambda c: c.signals.console_errors),
        ),
        penalties=(
            Rule(10, "UI feedback detected (suggests navigation feedback provided)",
                 lambda c: c.signals.ui_feedback_detected),
            Rule(5, "URL changed (navigation may have succeeded)", lambda c: c.signals.url_changed),
        ),
    ),
    "partial_navigation_failure": RuleSet(
        base_score=65,
        boosts=(
            Rule(10, "Navigation started but target not reached",
                 lambda c: c.signals.url_changed and not c.signals.ui_feedback_detected),
            Rule(8, "No user-visible feedback on partial navigation",
                 lambda c: not c.signals.ui_feedback_detected),
        ),
        penalties=(
            Rule(10, "UI feedback detected (suggests navigation feedback provided)",
                 lambda c: c.signals.ui_feedback_detected),
        ),
    ),
    "flow_silent_failure": RuleSet(base_score=70),
    "observed_break": RuleSet(base_score=50),
})


def rules_for(finding_type: str) -> RuleSet:
    """Rule set for ``finding_type``; unknown types score from the default base with no rules."""
    return RULE_TABLE.get(finding_type) or RuleSet(base_score=DEFAULT_BASE_SCORE)


def apply_rules(rule_set: RuleSet, ctx: RuleContext) -> RuleOutcome:
    outcome = RuleOutcome()
    for rule in rule_set.boosts:
        if rule.predicate(ctx):
            outcome.total_boosts += rule.weight
            outcome.boosts.append(rule.reason)
    for rule in rule_set.penalties:
        if rule.predicate(ctx):
            outcome.total_penalties += rule.weight
            outcome.penalties.append(rule.reason)
    return outcome
