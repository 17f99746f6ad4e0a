"""Truth-aware reconciliation: invariants, Evidence Law, reason codes, explanations."""

from .engine import EnhancedResult, TruthAwareEngine
from .evidence_law import apply_evidence_law, has_substantive_evidence
from .explanations import bound_explanation_strings, generate_truth_aware_explanation
from .invariants import check_confidence_invariants, enforce_finding_invariants
from .reason_codes import generate_reason_codes, get_reason_code_metadata

__all__ = [
    "EnhancedResult",
    "TruthAwareEngine",
    "apply_evidence_law",
    "has_substantive_evidence",
    "bound_explanation_strings",
    "generate_truth_aware_explanation",
    "check_confidence_invariants",
    "enforce_finding_invariants",
    "generate_reason_codes",
    "get_reason_code_metadata",
]
