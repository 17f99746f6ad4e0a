"""Confidence policy: immutable value type, file loader and per-key cache."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Hashable, List, Mapping, Optional, Tuple

from silentverify.config.resolvers import resolve_policy_path
from silentverify.domain.exceptions import (
    ConfigurationError,
    PolicyNotFoundError,
    PolicyValidationError,
)

logger = logging.getLogger(__name__)

DEFAULT_VERSION = "1.0.0"
DEFAULT_SOURCE = "default"

DEFAULT_BASE_SCORES = MappingProxyType({
    # promise strength
    "promiseProven": 0.9,
    "promiseObserved": 0.7,
    "promiseWeak": 0.5,
    "promiseUnknown": 0.3,
    # observation strength
    "urlChanged": 0.3,
    "domChanged": 0.2,
    "uiFeedbackConfirmed": 0.3,
    "consoleErrors": 0.2,
    "networkFailure": 0.3,
    "networkSuccess": 0.2,
    # correlation quality
    "timingAligned": 0.1,
    "routeMatched": 0.2,
    "requestMatched": 0.2,
    "traceLinked": 0.1,
    # evidence completeness
    "screenshots": 0.3,
    "traces": 0.2,
    "signals": 0.3,
    "snippets": 0.2,
})

DEFAULT_THRESHOLDS = MappingProxyType({"high": 0.8, "medium": 0.55, "low": 0.3})

DEFAULT_WEIGHTS = MappingProxyType({
    "promiseStrength": 0.30,
    "observationStrength": 0.25,
    "correlationQuality": 0.15,
    "guardrails": 0.15,
    "evidenceCompleteness": 0.15,
})

DEFAULT_TRUTH_LOCKS = MappingProxyType({
    "evidenceCompleteRequired": True,
    "nonDeterministicMaxConfidence": 0.6,
    "guardrailsMaxNegative": True,
    "contradictionPenalty": 0.2,
})

REQUIRED_SECTIONS = ("baseScores", "thresholds", "weights")
REQUIRED_THRESHOLDS = ("high", "medium", "low")
REQUIRED_TRUTH_LOCKS = (
    "evidenceCompleteRequired",
    "nonDeterministicMaxConfidence",
    "guardrailsMaxNegative",
)
WEIGHT_SUM_TOLERANCE = 0.01


@dataclass(frozen=True, eq=False)
class ConfidencePolicy:
    """A loaded, validated policy. Never mutated after construction."""
    version: str
    base_scores: Mapping[str, float]
    thresholds: Mapping[str, float]
    weights: Mapping[str, float]
    truth_locks: Mapping[str, Any]
    source: str = DEFAULT_SOURCE

    def __post_init__(self):
        for name in ("base_scores", "thresholds", "weights", "truth_locks"):
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, source: str) -> "ConfidencePolicy":
        """Build from validated policy JSON. Truth locks always come from the defaults."""
        base_scores = dict(DEFAULT_BASE_SCORES)
        base_scores.update(data["baseScores"])
        return cls(
            version=data["version"],
            base_scores=base_scores,
            thresholds=data["thresholds"],
            weights=data["weights"],
            truth_locks=DEFAULT_TRUTH_LOCKS,
            source=source,
        )

    def report(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "source": self.source,
            "thresholds": dict(self.thresholds),
        }

    def applied(self) -> Dict[str, str]:
        """Audit reference carried on every enhanced result."""
        return {"version": self.version, "source": self.source}


DEFAULT_POLICY = ConfidencePolicy(
    version=DEFAULT_VERSION,
    base_scores=DEFAULT_BASE_SCORES,
    thresholds=DEFAULT_THRESHOLDS,
    weights=DEFAULT_WEIGHTS,
    truth_locks=DEFAULT_TRUTH_LOCKS,
    source=DEFAULT_SOURCE,
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_policy_data(data: Any, policy_path: Optional[str] = None) -> None:
    """Schema check for policy JSON; raises PolicyValidationError on the first problem."""

    def fail(message: str, field: str) -> PolicyValidationError:
        return PolicyValidationError(
            message, policy_path=policy_path, config_field=f"policy.{field}"
        )

    if not isinstance(data, Mapping):
        raise fail("Policy must be a JSON object", "root")

    if not isinstance(data.get("version"), str):
        raise fail("Policy 'version' must be a string", "version")

    for section in REQUIRED_SECTIONS:
        if not isinstance(data.get(section), Mapping):
            raise fail(f"Policy '{section}' must be an object", section)

    not_numeric = sorted(k for k, v in data["baseScores"].items() if not _is_number(v))
    if not_numeric:
        names = ", ".join(map(str, not_numeric))
        raise fail(f"Policy baseScores must be numbers (not numeric: {names})", "baseScores")

    weights = data["weights"]
    missing = [k for k in DEFAULT_WEIGHTS if not _is_number(weights.get(k))]
    if missing:
        raise fail(f"Policy weights missing numeric values for: {', '.join(missing)}", "weights")
    total = sum(weights[k] for k in DEFAULT_WEIGHTS)
    if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
        raise fail(f"Policy weights must sum to 1.0 (got {total:.4f})", "weights").add_suggestion(
            f"Adjust weights so they sum to 1.0 within {WEIGHT_SUM_TOLERANCE}"
        )

    thresholds = data["thresholds"]
    for key in REQUIRED_THRESHOLDS:
        value = thresholds.get(key)
        if not _is_number(value) or not 0.0 <= value <= 1.0:
            raise fail(f"Policy threshold '{key}' must be a number in [0, 1]", f"thresholds.{key}")

    truth_locks = data.get("truthLocks")
    if not isinstance(truth_locks, Mapping):
        raise fail("Policy 'truthLocks' must be an object", "truthLocks")
    missing = [k for k in REQUIRED_TRUTH_LOCKS if k not in truth_locks]
    if missing:
        raise fail(f"Policy truthLocks missing: {', '.join(missing)}", "truthLocks")


class PolicyLoader:
    """Reads and validates policy files."""

    def load(
        self,
        policy_path: Optional[str] = None,
        project_dir: Optional[str] = None,
    ) -> ConfidencePolicy:
        if not policy_path:
            return DEFAULT_POLICY

        path = resolve_policy_path(policy_path, project_dir)
        try:
            if not path.is_file():
                raise PolicyNotFoundError(str(path))
            data = self._read_json(path)
            validate_policy_data(data, str(path))
            policy = ConfidencePolicy.from_mapping(data, source=str(path))
        except ConfigurationError:
            raise
        except Exception as e:
            raise ConfigurationError(
                f"Failed to load confidence policy {path}: {str(e)}",
                config_field="policy.policy_path",
            ) from e

        logger.info("Loaded confidence policy %s from %s", policy.version, policy.source)
        return policy

    @staticmethod
    def _read_json(path: Path) -> Any:
        try:
            with open(path, "r", encoding="utf-8") as fh:
                return json.load(fh)
        except json.JSONDecodeError as e:
            raise PolicyValidationError(
                f"Policy file is not valid JSON: {e.msg} (line {e.lineno})",
                policy_path=str(path),
                config_field="policy.policy_path",
            ) from e


class PolicyCache:
    """Loaded policies keyed by the literal ``(project_dir, policy_path)`` pair.

    Each key is loaded at most once; later lookups return the same instance.
    Instantiate a fresh cache for isolation instead of clearing a shared one.
    """

    def __init__(self, loader: Optional[PolicyLoader] = None):
        self._loader = loader or PolicyLoader()
        self._policies: Dict[Tuple[Hashable, Hashable], ConfidencePolicy] = {}

    def get(
        self,
        policy_path: Optional[str] = None,
        project_dir: Optional[str] = None,
    ) -> ConfidencePolicy:
        key = (project_dir, policy_path)
        policy = self._policies.get(key)
        if policy is None:
            policy = self._loader.load(policy_path, project_dir)
            self._policies[key] = policy
            logger.debug("Cached policy for key %r", key)
        return policy

    def clear(self) -> None:
        self._policies.clear()

    def stats(self) -> Dict[str, Any]:
        return {"size": len(self._policies), "keys": [list(k) for k in self._policies]}

    def __len__(self) -> int:
        return len(self._policies)
