"""Named boolean evidence signals consumed by the scoring rules."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .sensors import NETWORK, CONSOLE, UI_SIGNALS

FEEDBACK_FLAGS = (
    "hasErrorSignal",
    "hasLoadingIndicator",
    "hasStatusSignal",
    "hasLiveRegion",
    "hasDialog",
)


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _positive(payload: Mapping[str, Any], key: str) -> bool:
    value = payload.get(key)
    return not isinstance(value, bool) and isinstance(value, (int, float)) and value > 0


def has_ui_feedback(ui_signals: Optional[Mapping[str, Any]]) -> bool:
    """Error, loading, status, live-region or dialog feedback before or after the action."""
    ui_signals = _mapping(ui_signals)
    for snapshot in (_mapping(ui_signals.get("before")), _mapping(ui_signals.get("after"))):
        if any(snapshot.get(flag) for flag in FEEDBACK_FLAGS):
            return True
        disabled = snapshot.get("disabledElements")
        if isinstance(disabled, (list, tuple)) and disabled:
            return True
    return False


@dataclass(frozen=True)
class EvidenceSignals:
    url_changed: bool = False
    dom_changed: bool = False
    screenshot_changed: bool = False
    network_failed: bool = False
    console_errors: bool = False
    ui_feedback_detected: bool = False
    slow_requests: bool = False

    def as_dict(self) -> Dict[str, bool]:
        return {
            "urlChanged": self.url_changed,
            "domChanged": self.dom_changed,
            "screenshotChanged": self.screenshot_changed,
            "networkFailed": self.network_failed,
            "consoleErrors": self.console_errors,
            "uiFeedbackDetected": self.ui_feedback_detected,
            "slowRequests": self.slow_requests,
        }


def extract_evidence_signals(
    sensors: Optional[Mapping[str, Any]],
    comparisons: Optional[Mapping[str, Any]],
) -> EvidenceSignals:
    sensors = _mapping(sensors)
    comparisons = _mapping(comparisons)
    network = _mapping(sensors.get(NETWORK))
    console = _mapping(sensors.get(CONSOLE))

    return EvidenceSignals(
        url_changed=comparisons.get("hasUrlChange") is True,
        dom_changed=comparisons.get("hasDomChange") is True,
        screenshot_changed=comparisons.get("hasVisibleChange") is True,
        network_failed=_positive(network, "failedRequests"),
        console_errors=console.get("hasErrors") is True,
        ui_feedback_detected=has_ui_feedback(sensors.get(UI_SIGNALS)),
        slow_requests=_positive(network, "slowRequestsCount"),
    )
