"""Sensor payload normalisation and per-channel presence predicates."""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

NETWORK = "network"
CONSOLE = "console"
UI_SIGNALS = "uiSignals"

UI_DELTA_KEYS = (
    "hasAnyDelta",
    "changed",
    "domChanged",
    "visibleChanged",
    "ariaChanged",
    "focusChanged",
    "textChanged",
)


class SensorState(Enum):
    """Classification of one raw sensor payload."""
    ABSENT = "ABSENT"
    FAILED = "FAILED"
    EMPTY = "EMPTY"
    PRESENT = "PRESENT"


def _count(payload: Mapping[str, Any], key: str) -> float:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    return value


def _non_empty_list(payload: Mapping[str, Any], key: str) -> bool:
    value = payload.get(key)
    return isinstance(value, (list, tuple)) and len(value) > 0


def has_network_data(summary: Optional[Mapping[str, Any]]) -> bool:
    """Any requests, failures, slow requests, or failed/slow URL lists."""
    if not isinstance(summary, Mapping):
        return False
    return (
        _count(summary, "totalRequests") > 0
        or _count(summary, "failedRequests") > 0
        or _count(summary, "slowRequests") > 0
        or _non_empty_list(summary, "topFailedUrls")
        or _non_empty_list(summary, "topSlowUrls")
    )


def has_console_data(summary: Optional[Mapping[str, Any]]) -> bool:
    """Any messages, errors, warnings or captured entries."""
    if not isinstance(summary, Mapping):
        return False
    return (
        _count(summary, "totalMessages") > 0
        or _count(summary, "errors") > 0
        or _count(summary, "warnings") > 0
        or _non_empty_list(summary, "entries")
    )


def has_ui_data(ui_signals: Optional[Mapping[str, Any]]) -> bool:
    """Any structural, visible, ARIA, focus or text delta."""
    if not isinstance(ui_signals, Mapping):
        return False
    diff = ui_signals.get("diff") or ui_signals
    if not isinstance(diff, Mapping):
        return False
    return any(diff.get(key) is True for key in UI_DELTA_KEYS)


CHANNEL_PREDICATES: Dict[str, Callable[[Any], bool]] = {
    NETWORK: has_network_data,
    CONSOLE: has_console_data,
    UI_SIGNALS: has_ui_data,
}


def normalize_sensor_state(payload: Any, has_data: Callable[[Any], bool]) -> SensorState:
    """Classify a raw channel payload.

    ``None`` is ABSENT. A mapping flagged with ``captureFailed: true`` or
    ``status: "FAILED"`` is FAILED. A non-mapping, an empty mapping, or one the
    channel predicate rejects is EMPTY. Anything else is PRESENT.
    """
    if payload is None:
        return SensorState.ABSENT
    if not isinstance(payload, Mapping) or not payload:
        return SensorState.EMPTY
    if payload.get("captureFailed") is True or payload.get("status") == "FAILED":
        return SensorState.FAILED
    return SensorState.PRESENT if has_data(payload) else SensorState.EMPTY


@dataclass(frozen=True)
class SensorPresence:
    """One boolean per channel (network, console, ui)."""
    network: bool
    console: bool
    ui: bool

    @property
    def all(self) -> bool:
        return self.network and self.console and self.ui

    @property
    def any(self) -> bool:
        return self.network or self.console or self.ui

    def missing(self) -> List[str]:
        return [name for name, present in asdict(self).items() if not present]

    def as_dict(self) -> Dict[str, bool]:
        return asdict(self)


def channel_states(sensors: Optional[Mapping[str, Any]]) -> Dict[str, SensorState]:
    sensors = sensors or {}
    return {
        channel: normalize_sensor_state(sensors.get(channel), predicate)
        for channel, predicate in CHANNEL_PREDICATES.items()
    }


def sensors_with_data(sensors: Optional[Mapping[str, Any]]) -> SensorPresence:
    """Which channels carry meaningful data. Gates HIGH eligibility."""
    states = channel_states(sensors)
    return SensorPresence(
        network=states[NETWORK] is SensorState.PRESENT,
        console=states[CONSOLE] is SensorState.PRESENT,
        ui=states[UI_SIGNALS] is SensorState.PRESENT,
    )


def sensors_provided(sensors: Optional[Mapping[str, Any]]) -> SensorPresence:
    """Which channel payloads were supplied at all, regardless of content."""
    states = channel_states(sensors)
    return SensorPresence(
        network=states[NETWORK] is not SensorState.ABSENT,
        console=states[CONSOLE] is not SensorState.ABSENT,
        ui=states[UI_SIGNALS] is not SensorState.ABSENT,
    )
