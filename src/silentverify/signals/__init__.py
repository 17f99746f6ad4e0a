"""Normalised views over raw sensor, expectation and comparison payloads."""

from .sensors import (
    SensorState,
    SensorPresence,
    normalize_sensor_state,
    has_network_data,
    has_console_data,
    has_ui_data,
    sensors_with_data,
    sensors_provided,
)
from .expectations import ExpectationStrength, classify_expectation
from .evidence import EvidenceSignals, extract_evidence_signals, has_ui_feedback

__all__ = [
    "SensorState",
    "SensorPresence",
    "normalize_sensor_state",
    "has_network_data",
    "has_console_data",
    "has_ui_data",
    "sensors_with_data",
    "sensors_provided",
    "ExpectationStrength",
    "classify_expectation",
    "EvidenceSignals",
    "extract_evidence_signals",
    "has_ui_feedback",
]
