import pytest

from silentverify.signals.sensors import (
    SensorState,
    has_console_data,
    has_network_data,
    has_ui_data,
    normalize_sensor_state,
    sensors_provided,
    sensors_with_data,
)


@pytest.mark.parametrize(
    "summary, expected",
    [
        (None, False),
        ({}, False),
        ({"totalRequests": 0}, False),
        ({"totalRequests": 2}, True),
        ({"failedRequests": 1}, True),
        ({"slowRequests": 1}, True),
        ({"topFailedUrls": ["/api/x"]}, True),
        ({"topSlowUrls": []}, False),
        ({"totalRequests": True}, False),
    ],
)
def test_has_network_data(summary, expected):
    assert has_network_data(summary) is expected


def test_has_console_data_counts_messages_errors_warnings_and_entries():
    assert not has_console_data({"totalMessages": 0, "errors": 0})
    assert has_console_data({"totalMessages": 3})
    assert has_console_data({"errors": 1})
    assert has_console_data({"warnings": 2})
    assert has_console_data({"entries": [{"level": "log"}]})


def test_has_ui_data_reads_diff_or_top_level_flags():
    assert not has_ui_data(None)
    assert not has_ui_data({"diff": {"changed": False}})
    assert has_ui_data({"diff": {"changed": True}})
    assert has_ui_data({"diff": {"focusChanged": True}})
    assert has_ui_data({"textChanged": True})
    # truthy but not True is not a delta
    assert not has_ui_data({"diff": {"changed": "yes"}})


def test_normalize_sensor_state_classifies_payloads():
    assert normalize_sensor_state(None, has_network_data) is SensorState.ABSENT
    assert normalize_sensor_state({}, has_network_data) is SensorState.EMPTY
    assert normalize_sensor_state("junk", has_network_data) is SensorState.EMPTY
    assert normalize_sensor_state({"totalRequests": 0}, has_network_data) is SensorState.EMPTY
    assert normalize_sensor_state({"totalRequests": 4}, has_network_data) is SensorState.PRESENT
    assert normalize_sensor_state({"captureFailed": True}, has_network_data) is SensorState.FAILED
    assert normalize_sensor_state({"status": "FAILED", "totalRequests": 4}, has_network_data) is SensorState.FAILED


def test_provided_versus_with_data():
    sensors = {
        "network": {"totalRequests": 1},
        "console": {},
    }
    provided = sensors_provided(sensors)
    with_data = sensors_with_data(sensors)

    assert provided.as_dict() == {"network": True, "console": True, "ui": False}
    assert with_data.as_dict() == {"network": True, "console": False, "ui": False}
    assert not provided.all
    assert provided.missing() == ["ui"]
    assert with_data.missing() == ["console", "ui"]
    assert with_data.any


def test_no_sensors_at_all():
    presence = sensors_with_data(None)
    assert not presence.any
    assert presence.missing() == ["network", "console", "ui"]
