"""
Tests for anomaly detection and overall system status.
"""
from datetime import datetime, timezone

import pytest

from agents.intelligence.anomaly import detect_anomalies, overall_status
from agents.intelligence.models import AlertType, HistoryEntry, Severity

def history(*moistures, pump_on=True):
    return [HistoryEntry(soil_moisture=m, temperature=28, humidity=60, pump_on=pump_on) for m in moistures]

def alert_types(alerts):
    return [alert.type for alert in alerts]

class TestPumpAnomaly:
    def test_pump_on_without_moisture_rise(self, make_field_state):
        fs = make_field_state(soil_moisture=30.5, pump_on=True)
        alerts = detect_anomalies(fs, history(30, 30, 30.5))
        assert alert_types(alerts) == [AlertType.PUMP_ANOMALY]
        assert alerts[0].severity == Severity.HIGH
        assert overall_status(alerts) == "WARNING"

    def test_rising_moisture_is_normal(self, make_field_state):
        fs = make_field_state(soil_moisture=33, pump_on=True)
        assert detect_anomalies(fs, history(30, 31, 33)) == []

    def test_pump_off_is_ignored(self, make_field_state):
        fs = make_field_state(soil_moisture=30, pump_on=False)
        assert detect_anomalies(fs, history(30, 30, 30)) == []

    def test_short_history_is_ignored(self, make_field_state):
        fs = make_field_state(soil_moisture=30, pump_on=True)
        assert detect_anomalies(fs, history(30, 30)) == []

    def test_only_latest_window_counts(self, make_field_state):
        fs = make_field_state(soil_moisture=40, pump_on=True)
        # earlier readings rose, the last three are flat
        assert alert_types(detect_anomalies(fs, history(20, 30, 40, 40, 40))) == [AlertType.PUMP_ANOMALY]

    def test_window_and_rise_are_configurable(self, make_field_state):
        fs = make_field_state(soil_moisture=31, pump_on=True)
        readings = history(30, 30.5, 31)
        assert detect_anomalies(fs, readings, pump_window=5) == []
        assert detect_anomalies(fs, readings, pump_min_rise=0.5) == []

class TestEnvironmentalAlerts:
    def test_sensor_failure_and_frost(self, make_field_state):
        alerts = detect_anomalies(make_field_state(temperature=0, humidity=0))
        assert alert_types(alerts) == [AlertType.SENSOR_FAILURE, AlertType.FROST_RISK]
        assert alerts[0].severity == Severity.MEDIUM

    def test_waterlogging(self, make_field_state):
        alerts = detect_anomalies(make_field_state(soil_moisture=97))
        assert alert_types(alerts) == [AlertType.WATERLOGGING]
        assert "97%" in alerts[0].message

    def test_ndvi_moisture_conflict_is_monitor(self, make_field_state):
        alerts = detect_anomalies(make_field_state(soil_moisture=65, ndvi=0.2))
        assert alert_types(alerts) == [AlertType.NDVI_MOISTURE_CONFLICT]
        assert overall_status(alerts) == "MONITOR"

    @pytest.mark.parametrize("temperature, expected", [
        (43, [AlertType.HEAT_STRESS]),
        (42, []),
        (1.5, [AlertType.FROST_RISK]),
        (2, []),
    ])
    def test_temperature_limits(self, make_field_state, temperature, expected):
        assert alert_types(detect_anomalies(make_field_state(temperature=temperature))) == expected

    def test_boundaries_do_not_fire(self, make_field_state):
        assert detect_anomalies(make_field_state(soil_moisture=95)) == []
        assert detect_anomalies(make_field_state(soil_moisture=60, ndvi=0.1)) == []

class TestAlertOrdering:
    def test_fixed_order_when_many_fire(self, make_field_state):
        fs = make_field_state(soil_moisture=97, ndvi=0.2, temperature=45, pump_on=True)
        alerts = detect_anomalies(fs, history(96, 96, 97))
        assert alert_types(alerts) == [
            AlertType.PUMP_ANOMALY,
            AlertType.WATERLOGGING,
            AlertType.NDVI_MOISTURE_CONFLICT,
            AlertType.HEAT_STRESS,
        ]

    def test_alerts_share_evaluation_timestamp(self, make_field_state):
        now = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        alerts = detect_anomalies(make_field_state(soil_moisture=97, temperature=45), now=now)
        assert {alert.timestamp for alert in alerts} == {now}

    def test_healthy_field(self, make_field_state):
        alerts = detect_anomalies(make_field_state())
        assert alerts == []
        assert overall_status(alerts) == "HEALTHY"
