# agents/intelligence/anomaly.py
"""
Anomaly detection over the current field state and recent sensor history
"""
from datetime import datetime
from typing import List, Optional, Sequence

from agents.intelligence.models import (
    AlertType, AnomalyAlert, FieldState, HistoryEntry, Severity, utc_now
)

PUMP_WINDOW = 3
PUMP_MIN_RISE_PCT = 2.0
WATERLOGGING_PCT = 95
CONFLICT_MOISTURE_PCT = 60
CONFLICT_NDVI = 0.25
HEAT_STRESS_C = 42
FROST_RISK_C = 2

def _pump_ineffective(
    field_state: FieldState,
    history: Sequence[HistoryEntry],
    window: int,
    min_rise: float
) -> bool:
    if not field_state.pump_on or len(history) < window:
        return False
    recent = [entry.soil_moisture for entry in history[-window:]]
    if recent[0] is None or recent[-1] is None:
        return False
    return recent[-1] - recent[0] < min_rise

def detect_anomalies(
    field_state: FieldState,
    history: Optional[Sequence[HistoryEntry]] = None,
    now: Optional[datetime] = None,
    pump_window: int = PUMP_WINDOW,
    pump_min_rise: float = PUMP_MIN_RISE_PCT
) -> List[AnomalyAlert]:
    """
    Run every anomaly check and return the alerts that fired.

    Checks are independent; alerts come back in a fixed order:
    pump, sensor, waterlogging, NDVI conflict, heat, frost.
    """
    history = history or []
    timestamp = now or utc_now()
    alerts: List[AnomalyAlert] = []
    m = field_state.soil_moisture
    t = field_state.temperature

    def alert(alert_type: AlertType, severity: Severity, message: str) -> None:
        alerts.append(AnomalyAlert(type=alert_type, severity=severity, message=message, timestamp=timestamp))

    if _pump_ineffective(field_state, history, pump_window, pump_min_rise):
        alert(AlertType.PUMP_ANOMALY, Severity.HIGH,
              "Motor is ON but soil moisture not increasing. "
              "Possible pipe leak, pump malfunction, or sensor failure.")

    if t == 0 and field_state.humidity == 0:
        alert(AlertType.SENSOR_FAILURE, Severity.MEDIUM,
              "Temperature and humidity both 0: possible DHT sensor failure or power glitch.")

    if m > WATERLOGGING_PCT:
        alert(AlertType.WATERLOGGING, Severity.HIGH,
              f"Soil moisture critically high ({m:g}%). Risk of waterlogging and root rot.")

    if m > CONFLICT_MOISTURE_PCT and field_state.ndvi < CONFLICT_NDVI:
        alert(AlertType.NDVI_MOISTURE_CONFLICT, Severity.MEDIUM,
              f"High moisture ({m:g}%) but very low NDVI ({field_state.ndvi:.2f}). "
              f"Possible disease, pest damage, or nutrient deficiency.")

    if t > HEAT_STRESS_C:
        alert(AlertType.HEAT_STRESS, Severity.HIGH,
              f"Extreme heat detected ({t:g}°C). Crops at risk of heat stress.")

    if t < FROST_RISK_C:
        alert(AlertType.FROST_RISK, Severity.HIGH,
              f"Near-freezing temperature ({t:g}°C). Risk of frost damage.")

    return alerts

def overall_status(alerts: Sequence[AnomalyAlert]) -> str:
    if any(a.severity == Severity.HIGH for a in alerts):
        return "WARNING"
    if alerts:
        return "MONITOR"
    return "HEALTHY"
