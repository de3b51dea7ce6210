# agents/intelligence/decision.py
"""
Irrigation decision engine - ordered rule table over a fused field state
"""
from dataclasses import dataclass
from typing import Callable, List

from agents.intelligence.models import Action, FieldState, IrrigationDecision, Priority
from agents.intelligence.scoring import drying_hours, round_half_up

CRITICAL_LITERS_PER_SQM_PER_PCT = 0.6
BELOW_MIN_LITERS_PER_SQM_PER_PCT = 0.5
NDVI_CONFIRMS_STRESS = 0.4
NDVI_POOR = 0.3

@dataclass(frozen=True)
class IrrigationRule:
    name: str
    applies: Callable[[FieldState], bool]
    outcome: Callable[[FieldState], IrrigationDecision]

def deficit_liters(field_state: FieldState, liters_per_sqm_per_pct: float) -> int:
    """Water needed to bring moisture back up to the stage minimum"""
    deficit = max(0.0, field_state.thresholds.min - field_state.soil_moisture)
    return round_half_up((deficit / 100) * field_state.field_area_sqm * liters_per_sqm_per_pct)

def _pct(value: float) -> str:
    return f"{value:g}%"

# ---------- Outcomes ----------

def _rain_detected(fs: FieldState) -> IrrigationDecision:
    return IrrigationDecision(
        action=Action.STOP, priority=Priority.LOW, water_quantity_liters=0, delay_hours=6,
        reason="Rain detected: irrigation not needed.",
        rule="rain_detected"
    )

def _rain_forecast(fs: FieldState) -> IrrigationDecision:
    return IrrigationDecision(
        action=Action.DELAY, priority=Priority.LOW, water_quantity_liters=0, delay_hours=4,
        reason="Rain forecast: delaying irrigation to save water.",
        rule="rain_forecast"
    )

def _critical_low(fs: FieldState) -> IrrigationDecision:
    t = fs.thresholds
    return IrrigationDecision(
        action=Action.START, priority=Priority.HIGH,
        water_quantity_liters=deficit_liters(fs, CRITICAL_LITERS_PER_SQM_PER_PCT),
        delay_hours=0,
        reason=(f"Critical moisture deficit ({_pct(fs.soil_moisture)} < {_pct(t.critical_low)} "
                f"critical threshold for {fs.growth_stage}). Immediate irrigation required."),
        rule="critical_low"
    )

def _below_min(fs: FieldState) -> IrrigationDecision:
    t = fs.thresholds
    if fs.ndvi < NDVI_CONFIRMS_STRESS:
        priority = Priority.HIGH
        reason = (f"Soil moisture below threshold ({_pct(fs.soil_moisture)} < {_pct(t.min)}) "
                  f"and NDVI poor ({fs.ndvi:.2f}). Vegetation stress confirmed by satellite data.")
    else:
        priority = Priority.MEDIUM
        reason = (f"Soil moisture below optimal ({_pct(fs.soil_moisture)} < {_pct(t.min)}). "
                  f"NDVI acceptable ({fs.ndvi:.2f}), moderate priority.")
    return IrrigationDecision(
        action=Action.START, priority=priority,
        water_quantity_liters=deficit_liters(fs, BELOW_MIN_LITERS_PER_SQM_PER_PCT),
        delay_hours=0,
        reason=reason,
        rule="below_min"
    )

def _within_range(fs: FieldState) -> IrrigationDecision:
    if fs.ndvi < NDVI_POOR:
        return IrrigationDecision(
            action=Action.DELAY, priority=Priority.MEDIUM, water_quantity_liters=0, delay_hours=2,
            reason=(f"Moisture OK ({_pct(fs.soil_moisture)}) but NDVI poor ({fs.ndvi:.2f}). "
                    f"Possible nutrient deficiency: investigate before irrigating."),
            rule="within_range_poor_ndvi"
        )
    hours = drying_hours(fs.soil_moisture, fs.thresholds.min, fs.temperature, fs.humidity)
    return IrrigationDecision(
        action=Action.DELAY, priority=Priority.LOW, water_quantity_liters=0, delay_hours=hours,
        reason=f"Moisture adequate ({_pct(fs.soil_moisture)}). Next irrigation needed in ~{hours}h.",
        rule="within_range"
    )

def _above_max(fs: FieldState) -> IrrigationDecision:
    return IrrigationDecision(
        action=Action.STOP, priority=Priority.LOW, water_quantity_liters=0, delay_hours=8,
        reason=(f"Soil moisture above maximum ({_pct(fs.soil_moisture)} > {_pct(fs.thresholds.max)}). "
                f"Stop irrigation to prevent waterlogging."),
        rule="above_max"
    )

# First matching rule wins; the order is part of the contract.
IRRIGATION_RULES: List[IrrigationRule] = [
    IrrigationRule("rain_detected", lambda fs: fs.rain_detected, _rain_detected),
    IrrigationRule("rain_forecast", lambda fs: fs.rain_forecast, _rain_forecast),
    IrrigationRule("critical_low", lambda fs: fs.soil_moisture < fs.thresholds.critical_low, _critical_low),
    IrrigationRule("below_min", lambda fs: fs.soil_moisture < fs.thresholds.min, _below_min),
    IrrigationRule("within_range", lambda fs: fs.soil_moisture <= fs.thresholds.max, _within_range),
    IrrigationRule("above_max", lambda fs: True, _above_max),
]

def decide(field_state: FieldState) -> IrrigationDecision:
    """Evaluate the rule table in order and return the first matching outcome"""
    for rule in IRRIGATION_RULES:
        if rule.applies(field_state):
            return rule.outcome(field_state)
    # unreachable: above_max always applies
    raise RuntimeError("no irrigation rule matched")
