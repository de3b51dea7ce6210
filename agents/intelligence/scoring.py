# agents/intelligence/scoring.py
"""
Scoring functions - crop stress, drying time, water savings
"""
import math
from typing import Optional

from agents.intelligence.models import FieldState, IrrigationStats, WaterSavings
from core.exceptions import InvalidReadingError

# ---------- Constants ----------
STRESS_WEIGHTS = {"moisture": 0.40, "temperature": 0.20, "ndvi": 0.25, "humidity": 0.15}
OVERWATER_WINDOW_PCT = 20.0
BASE_DRYING_RATE_PCT_PER_HOUR = 1.5
MIN_ET_FACTOR = 0.3
FLOOD_LITERS_PER_SQM_PER_DAY = 6.0
COST_PER_LITER_INR = 0.05
DEFAULT_FLOW_RATE_LPM = 15.0

def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)"""
    return int(math.floor(value + 0.5))

def _require_finite(**values: float) -> None:
    for name, value in values.items():
        if value is None or not math.isfinite(value):
            raise InvalidReadingError(f"{name} must be a finite number (got {value!r})")

# ---------- Crop stress ----------

def moisture_stress(field_state: FieldState) -> float:
    t = field_state.thresholds
    m = field_state.soil_moisture
    if m < t.critical_low:
        return 100.0
    if m < t.min:
        return 50 + ((t.min - m) / (t.min - t.critical_low)) * 50
    if m > t.max:
        # Over-watering stress
        return min(40.0, ((m - t.max) / OVERWATER_WINDOW_PCT) * 40)
    return 0.0

def temperature_stress(temperature: float) -> float:
    if temperature > 42:
        return 100.0
    if temperature > 38:
        return 60 + ((temperature - 38) / 4) * 40
    if temperature > 35:
        return 30 + ((temperature - 35) / 3) * 30
    if temperature < 5:
        return 80.0
    if temperature < 10:
        return 30.0
    return 0.0

def ndvi_stress(ndvi: float) -> float:
    if ndvi < 0.2:
        return 100.0
    if ndvi < 0.3:
        return 60 + ((0.3 - ndvi) / 0.1) * 40
    if ndvi < 0.5:
        return 20 + ((0.5 - ndvi) / 0.2) * 40
    if ndvi > 0.7:
        return 0.0
    return max(0.0, (0.7 - ndvi) / 0.2 * 20)

def humidity_stress(humidity: float) -> float:
    if humidity < 20:
        return 80.0
    if humidity < 30:
        return 40.0
    if humidity > 90:
        # disease-risk proxy
        return 30.0
    return 0.0

def crop_stress_risk(field_state: FieldState) -> int:
    """
    Crop stress risk score, 0-100 (higher = more stress).

    Weighted combination of moisture deficit (40%), temperature (20%),
    NDVI vegetation (25%) and humidity (15%) sub-scores.
    """
    score = (
        moisture_stress(field_state) * STRESS_WEIGHTS["moisture"]
        + temperature_stress(field_state.temperature) * STRESS_WEIGHTS["temperature"]
        + ndvi_stress(field_state.ndvi) * STRESS_WEIGHTS["ndvi"]
        + humidity_stress(field_state.humidity) * STRESS_WEIGHTS["humidity"]
    )
    return max(0, min(100, round_half_up(score)))

def stress_level(score: int) -> str:
    if score > 70:
        return "CRITICAL"
    if score > 40:
        return "MODERATE"
    return "LOW"

def stress_description(score: int) -> str:
    if score > 70:
        return ("Severe crop stress detected. Immediate attention required: "
                "check irrigation, nutrients, and pest damage.")
    if score > 40:
        return ("Moderate crop stress. Adjustments recommended: "
                "review irrigation schedule and environmental conditions.")
    if score > 20:
        return "Mild stress indicators present. Continue monitoring."
    return "Crop health is excellent. All parameters within optimal range."

# ---------- Drying time / irrigation time ----------

def drying_hours(
    current: float,
    target: float,
    temperature: float = 30,
    humidity: float = 50
) -> int:
    """
    Estimated hours until soil moisture falls from current to target.

    Warmer, drier air speeds up drying through the evapotranspiration factor
    (floored at 0.3 so cold humid days still dry out eventually).
    """
    _require_finite(current=current, target=target, temperature=temperature, humidity=humidity)
    if current <= target:
        return 0

    et_factor = (temperature / 30) * ((100 - humidity) / 50)
    rate = BASE_DRYING_RATE_PCT_PER_HOUR * max(MIN_ET_FACTOR, et_factor)
    return max(1, math.ceil((current - target) / rate))

def irrigation_time_minutes(water_quantity_liters: float, flow_rate_lpm: Optional[float] = DEFAULT_FLOW_RATE_LPM) -> int:
    """Sprinkler runtime needed to deliver the given volume"""
    if not flow_rate_lpm or water_quantity_liters <= 0 or flow_rate_lpm <= 0:
        return 0
    return math.ceil(water_quantity_liters / flow_rate_lpm)

# ---------- Water savings ----------

def efficiency_rating(saving_percent: float) -> str:
    if saving_percent > 50:
        return "Excellent"
    if saving_percent > 30:
        return "Good"
    if saving_percent > 10:
        return "Fair"
    return "Needs Improvement"

def water_savings(field_state: FieldState, stats: Optional[IrrigationStats] = None) -> WaterSavings:
    """Water saved against daily flood irrigation of the same field"""
    stats = stats or IrrigationStats()
    days = max(0, stats.days_period)
    used = max(0.0, stats.total_liters_used)

    flood_daily = field_state.field_area_sqm * FLOOD_LITERS_PER_SQM_PER_DAY
    baseline = flood_daily * days

    saved = max(0.0, baseline - used)
    saving_percent = round_half_up(saved / baseline * 100) if baseline > 0 else 0
    liters_per_day = round_half_up(used / days) if days > 0 else 0

    return WaterSavings(
        savingPercent=max(0, min(100, saving_percent)),
        litersPerDay=liters_per_day,
        floodEquivalentLitersPerDay=flood_daily,
        totalSavedLiters=round_half_up(saved),
        costSavedINR=round_half_up(saved * COST_PER_LITER_INR),
        irrigationCount=stats.irrigation_count,
        efficiencyRating=efficiency_rating(saving_percent)
    )
