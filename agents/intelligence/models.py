# agents/intelligence/models.py
"""
Pydantic models for the irrigation intelligence agent
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import List, Optional, Dict, Any, Literal
from datetime import date as dt_date, datetime, timezone
from enum import Enum

GROWTH_STAGES = (
    "germination",
    "seedling",
    "vegetative",
    "flowering",
    "fruiting",
    "maturity",
    "harvest",
)

GrowthStage = Literal[
    "germination", "seedling", "vegetative", "flowering", "fruiting", "maturity", "harvest"
]

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: datetime) -> datetime:
    """Naive timestamps from field nodes are taken to be UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

def normalize_stage_keys(value: Any) -> Any:
    """Stage keys of a threshold table are matched case-insensitively"""
    if isinstance(value, dict):
        return {str(stage).strip().lower(): bounds for stage, bounds in value.items()}
    return value

class Action(str, Enum):
    START = "START"
    STOP = "STOP"
    DELAY = "DELAY"

class Priority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"

class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class AlertType(str, Enum):
    PUMP_ANOMALY = "PUMP_ANOMALY"
    SENSOR_FAILURE = "SENSOR_FAILURE"
    WATERLOGGING = "WATERLOGGING"
    NDVI_MOISTURE_CONFLICT = "NDVI_MOISTURE_CONFLICT"
    HEAT_STRESS = "HEAT_STRESS"
    FROST_RISK = "FROST_RISK"

class ReportSource(str, Enum):
    COMPUTED = "computed"
    CACHE = "cache"
    ERROR_FALLBACK = "error_fallback"
    DEFAULT = "default"

# ---------- Inputs ----------

class StageThresholds(BaseModel):
    """Soil-moisture bounds (percent) for one growth stage"""
    model_config = ConfigDict(allow_inf_nan=False, frozen=True)

    min: float = Field(..., ge=0, le=100, description="Lower bound of the optimal band")
    max: float = Field(..., ge=0, le=100, description="Upper bound of the optimal band")
    critical_low: float = Field(..., ge=0, le=100, description="Urgent-irrigation floor")

    @model_validator(mode="after")
    def _check_ordering(self):
        if not (self.critical_low < self.min < self.max):
            raise ValueError(
                f"thresholds must satisfy critical_low < min < max "
                f"(got {self.critical_low}, {self.min}, {self.max})"
            )
        return self

class Coordinates(BaseModel):
    lat: float = 28.6139
    lng: float = 77.209

class SensorReading(BaseModel):
    """Latest reading from the field node; every measurement may be missing"""
    model_config = ConfigDict(allow_inf_nan=False)

    soil_moisture: Optional[float] = Field(None, ge=0, le=100, description="Soil moisture (%)")
    temperature: Optional[float] = Field(None, description="Air temperature (°C)")
    humidity: Optional[float] = Field(None, ge=0, le=100, description="Relative humidity (%)")
    rain_detected: Optional[bool] = None
    rain_forecast: Optional[bool] = None
    pump_on: Optional[bool] = None
    timestamp: datetime = Field(default_factory=utc_now)

    normalize_timestamp = field_validator("timestamp")(as_utc)

class NDVIRecord(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    farm_id: str
    ndvi_value: float = Field(..., ge=-1, le=1)
    crop_health_status: str = "Unknown"
    timestamp: datetime = Field(default_factory=utc_now)

    normalize_timestamp = field_validator("timestamp")(as_utc)

class HistoryEntry(BaseModel):
    soil_moisture: Optional[float] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    pump_on: bool = False
    timestamp: datetime = Field(default_factory=utc_now)

    normalize_timestamp = field_validator("timestamp")(as_utc)

class CropConfig(BaseModel):
    farm_id: str
    crop_type: str = "Wheat"
    soil_type: str = "Loamy"
    growth_stage: GrowthStage = "vegetative"
    planting_date: dt_date = Field(default_factory=dt_date.today)
    field_area_sqm: float = Field(1000, gt=0)
    sprinkler_flow_rate_lpm: float = Field(15, gt=0)
    coordinates: Coordinates = Field(default_factory=Coordinates)
    thresholds: Optional[Dict[GrowthStage, StageThresholds]] = Field(
        None, description="Per-stage overrides of the default threshold table"
    )

    normalize_thresholds = field_validator("thresholds", mode="before")(normalize_stage_keys)

class CropConfigUpdate(BaseModel):
    crop_type: Optional[str] = None
    soil_type: Optional[str] = None
    growth_stage: Optional[GrowthStage] = None
    planting_date: Optional[dt_date] = None
    field_area_sqm: Optional[float] = Field(None, gt=0)
    sprinkler_flow_rate_lpm: Optional[float] = Field(None, gt=0)
    coordinates: Optional[Coordinates] = None
    thresholds: Optional[Dict[GrowthStage, StageThresholds]] = None

    normalize_thresholds = field_validator("thresholds", mode="before")(normalize_stage_keys)

class IrrigationEvent(BaseModel):
    action: Literal["START", "STOP", "AUTO_ON", "AUTO_OFF"]
    trigger: Literal["auto", "manual", "intelligence_engine", "scheduled"] = "auto"
    duration_minutes: Optional[float] = Field(None, ge=0)
    liters_used: Optional[float] = Field(None, ge=0)
    moisture_before: Optional[float] = None
    moisture_after: Optional[float] = None
    decision_context: Optional[Dict[str, Any]] = None
    created_at: datetime = Field(default_factory=utc_now)

    normalize_created_at = field_validator("created_at")(as_utc)

class IrrigationStats(BaseModel):
    total_liters_used: float = 0
    irrigation_count: int = 0
    days_period: int = 7

class FieldState(BaseModel):
    """Fully populated snapshot every scoring and decision function runs on"""
    model_config = ConfigDict(allow_inf_nan=False, frozen=True)

    farm_id: str
    soil_moisture: float = Field(..., ge=0, le=100)
    temperature: float
    humidity: float = Field(..., ge=0, le=100)
    rain_detected: bool = False
    rain_forecast: bool = False
    ndvi: float = Field(0.5, ge=-1, le=1)
    crop_type: str = "Wheat"
    soil_type: str = "Loamy"
    growth_stage: str = "vegetative"
    thresholds: StageThresholds
    pump_on: bool = False
    field_area_sqm: float = Field(1000, gt=0)
    sprinkler_flow_rate_lpm: float = Field(15, gt=0)
    coordinates: Coordinates = Field(default_factory=Coordinates)

# ---------- Engine outputs ----------

class IrrigationDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: Action
    priority: Priority
    water_quantity_liters: int = Field(0, ge=0)
    delay_hours: int = Field(0, ge=0)
    reason: str
    rule: str

class AnomalyAlert(BaseModel):
    type: AlertType
    severity: Severity
    message: str
    timestamp: datetime

class WaterSavings(BaseModel):
    savingPercent: int = Field(0, ge=0, le=100)
    litersPerDay: int = 0
    floodEquivalentLitersPerDay: float = 0
    totalSavedLiters: int = Field(0, ge=0)
    costSavedINR: int = Field(0, ge=0)
    irrigationCount: int = 0
    efficiencyRating: str = "Needs Improvement"

class NDVITrend(BaseModel):
    trend: Literal["improving", "declining", "stable", "unknown"]
    description: str

# ---------- Report ----------

class ReportDecision(BaseModel):
    action: Action
    priority: Priority
    waterQuantityLiters: int
    irrigationTimeMinutes: int
    reason: str
    delayHours: int

class CropStressRisk(BaseModel):
    score: int = Field(..., ge=0, le=100)
    level: Literal["CRITICAL", "MODERATE", "LOW"]
    description: str

class NextIrrigationTimer(BaseModel):
    hoursUntilNeeded: int
    estimatedTime: str

class SystemHealth(BaseModel):
    alertCount: int
    alerts: List[AnomalyAlert]
    overallStatus: Literal["WARNING", "MONITOR", "HEALTHY", "INITIALIZING"]

class NDVIInsights(BaseModel):
    currentNDVI: Optional[float] = None
    trend: str = "unknown"
    trendDescription: str = "No data yet."
    healthStatus: str = "Unknown"
    dataFresh: bool = False

class FieldSnapshot(BaseModel):
    soilMoisture: Optional[float] = None
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    rainDetected: Optional[bool] = None
    ndvi: Optional[float] = None
    cropType: Optional[str] = None
    growthStage: Optional[str] = None
    pumpOn: Optional[bool] = None

class IntelligenceReport(BaseModel):
    farmId: str
    timestamp: str
    irrigationDecision: ReportDecision
    cropStressRisk: CropStressRisk
    nextIrrigationTimer: NextIrrigationTimer
    systemHealth: SystemHealth
    waterSavingPotential: WaterSavings
    ndviInsights: NDVIInsights
    fieldSnapshot: FieldSnapshot
    source: ReportSource = ReportSource.COMPUTED
    stale: bool = False

# ---------- Agent request / API envelopes ----------

class IntelligenceRequest(BaseModel):
    farm_id: str = Field(..., min_length=1, description="Farm identifier")
    live_sensor_data: Optional[SensorReading] = Field(
        None, description="Real-time readings that bypass the cache and the sensor store"
    )

class NDVIObservation(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    ndvi_value: Optional[float] = Field(None, ge=-1, le=1)
    nir: Optional[float] = Field(None, ge=0, le=1, description="Near-infrared reflectance")
    red: Optional[float] = Field(None, ge=0, le=1, description="Red reflectance")
    timestamp: datetime = Field(default_factory=utc_now)

    normalize_timestamp = field_validator("timestamp")(as_utc)

    @model_validator(mode="after")
    def _check_source(self):
        if self.ndvi_value is None and (self.nir is None or self.red is None):
            raise ValueError("provide ndvi_value or both nir and red")
        return self

class IntelligenceResponse(BaseModel):
    success: bool
    data: Any
    message: Optional[str] = None
