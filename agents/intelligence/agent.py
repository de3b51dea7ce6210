# agents/intelligence/agent.py
"""
Irrigation intelligence agent - fuses field data and composes the per-farm report
"""

import asyncio
from datetime import timedelta
from typing import List, Optional

from agents.base import BaseAgent
from agents.intelligence.anomaly import detect_anomalies, overall_status
from agents.intelligence.decision import decide
from agents.intelligence.fusion import FieldStateFusion
from agents.intelligence.models import (
    AnomalyAlert, CropConfig, CropConfigUpdate, CropStressRisk, FieldSnapshot, FieldState,
    HistoryEntry, IntelligenceReport, IntelligenceRequest, IrrigationDecision, IrrigationEvent,
    IrrigationStats, NDVIInsights, NDVIObservation, NDVIRecord, NDVITrend, NextIrrigationTimer,
    Priority, Action, ReportDecision, ReportSource, SensorReading, SystemHealth, WaterSavings, utc_now
)
from agents.intelligence.ndvi import calculate_ndvi, classify_ndvi, is_fresh, ndvi_trend
from agents.intelligence.scoring import (
    crop_stress_risk, drying_hours, irrigation_time_minutes, stress_description,
    stress_level, water_savings
)
from agents.intelligence.stores import (
    CropConfigStore, InMemoryCropConfigStore, InMemoryIrrigationLog, InMemoryNDVIStore,
    InMemorySensorStore, IrrigationLog, NDVIStore, SensorStore
)
from core.cache import DecisionCache, HistoryBuffer
from core.config import get_settings

class IntelligenceAgent(BaseAgent[IntelligenceRequest, IntelligenceReport]):
    """
    Data fusion intelligence engine

    Features:
    - Field-state fusion from sensor, NDVI and crop-config stores
    - Rule-based irrigation decision cross-checked against NDVI
    - Crop stress risk scoring
    - Pump, sensor and environmental anomaly alerts
    - Water savings against flood irrigation
    - Per-farm report cache, invalidated by new sensor data or config changes
    """

    def __init__(
        self,
        sensor_store: Optional[SensorStore] = None,
        ndvi_store: Optional[NDVIStore] = None,
        config_store: Optional[CropConfigStore] = None,
        irrigation_log: Optional[IrrigationLog] = None,
        cache: Optional[DecisionCache] = None,
        history: Optional[HistoryBuffer] = None
    ):
        settings = get_settings()
        config = settings.get_agent_config("intelligence")
        if cache is None and settings.cache_enabled:
            cache = DecisionCache(
                ttl=config.get("cache_ttl_seconds", 60),
                max_size=config.get("cache_max_farms", 1000)
            )
        super().__init__("intelligence", cache=cache)

        self.sensor_store = sensor_store or InMemorySensorStore()
        self.ndvi_store = ndvi_store or InMemoryNDVIStore()
        self.config_store = config_store or InMemoryCropConfigStore()
        self.irrigation_log = irrigation_log or InMemoryIrrigationLog()
        self.history = history or HistoryBuffer(
            size=self.config.get("history_size", 20),
            max_farms=self.config.get("cache_max_farms", 1000)
        )
        self.timeout_seconds = self.config.get("source_timeout_seconds", 2.0)
        self.fusion = FieldStateFusion(
            self.sensor_store, self.ndvi_store, self.config_store, self.history,
            timeout_seconds=self.timeout_seconds
        )
        self.logger.info("Intelligence agent initialized")

    def _validate_config(self) -> None:
        """Validate intelligence agent configuration"""
        expected = [
            "cache_ttl_seconds", "history_size", "source_timeout_seconds", "stats_days",
            "ndvi_trend_window", "pump_anomaly_window", "pump_anomaly_min_rise"
        ]

        missing = [key for key in expected if key not in self.config]
        if missing:
            self.logger.warning(f"Missing intelligence config (using defaults): {missing}")

    # ---------- Public entry points ----------

    async def get_report(
        self,
        farm_id: str,
        live_sensor_data: Optional[SensorReading] = None
    ) -> IntelligenceReport:
        """Full intelligence report; live data always forces a fresh computation"""
        request = IntelligenceRequest(farm_id=farm_id, live_sensor_data=live_sensor_data)
        return await self.execute(request, use_cache=live_sensor_data is None)

    async def ingest_sensor_data(
        self,
        farm_id: str,
        reading: SensorReading,
        pump_on: bool = False
    ) -> None:
        """Record a new reading, feed the history buffer and drop the cached report"""
        self.history.append(farm_id, HistoryEntry(
            soil_moisture=reading.soil_moisture,
            temperature=reading.temperature,
            humidity=reading.humidity,
            pump_on=pump_on or bool(reading.pump_on),
            timestamp=reading.timestamp
        ))
        try:
            await self.sensor_store.save(farm_id, reading)
        except Exception as e:
            self.logger.warning(f"Could not store sensor reading for farm {farm_id}: {e}")
        await self.invalidate(farm_id)

    async def get_crop_config(self, farm_id: str) -> CropConfig:
        return await self.config_store.get(farm_id)

    async def update_crop_config(self, farm_id: str, updates: CropConfigUpdate) -> CropConfig:
        """Persist config changes; the farm's cached report is invalidated"""
        try:
            config = await self.config_store.upsert(farm_id, updates)
        except Exception as e:
            self.logger.error(f"Config update error for farm {farm_id}: {e}")
            raise
        await self.invalidate(farm_id)
        return config

    async def record_ndvi(self, farm_id: str, observation: NDVIObservation) -> NDVIRecord:
        """Store a satellite observation given directly or as NIR/Red reflectances"""
        value = observation.ndvi_value
        if value is None:
            value = calculate_ndvi(observation.nir, observation.red)
        record = NDVIRecord(
            farm_id=farm_id,
            ndvi_value=value,
            crop_health_status=classify_ndvi(value)["status"],
            timestamp=observation.timestamp
        )
        await self.ndvi_store.save(record)
        await self.invalidate(farm_id)
        return record

    async def log_irrigation(self, farm_id: str, event: IrrigationEvent) -> Optional[IrrigationEvent]:
        """Log an irrigation event; failures are reported and swallowed"""
        try:
            return await self.irrigation_log.append(farm_id, event)
        except Exception as e:
            self.logger.warning(f"Could not log irrigation for farm {farm_id}: {e}")
            return None

    async def invalidate(self, farm_id: str) -> None:
        if not self.cache:
            return
        try:
            await self.cache.invalidate(farm_id)
        except Exception as e:
            self.logger.warning(f"Cache invalidation error for farm {farm_id}: {e}")

    # ---------- BaseAgent hooks ----------

    def get_cache_key(self, request: IntelligenceRequest) -> str:
        return request.farm_id

    def from_cache(self, cached: IntelligenceReport) -> IntelligenceReport:
        self.logger.info(f"Cache HIT for farm {cached.farmId}")
        return cached.model_copy(update={"source": ReportSource.CACHE}, deep=True)

    async def process_request(self, request: IntelligenceRequest) -> IntelligenceReport:
        """Fusion -> decision -> stress -> anomalies -> timers -> savings -> NDVI trend"""
        farm_id = request.farm_id
        self.logger.info(f"Computing intelligence report for farm {farm_id}")

        field_state = await self.fusion.build_field_state(farm_id, request.live_sensor_data)

        decision = decide(field_state)
        stress = crop_stress_risk(field_state)
        alerts = detect_anomalies(
            field_state,
            self.history.recent(farm_id),
            pump_window=self.config.get("pump_anomaly_window", 3),
            pump_min_rise=self.config.get("pump_anomaly_min_rise", 2.0)
        )
        hours_until_dry = drying_hours(
            field_state.soil_moisture,
            field_state.thresholds.min,
            field_state.temperature,
            field_state.humidity
        )
        irrigation_minutes = irrigation_time_minutes(
            decision.water_quantity_liters, field_state.sprinkler_flow_rate_lpm
        )

        stats, ndvi_records = await asyncio.gather(
            self._irrigation_stats(farm_id),
            self._ndvi_records(farm_id)
        )
        savings = water_savings(field_state, stats)
        trend = ndvi_trend(ndvi_records) if ndvi_records is not None else NDVITrend(
            trend="unknown", description="Unable to compute NDVI trend."
        )
        ndvi_fresh = bool(ndvi_records) and is_fresh(ndvi_records[0].timestamp)

        report = self._compose(
            field_state, decision, irrigation_minutes, stress, alerts,
            hours_until_dry, savings, trend, ndvi_fresh
        )
        self.logger.info(
            f"Report for farm {farm_id}: action={decision.action.value} "
            f"stress={stress}/100 alerts={len(alerts)}"
        )
        return report

    async def get_fallback_response(self, request: IntelligenceRequest, error: Exception) -> IntelligenceReport:
        """Last cached report marked stale, else the static default report"""
        stale = None
        if self.cache:
            try:
                stale = await self.cache.get_stale(request.farm_id)
            except Exception as e:
                self.logger.warning(f"Cache read failed during fallback: {e}")

        if stale is not None:
            self.logger.warning(f"Serving stale report for farm {request.farm_id} after error: {error}")
            return stale.model_copy(update={"source": ReportSource.ERROR_FALLBACK, "stale": True}, deep=True)

        return default_report(request.farm_id)

    # ---------- Internals ----------

    async def _irrigation_stats(self, farm_id: str) -> IrrigationStats:
        days = self.config.get("stats_days", 7)
        try:
            return await asyncio.wait_for(self.irrigation_log.stats(farm_id, days), self.timeout_seconds)
        except Exception as e:
            self.logger.warning(f"Irrigation stats unavailable for farm {farm_id}: {e!r}")
            return IrrigationStats(days_period=days)

    async def _ndvi_records(self, farm_id: str) -> Optional[List[NDVIRecord]]:
        limit = self.config.get("ndvi_trend_window", 5)
        try:
            return await asyncio.wait_for(self.ndvi_store.recent(farm_id, limit), self.timeout_seconds)
        except Exception as e:
            self.logger.warning(f"NDVI history unavailable for farm {farm_id}: {e!r}")
            return None

    def _compose(
        self,
        field_state: FieldState,
        decision: IrrigationDecision,
        irrigation_minutes: int,
        stress: int,
        alerts: List[AnomalyAlert],
        hours_until_dry: int,
        savings: WaterSavings,
        trend: NDVITrend,
        ndvi_fresh: bool
    ) -> IntelligenceReport:
        now = utc_now()
        return IntelligenceReport(
            farmId=field_state.farm_id,
            timestamp=now.isoformat(),
            irrigationDecision=ReportDecision(
                action=decision.action,
                priority=decision.priority,
                waterQuantityLiters=decision.water_quantity_liters,
                irrigationTimeMinutes=irrigation_minutes,
                reason=decision.reason,
                delayHours=decision.delay_hours
            ),
            cropStressRisk=CropStressRisk(
                score=stress,
                level=stress_level(stress),
                description=stress_description(stress)
            ),
            nextIrrigationTimer=NextIrrigationTimer(
                hoursUntilNeeded=hours_until_dry,
                estimatedTime=(now + timedelta(hours=hours_until_dry)).isoformat()
            ),
            systemHealth=SystemHealth(
                alertCount=len(alerts),
                alerts=alerts,
                overallStatus=overall_status(alerts)
            ),
            waterSavingPotential=savings,
            ndviInsights=NDVIInsights(
                currentNDVI=field_state.ndvi,
                trend=trend.trend,
                trendDescription=trend.description,
                healthStatus=classify_ndvi(field_state.ndvi)["status"],
                dataFresh=ndvi_fresh
            ),
            fieldSnapshot=FieldSnapshot(
                soilMoisture=field_state.soil_moisture,
                temperature=field_state.temperature,
                humidity=field_state.humidity,
                rainDetected=field_state.rain_detected,
                ndvi=field_state.ndvi,
                cropType=field_state.crop_type,
                growthStage=field_state.growth_stage,
                pumpOn=field_state.pump_on
            ),
            source=ReportSource.COMPUTED
        )

def default_report(farm_id: str) -> IntelligenceReport:
    """Static report served when nothing has been computed for the farm yet"""
    now = utc_now()
    return IntelligenceReport(
        farmId=farm_id,
        timestamp=now.isoformat(),
        irrigationDecision=ReportDecision(
            action=Action.DELAY,
            priority=Priority.LOW,
            waterQuantityLiters=0,
            irrigationTimeMinutes=0,
            reason="Intelligence engine initializing: using default schedule.",
            delayHours=1
        ),
        cropStressRisk=CropStressRisk(
            score=0,
            level="LOW",
            description="No data available. Using default assessment."
        ),
        nextIrrigationTimer=NextIrrigationTimer(
            hoursUntilNeeded=1,
            estimatedTime=(now + timedelta(hours=1)).isoformat()
        ),
        systemHealth=SystemHealth(alertCount=0, alerts=[], overallStatus="INITIALIZING"),
        waterSavingPotential=WaterSavings(efficiencyRating="Initializing"),
        ndviInsights=NDVIInsights(),
        fieldSnapshot=FieldSnapshot(),
        source=ReportSource.DEFAULT
    )
