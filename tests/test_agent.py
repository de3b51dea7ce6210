"""
Tests for the intelligence agent: report composition, caching and fallbacks.
"""
import pytest
from pydantic import ValidationError

from agents.intelligence.agent import IntelligenceAgent
from agents.intelligence.models import (
    Action, AlertType, CropConfigUpdate, IrrigationEvent, NDVIObservation, ReportSource, SensorReading
)
from agents.intelligence.stores import InMemoryNDVIStore
from core.cache import DecisionCache
from core.exceptions import ExternalSourceError

class FailingNDVIStore(InMemoryNDVIStore):
    async def latest(self, farm_id):
        raise ExternalSourceError("satellite feed down")

    async def recent(self, farm_id, limit=5):
        raise ExternalSourceError("satellite feed down")

async def boom(*args, **kwargs):
    raise RuntimeError("scoring exploded")

class TestReportComposition:
    @pytest.mark.asyncio
    async def test_dry_field_report(self, agent):
        report = await agent.get_report("farm-1", SensorReading(soil_moisture=18, temperature=28, humidity=60))

        decision = report.irrigationDecision
        assert decision.action == Action.START
        assert decision.waterQuantityLiters == 162
        assert decision.irrigationTimeMinutes == 11
        assert decision.delayHours == 0
        assert report.cropStressRisk.score == 45
        assert report.cropStressRisk.level == "MODERATE"
        assert report.nextIrrigationTimer.hoursUntilNeeded == 0
        assert report.systemHealth.overallStatus == "HEALTHY"
        assert report.fieldSnapshot.soilMoisture == 18
        assert report.source == ReportSource.COMPUTED
        assert report.stale is False

    @pytest.mark.asyncio
    async def test_rain_stops_irrigation(self, agent):
        report = await agent.get_report("farm-1", SensorReading(soil_moisture=5, rain_detected=True))
        assert report.irrigationDecision.action == Action.STOP
        assert report.irrigationDecision.waterQuantityLiters == 0
        assert report.irrigationDecision.irrigationTimeMinutes == 0

    @pytest.mark.asyncio
    async def test_new_farm_gets_defaults(self, agent):
        report = await agent.get_report("farm-new")
        assert report.irrigationDecision.action == Action.DELAY
        assert report.fieldSnapshot.cropType == "Wheat"
        assert report.ndviInsights.currentNDVI == 0.5
        assert report.ndviInsights.dataFresh is False
        assert report.waterSavingPotential.savingPercent == 100

    @pytest.mark.asyncio
    async def test_pump_anomaly_from_ingested_history(self, agent):
        for moisture in (30, 30, 30.5):
            await agent.ingest_sensor_data("farm-1", SensorReading(soil_moisture=moisture), pump_on=True)

        report = await agent.get_report("farm-1")
        assert [a.type for a in report.systemHealth.alerts] == [AlertType.PUMP_ANOMALY]
        assert report.systemHealth.overallStatus == "WARNING"
        assert report.fieldSnapshot.pumpOn is True

    @pytest.mark.asyncio
    async def test_ndvi_from_bands_reaches_report(self, agent):
        record = await agent.record_ndvi("farm-1", NDVIObservation(nir=0.5, red=0.1))
        assert record.ndvi_value == pytest.approx(0.6667)
        assert record.crop_health_status == "Healthy"

        report = await agent.get_report("farm-1")
        assert report.ndviInsights.currentNDVI == pytest.approx(0.6667)
        assert report.ndviInsights.healthStatus == "Healthy"
        assert report.ndviInsights.dataFresh is True
        assert report.ndviInsights.trend == "stable"

    @pytest.mark.asyncio
    async def test_ndvi_outage_still_reports(self, stores, clock):
        stores["ndvi_store"] = FailingNDVIStore()
        agent = IntelligenceAgent(cache=DecisionCache(timer=clock), **stores)

        report = await agent.get_report("farm-1")
        assert report.source == ReportSource.COMPUTED
        assert report.ndviInsights.currentNDVI == 0.5
        assert report.ndviInsights.trend == "unknown"

    @pytest.mark.asyncio
    async def test_logged_irrigation_feeds_savings(self, agent):
        logged = await agent.log_irrigation("farm-1", IrrigationEvent(action="START", liters_used=21000))
        assert logged is not None

        savings = (await agent.get_report("farm-1")).waterSavingPotential
        assert savings.savingPercent == 50
        assert savings.irrigationCount == 1
        assert savings.efficiencyRating == "Good"

    @pytest.mark.asyncio
    async def test_failed_irrigation_log_returns_none(self, agent, monkeypatch):
        monkeypatch.setattr(agent.irrigation_log, "append", boom)
        assert await agent.log_irrigation("farm-1", IrrigationEvent(action="STOP")) is None

    @pytest.mark.parametrize("updates", [
        {"field_area_sqm": 0},
        {"sprinkler_flow_rate_lpm": 0},
        {"field_area_sqm": 0, "sprinkler_flow_rate_lpm": 0},
    ])
    @pytest.mark.asyncio
    async def test_zero_area_or_flow_is_rejected(self, agent, updates):
        with pytest.raises(ValidationError):
            await agent.update_crop_config("farm-1", CropConfigUpdate(**updates))

        report = await agent.get_report("farm-1", SensorReading(soil_moisture=18))
        decision = report.irrigationDecision
        assert decision.action == Action.START
        assert decision.waterQuantityLiters == 162
        assert decision.irrigationTimeMinutes == 11

    @pytest.mark.asyncio
    async def test_positive_area_and_flow_drive_quantities(self, agent):
        await agent.update_crop_config(
            "farm-1", CropConfigUpdate(field_area_sqm=500, sprinkler_flow_rate_lpm=9)
        )
        decision = (await agent.get_report("farm-1", SensorReading(soil_moisture=18))).irrigationDecision
        assert decision.waterQuantityLiters == 81
        assert decision.irrigationTimeMinutes == 9

class TestReportCaching:
    @pytest.mark.asyncio
    async def test_second_call_is_served_from_cache(self, agent):
        first = await agent.get_report("farm-1")
        second = await agent.get_report("farm-1")
        assert first.source == ReportSource.COMPUTED
        assert second.source == ReportSource.CACHE
        assert second.timestamp == first.timestamp

    @pytest.mark.asyncio
    async def test_ttl_expiry_recomputes(self, agent, clock):
        await agent.get_report("farm-1")
        clock.advance(60)
        assert (await agent.get_report("farm-1")).source == ReportSource.COMPUTED

    @pytest.mark.asyncio
    async def test_live_data_always_recomputes(self, agent):
        await agent.get_report("farm-1")
        report = await agent.get_report("farm-1", SensorReading(soil_moisture=12))
        assert report.source == ReportSource.COMPUTED
        assert report.irrigationDecision.action == Action.START

    @pytest.mark.asyncio
    async def test_sensor_ingestion_invalidates(self, agent):
        await agent.get_report("farm-1")
        await agent.ingest_sensor_data("farm-1", SensorReading(soil_moisture=90))

        report = await agent.get_report("farm-1")
        assert report.source == ReportSource.COMPUTED
        assert report.irrigationDecision.action == Action.STOP

    @pytest.mark.asyncio
    async def test_config_update_invalidates(self, agent):
        await agent.get_report("farm-1")
        config = await agent.update_crop_config("farm-1", CropConfigUpdate(growth_stage="germination"))
        assert config.growth_stage == "germination"

        report = await agent.get_report("farm-1")
        assert report.source == ReportSource.COMPUTED
        assert report.fieldSnapshot.growthStage == "germination"
        # default 50% moisture is below the germination minimum
        assert report.irrigationDecision.action == Action.START

    @pytest.mark.asyncio
    async def test_invalidation_during_computation_is_not_overwritten(self, agent):
        build = agent.fusion.build_field_state

        async def build_then_invalidate(farm_id, live_override=None):
            field_state = await build(farm_id, live_override)
            await agent.ingest_sensor_data(farm_id, SensorReading(soil_moisture=90))
            return field_state

        agent.fusion.build_field_state = build_then_invalidate
        await agent.get_report("farm-1")
        agent.fusion.build_field_state = build

        report = await agent.get_report("farm-1")
        assert report.source == ReportSource.COMPUTED
        assert report.fieldSnapshot.soilMoisture == 90

    @pytest.mark.asyncio
    async def test_mutating_cache_hit_leaves_cache_intact(self, agent):
        await agent.ingest_sensor_data("farm-1", SensorReading(soil_moisture=97))
        await agent.get_report("farm-1")

        hit = await agent.get_report("farm-1")
        assert hit.source == ReportSource.CACHE
        hit.systemHealth.alerts.clear()
        hit.waterSavingPotential.savingPercent = 0

        again = await agent.get_report("farm-1")
        assert again.source == ReportSource.CACHE
        assert again.systemHealth.alertCount == 1
        assert [a.type for a in again.systemHealth.alerts] == [AlertType.WATERLOGGING]
        assert again.waterSavingPotential.savingPercent == 100

class TestFallbacks:
    @pytest.mark.asyncio
    async def test_error_serves_stale_report(self, agent, clock, monkeypatch):
        computed = await agent.get_report("farm-1")
        clock.advance(120)
        monkeypatch.setattr(agent.fusion, "build_field_state", boom)

        report = await agent.get_report("farm-1")
        assert report.source == ReportSource.ERROR_FALLBACK
        assert report.stale is True
        assert report.timestamp == computed.timestamp

    @pytest.mark.asyncio
    async def test_mutating_stale_report_leaves_cache_intact(self, agent, clock, monkeypatch):
        await agent.ingest_sensor_data("farm-1", SensorReading(soil_moisture=97))
        await agent.get_report("farm-1")
        clock.advance(120)
        monkeypatch.setattr(agent.fusion, "build_field_state", boom)

        stale = await agent.get_report("farm-1")
        assert stale.source == ReportSource.ERROR_FALLBACK
        stale.systemHealth.alerts.clear()

        again = await agent.get_report("farm-1")
        assert [a.type for a in again.systemHealth.alerts] == [AlertType.WATERLOGGING]

    @pytest.mark.asyncio
    async def test_error_without_cache_serves_default(self, agent, monkeypatch):
        monkeypatch.setattr(agent.fusion, "build_field_state", boom)

        report = await agent.get_report("farm-1")
        assert report.source == ReportSource.DEFAULT
        assert report.irrigationDecision.action == Action.DELAY
        assert report.irrigationDecision.delayHours == 1
        assert report.systemHealth.overallStatus == "INITIALIZING"
        assert report.waterSavingPotential.efficiencyRating == "Initializing"

    @pytest.mark.asyncio
    async def test_cache_fault_is_a_miss(self, agent, monkeypatch):
        monkeypatch.setattr(agent.cache, "get", boom)
        report = await agent.get_report("farm-1")
        assert report.source == ReportSource.COMPUTED

    @pytest.mark.asyncio
    async def test_health_check(self, agent):
        health = await agent.health_check()
        assert health["status"] == "healthy"
        assert health["cache_enabled"] is True
