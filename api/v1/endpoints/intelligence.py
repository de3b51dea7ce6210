# api/v1/endpoints/intelligence.py
from fastapi import APIRouter, HTTPException, Query

from agents.base import agent_registry
from agents.intelligence.agent import IntelligenceAgent
from agents.intelligence.models import (
    CropConfigUpdate, IntelligenceResponse, IrrigationEvent, NDVIObservation, SensorReading
)

router = APIRouter()

def _get_agent() -> IntelligenceAgent:
    agent = agent_registry.get("intelligence")
    if not agent:
        raise HTTPException(status_code=500, detail="Intelligence agent not available")
    return agent

@router.get("/health")
async def intelligence_health():
    """Check intelligence agent health"""
    try:
        agent = agent_registry.get("intelligence")
        if not agent:
            return {"status": "unhealthy", "error": "Intelligence agent not available"}

        return await agent.health_check()

    except Exception as e:
        return {"status": "unhealthy", "error": str(e)}

@router.get("/{farm_id}", response_model=IntelligenceResponse)
async def get_intelligence(farm_id: str):
    """
    Full intelligence report for a farm

    Powers every dashboard card: irrigation decision, crop stress, next
    irrigation timer, system health alerts, water savings and NDVI insights.
    """
    report = await _get_agent().get_report(farm_id)
    return IntelligenceResponse(success=True, data=report)

@router.post("/{farm_id}/decide", response_model=IntelligenceResponse)
async def decide_with_live_data(farm_id: str, sensor_data: SensorReading):
    """Report computed from live readings supplied in the body (never served from cache)"""
    report = await _get_agent().get_report(farm_id, live_sensor_data=sensor_data)
    return IntelligenceResponse(success=True, data=report)

@router.post("/{farm_id}/sensor", response_model=IntelligenceResponse)
async def ingest_sensor_data(
    farm_id: str,
    reading: SensorReading,
    pump_on: bool = Query(False, description="Whether the pump was running when the reading was taken")
):
    """Ingest a sensor reading from the field node"""
    await _get_agent().ingest_sensor_data(farm_id, reading, pump_on=pump_on)
    return IntelligenceResponse(success=True, data=None, message="Sensor reading ingested")

@router.get("/{farm_id}/config", response_model=IntelligenceResponse)
async def get_farm_config(farm_id: str):
    """Get crop configuration for a farm"""
    try:
        config = await _get_agent().get_crop_config(farm_id)
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to get config: {str(e)}")
    return IntelligenceResponse(success=True, data=config)

@router.put("/{farm_id}/config", response_model=IntelligenceResponse)
async def set_farm_config(farm_id: str, updates: CropConfigUpdate):
    """Update crop configuration (crop type, growth stage, thresholds, etc.)"""
    try:
        config = await _get_agent().update_crop_config(farm_id, updates)
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid configuration: {str(e)}")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to update config: {str(e)}")
    return IntelligenceResponse(success=True, data=config, message="Configuration updated")

@router.post("/{farm_id}/ndvi", response_model=IntelligenceResponse)
async def record_ndvi(farm_id: str, observation: NDVIObservation):
    """Record an NDVI observation (value or NIR/Red reflectances)"""
    record = await _get_agent().record_ndvi(farm_id, observation)
    return IntelligenceResponse(success=True, data=record, message="NDVI recorded")

@router.post("/{farm_id}/log-irrigation", response_model=IntelligenceResponse)
async def log_irrigation_event(farm_id: str, event: IrrigationEvent):
    """Log an irrigation event for analytics tracking"""
    record = await _get_agent().log_irrigation(farm_id, event)
    if record is None:
        raise HTTPException(status_code=500, detail="Failed to log irrigation")
    return IntelligenceResponse(success=True, data=record, message="Irrigation event logged")
