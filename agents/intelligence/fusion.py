# agents/intelligence/fusion.py
"""
Data fusion layer - builds one fully populated field state per evaluation
"""
import asyncio
import logging
from typing import Any, Awaitable, Optional

from agents.intelligence.models import CropConfig, FieldState, HistoryEntry, SensorReading
from agents.intelligence.stores import CropConfigStore, NDVIStore, SensorStore
from agents.intelligence.thresholds import resolve_thresholds
from core.cache import HistoryBuffer

logger = logging.getLogger(__name__)

DEFAULT_SOIL_MOISTURE = 50.0
DEFAULT_TEMPERATURE = 28.0
DEFAULT_HUMIDITY = 60.0
DEFAULT_NDVI = 0.5

def _first(*values: Any) -> Any:
    """First value that is not None (the last argument is the default)"""
    for value in values:
        if value is not None:
            return value
    return None

class FieldStateFusion:
    """
    Fuses crop config, latest NDVI and latest sensor reading into a FieldState.

    The three reads run concurrently, each under its own timeout. A source
    that errors or times out contributes nothing and its fields fall back to
    the latest history entry or to the documented defaults, so fusion itself
    never fails because upstream data is missing.
    """

    def __init__(
        self,
        sensor_store: SensorStore,
        ndvi_store: NDVIStore,
        config_store: CropConfigStore,
        history: HistoryBuffer,
        timeout_seconds: float = 2.0
    ):
        self.sensor_store = sensor_store
        self.ndvi_store = ndvi_store
        self.config_store = config_store
        self.history = history
        self.timeout_seconds = timeout_seconds

    async def _read(self, source: str, farm_id: str, call: Awaitable[Any]) -> Optional[Any]:
        try:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"{source} read timed out for farm {farm_id}; using defaults")
        except Exception as e:
            logger.warning(f"{source} read failed for farm {farm_id}: {e}; using defaults")
        return None

    async def _skip(self) -> None:
        return None

    async def build_field_state(
        self,
        farm_id: str,
        live_override: Optional[SensorReading] = None
    ) -> FieldState:
        """Merge every source with per-field defaults"""
        config, ndvi_record, stored_reading = await asyncio.gather(
            self._read("crop config", farm_id, self.config_store.get(farm_id)),
            self._read("NDVI", farm_id, self.ndvi_store.latest(farm_id)),
            self._skip() if live_override is not None
            else self._read("sensor", farm_id, self.sensor_store.latest(farm_id)),
        )

        config = config or CropConfig(farm_id=farm_id)
        sensor = live_override or stored_reading or SensorReading()
        last = self.history.latest(farm_id)
        if last is None:
            last = HistoryEntry()

        return FieldState(
            farm_id=farm_id,
            soil_moisture=_first(sensor.soil_moisture, last.soil_moisture, DEFAULT_SOIL_MOISTURE),
            temperature=_first(sensor.temperature, last.temperature, DEFAULT_TEMPERATURE),
            humidity=_first(sensor.humidity, last.humidity, DEFAULT_HUMIDITY),
            rain_detected=bool(sensor.rain_detected),
            rain_forecast=bool(sensor.rain_forecast),
            ndvi=ndvi_record.ndvi_value if ndvi_record is not None else DEFAULT_NDVI,
            crop_type=config.crop_type,
            soil_type=config.soil_type,
            growth_stage=config.growth_stage,
            thresholds=resolve_thresholds(config.growth_stage, config.thresholds),
            pump_on=bool(_first(sensor.pump_on, last.pump_on)),
            field_area_sqm=config.field_area_sqm,
            sprinkler_flow_rate_lpm=config.sprinkler_flow_rate_lpm,
            coordinates=config.coordinates
        )
