# agents/intelligence/stores.py
"""
Collaborator interfaces for the intelligence agent and their in-memory implementations
"""
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import timedelta
from typing import Dict, List, Optional
import logging

from agents.intelligence.models import (
    CropConfig, CropConfigUpdate, IrrigationEvent, IrrigationStats,
    NDVIRecord, SensorReading, utc_now
)

logger = logging.getLogger(__name__)

class SensorStore(ABC):
    """Source of the most recent sensor reading per farm"""

    @abstractmethod
    async def latest(self, farm_id: str) -> Optional[SensorReading]:
        pass

    @abstractmethod
    async def save(self, farm_id: str, reading: SensorReading) -> None:
        pass

class NDVIStore(ABC):
    """Satellite NDVI observations per farm"""

    @abstractmethod
    async def latest(self, farm_id: str) -> Optional[NDVIRecord]:
        pass

    @abstractmethod
    async def recent(self, farm_id: str, limit: int = 5) -> List[NDVIRecord]:
        """Newest first"""
        pass

    @abstractmethod
    async def save(self, record: NDVIRecord) -> None:
        pass

class CropConfigStore(ABC):
    """Per-farm crop configuration"""

    @abstractmethod
    async def get(self, farm_id: str) -> CropConfig:
        """Return the farm's config, creating the default record on first access"""
        pass

    @abstractmethod
    async def upsert(self, farm_id: str, updates: CropConfigUpdate) -> CropConfig:
        pass

class IrrigationLog(ABC):
    """Irrigation events used for water analytics"""

    @abstractmethod
    async def append(self, farm_id: str, event: IrrigationEvent) -> IrrigationEvent:
        pass

    @abstractmethod
    async def stats(self, farm_id: str, days: int = 7) -> IrrigationStats:
        pass

# ---------- In-memory implementations ----------

class InMemorySensorStore(SensorStore):
    def __init__(self):
        self._latest: Dict[str, SensorReading] = {}

    async def latest(self, farm_id: str) -> Optional[SensorReading]:
        return self._latest.get(farm_id)

    async def save(self, farm_id: str, reading: SensorReading) -> None:
        self._latest[farm_id] = reading

class InMemoryNDVIStore(NDVIStore):
    def __init__(self):
        self._records: Dict[str, List[NDVIRecord]] = defaultdict(list)

    async def latest(self, farm_id: str) -> Optional[NDVIRecord]:
        records = await self.recent(farm_id, limit=1)
        return records[0] if records else None

    async def recent(self, farm_id: str, limit: int = 5) -> List[NDVIRecord]:
        records = sorted(self._records.get(farm_id, []), key=lambda r: r.timestamp, reverse=True)
        return records[:limit]

    async def save(self, record: NDVIRecord) -> None:
        self._records[record.farm_id].append(record)

class InMemoryCropConfigStore(CropConfigStore):
    def __init__(self):
        self._configs: Dict[str, CropConfig] = {}

    async def get(self, farm_id: str) -> CropConfig:
        config = self._configs.get(farm_id)
        if config is None:
            config = CropConfig(farm_id=farm_id)
            self._configs[farm_id] = config
            logger.info(f"Created default crop config for farm {farm_id}")
        return config

    async def upsert(self, farm_id: str, updates: CropConfigUpdate) -> CropConfig:
        current = await self.get(farm_id)
        merged = {**current.model_dump(), **updates.model_dump(exclude_unset=True, exclude_none=True)}
        config = CropConfig.model_validate(merged)
        self._configs[farm_id] = config
        return config

class InMemoryIrrigationLog(IrrigationLog):
    def __init__(self):
        self._events: Dict[str, List[IrrigationEvent]] = defaultdict(list)

    async def append(self, farm_id: str, event: IrrigationEvent) -> IrrigationEvent:
        self._events[farm_id].append(event)
        return event

    async def stats(self, farm_id: str, days: int = 7) -> IrrigationStats:
        since = utc_now() - timedelta(days=days)
        records = [e for e in self._events.get(farm_id, []) if e.created_at >= since]
        return IrrigationStats(
            total_liters_used=sum(e.liters_used or 0 for e in records),
            irrigation_count=len(records),
            days_period=days
        )
