"""
Shared test fixtures for the intelligence engine test suite.

Provides:
- A field-state factory with sensible vegetative-stage defaults
- An IntelligenceAgent wired to fresh in-memory stores
- A controllable clock for cache TTL tests
"""
import logging

import pytest

from agents.intelligence.agent import IntelligenceAgent
from agents.intelligence.models import FieldState
from agents.intelligence.stores import (
    InMemoryCropConfigStore, InMemoryIrrigationLog, InMemoryNDVIStore, InMemorySensorStore
)
from agents.intelligence.thresholds import resolve_thresholds
from core.cache import DecisionCache, HistoryBuffer

# Keep test output clean
logging.getLogger("agents").setLevel(logging.WARNING)
logging.getLogger("core").setLevel(logging.WARNING)

class FakeClock:
    """Monotonic clock the tests move by hand"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

@pytest.fixture()
def clock():
    return FakeClock()

@pytest.fixture()
def make_field_state():
    """Build a FieldState; thresholds follow growth_stage unless given"""

    def _make(**overrides) -> FieldState:
        values = {
            "farm_id": "farm-1",
            "soil_moisture": 55.0,
            "temperature": 28.0,
            "humidity": 60.0,
            "ndvi": 0.65,
            "growth_stage": "vegetative",
            "field_area_sqm": 1000,
            "sprinkler_flow_rate_lpm": 15,
        }
        values.update(overrides)
        values.setdefault("thresholds", resolve_thresholds(values["growth_stage"]))
        return FieldState(**values)

    return _make

@pytest.fixture()
def stores():
    return {
        "sensor_store": InMemorySensorStore(),
        "ndvi_store": InMemoryNDVIStore(),
        "config_store": InMemoryCropConfigStore(),
        "irrigation_log": InMemoryIrrigationLog(),
    }

@pytest.fixture()
def agent(stores, clock):
    """Intelligence agent on in-memory stores with a hand-driven cache clock"""
    return IntelligenceAgent(
        cache=DecisionCache(ttl=60, max_size=100, timer=clock),
        history=HistoryBuffer(size=20),
        **stores
    )
