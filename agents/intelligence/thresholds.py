# agents/intelligence/thresholds.py
"""
Growth-stage soil moisture thresholds
"""
from typing import Dict, Mapping, Optional

from agents.intelligence.models import StageThresholds

FALLBACK_STAGE = "vegetative"

DEFAULT_THRESHOLDS: Dict[str, StageThresholds] = {
    "germination": StageThresholds(min=60, max=80, critical_low=50),
    "seedling": StageThresholds(min=55, max=75, critical_low=45),
    "vegetative": StageThresholds(min=45, max=70, critical_low=35),
    "flowering": StageThresholds(min=50, max=75, critical_low=40),
    "fruiting": StageThresholds(min=45, max=70, critical_low=35),
    "maturity": StageThresholds(min=35, max=60, critical_low=25),
    "harvest": StageThresholds(min=20, max=45, critical_low=15),
}

def resolve_thresholds(
    stage: Optional[str],
    overrides: Optional[Mapping[str, StageThresholds]] = None
) -> StageThresholds:
    """
    Thresholds for a growth stage.

    Looks the stage up in the farm's override table when one is set, else in
    the default table; a known stage missing from a partial override table
    keeps its default bounds. Unknown stages fall back to the vegetative
    entry instead of failing.
    """
    table = overrides or DEFAULT_THRESHOLDS
    key = (stage or "").strip().lower()

    if key in table:
        return table[key]
    if key in DEFAULT_THRESHOLDS:
        return DEFAULT_THRESHOLDS[key]
    return table.get(FALLBACK_STAGE) or DEFAULT_THRESHOLDS[FALLBACK_STAGE]
