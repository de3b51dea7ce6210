# agents/intelligence/ndvi.py
"""
NDVI helpers - band calculation, health classification, trend analysis
"""
from datetime import datetime, timedelta
from typing import Dict, Optional, Sequence

from agents.intelligence.models import NDVIRecord, NDVITrend, as_utc, utc_now

# Sentinel-2A + 2B revisit is ~5 days; 4 keeps records fresh
SATELLITE_REVISIT_WINDOW = timedelta(days=4)
TREND_DELTA = 0.05

def calculate_ndvi(nir: Optional[float], red: Optional[float]) -> Optional[float]:
    """NDVI = (NIR - Red) / (NIR + Red), rounded to 4 decimals"""
    if nir is None or red is None:
        return None
    denominator = nir + red
    if denominator == 0:
        return 0.0
    return round((nir - red) / denominator, 4)

def classify_ndvi(ndvi: Optional[float]) -> Dict[str, str]:
    """Map an NDVI value to a crop health status and irrigation priority"""
    if ndvi is None or ndvi != ndvi:
        return {
            "status": "Unknown",
            "priority": "NORMAL",
            "recommendation": "Unable to determine: NDVI data unavailable.",
        }
    if ndvi < 0.3:
        return {
            "status": "Poor",
            "priority": "HIGH",
            "recommendation": (
                "Crop health is poor. Increase irrigation priority immediately. "
                "Check for nutrient deficiency, water stress, or pest damage."
            ),
        }
    if ndvi <= 0.6:
        return {
            "status": "Moderate",
            "priority": "NORMAL",
            "recommendation": (
                "Crop health is moderate. Maintain normal irrigation schedule "
                "and keep monitoring."
            ),
        }
    return {
        "status": "Healthy",
        "priority": "LOW",
        "recommendation": (
            "Crop health is excellent. Delay irrigation to save water; "
            "usage can drop 20-30% without affecting yield."
        ),
    }

def is_fresh(timestamp: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """True while a satellite record is inside the revisit window"""
    if timestamp is None:
        return False
    return as_utc(now or utc_now()) - as_utc(timestamp) < SATELLITE_REVISIT_WINDOW

def ndvi_trend(records: Sequence[NDVIRecord]) -> NDVITrend:
    """
    Trend between the newest and the oldest of the given records.

    ``records`` are ordered newest first, as the NDVI store returns them.
    """
    if len(records) < 2:
        return NDVITrend(trend="stable", description="Not enough data for trend analysis.")

    change = records[0].ndvi_value - records[-1].ndvi_value
    if change > TREND_DELTA:
        return NDVITrend(
            trend="improving",
            description=f"NDVI improving (+{change:.3f}). Crop health trending positive."
        )
    if change < -TREND_DELTA:
        return NDVITrend(
            trend="declining",
            description=f"NDVI declining ({change:.3f}). Monitor for stress factors."
        )
    return NDVITrend(trend="stable", description="NDVI stable. Crop health consistent.")
