# agents/intelligence/__init__.py
"""
Irrigation intelligence agent package
"""

from .agent import IntelligenceAgent
from .models import IntelligenceRequest, IntelligenceReport

__all__ = ["IntelligenceAgent", "IntelligenceRequest", "IntelligenceReport"]
