# api/v1/endpoints/health.py
from fastapi import APIRouter
from datetime import datetime

from agents.base import agent_registry
from core.config import get_settings

router = APIRouter()

@router.get("/")
async def health_check():
    """Service health with the status of every registered agent"""
    agents = await agent_registry.health_check_all()
    healthy = all(result.get("status") == "healthy" for result in agents.values())
    return {
        "status": "healthy" if healthy else "degraded",
        "timestamp": datetime.now().isoformat(),
        "service": get_settings().api_title,
        "agents": agents
    }
