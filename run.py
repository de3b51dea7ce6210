# run.py
"""
Main entry point for the irrigation intelligence backend
"""

import logging
from contextlib import asynccontextmanager

import uvicorn

from api.app import create_app
from core.config import get_settings, validate_settings
from core.logging import setup_logging
from agents.intelligence.agent import IntelligenceAgent
from agents.base import agent_registry

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app):
    """Application lifespan management"""

    # Startup
    logger.info("Starting irrigation intelligence backend")
    validate_settings(get_settings())

    try:
        intelligence_agent = IntelligenceAgent()
        agent_registry.register(intelligence_agent)
        logger.info("Intelligence agent registered")

        health_results = await agent_registry.health_check_all()
        for agent_name, health in health_results.items():
            logger.info(f"{agent_name}: {health['status']}")

    except Exception as e:
        logger.error(f"Failed to initialize agents: {e}")
        raise

    yield

    # Shutdown
    agent_registry.unregister("intelligence")
    logger.info("Shutting down irrigation intelligence backend")

def create_application():
    """Create FastAPI application with all configurations"""
    return create_app(lifespan=lifespan)

def main():
    """Main entry point"""
    settings = get_settings()

    logger.info(f"Starting server on {settings.api_host}:{settings.api_port}")
    logger.info(f"Environment: {settings.environment.value}")
    logger.info(f"Debug mode: {settings.debug}")

    if settings.debug:
        # Use import string for reload to work
        uvicorn.run(
            "run:create_application",
            factory=True,
            host=settings.api_host,
            port=settings.api_port,
            reload=True,
            log_level=settings.log_level.value.lower(),
            access_log=True
        )
    else:
        uvicorn.run(
            create_application(),
            host=settings.api_host,
            port=settings.api_port,
            reload=False,
            log_level=settings.log_level.value.lower(),
            access_log=True
        )

if __name__ == "__main__":
    main()
