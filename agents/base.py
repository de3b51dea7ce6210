# agents/base.py
"""
Base agent class for the engine's agents
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, TypeVar, Generic, List
from pydantic import BaseModel
import logging
from datetime import datetime

from core.config import get_settings
from core.cache import DecisionCache
from core.exceptions import AgentError

# Type variables for generic typing
RequestType = TypeVar('RequestType', bound=BaseModel)
ResponseType = TypeVar('ResponseType', bound=BaseModel)

class BaseAgent(ABC, Generic[RequestType, ResponseType]):
    """
    Base class for agents

    Provides common functionality like:
    - Configuration management
    - Caching
    - Error handling with fallback responses
    - Logging
    """

    def __init__(self, agent_name: str, cache: Optional[DecisionCache] = None):
        self.agent_name = agent_name
        self.settings = get_settings()
        self.config = self.settings.get_agent_config(agent_name)
        self.logger = logging.getLogger(f"agents.{agent_name}")
        if cache is None and self.settings.cache_enabled:
            cache = DecisionCache(ttl=self.settings.cache_default_ttl)
        self.cache = cache

        # Validate configuration
        self._validate_config()

        self.logger.info(f"Initialized {agent_name} agent")

    @abstractmethod
    def _validate_config(self) -> None:
        """Validate agent-specific configuration"""
        pass

    @abstractmethod
    async def process_request(self, request: RequestType) -> ResponseType:
        """Process agent request - must be implemented by subclasses"""
        pass

    @abstractmethod
    async def get_fallback_response(self, request: RequestType, error: Exception) -> ResponseType:
        """Get fallback response when agent fails"""
        pass

    def get_cache_key(self, request: RequestType) -> str:
        """Generate cache key for request"""
        return f"{self.agent_name}:{hash(str(sorted(request.model_dump().items())))}"

    def from_cache(self, cached: ResponseType) -> ResponseType:
        """Hook to tag a cached response before it is returned"""
        return cached

    async def get_cached_response(self, cache_key: str) -> Optional[ResponseType]:
        """Get cached response if available"""
        if not self.cache:
            return None

        try:
            cached_data = await self.cache.get(cache_key)
            if cached_data is not None:
                self.logger.info(f"Cache hit for key: {cache_key}")
                return cached_data
        except Exception as e:
            self.logger.warning(f"Cache get error (treated as miss): {e}")

        return None

    async def set_cached_response(
        self,
        cache_key: str,
        response: ResponseType,
        version: Optional[int] = None,
        ttl: Optional[float] = None
    ) -> None:
        """Cache response unless the key was invalidated while it was being computed"""
        if not self.cache:
            return

        try:
            stored = await self.cache.set(cache_key, response, ttl=ttl, version=version)
            if stored:
                self.logger.debug(f"Cached response for key: {cache_key}")
            else:
                self.logger.info(f"Discarded stale result for key: {cache_key}")
        except Exception as e:
            self.logger.warning(f"Cache set error: {e}")

    async def execute(self, request: RequestType, use_cache: bool = True) -> ResponseType:
        """
        Main execution method with caching and error handling
        """
        start_time = datetime.now()
        cache_key = self.get_cache_key(request)

        try:
            # Check cache first
            if use_cache:
                cached_response = await self.get_cached_response(cache_key)
                if cached_response is not None:
                    return self.from_cache(cached_response)

            version = self.cache.version(cache_key) if self.cache else None

            # Process request
            self.logger.info(f"Processing {self.agent_name} request")
            response = await self.process_request(request)

            await self.set_cached_response(cache_key, response, version=version)

            # Log execution time
            execution_time = (datetime.now() - start_time).total_seconds()
            self.logger.info(f"Request processed in {execution_time:.3f}s")

            return response

        except Exception as e:
            self.logger.error(f"Error processing request: {e}", exc_info=True)

            # Try to return fallback response
            try:
                fallback_response = await self.get_fallback_response(request, e)
                self.logger.info("Returned fallback response")
                return fallback_response
            except Exception as fallback_error:
                self.logger.error(f"Fallback also failed: {fallback_error}")
                raise AgentError(f"{self.agent_name} agent failed: {e}") from e

    async def health_check(self) -> Dict[str, Any]:
        """Agent health check"""
        try:
            # Basic configuration check
            self._validate_config()

            return {
                "agent": self.agent_name,
                "status": "healthy",
                "timestamp": datetime.now().isoformat(),
                "config_valid": True,
                "cache_enabled": self.cache is not None
            }
        except Exception as e:
            return {
                "agent": self.agent_name,
                "status": "unhealthy",
                "timestamp": datetime.now().isoformat(),
                "error": str(e),
                "config_valid": False
            }

class AgentRegistry:
    """Registry for managing multiple agents"""

    def __init__(self):
        self._agents: Dict[str, BaseAgent] = {}
        self.logger = logging.getLogger("agents.registry")

    def register(self, agent: BaseAgent) -> None:
        """Register an agent"""
        self._agents[agent.agent_name] = agent
        self.logger.info(f"Registered agent: {agent.agent_name}")

    def unregister(self, agent_name: str) -> None:
        self._agents.pop(agent_name, None)

    def get(self, agent_name: str) -> Optional[BaseAgent]:
        """Get agent by name"""
        return self._agents.get(agent_name)

    def list_agents(self) -> List[str]:
        """List all registered agent names"""
        return list(self._agents.keys())

    async def health_check_all(self) -> Dict[str, Any]:
        """Health check all agents"""
        results = {}
        for name, agent in self._agents.items():
            results[name] = await agent.health_check()
        return results

# Global agent registry
agent_registry = AgentRegistry()
