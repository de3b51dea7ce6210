# core/config.py
"""
Configuration management for the irrigation intelligence backend
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Dict, Any
import logging
from functools import lru_cache
from enum import Enum
from dotenv import load_dotenv

from core.exceptions import AgentConfigError

load_dotenv()

logger = logging.getLogger(__name__)

class Environment(str, Enum):
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"

class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"

class Settings(BaseSettings):
    """Application settings with validation"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Environment
    environment: Environment = Environment.DEVELOPMENT
    debug: bool = True

    # API Configuration
    api_title: str = "Smart Irrigation Intelligence Engine"
    api_version: str = "1.0.0"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Logging
    log_level: LogLevel = LogLevel.INFO
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # CORS
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:4173"
    ]
    cors_allow_credentials: bool = True
    cors_allow_methods: List[str] = ["*"]
    cors_allow_headers: List[str] = ["*"]

    # Cache Configuration
    cache_enabled: bool = True
    cache_default_ttl: int = 60  # 1 minute

    # Agent Configurations
    intelligence_config: Dict[str, Any] = {
        "cache_ttl_seconds": 60,
        "cache_max_farms": 1000,
        "history_size": 20,
        "source_timeout_seconds": 2.0,
        "stats_days": 7,
        "ndvi_trend_window": 5,
        "pump_anomaly_window": 3,
        "pump_anomaly_min_rise": 2.0,
    }

    def get_agent_config(self, agent_name: str) -> Dict[str, Any]:
        """Get configuration for specific agent"""
        config_map = {
            "intelligence": self.intelligence_config,
        }
        return config_map.get(agent_name, {})

    @property
    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()

# Validation functions
def validate_settings(settings: Settings) -> None:
    """Validate intelligence engine settings based on environment"""
    config = settings.intelligence_config
    problems = []

    for key in ("cache_ttl_seconds", "history_size", "source_timeout_seconds", "stats_days"):
        value = config.get(key)
        if value is not None and value <= 0:
            problems.append(f"{key} must be positive (got {value})")

    if config.get("pump_anomaly_window", 3) < 2:
        problems.append("pump_anomaly_window must cover at least 2 readings")

    if problems and settings.is_production:
        raise AgentConfigError(f"Invalid intelligence settings: {'; '.join(problems)}")

    for problem in problems:
        logger.warning(f"Invalid intelligence setting (defaults will apply): {problem}")
