# core/logging.py
"""
Logging configuration for the backend
"""
import logging
import sys
from typing import Optional

from .config import get_settings

def setup_logging(level: Optional[str] = None):
    """Setup logging configuration; ``level`` overrides the configured log level"""
    settings = get_settings()
    log_level = getattr(logging, (level or settings.log_level.value).upper())

    # Configure root logger
    logging.basicConfig(
        level=log_level,
        format=settings.log_format,
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )

    # Set specific logger levels
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("fastapi").setLevel(logging.INFO)
    logging.getLogger("agents").setLevel(log_level)
    logging.getLogger("core").setLevel(log_level)

    # Per-farm decision logs are noisy in production
    if settings.is_production:
        logging.getLogger("agents.intelligence").setLevel(max(log_level, logging.WARNING))
