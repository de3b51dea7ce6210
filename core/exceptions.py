# core/exceptions.py
"""
Custom exceptions for the intelligence engine
"""

class IntelligenceError(Exception):
    """Base exception for the irrigation intelligence backend"""
    pass

class AgentError(IntelligenceError):
    """Agent-related errors"""
    pass

class AgentConfigError(IntelligenceError):
    """Agent configuration errors"""
    pass

class ExternalSourceError(IntelligenceError):
    """Sensor, NDVI, config or irrigation-log store errors"""
    pass

class InvalidReadingError(IntelligenceError, ValueError):
    """A numeric input to a scoring function is not a finite number"""
    pass
