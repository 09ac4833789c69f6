"""
Configuration loading and validation for the bridge.
"""

from .loader import ConfigLoader
from .models import ApiConfig, ApplicationConfig, LoggingConfig, TusConfig

__all__ = [
    "ConfigLoader",
    "ApplicationConfig",
    "ApiConfig",
    "LoggingConfig",
    "TusConfig",
]
