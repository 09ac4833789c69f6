"""
FastAPI application for the bridge.
"""

from .app import create_app

__all__ = [
    "create_app",
]
