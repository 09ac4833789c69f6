"""
API router modules for different endpoints.
"""

from . import health, uploads

__all__ = [
    "health",
    "uploads",
]
