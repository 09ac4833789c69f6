"""
Infrastructure services for the bridge.
"""

from .tus import TusServer

__all__ = [
    "TusServer",
]
