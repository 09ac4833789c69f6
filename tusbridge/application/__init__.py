"""
Application layer: wiring and lifecycle of the bridge's components.
"""

from .startup import ApplicationStartup, load_object

__all__ = [
    "ApplicationStartup",
    "load_object",
]
