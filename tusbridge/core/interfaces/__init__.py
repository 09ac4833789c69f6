"""
Core interfaces for the tus bridge.

These abstract contracts keep the supervisor, the content store and the
API layer loosely coupled.
"""

from .lifecycle import IStartable, IStoppable, IHealthCheckable, IComponent
from .storage import AsyncReader, IContentStore, MetaObject
from .uploads import IUploadBroker

__all__ = [
    "IStartable",
    "IStoppable",
    "IHealthCheckable",
    "IComponent",
    "AsyncReader",
    "IContentStore",
    "MetaObject",
    "IUploadBroker",
]
