"""
tusbridge - supervision and session brokering for a tusd helper process.

The bridge launches tusd, registers resumable upload sessions with it on
behalf of a larger storage service, and moves finished uploads into that
service's content store.
"""

__version__ = "0.1.0"

from .core.exceptions import (
    TusBridgeError, HelperStartupError, HelperNotRunningError,
    SessionCreationError, UploadNotFoundError, UnsafeUploadPathError
)
from .core.interfaces.storage import IContentStore, MetaObject
from .core.interfaces.uploads import IUploadBroker
from .infrastructure.config.models import TusConfig
from .infrastructure.services.tus.server import TusServer

__all__ = [
    "TusBridgeError",
    "HelperStartupError",
    "HelperNotRunningError",
    "SessionCreationError",
    "UploadNotFoundError",
    "UnsafeUploadPathError",
    "IContentStore",
    "MetaObject",
    "IUploadBroker",
    "TusConfig",
    "TusServer",
]
