"""
tusd helper supervision, session brokering and upload migration.
"""

from .client import SessionClient
from .process import HelperProcess
from .registry import SessionRegistry
from .server import TusServer, upload_file_name

__all__ = [
    "HelperProcess",
    "SessionClient",
    "SessionRegistry",
    "TusServer",
    "upload_file_name",
]
