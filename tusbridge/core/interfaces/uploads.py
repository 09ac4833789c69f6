"""
Upload broker interface.

Defines the contract the surrounding service uses to register resumable
upload sessions with the helper process and to migrate finished uploads
into the content store.
"""

from abc import abstractmethod
from typing import Mapping, Optional

from .lifecycle import IComponent
from .storage import IContentStore


class IUploadBroker(IComponent):
    """
    Interface for the helper process supervisor and session broker.

    All operations are serialized: no two of start, stop, create and
    finish run at the same time on one broker.
    """

    @abstractmethod
    async def create(self, oid: str, size: int,
                     headers: Optional[Mapping[str, str]] = None) -> str:
        """
        Register a new upload session for an object.

        Args:
            oid: Object identifier
            size: Declared upload length in bytes
            headers: Inbound request headers, used for proxy forwarding

        Returns:
            Session location the uploading client should transfer to

        Raises:
            SessionCreationError: If the helper did not create a session
        """
        pass

    @abstractmethod
    async def finish(self, oid: str, store: IContentStore) -> None:
        """
        Move a completed upload from the helper into the content store.

        Raises:
            UploadNotFoundError: If no session exists for the oid
            UnsafeUploadPathError: If the session location is not a plain name
            OSError: If the finished file is missing or unreadable
        """
        pass

    @property
    @abstractmethod
    def is_running(self) -> bool:
        """Whether the helper process is currently running."""
        pass
