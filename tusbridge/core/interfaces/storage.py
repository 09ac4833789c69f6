"""
Content store contract consumed by the finish step.

The store itself lives outside this package; only its boundary is
described here.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Protocol


class AsyncReader(Protocol):
    """Minimal readable stream handed to the store."""

    async def read(self, size: int = -1) -> bytes:
        ...


@dataclass(frozen=True)
class MetaObject:
    """Metadata describing an object being written to the store."""
    oid: str
    size: int
    existing: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {"oid": self.oid, "size": self.size, "existing": self.existing}


class IContentStore(ABC):
    """Durable content-addressed destination for finished uploads."""

    @abstractmethod
    async def put(self, meta: MetaObject, reader: AsyncReader) -> None:
        """
        Write an object's bytes to the store.

        Args:
            meta: Object metadata (oid and authoritative size)
            reader: Stream positioned at the start of the object's bytes

        Raises:
            Exception: Any failure; the caller leaves its source intact.
        """
        pass
