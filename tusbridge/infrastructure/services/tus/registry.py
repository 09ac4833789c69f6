"""
In-memory map from object id to the session location issued by tusd.
"""

from typing import Dict, Optional


class SessionRegistry:
    """
    Session records keyed by object id.

    Not synchronized on its own; the owning server guards every access
    with its lock.
    """

    def __init__(self) -> None:
        self._sessions: Dict[str, str] = {}

    def record(self, oid: str, location: str) -> None:
        """Map ``oid`` to ``location``, replacing any earlier session."""
        self._sessions[oid] = location

    def lookup(self, oid: str) -> Optional[str]:
        return self._sessions.get(oid)

    def __contains__(self, oid: object) -> bool:
        return oid in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
