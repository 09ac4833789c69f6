"""
Control-plane client for the tus helper.

Registers upload sessions with tusd through its creation endpoint and
probes the helper for readiness.
"""

import asyncio
import logging
from typing import Dict, Mapping, Optional

import aiohttp

from ....core.exceptions import (
    MissingLocationError, SessionTransportError, UnexpectedStatusError
)

logger = logging.getLogger(__name__)

TUS_VERSION = "1.0.0"
FORWARDED_HEADERS = ("X-Forwarded-Host", "X-Forwarded-Proto", "X-Forwarded-Port")


class SessionClient:
    """HTTP client for the helper's creation endpoint."""

    def __init__(self, base_url: str, behind_proxy: bool = False,
                 timeout: float = 30.0) -> None:
        self.base_url = base_url
        self.behind_proxy = behind_proxy
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def is_open(self) -> bool:
        return self._session is not None and not self._session.closed

    async def open(self) -> None:
        if not self.is_open:
            self._session = aiohttp.ClientSession(timeout=self._timeout)

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    def build_headers(self, oid: str, size: int,
                      inbound: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Headers for a creation request, relaying proxy headers if configured."""
        headers = {
            "Tus-Resumable": TUS_VERSION,
            "Upload-Length": str(size),
            "Upload-Metadata": f"oid {oid}",
        }
        if self.behind_proxy and inbound is not None:
            for name in FORWARDED_HEADERS:
                value = inbound.get(name)
                if value is not None:
                    headers[name] = value
        return headers

    async def create_session(self, oid: str, size: int,
                             inbound: Optional[Mapping[str, str]] = None) -> str:
        """
        POST a creation request and return the session location.

        Raises:
            UnexpectedStatusError: Status other than 201
            MissingLocationError: 201 without a Location header
            SessionTransportError: No response was received
        """
        session = self._require_session()
        headers = self.build_headers(oid, size, inbound)

        logger.info(f"Creating POST tus upload for oid {oid} at {self.base_url}",
                    extra={"fn": "Create"})
        logger.debug(f"Upload-Metadata: {headers['Upload-Metadata']}",
                     extra={"fn": "Create"})

        try:
            async with session.post(self.base_url, headers=headers) as response:
                if response.status != 201:
                    raise UnexpectedStatusError(response.status, oid)
                location = response.headers.get("Location", "")
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SessionTransportError(
                f"Tus creation request to {self.base_url} failed: {e}", oid) from e

        if not location:
            raise MissingLocationError(oid)
        return location

    async def probe(self, url: str, timeout: float = 1.0) -> Optional[int]:
        """
        Send an OPTIONS request to ``url``.

        Returns:
            The response status, or None if the helper did not answer.
        """
        session = self._require_session()
        try:
            async with session.options(
                url,
                headers={"Tus-Resumable": TUS_VERSION},
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as response:
                return response.status
        except (aiohttp.ClientError, asyncio.TimeoutError):
            return None

    def _require_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            raise RuntimeError("SessionClient is not open")
        return self._session
