"""
Tus server supervisor.

Owns the tusd helper process, the session registry and the control-plane
client, and migrates finished uploads into the content store. Every
public operation runs under one lock, so start, stop, create and finish
never overlap.
"""

import asyncio
import logging
import os
from typing import Any, Dict, Mapping, Optional
from urllib.parse import unquote, urlsplit

import aiofiles
import aiofiles.os

from ....core.exceptions import (
    HelperNotRunningError, HelperStartupError, UnsafeUploadPathError,
    UploadNotFoundError
)
from ....core.interfaces.storage import IContentStore, MetaObject
from ....core.interfaces.uploads import IUploadBroker
from ...config.models import TusConfig, url_host
from .client import SessionClient
from .process import HelperProcess
from .registry import SessionRegistry

logger = logging.getLogger(__name__)

INFO_SUFFIX = ".info"
WILDCARD_HOSTS = ("0.0.0.0", "::")


def upload_file_name(location: str) -> str:
    """
    Name of the helper's data file for a session location.

    This is the last path segment of the location URL.

    Raises:
        UnsafeUploadPathError: If the segment is empty, a dot segment, or
            would escape the data directory.
    """
    path = urlsplit(location).path
    name = unquote(path.rsplit("/", 1)[-1])
    if (
        not name
        or name in (".", "..")
        or "/" in name
        or "\\" in name
        or "\x00" in name
        or os.sep in name
        or (os.altsep is not None and os.altsep in name)
    ):
        raise UnsafeUploadPathError(location)
    return name


class TusServer(IUploadBroker):
    """
    Supervisor and session broker for a tusd helper process.

    Usage::

        async with TusServer(config.tus) as server:
            href = await server.create(oid, size, request.headers)
            ...
            await server.finish(oid, store)
    """

    def __init__(self, config: TusConfig) -> None:
        self._config = config
        self._lock = asyncio.Lock()
        self._process: Optional[HelperProcess] = None
        self._client: Optional[SessionClient] = None
        self._registry = SessionRegistry()
        self._watch_task: Optional["asyncio.Task[None]"] = None
        self._data_path = config.upload_directory()
        self._base_url = f"{config.external_origin()}/files/"

    @property
    def name(self) -> str:
        return "TusServer"

    @property
    def is_running(self) -> bool:
        return self._process is not None

    @property
    def data_path(self) -> str:
        return self._data_path

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def registry(self) -> SessionRegistry:
        return self._registry

    async def __aenter__(self) -> "TusServer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    async def start(self) -> None:
        """
        Launch the helper and wait until its control API answers.

        Does nothing if the helper is already running.

        Raises:
            HelperStartupError: If the helper cannot be launched or does not
                become ready within the configured timeout.
        """
        async with self._lock:
            if self._process is not None:
                return

            os.makedirs(self._data_path, exist_ok=True)
            host, port = self._config.listen_address()
            process = HelperProcess(
                binary=self._config.binary,
                data_path=self._data_path,
                host=host,
                port=port,
                behind_proxy=self._config.behind_proxy,
            )
            await process.launch()

            client = SessionClient(
                self._base_url,
                behind_proxy=self._config.behind_proxy,
                timeout=self._config.request_timeout,
            )
            await client.open()

            try:
                await self._wait_until_ready(process, client)
            except BaseException:
                await client.close()
                await process.kill()
                raise

            self._process = process
            self._client = client
            self._registry = SessionRegistry()
            self._watch_task = asyncio.create_task(self._watch(process))

            logger.info("Tus server started", extra={"fn": "Start"})

    async def stop(self) -> None:
        """Kill the helper if it is running. Safe to call repeatedly."""
        async with self._lock:
            if self._watch_task is not None:
                self._watch_task.cancel()
                await asyncio.gather(self._watch_task, return_exceptions=True)
                self._watch_task = None

            if self._process is not None:
                await self._process.kill()
                self._process = None

            if self._client is not None:
                await self._client.close()
                self._client = None

            logger.info("Tus server stopped", extra={"fn": "Stop"})

    async def create(self, oid: str, size: int,
                     headers: Optional[Mapping[str, str]] = None) -> str:
        """
        Register a tus upload for ``oid`` and return its location.

        ``headers`` are the inbound request headers; when the helper runs
        behind a proxy the X-Forwarded-* headers are relayed from them.
        """
        if not isinstance(oid, str) or not oid:
            raise ValueError("oid must be a non-empty string")
        if not isinstance(size, int) or isinstance(size, bool) or size < 0:
            raise ValueError(f"size must be a non-negative integer, got {size!r}")

        async with self._lock:
            if self._client is None:
                raise HelperNotRunningError()

            location = await self._client.create_session(oid, size, headers)
            self._registry.record(oid, location)
            return location

    async def finish(self, oid: str, store: IContentStore) -> None:
        """
        Move the finished upload for ``oid`` into ``store``.

        The helper's data file and its ``.info`` sidecar are removed only
        after the store accepted the bytes. On a store failure everything
        is left in place so the call can be retried.
        """
        async with self._lock:
            location = self._registry.lookup(oid)
            if location is None:
                raise UploadNotFoundError(oid)

            name = upload_file_name(location)
            filename = os.path.join(self._data_path, name)

            stat = await aiofiles.os.stat(filename)
            meta = MetaObject(oid=oid, size=stat.st_size, existing=False)

            async with aiofiles.open(filename, "rb") as reader:
                await store.put(meta, reader)

            logger.info(f"Moved tus upload {name} for oid {oid} to content store ({meta.size} bytes)",
                        extra={"fn": "Finish", "object": meta.to_dict()})
            await self._remove_quietly(filename)
            await self._remove_quietly(filename + INFO_SUFFIX)

    async def check_health(self) -> Dict[str, Any]:
        process = self._process
        return {
            "healthy": process is not None and process.is_alive,
            "status": "running" if process is not None else "stopped",
            "details": {
                "pid": process.pid if process is not None else None,
                "command": process.command if process is not None else None,
                "data_directory": self._data_path,
                "base_url": self._base_url,
                "sessions": len(self._registry),
            }
        }

    async def _wait_until_ready(self, process: HelperProcess, client: SessionClient) -> None:
        """Poll the helper's creation endpoint until it answers."""
        host = "127.0.0.1" if process.host in WILDCARD_HOSTS else process.host
        probe_url = f"http://{url_host(host)}:{process.port}/files/"
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self._config.ready_timeout

        while True:
            if not process.is_alive:
                raise HelperStartupError(
                    f"Tus server exited with code {process.returncode} before becoming ready",
                    {"command": process.command},
                )

            remaining = deadline - loop.time()
            status = await client.probe(probe_url, timeout=max(min(remaining, 1.0), 0.01))
            if status is not None:
                logger.debug(f"Tus server answered {status} at {probe_url}", extra={"fn": "Start"})
                return

            if loop.time() >= deadline:
                raise HelperStartupError(
                    f"Tus server did not answer at {probe_url} within "
                    f"{self._config.ready_timeout}s",
                    {"command": process.command},
                )
            await asyncio.sleep(self._config.ready_poll_interval)

    async def _watch(self, process: HelperProcess) -> None:
        """Clear the handle if the helper exits on its own."""
        returncode = await process.wait()
        async with self._lock:
            if self._process is not process:
                return
            logger.warning(f"Tus server exited unexpectedly with code {returncode}",
                           extra={"fn": "Start"})
            await process.kill()
            self._process = None
            self._watch_task = None
            if self._client is not None:
                await self._client.close()
                self._client = None

    async def _remove_quietly(self, path: str) -> None:
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            logger.debug(f"Nothing to remove at {path}", extra={"fn": "Finish"})
        except OSError as e:
            logger.warning(f"Failed to remove tus artifact {path}: {e}", extra={"fn": "Finish"})
