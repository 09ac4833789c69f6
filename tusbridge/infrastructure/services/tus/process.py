"""
Helper process handle.

Launches the tusd binary as an asyncio subprocess and relays its stdout
and stderr into the log, one record per line.
"""

import asyncio
import logging
from typing import List, Optional

from ....core.exceptions import HelperStartupError

logger = logging.getLogger(__name__)

STDOUT_TAG = "tusout"
STDERR_TAG = "tuserr"

# Relay tasks get this long to drain buffered output after the process dies
RELAY_DRAIN_TIMEOUT = 1.0


class HelperProcess:
    """A single running tusd process and its output relays."""

    def __init__(
        self,
        binary: str,
        data_path: str,
        host: str,
        port: int,
        behind_proxy: bool = False
    ) -> None:
        self.binary = binary
        self.data_path = data_path
        self.host = host
        self.port = port
        self.behind_proxy = behind_proxy
        self._process: Optional[asyncio.subprocess.Process] = None
        self._relay_tasks: List["asyncio.Task[None]"] = []

    @property
    def command(self) -> List[str]:
        """Command line used to launch the helper."""
        args = [
            self.binary,
            "-upload-dir", self.data_path,
            "-host", self.host,
            "-port", str(self.port),
        ]
        if self.behind_proxy:
            args.append("-behind-proxy")
        return args

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode if self._process else None

    @property
    def is_alive(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def launch(self) -> None:
        """
        Start the helper and attach the output relays.

        Raises:
            HelperStartupError: If the binary cannot be executed or its
                output streams cannot be attached.
        """
        try:
            self._process = await asyncio.create_subprocess_exec(
                *self.command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise HelperStartupError(
                f"Error starting tus server: {e}",
                {"command": self.command},
            ) from e

        stdout, stderr = self._process.stdout, self._process.stderr
        if stdout is None or stderr is None:
            await self.kill()
            raise HelperStartupError("Error getting tus server output streams")

        self._relay_tasks = [
            asyncio.create_task(self._relay(stdout, STDOUT_TAG)),
            asyncio.create_task(self._relay(stderr, STDERR_TAG)),
        ]
        logger.debug(f"Launched {' '.join(self.command)} (pid {self.pid})")

    async def wait(self) -> Optional[int]:
        """Wait for the process to exit and return its exit code."""
        if self._process is None:
            return None
        return await self._process.wait()

    async def kill(self) -> None:
        """Kill the process without waiting for a graceful shutdown."""
        if self._process is None:
            return

        if self._process.returncode is None:
            try:
                self._process.kill()
            except ProcessLookupError:
                pass
        await self._process.wait()

        if self._relay_tasks:
            _, pending = await asyncio.wait(self._relay_tasks, timeout=RELAY_DRAIN_TIMEOUT)
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            self._relay_tasks = []

    async def _relay(self, stream: asyncio.StreamReader, tag: str) -> None:
        while True:
            try:
                line = await stream.readline()
            except ValueError:
                # readline already dropped the oversized chunk from the buffer
                logger.warning("Discarded tus server output line over the stream limit",
                               extra={"fn": tag})
                continue
            if not line:
                break
            logger.info(line.decode("utf-8", errors="replace").rstrip(), extra={"fn": tag})
