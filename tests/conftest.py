"""
Shared fixtures for the tusbridge test suite.

Provides a fake tusd subprocess, a stub tus control plane served by
aiohttp, and a recording content store.
"""

import asyncio
import socket
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Tuple

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from tusbridge.core.interfaces.storage import AsyncReader, IContentStore, MetaObject
from tusbridge.infrastructure.config.models import TusConfig
from tusbridge.infrastructure.services.tus import process as process_module

DEFAULT_LOCATION = "http://host/files/abc123"


class FakeProcess:
    """Stands in for an asyncio.subprocess.Process running tusd."""

    _next_pid = 4000

    def __init__(self, args: Tuple[Any, ...], stdout: bytes = b"", stderr: bytes = b"") -> None:
        FakeProcess._next_pid += 1
        self.pid = FakeProcess._next_pid
        self.args = args
        self.returncode: Optional[int] = None
        self.kill_count = 0
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        self._exited = asyncio.Event()
        if stdout:
            self.stdout.feed_data(stdout)
        if stderr:
            self.stderr.feed_data(stderr)

    def exit(self, code: int = 0) -> None:
        if self.returncode is None:
            self.returncode = code
        for stream in (self.stdout, self.stderr):
            if stream is not None:
                stream.feed_eof()
        self._exited.set()

    def kill(self) -> None:
        self.kill_count += 1
        self.exit(-9)

    async def wait(self) -> Optional[int]:
        await self._exited.wait()
        return self.returncode


class Spawner:
    """Replacement for asyncio.create_subprocess_exec."""

    def __init__(self) -> None:
        self.processes: List[FakeProcess] = []
        self.calls: List[Tuple[Any, ...]] = []
        self.error: Optional[BaseException] = None
        self.exit_code: Optional[int] = None
        self.stdout = b""
        self.stderr = b""
        self.pipes = True

    async def __call__(self, *args: Any, **kwargs: Any) -> FakeProcess:
        self.calls.append(args)
        if self.error is not None:
            raise self.error
        proc = FakeProcess(args, stdout=self.stdout, stderr=self.stderr)
        if not self.pipes:
            proc.stdout = None  # type: ignore[assignment]
        if self.exit_code is not None:
            proc.exit(self.exit_code)
        self.processes.append(proc)
        return proc


@dataclass
class StubTus:
    """State of the stub tus control plane."""
    status: int = 201
    location: Optional[str] = DEFAULT_LOCATION
    delay: float = 0.0
    record_probes: bool = False
    port: int = 0
    requests: List[Any] = field(default_factory=list)
    timeline: List[str] = field(default_factory=list)


class RecordingStore(IContentStore):
    """Content store that records what it was given."""

    def __init__(self, error: Optional[Exception] = None, delay: float = 0.0,
                 timeline: Optional[List[str]] = None) -> None:
        self.error = error
        self.delay = delay
        self.timeline = timeline if timeline is not None else []
        self.calls: List[Tuple[MetaObject, bytes]] = []

    async def put(self, meta: MetaObject, reader: AsyncReader) -> None:
        self.timeline.append("put:start")
        data = await reader.read()
        if self.delay:
            await asyncio.sleep(self.delay)
        self.calls.append((meta, data))
        self.timeline.append("put:end")
        if self.error is not None:
            raise self.error


def unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def spawner(monkeypatch: pytest.MonkeyPatch) -> Spawner:
    spawn = Spawner()
    monkeypatch.setattr(process_module.asyncio, "create_subprocess_exec", spawn)
    return spawn


@pytest.fixture
async def tus_stub():
    """Serve a minimal tus creation endpoint on localhost."""
    state = StubTus()

    async def options(request: web.Request) -> web.Response:
        if state.record_probes:
            state.timeline.append("probe:start")
            await asyncio.sleep(state.delay)
            state.timeline.append("probe:end")
        return web.Response(status=204, headers={"Tus-Resumable": "1.0.0"})

    async def create(request: web.Request) -> web.Response:
        state.requests.append(request.headers.copy())
        state.timeline.append("create:start")
        if state.delay:
            await asyncio.sleep(state.delay)
        state.timeline.append("create:end")
        headers = {"Location": state.location} if state.location else {}
        return web.Response(status=state.status, headers=headers)

    app = web.Application()
    app.router.add_route("OPTIONS", "/files/", options)
    app.router.add_post("/files/", create)

    server = TestServer(app, host="127.0.0.1")
    await server.start_server()
    state.port = server.port
    yield state
    await server.close()


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "lfs_tusserver"


@pytest.fixture
def tus_config(tus_stub: StubTus, data_dir: Path) -> TusConfig:
    return TusConfig(
        host=f"127.0.0.1:{tus_stub.port}",
        ext_origin=f"http://127.0.0.1:{tus_stub.port}",
        data_directory=str(data_dir),
        ready_timeout=2.0,
        ready_poll_interval=0.01,
        request_timeout=5.0,
    )
