"""
Tests for the FastAPI application and its routes.
"""

from typing import Any, Dict, Mapping, Optional
from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from tusbridge.application.startup import ApplicationStartup
from tusbridge.core.exceptions import (
    HelperNotRunningError, UnexpectedStatusError, UnsafeUploadPathError,
    UploadNotFoundError
)
from tusbridge.core.interfaces.storage import IContentStore
from tusbridge.infrastructure.config.models import ApplicationConfig
from tusbridge.presentation.api.app import create_app

from .conftest import RecordingStore
from .test_application_startup import FakeBroker


class ScriptedBroker(FakeBroker):
    """Broker whose create/finish outcomes are set by the test."""

    def __init__(self, config: Any = None) -> None:
        super().__init__(config)
        self.create_error: Optional[Exception] = None
        self.finish_error: Optional[Exception] = None
        self.seen_headers: Optional[Mapping[str, str]] = None

    async def create(self, oid: str, size: int,
                     headers: Optional[Mapping[str, str]] = None) -> str:
        self.seen_headers = headers
        if self.create_error is not None:
            raise self.create_error
        return f"http://tus.example.com/files/{oid}-session"

    async def finish(self, oid: str, store: IContentStore) -> None:
        self.calls.append(f"finish:{oid}")
        if self.finish_error is not None:
            raise self.finish_error


def build_app(content_store: Optional[str] = "tests.conftest:RecordingStore") -> FastAPI:
    config = ApplicationConfig(content_store=content_store)
    with patch("tusbridge.application.startup.TusServer", ScriptedBroker):
        startup = ApplicationStartup(config)
        startup.configure_services()
    return create_app(startup, config)


@pytest.fixture
def app() -> FastAPI:
    return build_app()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture
def broker(app: FastAPI) -> ScriptedBroker:
    return app.state.upload_broker


class TestCreateApp:

    def test_app_state(self, app: FastAPI) -> None:
        assert app.title == "tusbridge"
        assert isinstance(app.state.upload_broker, ScriptedBroker)
        assert isinstance(app.state.content_store, RecordingStore)

    def test_root(self, client: TestClient) -> None:
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["name"] == "tusbridge"
        assert "X-Request-ID" in response.headers

    def test_request_id_is_echoed(self, client: TestClient) -> None:
        response = client.get("/", headers={"X-Request-ID": "req-1"})

        assert response.headers["X-Request-ID"] == "req-1"

    def test_lifespan_starts_and_stops_broker(self, app: FastAPI, broker: ScriptedBroker) -> None:
        with TestClient(app):
            assert broker.calls == ["start"]

        assert broker.calls == ["start", "stop"]


class TestHealthRoutes:

    def test_health(self, client: TestClient) -> None:
        response = client.get("/health/")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_live(self, client: TestClient) -> None:
        assert client.get("/health/live").json()["alive"] is True

    def test_detailed_reports_broker(self, app: FastAPI) -> None:
        with TestClient(app) as client:
            body = client.get("/health/detailed").json()

        assert body["status"] == "healthy"
        assert body["components"]["FakeBroker"]["healthy"] is True

    def test_detailed_degraded_when_stopped(self, client: TestClient) -> None:
        body = client.get("/health/detailed").json()

        assert body["status"] == "degraded"


class TestUploadRoutes:

    def test_create_upload(self, client: TestClient, broker: ScriptedBroker) -> None:
        response = client.post(
            "/uploads/",
            json={"oid": "oid1", "size": 42},
            headers={"X-Forwarded-Host": "lfs.example.com"},
        )

        assert response.status_code == 201
        assert response.json() == {"oid": "oid1", "href": "http://tus.example.com/files/oid1-session"}
        assert broker.seen_headers["x-forwarded-host"] == "lfs.example.com"

    @pytest.mark.parametrize("body", [{"oid": "", "size": 1}, {"oid": "oid1", "size": -1}, {"oid": "oid1"}])
    def test_create_upload_validation(self, client: TestClient, body: Dict[str, Any]) -> None:
        assert client.post("/uploads/", json=body).status_code == 422

    def test_create_upload_helper_not_running(self, client: TestClient, broker: ScriptedBroker) -> None:
        broker.create_error = HelperNotRunningError()

        assert client.post("/uploads/", json={"oid": "oid1", "size": 1}).status_code == 503

    def test_create_upload_control_plane_failure(self, client: TestClient, broker: ScriptedBroker) -> None:
        broker.create_error = UnexpectedStatusError(200, "oid1")

        response = client.post("/uploads/", json={"oid": "oid1", "size": 1})

        assert response.status_code == 502
        assert response.json()["detail"]["error"] == "UNEXPECTED_STATUS"

    def test_verify_upload(self, client: TestClient, broker: ScriptedBroker) -> None:
        response = client.post("/uploads/oid1/verify")

        assert response.status_code == 200
        assert response.json() == {"oid": "oid1", "status": "stored"}
        assert broker.calls == ["finish:oid1"]

    @pytest.mark.parametrize("error,status", [
        (UploadNotFoundError("oid1"), 404),
        (UnsafeUploadPathError("http://host/files/.."), 400),
        (FileNotFoundError("abc123"), 404),
        (IOError("disk full"), 500),
    ])
    def test_verify_upload_errors(self, client: TestClient, broker: ScriptedBroker,
                                  error: Exception, status: int) -> None:
        broker.finish_error = error

        assert client.post("/uploads/oid1/verify").status_code == status

    def test_verify_without_store(self) -> None:
        client = TestClient(build_app(content_store=None))

        assert client.post("/uploads/oid1/verify").status_code == 503
