"""Pytest configuration and fixtures for shareasale-client tests.

This file provides:
- RecordingService: httpx.MockTransport wrapper that records requests and
  replies with canned responses
- PortReservation / MockServer: subprocess management for the mock service
- Fixtures: credentials, clients, and the session-scoped mock service
"""

from __future__ import annotations

import socket
import subprocess
import sys
import time
from pathlib import Path
from typing import Any, Callable, Generator

import httpx
import pytest

from shareasale_client.client import ShareASaleClient
from shareasale_client.models import Credentials

# Project root for subprocess cwd
PROJECT_ROOT = Path(__file__).parent.parent
MOCK_SERVER_MODULE = "tests.integration.mock_server"

MERCHANT_ID = "12345"
TOKEN = "tok123"
SECRET_KEY = "s3cret"


class RecordingService:
    """In-process stand-in for the service, built on httpx.MockTransport.

    Every request is appended to ``requests``. The reply is produced by
    ``responder`` (a callable taking the request) or, if unset, by
    ``status_code``/``body``.

    Usage:
        service = RecordingService(body="<r><a>1</a></r>")
        client = ShareASaleClient(..., http_transport=service.transport)
    """

    def __init__(
        self,
        body: str = "",
        status_code: int = 200,
        responder: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> None:
        self.body = body
        self.status_code = status_code
        self.responder = responder
        self.requests: list[httpx.Request] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responder is not None:
            return self.responder(request)
        return httpx.Response(self.status_code, text=self.body)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]

    @property
    def last_query(self) -> dict[str, str]:
        return dict(self.last_request.url.params)


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(merchant_id=MERCHANT_ID, token=TOKEN, secret_key=SECRET_KEY)


@pytest.fixture
def make_client() -> Generator[Callable[..., tuple[ShareASaleClient, RecordingService]], None, None]:
    """Factory for clients wired to a RecordingService. Clients are closed after the test.

    Example:
        def test_x(make_client):
            client, service = make_client(body="Transaction voided")
    """
    clients: list[ShareASaleClient] = []

    def factory(**kwargs: Any) -> tuple[ShareASaleClient, RecordingService]:
        client_kwargs = {
            key: kwargs.pop(key)
            for key in ("merchant_id", "token", "secret_key", "version", "strict_xml")
            if key in kwargs
        }
        service = RecordingService(**kwargs)
        client = ShareASaleClient(
            **{
                "merchant_id": MERCHANT_ID,
                "token": TOKEN,
                "secret_key": SECRET_KEY,
                **client_kwargs,
            },
            http_transport=service.transport,
        )
        clients.append(client)
        return client, service

    yield factory

    for client in clients:
        client.close()


# =============================================================================
# Mock service subprocess
# =============================================================================


class PortReservation:
    """Holds a reserved port with socket kept open to prevent races.

    The socket stays bound until release() is called just before the
    server starts, so no other process can take the port in between.
    """

    def __init__(self) -> None:
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind(("127.0.0.1", 0))  # Port 0 = OS assigns ephemeral port
        self._port = self._socket.getsockname()[1]
        self._released = False

    @property
    def port(self) -> int:
        return self._port

    def release(self) -> int:
        """Release the socket and return the port for server use.

        Safe to call multiple times - subsequent calls are no-ops.
        """
        if not self._released:
            self._socket.close()
            self._released = True
        return self._port


def wait_for_server_ready(host: str, port: int, timeout: float = 10.0) -> bool:
    """Block until server accepts TCP connections, or timeout expires."""
    start = time.time()
    while time.time() - start < timeout:
        try:
            with socket.create_connection((host, port), timeout=1.0):
                return True
        except (ConnectionRefusedError, socket.timeout, OSError):
            time.sleep(0.1)
    return False


class MockServer:
    """Runs tests/integration/mock_server.py as a subprocess.

    The mock service checks the x-ShareASale-Authentication header against
    its own copy of the token and secret key, then answers with canned
    text or XML per action.
    """

    def __init__(self, reservation: PortReservation) -> None:
        self._reservation = reservation
        self.port = reservation.port
        self.host = "127.0.0.1"
        self.base_url = f"http://{self.host}:{self.port}"
        self._process: subprocess.Popen | None = None

    def start(self) -> None:
        """Start the mock server subprocess.

        Raises:
            RuntimeError: If server fails to start within 10 seconds.
        """
        self._reservation.release()

        self._process = subprocess.Popen(
            [
                sys.executable, "-m", MOCK_SERVER_MODULE,
                "--host", self.host,
                "--port", str(self.port),
                "--token", TOKEN,
                "--secret-key", SECRET_KEY,
            ],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=PROJECT_ROOT,
        )

        if not wait_for_server_ready(self.host, self.port):
            stderr = ""
            if self._process and self._process.stderr:
                stderr = self._process.stderr.read().decode(errors="replace")
            self.stop()
            raise RuntimeError(
                f"MockServer failed to start on port {self.port}. stderr: {stderr or '(empty)'}"
            )

    def stop(self) -> None:
        """Stop the subprocess, escalating from SIGTERM to SIGKILL after 5s."""
        if self._process:
            self._process.terminate()
            try:
                self._process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self._process.kill()
                self._process.wait(timeout=5)
            self._process = None

    def __enter__(self) -> MockServer:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()


@pytest.fixture(scope="session")
def mock_service() -> Generator[MockServer, None, None]:
    """Session-scoped mock service. Skips if fastapi/uvicorn are not installed."""
    pytest.importorskip("fastapi")
    pytest.importorskip("uvicorn")
    with MockServer(PortReservation()) as server:
        yield server


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Tag tests as integration or unit by directory.

        pytest -m integration  # only integration tests
        pytest -m unit         # only unit tests
    """
    for item in items:
        test_path = Path(item.fspath)
        if "integration" in test_path.parts:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
