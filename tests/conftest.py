"""Global fixtures for the agent tests."""

import email
import logging
import sys
from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from email.message import Message
from pathlib import Path
from typing import Any

import httpx
import pytest
import pytest_asyncio

from rayosx_agent.services.upload import UploadClient
from rayosx_agent.settings import Settings
from rayosx_agent.utils.logger import logger

SERVER_URL = "http://vps.test"

Responder = Callable[[httpx.Request], httpx.Response | Awaitable[httpx.Response]]


class FakeServer:
    """Records every request and answers with ``respond`` (success by default)."""

    url = SERVER_URL

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.respond: Responder = lambda request: httpx.Response(200, json={"success": True})
        self.transport = httpx.MockTransport(self._handle)

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.respond(request)
        if isinstance(response, Awaitable):
            response = await response
        return response

    @property
    def uploads(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "POST"]

    @staticmethod
    def parse_multipart(body: bytes, content_type: str) -> list[Message]:
        """Parse a multipart body with the standard library email parser."""
        message = email.message_from_bytes(f"Content-Type: {content_type}\r\n\r\n".encode() + body)
        assert message.is_multipart()
        return message.get_payload()  # type: ignore[return-value]

    @classmethod
    def form_fields(cls, request: httpx.Request) -> dict[str, Any]:
        """Map form field names to text values (str) or file parts (Message)."""
        fields: dict[str, Any] = {}
        for part in cls.parse_multipart(request.content, request.headers["Content-Type"]):
            name = part.get_param("name", header="content-disposition")
            fields[name] = part if part.get_filename() else part.get_payload()
        return fields


class LogCapture:
    """Loguru records emitted while the fixture is active."""

    def __init__(self) -> None:
        self.records: list[dict[str, Any]] = []

    def __call__(self, message: Any) -> None:
        self.records.append(message.record)

    def messages(self, level: str | None = None) -> list[str]:
        return [r["message"] for r in self.records if level is None or r["level"].name == level]


@pytest.fixture
def watch_dir(tmp_path: Path) -> Path:
    """Watched folder (not created)."""
    return tmp_path / "entrada"


@pytest.fixture
def settings(watch_dir: Path) -> Settings:
    """Settings with no debounce and no log file."""
    return Settings(
        server_url=SERVER_URL,
        watch_dir=watch_dir,
        station_name="RX-SALA-1",
        debounce_seconds=0,
        poll_interval_ms=20,
        log_file=None,
    )


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest_asyncio.fixture
async def upload_client(server: FakeServer) -> AsyncGenerator[UploadClient, None]:
    """Upload client wired to the fake server."""
    client = UploadClient(SERVER_URL, transport=server.transport)
    yield client
    await client.close()


@pytest.fixture
def logs() -> Generator[LogCapture, None, None]:
    """Capture loguru output during the test."""
    capture = LogCapture()
    handler_id = logger.add(capture, level="DEBUG")
    yield capture
    logger.remove(handler_id)


@pytest.fixture
def restore_logger() -> Generator[None, None, None]:
    """Undo ``setup_logging`` after the test."""
    yield
    logging.basicConfig(handlers=[], force=True)
    logger.remove()
    logger.add(sys.stderr)
