"""Async HTTP client for the image intake endpoint."""

from typing import Any

import httpx

from rayosx_agent.exceptions import UploadConnectionError, UploadResponseError
from rayosx_agent.models import UploadRequest, UploadResult
from rayosx_agent.services.multipart import encode_upload
from rayosx_agent.utils.logger import logger

# Raw bodies are truncated to this many characters in errors and logs
MAX_BODY_PREVIEW = 200


class UploadClient:
    """Async HTTP client for sending images to the server.

    Posts multipart bodies to ``<base_url><upload_path>`` and classifies the
    JSON answer. Plain HTTP or TLS is chosen by httpx from the URL scheme. The
    client never retries.

    Args:
        base_url: Server base URL (e.g. ``https://vps.example.com``).
        upload_path: Path of the intake endpoint.
        status_path: Path of the status endpoint used by ``check_status``.
        timeout: HTTP request timeout in seconds, None to disable.
        transport: Optional httpx transport (used by tests).

    Example:
        ```python
        async with UploadClient("https://vps.example.com") as client:
            result = await client.upload(request)
            if not result.success:
                print(result.message)
        ```
    """

    def __init__(
        self,
        base_url: str,
        upload_path: str = "/api/equipos/recibir-imagen",
        status_path: str = "/api/equipos/estados",
        timeout: float | None = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.upload_path = upload_path
        self.status_path = status_path
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def upload_url(self) -> str:
        return f"{self.base_url}{self.upload_path}"

    @property
    def status_url(self) -> str:
        return f"{self.base_url}{self.status_path}"

    async def upload(self, request: UploadRequest) -> UploadResult:
        """POST one file to the intake endpoint.

        Args:
            request: File bytes and form metadata

        Returns:
            UploadResult. ``success`` is False when the server rejected the
            image (a business rejection, not an error).

        Raises:
            UploadConnectionError: If the server cannot be reached.
            UploadResponseError: If the answer is not a JSON object.
        """
        multipart = encode_upload(request)
        logger.debug(
            f"POST {self.upload_url} ({multipart.content_length} bytes, boundary {multipart.boundary})"
        )

        try:
            response = await self._client.post(
                self.upload_url, content=multipart.body, headers=multipart.headers
            )
        except httpx.TransportError as e:
            raise UploadConnectionError(f"Cannot connect to {self.base_url}: {e}") from e

        return self._parse_response(response)

    def _parse_response(self, response: httpx.Response) -> UploadResult:
        """Classify the server answer. The HTTP status code is not interpreted."""
        try:
            body = response.text
            payload: Any = response.json()
        except ValueError as e:
            preview = response.content[:MAX_BODY_PREVIEW].decode("utf-8", errors="replace")
            raise UploadResponseError(
                f"Non-JSON response (HTTP {response.status_code}): {preview}",
                body=preview,
                status_code=response.status_code,
            ) from e

        if not isinstance(payload, dict):
            raise UploadResponseError(
                f"Unexpected response (HTTP {response.status_code}): {body[:MAX_BODY_PREVIEW]}",
                body=body[:MAX_BODY_PREVIEW],
                status_code=response.status_code,
            )

        message = payload.get("message")
        return UploadResult(
            success=bool(payload.get("success")),
            message=str(message) if message is not None else None,
            status_code=response.status_code,
            raw_body=body,
        )

    async def check_status(self) -> int:
        """GET the status endpoint to confirm the server is reachable.

        Returns:
            HTTP status code of the answer. Any status means reachable.

        Raises:
            UploadConnectionError: If the server cannot be reached.
        """
        try:
            response = await self._client.get(self.status_url)
        except httpx.TransportError as e:
            raise UploadConnectionError(f"Cannot connect to {self.base_url}: {e}") from e
        return response.status_code

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "UploadClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
