"""Multipart/form-data body builder for image uploads."""

import time
from dataclasses import dataclass, field

from rayosx_agent.models import UploadRequest

BOUNDARY_PREFIX = "----AgenteDICOM"
CRLF = "\r\n"


@dataclass(frozen=True, slots=True)
class MultipartBody:
    """A fully serialized multipart body and the headers that describe it."""

    boundary: str
    body: bytes = field(repr=False)

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    @property
    def content_length(self) -> int:
        return len(self.body)

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Type": self.content_type,
            "Content-Length": str(self.content_length),
        }


def make_boundary() -> str:
    """Boundary unique for the lifetime of one upload (not cryptographically)."""
    return f"{BOUNDARY_PREFIX}{time.time_ns()}"


def _quote(value: str) -> str:
    # Same escaping browsers apply to form-data names and filenames
    return value.replace('"', "%22").replace("\r", "%0D").replace("\n", "%0A")


def _text_part(boundary: str, name: str, value: str) -> str:
    return (
        f"--{boundary}{CRLF}"
        f'Content-Disposition: form-data; name="{_quote(name)}"{CRLF}'
        f"{CRLF}"
        f"{value}{CRLF}"
    )


def encode_fields(
    fields: list[tuple[str, str]],
    file_field: str,
    filename: str,
    content: bytes,
    content_type: str,
    boundary: str | None = None,
) -> MultipartBody:
    """Build a multipart/form-data body with text fields and one file.

    Text parts and the file part header are encoded as UTF-8; the file content
    is appended as raw bytes so binary payloads are embedded unchanged.

    Args:
        fields: Ordered (name, value) text fields
        file_field: Form field name of the file part
        filename: Filename attribute of the file part
        content: Raw file bytes
        content_type: Content-Type of the file part
        boundary: Boundary token (generated if None)

    Returns:
        MultipartBody with the serialized body and matching headers
    """
    boundary = boundary or make_boundary()

    head = "".join(_text_part(boundary, name, value) for name, value in fields)
    head += (
        f"--{boundary}{CRLF}"
        f'Content-Disposition: form-data; name="{_quote(file_field)}"; '
        f'filename="{_quote(filename)}"{CRLF}'
        f"Content-Type: {content_type}{CRLF}"
        f"{CRLF}"
    )
    tail = f"{CRLF}--{boundary}--{CRLF}"

    body = head.encode("utf-8") + content + tail.encode("utf-8")
    return MultipartBody(boundary=boundary, body=body)


def encode_upload(request: UploadRequest, boundary: str | None = None) -> MultipartBody:
    """Serialize an UploadRequest with the form fields the intake endpoint expects.

    Parts in order: ``codigoLIS`` (only with a correlation id), ``station_name``,
    ``tipo`` and the ``archivo`` file part.
    """
    fields: list[tuple[str, str]] = []
    if request.correlation_id:
        fields.append(("codigoLIS", request.correlation_id))
    fields.append(("station_name", request.station_name))
    fields.append(("tipo", request.media_kind.value))

    return encode_fields(
        fields,
        file_field="archivo",
        filename=request.filename,
        content=request.content,
        content_type=request.mime_type,
        boundary=boundary,
    )
