"""Models for files moving through the upload pipeline."""

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class FileState(str, Enum):
    """Pipeline state of a watched file."""

    DISCOVERED = "discovered"
    DEBOUNCING = "debouncing"
    GONE = "gone"
    UPLOADING = "uploading"
    UPLOADED = "uploaded"
    ARCHIVED = "archived"
    REJECTED = "rejected"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self not in ACTIVE_STATES


# An uploaded file whose archive step failed stays UPLOADED for good
ACTIVE_STATES = frozenset({FileState.DISCOVERED, FileState.DEBOUNCING, FileState.UPLOADING})


class MediaKind(str, Enum):
    """Value of the ``tipo`` form field."""

    DICOM = "dicom"
    IMAGE = "imagen"


@dataclass(slots=True)
class WatchedFile:
    """A file observed in the watched directory.

    Owned by a single pipeline; only its ``state`` changes after discovery.
    """

    path: Path
    size: int
    discovered_at: float = field(default_factory=time.time)
    state: FileState = FileState.DISCOVERED

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def extension(self) -> str:
        return self.path.suffix.lower()


@dataclass(slots=True)
class UploadRequest:
    """Everything needed for a single upload attempt.

    Not a Pydantic model because the payload is raw bytes that must never be
    validated or coerced.
    """

    filename: str
    content: bytes = field(repr=False)
    media_kind: MediaKind
    mime_type: str
    station_name: str
    correlation_id: str | None = None


class UploadResult(BaseModel):
    """Outcome of one upload attempt as reported by the server."""

    model_config = ConfigDict(frozen=True)

    success: bool
    message: str | None = None
    status_code: int | None = None
    raw_body: str = ""
