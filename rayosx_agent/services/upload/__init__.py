"""Upload client for the image intake endpoint."""

from rayosx_agent.services.upload.client import MAX_BODY_PREVIEW, UploadClient

__all__ = [
    "MAX_BODY_PREVIEW",
    "UploadClient",
]
