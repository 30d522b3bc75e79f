"""Metadata derived from an image filename and extension."""

import re

from rayosx_agent.models import MediaKind
from rayosx_agent.settings import DICOM_EXTENSION

# Lab codes are 4-5 digits: "1005_imagen.dcm", "L1005.jpg", "paciente_1005.dcm"
CORRELATION_ID_REGEX = re.compile(r"(\d{4,5})")


def extract_correlation_id(filename: str) -> str | None:
    """Extract the LIS code from a filename.

    Args:
        filename: Base name of the file

    Returns:
        The first run of 4-5 digits, or None if the name has none

    Examples:
        >>> extract_correlation_id("1005_chest.dcm")
        '1005'
        >>> extract_correlation_id("scan.png") is None
        True
    """
    match = CORRELATION_ID_REGEX.search(filename)
    return match.group(1) if match else None


def media_kind(extension: str) -> MediaKind:
    return MediaKind.DICOM if extension.lower() == DICOM_EXTENSION else MediaKind.IMAGE


def mime_type(extension: str) -> str:
    """Content type sent for the file part: ``application/dicom`` or ``image/<ext>``."""
    extension = extension.lower()
    if extension == DICOM_EXTENSION:
        return "application/dicom"
    return f"image/{extension.lstrip('.')}"
