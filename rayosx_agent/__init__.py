"""X-ray / DICOM folder agent: watches a folder and uploads new images to the server."""

__version__ = "1.0.0"
