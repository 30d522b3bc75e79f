"""
Exceptions for the X-ray agent.

This module provides the exceptions raised across the agent. Business
rejections reported by the server are not exceptions: they come back as an
unsuccessful ``UploadResult``.
"""


class AgentError(Exception):
    """Base exception for all agent-specific errors."""

    pass


class ConfigError(AgentError):
    """Error related to configuration issues. Fatal at startup."""

    pass


class ArchiveError(AgentError):
    """Error moving an uploaded file into the processed folder."""

    pass


class UploadError(AgentError):
    """Base exception for transport-level upload failures."""

    pass


class UploadConnectionError(UploadError):
    """The server could not be reached (refused, DNS, TLS, timeout)."""

    pass


class UploadResponseError(UploadError):
    """The server answered with something that is not a JSON object."""

    def __init__(self, message: str, body: str = "", status_code: int | None = None) -> None:
        self.body = body
        self.status_code = status_code
        super().__init__(message)
