"""Error taxonomy shared by the cluster client, handlers and CLI.

Every error except :class:`ClientInitError` is recovered at the operation
boundary and rendered as text; none of them terminates the server.
"""

from __future__ import annotations


class SailMCPError(Exception):
    """Base class for all SailMCP errors."""


class InvalidParameterError(SailMCPError):
    """A required parameter is missing or a parameter value is unsupported.

    Raised before any cluster call is attempted.
    """


class QueryFailedError(SailMCPError):
    """The cluster API rejected or failed a list/get request."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class NotFoundError(QueryFailedError):
    """The requested resource, or its resource kind, does not exist."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status=404)


class LogStreamError(SailMCPError):
    """Opening or reading a pod log stream failed."""


class ClientInitError(SailMCPError):
    """Kubernetes client construction failed (bad or missing credentials)."""
