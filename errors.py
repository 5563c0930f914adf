"""
Exception types raised by the heatmap engine and its upstream clients.

Fatal errors (configuration, validation, group/project listing) propagate to the caller.
Per-item UpstreamErrors are absorbed by ingest.collector and only logged.
"""
from typing import Any, Optional


class HeatmapError(Exception):
    """Base class for every error raised by this project."""

    code = 'HEATMAP_ERROR'

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        out = {'message': self.message, 'code': self.code}
        if self.details:
            out['details'] = self.details
        return out


class ConfigurationError(HeatmapError):
    """Missing credential or unreadable configuration."""

    code = 'CONFIGURATION_ERROR'


class ValidationError(HeatmapError):
    code = 'VALIDATION_ERROR'

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value


class UpstreamError(HeatmapError):
    """A call to the source-control host or issue tracker failed."""

    code = 'NETWORK_ERROR'

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None, details: Optional[str] = None):
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code


class AuthenticationError(UpstreamError):
    code = 'AUTHENTICATION_ERROR'


class AuthorizationError(UpstreamError):
    code = 'AUTHORIZATION_ERROR'


class NotFoundError(UpstreamError):
    code = 'NOT_FOUND'


class ParseError(UpstreamError):
    code = 'PARSE_ERROR'


def error_for_status(status_code: int, url: str, body: Any = None) -> UpstreamError:
    """Map an HTTP status code to the matching UpstreamError subclass."""
    details = str(body)[:200] if body else None
    if status_code == 401:
        return AuthenticationError(f"Authentication failed for {url}", url=url, status_code=status_code, details=details)
    if status_code == 403:
        return AuthorizationError(f"Access denied for {url}", url=url, status_code=status_code, details=details)
    if status_code == 404:
        return NotFoundError(f"Resource not found: {url}", url=url, status_code=status_code, details=details)
    return UpstreamError(f"Request to {url} failed with status {status_code}", url=url, status_code=status_code, details=details)


__all__ = [
    "HeatmapError",
    "ConfigurationError",
    "ValidationError",
    "UpstreamError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "ParseError",
    "error_for_status",
]
