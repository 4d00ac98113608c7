"""
Shared error handling for the RPC proxy.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    request_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


class ProxyException(Exception):
    """Base exception for proxy errors."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            request_id=request_id,
            code=self.code,
            message=self.message,
            details=self.details
        )


class InvalidRequestError(ProxyException):
    """Inbound body could not be interpreted as a JSON-RPC payload."""

    # Malformed bodies surface as internal failures
    status_code = 500

    def __init__(self, message: str = "Invalid request body", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_REQUEST", message, details)


class ConfigurationError(ProxyException):
    """Startup configuration errors."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class ExternalServiceError(ProxyException):
    """External service errors."""

    status_code = 502

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        super().__init__("EXTERNAL_SERVICE_ERROR", f"{service}: {message}", details)


class UpstreamServiceError(ExternalServiceError):
    """A backend RPC provider answered with a non-2xx status or could not be reached."""

    def __init__(
        self,
        backend: str,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        details: Dict[str, Any] = {"backend": backend}
        if status_code is not None:
            details["status_code"] = status_code
        if body is not None:
            details["body"] = body
        super().__init__(backend, message, details)
        self.backend = backend
        self.upstream_status = status_code
        self.body = body
