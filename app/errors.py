"""
Nano Banana Proxy - Errors
Every failure a route can surface to the caller
"""

from typing import Any

INTERNAL_ERROR_MESSAGE = "Internal server error"


class GatewayError(Exception):
    """
    Base error rendered as ``{"error": error}`` with ``status_code``.

    Args:
        status_code: HTTP status returned to the caller
        error: Payload placed under the ``error`` key (string or upstream body)
    """

    status_code: int = 500

    def __init__(self, error: Any, status_code: int | None = None):
        super().__init__(error if isinstance(error, str) else repr(error))
        self.error = error
        if status_code is not None:
            self.status_code = status_code


class ConfigurationError(GatewayError):
    """The upstream credential is not configured."""

    status_code = 500

    def __init__(self, error: Any = "API key not configured on server"):
        super().__init__(error)


class BadRequestError(GatewayError):
    status_code = 400


class UpstreamError(GatewayError):
    """Upstream call failed or answered with a non-2xx status."""

    def __init__(self, error: Any = None, status_code: int | None = None):
        if error is None or error == "":
            error = INTERNAL_ERROR_MESSAGE
        super().__init__(error, status_code or 500)
