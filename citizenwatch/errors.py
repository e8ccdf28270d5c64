"""
Exception types raised by the CitizenWatch client.

The class names matter: ErrorHandler.classify keys on "AuthenticationError"
and "ValidationError", and on the ``status`` attribute for server faults.
"""
from typing import Dict, Optional


class CitizenWatchError(Exception):
    """Base class for client errors"""

    def __init__(self, message: str = '', status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.body = body


class ApiError(CitizenWatchError):
    """Backend answered with a non-success HTTP status"""


class AuthenticationError(ApiError):
    """Credentials rejected, missing or expired (401/403)"""


class ValidationError(ApiError):
    """Input rejected, client-side or by the backend (400/422)"""

    def __init__(self, message: str = '', errors: Optional[Dict[str, str]] = None,
                 status: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message, status=status, body=body)
        self.errors = dict(errors or {})


class ServerError(ApiError):
    """Backend failure (5xx)"""


class NetworkError(CitizenWatchError):
    """Request never produced a response (DNS, connection, timeout)"""
