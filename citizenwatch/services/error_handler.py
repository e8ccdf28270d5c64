"""
Error classification and side effects.

Every service operation forwards its failure here before re-raising it.
ErrorHandler logs the failure, runs the side effect for its category
(token refresh, forced sign-out, per-field messages) and publishes one
user-facing message.
"""
from enum import Enum
from typing import Any, Callable, Dict, Optional
import logging

from citizenwatch.errors import NetworkError
from citizenwatch.utils.secure_logging import redact_pii

logger = logging.getLogger(__name__)


class ErrorType(str, Enum):
    """Error categories"""

    AUTH = 'authentication_error'
    NETWORK = 'network_error'
    VALIDATION = 'validation_error'
    SERVER = 'server_error'
    UNKNOWN = 'unknown_error'


USER_MESSAGES = {
    ErrorType.AUTH: 'Please log in again to continue.',
    ErrorType.NETWORK: 'Please check your internet connection.',
    ErrorType.VALIDATION: 'Please check the form for errors.',
    ErrorType.SERVER: 'Something went wrong. Please try again later.',
    ErrorType.UNKNOWN: 'An unexpected error occurred.'
}

TOKEN_EXPIRED_MARKER = 'token expired'


def _read(error: Any, key: str) -> Any:
    """Read a field from a mapping-shaped or object-shaped error"""
    if isinstance(error, dict):
        return error.get(key)
    return getattr(error, key, None)


def _has_name(error: Any, name: str) -> bool:
    if _read(error, 'name') == name:
        return True
    if isinstance(error, BaseException):
        return any(cls.__name__ == name for cls in type(error).__mro__)
    return False


def _message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get('message') or '')
    return str(_read(error, 'message') or error)


class ErrorHandler:
    """
    Classifies failures and applies the category's side effects.

    Collaborators are plain callables so the handler runs without any UI:
    token_refresher (AuthService.refresh_token), on_redirect(url),
    on_field_error(field, message) and on_message(text). A failing callback
    is logged and never replaces the error being handled. When ``state`` is
    given, a forced sign-out also clears its current_user.
    """

    def __init__(self, session, state=None, token_refresher: Optional[Callable[[], Any]] = None,
                 on_redirect: Optional[Callable[[str], None]] = None,
                 on_field_error: Optional[Callable[[str, str], None]] = None,
                 on_message: Optional[Callable[[str], None]] = None,
                 login_url: str = '/login'):
        self.session = session
        self.state = state
        self.token_refresher = token_refresher
        self.on_redirect = on_redirect
        self.on_field_error = on_field_error
        self.on_message = on_message
        self.login_url = login_url

        self._handlers = {
            ErrorType.AUTH: self._handle_auth_error,
            ErrorType.NETWORK: self._handle_network_error,
            ErrorType.VALIDATION: self._handle_validation_error,
            ErrorType.SERVER: self._handle_server_error,
            ErrorType.UNKNOWN: self._handle_unknown_error
        }

    @staticmethod
    def classify(error: Any) -> ErrorType:
        """
        Map an error to its category. Pure function of the error's shape.

        Priority:
        1. named AuthenticationError → AUTH
        2. TypeError or NetworkError (no response) → NETWORK
        3. named ValidationError → VALIDATION
        4. status >= 500 → SERVER
        5. anything else → UNKNOWN

        Examples:
            >>> ErrorHandler.classify({'name': 'AuthenticationError'})
            <ErrorType.AUTH: 'authentication_error'>
            >>> ErrorHandler.classify({'status': 503})
            <ErrorType.SERVER: 'server_error'>
            >>> ErrorHandler.classify({})
            <ErrorType.UNKNOWN: 'unknown_error'>
        """
        if _has_name(error, 'AuthenticationError'):
            return ErrorType.AUTH
        if isinstance(error, (TypeError, NetworkError)):
            return ErrorType.NETWORK
        if _has_name(error, 'ValidationError'):
            return ErrorType.VALIDATION

        status = _read(error, 'status')
        if isinstance(status, int) and status >= 500:
            return ErrorType.SERVER

        return ErrorType.UNKNOWN

    def handle(self, error: Any) -> ErrorType:
        """
        Log ``error``, apply its category's side effect and publish the user message.

        Returns:
            The error's category
        """
        logger.error(redact_pii(f"Error: {error!r}"))

        error_type = self.classify(error)
        self._handlers[error_type](error)

        self.show_error_message(error)
        return error_type

    def _handle_auth_error(self, error: Any):
        if TOKEN_EXPIRED_MARKER not in _message(error).lower():
            return

        logger.info("Access token expired, attempting refresh")
        try:
            if self.token_refresher is None:
                raise RuntimeError('No token refresher bound')
            self.token_refresher()
        except Exception as refresh_error:
            logger.warning(redact_pii(f"Token refresh failed, signing out: {refresh_error}"))
            self.session.clear_session()
            if self.state is not None:
                self.state.set_state(current_user=None)
            self._notify('on_redirect', self.login_url)

    def _notify(self, name: str, *args) -> bool:
        """Call the named UI callback. Returns False when none is bound."""
        callback = getattr(self, name)
        if callback is None:
            return False
        try:
            callback(*args)
        except Exception:
            logger.exception(f"{name} callback failed")
        return True

    def _handle_network_error(self, error: Any):
        logger.warning(redact_pii(f"Network error: {error}"))

    def _handle_validation_error(self, error: Any):
        errors: Dict[str, str] = _read(error, 'errors') or {}
        for field, message in errors.items():
            if not self._notify('on_field_error', field, message):
                logger.info(f"Validation error on {field}: {message}")

    def _handle_server_error(self, error: Any):
        logger.error(redact_pii(f"Server error (status {_read(error, 'status')}): {error}"))

    def _handle_unknown_error(self, error: Any):
        logger.error(redact_pii(f"Unknown error: {error!r}"))

    def show_error_message(self, error: Any):
        message = self.get_user_friendly_message(error)
        if not self._notify('on_message', message):
            logger.info(f"Error message: {message}")

    def get_user_friendly_message(self, error: Any) -> str:
        return USER_MESSAGES.get(self.classify(error), _message(error))
