"""
Authentication Service
Handles login, registration, logout, token refresh and session restore

AuthService is the single authentication entry point. Where credentials are
checked is decided by a pluggable AuthBackend: HttpAuthBackend talks to the
REST API, MockAuthBackend accepts any non-empty credentials offline.
"""
from typing import Dict, Optional
import logging
import uuid

from bleach import clean

from citizenwatch.config import ENDPOINTS
from citizenwatch.errors import AuthenticationError, ValidationError
from citizenwatch.models import User
from citizenwatch.utils.secure_logging import redact_pii, hash_user_id
from citizenwatch.utils.validators import CredentialValidator

logger = logging.getLogger(__name__)


class AuthBackend:
    """
    Contract for authentication backends.

    login, register and refresh return the backend's auth payload:
    ``{'user': {...}, 'accessToken': '...'}``.
    """

    def login(self, email: str, password: str) -> Dict:
        raise NotImplementedError

    def register(self, email: str, password: str, name: str) -> Dict:
        raise NotImplementedError

    def logout(self, access_token: Optional[str]):
        raise NotImplementedError

    def refresh(self) -> Dict:
        raise NotImplementedError

    def profile(self, access_token: str) -> Dict:
        raise NotImplementedError


class HttpAuthBackend(AuthBackend):
    """REST backend: CSRF header on every auth call, refresh token via cookie"""

    def __init__(self, api):
        self.api = api

    def login(self, email: str, password: str) -> Dict:
        return self.api.post(ENDPOINTS['LOGIN'], {'email': email, 'password': password}, csrf=True)

    def register(self, email: str, password: str, name: str) -> Dict:
        return self.api.post(ENDPOINTS['REGISTER'],
                             {'email': email, 'password': password, 'name': name},
                             csrf=True)

    def logout(self, access_token: Optional[str]):
        self.api.post(ENDPOINTS['LOGOUT'], bearer=True, csrf=True)

    def refresh(self) -> Dict:
        return self.api.post(ENDPOINTS['REFRESH_TOKEN'], csrf=True)

    def profile(self, access_token: str) -> Dict:
        return self.api.get(ENDPOINTS['USER_PROFILE'], bearer=True)


class MockAuthBackend(AuthBackend):
    """
    Offline backend for demos and tests.

    Accepts any non-empty credentials. Issued tokens are remembered so that
    refresh and profile behave like a real session.
    """

    DEFAULT_NAME = 'Test User'

    def __init__(self):
        self._sessions: Dict[str, Dict] = {}
        self._active_token: Optional[str] = None

    def _issue(self, user: Dict) -> Dict:
        token = f"mock-{uuid.uuid4().hex}"
        self._sessions[token] = user
        self._active_token = token
        return {'user': dict(user), 'accessToken': token}

    def login(self, email: str, password: str) -> Dict:
        if not email or not password:
            raise AuthenticationError('Invalid credentials', status=401)
        return self._issue({'id': 1, 'email': email, 'name': self.DEFAULT_NAME, 'role': 'citizen'})

    def register(self, email: str, password: str, name: str) -> Dict:
        if not email or not password or not name:
            raise ValidationError('Invalid registration data', status=400)
        return self._issue({'id': 1, 'email': email, 'name': name, 'role': 'citizen'})

    def logout(self, access_token: Optional[str]):
        self._sessions.pop(access_token, None)
        if access_token == self._active_token:
            self._active_token = None

    def refresh(self) -> Dict:
        user = self._sessions.pop(self._active_token, None) if self._active_token else None
        if user is None:
            raise AuthenticationError('Token refresh failed', status=401)
        return self._issue(user)

    def profile(self, access_token: str) -> Dict:
        user = self._sessions.get(access_token)
        if user is None:
            raise AuthenticationError('token expired', status=401)
        return dict(user)


class AuthService:
    """Coordinates authentication with the session store and application state"""

    def __init__(self, backend: AuthBackend, session, state, error_handler):
        """
        Args:
            backend: AuthBackend implementation
            session: SessionStore holding the access token
            state: AppState receiving current_user
            error_handler: ErrorHandler receiving every failure
        """
        self.backend = backend
        self.session = session
        self.state = state
        self.error_handler = error_handler

    @property
    def is_authenticated(self) -> bool:
        return self.state.current_user is not None and self.session.has_session()

    @staticmethod
    def sanitize_display_name(name: str) -> str:
        """
        Strip HTML from a display name and cap it at 50 characters.
        """
        if not name:
            return ""

        clean_name = clean(name, tags=[], strip=True)
        return clean_name[:50].strip()

    def _establish_session(self, auth_data: Dict) -> User:
        self.session.set_session(auth_data)
        user = User.from_dict(auth_data.get('user') or {})
        self.state.set_state(current_user=user)
        return user

    def login(self, email: str, password: str) -> User:
        """
        Log in with email and password.

        Returns:
            The authenticated User

        Raises:
            ApiError: (or subclass) on rejection, NetworkError on transport failure
        """
        try:
            auth_data = self.backend.login(email, password)
            user = self._establish_session(auth_data)
            logger.info(redact_pii(f"Login succeeded for {email} (UID: {hash_user_id(user.id)})"))
            return user
        except Exception as e:
            self.error_handler.handle(e)
            raise

    def register(self, email: str, password: str, name: str) -> User:
        """
        Register a new account and sign it in.

        Email format and non-empty password/name are checked before any
        request; the display name is sent HTML-stripped.

        Raises:
            ValidationError: If the input is rejected locally or by the backend
        """
        try:
            is_valid, errors = CredentialValidator.validate_registration(email, password, name)
            if not is_valid:
                raise ValidationError('Invalid registration data', errors=errors)

            auth_data = self.backend.register(email, password, self.sanitize_display_name(name))
            user = self._establish_session(auth_data)
            logger.info(redact_pii(f"User registered: {email} (UID: {hash_user_id(user.id)})"))
            return user
        except Exception as e:
            self.error_handler.handle(e)
            raise

    def logout(self):
        """
        Log out. The local session is cleared and current_user nulled even
        when the backend call fails; that failure is still raised.
        """
        access_token = self.session.get_access_token()
        try:
            self.backend.logout(access_token)
        except Exception as e:
            self.error_handler.handle(e)
            raise
        finally:
            self.session.clear_session()
            self.state.set_state(current_user=None)
            logger.info("Logged out")

    def refresh_token(self) -> str:
        """
        Exchange the refresh cookie for a new access token.

        On failure the session is cleared and current_user nulled before the
        error propagates. Failures are not sent to the error handler, which is
        itself a caller of this method.

        Returns:
            The new access token
        """
        try:
            auth_data = self.backend.refresh()
            self.session.set_session(auth_data)
            if auth_data.get('user'):
                self.state.set_state(current_user=User.from_dict(auth_data['user']))
            logger.info("Access token refreshed")
            return auth_data['accessToken']
        except Exception as e:
            logger.warning(f"Token refresh failed: {e}")
            self.session.clear_session()
            self.state.set_state(current_user=None)
            raise

    def restore_session(self) -> Optional[User]:
        """
        Rebuild current_user from a stored access token.

        Returns:
            The profile's User, or None when no token is stored
        """
        access_token = self.session.get_access_token()
        if not access_token:
            return None

        try:
            user = User.from_dict(self.backend.profile(access_token) or {})
            self.state.set_state(current_user=user)
            logger.info(f"Session restored for user {hash_user_id(user.id)}")
            return user
        except Exception as e:
            self.error_handler.handle(e)
            raise
