"""
CitizenWatch client: wires state, session, transport and services together.
"""
from collections import OrderedDict
from typing import Any, Callable, Optional
import logging
import threading

import requests

from citizenwatch.config import Config
from citizenwatch.services.api_client import ApiClient
from citizenwatch.services.app_state import AppState
from citizenwatch.services.auth_service import AuthService, HttpAuthBackend, MockAuthBackend
from citizenwatch.services.error_handler import ErrorHandler
from citizenwatch.services.incident_service import IncidentService
from citizenwatch.services.session_store import FileStorage, MemoryStorage, SessionStore

logger = logging.getLogger(__name__)


def build_storage(session_file: Optional[str]):
    if session_file:
        return FileStorage(session_file)
    return MemoryStorage()


def build_auth_backend(name: str, api: ApiClient):
    """
    Args:
        name: 'http' or 'mock'

    Raises:
        ValueError: For an unknown backend name
    """
    if name == 'http':
        return HttpAuthBackend(api)
    if name == 'mock':
        return MockAuthBackend()
    raise ValueError(f"Unknown AUTH_BACKEND '{name}' (expected 'http' or 'mock')")


class CitizenClient:
    """
    One client instance per user session.

    Attributes:
        state: AppState with current_user and incidents
        session: SessionStore with the access token and cookies
        api: ApiClient for the REST backend
        errors: ErrorHandler every service reports to
        auth: AuthService
        incidents: IncidentService
    """

    def __init__(self, cfg=Config, http: Optional[requests.Session] = None, storage=None,
                 auth_backend=None, csrf_token_provider: Optional[Callable[[], Optional[str]]] = None,
                 on_redirect=None, on_field_error=None, on_message=None):
        http = http or requests.Session()

        self.state = AppState()
        self.session = SessionStore(
            storage if storage is not None else build_storage(cfg.SESSION_FILE),
            cookies=http.cookies
        )
        self.api = ApiClient(
            cfg.API_BASE_URL,
            session=http,
            timeout=cfg.API_TIMEOUT,
            csrf_token_provider=csrf_token_provider or (lambda: cfg.CSRF_TOKEN),
            access_token_provider=self.session.get_access_token
        )
        self.errors = ErrorHandler(
            self.session,
            state=self.state,
            on_redirect=on_redirect,
            on_field_error=on_field_error,
            on_message=on_message,
            login_url=cfg.LOGIN_URL
        )
        self.auth = AuthService(
            auth_backend or build_auth_backend(cfg.AUTH_BACKEND, self.api),
            self.session,
            self.state,
            self.errors
        )
        # The handler retries expired tokens through the auth service
        self.errors.token_refresher = self.auth.refresh_token
        self.incidents = IncidentService(self.api, self.state, self.errors)

        logger.info(f"CitizenWatch client ready ({type(self.auth.backend).__name__}, {cfg.API_BASE_URL})")


class ClientSessions:
    """
    One CitizenClient per browser session.

    Entries are keyed by an opaque session id and created on first use by
    ``factory``. The least recently used entry is dropped once ``max_sessions``
    is exceeded; its ``on_evict`` hook runs outside the lock.
    """

    def __init__(self, factory: Callable[[], Any], max_sessions: int = 1000,
                 on_evict: Optional[Callable[[Any], None]] = None):
        self.factory = factory
        self.max_sessions = max_sessions
        self.on_evict = on_evict
        self._entries: 'OrderedDict[str, Any]' = OrderedDict()
        self._lock = threading.RLock()

    def __len__(self):
        return len(self._entries)

    def __contains__(self, session_id):
        return session_id in self._entries

    def get(self, session_id: str):
        evicted = []
        with self._lock:
            entry = self._entries.get(session_id)
            if entry is None:
                entry = self.factory()
                self._entries[session_id] = entry
                logger.debug(f"Client session opened ({len(self._entries)} active)")
            self._entries.move_to_end(session_id)

            while len(self._entries) > self.max_sessions:
                evicted.append(self._entries.popitem(last=False)[1])

        for old in evicted:
            if self.on_evict:
                self.on_evict(old)
        return entry

    def entries(self) -> list:
        with self._lock:
            return list(self._entries.values())

    def discard(self, session_id: str):
        with self._lock:
            entry = self._entries.pop(session_id, None)
        if entry is not None and self.on_evict:
            self.on_evict(entry)
