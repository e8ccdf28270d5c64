"""
Session credential storage.

SessionStore owns the credential lifecycle on the client: the access token in
a key/value storage backend, and the refresh-token cookie in the HTTP
session's cookie jar. Clearing drops both.
"""
import json
import logging
import os
import tempfile
from typing import Dict, Optional

from requests.cookies import RequestsCookieJar

logger = logging.getLogger(__name__)

ACCESS_TOKEN_KEY = 'accessToken'


class MemoryStorage:
    """Process-local key/value storage"""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str):
        self._data[key] = value

    def remove(self, key: str):
        self._data.pop(key, None)


class FileStorage:
    """
    Key/value storage persisted as a JSON object on disk.

    Writes go to a temporary file in the same directory and are moved over
    the target, so a crash never leaves a half-written session file.
    """

    def __init__(self, path: str):
        self.path = os.path.expanduser(path)

    def _load(self) -> Dict[str, str]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Session file {self.path} unreadable, starting empty: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: Dict[str, str]):
        directory = os.path.dirname(self.path) or '.'
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.session-')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str):
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str):
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class SessionStore:
    """Persists, reads and clears the client's session credential"""

    def __init__(self, storage=None, cookies: Optional[RequestsCookieJar] = None):
        """
        Args:
            storage: Backend with get/set/remove (defaults to MemoryStorage)
            cookies: Cookie jar of the HTTP session carrying the refresh cookie
        """
        self.storage = storage if storage is not None else MemoryStorage()
        self.cookies = cookies if cookies is not None else RequestsCookieJar()

    def set_session(self, auth_data: Dict):
        """
        Store the access token from an authentication response.

        Only ``accessToken`` is kept. A refresh token, if the backend echoes
        one, is ignored: it travels in a server-set cookie.

        Raises:
            ValueError: If the response carries no access token
        """
        token = (auth_data or {}).get(ACCESS_TOKEN_KEY)
        if not token:
            raise ValueError('Authentication response did not include an access token')

        self.storage.set(ACCESS_TOKEN_KEY, token)
        logger.debug("Access token stored")

    def clear_session(self):
        """Remove the access token and every cookie the session holds"""
        self.storage.remove(ACCESS_TOKEN_KEY)
        self.cookies.clear()
        logger.info("Session cleared")

    def get_access_token(self) -> Optional[str]:
        return self.storage.get(ACCESS_TOKEN_KEY)

    def has_session(self) -> bool:
        return bool(self.get_access_token())
