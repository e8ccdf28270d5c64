"""
HTTP transport for the CitizenWatch REST backend.

Wraps a requests.Session (its cookie jar carries the refresh-token cookie) and
turns every failure into a typed client error.
"""
import json
import logging
from typing import Any, Callable, Dict, Optional

import requests

from citizenwatch.errors import (
    ApiError,
    AuthenticationError,
    NetworkError,
    ServerError,
    ValidationError,
)
from citizenwatch.utils.secure_logging import redact_pii

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


def _extract_message(text: str, payload: Any) -> str:
    if isinstance(payload, dict):
        for key in ('error', 'message', 'detail'):
            if isinstance(payload.get(key), str) and payload[key]:
                return payload[key]
    return text


def error_from_response(response: requests.Response) -> ApiError:
    """
    Build a typed error from a non-success response.

    The message comes from the body text (or its JSON error/message field):
    - 401, 403 → AuthenticationError
    - 400, 422 → ValidationError, with the body's ``errors`` mapping if any
    - 5xx → ServerError
    - anything else → ApiError
    """
    text = response.text or ''
    try:
        payload = json.loads(text) if text else None
    except ValueError:
        payload = None

    message = _extract_message(text, payload) or response.reason or f'HTTP {response.status_code}'
    status = response.status_code

    if status in (401, 403):
        return AuthenticationError(message, status=status, body=text)
    if status in (400, 422):
        errors = payload.get('errors') if isinstance(payload, dict) else None
        return ValidationError(message, errors=errors if isinstance(errors, dict) else None,
                               status=status, body=text)
    if status >= 500:
        return ServerError(message, status=status, body=text)
    return ApiError(message, status=status, body=text)


class ApiClient:
    """JSON client for the backend REST API"""

    def __init__(self, base_url: str, session: Optional[requests.Session] = None,
                 timeout: float = 30, csrf_token_provider: Optional[TokenProvider] = None,
                 access_token_provider: Optional[TokenProvider] = None):
        """
        Args:
            base_url: API root, e.g. https://api.citizenwatch.com/v1
            session: Shared HTTP session (cookies persist across calls)
            timeout: Per-request timeout in seconds
            csrf_token_provider: Returns the CSRF token for X-CSRF-Token
            access_token_provider: Returns the bearer token for protected calls
        """
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout
        self.csrf_token_provider = csrf_token_provider
        self.access_token_provider = access_token_provider

    def url(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    def _headers(self, bearer: bool, csrf: bool) -> Dict[str, str]:
        headers = {'Accept': 'application/json'}

        if csrf and self.csrf_token_provider:
            csrf_token = self.csrf_token_provider()
            if csrf_token:
                headers['X-CSRF-Token'] = csrf_token

        if bearer and self.access_token_provider:
            access_token = self.access_token_provider()
            if access_token:
                headers['Authorization'] = f'Bearer {access_token}'

        return headers

    def request(self, method: str, endpoint: str, payload: Optional[Dict] = None,
                bearer: bool = False, csrf: bool = False) -> Any:
        """
        Send a request and decode the JSON reply.

        Args:
            method: HTTP method
            endpoint: Path relative to base_url
            payload: JSON body, if any
            bearer: Attach the access token as a bearer Authorization header
            csrf: Attach the X-CSRF-Token header

        Returns:
            Decoded JSON body, or None for an empty body

        Raises:
            NetworkError: If no response was received
            ApiError: (or a subclass) for non-success statuses and undecodable bodies
        """
        url = self.url(endpoint)
        headers = self._headers(bearer, csrf)

        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers=headers,
                timeout=self.timeout
            )
        except requests.exceptions.RequestException as e:
            logger.error(redact_pii(f"{method} {endpoint} failed: {e}"))
            raise NetworkError(str(e)) from e

        logger.info(f"{method} {endpoint}: Status code: {response.status_code}")

        if not response.ok:
            raise error_from_response(response)

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise ApiError('Invalid JSON in response', status=response.status_code,
                           body=response.text) from e

    def get(self, endpoint: str, **kwargs) -> Any:
        return self.request('GET', endpoint, **kwargs)

    def post(self, endpoint: str, payload: Optional[Dict] = None, **kwargs) -> Any:
        return self.request('POST', endpoint, payload=payload, **kwargs)
