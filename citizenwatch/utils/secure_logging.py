"""
Log redaction helpers.

Reporter emails, precise incident coordinates and credentials must never reach
log output verbatim.

Usage:
    from citizenwatch.utils.secure_logging import redact_pii, hash_user_id

    logger.info(redact_pii(f"Login succeeded for {email}"))
    # Output: "Login succeeded for [EMAIL_REDACTED]"

    logger.info(f"Session restored for user {hash_user_id(user.id)}")
"""

import re
import hashlib
from typing import Any, Optional


DEFAULT_REDACT_KEYS = [
    'email', 'password', 'token', 'csrf', 'cookie', 'authorization',
    'secret', 'api_key', 'apikey', 'latitude', 'longitude', 'images'
]


def redact_pii(text: str) -> str:
    """
    Redact personally identifiable information and credentials from a log message.

    Redacts:
    - Bearer credentials → Bearer [TOKEN_REDACTED]
    - JSON Web Tokens → [TOKEN_REDACTED]
    - Email addresses → [EMAIL_REDACTED]
    - Precise coordinates (4+ decimal places) → [COORD_REDACTED]
    - IPv4 addresses → [IP_REDACTED]

    Args:
        text: The log message to redact

    Returns:
        str: The redacted log message

    Examples:
        >>> redact_pii("Authorization: Bearer abc.def.ghi")
        'Authorization: Bearer [TOKEN_REDACTED]'

        >>> redact_pii("Incident at 40.7128, -74.0060")
        'Incident at [COORD_REDACTED], [COORD_REDACTED]'
    """
    if not text:
        return text

    text = re.sub(r'(?i)\bBearer\s+[^\s,;"\']+', 'Bearer [TOKEN_REDACTED]', text)

    text = re.sub(
        r'\beyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+',
        '[TOKEN_REDACTED]',
        text
    )

    text = re.sub(
        r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b',
        '[EMAIL_REDACTED]',
        text
    )

    # Street-level precision and finer; city-level values stay readable
    text = re.sub(
        r'-?\d{1,3}\.\d{4,}',
        '[COORD_REDACTED]',
        text
    )

    text = re.sub(
        r'\b(?:\d{1,3}\.){3}\d{1,3}\b',
        '[IP_REDACTED]',
        text
    )

    return text


def hash_user_id(user_id: Any, length: int = 16) -> str:
    """
    One-way hash of a user id, stable across log lines for correlation.

    Args:
        user_id: Backend user id (int or str)
        length: Length of the returned hash

    Returns:
        str: Truncated SHA-256 hex digest, or '[NO_USER_ID]'
    """
    if user_id is None or user_id == '':
        return '[NO_USER_ID]'

    return hashlib.sha256(str(user_id).encode()).hexdigest()[:length]


def redact_coordinates(lat: Optional[float], lon: Optional[float], precision: int = 2) -> tuple[str, str]:
    """
    Round coordinates to a loggable precision (2 decimals is roughly 1 km).

    Examples:
        >>> redact_coordinates(40.7128, -74.0060)
        ('40.71', '-74.01')

        >>> redact_coordinates(None, None)
        ('[REDACTED]', '[REDACTED]')
    """
    if lat is None or lon is None:
        return ('[REDACTED]', '[REDACTED]')

    return (
        f"{lat:.{precision}f}",
        f"{lon:.{precision}f}"
    )


def safe_log_dict(data: dict, redact_keys: Optional[list[str]] = None) -> dict:
    """
    Copy of ``data`` with sensitive keys replaced by '[REDACTED]'.

    Key matching is case-insensitive and by substring, so 'accessToken' and
    'X-CSRF-Token' are both caught by 'token'. Nested dicts and lists of
    dicts are sanitized recursively.
    """
    keys = [k.lower() for k in (redact_keys if redact_keys is not None else DEFAULT_REDACT_KEYS)]

    def sanitize(value):
        if isinstance(value, dict):
            return {
                k: '[REDACTED]' if any(s in str(k).lower() for s in keys) else sanitize(v)
                for k, v in value.items()
            }
        if isinstance(value, (list, tuple)):
            return [sanitize(item) for item in value]
        return value

    return sanitize(data)
