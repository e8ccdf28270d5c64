"""
Optional Firebase setup for report persistence and image storage.

Credentials can be provided two ways:
1. Base64-encoded service account JSON (FIREBASE_CREDENTIALS_BASE64) - for PaaS hosts
2. File path (FIREBASE_CREDENTIALS_PATH) - for local development, VPS

Only initialization lives here; the handles are returned to the caller.
"""

import os
import json
import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import credentials, firestore, storage

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = 'citizenwatch'


@dataclass
class FirebaseHandles:
    """Initialized Firebase app with its Firestore client and Storage bucket"""

    app: Any
    db: Any
    bucket: Any


def get_firebase_credentials(cred_path: Optional[str] = None):
    """
    Get Firebase credentials from environment.

    Args:
        cred_path: Service account file used when no base64 credentials are set
                   (defaults to FIREBASE_CREDENTIALS_PATH)

    Returns:
        firebase_admin.credentials.Certificate: Firebase credentials object

    Raises:
        ValueError: If no valid credentials are found
    """
    base64_creds = os.getenv('FIREBASE_CREDENTIALS_BASE64')
    if base64_creds:
        try:
            json_str = base64.b64decode(base64_creds).decode('utf-8')
            cred_dict = json.loads(json_str)
            return credentials.Certificate(cred_dict)
        except Exception as e:
            raise ValueError(f"Failed to decode FIREBASE_CREDENTIALS_BASE64: {e}")

    cred_path = cred_path or os.getenv('FIREBASE_CREDENTIALS_PATH')
    if cred_path and os.path.exists(cred_path):
        return credentials.Certificate(cred_path)

    raise ValueError(
        "No Firebase credentials found. Set either:\n"
        "  - FIREBASE_CREDENTIALS_BASE64 (base64-encoded service account JSON)\n"
        "  - FIREBASE_CREDENTIALS_PATH (path to service account JSON file)"
    )


def get_web_config(cfg) -> Dict[str, Optional[str]]:
    """
    Browser-side Firebase configuration, keyed the way the JS SDK expects.
    """
    return {
        'apiKey': cfg.FIREBASE_API_KEY,
        'authDomain': cfg.FIREBASE_AUTH_DOMAIN,
        'projectId': cfg.FIREBASE_PROJECT_ID,
        'storageBucket': cfg.FIREBASE_STORAGE_BUCKET,
        'messagingSenderId': cfg.FIREBASE_MESSAGING_SENDER_ID,
        'appId': cfg.FIREBASE_APP_ID
    }


def initialize_firebase(cfg) -> Optional[FirebaseHandles]:
    """
    Initialize the Firebase app with Firestore and Storage.

    Args:
        cfg: Config class or instance

    Returns:
        FirebaseHandles, or None when FIREBASE_ENABLED is off

    Raises:
        ValueError: If Firebase is enabled but credentials are missing
    """
    if not cfg.FIREBASE_ENABLED:
        logger.info("Firebase disabled, skipping initialization")
        return None

    options = {
        key: value for key, value in {
            'projectId': cfg.FIREBASE_PROJECT_ID,
            'storageBucket': cfg.FIREBASE_STORAGE_BUCKET,
            'databaseURL': cfg.FIREBASE_DATABASE_URL
        }.items() if value
    }

    try:
        app = firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        cred = get_firebase_credentials(cfg.FIREBASE_CREDENTIALS_PATH)
        app = firebase_admin.initialize_app(cred, options, name=FIREBASE_APP_NAME)

    bucket = storage.bucket(app=app) if cfg.FIREBASE_STORAGE_BUCKET else None
    handles = FirebaseHandles(app=app, db=firestore.client(app=app), bucket=bucket)

    logger.info(f"Firebase initialized for project {cfg.FIREBASE_PROJECT_ID}")
    return handles
