"""
Tests for Firebase initialization (firebase_admin mocked out)
"""
import base64
import json
from unittest.mock import MagicMock, patch

import pytest

from citizenwatch.config import TestingConfig
from citizenwatch.firebase_setup import get_firebase_credentials, get_web_config, initialize_firebase


class FirebaseTestingConfig(TestingConfig):
    FIREBASE_ENABLED = True
    FIREBASE_CREDENTIALS_PATH = None
    FIREBASE_PROJECT_ID = 'citizenwatch-test'
    FIREBASE_STORAGE_BUCKET = 'citizenwatch-test.appspot.com'
    FIREBASE_DATABASE_URL = None
    FIREBASE_API_KEY = 'web-key'
    FIREBASE_AUTH_DOMAIN = 'citizenwatch-test.firebaseapp.com'
    FIREBASE_MESSAGING_SENDER_ID = '1234'
    FIREBASE_APP_ID = '1:1234:web:abcd'


class TestGetFirebaseCredentials:

    def test_base64_credentials(self, monkeypatch):
        service_account = {'type': 'service_account', 'project_id': 'citizenwatch-test'}
        encoded = base64.b64encode(json.dumps(service_account).encode('utf-8')).decode('ascii')
        monkeypatch.setenv('FIREBASE_CREDENTIALS_BASE64', encoded)

        with patch('citizenwatch.firebase_setup.credentials.Certificate') as mock_cert:
            get_firebase_credentials()

        mock_cert.assert_called_once_with(service_account)

    def test_invalid_base64(self, monkeypatch):
        monkeypatch.setenv('FIREBASE_CREDENTIALS_BASE64', 'not base64!!')
        with pytest.raises(ValueError):
            get_firebase_credentials()

    def test_credentials_file(self, monkeypatch, tmp_path):
        monkeypatch.delenv('FIREBASE_CREDENTIALS_BASE64', raising=False)
        cred_file = tmp_path / 'service-account.json'
        cred_file.write_text('{}')

        with patch('citizenwatch.firebase_setup.credentials.Certificate') as mock_cert:
            get_firebase_credentials(str(cred_file))

        mock_cert.assert_called_once_with(str(cred_file))

    def test_no_credentials(self, monkeypatch):
        monkeypatch.delenv('FIREBASE_CREDENTIALS_BASE64', raising=False)
        monkeypatch.delenv('FIREBASE_CREDENTIALS_PATH', raising=False)
        with pytest.raises(ValueError, match='No Firebase credentials found'):
            get_firebase_credentials()


class TestInitializeFirebase:

    def test_disabled(self):
        assert initialize_firebase(TestingConfig) is None

    @patch('citizenwatch.firebase_setup.storage')
    @patch('citizenwatch.firebase_setup.firestore')
    @patch('citizenwatch.firebase_setup.get_firebase_credentials')
    @patch('citizenwatch.firebase_setup.firebase_admin')
    def test_initializes_named_app(self, mock_admin, mock_creds, mock_firestore, mock_storage):
        mock_admin.get_app.side_effect = ValueError('no app')
        app = MagicMock()
        mock_admin.initialize_app.return_value = app

        handles = initialize_firebase(FirebaseTestingConfig)

        mock_admin.initialize_app.assert_called_once_with(
            mock_creds.return_value,
            {'projectId': 'citizenwatch-test', 'storageBucket': 'citizenwatch-test.appspot.com'},
            name='citizenwatch'
        )
        mock_firestore.client.assert_called_once_with(app=app)
        mock_storage.bucket.assert_called_once_with(app=app)
        assert handles.app is app
        assert handles.db is mock_firestore.client.return_value
        assert handles.bucket is mock_storage.bucket.return_value

    @patch('citizenwatch.firebase_setup.storage')
    @patch('citizenwatch.firebase_setup.firestore')
    @patch('citizenwatch.firebase_setup.get_firebase_credentials')
    @patch('citizenwatch.firebase_setup.firebase_admin')
    def test_reuses_existing_app(self, mock_admin, mock_creds, mock_firestore, mock_storage):
        handles = initialize_firebase(FirebaseTestingConfig)

        mock_admin.initialize_app.assert_not_called()
        mock_creds.assert_not_called()
        assert handles.app is mock_admin.get_app.return_value


class TestWebConfig:

    def test_keys_match_js_sdk(self):
        assert get_web_config(FirebaseTestingConfig) == {
            'apiKey': 'web-key',
            'authDomain': 'citizenwatch-test.firebaseapp.com',
            'projectId': 'citizenwatch-test',
            'storageBucket': 'citizenwatch-test.appspot.com',
            'messagingSenderId': '1234',
            'appId': '1:1234:web:abcd'
        }
