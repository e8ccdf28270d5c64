"""
Configuration for the CitizenWatch client.
"""
import os
from dotenv import load_dotenv

load_dotenv()


# REST endpoints relative to API_BASE_URL
ENDPOINTS = {
    'LOGIN': '/auth/login',
    'REGISTER': '/auth/register',
    'LOGOUT': '/auth/logout',
    'REFRESH_TOKEN': '/auth/refresh',
    'INCIDENTS': '/incidents',
    'USER_PROFILE': '/users/profile'
}


class Config:
    """Base configuration"""
    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('DEBUG', 'True').lower() == 'true'
    TESTING = False

    # Backend API
    API_BASE_URL = os.getenv('API_BASE_URL', 'https://api.citizenwatch.com/v1')
    API_TIMEOUT = float(os.getenv('API_TIMEOUT', '30'))
    CSRF_TOKEN = os.getenv('CSRF_TOKEN')

    # 'http' talks to API_BASE_URL, 'mock' accepts any non-empty credentials offline
    AUTH_BACKEND = os.getenv('AUTH_BACKEND', 'http')

    # Access token persistence; unset keeps the token in memory only
    SESSION_FILE = os.getenv('SESSION_FILE')
    LOGIN_URL = os.getenv('LOGIN_URL', '/login')

    # Web front: one client per browser session, least recently used dropped first
    MAX_CLIENT_SESSIONS = int(os.getenv('MAX_CLIENT_SESSIONS', '1000'))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Firebase (optional)
    FIREBASE_ENABLED = os.getenv('FIREBASE_ENABLED', 'False').lower() == 'true'
    FIREBASE_CREDENTIALS_PATH = os.getenv('FIREBASE_CREDENTIALS_PATH')
    FIREBASE_DATABASE_URL = os.getenv('FIREBASE_DATABASE_URL')
    FIREBASE_API_KEY = os.getenv('FIREBASE_API_KEY')
    FIREBASE_AUTH_DOMAIN = os.getenv('FIREBASE_AUTH_DOMAIN')
    FIREBASE_PROJECT_ID = os.getenv('FIREBASE_PROJECT_ID')
    FIREBASE_STORAGE_BUCKET = os.getenv('FIREBASE_STORAGE_BUCKET')
    FIREBASE_MESSAGING_SENDER_ID = os.getenv('FIREBASE_MESSAGING_SENDER_ID')
    FIREBASE_APP_ID = os.getenv('FIREBASE_APP_ID')

    # CORS
    CORS_ORIGINS = os.getenv('CORS_ORIGINS', 'http://localhost:3000').split(',')

    # Rate Limiting
    RATE_LIMIT_ENABLED = os.getenv('RATE_LIMIT_ENABLED', 'False').lower() == 'true'
    RATELIMIT_STORAGE_URI = os.getenv('REDIS_URL', 'memory://')

    # 10 MB covers a report with a handful of encoded images
    MAX_CONTENT_LENGTH = 10 * 1024 * 1024


class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True


class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False


class TestingConfig(Config):
    """Test configuration: offline auth, in-memory session, no Firebase"""
    TESTING = True
    API_BASE_URL = 'https://api.test.local/v1'
    AUTH_BACKEND = 'mock'
    SESSION_FILE = None
    CSRF_TOKEN = 'test-csrf-token'
    FIREBASE_ENABLED = False
    RATE_LIMIT_ENABLED = False


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
