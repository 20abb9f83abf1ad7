import os
from datetime import timedelta


def _env_list(name, default):
    value = os.getenv(name)
    if not value:
        return default
    return [item.strip() for item in value.split(",") if item.strip()]


class Config:
    # Database
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///hundred_days.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SECRET_KEY = os.getenv('SECRET_KEY', 'change-me-in-production')

    # JWT session credentials
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'your-secret-key-change-in-production')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=24)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=30)
    JWT_TOKEN_LOCATION = ['headers', 'cookies']
    JWT_HEADER_NAME = 'Authorization'
    JWT_HEADER_TYPE = 'Bearer'
    JWT_COOKIE_SECURE = True
    JWT_COOKIE_CSRF_PROTECT = True
    JWT_COOKIE_SAMESITE = 'Lax'

    CORS_ORIGINS = _env_list('CORS_ORIGINS', ["http://localhost:3000"])

    # Realtime channel
    SOCKETIO_ASYNC_MODE = os.getenv('SOCKETIO_ASYNC_MODE', 'eventlet')

    # Rate limiting
    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_ENABLED = True

    # Scheduler
    SCHEDULER_ENABLED = True
    SCHEDULER_API_ENABLED = False
    SCHEDULER_TIMEZONE = 'UTC'

    # Challenge rules
    CHALLENGE_LENGTH_DAYS = 100
    FREE_CHALLENGE_LIMIT = int(os.getenv('FREE_CHALLENGE_LIMIT', 2))
    CHALLENGE_TITLE_MAX_LENGTH = 100
    CHECK_IN_CUTOFF_HOUR = int(os.getenv('CHECK_IN_CUTOFF_HOUR', 8))
    MILESTONE_DAYS = (7, 30, 50, 100)

    # Usernames
    USERNAME_COOLDOWN = timedelta(hours=48)

    # In-app purchases
    PRO_PRODUCT_ID = os.getenv('PRO_PRODUCT_ID', 'com.KhamariThompson.100Days.monthly')
    APP_STORE_SHARED_SECRET = os.getenv('APP_STORE_SHARED_SECRET', '')
    APP_STORE_VERIFY_URL = 'https://buy.itunes.apple.com/verifyReceipt'
    APP_STORE_SANDBOX_URL = 'https://sandbox.itunes.apple.com/verifyReceipt'

    # Federated sign-in
    GOOGLE_CLIENT_ID = os.getenv('GOOGLE_CLIENT_ID', '')
    GOOGLE_TOKENINFO_URL = 'https://oauth2.googleapis.com/tokeninfo'
    APPLE_BUNDLE_ID = os.getenv('APPLE_BUNDLE_ID', 'com.KhamariThompson.100Days')
    APPLE_KEYS_URL = 'https://appleid.apple.com/auth/keys'
    APPLE_ISSUER = 'https://appleid.apple.com'

    # Reminders
    DEFAULT_REMINDER_HOUR = 20
    DEFAULT_REMINDER_MINUTE = 0

    HTTP_TIMEOUT = 10

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Overridden in tests with a callable returning naive UTC datetimes
    CLOCK = None


class DevelopmentConfig(Config):
    DEBUG = True
    JWT_COOKIE_SECURE = False
    JWT_COOKIE_CSRF_PROTECT = False


class ProductionConfig(Config):
    DEBUG = False
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL')
    PREFERRED_URL_SCHEME = 'https'


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    JWT_TOKEN_LOCATION = ['headers']
    JWT_COOKIE_SECURE = False
    SOCKETIO_ASYNC_MODE = 'threading'
    RATELIMIT_ENABLED = False
    SCHEDULER_ENABLED = False
    GOOGLE_CLIENT_ID = 'test-client-id.apps.googleusercontent.com'
    APP_STORE_SHARED_SECRET = 'test-shared-secret'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
