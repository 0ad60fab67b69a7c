"""Testing environment configuration."""

from .base import BaseConfig


class TestingConfig(BaseConfig):
    """Testing environment configuration."""

    DEBUG = True
    TESTING = True

    # Use in-memory SQLite for tests
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ECHO = False
    SQLALCHEMY_ENGINE_OPTIONS = {}

    # CORS - Allow all for testing
    CORS_ORIGINS = ["*"]

    # Rate limiting off so tests can hit endpoints freely
    RATELIMIT_ENABLED = False

    # Logging
    LOG_LEVEL = "DEBUG"
    LOG_FORMAT = "text"

    # No external embedding calls in tests
    GOOGLE_API_KEY = ""
    MATCH_USE_EMBEDDINGS = False
    MATCH_MIN_SCORE = 0.3
    MATCH_DEFAULT_LIMIT = 5
    MATCH_REQUEST_TIMEOUT = 10.0
