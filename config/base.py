"""Base configuration for all environments."""

import os
from typing import List, Optional


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else default


class BaseConfig:
    """Base configuration class with common settings."""

    # Flask Configuration
    SECRET_KEY: str = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")

    # Database Configuration
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_ECHO: bool = False

    # SQLAlchemy Engine Options
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_size": int(os.getenv("SQLALCHEMY_ENGINE_OPTIONS_POOL_SIZE", 10)),
        "pool_recycle": int(os.getenv("SQLALCHEMY_ENGINE_OPTIONS_POOL_RECYCLE", 3600)),
        "pool_pre_ping": _env_bool("SQLALCHEMY_ENGINE_OPTIONS_POOL_PRE_PING", "True"),
    }

    # CORS Configuration
    CORS_ORIGINS: List[str] = ["*"]
    CORS_ALLOW_HEADERS: List[str] = ["*"]
    CORS_EXPOSE_HEADERS: List[str] = ["*"]
    CORS_SUPPORTS_CREDENTIALS: bool = True

    # Rate limiting (Flask-Limiter)
    RATELIMIT_ENABLED: bool = _env_bool("RATELIMIT_ENABLED", "True")
    RATELIMIT_STORAGE_URI: str = os.getenv("RATELIMIT_STORAGE_URI", "memory://")

    # Logging Configuration
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FORMAT: str = os.getenv("LOG_FORMAT", "json")

    # Server Configuration
    JSON_SORT_KEYS: bool = False

    # Embeddings (Google Gemini)
    GOOGLE_API_KEY: str = os.getenv("GOOGLE_API_KEY", "")
    GEMINI_EMBEDDING_MODEL: str = os.getenv("GEMINI_EMBEDDING_MODEL", "models/text-embedding-004")
    GEMINI_EMBEDDING_DIMENSION: int = int(os.getenv("GEMINI_EMBEDDING_DIMENSION", 768))

    # Matching engine
    MATCH_USE_EMBEDDINGS: bool = _env_bool("MATCH_USE_EMBEDDINGS", "True")
    MATCH_MIN_SCORE: float = float(os.getenv("MATCH_MIN_SCORE", 0.3))
    MATCH_FLOOR_SCORE: float = float(os.getenv("MATCH_FLOOR_SCORE", 0.01))
    MATCH_DEFAULT_LIMIT: int = int(os.getenv("MATCH_DEFAULT_LIMIT", 5))
    MATCH_MAX_LIMIT: int = int(os.getenv("MATCH_MAX_LIMIT", 50))
    MATCH_CANDIDATE_POOL_SIZE: int = int(os.getenv("MATCH_CANDIDATE_POOL_SIZE", 100))
    MATCH_MAX_CONCURRENCY: int = int(os.getenv("MATCH_MAX_CONCURRENCY", 8))
    MATCH_EMBEDDING_TIMEOUT: float = float(os.getenv("MATCH_EMBEDDING_TIMEOUT", 10))
    MATCH_REQUEST_TIMEOUT: Optional[float] = _env_float("MATCH_REQUEST_TIMEOUT", 30.0)
    MATCH_CONTEXTUAL_BLEND: float = float(os.getenv("MATCH_CONTEXTUAL_BLEND", 0.5))

    # Contextual factor weights (must sum to 1.0)
    MATCH_WEIGHT_SECTOR: float = float(os.getenv("MATCH_WEIGHT_SECTOR", 0.35))
    MATCH_WEIGHT_LANGUAGE: float = float(os.getenv("MATCH_WEIGHT_LANGUAGE", 0.25))
    MATCH_WEIGHT_FORMAT: float = float(os.getenv("MATCH_WEIGHT_FORMAT", 0.20))
    MATCH_WEIGHT_CULTURAL: float = float(os.getenv("MATCH_WEIGHT_CULTURAL", 0.20))
