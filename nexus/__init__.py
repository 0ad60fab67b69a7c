"""Flask application factory and initialization."""

import logging
from typing import Type

from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from config.base import BaseConfig

__version__ = "0.1.0"

# Initialize extensions
db = SQLAlchemy()
cors = CORS()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "200 per hour"]
)

ENGINE_EXTENSION = "matching_engine"


def setup_logging(app: Flask, log_format: str = "json") -> None:
    """Setup logging configuration for the application."""
    log_level = app.config.get("LOG_LEVEL", "INFO")

    handler = logging.StreamHandler()
    if log_format == "json":
        # Structured JSON logging
        from pythonjsonlogger import jsonlogger

        handler.setFormatter(
            jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )

    # Module loggers live under the package name, so one handler covers them all
    package_logger = logging.getLogger(__name__)
    package_logger.handlers = [handler]
    package_logger.setLevel(getattr(logging, log_level))

    app.logger.handlers = [handler]
    app.logger.setLevel(getattr(logging, log_level))

    app.logger.info(
        "Application initialized",
        extra={
            "environment": app.config.get("ENV", "development"),
            "debug": app.debug,
            "testing": app.testing,
        }
    )


def setup_error_handlers(app: Flask) -> None:
    """Register error handlers."""

    @app.errorhandler(404)
    def not_found(error):
        """Handle 404 errors."""
        return {
            "error": "Not Found",
            "message": "The requested resource was not found",
            "status": 404,
        }, 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        app.logger.error(f"Internal server error: {error}")
        return {
            "error": "Internal Server Error",
            "message": "An unexpected error occurred",
            "status": 500,
        }, 500

    @app.errorhandler(405)
    def method_not_allowed(error):
        """Handle 405 errors."""
        return {
            "error": "Method Not Allowed",
            "message": "The HTTP method is not allowed for this resource",
            "status": 405,
        }, 405

    @app.errorhandler(400)
    def bad_request(error):
        """Handle 400 errors."""
        return {
            "error": "Bad Request",
            "message": "The request was invalid",
            "status": 400,
        }, 400

    @app.errorhandler(429)
    def rate_limited(error):
        """Handle 429 errors."""
        return {
            "error": "Too Many Requests",
            "message": f"Rate limit exceeded: {error.description}",
            "status": 429,
        }, 429


def register_blueprints(app: Flask) -> None:
    """Register Flask blueprints."""
    from nexus.routes import api
    from nexus.routes import match_routes

    # Health check and info
    app.register_blueprint(api.bp)

    # Matching routes
    app.register_blueprint(match_routes.match_bp)


def build_embedding_provider(app: Flask):
    """Create the Gemini embedding provider, or None when embeddings are off."""
    from config.settings import settings
    from nexus.services.embedding_service import EmbeddingService

    if not app.config.get("MATCH_USE_EMBEDDINGS", True):
        app.logger.info("Embeddings disabled by configuration, using heuristic scoring")
        return None

    api_key = app.config.get("GOOGLE_API_KEY") or settings.google_api_key
    if not api_key:
        app.logger.warning("GOOGLE_API_KEY not set, using heuristic scoring only")
        return None

    return EmbeddingService(
        api_key=api_key,
        model_name=app.config.get("GEMINI_EMBEDDING_MODEL") or settings.gemini_embedding_model,
        dimension=app.config.get("GEMINI_EMBEDDING_DIMENSION") or settings.gemini_embedding_dimension,
        timeout=app.config.get("MATCH_EMBEDDING_TIMEOUT"),
    )


def build_matching_engine(app: Flask):
    """Construct the matching engine with its dependencies from app config."""
    from nexus.services.matching import (
        MatchingEngine,
        MatchingOptions,
        ScoreCache,
        SQLJobStore,
        SQLProfileStore,
    )

    options = MatchingOptions.from_config(app.config)
    engine = MatchingEngine(
        profile_store=SQLProfileStore(),
        job_store=SQLJobStore(),
        embedding_provider=build_embedding_provider(app),
        cache=ScoreCache(),
        options=options,
    )
    app.logger.info(
        "Matching engine ready",
        extra={
            "embeddings": engine.embeddings_enabled,
            "min_score": options.min_score,
            "max_concurrency": options.max_concurrency,
        }
    )
    return engine


def create_app(config: Type[BaseConfig] = None) -> Flask:
    """Create and configure Flask application.

    Args:
        config: Configuration class to use. If None, uses environment-based config.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__)

    # Load configuration
    if config is None:
        from config.settings import settings

        if settings.is_production:
            from config.production import ProductionConfig
            config = ProductionConfig
        elif settings.is_testing:
            from config.testing import TestingConfig
            config = TestingConfig
        else:
            from config.development import DevelopmentConfig
            config = DevelopmentConfig

    app.config.from_object(config)

    # Setup logging
    setup_logging(app, app.config.get("LOG_FORMAT", "json"))

    # Initialize extensions
    db.init_app(app)
    limiter.init_app(app)

    cors.init_app(app, resources={
        r"/*": {
            "origins": app.config.get("CORS_ORIGINS", ["*"]),
            "methods": ["GET", "OPTIONS"],
            "allow_headers": app.config.get("CORS_ALLOW_HEADERS", ["*"]),
            "expose_headers": app.config.get("CORS_EXPOSE_HEADERS", ["*"]),
            "supports_credentials": app.config.get("CORS_SUPPORTS_CREDENTIALS", True),
        }
    })

    # Setup error handlers
    setup_error_handlers(app)

    # Register blueprints
    register_blueprints(app)

    # Matching engine, shared by all requests of this app
    app.extensions[ENGINE_EXTENSION] = build_matching_engine(app)

    app.logger.info(
        "Flask application created",
        extra={
            "config": config.__name__,
            "database": app.config.get("SQLALCHEMY_DATABASE_URI", "").split("://")[0],
        }
    )

    return app


def get_db():
    """Get database instance."""
    return db


def get_matching_engine():
    """Matching engine of the current app."""
    return current_app.extensions[ENGINE_EXTENSION]
