"""API routes for the application."""

from datetime import datetime

from flask import Blueprint, current_app, jsonify

from nexus import __version__, get_matching_engine
from nexus.schemas import AppInfoSchema, ErrorResponseSchema, HealthCheckSchema

bp = Blueprint("api", __name__, url_prefix="/api")


def error_response(message: str, status: int = 400, details: dict = None):
    """Create a standardized error response."""
    schema = ErrorResponseSchema(
        error="Error",
        message=message,
        status=status,
        details=details,
    )
    return jsonify(schema.model_dump()), status


@bp.route("/health", methods=["GET"])
def health_check():
    """Health check endpoint."""
    engine = get_matching_engine()

    provider = engine.embedding_provider
    if not engine.embeddings_enabled:
        embeddings = "disabled"
    elif hasattr(provider, "circuit_breaker"):
        embeddings = provider.circuit_breaker.state.value
    else:
        embeddings = "enabled"

    schema = HealthCheckSchema(
        status="healthy",
        timestamp=datetime.utcnow(),
        environment=current_app.config.get("ENV", "development"),
        embeddings=embeddings,
        cache=engine.cache.get_status(),
    )
    return jsonify(schema.model_dump(mode="json")), 200


@bp.route("/info", methods=["GET"])
def app_info():
    """Get application information."""
    schema = AppInfoSchema(
        name="Nexus Matching Server",
        version=__version__,
        environment=current_app.config.get("ENV", "development"),
        debug=current_app.debug,
        timestamp=datetime.utcnow(),
    )
    return jsonify(schema.model_dump(mode="json")), 200


@bp.route("/", methods=["GET"])
def root():
    """Root API endpoint."""
    return jsonify({
        "message": "Welcome to the Nexus Matching API",
        "version": __version__,
        "endpoints": {
            "health": "/api/health",
            "info": "/api/info",
            "professional_matches": "/api/professionals/<id>/matches",
            "job_matches": "/api/jobs/<id>/matches",
            "match_insights": "/api/matches/insights",
        },
    }), 200
