"""
Match Routes
API endpoints returning ranked matches in either direction.
"""
import asyncio
import logging

from flask import Blueprint, jsonify, request
from pydantic import ValidationError

from nexus import get_matching_engine, limiter
from nexus.routes.api import error_response
from nexus.schemas import InsightsQuerySchema, MatchQuerySchema, MatchResultSchema, SearchInsightsSchema
from nexus.services.matching import MatchContext

logger = logging.getLogger(__name__)

match_bp = Blueprint('matches', __name__, url_prefix='/api')


def _parse_query(schema=MatchQuerySchema):
    query = schema.model_validate(request.args.to_dict())
    engine = get_matching_engine()
    limit = query.limit if query.limit is not None else engine.options.default_limit
    if limit > engine.options.max_limit:
        raise ValueError(f"limit must be between 1 and {engine.options.max_limit}")
    return engine, query, limit


def _match_response(matches):
    return jsonify([MatchResultSchema.from_ranked(match).to_response() for match in matches]), 200


@match_bp.route('/professionals/<int:professional_id>/matches', methods=['GET'])
@limiter.limit("60 per minute")
def get_professional_matches(professional_id: int):
    """
    Rank open jobs for a professional.

    GET /api/professionals/:id/matches?limit=5&sector=finance&language=arabic&format=virtual&emirate=dubai

    Any filter, or contextual=true, enables contextual scoring. An unknown
    professional yields an empty list.
    """
    try:
        engine, query, limit = _parse_query()
    except ValidationError as e:
        return error_response("Invalid query parameters", 400, {"errors": e.errors(include_url=False, include_context=False)})
    except ValueError as e:
        return error_response(str(e), 400)

    matches = asyncio.run(
        engine.match_jobs_for_professional(professional_id, limit=limit, context=query.to_context())
    )
    return _match_response(matches)


@match_bp.route('/jobs/<int:job_id>/matches', methods=['GET'])
@limiter.limit("60 per minute")
def get_job_matches(job_id: int):
    """
    Rank professionals for a job.

    GET /api/jobs/:id/matches?limit=5&language=bilingual&emirate=abu_dhabi

    An unknown or closed job yields an empty list.
    """
    try:
        engine, query, limit = _parse_query()
    except ValidationError as e:
        return error_response("Invalid query parameters", 400, {"errors": e.errors(include_url=False, include_context=False)})
    except ValueError as e:
        return error_response(str(e), 400)

    matches = asyncio.run(
        engine.match_professionals_for_job(job_id, limit=limit, context=query.to_context())
    )
    return _match_response(matches)


@match_bp.route('/matches/insights', methods=['GET'])
@limiter.limit("30 per minute")
def get_match_insights():
    """
    Market insights over the candidate pool, optionally with a summary of one
    subject's matches.

    GET /api/matches/insights?sector=finance&emirate=dubai
    GET /api/matches/insights?job_id=10&language=arabic&limit=10

    The summarized matches are always scored contextually so that factor
    averages are available.
    """
    try:
        engine, query, limit = _parse_query(InsightsQuerySchema)
    except ValidationError as e:
        return error_response("Invalid query parameters", 400, {"errors": e.errors(include_url=False, include_context=False)})
    except ValueError as e:
        return error_response(str(e), 400)

    market = engine.market_insights(
        sector=query.sector.value if query.sector else None,
        emirate=query.emirate.value if query.emirate else None,
    )
    response = {"market": market.model_dump(mode="json")}

    context = query.to_context() or MatchContext()
    matches = None
    if query.professional_id is not None:
        matches = asyncio.run(
            engine.match_jobs_for_professional(query.professional_id, limit=limit, context=context)
        )
    elif query.job_id is not None:
        matches = asyncio.run(
            engine.match_professionals_for_job(query.job_id, limit=limit, context=context)
        )
    if matches is not None:
        search = SearchInsightsSchema.from_insights(engine.search_insights(matches))
        response["search"] = search.model_dump()

    return jsonify(response), 200
