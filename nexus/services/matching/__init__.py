"""
Matching Service Package

Scores professionals against jobs and returns ranked shortlists.
Uses Gemini embeddings when available and falls back to text heuristics.

Sub-modules:
- types: Entities, scores and strategy outcomes
- similarity: Cosine similarity between embeddings
- heuristic_scorer: Deterministic keyword overlap scoring
- contextual_scorer: Sector, language, format and cultural scoring
- score_cache: Injectable score cache
- insights: Market and search insights
- ranker: Thresholding, ordering and truncation
- stores: Profile and job stores backed by SQLAlchemy
- engine: Orchestrates the above for a match request
"""

from nexus.services.matching.contextual_scorer import ContextualScorer, ContextualWeights
from nexus.services.matching.engine import MatchingEngine
from nexus.services.matching.heuristic_scorer import HeuristicScorer
from nexus.services.matching.insights import MarketInsights, SearchInsights, market_insights, search_insights
from nexus.services.matching.options import MatchingOptions
from nexus.services.matching.ranker import MatchRanker, match_strength
from nexus.services.matching.score_cache import ScoreCache
from nexus.services.matching.stores import SQLJobStore, SQLProfileStore
from nexus.services.matching.types import (
    JobEntity,
    MatchContext,
    MatchScore,
    ProfileEntity,
    RankedMatch,
)

__all__ = [
    'MatchingEngine',
    'MatchingOptions',
    'ScoreCache',
    'HeuristicScorer',
    'ContextualScorer',
    'ContextualWeights',
    'MatchRanker',
    'match_strength',
    'SQLProfileStore',
    'SQLJobStore',
    'ProfileEntity',
    'JobEntity',
    'MatchContext',
    'MatchScore',
    'RankedMatch',
    'MarketInsights',
    'SearchInsights',
    'market_insights',
    'search_insights',
]
