"""
Ranker
Thresholds, orders and truncates scored candidates.
"""
import logging
from typing import Iterable, List

from nexus.services.matching.types import MatchScore, RankedMatch, ScoredCandidate

logger = logging.getLogger(__name__)

# Match strength thresholds, highest first
MATCH_STRENGTHS = (
    (0.9, "exceptional"),
    (0.8, "excellent"),
    (0.7, "strong"),
    (0.6, "good"),
    (0.4, "moderate"),
)
DEFAULT_STRENGTH = "basic"


def match_strength(score: float) -> str:
    """Human label for an overall score in [0, 1]."""
    for threshold, label in MATCH_STRENGTHS:
        if score >= threshold:
            return label
    return DEFAULT_STRENGTH


class MatchRanker:
    """
    Selects the top matches from a scored candidate set.

    Candidates below `min_score` are dropped. The rest are ordered by an
    effective score: the overall score plus a small bonus from the cultural
    and language subscores, so contextually stronger candidates outrank
    peers with the same raw score. The bonus affects ordering only.
    """

    DEFAULT_MIN_SCORE = 0.3
    TIE_BREAK_WEIGHT = 0.1

    def __init__(self, min_score: float = DEFAULT_MIN_SCORE, tie_break_weight: float = TIE_BREAK_WEIGHT):
        if not 0.0 <= min_score <= 1.0:
            raise ValueError(f"min_score must be between 0 and 1, got {min_score}")
        self.min_score = min_score
        self.tie_break_weight = tie_break_weight

    def tie_break_bonus(self, score: MatchScore) -> float:
        if score.subscores is None:
            return 0.0
        return (score.subscores.cultural + score.subscores.language) / 2 * self.tie_break_weight

    def effective_score(self, score: MatchScore) -> float:
        return round(score.overall_score + self.tie_break_bonus(score), 6)

    def rank(self, scored: Iterable[ScoredCandidate], limit: int) -> List[RankedMatch]:
        if limit <= 0:
            return []

        scored = list(scored)
        accepted = [item for item in scored if item.score.overall_score >= self.min_score]
        ranked = [
            RankedMatch(
                candidate=item.candidate,
                score=item.score,
                effective_score=self.effective_score(item.score),
                match_strength=match_strength(item.score.overall_score),
                relevant_experience=list(item.relevant_experience),
            )
            for item in accepted
        ]
        ranked.sort(key=lambda m: (-m.effective_score, -m.score.overall_score, m.score.candidate_id))

        logger.debug(
            f"{len(accepted)} of {len(scored)} candidates passed the threshold "
            f"(min_score={self.min_score}, limit={limit})"
        )
        return ranked[:limit]
