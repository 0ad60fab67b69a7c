"""
Heuristic Scorer
Deterministic text-overlap scoring used when embeddings are unavailable.

Four all-or-nothing factors:
- Title containment (30%): profile title appears in the job title
- Bio overlap (20%): a significant bio term appears in the job description or requirements
- Industry focus (20%): industry focus appears in the job description
- Location (30%): locations are equal
"""
import re
from dataclasses import dataclass
from typing import Set

from nexus.services.matching.types import JobEntity, ProfileEntity

_WORD_RE = re.compile(r"[^\W_]+", re.UNICODE)

STOP_WORDS = frozenset({
    "and", "the", "for", "with", "from", "into", "over", "that", "this",
    "are", "was", "were", "has", "have", "had", "our", "your", "their",
    "you", "who", "all", "any", "can", "will", "not", "but", "also",
    "per", "via", "out", "its", "his", "her", "they", "them", "more",
    "years", "year", "experience", "experienced",
})


@dataclass(frozen=True)
class HeuristicBreakdown:
    title: float
    bio: float
    industry: float
    location: float

    @property
    def total(self) -> float:
        return min(1.0, round(self.title + self.bio + self.industry + self.location, 6))


def _normalize(value) -> str:
    return (value or "").strip().lower()


def significant_terms(text: str) -> Set[str]:
    """Lower-cased words longer than two characters that are not stop words."""
    return {
        word for word in _WORD_RE.findall(_normalize(text))
        if len(word) > 2 and word not in STOP_WORDS
    }


class HeuristicScorer:
    """Scores a profile against a job with fixed keyword heuristics."""

    WEIGHT_TITLE = 0.3
    WEIGHT_BIO = 0.2
    WEIGHT_INDUSTRY = 0.2
    WEIGHT_LOCATION = 0.3

    def breakdown(self, profile: ProfileEntity, job: JobEntity) -> HeuristicBreakdown:
        return HeuristicBreakdown(
            title=self.WEIGHT_TITLE if self.title_matches(profile, job) else 0.0,
            bio=self.WEIGHT_BIO if self.bio_overlaps(profile, job) else 0.0,
            industry=self.WEIGHT_INDUSTRY if self.industry_matches(profile, job) else 0.0,
            location=self.WEIGHT_LOCATION if self.location_matches(profile, job) else 0.0,
        )

    def score(self, profile: ProfileEntity, job: JobEntity) -> float:
        """Heuristic score in [0, 1]."""
        return self.breakdown(profile, job).total

    @staticmethod
    def title_matches(profile: ProfileEntity, job: JobEntity) -> bool:
        title = _normalize(profile.title)
        return bool(title) and title in _normalize(job.title)

    @staticmethod
    def bio_overlaps(profile: ProfileEntity, job: JobEntity) -> bool:
        bio_terms = significant_terms(profile.bio)
        if not bio_terms:
            return False
        job_terms = significant_terms(job.description) | significant_terms(job.requirements)
        return not bio_terms.isdisjoint(job_terms)

    @staticmethod
    def industry_matches(profile: ProfileEntity, job: JobEntity) -> bool:
        industry = _normalize(profile.industry_focus)
        return bool(industry) and industry in _normalize(job.description)

    @staticmethod
    def location_matches(profile: ProfileEntity, job: JobEntity) -> bool:
        location = _normalize(profile.location).casefold()
        return bool(location) and location == _normalize(job.location).casefold()
