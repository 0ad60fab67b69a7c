"""
Value types shared by the matching engine.

Entities are immutable snapshots produced by the stores; scores are pydantic
models so every score leaving the engine is validated to the [0, 1] range.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field

Embedding = List[float]

# Score sources, in order of preference
SOURCE_EMBEDDING = "embedding"
SOURCE_HEURISTIC = "heuristic"
SOURCE_CONTEXTUAL = "contextual"
SOURCE_FLOOR = "floor"

JOB_STATUS_OPEN = "open"


def _join_parts(*parts: Optional[str]) -> str:
    return " | ".join(part.strip() for part in parts if part and part.strip())


@dataclass(frozen=True)
class ProfileEntity:
    """Read-only view of a professional profile."""

    id: int
    title: str = ""
    bio: str = ""
    location: str = ""
    industry_focus: str = ""
    embedding: Optional[Embedding] = field(default=None, compare=False, hash=False)
    updated_at: Optional[datetime] = None

    def embedding_text(self) -> str:
        """Text sent to the embedding provider for this profile."""
        return _join_parts(self.title, self.bio, self.industry_focus)

    def combined_text(self) -> str:
        return " ".join(
            part for part in (self.title, self.bio, self.industry_focus, self.location) if part
        ).lower()


@dataclass(frozen=True)
class JobEntity:
    """Read-only view of a job posting."""

    id: int
    title: str = ""
    description: str = ""
    requirements: str = ""
    location: str = ""
    status: str = JOB_STATUS_OPEN
    region: Optional[str] = None
    job_type: str = ""
    updated_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return (self.status or "").lower() == JOB_STATUS_OPEN

    def embedding_text(self) -> str:
        """Text sent to the embedding provider for this job."""
        return _join_parts(
            self.title, self.description, self.requirements, self.job_type, self.location
        )

    def combined_text(self) -> str:
        return " ".join(
            part for part in (self.title, self.description, self.requirements, self.location) if part
        ).lower()


@dataclass(frozen=True)
class MatchContext:
    """
    Optional contextual filters for a match request.

    Any instance, even one with every field unset, requests contextual
    scoring. Instances are hashable so they can key cached scores.
    """

    sector: Optional[str] = None
    language: Optional[str] = None
    delivery_format: Optional[str] = None
    emirate: Optional[str] = None
    company_type: Optional[str] = None


class ContextualSubscores(BaseModel):
    """Per-factor scores from contextual matching."""

    model_config = ConfigDict(frozen=True)

    sector: float = Field(..., ge=0.0, le=1.0)
    language: float = Field(..., ge=0.0, le=1.0)
    format: float = Field(..., ge=0.0, le=1.0)
    cultural: float = Field(..., ge=0.0, le=1.0)


class MatchScore(BaseModel):
    """Score for one (subject, candidate) pair."""

    model_config = ConfigDict(frozen=True)

    subject_id: int
    candidate_id: int
    overall_score: float = Field(..., ge=0.0, le=1.0)
    subscores: Optional[ContextualSubscores] = None
    source: str = SOURCE_HEURISTIC
    recommendations: List[str] = Field(default_factory=list)
    computed_at: datetime = Field(default_factory=datetime.utcnow)


@dataclass(frozen=True)
class ScoreOutcome:
    """Result of a single scoring strategy attempt: a score or a failure reason."""

    score: Optional[float]
    source: str
    failure: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.score is not None

    @classmethod
    def success(cls, score: float, source: str) -> "ScoreOutcome":
        return cls(score=score, source=source)

    @classmethod
    def failed(cls, source: str, reason: str) -> "ScoreOutcome":
        return cls(score=None, source=source, failure=reason)


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: Any  # ProfileEntity or JobEntity
    score: MatchScore
    relevant_experience: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RankedMatch:
    """A candidate that survived thresholding, with its ranking metadata."""

    candidate: Any
    score: MatchScore
    effective_score: float
    match_strength: str
    relevant_experience: List[str] = field(default_factory=list)
