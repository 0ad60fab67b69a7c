"""
Pydantic schemas for match requests and responses.
Scores are exposed as integer percentages (0-100).
"""
from dataclasses import asdict
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from nexus.services.matching.contextual_scorer import (
    DeliveryFormat,
    Emirate,
    LanguageRequirement,
    Sector,
)
from nexus.services.matching.insights import SearchInsights
from nexus.services.matching.types import MatchContext, RankedMatch


def to_percent(score: float) -> int:
    return int(round(score * 100))


class MatchQuerySchema(BaseModel):
    """Query string of the match endpoints."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    limit: Optional[int] = Field(None, ge=1, description="Maximum number of matches (default from config)")
    sector: Optional[Sector] = Field(None, description="Target industry sector")
    language: Optional[LanguageRequirement] = Field(None, description="Language requirement")
    delivery_format: Optional[DeliveryFormat] = Field(
        None, alias="format", description="Delivery format (in_person, virtual, hybrid, workshop)"
    )
    emirate: Optional[Emirate] = Field(None, description="Emirate the work takes place in")
    contextual: bool = Field(False, description="Use contextual scoring even without filters")

    @field_validator("sector", "language", "delivery_format", "emirate", mode="before")
    @classmethod
    def normalize_choice(cls, v):
        """Accept case and spacing variants such as 'Abu Dhabi' or 'In-Person'."""
        if v is None:
            return None
        if isinstance(v, str):
            v = v.strip().lower().replace(" ", "_").replace("-", "_")
            return v or None
        return v

    @property
    def is_contextual(self) -> bool:
        return self.contextual or any(
            value is not None
            for value in (self.sector, self.language, self.delivery_format, self.emirate)
        )

    def to_context(self) -> Optional[MatchContext]:
        """MatchContext for the engine, or None for plain scoring."""
        if not self.is_contextual:
            return None
        return MatchContext(
            sector=self.sector.value if self.sector else None,
            language=self.language.value if self.language else None,
            delivery_format=self.delivery_format.value if self.delivery_format else None,
            emirate=self.emirate.value if self.emirate else None,
        )


class InsightsQuerySchema(MatchQuerySchema):
    """
    Query string of the insights endpoint.

    sector and emirate select the detailed market analysis. With a
    professional_id or job_id the matching result set for that subject is
    summarized too, using the same filters as the match endpoints.
    """

    professional_id: Optional[int] = Field(None, ge=1, description="Summarize job matches for this professional")
    job_id: Optional[int] = Field(None, ge=1, description="Summarize professional matches for this job")

    @model_validator(mode="after")
    def one_subject(self):
        if self.professional_id is not None and self.job_id is not None:
            raise ValueError("Provide either professional_id or job_id, not both")
        return self


class SubscoresSchema(BaseModel):
    """Contextual sub-scores as percentages."""

    sector: int = Field(..., ge=0, le=100)
    language: int = Field(..., ge=0, le=100)
    format: int = Field(..., ge=0, le=100)
    cultural: int = Field(..., ge=0, le=100)


class MatchResultSchema(BaseModel):
    """One entry of a match response."""

    model_config = ConfigDict(populate_by_name=True)

    entity: dict = Field(..., description="Matched job or professional")
    match_score: int = Field(..., ge=0, le=100, alias="matchScore")
    subscores: Optional[SubscoresSchema] = None
    match_strength: str = Field(..., alias="matchStrength")
    recommendations: List[str] = Field(default_factory=list)
    relevant_experience: List[str] = Field(default_factory=list, alias="relevantExperience")

    @classmethod
    def from_ranked(cls, match: RankedMatch) -> "MatchResultSchema":
        score = match.score
        subscores = None
        if score.subscores is not None:
            subscores = SubscoresSchema(
                sector=to_percent(score.subscores.sector),
                language=to_percent(score.subscores.language),
                format=to_percent(score.subscores.format),
                cultural=to_percent(score.subscores.cultural),
            )
        return cls(
            entity=entity_to_dict(match.candidate),
            match_score=to_percent(score.overall_score),
            subscores=subscores,
            match_strength=match.match_strength,
            recommendations=list(score.recommendations),
            relevant_experience=list(match.relevant_experience),
        )

    def to_response(self) -> dict:
        data = self.model_dump(by_alias=True)
        if data["subscores"] is None:
            del data["subscores"]
        return data


def entity_to_dict(entity) -> dict:
    """Public fields of a ProfileEntity or JobEntity."""
    data = asdict(entity)
    data.pop("embedding", None)
    if data.get("updated_at") is not None:
        data["updated_at"] = data["updated_at"].isoformat()
    return data


class FactorScoreSchema(BaseModel):
    factor: str
    score: int = Field(..., ge=0, le=100)


class SearchInsightsSchema(BaseModel):
    """Summary of a match result set, scores as percentages."""

    total_matches: int = Field(..., ge=0)
    average_match_score: int = Field(..., ge=0, le=100)
    top_matching_factors: List[FactorScoreSchema] = Field(default_factory=list)
    improvement_suggestions: List[str] = Field(default_factory=list)

    @classmethod
    def from_insights(cls, insights: SearchInsights) -> "SearchInsightsSchema":
        return cls(
            total_matches=insights.total_matches,
            average_match_score=to_percent(insights.average_match_score),
            top_matching_factors=[
                FactorScoreSchema(factor=item.factor, score=to_percent(item.score))
                for item in insights.top_matching_factors
            ],
            improvement_suggestions=list(insights.improvement_suggestions),
        )
