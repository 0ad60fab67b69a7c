"""
Market and search insights.

Summaries built from the same signals the contextual scorer uses:
- Market insights over the candidate pool: sector demand, language
  distribution, delivery formats, and demand/supply per sector and emirate
- Search insights over a ranked result set: average score, strongest
  contextual factors and suggestions for improving the search
"""
import logging
from collections import Counter
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, computed_field

from nexus.services.matching.contextual_scorer import (
    ContextualScorer,
    DeliveryFormat,
    Emirate,
    Sector,
    contains_keyword,
    sectors_in_text,
)
from nexus.services.matching.types import JobEntity, MatchContext, ProfileEntity, RankedMatch

logger = logging.getLogger(__name__)

TOP_SECTOR_COUNT = 5

# A factor below these averages produces a suggestion
LANGUAGE_SUGGESTION_THRESHOLD = 0.7
CULTURAL_SUGGESTION_THRESHOLD = 0.6
# Share of Arabic-capable professionals below which Arabic skills are flagged as scarce
ARABIC_SCARCITY_SHARE = 0.3

LANGUAGE_SUGGESTION = "Consider Arabic language requirements or bilingual professionals"
CULTURAL_SUGGESTION = "Emphasize UAE cultural experience in job requirements"

CULTURAL_GUIDELINES = [
    "Respect for Islamic values and local customs is essential",
    "Business meetings may be scheduled around prayer times",
    "Relationship building is crucial before business discussions",
    "Formal attire and professional demeanor expected",
    "Friday is the holy day - avoid scheduling on Friday afternoons",
    "Ramadan considerations for training schedules and content delivery",
    "Arabic greetings and basic phrases appreciated",
    "Hierarchy and respect for authority emphasized in corporate culture",
]

COMPLIANCE_REQUIREMENTS = [
    "UAE Labor Law compliance for employment practices",
    "ADGM/DIFC regulations for financial sector training",
    "UAE Data Protection Law (PDPL) for data handling",
    "MOHRE approvals for certain professional training",
    "Emirates Authority for Standardization requirements",
    "Ministry of Education approvals for educational content",
    "NCEMA guidelines for crisis management training",
    "UAE Central Bank regulations for financial training",
]


class SectorCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    sector: Sector
    job_count: int = Field(..., ge=0)


class LanguageDistribution(BaseModel):
    """Language capabilities across the professional pool."""

    model_config = ConfigDict(frozen=True)

    arabic_capable: int = Field(..., ge=0)
    bilingual_capable: int = Field(..., ge=0)
    english_only: int = Field(..., ge=0)
    total: int = Field(..., ge=0)


class DemandSupply(BaseModel):
    """Open jobs (demand) against professionals (supply) for one sector or emirate."""

    model_config = ConfigDict(frozen=True)

    name: str
    job_count: int = Field(..., ge=0)
    professional_count: int = Field(..., ge=0)

    @computed_field
    @property
    def demand_supply_ratio(self) -> float:
        return round(self.job_count / max(self.professional_count, 1), 2)


class MarketInsights(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_professionals: int
    total_active_jobs: int
    top_sectors: List[SectorCount]
    language_distribution: LanguageDistribution
    format_preferences: dict
    sector_demand: List[DemandSupply]
    emirate_demand: List[DemandSupply]
    sector_analysis: Optional[DemandSupply] = None
    emirate_analysis: Optional[DemandSupply] = None
    recommendations: List[str] = Field(default_factory=list)
    cultural_guidelines: List[str] = Field(default_factory=lambda: list(CULTURAL_GUIDELINES))
    compliance_requirements: List[str] = Field(default_factory=lambda: list(COMPLIANCE_REQUIREMENTS))


class FactorScore(BaseModel):
    model_config = ConfigDict(frozen=True)

    factor: str
    score: float = Field(..., ge=0.0, le=1.0)


class SearchInsights(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_matches: int
    average_match_score: float = Field(..., ge=0.0, le=1.0)
    top_matching_factors: List[FactorScore] = Field(default_factory=list)
    improvement_suggestions: List[str] = Field(default_factory=list)


def _profile_emirates(profile: ProfileEntity) -> List[Emirate]:
    location = (profile.location or "").lower()
    return [emirate for emirate in Emirate if contains_keyword(location, emirate.label)]


def _demand_supply(name: str, job_count: int, professional_count: int) -> DemandSupply:
    return DemandSupply(name=name, job_count=job_count, professional_count=professional_count)


def market_insights(
    profiles: Sequence[ProfileEntity],
    jobs: Sequence[JobEntity],
    scorer: Optional[ContextualScorer] = None,
    sector: Optional[str] = None,
    emirate: Optional[str] = None,
) -> MarketInsights:
    """
    Summarize the marketplace.

    Args:
        profiles: Professional pool
        jobs: Open jobs
        scorer: Contextual scorer whose resolution rules are reused
        sector: Optional sector to analyze in detail
        emirate: Optional emirate to analyze in detail

    Returns:
        MarketInsights

    Raises:
        ValueError: If sector or emirate is not a known value
    """
    scorer = scorer or ContextualScorer()
    plain = MatchContext()

    job_sectors = Counter()
    job_emirates = Counter()
    formats = Counter({delivery_format.value: 0 for delivery_format in DeliveryFormat})
    for job in jobs:
        text = job.combined_text()
        job_sectors.update(sectors_in_text(text))
        job_emirate = scorer.resolve_emirate(job, text, plain)
        if job_emirate is not None:
            job_emirates[job_emirate] += 1
        formats[scorer.resolve_format(text, plain).value] += 1

    profile_sectors = Counter()
    profile_emirates = Counter()
    arabic_capable = bilingual_capable = 0
    for profile in profiles:
        text = profile.combined_text()
        profile_sectors.update(sectors_in_text(text))
        profile_emirates.update(_profile_emirates(profile))
        capability = scorer.language_capability(text)
        if capability.arabic == "fluent":
            arabic_capable += 1
        if capability.is_bilingual:
            bilingual_capable += 1

    top_sectors = sorted(job_sectors.items(), key=lambda item: (-item[1], item[0].value))[:TOP_SECTOR_COUNT]

    sector_demand = [
        _demand_supply(s.value, job_sectors[s], profile_sectors[s])
        for s in Sector
        if job_sectors[s] or profile_sectors[s]
    ]
    emirate_demand = [
        _demand_supply(e.value, job_emirates[e], profile_emirates[e])
        for e in Emirate
        if job_emirates[e] or profile_emirates[e]
    ]

    sector_analysis = None
    if sector:
        focus = Sector(sector)
        sector_analysis = _demand_supply(focus.value, job_sectors[focus], profile_sectors[focus])

    emirate_analysis = None
    if emirate:
        focus = Emirate(emirate)
        emirate_analysis = _demand_supply(focus.value, job_emirates[focus], profile_emirates[focus])

    insights = MarketInsights(
        total_professionals=len(profiles),
        total_active_jobs=len(jobs),
        top_sectors=[SectorCount(sector=s, job_count=count) for s, count in top_sectors],
        language_distribution=LanguageDistribution(
            arabic_capable=arabic_capable,
            bilingual_capable=bilingual_capable,
            english_only=len(profiles) - arabic_capable,
            total=len(profiles),
        ),
        format_preferences=dict(formats),
        sector_demand=sector_demand,
        emirate_demand=emirate_demand,
        sector_analysis=sector_analysis,
        emirate_analysis=emirate_analysis,
        recommendations=market_recommendations(job_sectors, arabic_capable, len(profiles)),
    )
    logger.info(
        f"Market insights over {len(profiles)} professionals and {len(jobs)} open jobs "
        f"({len(sector_demand)} sectors, {len(emirate_demand)} emirates)"
    )
    return insights


def market_recommendations(job_sectors: Counter, arabic_capable: int, total_professionals: int) -> List[str]:
    recommendations = []

    if job_sectors[Sector.TECHNOLOGY] > job_sectors[Sector.FINANCE]:
        recommendations.append(
            "Technology sector shows highest demand - consider specializing in digital transformation and fintech"
        )
    else:
        recommendations.append(
            "Financial services remain strong - Islamic banking and sharia compliance expertise valuable"
        )

    if arabic_capable < total_professionals * ARABIC_SCARCITY_SHARE:
        recommendations.append(
            "Arabic language skills are in high demand - consider developing bilingual capabilities"
        )

    recommendations.append(
        "UAE government initiatives in AI and smart cities create opportunities for specialized training"
    )
    recommendations.append("Cultural sensitivity training increasingly important for multinational companies")
    return recommendations


def _mean(values: Iterable[float]) -> float:
    values = list(values)
    return sum(values) / len(values) if values else 0.0


def search_insights(matches: Sequence[RankedMatch]) -> SearchInsights:
    """
    Summarize a ranked result set.

    Factors are only reported when the matches carry contextual subscores.
    An empty result set yields an average of 0 and no factors.
    """
    average = _mean(match.score.overall_score for match in matches)

    with_subscores = [match.score.subscores for match in matches if match.score.subscores is not None]
    if not with_subscores:
        return SearchInsights(total_matches=len(matches), average_match_score=round(average, 6))

    factor_means = {
        factor: _mean(getattr(subscores, factor) for subscores in with_subscores)
        for factor in ("sector", "language", "format", "cultural")
    }
    top_factors = [
        FactorScore(factor=factor, score=round(score, 6))
        for factor, score in sorted(factor_means.items(), key=lambda item: (-item[1], item[0]))
    ]

    suggestions = []
    if factor_means["language"] < LANGUAGE_SUGGESTION_THRESHOLD:
        suggestions.append(LANGUAGE_SUGGESTION)
    if factor_means["cultural"] < CULTURAL_SUGGESTION_THRESHOLD:
        suggestions.append(CULTURAL_SUGGESTION)

    return SearchInsights(
        total_matches=len(matches),
        average_match_score=round(average, 6),
        top_matching_factors=top_factors,
        improvement_suggestions=suggestions,
    )
