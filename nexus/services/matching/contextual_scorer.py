"""
Contextual Scorer
Multi-factor matching for the UAE professional services market.

Scores a profile against a job across four factors, each in [0, 1]:
- Sector (35%): industry sector alignment from English and Arabic keywords
- Language (25%): Arabic/English capability against the job's requirement
- Format (20%): ability to deliver in the job's delivery format
- Cultural (20%): cultural fit and regional experience

Every factor is a keyword-presence heuristic over the entities' text, and
may be overridden by the filters on a MatchContext.
"""
import logging
import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, FrozenSet, List, Optional

from nexus.services.matching.types import (
    ContextualSubscores,
    JobEntity,
    MatchContext,
    ProfileEntity,
)

logger = logging.getLogger(__name__)


class Sector(str, Enum):
    TECHNOLOGY = "technology"
    FINANCE = "finance"
    OIL_GAS = "oil_gas"
    REAL_ESTATE = "real_estate"
    TOURISM = "tourism"
    HEALTHCARE = "healthcare"
    EDUCATION = "education"
    LOGISTICS = "logistics"
    GOVERNMENT = "government"
    MANUFACTURING = "manufacturing"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class DeliveryFormat(str, Enum):
    IN_PERSON = "in_person"
    VIRTUAL = "virtual"
    HYBRID = "hybrid"
    WORKSHOP = "workshop"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class LanguageRequirement(str, Enum):
    ARABIC = "arabic"
    ENGLISH = "english"
    BILINGUAL = "bilingual"


class Emirate(str, Enum):
    DUBAI = "dubai"
    ABU_DHABI = "abu_dhabi"
    SHARJAH = "sharjah"
    AJMAN = "ajman"
    RAS_AL_KHAIMAH = "ras_al_khaimah"
    FUJAIRAH = "fujairah"
    UMM_AL_QUWAIN = "umm_al_quwain"

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


class RegionalExperience(IntEnum):
    REMOTE_ONLY = 1
    RECENT_ARRIVAL = 2
    EXPERIENCED_EXPAT = 3
    LONG_TERM_RESIDENT = 4
    UAE_NATIVE = 5


COMPANY_GOVERNMENT = "government"
COMPANY_MULTINATIONAL = "multinational"

# English keywords are matched on word boundaries, Arabic ones as substrings
# so that attached prefixes such as the definite article still match.
SECTOR_KEYWORDS: Dict[Sector, Dict[str, List[str]]] = {
    Sector.TECHNOLOGY: {
        "primary": [
            "technology", "tech", "fintech", "smart city", "smartcity", "blockchain",
            "ai", "artificial intelligence", "digital transformation", "cybersecurity",
            "iot", "software",
        ],
        "arabic": ["تقنية", "تكنولوجيا", "ذكاء اصطناعي", "التحول الرقمي"],
    },
    Sector.FINANCE: {
        "primary": [
            "finance", "financial services", "banking", "islamic banking",
            "sharia compliance", "investment", "adcb", "emirates nbd",
        ],
        "arabic": ["مالية", "مصرفية إسلامية", "استثمار", "بنك"],
    },
    Sector.OIL_GAS: {
        "primary": [
            "oil and gas", "oil & gas", "adnoc", "petrochemicals", "energy",
            "refineries", "downstream", "upstream",
        ],
        "arabic": ["نفط", "غاز", "طاقة", "بتروكيماويات"],
    },
    Sector.REAL_ESTATE: {
        "primary": [
            "real estate", "emaar", "dubai properties", "construction",
            "property management", "property development",
        ],
        "arabic": ["عقارات", "إنشاءات", "تطوير عقاري"],
    },
    Sector.TOURISM: {
        "primary": [
            "tourism", "hospitality", "expo", "tourism board", "heritage",
            "cultural tourism",
        ],
        "arabic": ["سياحة", "ضيافة", "تراث"],
    },
    Sector.HEALTHCARE: {
        "primary": ["healthcare", "health", "hospital", "medical", "clinical", "pharmaceutical"],
        "arabic": ["رعاية صحية", "مستشفى", "طبي"],
    },
    Sector.EDUCATION: {
        "primary": ["education", "school", "university", "academic", "e-learning"],
        "arabic": ["تعليم", "جامعة", "مدرسة"],
    },
    Sector.LOGISTICS: {
        "primary": ["logistics", "supply chain", "shipping", "freight", "ports", "aviation"],
        "arabic": ["لوجستية", "شحن", "سلسلة التوريد"],
    },
    Sector.GOVERNMENT: {
        "primary": ["government", "public sector", "ministry", "federal authority", "municipality"],
        "arabic": ["حكومة", "حكومي", "وزارة", "القطاع العام"],
    },
    Sector.MANUFACTURING: {
        "primary": ["manufacturing", "industrial", "factory", "production"],
        "arabic": ["تصنيع", "صناعة", "مصنع"],
    },
}

PROFICIENCY_SCORES = {
    "native": 1.0,
    "fluent": 0.9,
    "conversational": 0.7,
    "basic": 0.4,
}
NO_PROFICIENCY = 0.1

FORMAT_KEYWORDS: Dict[DeliveryFormat, List[str]] = {
    DeliveryFormat.VIRTUAL: ["online", "virtual", "remote"],
    DeliveryFormat.IN_PERSON: ["in-person", "in person", "face-to-face", "face to face", "onsite", "on-site"],
    DeliveryFormat.HYBRID: ["hybrid", "blended"],
    DeliveryFormat.WORKSHOP: ["workshop", "workshops", "seminar", "seminars"],
}

REGION_KEYWORDS = [
    "uae", "united arab emirates", "emirates", "dubai", "abu dhabi", "sharjah",
    "ajman", "ras al khaimah", "fujairah", "umm al quwain",
]
REGION_KEYWORDS_ARABIC = ["الإمارات", "دبي", "أبوظبي", "الشارقة"]

ARABIC_SCRIPT_RE = re.compile(r"[\u0600-\u06FF]")


def _keyword_pattern(keyword: str) -> "re.Pattern":
    return re.compile(r"(?<!\w)" + re.escape(keyword) + r"(?!\w)")


_PATTERNS: Dict[str, "re.Pattern"] = {}


def contains_keyword(text: str, keyword: str) -> bool:
    """Whole-word, case-insensitive keyword test. Text must already be lower-cased."""
    pattern = _PATTERNS.get(keyword)
    if pattern is None:
        pattern = _PATTERNS.setdefault(keyword, _keyword_pattern(keyword.lower()))
    return pattern.search(text) is not None


def contains_any(text: str, keywords) -> bool:
    return any(contains_keyword(text, keyword) for keyword in keywords)


def sector_keyword_hits(text: str, sector: Sector) -> int:
    return sum(1 for keyword in SECTOR_KEYWORDS[sector]["primary"] if contains_keyword(text, keyword))


def sector_arabic_hits(text: str, sector: Sector) -> int:
    return sum(1 for keyword in SECTOR_KEYWORDS[sector]["arabic"] if keyword in text)


def sectors_in_text(text: str) -> List[Sector]:
    """Every sector with at least one English or Arabic keyword in the text."""
    return [
        sector for sector in Sector
        if sector_keyword_hits(text, sector) or sector_arabic_hits(text, sector)
    ]


def mentions_region(text: str) -> bool:
    return contains_any(text, REGION_KEYWORDS) or any(k in text for k in REGION_KEYWORDS_ARABIC)


@dataclass(frozen=True)
class LanguageCapability:
    arabic: str
    english: str
    preferred: LanguageRequirement
    cultural_communication: float

    @property
    def is_bilingual(self) -> bool:
        return self.preferred == LanguageRequirement.BILINGUAL


@dataclass(frozen=True)
class LanguageNeeds:
    arabic_required: bool
    english_required: bool
    preferred: LanguageRequirement


@dataclass(frozen=True)
class ContextualWeights:
    """Aggregate weights of the four contextual factors; must sum to 1."""

    sector: float = 0.35
    language: float = 0.25
    format: float = 0.20
    cultural: float = 0.20

    def __post_init__(self):
        values = (self.sector, self.language, self.format, self.cultural)
        if any(value < 0 for value in values):
            raise ValueError("Contextual weights must be non-negative")
        if abs(sum(values) - 1.0) > 1e-6:
            raise ValueError(f"Contextual weights must sum to 1.0, got {sum(values):.3f}")


@dataclass(frozen=True)
class ContextualAssessment:
    subscores: ContextualSubscores
    overall: float
    sector: Sector
    delivery_format: DeliveryFormat
    emirate: Optional[Emirate]
    company_type: str
    recommendations: List[str] = field(default_factory=list)


class ContextualScorer:
    """
    Keyword-driven contextual scorer.

    Stateless apart from its weights; safe to share between requests.
    """

    SECTOR_MATCH_SCORE = 0.7
    SECTOR_KEYWORD_WEIGHT = 0.3
    ARABIC_KEYWORD_BOOST = 1.1

    FORMAT_MATCH_SCORE = 0.8
    FORMAT_MISMATCH_SCORE = 0.2
    IN_PERSON_REGIONAL_BONUS = 0.2

    def __init__(self, weights: Optional[ContextualWeights] = None):
        self.weights = weights or ContextualWeights()

    def assess(
        self,
        profile: ProfileEntity,
        job: JobEntity,
        context: Optional[MatchContext] = None,
    ) -> ContextualAssessment:
        context = context or MatchContext()
        profile_text = profile.combined_text()
        job_text = job.combined_text()

        sector = self.resolve_sector(job, context)
        delivery_format = self.resolve_format(job_text, context)
        emirate = self.resolve_emirate(job, job_text, context)
        company_type = self.resolve_company_type(job_text, context)

        capability = self.language_capability(profile_text)
        needs = self.language_needs(job_text, context)
        experience = self.regional_experience(profile)

        subscores = ContextualSubscores(
            sector=self.sector_score(profile, sector),
            language=self.language_score(capability, needs),
            format=self.format_score(profile_text, delivery_format, experience),
            cultural=self.cultural_score(profile, capability, experience, company_type, emirate),
        )
        overall = self.aggregate(subscores)

        return ContextualAssessment(
            subscores=subscores,
            overall=overall,
            sector=sector,
            delivery_format=delivery_format,
            emirate=emirate,
            company_type=company_type,
            recommendations=self.recommendations(subscores, sector, delivery_format, capability, needs),
        )

    def aggregate(self, subscores: ContextualSubscores) -> float:
        total = (
            subscores.sector * self.weights.sector
            + subscores.language * self.weights.language
            + subscores.format * self.weights.format
            + subscores.cultural * self.weights.cultural
        )
        return max(0.0, min(1.0, round(total, 6)))

    # ------------------------------------------------------------------
    # Context resolution
    # ------------------------------------------------------------------

    @staticmethod
    def resolve_sector(job: JobEntity, context: MatchContext) -> Sector:
        if context.sector:
            return Sector(context.sector)
        text = f"{job.title} {job.description}".lower()
        matches = sectors_in_text(text)
        return matches[0] if matches else Sector.TECHNOLOGY

    @staticmethod
    def resolve_format(job_text: str, context: MatchContext) -> DeliveryFormat:
        if context.delivery_format:
            return DeliveryFormat(context.delivery_format)
        if contains_any(job_text, FORMAT_KEYWORDS[DeliveryFormat.HYBRID]):
            return DeliveryFormat.HYBRID
        if contains_any(job_text, FORMAT_KEYWORDS[DeliveryFormat.WORKSHOP]):
            return DeliveryFormat.WORKSHOP
        if contains_any(job_text, FORMAT_KEYWORDS[DeliveryFormat.VIRTUAL]):
            return DeliveryFormat.VIRTUAL
        return DeliveryFormat.IN_PERSON

    @staticmethod
    def resolve_emirate(job: JobEntity, job_text: str, context: MatchContext) -> Optional[Emirate]:
        for candidate in (context.emirate, job.region):
            if candidate:
                try:
                    return Emirate(candidate.strip().lower().replace(" ", "_"))
                except ValueError:
                    logger.debug(f"Ignoring unknown emirate tag: {candidate}")
        for emirate in Emirate:
            if contains_keyword(job_text, emirate.label):
                return emirate
        return None

    @staticmethod
    def resolve_company_type(job_text: str, context: MatchContext) -> str:
        if context.company_type:
            return context.company_type.lower()
        if contains_keyword(job_text, "government"):
            return COMPANY_GOVERNMENT
        return COMPANY_MULTINATIONAL

    # ------------------------------------------------------------------
    # Profile and job analysis
    # ------------------------------------------------------------------

    @staticmethod
    def language_capability(profile_text: str) -> LanguageCapability:
        arabic_capable = bool(ARABIC_SCRIPT_RE.search(profile_text)) or contains_keyword(profile_text, "arabic")
        if contains_any(profile_text, ["bilingual", "multilingual"]):
            preferred = LanguageRequirement.BILINGUAL
        else:
            preferred = LanguageRequirement.ENGLISH
        return LanguageCapability(
            arabic="fluent" if arabic_capable else "basic",
            english="fluent",
            preferred=preferred,
            cultural_communication=0.8 if arabic_capable else 0.5,
        )

    @staticmethod
    def language_needs(job_text: str, context: MatchContext) -> LanguageNeeds:
        arabic_required = contains_keyword(job_text, "arabic") or "عربي" in job_text
        english_required = True
        bilingual = contains_keyword(job_text, "bilingual")

        if context.language == LanguageRequirement.ARABIC.value:
            arabic_required, english_required, bilingual = True, False, False
        elif context.language == LanguageRequirement.ENGLISH.value:
            english_required, bilingual = True, False
        elif context.language == LanguageRequirement.BILINGUAL.value:
            arabic_required, english_required, bilingual = True, True, True

        if bilingual or (arabic_required and english_required):
            preferred = LanguageRequirement.BILINGUAL
        elif arabic_required:
            preferred = LanguageRequirement.ARABIC
        else:
            preferred = LanguageRequirement.ENGLISH

        return LanguageNeeds(
            arabic_required=arabic_required,
            english_required=english_required,
            preferred=preferred,
        )

    @staticmethod
    def delivery_formats(profile_text: str) -> FrozenSet[DeliveryFormat]:
        formats = {
            delivery_format
            for delivery_format, keywords in FORMAT_KEYWORDS.items()
            if contains_any(profile_text, keywords)
        }
        return frozenset(formats or {DeliveryFormat.VIRTUAL})

    @staticmethod
    def regional_experience(profile: ProfileEntity) -> RegionalExperience:
        text = " ".join(part for part in (profile.title, profile.bio, profile.location) if part).lower()
        if contains_any(text, ["emirati", "uae national"]):
            return RegionalExperience.UAE_NATIVE
        if not mentions_region(text):
            return RegionalExperience.REMOTE_ONLY
        if contains_any(text, ["recently relocated", "new to"]):
            return RegionalExperience.RECENT_ARRIVAL
        if contains_keyword(text, "years") and contains_any(text, ["uae", "emirates"]):
            return RegionalExperience.LONG_TERM_RESIDENT
        return RegionalExperience.EXPERIENCED_EXPAT

    @staticmethod
    def cultural_fit(profile_text: str, capability: LanguageCapability) -> float:
        fit = 0.4
        if capability.arabic != "basic" or capability.is_bilingual:
            fit += 0.1
        if contains_any(profile_text, ["cultural", "cross-cultural", "intercultural"]):
            fit += 0.2
        if contains_any(profile_text, ["international", "multicultural"]):
            fit += 0.1
        if contains_any(profile_text, ["middle east", "gulf", "gcc", "mena"]):
            fit += 0.2
        return min(1.0, fit)

    # ------------------------------------------------------------------
    # Factor scores
    # ------------------------------------------------------------------

    def sector_score(self, profile: ProfileEntity, sector: Sector) -> float:
        profile_text = " ".join(
            part for part in (profile.title, profile.bio, profile.industry_focus) if part
        ).lower()
        score = 0.0
        if sector in sectors_in_text(profile_text):
            score += self.SECTOR_MATCH_SCORE

        primary = SECTOR_KEYWORDS[sector]["primary"]
        summary_text = f"{profile.title} {profile.bio}".lower()
        hits = sector_keyword_hits(summary_text, sector) + (
            sector_arabic_hits(summary_text, sector) * self.ARABIC_KEYWORD_BOOST
        )
        score += (hits / len(primary)) * self.SECTOR_KEYWORD_WEIGHT
        return min(1.0, round(score, 6))

    @staticmethod
    def language_score(capability: LanguageCapability, needs: LanguageNeeds) -> float:
        proficiencies = []
        if needs.arabic_required:
            proficiencies.append(PROFICIENCY_SCORES.get(capability.arabic, NO_PROFICIENCY))
        if needs.english_required:
            proficiencies.append(PROFICIENCY_SCORES.get(capability.english, NO_PROFICIENCY))

        # Mean proficiency over the required languages
        score = (sum(proficiencies) / len(proficiencies)) * 0.5 if proficiencies else 0.5
        if capability.preferred == needs.preferred or capability.is_bilingual:
            score += 0.2
        score += capability.cultural_communication * 0.3
        return min(1.0, round(score, 6))

    def format_score(
        self,
        profile_text: str,
        delivery_format: DeliveryFormat,
        experience: RegionalExperience,
    ) -> float:
        if delivery_format in self.delivery_formats(profile_text):
            score = self.FORMAT_MATCH_SCORE
        else:
            score = self.FORMAT_MISMATCH_SCORE
        if delivery_format == DeliveryFormat.IN_PERSON and experience >= RegionalExperience.EXPERIENCED_EXPAT:
            score += self.IN_PERSON_REGIONAL_BONUS
        return min(1.0, round(score, 6))

    def cultural_score(
        self,
        profile: ProfileEntity,
        capability: LanguageCapability,
        experience: RegionalExperience,
        company_type: str,
        emirate: Optional[Emirate],
    ) -> float:
        score = self.cultural_fit(profile.combined_text(), capability)
        score += (int(experience) / 5) * 0.3
        if company_type == COMPANY_GOVERNMENT and experience >= RegionalExperience.EXPERIENCED_EXPAT:
            score += 0.2
        if emirate and contains_keyword((profile.location or "").lower(), emirate.label):
            score += 0.1
        return min(1.0, round(score, 6))

    # ------------------------------------------------------------------
    # Narrative output
    # ------------------------------------------------------------------

    @staticmethod
    def recommendations(
        subscores: ContextualSubscores,
        sector: Sector,
        delivery_format: DeliveryFormat,
        capability: LanguageCapability,
        needs: LanguageNeeds,
    ) -> List[str]:
        notes = []
        if subscores.sector < 0.5:
            notes.append(
                f"Consider gaining more experience in the {sector.label} sector to improve matching"
            )
        if subscores.language < 0.6 and needs.arabic_required and capability.arabic == "basic":
            notes.append("Improving Arabic language skills would increase opportunities in this market")
        if subscores.format < 0.5:
            notes.append(f"Consider developing expertise in {delivery_format.label} delivery")
        if subscores.cultural < 0.6:
            notes.append("Gaining more experience with UAE business culture would strengthen this match")
        if subscores.sector > 0.8:
            notes.append(f"Excellent {sector.label} sector expertise - highly relevant for this role")
        return notes

    @staticmethod
    def relevant_experience(profile: ProfileEntity, job: JobEntity) -> List[str]:
        """Short highlights of a professional's experience that matter for a job."""
        profile_text = profile.combined_text()
        job_text = job.combined_text()
        highlights = []
        if mentions_region(profile_text):
            highlights.append("UAE market experience")
        if contains_keyword(profile_text, "arabic") or ARABIC_SCRIPT_RE.search(profile_text):
            highlights.append("Arabic language capabilities")
        if contains_any(profile_text, ["cultural", "cross-cultural"]):
            highlights.append("Cross-cultural training expertise")
        if contains_keyword(profile_text, "government") and contains_keyword(job_text, "government"):
            highlights.append("UAE government sector experience")
        return highlights
