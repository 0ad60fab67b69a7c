"""
Entity stores consumed by the matching engine.

The engine depends only on the two protocols; the SQLAlchemy implementations
read the marketplace tables and convert rows to immutable entities.
"""
import logging
from typing import List, Optional, Protocol

from sqlalchemy import select

from nexus import db
from nexus.models.job_posting import JobPosting, JobStatus
from nexus.models.professional_profile import ProfessionalProfile
from nexus.services.matching.types import JobEntity, ProfileEntity

logger = logging.getLogger(__name__)


class ProfileStore(Protocol):
    def get_profile(self, profile_id: int) -> Optional[ProfileEntity]:
        ...

    def list_profiles(self, limit: int) -> List[ProfileEntity]:
        ...


class JobStore(Protocol):
    def get_job(self, job_id: int) -> Optional[JobEntity]:
        ...

    def list_open_jobs(self, limit: int) -> List[JobEntity]:
        ...


def profile_to_entity(profile: ProfessionalProfile) -> ProfileEntity:
    embedding = profile.embedding if isinstance(profile.embedding, list) and profile.embedding else None
    return ProfileEntity(
        id=profile.id,
        title=profile.title or "",
        bio=profile.bio or "",
        location=profile.location or "",
        industry_focus=profile.industry_focus or "",
        embedding=embedding,
        updated_at=profile.updated_at,
    )


def job_to_entity(job: JobPosting) -> JobEntity:
    return JobEntity(
        id=job.id,
        title=job.title or "",
        description=job.description or "",
        requirements=job.requirements or "",
        location=job.location or "",
        status=job.status or "",
        region=job.region,
        job_type=job.job_type or "",
        updated_at=job.updated_at,
    )


class SQLProfileStore:
    """Profile store over the professional_profiles table. Needs an app context."""

    def get_profile(self, profile_id: int) -> Optional[ProfileEntity]:
        profile = db.session.get(ProfessionalProfile, profile_id)
        return profile_to_entity(profile) if profile else None

    def list_profiles(self, limit: int) -> List[ProfileEntity]:
        stmt = select(ProfessionalProfile).order_by(ProfessionalProfile.id).limit(limit)
        profiles = db.session.scalars(stmt).all()
        logger.debug(f"Loaded {len(profiles)} candidate profiles (limit={limit})")
        return [profile_to_entity(profile) for profile in profiles]


class SQLJobStore:
    """Job store over the job_postings table. Needs an app context."""

    def get_job(self, job_id: int) -> Optional[JobEntity]:
        job = db.session.get(JobPosting, job_id)
        return job_to_entity(job) if job else None

    def list_open_jobs(self, limit: int) -> List[JobEntity]:
        stmt = (
            select(JobPosting)
            .where(JobPosting.status == JobStatus.OPEN.value)
            .order_by(JobPosting.created_at.desc(), JobPosting.id)
            .limit(limit)
        )
        jobs = db.session.scalars(stmt).all()
        logger.debug(f"Loaded {len(jobs)} open jobs (limit={limit})")
        return [job_to_entity(job) for job in jobs]
