"""Pytest configuration and fixtures."""

import asyncio
import pytest
import sys
import os
from datetime import datetime

# Add the parent directory to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from nexus import create_app, db as app_db, get_matching_engine
from config.testing import TestingConfig
from nexus.models import JobPosting, JobStatus, ProfessionalProfile
from nexus.services.matching import (
    JobEntity,
    MatchingEngine,
    MatchingOptions,
    ProfileEntity,
    ScoreCache,
)


@pytest.fixture(scope="session")
def app():
    """Create application for testing."""
    app = create_app(config=TestingConfig)
    return app


@pytest.fixture(scope="function")
def client(app, db):
    """Flask test client, sharing the app context pushed by the db fixture."""
    with app.test_client() as client:
        yield client


@pytest.fixture(scope="function")
def db(app):
    """Database session for testing."""
    with app.app_context():
        # Create all tables
        app_db.create_all()
        get_matching_engine().cache.clear()
        yield app_db
        # Drop all tables
        app_db.session.remove()
        app_db.drop_all()


# ----------------------------------------------------------------------
# In-memory stores and fake embedding providers
# ----------------------------------------------------------------------

class InMemoryProfileStore:
    """Profile store over a list of ProfileEntity."""

    def __init__(self, profiles=None):
        self.profiles = {profile.id: profile for profile in (profiles or [])}

    def get_profile(self, profile_id):
        return self.profiles.get(profile_id)

    def list_profiles(self, limit):
        return [self.profiles[key] for key in sorted(self.profiles)][:limit]


class InMemoryJobStore:
    """Job store over a list of JobEntity."""

    def __init__(self, jobs=None):
        self.jobs = {job.id: job for job in (jobs or [])}

    def get_job(self, job_id):
        return self.jobs.get(job_id)

    def list_open_jobs(self, limit):
        return [self.jobs[key] for key in sorted(self.jobs) if self.jobs[key].is_open][:limit]


TOPIC_KEYWORDS = ("coach", "finance", "data", "hospitality")


def keyword_vector(text):
    """Deterministic 5-d embedding: one axis per topic keyword plus a bias axis."""
    text = text.lower()
    return [1.0 if keyword in text else 0.0 for keyword in TOPIC_KEYWORDS] + [0.2]


class FakeEmbeddingProvider:
    """
    Embedding provider for tests.

    Records every call and the peak number of concurrent calls. Texts that
    contain any of `slow_markers` take `slow_delay` seconds; every call fails
    when `fail` is set.
    """

    def __init__(self, fail=False, delay=0.0, slow_markers=(), slow_delay=5.0):
        self.fail = fail
        self.delay = delay
        self.slow_markers = tuple(slow_markers)
        self.slow_delay = slow_delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def embed(self, text):
        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self.delay
            if any(marker in text for marker in self.slow_markers):
                delay = self.slow_delay
            if delay:
                await asyncio.sleep(delay)
            if self.fail:
                raise RuntimeError("embedding quota exceeded")
            return keyword_vector(text)
        finally:
            self.in_flight -= 1


@pytest.fixture
def make_engine():
    """Factory building a MatchingEngine over in-memory stores."""

    def _make(profiles=(), jobs=(), provider=None, cache=None, **option_overrides):
        option_overrides.setdefault("use_embeddings", provider is not None)
        return MatchingEngine(
            profile_store=InMemoryProfileStore(list(profiles)),
            job_store=InMemoryJobStore(list(jobs)),
            embedding_provider=provider,
            cache=cache if cache is not None else ScoreCache(),
            options=MatchingOptions(**option_overrides),
        )

    return _make


@pytest.fixture
def fake_provider():
    """Working embedding provider."""
    return FakeEmbeddingProvider()


@pytest.fixture
def failing_provider():
    """Embedding provider whose every call fails."""
    return FakeEmbeddingProvider(fail=True)


@pytest.fixture
def provider_factory():
    """FakeEmbeddingProvider class, for tests that need custom delays."""
    return FakeEmbeddingProvider


# ----------------------------------------------------------------------
# Sample entities
# ----------------------------------------------------------------------

@pytest.fixture
def coach_profile():
    """Bilingual leadership coach based in Dubai."""
    return ProfileEntity(
        id=1,
        title="Leadership Coach",
        bio="Executive coaching, bilingual Arabic and English",
        location="Dubai",
        industry_focus="",
        updated_at=datetime(2024, 1, 1),
    )


@pytest.fixture
def coach_job():
    """Government leadership coaching job in Dubai."""
    return JobEntity(
        id=10,
        title="Senior Leadership Coach",
        description="Seeking bilingual coach for government sector",
        requirements="",
        location="Dubai",
        updated_at=datetime(2024, 1, 1),
    )


@pytest.fixture
def data_profile():
    """Data scientist based in London."""
    return ProfileEntity(
        id=2,
        title="Data Scientist",
        bio="Python, ML",
        location="London",
        industry_focus="",
        updated_at=datetime(2024, 1, 1),
    )


@pytest.fixture
def chef_job():
    """Cooking job in Paris with nothing in common with the data scientist."""
    return JobEntity(
        id=20,
        title="Chef",
        description="Cook meals",
        requirements="",
        location="Paris",
        updated_at=datetime(2024, 1, 1),
    )


# ----------------------------------------------------------------------
# Database rows
# ----------------------------------------------------------------------

@pytest.fixture
def sample_professional(db):
    """Create a sample professional."""
    profile = ProfessionalProfile(
        first_name="Layla",
        last_name="Haddad",
        title="Leadership Coach",
        bio="Executive coaching, bilingual Arabic and English",
        location="Dubai",
        industry_focus="government",
        years_experience=12,
    )
    db.session.add(profile)
    db.session.commit()
    return profile


@pytest.fixture
def sample_jobs(db):
    """Create open and closed jobs."""
    jobs = [
        JobPosting(
            title="Senior Leadership Coach",
            description="Seeking bilingual coach for government sector",
            requirements="Arabic and English",
            location="Dubai",
            job_type="coaching",
            region="dubai",
        ),
        JobPosting(
            title="Chef",
            description="Cook meals",
            location="Paris",
            job_type="hospitality",
        ),
        JobPosting(
            title="Leadership Coach for Banking Executives",
            description="Coaching programme for a government owned bank",
            location="Dubai",
            job_type="coaching",
            status=JobStatus.CLOSED.value,
        ),
    ]
    db.session.add_all(jobs)
    db.session.commit()
    return jobs
