"""
Unit tests for MatchingEngine
Tests strategy fallback, caching, concurrency limits, timeouts and
contextual blending over in-memory stores
"""
import asyncio
from dataclasses import replace
from datetime import datetime

import pytest

from nexus.services.matching.contextual_scorer import ContextualScorer
from nexus.services.matching.engine import BASIC_MATCH_NOTE, MatchingEngine
from nexus.services.matching.heuristic_scorer import HeuristicScorer
from nexus.services.matching.options import MatchingOptions
from nexus.services.matching.types import JobEntity, MatchContext, MatchScore


def job_ids(matches):
    return [match.candidate.id for match in matches]


@pytest.fixture
def extra_jobs():
    """Ten open coaching jobs in Dubai."""
    return [
        JobEntity(
            id=100 + i,
            title=f"Leadership Coach {i}",
            description="Coaching for bilingual managers",
            location="Dubai",
        )
        for i in range(10)
    ]


@pytest.mark.unit
class TestMissingEntities:
    """Test requests for unknown or closed entities"""

    def test_missing_professional_returns_empty(self, make_engine, coach_job):
        engine = make_engine(jobs=[coach_job])
        assert asyncio.run(engine.match_jobs_for_professional(999)) == []

    def test_missing_job_returns_empty(self, make_engine, coach_profile):
        engine = make_engine(profiles=[coach_profile])
        assert asyncio.run(engine.match_professionals_for_job(999)) == []

    def test_closed_job_returns_empty(self, make_engine, coach_profile, coach_job):
        closed = replace(coach_job, status="closed")
        engine = make_engine(profiles=[coach_profile], jobs=[closed])

        assert asyncio.run(engine.match_professionals_for_job(closed.id)) == []

    def test_closed_jobs_are_not_candidates(self, make_engine, coach_profile, coach_job):
        closed = replace(coach_job, id=11, status="closed")
        engine = make_engine(profiles=[coach_profile], jobs=[coach_job, closed], min_score=0.0)

        matches = asyncio.run(engine.match_jobs_for_professional(coach_profile.id))

        assert job_ids(matches) == [coach_job.id]


@pytest.mark.unit
class TestHeuristicMatching:
    """Test matching with embeddings disabled"""

    def test_jobs_for_professional(self, make_engine, coach_profile, coach_job, chef_job):
        """The strong match is returned; the unrelated job falls below the threshold"""
        engine = make_engine(profiles=[coach_profile], jobs=[coach_job, chef_job])

        matches = asyncio.run(engine.match_jobs_for_professional(coach_profile.id))

        assert job_ids(matches) == [coach_job.id]
        assert matches[0].score.overall_score == pytest.approx(0.8)
        assert matches[0].score.source == "heuristic"
        assert matches[0].match_strength == "excellent"

    def test_professionals_for_job(self, make_engine, coach_profile, data_profile, coach_job):
        """Job direction returns profiles with relevant experience highlights"""
        engine = make_engine(profiles=[coach_profile, data_profile], jobs=[coach_job])

        matches = asyncio.run(engine.match_professionals_for_job(coach_job.id))

        assert [m.candidate.id for m in matches] == [coach_profile.id]
        assert matches[0].score.subject_id == coach_job.id
        assert matches[0].relevant_experience == ["UAE market experience", "Arabic language capabilities"]

    def test_results_are_deterministic(self, make_engine, coach_profile, extra_jobs):
        engine = make_engine(profiles=[coach_profile], jobs=extra_jobs, cache=None)

        first = asyncio.run(engine.match_jobs_for_professional(coach_profile.id, limit=10))
        engine.cache.clear()
        second = asyncio.run(engine.match_jobs_for_professional(coach_profile.id, limit=10))

        assert job_ids(first) == job_ids(second)
        # Equal scores fall back to candidate id order
        assert job_ids(first) == sorted(job_ids(first))

    def test_limit_defaults_and_is_capped(self, make_engine, coach_profile, extra_jobs):
        engine = make_engine(
            profiles=[coach_profile], jobs=extra_jobs, default_limit=1, max_limit=3,
        )

        assert len(asyncio.run(engine.match_jobs_for_professional(coach_profile.id))) == 1
        assert len(asyncio.run(engine.match_jobs_for_professional(coach_profile.id, limit=50))) == 3

    def test_empty_pool(self, make_engine, coach_profile):
        engine = make_engine(profiles=[coach_profile])
        assert asyncio.run(engine.match_jobs_for_professional(coach_profile.id)) == []


@pytest.mark.unit
class TestEmbeddingMatching:
    """Test the embedding strategy and its fallbacks"""

    def test_embedding_scores_used(self, make_engine, fake_provider, coach_profile, coach_job, chef_job):
        engine = make_engine(profiles=[coach_profile], jobs=[coach_job, chef_job], provider=fake_provider)

        matches = asyncio.run(engine.match_jobs_for_professional(coach_profile.id))

        assert job_ids(matches) == [coach_job.id, chef_job.id]
        assert all(m.score.source == "embedding" for m in matches)
        assert matches[0].score.overall_score == pytest.approx(1.0)
        assert 0.3 <= matches[1].score.overall_score < 0.7

    def test_precomputed_profile_embedding_skips_provider(
        self, make_engine, fake_provider, coach_profile, coach_job, chef_job
    ):
        profile = replace(coach_profile, embedding=[1.0, 0.0, 0.0, 0.0, 0.2])
        engine = make_engine(profiles=[profile], jobs=[coach_job, chef_job], provider=fake_provider)

        asyncio.run(engine.match_jobs_for_professional(profile.id))

        assert profile.embedding_text() not in fake_provider.calls
        assert len(fake_provider.calls) == 2

    def test_provider_failure_falls_back_to_heuristic(
        self, make_engine, failing_provider, coach_profile, coach_job, chef_job
    ):
        """A provider outage still returns every candidate, scored heuristically"""
        engine = make_engine(
            profiles=[coach_profile], jobs=[coach_job, chef_job], provider=failing_provider, min_score=0.0,
        )

        matches = asyncio.run(engine.match_jobs_for_professional(coach_profile.id))

        assert job_ids(matches) == [coach_job.id, chef_job.id]
        assert all(m.score.source == "heuristic" for m in matches)
        assert matches[0].score.overall_score == pytest.approx(0.8)
        # Zero heuristic score is raised to the floor
        assert matches[1].score.overall_score == pytest.approx(0.01)
        # Only the subject embedding was attempted
        assert len(failing_provider.calls) == 1

    def test_slow_candidate_embedding_falls_back(self, make_engine, provider_factory, coach_profile, coach_job):
        """A single embedding timeout only affects that candidate"""
        provider = provider_factory(slow_markers=("Slow",), slow_delay=1.0)
        slow_job = JobEntity(id=11, title="Slow Leadership Coach", description="Coaching", location="Dubai")
        engine = make_engine(
            profiles=[coach_profile], jobs=[coach_job, slow_job], provider=provider,
            embedding_timeout=0.05, min_score=0.0,
        )

        matches = asyncio.run(engine.match_jobs_for_professional(coach_profile.id))
        sources = {m.candidate.id: m.score.source for m in matches}

        assert sources == {coach_job.id: "embedding", slow_job.id: "heuristic"}


@pytest.mark.unit
class TestConcurrencyAndTimeouts:
    """Test the concurrency cap and request deadline"""

    def test_concurrency_is_capped(self, make_engine, provider_factory, coach_profile, extra_jobs):
        provider = provider_factory(delay=0.01)
        engine = make_engine(
            profiles=[coach_profile], jobs=extra_jobs, provider=provider, max_concurrency=2, min_score=0.0,
        )

        matches = asyncio.run(engine.match_jobs_for_professional(coach_profile.id, limit=10))

        assert len(matches) == 10
        assert provider.max_in_flight <= 2

    def test_request_timeout_returns_partial_results(
        self, make_engine, provider_factory, coach_profile, extra_jobs
    ):
        """Candidates still pending at the deadline are dropped, the rest returned"""
        provider = provider_factory(slow_markers=("Slow",), slow_delay=5.0)
        slow_job = JobEntity(id=99, title="Slow Leadership Coach", description="Coaching", location="Dubai")
        jobs = extra_jobs[:3] + [slow_job]
        engine = make_engine(
            profiles=[coach_profile], jobs=jobs, provider=provider,
            embedding_timeout=10.0, min_score=0.0,
        )

        matches = asyncio.run(
            engine.match_jobs_for_professional(coach_profile.id, limit=10, timeout=0.2)
        )

        assert sorted(job_ids(matches)) == [job.id for job in extra_jobs[:3]]
        assert provider.in_flight == 0

    def test_cancellation_cancels_candidate_tasks(self, make_engine, provider_factory, coach_profile, extra_jobs):
        """Cancelling the request propagates and stops in-flight provider calls"""
        provider = provider_factory(slow_markers=("managers",), slow_delay=5.0)
        engine = make_engine(profiles=[coach_profile], jobs=extra_jobs, provider=provider)

        async def run_and_cancel():
            task = asyncio.create_task(engine.match_jobs_for_professional(coach_profile.id))
            await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        asyncio.run(run_and_cancel())

        assert provider.in_flight == 0


@pytest.mark.unit
class TestCaching:
    """Test score caching through the engine"""

    def test_scores_are_cached(self, make_engine, fake_provider, coach_profile, coach_job, chef_job):
        engine = make_engine(profiles=[coach_profile], jobs=[coach_job, chef_job], provider=fake_provider)

        asyncio.run(engine.match_jobs_for_professional(coach_profile.id))
        calls_after_first = len(fake_provider.calls)
        asyncio.run(engine.match_jobs_for_professional(coach_profile.id))

        # Only the subject embedding is requested again
        assert len(fake_provider.calls) == calls_after_first + 1
        assert engine.cache.get_status()["hits"] == 2

    def test_updated_job_is_rescored(self, make_engine, fake_provider, coach_profile, coach_job):
        engine = make_engine(profiles=[coach_profile], jobs=[coach_job], provider=fake_provider)
        asyncio.run(engine.match_jobs_for_professional(coach_profile.id))

        edited = replace(coach_job, updated_at=datetime(2024, 6, 1))
        engine.job_store.jobs[edited.id] = edited
        asyncio.run(engine.match_jobs_for_professional(coach_profile.id))

        assert fake_provider.calls.count(edited.embedding_text()) == 2

    def test_fallback_scores_not_cached(self, make_engine, failing_provider, coach_profile, coach_job):
        engine = make_engine(profiles=[coach_profile], jobs=[coach_job], provider=failing_provider)

        asyncio.run(engine.match_jobs_for_professional(coach_profile.id))

        assert len(engine.cache) == 0

    def test_heuristic_scores_cached_when_embeddings_disabled(self, make_engine, coach_profile, coach_job):
        engine = make_engine(profiles=[coach_profile], jobs=[coach_job])

        asyncio.run(engine.match_jobs_for_professional(coach_profile.id))

        assert len(engine.cache) == 1

    def test_contextual_and_plain_scores_cached_separately(self, make_engine, coach_profile, coach_job):
        engine = make_engine(profiles=[coach_profile], jobs=[coach_job], min_score=0.0)

        plain = asyncio.run(engine.match_jobs_for_professional(coach_profile.id))
        contextual = asyncio.run(engine.match_jobs_for_professional(coach_profile.id, context=MatchContext()))

        assert plain[0].score.subscores is None
        assert contextual[0].score.subscores is not None
        assert len(engine.cache) == 2


@pytest.mark.unit
class TestContextualMatching:
    """Test contextual scoring through the engine"""

    def test_contextual_score_blends_with_base(self, make_engine, coach_profile, coach_job):
        engine = make_engine(profiles=[coach_profile], jobs=[coach_job])

        score = asyncio.run(engine.score_pair(coach_profile, coach_job, MatchContext()))

        contextual = ContextualScorer().assess(coach_profile, coach_job).overall
        heuristic = HeuristicScorer().score(coach_profile, coach_job)
        assert score.overall_score == pytest.approx(0.5 * contextual + 0.5 * heuristic)
        assert score.subscores.language >= 0.8
        assert score.recommendations

    def test_blend_is_configurable(self, make_engine, coach_profile, coach_job):
        engine = make_engine(profiles=[coach_profile], jobs=[coach_job], contextual_blend=1.0)

        score = asyncio.run(engine.score_pair(coach_profile, coach_job, MatchContext()))

        assert score.overall_score == pytest.approx(ContextualScorer().assess(coach_profile, coach_job).overall)

    def test_sector_filter_limits_jobs(self, make_engine, coach_profile, coach_job, chef_job):
        """Only jobs mentioning the requested sector are scored"""
        engine = make_engine(profiles=[coach_profile], jobs=[coach_job, chef_job], min_score=0.0)

        matches = asyncio.run(
            engine.match_jobs_for_professional(coach_profile.id, context=MatchContext(sector="government"))
        )

        assert job_ids(matches) == [coach_job.id]

    def test_contextual_failure_keeps_base_score(self, coach_profile, coach_job):
        class BrokenContextualScorer(ContextualScorer):
            def assess(self, profile, job, context=None):
                raise RuntimeError("keyword tables unavailable")

        engine = MatchingEngine(
            profile_store=None,
            job_store=None,
            options=MatchingOptions(use_embeddings=False),
            contextual_scorer=BrokenContextualScorer(),
        )

        score = asyncio.run(engine.score_pair(coach_profile, coach_job, MatchContext()))

        assert score.overall_score == pytest.approx(0.8)
        assert score.subscores is None
        assert score.recommendations == [BASIC_MATCH_NOTE]


@pytest.mark.unit
class TestFloorScore:
    """Test the floor score for candidates that cannot be scored"""

    def test_failing_scorer_gets_floor(self, coach_profile, coach_job, chef_job, make_engine):
        class FlakyHeuristicScorer(HeuristicScorer):
            def score(self, profile, job):
                if job.id == chef_job.id:
                    raise ValueError("corrupt job record")
                return super().score(profile, job)

        engine = make_engine(profiles=[coach_profile], jobs=[coach_job, chef_job], min_score=0.0)
        engine.heuristic_scorer = FlakyHeuristicScorer()

        matches = asyncio.run(engine.match_jobs_for_professional(coach_profile.id))
        by_id = {m.candidate.id: m.score for m in matches}

        assert by_id[coach_job.id].overall_score == pytest.approx(0.8)
        assert by_id[chef_job.id].overall_score == pytest.approx(0.01)
        assert by_id[chef_job.id].source == "floor"

    def test_error_after_scoring_gets_floor(self, coach_profile, data_profile, coach_job, make_engine):
        """A candidate whose task fails outside the strategies is kept with the floor score"""
        class BrokenExperienceScorer(ContextualScorer):
            def relevant_experience(self, profile, job):
                if profile.id == data_profile.id:
                    raise RuntimeError("bad profile text")
                return super().relevant_experience(profile, job)

        engine = make_engine(profiles=[coach_profile, data_profile], jobs=[coach_job], min_score=0.0)
        engine.contextual_scorer = BrokenExperienceScorer()

        matches = asyncio.run(engine.match_professionals_for_job(coach_job.id))
        by_id = {m.candidate.id: m for m in matches}

        assert set(by_id) == {coach_profile.id, data_profile.id}
        assert by_id[data_profile.id].score.overall_score == pytest.approx(0.01)
        assert by_id[data_profile.id].score.source == "floor"
        assert by_id[data_profile.id].score.subject_id == coach_job.id
        assert by_id[coach_profile.id].score.source == "heuristic"

    def test_score_pair_returns_match_score(self, make_engine, data_profile, chef_job):
        engine = make_engine()

        score = asyncio.run(engine.score_pair(data_profile, chef_job))

        assert isinstance(score, MatchScore)
        assert score.subject_id == data_profile.id
        assert score.candidate_id == chef_job.id
        assert score.overall_score == pytest.approx(0.01)


@pytest.mark.unit
class TestInsights:
    """Test the engine's market and search insights"""

    def test_market_insights_skip_closed_jobs(self, make_engine, coach_profile, coach_job, chef_job):
        closed = replace(coach_job, id=11, status="closed")
        engine = make_engine(profiles=[coach_profile], jobs=[coach_job, chef_job, closed])

        insights = engine.market_insights(sector="government", emirate="dubai")

        assert insights.total_professionals == 1
        assert insights.total_active_jobs == 2
        assert insights.sector_analysis.job_count == 1
        assert insights.emirate_analysis.professional_count == 1

    def test_market_insights_respect_pool_size(self, make_engine, coach_profile, data_profile, coach_job):
        engine = make_engine(profiles=[coach_profile, data_profile], jobs=[coach_job], candidate_pool_size=1)

        assert engine.market_insights().total_professionals == 1

    def test_search_insights_over_contextual_matches(self, make_engine, coach_profile, coach_job):
        engine = make_engine(profiles=[coach_profile], jobs=[coach_job])
        matches = asyncio.run(engine.match_jobs_for_professional(coach_profile.id, context=MatchContext()))

        insights = engine.search_insights(matches)

        assert insights.total_matches == 1
        assert insights.average_match_score == pytest.approx(matches[0].score.overall_score)
        assert len(insights.top_matching_factors) == 4
