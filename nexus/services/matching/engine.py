"""
Matching Engine
Scores professionals against jobs (and jobs against professionals) and returns
a ranked shortlist.

For every candidate the engine tries an ordered list of scoring strategies:
1. Embedding similarity (cosine of Gemini embeddings, rescaled to [0, 1])
2. Heuristic text overlap (deterministic, no external calls)

The first strategy that succeeds provides the base score. When a
MatchContext is given, contextual sub-scores (sector, language, format,
cultural) are computed independently and blended into the base score. If
nothing succeeds the candidate receives the floor score, so one bad record or
a provider outage never fails the request.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Sequence

from nexus.services.embedding_service import EmbeddingProvider
from nexus.services.matching.contextual_scorer import (
    ContextualAssessment,
    ContextualScorer,
    Sector,
    sectors_in_text,
)
from nexus.services.matching.heuristic_scorer import HeuristicScorer
from nexus.services.matching.insights import MarketInsights, SearchInsights, market_insights, search_insights
from nexus.services.matching.options import MatchingOptions
from nexus.services.matching.ranker import MatchRanker
from nexus.services.matching.score_cache import ScoreCache
from nexus.services.matching.similarity import normalized_similarity
from nexus.services.matching.stores import JobStore, ProfileStore
from nexus.services.matching.types import (
    SOURCE_CONTEXTUAL,
    SOURCE_EMBEDDING,
    SOURCE_FLOOR,
    SOURCE_HEURISTIC,
    Embedding,
    JobEntity,
    MatchContext,
    MatchScore,
    ProfileEntity,
    RankedMatch,
    ScoreOutcome,
    ScoredCandidate,
)

logger = logging.getLogger(__name__)

# Match directions
FOR_PROFESSIONAL = "professional"
FOR_JOB = "job"

EMBEDDINGS_DISABLED = "embeddings disabled"
BASIC_MATCH_NOTE = "Basic matching used - consider providing more detailed profile information"


@dataclass
class _ScoringRun:
    """State shared by all candidate scorings of one request."""

    direction: str
    context: Optional[MatchContext]
    semaphore: asyncio.Semaphore
    subject_embedding: Optional[Embedding] = None
    subject_failure: Optional[str] = EMBEDDINGS_DISABLED


Strategy = Callable[[ProfileEntity, JobEntity, _ScoringRun], Awaitable[ScoreOutcome]]


class MatchingEngine:
    """
    Orchestrates scoring, caching and ranking for match requests.

    All collaborators are passed in explicitly; the engine holds no global
    state and is safe to share across requests.

    Usage:
        engine = MatchingEngine(
            profile_store=SQLProfileStore(),
            job_store=SQLJobStore(),
            embedding_provider=EmbeddingService(api_key=...),
            cache=ScoreCache(),
            options=MatchingOptions(),
        )
        matches = asyncio.run(engine.match_jobs_for_professional(42, limit=5))
    """

    def __init__(
        self,
        profile_store: ProfileStore,
        job_store: JobStore,
        embedding_provider: Optional[EmbeddingProvider] = None,
        cache: Optional[ScoreCache] = None,
        options: Optional[MatchingOptions] = None,
        heuristic_scorer: Optional[HeuristicScorer] = None,
        contextual_scorer: Optional[ContextualScorer] = None,
        ranker: Optional[MatchRanker] = None,
    ):
        self.profile_store = profile_store
        self.job_store = job_store
        self.embedding_provider = embedding_provider
        self.cache = cache if cache is not None else ScoreCache()
        self.options = options or MatchingOptions()
        self.heuristic_scorer = heuristic_scorer or HeuristicScorer()
        self.contextual_scorer = contextual_scorer or ContextualScorer(self.options.contextual_weights)
        self.ranker = ranker or MatchRanker(min_score=self.options.min_score)

        self._strategies: Sequence[Strategy] = (self._try_embedding, self._try_heuristic)

    @property
    def embeddings_enabled(self) -> bool:
        return self.embedding_provider is not None and self.options.use_embeddings

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def match_jobs_for_professional(
        self,
        professional_id: int,
        limit: Optional[int] = None,
        context: Optional[MatchContext] = None,
        timeout: Optional[float] = None,
    ) -> List[RankedMatch]:
        """
        Rank open jobs for a professional.

        Returns an empty list when the professional does not exist.
        """
        limit = self._resolve_limit(limit)
        profile = self.profile_store.get_profile(professional_id)
        if profile is None:
            logger.info(f"Professional {professional_id} not found, returning no matches")
            return []

        jobs = [job for job in self.job_store.list_open_jobs(self.options.candidate_pool_size) if job.is_open]
        if context is not None and context.sector:
            jobs = self._filter_jobs_by_sector(jobs, context.sector)

        logger.info(
            f"Matching professional {professional_id} against {len(jobs)} open jobs "
            f"(limit={limit}, contextual={context is not None})"
        )

        run = self._new_run(FOR_PROFESSIONAL, context)
        await self._resolve_subject_embedding(run, profile.embedding, profile.embedding_text())

        scored = await self._score_batch(
            [(profile, job) for job in jobs], run, timeout
        )
        matches = self.ranker.rank(scored, limit)
        logger.info(f"Returning {len(matches)} job matches for professional {professional_id}")
        return matches

    async def match_professionals_for_job(
        self,
        job_id: int,
        limit: Optional[int] = None,
        context: Optional[MatchContext] = None,
        timeout: Optional[float] = None,
    ) -> List[RankedMatch]:
        """
        Rank professionals for a job.

        Returns an empty list when the job does not exist or is not open.
        """
        limit = self._resolve_limit(limit)
        job = self.job_store.get_job(job_id)
        if job is None or not job.is_open:
            logger.info(f"Job {job_id} missing or not open, returning no matches")
            return []

        profiles = self.profile_store.list_profiles(self.options.candidate_pool_size)
        logger.info(
            f"Matching job {job_id} against {len(profiles)} professionals "
            f"(limit={limit}, contextual={context is not None})"
        )

        run = self._new_run(FOR_JOB, context)
        await self._resolve_subject_embedding(run, None, job.embedding_text())

        scored = await self._score_batch(
            [(profile, job) for profile in profiles], run, timeout
        )
        matches = self.ranker.rank(scored, limit)
        logger.info(f"Returning {len(matches)} professional matches for job {job_id}")
        return matches

    async def score_pair(
        self,
        profile: ProfileEntity,
        job: JobEntity,
        context: Optional[MatchContext] = None,
    ) -> MatchScore:
        """Score a single profile against a single job, with the professional as subject."""
        run = self._new_run(FOR_PROFESSIONAL, context)
        await self._resolve_subject_embedding(run, profile.embedding, profile.embedding_text())
        scored = await self._score_candidate(profile, job, run)
        return scored.score

    def market_insights(self, sector: Optional[str] = None, emirate: Optional[str] = None) -> MarketInsights:
        """Summarize the professional pool and open jobs the engine matches against."""
        pool = self.options.candidate_pool_size
        profiles = self.profile_store.list_profiles(pool)
        jobs = [job for job in self.job_store.list_open_jobs(pool) if job.is_open]
        return market_insights(profiles, jobs, self.contextual_scorer, sector=sector, emirate=emirate)

    @staticmethod
    def search_insights(matches: Sequence[RankedMatch]) -> SearchInsights:
        return search_insights(matches)

    # ------------------------------------------------------------------
    # Batch orchestration
    # ------------------------------------------------------------------

    def _new_run(self, direction: str, context: Optional[MatchContext]) -> _ScoringRun:
        return _ScoringRun(
            direction=direction,
            context=context,
            semaphore=asyncio.Semaphore(self.options.max_concurrency),
        )

    def _resolve_limit(self, limit: Optional[int]) -> int:
        if limit is None:
            return self.options.default_limit
        return max(0, min(limit, self.options.max_limit))

    @staticmethod
    def _filter_jobs_by_sector(jobs: List[JobEntity], sector_name: str) -> List[JobEntity]:
        try:
            sector = Sector(sector_name)
        except ValueError:
            logger.warning(f"Unknown sector filter '{sector_name}', not filtering jobs")
            return jobs
        return [job for job in jobs if sector in sectors_in_text(job.combined_text())]

    async def _score_batch(
        self,
        pairs: List[tuple],
        run: _ScoringRun,
        timeout: Optional[float],
    ) -> List[ScoredCandidate]:
        """
        Score all pairs concurrently.

        On timeout the unfinished candidates are cancelled and the ones already
        scored are returned. Results keep the input order.
        """
        if not pairs:
            return []

        timeout = timeout if timeout is not None else self.options.request_timeout
        tasks = [
            asyncio.create_task(self._score_candidate(profile, job, run))
            for profile, job in pairs
        ]

        try:
            done, pending = await asyncio.wait(tasks, timeout=timeout)
        except asyncio.CancelledError:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        if pending:
            logger.warning(
                f"Match request timed out after {timeout}s; "
                f"cancelling {len(pending)} of {len(tasks)} candidates"
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        results = []
        for (profile, job), task in zip(pairs, tasks):
            if task not in done or task.cancelled():
                continue
            error = task.exception()
            if error is None:
                results.append(task.result())
                continue
            logger.error(
                f"Unexpected error scoring profile {profile.id} / job {job.id}: {error}",
                exc_info=error,
            )
            results.append(ScoredCandidate(
                candidate=job if run.direction == FOR_PROFESSIONAL else profile,
                score=self._build_score(profile, job, run, self.options.floor_score, SOURCE_FLOOR),
            ))
        return results

    async def _score_candidate(
        self,
        profile: ProfileEntity,
        job: JobEntity,
        run: _ScoringRun,
    ) -> ScoredCandidate:
        if run.direction == FOR_PROFESSIONAL:
            subject_key, candidate_key = (FOR_PROFESSIONAL, profile.id), (FOR_JOB, job.id)
            candidate = job
        else:
            subject_key, candidate_key = (FOR_JOB, job.id), (FOR_PROFESSIONAL, profile.id)
            candidate = profile
        stamp = (profile.updated_at, job.updated_at)

        score = self.cache.get(subject_key, candidate_key, variant=run.context, stamp=stamp)
        if score is None:
            try:
                score = await self._compute(profile, job, run)
            except Exception as e:
                logger.error(
                    f"Error scoring {subject_key} against {candidate_key}: {str(e)}", exc_info=True
                )
                score = self._build_score(profile, job, run, self.options.floor_score, SOURCE_FLOOR)
            else:
                # Fallback scores are not cached so they are recomputed once the provider recovers
                if score.source == SOURCE_EMBEDDING or not self.embeddings_enabled:
                    self.cache.put(subject_key, candidate_key, score, variant=run.context, stamp=stamp)

        relevant_experience = []
        if run.direction == FOR_JOB:
            relevant_experience = self.contextual_scorer.relevant_experience(profile, job)

        return ScoredCandidate(candidate=candidate, score=score, relevant_experience=relevant_experience)

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    async def _compute(self, profile: ProfileEntity, job: JobEntity, run: _ScoringRun) -> MatchScore:
        base: Optional[ScoreOutcome] = None
        for strategy in self._strategies:
            outcome = await strategy(profile, job, run)
            if outcome.ok:
                base = outcome
                break
            if outcome.failure == EMBEDDINGS_DISABLED:
                logger.debug(f"Skipping {outcome.source} scoring: {outcome.failure}")
            else:
                logger.warning(
                    f"{outcome.source} scoring failed for profile {profile.id} / job {job.id}: "
                    f"{outcome.failure}"
                )

        assessment: Optional[ContextualAssessment] = None
        recommendations: List[str] = []
        if run.context is not None:
            try:
                assessment = self.contextual_scorer.assess(profile, job, run.context)
                recommendations = list(assessment.recommendations)
            except Exception as e:
                logger.warning(f"Contextual scoring failed for profile {profile.id} / job {job.id}: {e}")
                recommendations = [BASIC_MATCH_NOTE]

        if base is not None and assessment is not None:
            blend = self.options.contextual_blend
            overall = blend * assessment.overall + (1 - blend) * base.score
            source = base.source
        elif base is not None:
            overall, source = base.score, base.source
        elif assessment is not None:
            overall, source = assessment.overall, SOURCE_CONTEXTUAL
        else:
            overall, source = self.options.floor_score, SOURCE_FLOOR

        return self._build_score(
            profile,
            job,
            run,
            overall,
            source,
            subscores=assessment.subscores if assessment else None,
            recommendations=recommendations,
        )

    def _build_score(
        self,
        profile: ProfileEntity,
        job: JobEntity,
        run: _ScoringRun,
        overall: float,
        source: str,
        subscores=None,
        recommendations: Optional[List[str]] = None,
    ) -> MatchScore:
        if run.direction == FOR_PROFESSIONAL:
            subject_id, candidate_id = profile.id, job.id
        else:
            subject_id, candidate_id = job.id, profile.id
        overall = round(min(1.0, max(self.options.floor_score, overall)), 6)
        return MatchScore(
            subject_id=subject_id,
            candidate_id=candidate_id,
            overall_score=overall,
            subscores=subscores,
            source=source,
            recommendations=recommendations or [],
        )

    async def _embed(self, text: str, run: _ScoringRun) -> Embedding:
        async with run.semaphore:
            return await asyncio.wait_for(
                self.embedding_provider.embed(text), timeout=self.options.embedding_timeout
            )

    async def _resolve_subject_embedding(
        self,
        run: _ScoringRun,
        precomputed: Optional[Embedding],
        text: str,
    ) -> None:
        if not self.embeddings_enabled:
            return
        if precomputed:
            run.subject_embedding, run.subject_failure = precomputed, None
            return
        try:
            run.subject_embedding = await self._embed(text, run)
            run.subject_failure = None
        except asyncio.TimeoutError:
            run.subject_failure = f"subject embedding timed out after {self.options.embedding_timeout}s"
            logger.warning("Embedding provider timed out; falling back to heuristic scoring")
        except Exception as e:
            run.subject_failure = f"subject embedding unavailable: {type(e).__name__}: {e}"
            logger.warning(f"Embedding provider failed ({e}); falling back to heuristic scoring")

    async def _try_embedding(self, profile: ProfileEntity, job: JobEntity, run: _ScoringRun) -> ScoreOutcome:
        if not self.embeddings_enabled:
            return ScoreOutcome.failed(SOURCE_EMBEDDING, EMBEDDINGS_DISABLED)
        if run.subject_embedding is None:
            return ScoreOutcome.failed(SOURCE_EMBEDDING, run.subject_failure or "no subject embedding")

        try:
            if run.direction == FOR_PROFESSIONAL:
                candidate_embedding = await self._embed(job.embedding_text(), run)
            else:
                candidate_embedding = profile.embedding or await self._embed(profile.embedding_text(), run)
            similarity = normalized_similarity(run.subject_embedding, candidate_embedding)
        except asyncio.TimeoutError:
            return ScoreOutcome.failed(
                SOURCE_EMBEDDING, f"timed out after {self.options.embedding_timeout}s"
            )
        except Exception as e:
            return ScoreOutcome.failed(SOURCE_EMBEDDING, f"{type(e).__name__}: {e}")

        return ScoreOutcome.success(similarity, SOURCE_EMBEDDING)

    async def _try_heuristic(self, profile: ProfileEntity, job: JobEntity, run: _ScoringRun) -> ScoreOutcome:
        try:
            return ScoreOutcome.success(self.heuristic_scorer.score(profile, job), SOURCE_HEURISTIC)
        except Exception as e:
            return ScoreOutcome.failed(SOURCE_HEURISTIC, f"{type(e).__name__}: {e}")
