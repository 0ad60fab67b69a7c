"""
Unit tests for HeuristicScorer
Tests the four keyword factors, their weights and edge cases
"""
import pytest

from nexus.services.matching.heuristic_scorer import HeuristicScorer, significant_terms
from nexus.services.matching.types import JobEntity, ProfileEntity


@pytest.fixture
def scorer():
    return HeuristicScorer()


@pytest.mark.unit
class TestHeuristicScore:
    """Test the combined heuristic score"""

    def test_strong_match_scores_high(self, scorer, coach_profile, coach_job):
        """Title, bio and location agreement reach at least 0.8"""
        assert scorer.score(coach_profile, coach_job) >= 0.8

    def test_unrelated_pair_scores_zero(self, scorer, data_profile, chef_job):
        """No shared title, terms, industry or location gives 0.0"""
        assert scorer.score(data_profile, chef_job) == 0.0

    def test_breakdown_of_strong_match(self, scorer, coach_profile, coach_job):
        """Each factor contributes its full weight or nothing"""
        breakdown = scorer.breakdown(coach_profile, coach_job)

        assert breakdown.title == HeuristicScorer.WEIGHT_TITLE
        assert breakdown.bio == HeuristicScorer.WEIGHT_BIO
        assert breakdown.industry == 0.0
        assert breakdown.location == HeuristicScorer.WEIGHT_LOCATION

    def test_all_factors_give_full_score(self, scorer):
        """A pair matching on every factor scores exactly 1.0"""
        profile = ProfileEntity(
            id=1, title="Finance Trainer", bio="Islamic banking workshops",
            location="Abu Dhabi", industry_focus="finance",
        )
        job = JobEntity(
            id=2, title="Senior Finance Trainer", description="Training for finance teams on banking",
            location="abu dhabi",
        )
        assert scorer.score(profile, job) == 1.0

    def test_score_is_deterministic(self, scorer, coach_profile, coach_job):
        """The same pair always scores the same"""
        scores = {scorer.score(coach_profile, coach_job) for _ in range(5)}
        assert len(scores) == 1

    def test_score_within_bounds(self, scorer, coach_profile, chef_job, data_profile, coach_job):
        """Scores stay in [0, 1]"""
        for profile, job in [(coach_profile, chef_job), (data_profile, coach_job), (coach_profile, coach_job)]:
            assert 0.0 <= scorer.score(profile, job) <= 1.0


@pytest.mark.unit
class TestHeuristicFactors:
    """Test individual heuristic factors"""

    def test_empty_profile_fields_earn_nothing(self, scorer):
        """Empty strings never match as substrings"""
        profile = ProfileEntity(id=1)
        job = JobEntity(id=2, title="Coach", description="Anything at all", location="")

        assert scorer.score(profile, job) == 0.0

    def test_location_comparison_ignores_case_and_whitespace(self, scorer):
        """'  DUBAI ' equals 'dubai'"""
        profile = ProfileEntity(id=1, location="  DUBAI ")
        job = JobEntity(id=2, location="dubai")

        assert HeuristicScorer.location_matches(profile, job) is True

    def test_title_must_be_contained_in_job_title(self, scorer):
        """The profile title is searched inside the job title, not the reverse"""
        profile = ProfileEntity(id=1, title="Senior Leadership Coach")
        job = JobEntity(id=2, title="Coach")

        assert HeuristicScorer.title_matches(profile, job) is False

    def test_bio_overlap_uses_requirements(self, scorer):
        """Bio terms found only in the requirements still count"""
        profile = ProfileEntity(id=1, bio="Certified scrum master")
        job = JobEntity(id=2, description="Agile coaching", requirements="Scrum certification")

        assert HeuristicScorer.bio_overlaps(profile, job) is True

    def test_bio_overlap_ignores_stop_words(self, scorer):
        """Common words alone do not create overlap"""
        profile = ProfileEntity(id=1, bio="and the with for")
        job = JobEntity(id=2, description="and the with for")

        assert HeuristicScorer.bio_overlaps(profile, job) is False

    def test_industry_must_appear_in_description(self, scorer):
        """Industry focus is searched in the job description"""
        profile = ProfileEntity(id=1, industry_focus="Healthcare")
        job = JobEntity(id=2, description="Training for healthcare staff")

        assert HeuristicScorer.industry_matches(profile, job) is True


@pytest.mark.unit
class TestSignificantTerms:
    """Test significant_terms"""

    def test_drops_short_words_and_stop_words(self):
        assert significant_terms("AI and ML for the Finance sector") == {"finance", "sector"}

    def test_empty_text(self):
        assert significant_terms("") == set()
        assert significant_terms(None) == set()
