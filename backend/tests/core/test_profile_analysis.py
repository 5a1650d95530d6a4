"""
Tests for cognitive profile aggregation and report building.
"""
import pytest

from cogassess.core.profile_analysis import (
    RECOMMENDATIONS,
    CognitiveProfileAggregator,
    session_domain_score,
)
from cogassess.core.tasks import LanguageTask, SustainedAttentionTask
from cogassess.schemas.assessment import Category, TestSession as Session, UserProfile


class TestSessionDomainScore:
    def test_perfect_session(self, session_factory):
        assert session_domain_score(session_factory(Category.MEMORY)) == pytest.approx(100.0)

    def test_slow_reactions_score_zero_speed(self, session_factory):
        # 1.5 s -> 1500 ms -> speed component 0
        session = session_factory(Category.MEMORY, accuracy=0.5, speed=1.5, consistency=0.5)
        assert session_domain_score(session) == pytest.approx(0.5 * 100 * 0.4 + 0.5 * 100 * 0.3)

    def test_reaction_time_component(self, session_factory):
        # 0.2 s -> 200 ms -> 100 - 20 = 80
        session = session_factory(Category.MEMORY, accuracy=1.0, speed=0.2, consistency=1.0)
        assert session_domain_score(session) == pytest.approx(40 + 24 + 30)


class TestCalculateDomainScore:
    """Tests for CognitiveProfileAggregator.calculate_domain_score()."""

    def test_no_matching_sessions_is_zero(self, adult_profile, session_factory):
        aggregator = CognitiveProfileAggregator(
            [session_factory(Category.ATTENTION)], adult_profile
        )
        assert aggregator.calculate_domain_score("memory") == 0.0

    def test_no_sessions_at_all(self, adult_profile):
        aggregator = CognitiveProfileAggregator([], adult_profile)
        assert aggregator.calculate_domain_score(Category.MEMORY) == 0.0

    def test_mean_over_category(self, adult_profile, session_factory):
        sessions = [
            session_factory(Category.MEMORY, accuracy=1.0),
            session_factory(Category.MEMORY, accuracy=0.5),
        ]
        aggregator = CognitiveProfileAggregator(sessions, adult_profile)
        assert aggregator.calculate_domain_score("memory") == pytest.approx(90.0)

    def test_subtype_narrows_when_present(self, adult_profile, session_factory):
        sessions = [
            session_factory(Category.MEMORY, accuracy=1.0, subtype="visual"),
            session_factory(Category.MEMORY, accuracy=0.0, subtype="short_term"),
        ]
        aggregator = CognitiveProfileAggregator(sessions, adult_profile)
        assert aggregator.calculate_domain_score("memory", "visual") == pytest.approx(100.0)
        # no "working" session: whole-category mean
        assert aggregator.calculate_domain_score("memory", "working") == pytest.approx(80.0)

    def test_unknown_domain_rejected(self, adult_profile):
        with pytest.raises(ValueError):
            CognitiveProfileAggregator([], adult_profile).calculate_domain_score("music")


class TestRecommendations:
    """Tests for generate_recommendations()."""

    def test_empty_sessions_recommend_everything_in_order(self, adult_profile):
        aggregator = CognitiveProfileAggregator([], adult_profile)
        profile = aggregator.build_cognitive_profile()
        assert aggregator.generate_recommendations(profile) == list(RECOMMENDATIONS.values())

    def test_strong_sections_get_no_advice(self, adult_profile, session_factory):
        sessions = [
            session_factory(Category.MEMORY),
            session_factory(Category.ATTENTION),
            session_factory(Category.PROCESSING),
            session_factory(Category.EXECUTIVE),
        ]
        aggregator = CognitiveProfileAggregator(sessions, adult_profile)
        profile = aggregator.build_cognitive_profile()
        assert aggregator.generate_recommendations(profile) == []

    def test_threshold_is_configurable(self, adult_profile, session_factory):
        sessions = [session_factory(Category.MEMORY, accuracy=0.5, consistency=0.5)]
        aggregator = CognitiveProfileAggregator(
            sessions, adult_profile, recommendation_threshold=10
        )
        profile = aggregator.build_cognitive_profile()
        recommendations = aggregator.generate_recommendations(profile)
        assert RECOMMENDATIONS[("memory_capacity", "visual")] not in recommendations
        assert RECOMMENDATIONS[("attention_metrics", "sustained")] in recommendations


class TestPercentileRanks:
    def test_ranks_are_clamped_integers(self, adult_profile, session_factory):
        aggregator = CognitiveProfileAggregator(
            [session_factory(Category.MEMORY)], adult_profile
        )
        ranks = aggregator.calculate_percentile_ranks(aggregator.build_cognitive_profile())
        assert set(ranks) == {
            "memory_capacity",
            "attention_metrics",
            "processing_speed",
            "executive_function",
        }
        assert all(isinstance(v, int) and 1 <= v <= 99 for v in ranks.values())
        # adult norm mean 80, sd 15: a perfect 100 is well above the mean
        assert ranks["memory_capacity"] == 91
        assert ranks["attention_metrics"] == 1


class TestGenerateReport:
    """Tests for generate_report()."""

    def _sessions(self, session_factory):
        return [
            session_factory(Category.MEMORY, accuracy=0.9, speed=0.3, subtype="visual"),
            session_factory(Category.MEMORY, accuracy=0.7, speed=0.5, subtype="short_term"),
            session_factory(Category.PROCESSING, accuracy=1.0, speed=0.25, subtype="reaction"),
            session_factory(Category.ATTENTION, accuracy=0.6, speed=1.2),
            session_factory(Category.EXECUTIVE, accuracy=0.8, speed=0.9),
            session_factory(Category.REASONING, accuracy=0.75, speed=4.0),
            session_factory(Category.PROBLEM_SOLVING, accuracy=0.5, speed=8.0),
        ]

    def test_report_fields(self, session_factory):
        profile = UserProfile(id="user-42", age=12)
        report = CognitiveProfileAggregator(self._sessions(session_factory), profile).generate_report()
        assert report.user_id == "user-42"
        assert len(report.test_sessions) == 7
        assert 1 <= report.iq_metrics.percentile <= 99
        assert 0 <= report.iq_metrics.confidence <= 1
        assert report.interpretations

    def test_aggregation_is_idempotent(self, adult_profile, session_factory):
        sessions = self._sessions(session_factory)
        first = CognitiveProfileAggregator(sessions, adult_profile).generate_report()
        second = CognitiveProfileAggregator(sessions, adult_profile).generate_report()
        assert first.cognitive_profile == second.cognitive_profile
        assert first.iq_metrics == second.iq_metrics

    def test_iq_uses_all_five_domains(self, adult_profile, session_factory):
        sessions = self._sessions(session_factory)
        aggregator = CognitiveProfileAggregator(sessions, adult_profile)
        subs = aggregator.calculate_iq_metrics().sub_scores
        assert subs.reasoning != subs.problem_solving


class TestTaskSubtypes:
    """Sessions from the vigilance and language tasks land in their own sub-fields."""

    def test_sustained_and_selective_attention_are_separate(
        self, adult_profile, session_factory
    ):
        sessions = [
            session_factory(Category.ATTENTION, accuracy=0.1, speed=2.0, subtype="sustained"),
            session_factory(Category.ATTENTION, accuracy=1.0, subtype="selective"),
        ]
        aggregator = CognitiveProfileAggregator(sessions, adult_profile)
        attention = aggregator.analyze_attention_metrics()
        assert attention.selective == pytest.approx(100.0)
        assert attention.sustained < 70
        recommendations = aggregator.generate_recommendations(
            aggregator.build_cognitive_profile()
        )
        assert RECOMMENDATIONS[("attention_metrics", "sustained")] in recommendations
        assert RECOMMENDATIONS[("attention_metrics", "selective")] not in recommendations

    def test_vigilance_result_feeds_sustained(self, adult_profile, rng):
        task = SustainedAttentionTask(difficulty=1, rng=rng, stimuli=60)
        for i in range(60):
            stimulus = task.present(float(i))
            task.respond(stimulus.is_target, i + 0.3)
        session = Session.from_result(
            "sustained-attention",
            task.category,
            task.finalize(),
            subtype=task.subtype,
        )
        aggregator = CognitiveProfileAggregator([session], adult_profile)
        # accuracy 1, 300 ms, fully consistent
        assert aggregator.analyze_attention_metrics().sustained == pytest.approx(91.0)

    def test_language_feeds_reasoning(self, adult_profile):
        task = LanguageTask(difficulty=1)
        for i, question in enumerate(task.questions):
            task.show_question(float(i))
            task.answer(question.correct_answer, i + 1.0)
        session = Session.from_result(
            "language", task.category, task.finalize(), subtype=task.subtype
        )
        aggregator = CognitiveProfileAggregator([session], adult_profile)
        # accuracy 1, 1000 ms, fully consistent
        assert aggregator.calculate_domain_score("reasoning") == pytest.approx(70.0)
