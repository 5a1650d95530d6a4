"""
Cognitive profile aggregation.

Turns a list of completed test sessions into domain scores, recommendations,
percentile ranks, an IQ estimate and interpretations.

Sessions are joined to domains by exact ``category`` equality. A profile
sub-field (for example ``memory_capacity.visual``) is narrowed to sessions
whose ``subtype`` matches its name. When no session carries that subtype
the sub-field takes the whole-category score.
"""
import logging
from typing import Dict, List, Optional, Sequence

from cogassess.core.config import IQ_DOMAINS, settings
from cogassess.core.performance import mean_or_zero
from cogassess.core.scoring import (
    IQEstimator,
    generate_interpretations,
    score_to_age_percentile,
)
from cogassess.schemas.assessment import (
    AssessmentReport,
    AttentionMetrics,
    Category,
    CognitiveProfile,
    ExecutiveFunction,
    IQMetrics,
    MemoryCapacity,
    ProcessingSpeed,
    TestSession,
    UserProfile,
)

logger = logging.getLogger(__name__)

# Weights of the domain score components
ACCURACY_WEIGHT = 0.4
SPEED_WEIGHT = 0.3
CONSISTENCY_WEIGHT = 0.3
# Reaction time (ms) is mapped to 0-100 via max(0, 100 - ms / 10)
REACTION_TIME_DIVISOR = 10.0

# Profile section -> (category, section model)
_PROFILE_SECTIONS = {
    "memory_capacity": (Category.MEMORY, MemoryCapacity),
    "attention_metrics": (Category.ATTENTION, AttentionMetrics),
    "processing_speed": (Category.PROCESSING, ProcessingSpeed),
    "executive_function": (Category.EXECUTIVE, ExecutiveFunction),
}

# Advice emitted when a sub-field is below the recommendation threshold,
# in report order
RECOMMENDATIONS = {
    ("memory_capacity", "short_term"): (
        "Practice short sequence recall, such as repeating digit or colour sequences"
    ),
    ("memory_capacity", "working"): (
        "Try working memory games that require holding and updating information"
    ),
    ("memory_capacity", "visual"): (
        "Consider exercises to improve visual memory, such as pattern recognition games"
    ),
    ("attention_metrics", "sustained"): (
        "Practice sustained attention activities, like mindfulness or focused reading"
    ),
    ("attention_metrics", "selective"): (
        "Work on selective attention with visual search and spot-the-difference tasks"
    ),
    ("attention_metrics", "divided"): (
        "Build divided attention gradually with simple dual-task exercises"
    ),
    ("processing_speed", "reaction"): (
        "Use short reaction drills to improve response speed"
    ),
    ("processing_speed", "decision"): (
        "Practice quick decision games with a clear single rule"
    ),
    ("processing_speed", "cognitive"): (
        "Engage in speed-processing activities, such as quick math or rapid visual "
        "identification tasks"
    ),
    ("executive_function", "planning"): (
        "Strengthen planning with step-by-step puzzles and route-finding games"
    ),
    ("executive_function", "flexibility"): (
        "Encourage cognitive flexibility with rule-switching card games"
    ),
    ("executive_function", "inhibition"): (
        "Practice impulse control with go/no-go style games"
    ),
}


def session_domain_score(session: TestSession) -> float:
    """Score of a single session: accuracy, reaction speed and consistency."""
    metrics = session.metrics
    accuracy_score = metrics.accuracy * 100
    speed_score = max(0.0, 100 - metrics.reaction_time_ms / REACTION_TIME_DIVISOR)
    consistency_score = metrics.consistency * 100
    return (
        accuracy_score * ACCURACY_WEIGHT
        + speed_score * SPEED_WEIGHT
        + consistency_score * CONSISTENCY_WEIGHT
    )


class CognitiveProfileAggregator:
    """
    Aggregates completed sessions into an assessment report.

    The aggregator never mutates its inputs, so running it twice on the same
    sessions yields the same profile and IQ metrics.
    """

    def __init__(
        self,
        sessions: Sequence[TestSession],
        user_profile: UserProfile,
        *,
        recommendation_threshold: Optional[float] = None,
        iq_weights: Optional[Dict[str, float]] = None,
    ):
        self.sessions = tuple(sessions)
        self.user_profile = user_profile
        self.recommendation_threshold = (
            recommendation_threshold
            if recommendation_threshold is not None
            else settings.RECOMMENDATION_THRESHOLD
        )
        self.iq_weights = iq_weights

    def _matching(
        self, category: Category, subtype: Optional[str] = None
    ) -> List[TestSession]:
        matches = [s for s in self.sessions if s.category == category]
        if subtype is not None:
            narrowed = [s for s in matches if s.subtype == subtype]
            if narrowed:
                return narrowed
        return matches

    def calculate_domain_score(
        self, domain: Category | str, subtype: Optional[str] = None
    ) -> float:
        """
        Mean session score for a domain, 0.0 when no session matches.

        Args:
            domain: Category (or its string value) to join on
            subtype: Optional sub-field name narrowing the sessions

        Raises:
            ValueError: If domain is not a known category
        """
        category = Category(domain)
        return mean_or_zero(
            session_domain_score(s) for s in self._matching(category, subtype)
        )

    def _analyze_section(self, name: str):
        category, model = _PROFILE_SECTIONS[name]
        return model(
            **{
                field: self.calculate_domain_score(category, field)
                for field in model.model_fields
            }
        )

    def analyze_memory_capacity(self) -> MemoryCapacity:
        return self._analyze_section("memory_capacity")

    def analyze_attention_metrics(self) -> AttentionMetrics:
        return self._analyze_section("attention_metrics")

    def analyze_processing_speed(self) -> ProcessingSpeed:
        return self._analyze_section("processing_speed")

    def analyze_executive_function(self) -> ExecutiveFunction:
        return self._analyze_section("executive_function")

    def build_cognitive_profile(self) -> CognitiveProfile:
        return CognitiveProfile(
            memory_capacity=self.analyze_memory_capacity(),
            attention_metrics=self.analyze_attention_metrics(),
            processing_speed=self.analyze_processing_speed(),
            executive_function=self.analyze_executive_function(),
        )

    def generate_recommendations(self, profile: CognitiveProfile) -> List[str]:
        """Advice for every profile sub-field below the threshold, in fixed order."""
        recommendations = []
        for (section, field), text in RECOMMENDATIONS.items():
            value = getattr(getattr(profile, section), field)
            if value < self.recommendation_threshold:
                recommendations.append(text)
        return recommendations

    def calculate_percentile_ranks(self, profile: CognitiveProfile) -> Dict[str, int]:
        """Percentile of each section average against the user's age norm."""
        ranks = {}
        for section in _PROFILE_SECTIONS:
            values = getattr(profile, section).model_dump().values()
            ranks[section] = score_to_age_percentile(
                mean_or_zero(values), self.user_profile.age
            )
        return ranks

    def calculate_iq_metrics(self) -> IQMetrics:
        domain_scores = {
            domain: self.calculate_domain_score(domain) for domain in IQ_DOMAINS
        }
        estimator = IQEstimator(self.user_profile.age, weights=self.iq_weights)
        return estimator.calculate(domain_scores)

    def generate_report(self) -> AssessmentReport:
        profile = self.build_cognitive_profile()
        iq_metrics = self.calculate_iq_metrics()

        logger.info(
            f"Assessment report built from {len(self.sessions)} sessions: "
            f"IQ {iq_metrics.overall_iq} (confidence {iq_metrics.confidence:.2f})"
        )

        return AssessmentReport(
            user_id=self.user_profile.id,
            user_profile=self.user_profile,
            test_sessions=list(self.sessions),
            cognitive_profile=profile,
            recommendations=self.generate_recommendations(profile),
            percentile_ranks=self.calculate_percentile_ranks(profile),
            iq_metrics=iq_metrics,
            interpretations=generate_interpretations(iq_metrics),
        )
