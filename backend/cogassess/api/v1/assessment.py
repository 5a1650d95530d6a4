"""
Assessment endpoints: difficulty seeding, adaptive replay, reports and IQ.

All endpoints are stateless. Callers post the data they collected and get
the computed value back; nothing is persisted.
"""
import logging

from fastapi import APIRouter

from cogassess.core import settings
from cogassess.core.difficulty import (
    AdaptiveDifficultyManager,
    difficulty_settings_from_profile,
)
from cogassess.core.profile_analysis import CognitiveProfileAggregator
from cogassess.core.scoring import IQEstimator
from cogassess.schemas.assessment import (
    AdaptiveReplayRequest,
    AdaptiveReplayResponse,
    AssessmentReport,
    DifficultySettings,
    IQMetrics,
    IQRequest,
    ReportRequest,
    UserProfile,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/difficulty", response_model=DifficultySettings)
async def initial_difficulty(profile: UserProfile) -> DifficultySettings:
    """
    Initial per-category difficulty for a pre-test profile.

    Derived from age, computer usage and the number of reported medical
    conditions, clamped to 1..5.
    """
    return difficulty_settings_from_profile(profile)


@router.post("/adaptive", response_model=AdaptiveReplayResponse)
async def replay_adaptive(request: AdaptiveReplayRequest) -> AdaptiveReplayResponse:
    """
    Replay results through an adaptive difficulty manager.

    Returns the level the manager ends on, its label, the current streak and
    the age-appropriate settings for that level.
    """
    manager = AdaptiveDifficultyManager(
        request.age, initial_difficulty=request.initial_difficulty
    )
    for result in request.results:
        manager.update_difficulty(result)

    return AdaptiveReplayResponse(
        current_difficulty=manager.get_current_difficulty(),
        difficulty_level=manager.get_difficulty_level(),
        streak_count=manager.get_streak_count(),
        history_length=len(manager.get_performance_history()),
        settings=manager.get_age_appropriate_settings(),
    )


@router.post("/report", response_model=AssessmentReport)
async def build_report(request: ReportRequest) -> AssessmentReport:
    """
    Aggregate completed test sessions into a full assessment report.

    Domains without sessions score 0 rather than failing the report.
    """
    aggregator = CognitiveProfileAggregator(
        request.test_sessions,
        request.user_profile,
        recommendation_threshold=settings.RECOMMENDATION_THRESHOLD,
        iq_weights=settings.IQ_SUBSCORE_WEIGHTS,
    )
    report = aggregator.generate_report()
    logger.info(
        f"Built report for {report.user_id} from {len(request.test_sessions)} sessions"
    )
    return report


@router.post("/iq", response_model=IQMetrics)
async def estimate_iq(request: IQRequest) -> IQMetrics:
    """Estimate IQ from per-domain raw scores using the age norms."""
    estimator = IQEstimator(request.age, weights=settings.IQ_SUBSCORE_WEIGHTS)
    return estimator.calculate(request.scores.model_dump())
