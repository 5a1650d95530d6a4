"""
Adaptive difficulty for a single test category.

AdaptiveDifficultyManager owns the difficulty level of one category across
repeated attempts within a session. Each result is reduced to a weighted
score on a 0-100 scale:

    weighted = (accuracy * accuracy_weight + normalized_speed * time_weight) * 100

where normalized_speed = max(0, 1 - speed_seconds / 10). Consecutive results
at or above the increment threshold build a streak; from a streak of two the
level rises by ``adaptive_rate * (1 + (streak - 2) * 0.1)``. A result at or
below the decrement threshold lowers the level by ``adaptive_rate`` and
resets the streak. The level is always clamped to the age bracket bounds.

Two helpers build per-session DifficultySettings, either from the pre-test
profile or from a manager's current level.
"""
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Tuple

from cogassess.core.performance import normalize_speed
from cogassess.schemas.assessment import (
    AgeAppropriateSettings,
    ComputerUsage,
    DifficultySettings,
    TestResult,
    UserProfile,
)

logger = logging.getLogger(__name__)

# Streak length from which the level starts to rise
STREAK_TO_INCREASE = 2
# Extra increment per streak step beyond STREAK_TO_INCREASE
STREAK_BONUS = 0.1


@dataclass(frozen=True)
class AdaptiveDifficultyConfig:
    """Difficulty bounds and thresholds for one age bracket."""

    base_level: float
    max_level: float
    min_level: float
    increment_threshold: float  # 0-100 weighted score
    decrement_threshold: float  # 0-100 weighted score
    adaptive_rate: float
    time_weight: float
    accuracy_weight: float


# (exclusive upper age bound, config); the last entry catches everything else
_AGE_BRACKETS: Tuple[Tuple[Optional[int], AdaptiveDifficultyConfig], ...] = (
    (6, AdaptiveDifficultyConfig(1, 3, 1, 85, 60, 0.3, 0.3, 0.7)),
    (12, AdaptiveDifficultyConfig(2, 5, 1, 80, 55, 0.4, 0.4, 0.6)),
    (18, AdaptiveDifficultyConfig(3, 7, 2, 75, 50, 0.5, 0.5, 0.5)),
    (30, AdaptiveDifficultyConfig(4, 10, 2, 70, 45, 0.6, 0.6, 0.4)),
    (50, AdaptiveDifficultyConfig(3, 9, 2, 75, 50, 0.5, 0.5, 0.5)),
    (None, AdaptiveDifficultyConfig(2, 8, 1, 80, 55, 0.4, 0.4, 0.6)),
)

# (exclusive upper age bound, time limit seconds, feature flags)
_AGE_SETTINGS: Tuple[Tuple[Optional[int], int, Tuple[str, ...]], ...] = (
    (6, 60, ("hints", "visual_feedback", "simple_patterns")),
    (12, 45, ("hints", "visual_feedback", "medium_patterns")),
    (18, 30, ("visual_feedback", "complex_patterns")),
    (None, 25, ("complex_patterns", "advanced_metrics")),
)

# (minimum ratio of current/max level, label), checked in order
_LEVEL_LABELS = (
    (0.9, "Expert"),
    (0.75, "Advanced"),
    (0.5, "Intermediate"),
    (0.25, "Basic"),
)


def get_age_difficulty_config(age: int) -> AdaptiveDifficultyConfig:
    """Select the difficulty config for an age in years."""
    for upper, config in _AGE_BRACKETS:
        if upper is None or age < upper:
            return config
    raise AssertionError("unreachable: last bracket is open-ended")


@dataclass(frozen=True)
class PerformanceRecord:
    """Performance derived from one result, as seen by the manager."""

    accuracy: float
    speed: float  # normalized to [0, 1]
    consistency: float
    complexity: float  # current level / max level, before the update
    streak_count: int  # streak before the update
    weighted_score: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class AdaptiveDifficultyManager:
    """
    Per-session difficulty controller for one test category.

    Args:
        age: User age in years, selects the age bracket
        initial_difficulty: Starting level, clamped to the bracket bounds.
            None starts at the bracket's base level.
    """

    def __init__(self, age: int, initial_difficulty: Optional[float] = None):
        self.age = age
        self.config = get_age_difficulty_config(age)
        if initial_difficulty is None:
            start = self.config.base_level
        else:
            start = self._clamp(initial_difficulty)
        self._current_difficulty = float(start)
        self._streak_count = 0
        self._history: List[PerformanceRecord] = []

    def _clamp(self, level: float) -> float:
        return max(self.config.min_level, min(self.config.max_level, level))

    def weighted_score(self, result: TestResult) -> float:
        """Weighted score of a result on the 0-100 threshold scale."""
        speed = normalize_speed(result.metrics.speed)
        return (
            result.metrics.accuracy * self.config.accuracy_weight
            + speed * self.config.time_weight
        ) * 100.0

    def update_difficulty(self, result: TestResult) -> None:
        """Record a result and adjust the level by the streak/threshold rule."""
        score = self.weighted_score(result)
        self._history.append(
            PerformanceRecord(
                accuracy=result.metrics.accuracy,
                speed=normalize_speed(result.metrics.speed),
                consistency=result.metrics.consistency,
                complexity=self._current_difficulty / self.config.max_level,
                streak_count=self._streak_count,
                weighted_score=score,
            )
        )

        meets_increment = score >= self.config.increment_threshold
        meets_decrement = score <= self.config.decrement_threshold

        if meets_increment:
            self._streak_count += 1
        elif meets_decrement:
            self._streak_count = max(0, self._streak_count - 1)

        previous = self._current_difficulty
        if self._streak_count >= STREAK_TO_INCREASE and meets_increment:
            increment = self.config.adaptive_rate * (
                1 + (self._streak_count - STREAK_TO_INCREASE) * STREAK_BONUS
            )
            self._current_difficulty = self._clamp(self._current_difficulty + increment)
        elif meets_decrement:
            self._current_difficulty = self._clamp(
                self._current_difficulty - self.config.adaptive_rate
            )
            self._streak_count = 0

        logger.debug(
            f"Difficulty update: weighted={score:.1f} streak={self._streak_count} "
            f"level {previous:.2f} -> {self._current_difficulty:.2f}"
        )

    def get_current_difficulty(self) -> float:
        return self._current_difficulty

    def get_streak_count(self) -> int:
        return self._streak_count

    def get_performance_history(self) -> List[PerformanceRecord]:
        return list(self._history)

    def get_difficulty_level(self) -> str:
        """Human-readable label from the ratio of current to max level."""
        ratio = self._current_difficulty / self.config.max_level
        for threshold, label in _LEVEL_LABELS:
            if ratio >= threshold:
                return label
        return "Beginner"

    def get_age_appropriate_settings(self) -> AgeAppropriateSettings:
        for upper, time_limit, features in _AGE_SETTINGS:
            if upper is None or self.age < upper:
                return AgeAppropriateSettings(
                    time_limit=time_limit,
                    complexity=self._current_difficulty,
                    features=list(features),
                )
        raise AssertionError("unreachable: last bracket is open-ended")


# Pre-test form rule
_PROFILE_MIN_DIFFICULTY = 1.0
_PROFILE_MAX_DIFFICULTY = 5.0
_COMPUTER_USAGE_MODIFIER = {
    ComputerUsage.LOW: -0.5,
    ComputerUsage.MEDIUM: 0.0,
    ComputerUsage.HIGH: 0.5,
}
_MEDICAL_CONDITION_MODIFIER = -0.2


def _profile_base_difficulty(age: int) -> float:
    if age < 12:
        return 1.0
    if age < 18:
        return 2.0
    if age < 60:
        return 3.0
    return 2.0


def difficulty_settings_from_profile(profile: UserProfile) -> DifficultySettings:
    """
    Initial per-category difficulty from a pre-test profile.

    Base level by age (1 under 12, 2 under 18, 3 under 60, else 2), shifted
    by computer experience. Each reported medical condition lowers the
    processing level only. Every level is clamped to [1, 5].
    """

    def clamp(value: float) -> float:
        return max(_PROFILE_MIN_DIFFICULTY, min(_PROFILE_MAX_DIFFICULTY, value))

    level = _profile_base_difficulty(profile.age) + _COMPUTER_USAGE_MODIFIER[
        profile.computer_usage
    ]
    medical = len(profile.medical_conditions) * _MEDICAL_CONDITION_MODIFIER
    child = profile.age < 12

    return DifficultySettings(
        memory=clamp(level),
        attention=clamp(level),
        processing=clamp(level + medical),
        executive=clamp(level),
        learning=clamp(level),
        time_allowed=450 if child else 300,
        break_interval=600 if child else 900,
    )


def difficulty_settings_from_manager(
    manager: AdaptiveDifficultyManager, break_interval: int = 900
) -> DifficultySettings:
    """Settings with every category at the manager's current level."""
    level = manager.get_current_difficulty()
    return DifficultySettings(
        memory=level,
        attention=level,
        processing=level,
        executive=level,
        learning=level,
        time_allowed=manager.get_age_appropriate_settings().time_limit,
        break_interval=break_interval,
    )
