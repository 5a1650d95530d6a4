"""
Reaction time: respond as soon as a stimulus appears after a random delay.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from cogassess.core.errors import InputValidationError
from cogassess.core.performance import accuracy, consistency, mean_or_zero
from cogassess.core.tasks.base import BaseTask
from cogassess.schemas.assessment import Category, PerformanceMetrics, TestResult

TRIALS = 5
BASE_MAX_DELAY_MS = 2000
DELAY_MS_PER_LEVEL = 1000

ACCURACY_WEIGHT = 0.6
SPEED_WEIGHT = 0.4


class ReactionBand(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    SLOW = "slow"
    MISS = "miss"


@dataclass(frozen=True)
class ReactionThresholds:
    """Upper bounds (ms) of each band. They tighten as difficulty rises."""

    excellent: float
    good: float
    average: float

    @classmethod
    def for_difficulty(cls, difficulty: float) -> "ReactionThresholds":
        return cls(
            excellent=max(200, 400 - difficulty * 30),
            good=max(300, 600 - difficulty * 30),
            average=max(450, 800 - difficulty * 30),
        )

    def classify(self, reaction_ms: float) -> ReactionBand:
        if reaction_ms <= self.excellent:
            return ReactionBand.EXCELLENT
        if reaction_ms <= self.good:
            return ReactionBand.GOOD
        if reaction_ms <= self.average:
            return ReactionBand.AVERAGE
        return ReactionBand.SLOW


@dataclass
class ReactionTrial:
    started_at: float
    stimulus_at: float
    responded_at: Optional[float] = None
    band: Optional[ReactionBand] = None

    @property
    def false_start(self) -> bool:
        return self.responded_at is not None and self.responded_at < self.stimulus_at

    @property
    def reaction_time(self) -> Optional[float]:
        """Seconds from stimulus to response; None for misses."""
        if self.responded_at is None or self.false_start:
            return None
        return self.responded_at - self.stimulus_at


class ReactionTimeTask(BaseTask):
    """
    Five timed trials. A response before the stimulus is a false start and
    counts as a miss.
    """

    name = "reaction time"
    category = Category.PROCESSING
    subtype = "reaction"

    def __init__(self, difficulty: float, rng=None, trials: int = TRIALS):
        super().__init__(difficulty, rng)
        if trials < 1:
            raise ValueError("trials must be at least 1")
        self.trials = trials
        self.thresholds = ReactionThresholds.for_difficulty(self.difficulty)
        self._trials: List[ReactionTrial] = []

    def stimulus_delay(self) -> float:
        """Random delay in seconds, uniform in [0, 2 + difficulty)."""
        max_delay_ms = BASE_MAX_DELAY_MS + DELAY_MS_PER_LEVEL * self.difficulty
        return self.rng.random() * max_delay_ms / 1000.0

    @property
    def current_trial(self) -> Optional[ReactionTrial]:
        if self._trials and self._trials[-1].responded_at is None:
            return self._trials[-1]
        return None

    @property
    def is_complete(self) -> bool:
        return (
            len(self._trials) >= self.trials
            and all(t.responded_at is not None for t in self._trials)
        )

    def start_trial(self, timestamp: float) -> ReactionTrial:
        """Schedule the next stimulus. ``stimulus_at`` tells the caller when to show it."""
        self._check_open()
        if self.current_trial is not None:
            raise InputValidationError("previous trial has no response yet")
        trial = ReactionTrial(
            started_at=timestamp, stimulus_at=timestamp + self.stimulus_delay()
        )
        self._trials.append(trial)
        return trial

    def respond(self, timestamp: float) -> ReactionBand:
        trial = self.current_trial
        if trial is None:
            raise InputValidationError("no trial in progress")
        self._check_order(timestamp, trial.started_at)

        trial.responded_at = timestamp
        if trial.false_start:
            trial.band = ReactionBand.MISS
        else:
            trial.band = self.thresholds.classify(trial.reaction_time * 1000)
        return trial.band

    def _score(self) -> TestResult:
        times = [t.reaction_time for t in self._trials if t.reaction_time is not None]
        hits = len(times)
        acc = accuracy(hits, len(self._trials))
        average = mean_or_zero(times)
        speed_term = max(0.0, 1.0 - average) if times else 0.0
        return TestResult(
            score=(acc * ACCURACY_WEIGHT + speed_term * SPEED_WEIGHT) * 100,
            metrics=PerformanceMetrics(
                accuracy=acc,
                speed=average,
                consistency=consistency(times),
            ),
            details={
                "reaction_times_ms": [round(t * 1000, 1) for t in times],
                "average_ms": round(average * 1000, 1),
                "best_ms": round(min(times) * 1000, 1) if times else None,
                "false_starts": sum(1 for t in self._trials if t.false_start),
                "bands": [t.band.value for t in self._trials],
                "attention_lapses": len(self._trials) - hits,
            },
        )
