"""
Focus (go/no-go): respond only to numbers divisible by three.
"""
from dataclasses import dataclass
from typing import List, Optional

from cogassess.core.errors import InputValidationError
from cogassess.core.performance import accuracy, mean_or_zero
from cogassess.core.tasks.base import BaseTask
from cogassess.schemas.assessment import Category, PerformanceMetrics, TestResult

ROUNDS = 30
CORRECT_POINTS = 10
STREAK_BONUS = 5
STREAK_BONUS_FROM = 5


def display_time(difficulty: float) -> float:
    """Seconds each stimulus stays on screen: ``max(2000 - 200d, 1000)`` ms."""
    return max(2000 - difficulty * 200, 1000) / 1000.0


def response_consistency(outcomes: List[bool]) -> float:
    """1 - (changes between consecutive outcomes) / (n - 1); 1.0 under two outcomes."""
    if len(outcomes) < 2:
        return 1.0
    flips = sum(1 for a, b in zip(outcomes, outcomes[1:]) if a != b)
    return 1.0 - flips / (len(outcomes) - 1)


@dataclass
class FocusTrial:
    value: int
    shown_at: float
    responded: Optional[bool] = None
    responded_at: Optional[float] = None

    @property
    def is_target(self) -> bool:
        return self.value % 3 == 0

    @property
    def is_correct(self) -> bool:
        return self.responded == self.is_target


class FocusTask(BaseTask):
    """
    +10 per correct decision, +5 more while the streak is at least five.
    Missed targets count as attention lapses.
    """

    name = "focus"
    category = Category.EXECUTIVE
    subtype = "inhibition"

    def __init__(self, difficulty: float, rng=None, rounds: int = ROUNDS):
        super().__init__(difficulty, rng)
        if rounds < 1:
            raise ValueError("rounds must be at least 1")
        self.rounds = rounds
        self.display_time = display_time(self.difficulty)
        self.points = 0
        self.streak = 0
        self.max_streak = 0
        self._trials: List[FocusTrial] = []

    @property
    def current_trial(self) -> Optional[FocusTrial]:
        if self._trials and self._trials[-1].responded is None:
            return self._trials[-1]
        return None

    @property
    def is_complete(self) -> bool:
        return len(self._trials) >= self.rounds and self.current_trial is None

    def present(self, timestamp: float) -> FocusTrial:
        self._check_open()
        if self.current_trial is not None:
            raise InputValidationError("previous stimulus has not been resolved")
        trial = FocusTrial(value=self.rng.randint(1, 9), shown_at=timestamp)
        self._trials.append(trial)
        return trial

    def respond(self, responded: bool, timestamp: float) -> bool:
        """
        Resolve the current stimulus.

        Args:
            responded: True if the user pressed, False if they withheld or the
                display time ran out
            timestamp: Time of the press or of the timeout

        Returns:
            Whether the decision was correct
        """
        trial = self.current_trial
        if trial is None:
            raise InputValidationError("no stimulus on screen")
        self._check_order(timestamp, trial.shown_at)

        trial.responded = responded
        trial.responded_at = timestamp
        if trial.is_correct:
            self.streak += 1
            self.max_streak = max(self.max_streak, self.streak)
            self.points += CORRECT_POINTS
            if self.streak >= STREAK_BONUS_FROM:
                self.points += STREAK_BONUS
        else:
            self.streak = 0
        return trial.is_correct

    def _score(self) -> TestResult:
        outcomes = [t.is_correct for t in self._trials]
        correct = sum(outcomes)
        acc = accuracy(correct, len(self._trials))
        press_times = [
            t.responded_at - t.shown_at for t in self._trials if t.responded
        ]
        return TestResult(
            score=acc * 100,
            metrics=PerformanceMetrics(
                accuracy=acc,
                speed=mean_or_zero(press_times),
                consistency=response_consistency(outcomes),
                combo=float(self.max_streak),
            ),
            details={
                "points": self.points,
                "correct_responses": correct,
                "max_streak": self.max_streak,
                "false_alarms": sum(
                    1 for t in self._trials if t.responded and not t.is_target
                ),
                "attention_lapses": sum(
                    1 for t in self._trials if t.is_target and not t.responded
                ),
            },
        )
