"""
Learning & grasp: catch falling targets before they leave the play area.

Targets fall faster with difficulty. Catching quickly earns more points and
a growing combo raises the point multiplier; every target that lands costs a
life and resets the combo. The game ends when the lives run out or every
target has been caught or has landed.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from cogassess.core.errors import InputValidationError
from cogassess.core.performance import accuracy, consistency, mean_or_zero
from cogassess.core.tasks.base import BaseTask
from cogassess.schemas.assessment import Category, PerformanceMetrics, TestResult

TARGETS = 30
LIVES = 3
TARGET_POINTS = 10
REACTION_THRESHOLD = 1.0  # seconds; catches slower than this earn no speed bonus
COMBO_STEP = 5
MULTIPLIER_STEP = 0.5
MAX_MULTIPLIER = 4.0
# Best score per target at multiplier 1 (instant catch doubles the points)
MAX_BASE_POINTS = 2 * TARGET_POINTS
# Outcomes compared at the start and end of the game
LEARNING_WINDOW = 5


def fall_time(difficulty: float) -> float:
    """Seconds from spawn to landing: 600 px at 2 * (d + 1) px per frame, 60 fps."""
    return 5.0 / (difficulty + 1)


def learning_rate(outcomes: Sequence[bool]) -> float:
    """
    Relative gain in catch rate between the first and last five targets.

    0.0 with fewer than five outcomes. When nothing was caught at the start
    the absolute catch rate at the end is returned.
    """
    if len(outcomes) < LEARNING_WINDOW:
        return 0.0
    initial = sum(outcomes[:LEARNING_WINDOW]) / LEARNING_WINDOW
    recent = sum(outcomes[-LEARNING_WINDOW:]) / LEARNING_WINDOW
    if initial == 0:
        return recent
    return max(0.0, (recent - initial) / initial)


def adaptation(catch_times: Sequence[float]) -> float:
    """Share of catches that were faster than the one before; 0.0 under two catches."""
    if len(catch_times) < 2:
        return 0.0
    faster = sum(1 for a, b in zip(catch_times, catch_times[1:]) if b < a)
    return faster / (len(catch_times) - 1)


@dataclass
class FallingTarget:
    id: int
    spawned_at: float
    caught_at: Optional[float] = None
    landed: bool = False

    @property
    def in_flight(self) -> bool:
        return self.caught_at is None and not self.landed


class LearningGraspTask(BaseTask):
    """Score is points over the best multiplier-1 points for the resolved targets, capped at 100."""

    name = "learning grasp"
    category = Category.LEARNING
    subtype = None

    def __init__(self, difficulty: float, rng=None, targets: int = TARGETS):
        super().__init__(difficulty, rng)
        if targets < 1:
            raise ValueError("targets must be at least 1")
        self.targets = targets
        self.fall_time = fall_time(self.difficulty)
        self.lives = LIVES
        self.points = 0
        self.combo = 0
        self.max_combo = 0
        self.multiplier = 1.0
        self._targets: Dict[int, FallingTarget] = {}
        self._outcomes: List[bool] = []
        self._catch_times: List[float] = []
        self._last_event_at: Optional[float] = None

    @property
    def in_flight(self) -> List[FallingTarget]:
        return [t for t in self._targets.values() if t.in_flight]

    @property
    def is_complete(self) -> bool:
        if self.lives <= 0:
            return True
        return len(self._targets) >= self.targets and not self.in_flight

    def advance(self, timestamp: float) -> List[FallingTarget]:
        """
        Land every target whose fall time has elapsed by `timestamp`.

        Returns:
            The targets that landed
        """
        self._check_order(timestamp, self._last_event_at)
        self._last_event_at = timestamp
        due = [t for t in self.in_flight if timestamp - t.spawned_at > self.fall_time]
        landed = []
        for target in sorted(due, key=lambda t: t.spawned_at):
            if self.lives <= 0:
                break
            target.landed = True
            landed.append(target)
            self.lives -= 1
            self.combo = 0
            self._outcomes.append(False)
        return landed

    def spawn(self, timestamp: float) -> FallingTarget:
        self.advance(timestamp)
        self._check_open()
        if len(self._targets) >= self.targets:
            raise InputValidationError("all targets have already been spawned")
        target = FallingTarget(id=len(self._targets), spawned_at=timestamp)
        self._targets[target.id] = target
        return target

    def catch(self, target_id: int, timestamp: float) -> int:
        """
        Catch a target.

        Returns:
            Points earned, 0 if the target had already landed
        """
        self.advance(timestamp)
        target = self._targets.get(target_id)
        if target is None:
            raise InputValidationError(f"unknown target {target_id}")
        if target.caught_at is not None:
            raise InputValidationError(f"target {target_id} was already caught")
        if target.landed:
            return 0
        self._check_open()

        catch_time = timestamp - target.spawned_at
        speed_bonus = max(0.0, 1 - catch_time / REACTION_THRESHOLD)
        earned = round(TARGET_POINTS * self.multiplier * (1 + speed_bonus))

        target.caught_at = timestamp
        self.points += earned
        self.multiplier = min(
            MAX_MULTIPLIER, 1 + (self.combo // COMBO_STEP) * MULTIPLIER_STEP
        )
        self.combo += 1
        self.max_combo = max(self.max_combo, self.combo)
        self._outcomes.append(True)
        self._catch_times.append(catch_time)
        return earned

    def _score(self) -> TestResult:
        caught = len(self._catch_times)
        resolved = len(self._outcomes)
        score = (
            min(100.0, self.points / (resolved * MAX_BASE_POINTS) * 100)
            if resolved
            else 0.0
        )
        dropped = resolved - caught
        return TestResult(
            score=score,
            metrics=PerformanceMetrics(
                accuracy=accuracy(caught, resolved),
                speed=mean_or_zero(self._catch_times),
                consistency=consistency(self._catch_times),
                combo=float(self.max_combo),
            ),
            details={
                "points": self.points,
                "caught": caught,
                "dropped": dropped,
                "lives_left": self.lives,
                "max_combo": self.max_combo,
                "learning_rate": learning_rate(self._outcomes),
                "adaptation": adaptation(self._catch_times),
                "catch_times": list(self._catch_times),
                "attention_lapses": dropped,
            },
        )
