"""
Visual pattern matching: memorize a target configuration, then pick it out
of a shuffled set of near-identical variations.
"""
import math
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple

from cogassess.core.errors import InputValidationError
from cogassess.core.performance import (
    ComboTracker,
    accuracy,
    consistency,
    mean_or_zero,
)
from cogassess.core.tasks.base import BaseTask
from cogassess.schemas.assessment import Category, PerformanceMetrics, TestResult

SHAPES = ("■", "●", "▲", "◆", "★", "✦", "❋", "✿")
COLORS = ("blue", "red", "green", "yellow", "purple", "pink", "indigo", "cyan")
ROTATIONS = (0, 45, 90, 135, 180, 225, 270, 315)
SIZES = (1.0, 1.25, 1.5, 1.75, 2.0)

NUM_VARIATIONS = 3
MAX_ELEMENTS = 5
ROUNDS = 10
ROUND_TIME_LIMIT = 30.0  # seconds

BASE_POINTS = 100
MAX_TIME_BONUS = 50
COMBO_STEP = 10
WRONG_PENALTY = 25


@dataclass(frozen=True)
class PatternElement:
    shape: str
    color: str
    rotation: int
    size: float
    position: int


Configuration = Tuple[PatternElement, ...]


def element_count(difficulty: float) -> int:
    """``min(3 + floor(difficulty / 2), 5)``."""
    return min(3 + math.floor(difficulty / 2), MAX_ELEMENTS)


@dataclass
class MatchRound:
    options: List[Configuration]
    target_index: int
    started_at: float
    selected_index: Optional[int] = None
    response_time: Optional[float] = None
    timed_out: bool = False
    points: int = 0

    @property
    def is_correct(self) -> bool:
        return self.selected_index == self.target_index and not self.timed_out


class PatternMatchingTask(BaseTask):
    """
    A selection is correct iff it is identical to the target configuration.

    Correct: ``100 + floor(time_left / 30 * 50) + combo * 10``.
    Wrong or too late: -25 points (total never below 0) and the combo resets.
    """

    name = "pattern matching"
    category = Category.MEMORY
    subtype = "visual"

    def __init__(self, difficulty: float, rng=None, rounds: int = ROUNDS):
        super().__init__(difficulty, rng)
        if rounds < 1:
            raise ValueError("rounds must be at least 1")
        self.rounds = rounds
        self.num_elements = element_count(self.difficulty)
        self.combo = ComboTracker(bonus_step=COMBO_STEP)
        self.points = 0
        self._rounds: List[MatchRound] = []

    def _random_element(self, position: int) -> PatternElement:
        return PatternElement(
            shape=self.rng.choice(SHAPES),
            color=self.rng.choice(COLORS),
            rotation=self.rng.choice(ROTATIONS),
            size=self.rng.choice(SIZES),
            position=position,
        )

    def _variation(self, target: Configuration) -> Configuration:
        """Copy of the target with at least one attribute changed."""
        elements = list(target)
        index = self.rng.randrange(len(elements))
        original = elements[index]
        attribute = self.rng.choice(("shape", "color", "rotation", "size"))
        pools = {"shape": SHAPES, "color": COLORS, "rotation": ROTATIONS, "size": SIZES}
        choices = [v for v in pools[attribute] if v != getattr(original, attribute)]
        elements[index] = replace(original, **{attribute: self.rng.choice(choices)})
        return tuple(elements)

    def generate_options(self) -> Tuple[List[Configuration], int]:
        """Shuffled target plus variations, and the index of the target."""
        target = tuple(self._random_element(i) for i in range(self.num_elements))
        options = [target]
        while len(options) < NUM_VARIATIONS + 1:
            variation = self._variation(target)
            if variation not in options:
                options.append(variation)
        self.rng.shuffle(options)
        return options, options.index(target)

    @property
    def current_round(self) -> Optional[MatchRound]:
        if self._rounds and self._rounds[-1].selected_index is None:
            return self._rounds[-1]
        return None

    @property
    def is_complete(self) -> bool:
        answered = [r for r in self._rounds if r.selected_index is not None]
        return len(answered) >= self.rounds

    def start_round(self, timestamp: float) -> MatchRound:
        self._check_open()
        if self.current_round is not None:
            raise InputValidationError("previous round has not been answered")
        options, target_index = self.generate_options()
        match_round = MatchRound(
            options=options, target_index=target_index, started_at=timestamp
        )
        self._rounds.append(match_round)
        return match_round

    def select(self, option_index: int, timestamp: float) -> int:
        """Answer the current round. Returns the points awarded (negative on a miss)."""
        match_round = self.current_round
        if match_round is None:
            raise InputValidationError("no round in progress")
        if not 0 <= option_index < len(match_round.options):
            raise InputValidationError(f"invalid option index {option_index}")
        self._check_order(timestamp, match_round.started_at)

        elapsed = timestamp - match_round.started_at
        match_round.selected_index = option_index
        match_round.response_time = elapsed
        match_round.timed_out = elapsed > ROUND_TIME_LIMIT

        if match_round.is_correct:
            time_left = ROUND_TIME_LIMIT - elapsed
            time_bonus = math.floor(time_left / ROUND_TIME_LIMIT * MAX_TIME_BONUS)
            awarded = BASE_POINTS + time_bonus + int(self.combo.hit())
            self.points += awarded
        else:
            self.combo.miss()
            awarded = -min(WRONG_PENALTY, self.points)
            self.points += awarded

        match_round.points = awarded
        return awarded

    def _score(self) -> TestResult:
        correct = sum(1 for r in self._rounds if r.is_correct)
        times = [r.response_time for r in self._rounds if r.response_time is not None]
        acc = accuracy(correct, self.rounds)
        max_points = self.rounds * (BASE_POINTS + MAX_TIME_BONUS)
        return TestResult(
            score=min(100.0, self.points / max_points * 100),
            metrics=PerformanceMetrics(
                accuracy=acc,
                speed=mean_or_zero(times),
                consistency=consistency(times),
                combo=float(self.combo.max_streak),
            ),
            details={
                "points": self.points,
                "correct_answers": correct,
                "attempts": self.rounds,
                "elements_per_pattern": self.num_elements,
                "max_streak": self.combo.max_streak,
                "response_times": times,
            },
        )
