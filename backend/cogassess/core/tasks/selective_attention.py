"""
Selective attention: find every target item hidden among distractors.
"""
import math
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from cogassess.core.errors import InputValidationError
from cogassess.core.performance import consistency, mean_or_zero
from cogassess.core.tasks.base import BaseTask
from cogassess.schemas.assessment import Category, PerformanceMetrics, TestResult

SHAPES = ("circle", "square", "triangle", "diamond", "star", "hexagon")
COLORS = ("red", "blue", "green", "yellow", "purple", "orange")

ROUNDS = 3
MAX_TARGETS = 8
MAX_DISTRACTORS = 20
HIT_POINTS = 10
MISS_PENALTY = 5


def target_count(difficulty: float) -> int:
    return min(3 + math.floor(difficulty / 2), MAX_TARGETS)


def distractor_count(difficulty: float) -> int:
    return min(int(5 + 2 * difficulty), MAX_DISTRACTORS)


@dataclass(frozen=True)
class SearchItem:
    id: int
    shape: str
    color: str
    is_target: bool


@dataclass
class SearchRound:
    items: List[SearchItem]
    started_at: float
    found: Set[int] = field(default_factory=set)
    mistakes: int = 0
    hit_times: List[float] = field(default_factory=list)
    ended_at: Optional[float] = None

    @property
    def targets_total(self) -> int:
        return sum(1 for item in self.items if item.is_target)

    @property
    def all_found(self) -> bool:
        return len(self.found) == self.targets_total


class SelectiveAttentionTask(BaseTask):
    """
    +10 per target hit, -5 per wrong click (total never below 0).

    accuracy = points / (points + mistakes * 5), 0 when nothing was scored.
    """

    name = "selective attention"
    category = Category.ATTENTION
    subtype = "selective"

    def __init__(self, difficulty: float, rng=None, rounds: int = ROUNDS):
        super().__init__(difficulty, rng)
        if rounds < 1:
            raise ValueError("rounds must be at least 1")
        self.rounds = rounds
        self.num_targets = target_count(self.difficulty)
        self.num_distractors = distractor_count(self.difficulty)
        self.points = 0
        self.mistakes = 0
        self._rounds: List[SearchRound] = []
        self._last_event_at: Optional[float] = None

    def generate_items(self) -> List[SearchItem]:
        """Targets share one (shape, colour); distractors never match it."""
        target_key: Tuple[str, str] = (
            self.rng.choice(SHAPES),
            self.rng.choice(COLORS),
        )
        distractor_keys = [
            (shape, color)
            for shape in SHAPES
            for color in COLORS
            if (shape, color) != target_key
        ]
        items = [
            SearchItem(id=0, shape=target_key[0], color=target_key[1], is_target=True)
            for _ in range(self.num_targets)
        ]
        for _ in range(self.num_distractors):
            shape, color = self.rng.choice(distractor_keys)
            items.append(SearchItem(id=0, shape=shape, color=color, is_target=False))
        self.rng.shuffle(items)
        return [
            SearchItem(id=i, shape=it.shape, color=it.color, is_target=it.is_target)
            for i, it in enumerate(items)
        ]

    @property
    def current_round(self) -> Optional[SearchRound]:
        if self._rounds and self._rounds[-1].ended_at is None:
            return self._rounds[-1]
        return None

    @property
    def is_complete(self) -> bool:
        return len(self._rounds) >= self.rounds and self.current_round is None

    def start_round(self, timestamp: float) -> SearchRound:
        self._check_open()
        if self.current_round is not None:
            raise InputValidationError("previous round is still running")
        self._check_order(timestamp, self._last_event_at)
        search_round = SearchRound(items=self.generate_items(), started_at=timestamp)
        self._rounds.append(search_round)
        self._last_event_at = timestamp
        return search_round

    def click(self, item_id: int, timestamp: float) -> bool:
        """Register a click. Returns True on a new target hit."""
        search_round = self.current_round
        if search_round is None:
            raise InputValidationError("no round in progress")
        if not 0 <= item_id < len(search_round.items):
            raise InputValidationError(f"unknown item {item_id}")
        self._check_order(timestamp, self._last_event_at)

        item = search_round.items[item_id]
        if item.is_target and item_id not in search_round.found:
            search_round.found.add(item_id)
            search_round.hit_times.append(timestamp - self._last_event_at)
            self.points += HIT_POINTS
            hit = True
        else:
            search_round.mistakes += 1
            self.mistakes += 1
            self.points = max(0, self.points - MISS_PENALTY)
            hit = False

        self._last_event_at = timestamp
        if search_round.all_found:
            search_round.ended_at = timestamp
        return hit

    def end_round(self, timestamp: float) -> None:
        """Close the current round early (e.g. when its time runs out)."""
        search_round = self.current_round
        if search_round is None:
            raise InputValidationError("no round in progress")
        self._check_order(timestamp, self._last_event_at)
        search_round.ended_at = timestamp
        self._last_event_at = timestamp

    def _score(self) -> TestResult:
        denominator = self.points + self.mistakes * MISS_PENALTY
        acc = self.points / denominator if denominator else 0.0
        hit_times = [t for r in self._rounds for t in r.hit_times]
        targets_total = sum(r.targets_total for r in self._rounds)
        found = sum(len(r.found) for r in self._rounds)
        max_points = targets_total * HIT_POINTS
        return TestResult(
            score=self.points / max_points * 100 if max_points else 0.0,
            metrics=PerformanceMetrics(
                accuracy=min(1.0, acc),
                speed=mean_or_zero(hit_times),
                consistency=consistency(hit_times),
            ),
            details={
                "points": self.points,
                "mistakes": self.mistakes,
                "targets_found": found,
                "targets_total": targets_total,
                "attention_lapses": targets_total - found,
                "completion_time": sum(
                    r.ended_at - r.started_at for r in self._rounds
                ),
            },
        )
