"""
Sequence memory: reproduce a sequence of lit grid cells in order.
"""
import math
from dataclasses import dataclass
from typing import List, Optional

from cogassess.core.errors import InputValidationError
from cogassess.core.performance import accuracy, consistency, mean_or_zero
from cogassess.core.tasks.base import BaseTask
from cogassess.schemas.assessment import Category, PerformanceMetrics, TestResult

SEQUENCE_COLORS = ("blue", "red", "green", "yellow", "purple")
GRID_POSITIONS = 9  # 3x3 grid
DISPLAY_INTERVAL = 1.0  # seconds each element stays lit
BASE_LENGTH = 3
MAX_LENGTH = 7


def sequence_length(difficulty: float) -> int:
    """``min(3 + floor(difficulty), 7)``."""
    return min(BASE_LENGTH + math.floor(difficulty), MAX_LENGTH)


@dataclass(frozen=True)
class SequenceItem:
    color: str
    position: int


class SequenceMemoryTask(BaseTask):
    """Each recalled position is correct when it equals the shown one at that index."""

    name = "sequence memory"
    category = Category.MEMORY
    subtype = "short_term"

    def __init__(self, difficulty: float, rng=None):
        super().__init__(difficulty, rng)
        self.sequence: List[SequenceItem] = [
            SequenceItem(
                color=self.rng.choice(SEQUENCE_COLORS),
                position=self.rng.randrange(GRID_POSITIONS),
            )
            for _ in range(sequence_length(self.difficulty))
        ]
        self._recalled: List[int] = []
        self._response_times: List[float] = []
        self._recall_started_at: Optional[float] = None
        self._last_event_at: Optional[float] = None

    @property
    def display_duration(self) -> float:
        """Seconds needed to show the whole sequence."""
        return len(self.sequence) * DISPLAY_INTERVAL

    @property
    def is_complete(self) -> bool:
        return len(self._recalled) == len(self.sequence)

    def start_recall(self, timestamp: float) -> None:
        if self._recall_started_at is not None:
            raise InputValidationError("recall phase already started")
        self._recall_started_at = timestamp
        self._last_event_at = timestamp

    def submit_position(self, position: int, timestamp: float) -> bool:
        """Record the next recalled position. Returns whether it was correct."""
        if self._recall_started_at is None:
            raise InputValidationError("recall phase has not started")
        self._check_open()
        if not 0 <= position < GRID_POSITIONS:
            raise InputValidationError(
                f"position must be in [0, {GRID_POSITIONS - 1}], got {position}"
            )
        self._check_order(timestamp, self._last_event_at)

        self._response_times.append(timestamp - self._last_event_at)
        self._last_event_at = timestamp
        index = len(self._recalled)
        self._recalled.append(position)
        return self.sequence[index].position == position

    def _score(self) -> TestResult:
        correct = sum(
            1
            for item, recalled in zip(self.sequence, self._recalled)
            if item.position == recalled
        )
        acc = accuracy(correct, len(self.sequence))
        return TestResult(
            score=acc * 100,
            metrics=PerformanceMetrics(
                accuracy=acc,
                speed=mean_or_zero(self._response_times),
                consistency=consistency(self._response_times),
            ),
            details={
                "sequence_length": len(self.sequence),
                "correct_positions": correct,
                "sequence": [item.position for item in self.sequence],
                "recalled": list(self._recalled),
                "response_times": list(self._response_times),
                "completion_time": self._last_event_at - self._recall_started_at,
            },
        )
