"""
Common contract for task scorers.

A task is built from a difficulty level, receives timestamped interactions
(seconds, e.g. ``time.monotonic()``) and is finalized into a TestResult once
its input preconditions hold.
"""
import logging
import random
from abc import ABC, abstractmethod
from typing import ClassVar, Optional

from cogassess.core.errors import InputValidationError
from cogassess.schemas.assessment import Category, TestResult

logger = logging.getLogger(__name__)


class BaseTask(ABC):
    """Base class for every task scorer."""

    name: ClassVar[str]
    category: ClassVar[Category]
    subtype: ClassVar[Optional[str]] = None

    def __init__(self, difficulty: float, rng: Optional[random.Random] = None):
        if difficulty < 0:
            raise ValueError(f"difficulty must be non-negative, got {difficulty}")
        self.difficulty = float(difficulty)
        self.rng = rng or random.Random()
        self._result: Optional[TestResult] = None

    @property
    @abstractmethod
    def is_complete(self) -> bool:
        """True once every required response has been collected."""

    @abstractmethod
    def _score(self) -> TestResult:
        """Build the result. Only called when the task is complete."""

    def _check_open(self) -> None:
        if self.is_complete:
            raise InputValidationError(f"{self.name} task is already complete")

    @staticmethod
    def _check_order(timestamp: float, previous: Optional[float]) -> None:
        if previous is not None and timestamp < previous:
            raise InputValidationError(
                f"timestamp {timestamp} is earlier than previous event {previous}"
            )

    def finalize(self) -> TestResult:
        """
        Score the collected interactions.

        Raises:
            InputValidationError: If responses are still missing
        """
        if not self.is_complete:
            raise InputValidationError(
                f"{self.name} task finalized before all responses were collected"
            )
        if self._result is None:
            self._result = self._score()
            logger.info(
                f"{self.name} task scored {self._result.score:.1f} "
                f"(accuracy {self._result.metrics.accuracy:.2f})",
                extra={"category": self.category.value},
            )
        return self._result
