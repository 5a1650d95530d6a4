"""
Shared scoring helpers used by every task scorer.

Empty inputs never produce NaN: accuracy and averages fall back to 0,
consistency falls back to 1 when there are fewer than two samples.
"""
import math
from typing import Iterable, List, Sequence

import numpy as np

# Seconds at which normalized speed reaches 0
DEFAULT_SPEED_THRESHOLD = 10.0


def accuracy(correct: int, total: int) -> float:
    """
    Fraction of correct responses.

    Args:
        correct: Number of correct responses
        total: Number of attempted responses

    Returns:
        correct / total clamped to [0, 1], or 0.0 when nothing was attempted
    """
    if total <= 0:
        return 0.0
    return min(1.0, max(0.0, correct / total))


def consistency(series: Sequence[float]) -> float:
    """
    Consistency of a time or score series: ``1 - std / mean`` clamped to [0, 1].

    Returns 1.0 for fewer than two samples (no variance observable) and
    0.0 when the mean is not positive.

    Example:
        >>> consistency([1.0, 1.0, 1.0])
        1.0
        >>> consistency([2.0])
        1.0
    """
    if len(series) < 2:
        return 1.0

    values = np.asarray(series, dtype=float)
    mean = float(np.mean(values))
    if mean <= 0:
        return 0.0

    std = math.sqrt(float(np.var(values)))
    return min(1.0, max(0.0, 1.0 - std / mean))


def normalize_speed(
    seconds: float, threshold: float = DEFAULT_SPEED_THRESHOLD
) -> float:
    """Map raw seconds to [0, 1] via ``max(0, 1 - seconds / threshold)``."""
    if threshold <= 0:
        raise ValueError("threshold must be positive")
    return max(0.0, 1.0 - seconds / threshold)


def mean_or_zero(values: Iterable[float]) -> float:
    """Arithmetic mean, 0.0 for an empty input."""
    items: List[float] = list(values)
    if not items:
        return 0.0
    return float(np.mean(items))


class ComboTracker:
    """
    Consecutive-correct streak with a proportional bonus.

    A correct response earns the combo built so far (``streak * bonus_step``)
    and then extends the streak. Any incorrect response resets it to zero.
    """

    def __init__(self, bonus_step: float = 10.0):
        self.bonus_step = bonus_step
        self.streak = 0
        self.max_streak = 0
        self.total_bonus = 0.0

    def hit(self) -> float:
        """Record a correct response and return the bonus it earned."""
        bonus = self.streak * self.bonus_step
        self.total_bonus += bonus
        self.streak += 1
        self.max_streak = max(self.max_streak, self.streak)
        return bonus

    def miss(self) -> None:
        self.streak = 0

    def reset(self) -> None:
        self.streak = 0
        self.max_streak = 0
        self.total_bonus = 0.0
