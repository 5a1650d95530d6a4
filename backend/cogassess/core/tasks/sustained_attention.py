"""
Sustained attention (vigilance): a steady stream of letters where only the
targets X and A should be answered.
"""
from dataclasses import dataclass
from typing import List, Optional

from cogassess.core.errors import InputValidationError
from cogassess.core.performance import accuracy, consistency, mean_or_zero
from cogassess.core.tasks.base import BaseTask
from cogassess.schemas.assessment import Category, PerformanceMetrics, TestResult

TARGETS = ("X", "A")
NON_TARGETS = ("B", "C", "D", "E", "F", "G", "H")
TARGET_FREQUENCY = 0.2
# One stimulus per second for five minutes
STIMULI = 300
BASE_RESPONSE_WINDOW = 1.0  # seconds
MIN_RESPONSE_WINDOW = 0.5  # seconds


def response_window(difficulty: float) -> float:
    """Seconds a stimulus accepts a press: 1.0 at d <= 1, -0.1 per level, floor 0.5."""
    return max(BASE_RESPONSE_WINDOW - 0.1 * max(0.0, difficulty - 1), MIN_RESPONSE_WINDOW)


@dataclass
class VigilanceStimulus:
    symbol: str
    is_target: bool
    shown_at: float
    pressed: Optional[bool] = None
    resolved_at: Optional[float] = None

    @property
    def is_hit(self) -> bool:
        return self.is_target and bool(self.pressed)

    @property
    def is_miss(self) -> bool:
        return self.is_target and self.pressed is False

    @property
    def is_false_alarm(self) -> bool:
        return not self.is_target and bool(self.pressed)

    @property
    def reaction_time(self) -> Optional[float]:
        if not self.pressed:
            return None
        return self.resolved_at - self.shown_at


class SustainedAttentionTask(BaseTask):
    """
    Hits, misses and false alarms over a long stimulus stream.

    A press later than the response window counts as no press. The score is
    the hit rate minus the false alarm rate, so pressing on every stimulus
    scores nothing. Misses are reported as attention lapses.
    """

    name = "sustained attention"
    category = Category.ATTENTION
    subtype = "sustained"

    def __init__(self, difficulty: float, rng=None, stimuli: int = STIMULI):
        super().__init__(difficulty, rng)
        if stimuli < 1:
            raise ValueError("stimuli must be at least 1")
        self.stimuli = stimuli
        self.response_window = response_window(self.difficulty)
        self._stream: List[VigilanceStimulus] = []

    @property
    def current_stimulus(self) -> Optional[VigilanceStimulus]:
        if self._stream and self._stream[-1].pressed is None:
            return self._stream[-1]
        return None

    @property
    def is_complete(self) -> bool:
        return len(self._stream) >= self.stimuli and self.current_stimulus is None

    def present(self, timestamp: float) -> VigilanceStimulus:
        self._check_open()
        if self.current_stimulus is not None:
            raise InputValidationError("previous stimulus has not been resolved")
        if self._stream:
            self._check_order(timestamp, self._stream[-1].resolved_at)

        is_target = self.rng.random() < TARGET_FREQUENCY
        symbols = TARGETS if is_target else NON_TARGETS
        stimulus = VigilanceStimulus(
            symbol=self.rng.choice(symbols), is_target=is_target, shown_at=timestamp
        )
        self._stream.append(stimulus)
        return stimulus

    def respond(self, pressed: bool, timestamp: float) -> bool:
        """
        Resolve the current stimulus.

        Args:
            pressed: True if the user pressed, False if the window ran out
            timestamp: Time of the press or of the timeout

        Returns:
            Whether the decision was correct
        """
        stimulus = self.current_stimulus
        if stimulus is None:
            raise InputValidationError("no stimulus on screen")
        self._check_order(timestamp, stimulus.shown_at)

        late = timestamp - stimulus.shown_at > self.response_window
        stimulus.pressed = pressed and not late
        stimulus.resolved_at = timestamp
        return stimulus.pressed == stimulus.is_target

    def _score(self) -> TestResult:
        targets = [s for s in self._stream if s.is_target]
        non_targets = [s for s in self._stream if not s.is_target]
        hits = sum(1 for s in targets if s.is_hit)
        false_alarms = sum(1 for s in non_targets if s.is_false_alarm)
        correct = hits + (len(non_targets) - false_alarms)

        hit_rate = accuracy(hits, len(targets)) if targets else 1.0
        false_alarm_rate = accuracy(false_alarms, len(non_targets))
        reaction_times = [s.reaction_time for s in targets if s.is_hit]
        acc = accuracy(correct, len(self._stream))

        return TestResult(
            score=max(0.0, hit_rate - false_alarm_rate) * 100,
            metrics=PerformanceMetrics(
                accuracy=acc,
                speed=mean_or_zero(reaction_times),
                consistency=consistency(reaction_times),
            ),
            details={
                "hits": hits,
                "misses": len(targets) - hits,
                "false_alarms": false_alarms,
                "targets": len(targets),
                "stimuli": len(self._stream),
                "hit_rate": hit_rate,
                "false_alarm_rate": false_alarm_rate,
                "reaction_times": reaction_times,
                "attention_lapses": len(targets) - hits,
            },
        )
