"""
Test battery orchestration.

TestOrchestrator walks an ordered list of tests, collects one TestResult per
test id, offers a rest break after every N completed tests (never after the
last one) and builds the final AssessmentReport.

Breaks are modeled as cancellable asyncio tasks so that restarting a session
never leaves a pending break timer behind.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Sequence

from cogassess.core.config import Settings
from cogassess.core.config import settings as default_settings
from cogassess.core.difficulty import (
    AdaptiveDifficultyManager,
    difficulty_settings_from_profile,
)
from cogassess.core.errors import InputValidationError
from cogassess.core.profile_analysis import CognitiveProfileAggregator
from cogassess.schemas.assessment import (
    AssessmentReport,
    Category,
    DifficultySettings,
    TestResult,
    TestSession,
    UserProfile,
)

logger = logging.getLogger(__name__)


class BatteryStep(str, Enum):
    """What the caller should do after a test completes."""

    NEXT = "next"
    BREAK = "break"
    COMPLETE = "complete"


@dataclass(frozen=True)
class TestDefinition:
    """One entry of a test battery."""

    id: str
    name: str
    description: str
    category: Category
    subtype: Optional[str] = None
    # Fixed difficulty; None takes it from the session's difficulty settings
    difficulty: Optional[float] = None


DEFAULT_BATTERY = (
    TestDefinition(
        id="visual-memory",
        name="Visual Memory",
        description="Memorize a pattern and pick it out among similar ones",
        category=Category.MEMORY,
        subtype="visual",
    ),
    TestDefinition(
        id="sequence-memory",
        name="Sequence Memory",
        description="Repeat a sequence of lit cells in order",
        category=Category.MEMORY,
        subtype="short_term",
    ),
    TestDefinition(
        id="reaction-time",
        name="Reaction Time",
        description="Respond as quickly as possible when the stimulus appears",
        category=Category.PROCESSING,
        subtype="reaction",
    ),
    TestDefinition(
        id="selective-attention",
        name="Selective Attention",
        description="Find every target hidden among distractors",
        category=Category.ATTENTION,
        subtype="selective",
    ),
    TestDefinition(
        id="sustained-attention",
        name="Sustained Attention",
        description="Press only for the target letters in a long stream",
        category=Category.ATTENTION,
        subtype="sustained",
    ),
    TestDefinition(
        id="focus",
        name="Focus",
        description="Respond only to numbers divisible by three",
        category=Category.EXECUTIVE,
        subtype="inhibition",
    ),
    TestDefinition(
        id="language",
        name="Language",
        description="Vocabulary, analogy and comprehension questions",
        category=Category.REASONING,
        subtype="verbal",
    ),
    TestDefinition(
        id="pattern-building",
        name="Pattern Building",
        description="Rebuild patterns by placing pieces in the right slots",
        category=Category.REASONING,
    ),
    TestDefinition(
        id="problem-solving",
        name="Problem Solving",
        description="Answer age-appropriate reasoning questions",
        category=Category.PROBLEM_SOLVING,
    ),
    TestDefinition(
        id="learning-grasp",
        name="Learning & Grasp",
        description="Catch falling targets before they land",
        category=Category.LEARNING,
    ),
)


class TestOrchestrator:
    """
    Sequences a battery for one user.

    Args:
        user_profile: Pre-test profile of the user
        tests: Ordered battery (defaults to DEFAULT_BATTERY)
        settings: Application settings (break cadence, scoring thresholds)
        difficulty_settings: Initial difficulty; derived from the profile when omitted
        adaptive: Keep one AdaptiveDifficultyManager per category and let it
            set the difficulty of later tests in that category
    """

    def __init__(
        self,
        user_profile: UserProfile,
        tests: Sequence[TestDefinition] = DEFAULT_BATTERY,
        *,
        settings: Optional[Settings] = None,
        difficulty_settings: Optional[DifficultySettings] = None,
        adaptive: bool = False,
    ):
        if not tests:
            raise ValueError("a battery needs at least one test")
        ids = [t.id for t in tests]
        if len(set(ids)) != len(ids):
            raise ValueError(f"duplicate test ids in battery: {ids}")

        self.user_profile = user_profile
        self.tests = tuple(tests)
        self.settings = settings or default_settings
        self.difficulty_settings = difficulty_settings or difficulty_settings_from_profile(
            user_profile
        )
        self.adaptive = adaptive

        self._index = 0
        self._results: Dict[str, TestResult] = {}
        self._sessions: List[TestSession] = []
        self._managers: Dict[Category, AdaptiveDifficultyManager] = {}
        self._on_break = False
        self._break_task: Optional["asyncio.Task[None]"] = None

    @property
    def current_test(self) -> Optional[TestDefinition]:
        if self.is_complete:
            return None
        return self.tests[self._index]

    @property
    def is_complete(self) -> bool:
        return self._index >= len(self.tests)

    @property
    def on_break(self) -> bool:
        return self._on_break

    @property
    def results(self) -> Dict[str, TestResult]:
        return dict(self._results)

    @property
    def sessions(self) -> List[TestSession]:
        return list(self._sessions)

    def difficulty_for(self, test: TestDefinition) -> float:
        if test.difficulty is not None:
            return test.difficulty
        if self.adaptive and test.category in self._managers:
            return self._managers[test.category].get_current_difficulty()
        return self.difficulty_settings.for_category(test.category)

    def complete_test(
        self,
        result: TestResult,
        *,
        started_at: Optional[datetime] = None,
        ended_at: Optional[datetime] = None,
    ) -> BatteryStep:
        """Record the result of the current test and advance."""
        if self.is_complete:
            raise InputValidationError("all tests in the battery are already complete")
        if self._on_break:
            raise InputValidationError("a break is in progress")

        test = self.tests[self._index]
        difficulty = self.difficulty_for(test)
        self._results[test.id] = result
        self._sessions.append(
            TestSession.from_result(
                test.id,
                test.category,
                result,
                subtype=test.subtype,
                difficulty=difficulty,
                started_at=started_at,
                ended_at=ended_at,
            )
        )

        if self.adaptive:
            manager = self._managers.get(test.category)
            if manager is None:
                manager = AdaptiveDifficultyManager(
                    self.user_profile.age, initial_difficulty=difficulty
                )
                self._managers[test.category] = manager
            manager.update_difficulty(result)

        self._index += 1
        completed = self._index
        logger.info(
            f"Completed test {completed}/{len(self.tests)} with score {result.score:.1f}",
            extra={"test_id": test.id, "category": test.category.value},
        )

        if self.is_complete:
            return BatteryStep.COMPLETE
        if completed % self.settings.BREAK_EVERY_N_TESTS == 0:
            self._on_break = True
            return BatteryStep.BREAK
        return BatteryStep.NEXT

    def start_break(self, duration: Optional[float] = None) -> "asyncio.Task[None]":
        """
        Start the pending break. Must be called from a running event loop.

        Args:
            duration: Seconds to rest; defaults to the session's break interval

        Returns:
            The task that ends the break when it finishes
        """
        if not self._on_break:
            raise InputValidationError("no break is pending")
        if self._break_task is not None and not self._break_task.done():
            return self._break_task
        seconds = self.difficulty_settings.break_interval if duration is None else duration
        self._break_task = asyncio.create_task(self._run_break(seconds))
        return self._break_task

    async def _run_break(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
        self._on_break = False
        logger.info(f"Break finished after {seconds}s")

    def end_break(self) -> None:
        """Resume immediately, cancelling any running break timer."""
        self._cancel_break()
        self._on_break = False

    def _cancel_break(self) -> None:
        if self._break_task is not None and not self._break_task.done():
            self._break_task.cancel()
        self._break_task = None

    def restart(self) -> None:
        """Discard all results and start over from the first test."""
        self._cancel_break()
        self._on_break = False
        self._index = 0
        self._results.clear()
        self._sessions.clear()
        self._managers.clear()
        logger.info("Battery restarted")

    def build_report(self, *, allow_partial: bool = False) -> AssessmentReport:
        """
        Aggregate the collected sessions.

        Raises:
            InputValidationError: If tests remain and allow_partial is False
        """
        if not self.is_complete and not allow_partial:
            raise InputValidationError(
                f"{len(self.tests) - self._index} tests still to complete"
            )
        aggregator = CognitiveProfileAggregator(
            self._sessions,
            self.user_profile,
            recommendation_threshold=self.settings.RECOMMENDATION_THRESHOLD,
            iq_weights=self.settings.IQ_SUBSCORE_WEIGHTS,
        )
        return aggregator.generate_report()
