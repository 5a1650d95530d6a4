"""
Question quiz: answer generated (or fallback) multiple-choice questions.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence

from cogassess.core.errors import InputValidationError
from cogassess.core.performance import (
    ComboTracker,
    accuracy,
    consistency,
    mean_or_zero,
)
from cogassess.core.tasks.base import BaseTask
from cogassess.schemas.assessment import Category, PerformanceMetrics, TestResult
from cogassess.schemas.content import GeneratedQuestion


@dataclass
class QuizAnswer:
    question_id: str
    answer: str
    correct: bool
    time_taken: float


class QuestionQuizTask(BaseTask):
    """Questions are asked in the given order; each must be shown before it is answered."""

    name = "question quiz"
    category = Category.PROBLEM_SOLVING
    subtype = None

    def __init__(
        self,
        questions: Sequence[GeneratedQuestion],
        difficulty: float = 1.0,
        rng=None,
    ):
        super().__init__(difficulty, rng)
        if not questions:
            raise ValueError("a quiz needs at least one question")
        self.questions = list(questions)
        self.combo = ComboTracker(bonus_step=1.0)
        self._answers: List[QuizAnswer] = []
        self._shown_at: Optional[float] = None

    @property
    def current_question(self) -> Optional[GeneratedQuestion]:
        if self.is_complete:
            return None
        return self.questions[len(self._answers)]

    @property
    def is_complete(self) -> bool:
        return len(self._answers) == len(self.questions)

    def show_question(self, timestamp: float) -> GeneratedQuestion:
        self._check_open()
        self._shown_at = timestamp
        return self.current_question

    def answer(self, choice: str, timestamp: float) -> bool:
        question = self.current_question
        if question is None:
            raise InputValidationError("all questions have been answered")
        if self._shown_at is None:
            raise InputValidationError("question answered before it was shown")
        if choice not in question.options:
            raise InputValidationError(f"'{choice}' is not an option")
        self._check_order(timestamp, self._shown_at)

        correct = choice == question.correct_answer
        if correct:
            self.combo.hit()
        else:
            self.combo.miss()
        self._answers.append(
            QuizAnswer(
                question_id=question.id,
                answer=choice,
                correct=correct,
                time_taken=timestamp - self._shown_at,
            )
        )
        self._shown_at = None
        return correct

    def _score(self) -> TestResult:
        correct = sum(1 for a in self._answers if a.correct)
        times = [a.time_taken for a in self._answers]
        acc = accuracy(correct, len(self.questions))
        return TestResult(
            score=acc * 100,
            metrics=PerformanceMetrics(
                accuracy=acc,
                speed=mean_or_zero(times),
                consistency=consistency(times),
                combo=float(self.combo.max_streak),
            ),
            details={
                "correct_answers": correct,
                "total_questions": len(self.questions),
                "completion_time": sum(times),
                "answers": [
                    {"question_id": a.question_id, "answer": a.answer, "correct": a.correct}
                    for a in self._answers
                ],
            },
        )
