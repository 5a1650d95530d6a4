"""
Language: vocabulary, analogy and comprehension questions.
"""
from typing import List, Optional, Sequence

from cogassess.core.tasks.question_quiz import QuestionQuizTask
from cogassess.schemas.assessment import Category, TestResult
from cogassess.schemas.content import ContentDomain, DifficultyLabel, GeneratedQuestion
from cogassess.services.question_bank import fallback_questions

BASE_QUESTIONS = 5


def language_questions(difficulty: float) -> List[GeneratedQuestion]:
    """Five base items, one more from difficulty 2 and another from difficulty 3."""
    extra = int(difficulty >= 2) + int(difficulty >= 3)
    label = (DifficultyLabel.EASY, DifficultyLabel.MEDIUM, DifficultyLabel.HARD)[extra]
    return fallback_questions(ContentDomain.LANGUAGE, label, BASE_QUESTIONS + extra)


class LanguageTask(QuestionQuizTask):
    """
    Score is the share of correct answers. Speed is the mean time per
    question and consistency is taken over those times.
    """

    name = "language"
    category = Category.REASONING
    subtype = "verbal"

    def __init__(
        self,
        difficulty: float,
        rng=None,
        questions: Optional[Sequence[GeneratedQuestion]] = None,
    ):
        if questions is None:
            questions = language_questions(difficulty)
        super().__init__(questions, difficulty, rng)

    def _score(self) -> TestResult:
        result = super()._score()
        times = [a.time_taken for a in self._answers]
        details = dict(result.details, time_per_question=times)
        return result.model_copy(update={"details": details})
