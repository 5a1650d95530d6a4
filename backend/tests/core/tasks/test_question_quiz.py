"""
Tests for the question quiz task.
"""
import pytest

from cogassess.core.errors import InputValidationError
from cogassess.core.tasks.question_quiz import QuestionQuizTask
from cogassess.schemas.content import ContentDomain, DifficultyLabel, GeneratedQuestion
from cogassess.services.question_bank import fallback_questions


def _question(qid, answer="B"):
    return GeneratedQuestion(
        id=qid, prompt=f"Question {qid}", options=["A", "B", "C"], correct_answer=answer
    )


class TestQuestionQuizTask:
    """Tests for QuestionQuizTask."""

    def setup_method(self):
        self.questions = [_question("q1"), _question("q2"), _question("q3", answer="C")]

    def test_all_correct(self):
        task = QuestionQuizTask(self.questions)
        for i, question in enumerate(self.questions):
            task.show_question(float(i * 10))
            assert task.answer(question.correct_answer, float(i * 10 + 4)) is True

        result = task.finalize()
        assert result.score == 100
        assert result.metrics.accuracy == 1.0
        assert result.metrics.speed == pytest.approx(4.0)
        assert result.metrics.combo == 3
        assert result.details["correct_answers"] == 3
        assert result.details["completion_time"] == pytest.approx(12.0)

    def test_mixed_answers(self):
        task = QuestionQuizTask(self.questions)
        for i, choice in enumerate(["B", "A", "C"]):
            task.show_question(float(i))
            task.answer(choice, float(i) + 1.0)

        result = task.finalize()
        assert result.metrics.accuracy == pytest.approx(2 / 3)
        assert result.score == pytest.approx(200 / 3)
        assert result.metrics.combo == 1
        assert [a["correct"] for a in result.details["answers"]] == [True, False, True]

    def test_current_question_advances(self):
        task = QuestionQuizTask(self.questions)
        assert task.current_question.id == "q1"
        task.show_question(0.0)
        task.answer("B", 1.0)
        assert task.current_question.id == "q2"

    def test_answer_before_show_raises(self):
        task = QuestionQuizTask(self.questions)
        with pytest.raises(InputValidationError):
            task.answer("B", 1.0)

    def test_answer_must_be_an_option(self):
        task = QuestionQuizTask(self.questions)
        task.show_question(0.0)
        with pytest.raises(InputValidationError):
            task.answer("Z", 1.0)

    def test_each_question_shown_once_per_answer(self):
        task = QuestionQuizTask(self.questions)
        task.show_question(0.0)
        task.answer("B", 1.0)
        with pytest.raises(InputValidationError):
            task.answer("B", 2.0)

    def test_empty_quiz_rejected(self):
        with pytest.raises(ValueError):
            QuestionQuizTask([])

    def test_runs_on_fallback_bank(self):
        questions = fallback_questions(ContentDomain.PROBLEM_SOLVING, DifficultyLabel.EASY, 3)
        task = QuestionQuizTask(questions)
        for i, question in enumerate(questions):
            task.show_question(float(i))
            task.answer(question.correct_answer, float(i) + 2.0)
        assert task.finalize().score == 100
