"""
Tests for the focus (go/no-go) task.
"""
import pytest

from cogassess.core.errors import InputValidationError
from cogassess.core.tasks.focus import FocusTask, display_time, response_consistency


def _play(task, decide):
    t = 0.0
    for i in range(task.rounds):
        trial = task.present(t)
        task.respond(decide(i, trial), t + 0.5)
        t += 2.0


class TestFocusHelpers:
    """Tests for display_time() and response_consistency()."""

    @pytest.mark.parametrize("difficulty,expected", [(0, 2.0), (2.5, 1.5), (5, 1.0), (9, 1.0)])
    def test_display_time(self, difficulty, expected):
        assert display_time(difficulty) == pytest.approx(expected)

    def test_consistency_of_stable_outcomes(self):
        assert response_consistency([True, True, True]) == 1.0

    def test_consistency_counts_flips(self):
        assert response_consistency([True, True, False]) == pytest.approx(0.5)
        assert response_consistency([True, False, True]) == 0.0

    def test_consistency_under_two_outcomes(self):
        assert response_consistency([]) == 1.0
        assert response_consistency([False]) == 1.0


class TestFocusTask:
    """Tests for FocusTask scoring."""

    def test_target_is_divisible_by_three(self, rng):
        task = FocusTask(1, rng=rng)
        trial = task.present(0.0)
        assert 1 <= trial.value <= 9
        assert trial.is_target == (trial.value % 3 == 0)

    def test_perfect_run_with_streak_bonus(self, rng):
        task = FocusTask(1, rng=rng)
        _play(task, lambda i, trial: trial.is_target)

        result = task.finalize()
        assert result.score == 100
        assert result.metrics.accuracy == 1.0
        assert result.metrics.consistency == 1.0
        assert result.metrics.combo == 30
        # 4 plain hits, then 26 with the +5 bonus
        assert result.details["points"] == 4 * 10 + 26 * 15
        assert result.details["false_alarms"] == 0
        assert result.details["attention_lapses"] == 0

    def test_always_wrong(self, rng):
        task = FocusTask(1, rng=rng, rounds=12)
        _play(task, lambda i, trial: not trial.is_target)

        result = task.finalize()
        assert result.score == 0
        assert result.details["points"] == 0
        targets = sum(t.is_target for t in task._trials)
        assert result.details["attention_lapses"] == targets
        assert result.details["false_alarms"] == 12 - targets

    def test_alternating_outcomes_are_inconsistent(self, rng):
        task = FocusTask(1, rng=rng, rounds=6)
        _play(task, lambda i, trial: trial.is_target if i % 2 == 0 else not trial.is_target)

        result = task.finalize()
        assert result.metrics.accuracy == pytest.approx(0.5)
        assert result.metrics.consistency == 0.0
        assert result.metrics.combo == 1

    def test_speed_uses_press_times_only(self, rng):
        task = FocusTask(1, rng=rng, rounds=10)
        _play(task, lambda i, trial: True)
        assert task.finalize().metrics.speed == pytest.approx(0.5)

    def test_streak_resets_on_error(self, rng):
        task = FocusTask(1, rng=rng, rounds=3)
        trial = task.present(0.0)
        task.respond(trial.is_target, 0.5)
        trial = task.present(1.0)
        task.respond(not trial.is_target, 1.5)
        assert task.streak == 0
        assert task.max_streak == 1

    def test_respond_without_stimulus_raises(self, rng):
        task = FocusTask(1, rng=rng)
        with pytest.raises(InputValidationError):
            task.respond(True, 1.0)

    def test_present_requires_resolution(self, rng):
        task = FocusTask(1, rng=rng)
        task.present(0.0)
        with pytest.raises(InputValidationError):
            task.present(1.0)
