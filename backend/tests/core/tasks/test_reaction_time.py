"""
Tests for the reaction time task.
"""
import pytest

from cogassess.core.errors import InputValidationError
from cogassess.core.tasks.reaction_time import (
    ReactionBand,
    ReactionThresholds,
    ReactionTimeTask,
)


def _run(task, reaction_seconds):
    t = 0.0
    for reaction in reaction_seconds:
        trial = task.start_trial(t)
        if reaction is None:
            task.respond(trial.started_at)
        else:
            task.respond(trial.stimulus_at + reaction)
        t = trial.stimulus_at + 1.0


class TestReactionThresholds:
    """Tests for the difficulty-dependent band thresholds."""

    def test_base_thresholds(self):
        thresholds = ReactionThresholds.for_difficulty(0)
        assert (thresholds.excellent, thresholds.good, thresholds.average) == (400, 600, 800)

    def test_thresholds_tighten_with_floors(self):
        thresholds = ReactionThresholds.for_difficulty(10)
        assert (thresholds.excellent, thresholds.good, thresholds.average) == (200, 300, 500)

    @pytest.mark.parametrize(
        "reaction_ms,band",
        [
            (250, ReactionBand.EXCELLENT),
            (400, ReactionBand.EXCELLENT),
            (500, ReactionBand.GOOD),
            (700, ReactionBand.AVERAGE),
            (900, ReactionBand.SLOW),
        ],
    )
    def test_classify(self, reaction_ms, band):
        assert ReactionThresholds.for_difficulty(0).classify(reaction_ms) == band


class TestReactionTimeTask:
    """Tests for ReactionTimeTask."""

    def test_stimulus_delay_bounded_by_difficulty(self, rng):
        task = ReactionTimeTask(2, rng=rng)
        delays = [task.stimulus_delay() for _ in range(50)]
        assert all(0 <= d < 4.0 for d in delays)

    def test_fast_consistent_responses(self, rng):
        task = ReactionTimeTask(1, rng=rng)
        _run(task, [0.25] * 5)

        result = task.finalize()
        assert result.metrics.accuracy == 1.0
        assert result.metrics.speed == pytest.approx(0.25)
        # (1.0 * 0.6 + (1 - 0.25) * 0.4) * 100
        assert result.score == pytest.approx(90.0)
        assert result.details["average_ms"] == pytest.approx(250.0)
        assert result.details["bands"] == ["excellent"] * 5
        assert result.details["false_starts"] == 0

    def test_slow_average_removes_speed_term(self, rng):
        task = ReactionTimeTask(1, rng=rng)
        _run(task, [1.5] * 5)
        result = task.finalize()
        assert result.score == pytest.approx(60.0)

    def test_false_start_counts_as_miss(self, rng):
        task = ReactionTimeTask(1, rng=rng)
        _run(task, [None, 0.3, 0.3, 0.3, 0.3])

        result = task.finalize()
        assert result.metrics.accuracy == pytest.approx(0.8)
        assert result.details["false_starts"] == 1
        assert result.details["attention_lapses"] == 1
        assert result.details["bands"][0] == "miss"
        assert len(result.details["reaction_times_ms"]) == 4

    def test_all_false_starts(self, rng):
        task = ReactionTimeTask(1, rng=rng)
        _run(task, [None] * 5)

        result = task.finalize()
        assert result.score == 0
        assert result.metrics.speed == 0
        assert result.details["best_ms"] is None

    def test_best_time_reported(self, rng):
        task = ReactionTimeTask(1, rng=rng)
        _run(task, [0.4, 0.2, 0.3, 0.5, 0.35])
        assert task.finalize().details["best_ms"] == pytest.approx(200.0, abs=0.1)

    def test_respond_without_trial_raises(self, rng):
        task = ReactionTimeTask(1, rng=rng)
        with pytest.raises(InputValidationError):
            task.respond(1.0)

    def test_new_trial_requires_response(self, rng):
        task = ReactionTimeTask(1, rng=rng)
        task.start_trial(0.0)
        with pytest.raises(InputValidationError):
            task.start_trial(5.0)

    def test_no_trials_after_completion(self, rng):
        task = ReactionTimeTask(1, rng=rng, trials=1)
        _run(task, [0.3])
        with pytest.raises(InputValidationError):
            task.start_trial(100.0)
