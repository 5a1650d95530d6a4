"""
Tests for the selective attention task.
"""
import pytest

from cogassess.core.errors import InputValidationError
from cogassess.core.tasks.selective_attention import (
    SelectiveAttentionTask,
    distractor_count,
    target_count,
)


def _targets(search_round):
    return [item.id for item in search_round.items if item.is_target]


def _distractor(search_round):
    return next(item.id for item in search_round.items if not item.is_target)


class TestItemCounts:
    """Tests for target_count() and distractor_count()."""

    @pytest.mark.parametrize("difficulty,expected", [(0, 3), (2, 4), (10, 8), (20, 8)])
    def test_target_count(self, difficulty, expected):
        assert target_count(difficulty) == expected

    @pytest.mark.parametrize("difficulty,expected", [(0, 5), (2.5, 10), (7.5, 20), (12, 20)])
    def test_distractor_count(self, difficulty, expected):
        assert distractor_count(difficulty) == expected


class TestGenerateItems:
    """Tests for generate_items()."""

    def test_counts_and_unique_ids(self, rng):
        task = SelectiveAttentionTask(2, rng=rng)
        items = task.generate_items()
        assert len(items) == 4 + 9
        assert sum(item.is_target for item in items) == 4
        assert [item.id for item in items] == list(range(len(items)))

    def test_distractors_never_look_like_targets(self, rng):
        task = SelectiveAttentionTask(4, rng=rng)
        items = task.generate_items()
        target = next(item for item in items if item.is_target)
        for item in items:
            if not item.is_target:
                assert (item.shape, item.color) != (target.shape, target.color)


class TestSelectiveAttentionScoring:
    """Tests for click scoring and the final result."""

    def test_perfect_search(self, rng):
        task = SelectiveAttentionTask(0, rng=rng)
        t = 0.0
        for _ in range(3):
            search_round = task.start_round(t)
            for item_id in _targets(search_round):
                t += 1.0
                assert task.click(item_id, t) is True
            assert search_round.all_found
            assert search_round.ended_at == t

        result = task.finalize()
        assert result.score == 100
        assert result.metrics.accuracy == 1.0
        assert result.metrics.speed == pytest.approx(1.0)
        assert result.details["points"] == 90
        assert result.details["attention_lapses"] == 0

    def test_wrong_click_penalty(self, rng):
        task = SelectiveAttentionTask(0, rng=rng, rounds=1)
        search_round = task.start_round(0.0)
        targets = _targets(search_round)

        task.click(targets[0], 1.0)
        assert task.click(_distractor(search_round), 2.0) is False
        assert task.points == 5
        task.click(targets[1], 3.0)
        task.click(targets[2], 4.0)

        result = task.finalize()
        assert result.details["points"] == 25
        assert result.details["mistakes"] == 1
        assert result.metrics.accuracy == pytest.approx(25 / 30)
        assert result.score == pytest.approx(25 / 30 * 100)

    def test_points_never_negative(self, rng):
        task = SelectiveAttentionTask(0, rng=rng, rounds=1)
        search_round = task.start_round(0.0)
        task.click(_distractor(search_round), 1.0)
        assert task.points == 0

    def test_repeat_click_on_found_target_is_a_mistake(self, rng):
        task = SelectiveAttentionTask(0, rng=rng, rounds=1)
        search_round = task.start_round(0.0)
        target = _targets(search_round)[0]
        task.click(target, 1.0)
        assert task.click(target, 2.0) is False
        assert task.mistakes == 1

    def test_round_ended_early_counts_lapses(self, rng):
        task = SelectiveAttentionTask(0, rng=rng, rounds=1)
        search_round = task.start_round(0.0)
        task.click(_targets(search_round)[0], 2.0)
        task.end_round(10.0)

        result = task.finalize()
        assert result.details["targets_found"] == 1
        assert result.details["attention_lapses"] == 2
        assert result.details["completion_time"] == pytest.approx(10.0)
        assert result.score == pytest.approx(10 / 30 * 100)

    def test_nothing_scored_gives_zero_accuracy(self, rng):
        task = SelectiveAttentionTask(0, rng=rng, rounds=1)
        task.start_round(0.0)
        task.end_round(5.0)
        result = task.finalize()
        assert result.metrics.accuracy == 0.0
        assert result.score == 0.0


class TestSelectiveAttentionValidation:
    """Tests for rejected interactions."""

    def test_click_without_round_raises(self, rng):
        task = SelectiveAttentionTask(0, rng=rng)
        with pytest.raises(InputValidationError):
            task.click(0, 1.0)

    def test_unknown_item_raises(self, rng):
        task = SelectiveAttentionTask(0, rng=rng)
        task.start_round(0.0)
        with pytest.raises(InputValidationError):
            task.click(999, 1.0)

    def test_cannot_overlap_rounds(self, rng):
        task = SelectiveAttentionTask(0, rng=rng)
        task.start_round(0.0)
        with pytest.raises(InputValidationError):
            task.start_round(1.0)

    def test_clicks_must_be_ordered(self, rng):
        task = SelectiveAttentionTask(0, rng=rng)
        search_round = task.start_round(5.0)
        with pytest.raises(InputValidationError):
            task.click(_targets(search_round)[0], 4.0)
