"""
Tests for the pattern building task and its developmental IQ analysis.
"""
import math
import random
from unittest.mock import patch

import pytest

from cogassess.core.errors import InputValidationError
from cogassess.core.tasks.pattern_building import (
    MAX_COMPLEXITY,
    PatternAnalysis,
    PatternBuildingTask,
    PatternHistoryEntry,
    analyze_attempt,
    analyze_pattern_iq,
    developmental_stage,
    generate_pattern,
    get_age_pattern_range,
    pattern_complexity,
    pattern_confidence,
    score_attempt,
)


def _solve(task, timestamp, time_taken=2.0):
    attempt = task.start_attempt(timestamp)
    for slot, element in enumerate(attempt.pattern.elements):
        task.place(slot, element.id)
    return task.submit(timestamp + time_taken)


def _history_entry(score, age=25, seed=1):
    pattern = generate_pattern(5, age, random.Random(seed))
    analysis = analyze_attempt(pattern.elements, pattern, 3.0)
    return PatternHistoryEntry(
        type=pattern.type,
        complexity=pattern.complexity,
        score=score,
        element_count=len(pattern.elements),
        analysis=analysis,
    )


class TestAgePatternRange:
    """Tests for get_age_pattern_range()."""

    def test_young_children_only_get_sequences(self):
        age_range = get_age_pattern_range(4)
        assert (age_range.base_level, age_range.max_level) == (1, 3)
        assert age_range.pattern_types == ("sequence",)

    def test_young_adults_get_every_type(self):
        age_range = get_age_pattern_range(25)
        assert age_range.max_level == 10
        assert len(age_range.pattern_types) == 4

    def test_open_ended_last_bracket(self):
        age_range = get_age_pattern_range(80)
        assert (age_range.base_level, age_range.max_level) == (2, 8)


class TestGeneratePattern:
    """Tests for generate_pattern()."""

    def test_repeat_pattern_for_young_children(self, rng):
        pattern = generate_pattern(1, 4, rng)
        assert pattern.type == "sequence"
        assert pattern.rule == "Repeat the pattern"
        assert len(pattern.elements) == 3
        assert len({e.value for e in pattern.elements}) == 1

    def test_level_clamped_to_age_range(self, rng):
        assert generate_pattern(10, 4, rng).difficulty == 3
        assert generate_pattern(0, 25, rng).difficulty == 4

    def test_completion_pattern_has_gaps(self, rng):
        pattern = generate_pattern(7, 25, rng)
        assert pattern.type == "completion"
        assert [e.position for e in pattern.elements] == [0, 1, 3, 5, 6]
        values = [int(e.value) for e in pattern.elements]
        step = values[1] - values[0]
        assert values[2] == values[0] + 3 * step

    def test_complexity_capped(self, rng):
        for level in range(1, 11):
            assert generate_pattern(level, 25, rng).complexity <= MAX_COMPLEXITY

    def test_complexity_without_properties(self, rng):
        pattern = generate_pattern(1, 4, rng)
        # 1 + 0.5 * 3 elements + 1 for a sequence
        assert pattern_complexity(pattern.elements, "sequence") == pytest.approx(3.5)


class TestAttemptScoring:
    """Tests for analyze_attempt() and score_attempt()."""

    def test_exact_rebuild_scores_100(self, rng):
        pattern = generate_pattern(5, 25, rng)
        analysis = analyze_attempt(pattern.elements, pattern, 1.0)
        n = len(pattern.elements)
        assert (analysis.correct_positions, analysis.correct_types, analysis.correct_values) == (
            n, n, n,
        )
        assert analysis.property_accuracy == 1.0
        assert score_attempt(analysis, pattern) == 100

    def test_no_agreement_scores_zero(self, rng):
        pattern = generate_pattern(5, 25, rng)
        analysis = PatternAnalysis(0, 0, 0, 0.0, 1.0, pattern.complexity)
        assert score_attempt(analysis, pattern) == 0

    def test_partial_agreement_without_bonuses(self, rng):
        pattern = generate_pattern(1, 4, rng)
        # Only positions right: 0.3 agreement, no time bonus
        analysis = PatternAnalysis(3, 0, 0, 0.0, 60.0, pattern.complexity)
        expected = 100 * 0.3 * (1 + pattern.complexity / 10 * 0.3)
        assert score_attempt(analysis, pattern) == round(expected)


class TestPatternIQAnalysis:
    """Tests for the developmental IQ analysis."""

    def test_empty_history_maps_to_70(self):
        analysis = analyze_pattern_iq([], 25)
        assert analysis.score == 70
        assert analysis.confidence == pytest.approx(0.5)
        assert analysis.percentile == 2
        assert analysis.developmental_stage == "Young Adult"
        assert analysis.age_adjusted is True

    def test_components_reported(self):
        history = [_history_entry(100, seed=s) for s in range(3)]
        analysis = analyze_pattern_iq(history, 25)
        assert set(analysis.components) == {"fluid", "memory", "processing", "spatial"}
        assert analysis.score > 70

    def test_confidence_scales_with_attempts(self):
        history = [_history_entry(90), _history_entry(90, seed=2)]
        # consistency 1.0 x 2/5 attempts x development factor 1.0
        assert pattern_confidence(history, 1.0) == pytest.approx(0.4)

    @pytest.mark.parametrize(
        "age,stage",
        [(5, "Early Childhood"), (9, "Middle Childhood"), (15, "Adolescence"), (60, "Mature Adult")],
    )
    def test_developmental_stage(self, age, stage):
        assert developmental_stage(age) == stage


class TestPatternBuildingTask:
    """Tests for PatternBuildingTask."""

    def test_tray_contains_pattern_and_distractors(self, rng):
        task = PatternBuildingTask(2, 25, rng=rng)
        attempt = task.start_attempt(0.0)
        distractors = [p for p in attempt.pieces if p.position is None]
        assert len(distractors) == math.floor(attempt.level * 1.5)
        assert len(attempt.pieces) == len(attempt.pattern.elements) + len(distractors)
        assert attempt.slots == [None] * len(attempt.pattern.elements)

    def test_all_patterns_solved(self, rng):
        task = PatternBuildingTask(1, 25, rng=rng)
        scores = [_solve(task, float(i * 10)) for i in range(5)]
        assert scores == [100] * 5
        assert task.is_complete

        result = task.finalize()
        assert result.score == 100
        assert result.metrics.accuracy == 1.0
        assert result.metrics.speed == pytest.approx(2.0)
        assert result.details["patterns_solved"] == 5
        assert result.details["completion_time"] == pytest.approx(10.0)
        adaptive = result.details["adaptive_metrics"]
        assert len(adaptive["performance_history"]) == 5
        assert adaptive["final_difficulty"] >= 1
        assert "iq_analysis" in result.details

    def test_unsolved_attempts_are_not_recorded(self, rng):
        task = PatternBuildingTask(1, 25, rng=rng, max_attempts=2)
        with patch(
            "cogassess.core.tasks.pattern_building.score_attempt", return_value=50
        ):
            assert _solve(task, 0.0) == 50
            assert _solve(task, 10.0) == 50

        result = task.finalize()
        assert task.history == []
        assert result.score == 0
        assert result.metrics.accuracy == 0.0
        assert result.metrics.combo is None
        assert result.details["attempts"] == 2
        assert result.details["patterns_solved"] == 0

    def test_place_moves_a_piece(self, rng):
        task = PatternBuildingTask(1, 25, rng=rng)
        attempt = task.start_attempt(0.0)
        piece = attempt.pattern.elements[0]
        task.place(0, piece.id)
        task.place(1, piece.id)
        assert attempt.slots[0] is None
        assert attempt.slots[1].id == piece.id
        task.clear(1)
        assert attempt.slots[1] is None

    def test_submit_requires_every_slot(self, rng):
        task = PatternBuildingTask(1, 25, rng=rng)
        attempt = task.start_attempt(0.0)
        task.place(0, attempt.pattern.elements[0].id)
        with pytest.raises(InputValidationError):
            task.submit(5.0)

    def test_invalid_slot_and_piece(self, rng):
        task = PatternBuildingTask(1, 25, rng=rng)
        attempt = task.start_attempt(0.0)
        with pytest.raises(InputValidationError):
            task.place(len(attempt.slots), attempt.pattern.elements[0].id)
        with pytest.raises(InputValidationError):
            task.place(0, "no-such-piece")

    def test_one_attempt_at_a_time(self, rng):
        task = PatternBuildingTask(1, 25, rng=rng)
        task.start_attempt(0.0)
        with pytest.raises(InputValidationError):
            task.start_attempt(1.0)

    def test_no_attempts_past_the_limit(self, rng):
        task = PatternBuildingTask(1, 25, rng=rng, max_attempts=1)
        _solve(task, 0.0)
        with pytest.raises(InputValidationError):
            task.start_attempt(10.0)

    def test_max_attempts_must_be_positive(self):
        with pytest.raises(ValueError):
            PatternBuildingTask(1, 25, max_attempts=0)
