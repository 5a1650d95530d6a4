"""
Pattern building: rebuild a rule-based pattern by placing pieces into slots.

Each attempt is scored on four agreements between the placed pieces and the
target pattern (position 0.3, type 0.2, value 0.3, properties 0.2), then
boosted by a time bonus against ``5 + complexity`` seconds and by the
pattern's complexity. Attempts scoring above 80 count as solved: they are
added to the pattern history and fed to an AdaptiveDifficultyManager that
sets the level of the next pattern.

The task also produces its own developmental IQ analysis from the solved
patterns. It is separate from cogassess.core.scoring.IQEstimator and uses a
different confidence formula (consistency x attempt coverage x development
factor).
"""
import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from cogassess.core.difficulty import AdaptiveDifficultyManager
from cogassess.core.errors import InputValidationError
from cogassess.core.performance import consistency, mean_or_zero
from cogassess.core.scoring import iq_classification, iq_to_percentile
from cogassess.core.tasks.base import BaseTask
from cogassess.schemas.assessment import Category, PerformanceMetrics, TestResult

logger = logging.getLogger(__name__)

SHAPES = ("■", "●", "▲", "◆", "★", "✦", "❋", "✿")
COLORS = ("blue", "red", "green", "yellow", "purple", "pink", "indigo", "cyan")
NUMBERS = tuple(str(n) for n in range(1, 10))
ROTATIONS = (0, 45, 90, 135, 180, 225, 270, 315)
SIZES = (1.0, 1.25, 1.5, 1.75, 2.0)

PATTERN_TYPES = ("sequence", "transformation", "combination", "completion")
TYPE_COMPLEXITY = {"sequence": 1, "transformation": 2, "combination": 3, "completion": 4}
PATTERN_TYPE_WEIGHTS = {
    "sequence": 0.8,
    "transformation": 0.9,
    "combination": 1.0,
    "completion": 1.2,
}

MAX_ATTEMPTS = 5
MAX_ELEMENTS = 8
MAX_COMPLEXITY = 10.0
SOLVED_THRESHOLD = 80
DISTRACTORS_PER_LEVEL = 1.5

POSITION_WEIGHT = 0.3
TYPE_WEIGHT = 0.2
VALUE_WEIGHT = 0.3
PROPERTY_WEIGHT = 0.2
PROPERTY_TOLERANCE = 0.1

# The 0-100 composite is mapped linearly so that 50 -> 100, 0 -> 70, 100 -> 130
COMPOSITE_CENTER = 50.0
COMPOSITE_TO_IQ = 0.6


@dataclass(frozen=True)
class AgePatternRange:
    base_level: float
    max_level: float
    pattern_types: Tuple[str, ...]


# (exclusive upper age bound, range); the last entry catches everything else
_AGE_PATTERN_RANGES: Tuple[Tuple[Optional[int], AgePatternRange], ...] = (
    (6, AgePatternRange(1, 3, PATTERN_TYPES[:1])),
    (12, AgePatternRange(2, 5, PATTERN_TYPES[:2])),
    (18, AgePatternRange(3, 7, PATTERN_TYPES[:3])),
    (30, AgePatternRange(4, 10, PATTERN_TYPES)),
    (50, AgePatternRange(3, 10, PATTERN_TYPES)),
    (None, AgePatternRange(2, 8, PATTERN_TYPES[:3])),
)


def get_age_pattern_range(age: int) -> AgePatternRange:
    for upper, age_range in _AGE_PATTERN_RANGES:
        if upper is None or age < upper:
            return age_range
    raise AssertionError("unreachable: last bracket is open-ended")


@dataclass(frozen=True)
class PatternPiece:
    """A draggable piece. Distractors have no position."""

    id: str
    type: str  # shape, color, number, rotation or size
    value: str
    position: Optional[int]
    rotation: Optional[int] = None
    size: Optional[float] = None
    opacity: Optional[float] = None

    def property_values(self) -> Dict[str, Optional[float]]:
        return {"rotation": self.rotation, "size": self.size, "opacity": self.opacity}


@dataclass(frozen=True)
class Pattern:
    elements: Tuple[PatternPiece, ...]
    rule: str
    type: str
    difficulty: float
    complexity: float


def pattern_complexity(elements: Sequence[PatternPiece], pattern_type: str) -> float:
    """1 + 0.5 per element + type bonus + 0.5 per non-zero property, capped at 10."""
    complexity = 1.0 + 0.5 * len(elements) + TYPE_COMPLEXITY[pattern_type]
    for element in elements:
        for value in element.property_values().values():
            if value:
                complexity += 0.5
    return min(MAX_COMPLEXITY, complexity)


def generate_pattern(difficulty: float, age: int, rng) -> Pattern:
    """Build an age-appropriate pattern for the given level."""
    age_range = get_age_pattern_range(age)
    level = min(age_range.max_level, max(age_range.base_level, difficulty))
    count = min(3 + math.floor(level / 2), MAX_ELEMENTS)
    type_index = min(math.floor((level - 1) / 2), len(age_range.pattern_types) - 1)
    pattern_type = age_range.pattern_types[type_index]

    elements: List[PatternPiece] = []
    if pattern_type == "sequence" and age < 6:
        shape = rng.choice(SHAPES)
        rule = "Repeat the pattern"
        elements = [PatternPiece(f"element-{i}", "shape", shape, i) for i in range(count)]
    elif pattern_type == "sequence" and rng.random() > 0.5:
        start = rng.randint(1, 5)
        factor = rng.randint(2, 3)
        operation = rng.choice(("multiply", "power")) if level > 1 else "add"
        if operation == "multiply":
            rule = f"Multiply each number by {factor}"
            values = [start * factor**i for i in range(count)]
        elif operation == "power":
            rule = "Square each number"
            values = [(start + i) ** 2 for i in range(count)]
        else:
            rule = f"Add {factor} to each number"
            values = [start + factor * i for i in range(count)]
        elements = [
            PatternPiece(f"element-{i}", "number", str(v), i) for i, v in enumerate(values)
        ]
    elif pattern_type == "sequence":
        shape = rng.choice(SHAPES)
        base_rotation = rng.choice(ROTATIONS)
        rule = "Rotate shape by 45° clockwise"
        elements = [
            PatternPiece(
                f"element-{i}", "shape", shape, i,
                rotation=(base_rotation + 45 * i) % 360, size=1.0,
            )
            for i in range(count)
        ]
    elif pattern_type == "transformation":
        shape = rng.choice(SHAPES)
        grow = rng.random() > 0.5
        rule = "Increase size by 25% each step" if grow else "Decrease opacity by 20% each step"
        elements = [
            PatternPiece(
                f"element-{i}", "shape", shape, i,
                size=1 + i * 0.25 if grow else 1.0,
                opacity=1.0 if grow else max(0.0, round(1 - i * 0.2, 2)),
            )
            for i in range(count)
        ]
    elif pattern_type == "combination":
        shape = rng.choice(SHAPES)
        rule = "Match shape, color, and size pattern"
        elements = [
            PatternPiece(
                f"element-{i}", "shape", shape, i,
                rotation=(i * 45) % 360, size=1 + (i % 3) * 0.25, opacity=1.0,
            )
            for i in range(count)
        ]
    else:
        # completion: arithmetic run with gaps to predict
        length = count + 2
        start = rng.randint(1, 5)
        step = rng.randint(1, 4)
        missing = {math.floor(length * 0.3), math.floor(length * 0.6), length - 1}
        rule = "Complete the pattern by predicting missing elements"
        elements = [
            PatternPiece(f"element-{i}", "number", str(start + step * i), i)
            for i in range(length)
            if i not in missing
        ]

    return Pattern(
        elements=tuple(elements),
        rule=rule,
        type=pattern_type,
        difficulty=level,
        complexity=pattern_complexity(elements, pattern_type),
    )


def available_piece_types(features: Sequence[str]) -> List[str]:
    types = ["shape", "color"]
    if "medium_patterns" in features:
        types.append("number")
    if "complex_patterns" in features:
        types.extend(["rotation", "size"])
    return types


def random_value_for_type(piece_type: str, rng) -> str:
    pools = {
        "shape": SHAPES,
        "color": COLORS,
        "number": NUMBERS,
        "rotation": ROTATIONS,
        "size": SIZES,
    }
    return str(rng.choice(pools[piece_type]))


@dataclass(frozen=True)
class PatternAnalysis:
    correct_positions: int
    correct_types: int
    correct_values: int
    property_accuracy: float
    time_taken: float  # seconds
    complexity: float


def _property_matches(placed: PatternPiece, target: PatternPiece) -> Tuple[int, int]:
    matches = total = 0
    placed_values = placed.property_values()
    for name, expected in target.property_values().items():
        if expected is None:
            continue
        total += 1
        actual = placed_values[name]
        if actual is None:
            continue
        if name == "rotation":
            matches += int(actual == expected)
        else:
            matches += int(abs(actual - expected) < PROPERTY_TOLERANCE)
    return matches, total


def analyze_attempt(
    placed: Sequence[PatternPiece], pattern: Pattern, time_taken: float
) -> PatternAnalysis:
    """Compare placed pieces slot by slot with the target pattern."""
    positions = types = values = 0
    property_scores = []
    for piece, target in zip(placed, pattern.elements):
        positions += int(piece.position == target.position)
        types += int(piece.type == target.type)
        values += int(piece.value == target.value)
        matches, total = _property_matches(piece, target)
        if total:
            property_scores.append(matches / total)

    return PatternAnalysis(
        correct_positions=positions,
        correct_types=types,
        correct_values=values,
        property_accuracy=mean_or_zero(property_scores) if property_scores else 1.0,
        time_taken=time_taken,
        complexity=pattern.complexity,
    )


def score_attempt(analysis: PatternAnalysis, pattern: Pattern) -> int:
    """Weighted agreement with time and complexity bonuses, clamped to 0-100."""
    n = len(pattern.elements)
    agreement = (
        analysis.correct_positions / n * POSITION_WEIGHT
        + analysis.correct_types / n * TYPE_WEIGHT
        + analysis.correct_values / n * VALUE_WEIGHT
        + analysis.property_accuracy * PROPERTY_WEIGHT
    )
    expected_time = 5.0 + pattern.complexity
    time_bonus = max(0.0, 1 - analysis.time_taken / expected_time)
    complexity_bonus = pattern.complexity / 10

    final = 100 * agreement * (1 + time_bonus * 0.2 + complexity_bonus * 0.3)
    return int(round(max(0.0, min(final, 100.0))))


@dataclass(frozen=True)
class PatternHistoryEntry:
    type: str
    complexity: float
    score: int
    element_count: int
    analysis: PatternAnalysis


# Cognitive assessment over solved patterns


def speed_trend(history: Sequence[PatternHistoryEntry]) -> float:
    if len(history) < 2:
        return 1.0
    times = [h.analysis.time_taken for h in history]
    trend = sum(b - a for a, b in zip(times, times[1:])) / (len(times) - 1)
    return max(0.0, 1 - trend)


def pattern_recognition_score(history: Sequence[PatternHistoryEntry]) -> float:
    total = sum(
        (h.analysis.correct_positions + h.analysis.correct_values)
        / max(1, h.element_count)
        / 2
        * (h.complexity / 10)
        for h in history
    )
    return total / max(1, len(history))


def spatial_score(history: Sequence[PatternHistoryEntry]) -> float:
    total = sum(
        h.analysis.property_accuracy * (h.complexity / 10)
        for h in history
        if h.type in ("transformation", "combination")
    )
    return total / max(1, len(history))


def logical_score(history: Sequence[PatternHistoryEntry]) -> float:
    total = sum(
        (h.score / 100) * (h.complexity / 10)
        for h in history
        if h.type in ("sequence", "completion")
    )
    return total / max(1, len(history))


def working_memory_score(history: Sequence[PatternHistoryEntry]) -> float:
    total = 0.0
    for h in history:
        efficiency = max(0.0, 1 - h.analysis.time_taken / (10 + h.complexity))
        total += (h.score / 100) * efficiency
    return total / max(1, len(history))


def fluid_intelligence_score(history: Sequence[PatternHistoryEntry]) -> float:
    total = sum(
        (h.score / 100) * (h.complexity / 10) * PATTERN_TYPE_WEIGHTS[h.type]
        for h in history
    )
    return total / max(1, len(history))


def processing_speed_score(history: Sequence[PatternHistoryEntry]) -> float:
    return mean_or_zero(
        max(0.0, 1 - h.analysis.time_taken / (5.0 + h.complexity)) for h in history
    )


# Developmental IQ analysis


@dataclass(frozen=True)
class AgeNormalization:
    development_factor: float
    speed_adjustment: float
    complexity_weight: float


_AGE_NORMALIZATION: Tuple[Tuple[Optional[int], AgeNormalization], ...] = (
    (12, AgeNormalization(1.15, 1.2, 0.85)),
    (18, AgeNormalization(1.1, 1.1, 0.95)),
    (30, AgeNormalization(1.0, 1.0, 1.0)),
    (50, AgeNormalization(0.95, 1.1, 1.05)),
    (None, AgeNormalization(0.9, 1.2, 1.1)),
)

_DEVELOPMENTAL_STAGES = (
    (6, "Early Childhood"),
    (12, "Middle Childhood"),
    (18, "Adolescence"),
    (30, "Young Adult"),
    (50, "Middle Adult"),
)


def get_age_normalization(age: int) -> AgeNormalization:
    for upper, normalization in _AGE_NORMALIZATION:
        if upper is None or age < upper:
            return normalization
    raise AssertionError("unreachable: last bracket is open-ended")


def developmental_stage(age: int) -> str:
    for upper, stage in _DEVELOPMENTAL_STAGES:
        if age < upper:
            return stage
    return "Mature Adult"


@dataclass(frozen=True)
class PatternIQAnalysis:
    score: int
    confidence: float
    components: Dict[str, int]
    percentile: int
    classification: str
    developmental_stage: str
    age_adjusted: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def pattern_confidence(
    history: Sequence[PatternHistoryEntry], development_factor: float
) -> float:
    """Score consistency x min(1, attempts / 5) x development factor; 0.5 base under two patterns."""
    if len(history) < 2:
        base = 0.5
    else:
        base = consistency([h.score for h in history]) * min(
            1.0, len(history) / MAX_ATTEMPTS
        )
    return min(1.0, max(0.0, base * development_factor))


def analyze_pattern_iq(
    history: Sequence[PatternHistoryEntry], age: int
) -> PatternIQAnalysis:
    normalization = get_age_normalization(age)

    fluid = fluid_intelligence_score(history) * normalization.development_factor
    memory = working_memory_score(history) * normalization.development_factor
    processing = processing_speed_score(history) * normalization.speed_adjustment
    spatial = spatial_score(history) * normalization.complexity_weight

    composite = (fluid * 0.35 + memory * 0.25 + processing * 0.2 + spatial * 0.2) * 100
    normalized = max(0.0, min(100.0, composite)) * normalization.development_factor
    iq = int(round(100 + (normalized - COMPOSITE_CENTER) * COMPOSITE_TO_IQ))

    return PatternIQAnalysis(
        score=iq,
        confidence=pattern_confidence(history, normalization.development_factor),
        components={
            "fluid": round(fluid * 100),
            "memory": round(memory * 100),
            "processing": round(processing * 100),
            "spatial": round(spatial * 100),
        },
        percentile=iq_to_percentile(iq),
        classification=iq_classification(iq),
        developmental_stage=developmental_stage(age),
    )


@dataclass
class _Attempt:
    pattern: Pattern
    pieces: List[PatternPiece]
    slots: List[Optional[PatternPiece]]
    started_at: float
    score: Optional[int] = None
    time_taken: Optional[float] = None
    analysis: Optional[PatternAnalysis] = None
    solved: bool = False
    level: float = 0.0


class PatternBuildingTask(BaseTask):
    """Five pattern attempts with difficulty adapting between them."""

    name = "pattern building"
    category = Category.REASONING
    subtype = None

    def __init__(
        self, difficulty: float, age: int, rng=None, max_attempts: int = MAX_ATTEMPTS
    ):
        super().__init__(difficulty, rng)
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.age = age
        self.max_attempts = max_attempts
        self.manager = AdaptiveDifficultyManager(age, initial_difficulty=difficulty)
        self.total_score = 0
        self.history: List[PatternHistoryEntry] = []
        self._attempts: List[_Attempt] = []

    @property
    def current_attempt(self) -> Optional[_Attempt]:
        if self._attempts and self._attempts[-1].score is None:
            return self._attempts[-1]
        return None

    @property
    def is_complete(self) -> bool:
        return len(self._attempts) >= self.max_attempts and self.current_attempt is None

    def start_attempt(self, timestamp: float) -> _Attempt:
        """Generate the next pattern and its shuffled piece tray."""
        self._check_open()
        if self.current_attempt is not None:
            raise InputValidationError("current pattern has not been submitted")

        level = self.manager.get_current_difficulty()
        pattern = generate_pattern(level, self.age, self.rng)
        features = self.manager.get_age_appropriate_settings().features
        piece_types = available_piece_types(features)

        pieces = list(pattern.elements)
        for i in range(math.floor(level * DISTRACTORS_PER_LEVEL)):
            piece_type = self.rng.choice(piece_types)
            pieces.append(
                PatternPiece(
                    id=f"distractor-{i}",
                    type=piece_type,
                    value=random_value_for_type(piece_type, self.rng),
                    position=None,
                )
            )
        self.rng.shuffle(pieces)

        attempt = _Attempt(
            pattern=pattern,
            pieces=pieces,
            slots=[None] * len(pattern.elements),
            started_at=timestamp,
            level=level,
        )
        self._attempts.append(attempt)
        return attempt

    def place(self, slot: int, piece_id: str) -> None:
        attempt = self.current_attempt
        if attempt is None:
            raise InputValidationError("no pattern in progress")
        if not 0 <= slot < len(attempt.slots):
            raise InputValidationError(f"invalid slot {slot}")
        piece = next((p for p in attempt.pieces if p.id == piece_id), None)
        if piece is None:
            raise InputValidationError(f"unknown piece {piece_id}")
        # A piece occupies at most one slot
        attempt.slots = [None if s is piece else s for s in attempt.slots]
        attempt.slots[slot] = piece

    def clear(self, slot: int) -> None:
        attempt = self.current_attempt
        if attempt is None:
            raise InputValidationError("no pattern in progress")
        if not 0 <= slot < len(attempt.slots):
            raise InputValidationError(f"invalid slot {slot}")
        attempt.slots[slot] = None

    def submit(self, timestamp: float) -> int:
        """Score the current pattern. Every slot must be filled."""
        attempt = self.current_attempt
        if attempt is None:
            raise InputValidationError("no pattern in progress")
        if any(s is None for s in attempt.slots):
            raise InputValidationError("every slot must be filled before submitting")
        self._check_order(timestamp, attempt.started_at)

        time_taken = timestamp - attempt.started_at
        analysis = analyze_attempt(attempt.slots, attempt.pattern, time_taken)
        score = score_attempt(analysis, attempt.pattern)
        attempt.analysis = analysis
        attempt.time_taken = time_taken
        attempt.score = score

        if score > SOLVED_THRESHOLD:
            attempt.solved = True
            self.total_score += score
            entry = PatternHistoryEntry(
                type=attempt.pattern.type,
                complexity=attempt.pattern.complexity,
                score=score,
                element_count=len(attempt.pattern.elements),
                analysis=analysis,
            )
            self.history.append(entry)
            scores = [h.score for h in self.history]
            self.manager.update_difficulty(
                TestResult(
                    score=score,
                    metrics=PerformanceMetrics(
                        accuracy=analysis.correct_positions / len(attempt.pattern.elements),
                        speed=time_taken,
                        consistency=consistency(scores),
                        combo=max(scores) / 20,
                    ),
                    details={"pattern_type": entry.type, "complexity": entry.complexity},
                )
            )
            logger.debug(
                f"Pattern solved ({score}); next level "
                f"{self.manager.get_current_difficulty():.2f}"
            )
        return score

    def _score(self) -> TestResult:
        scores = [h.score for h in self.history]
        times = [a.time_taken for a in self._attempts if a.time_taken is not None]
        acc = sum(scores) / (len(scores) * 100) if scores else 0.0
        iq_analysis = analyze_pattern_iq(self.history, self.age)

        return TestResult(
            score=round(self.total_score / self.max_attempts),
            metrics=PerformanceMetrics(
                accuracy=acc,
                speed=mean_or_zero(times),
                consistency=consistency(scores),
                combo=max(scores) / 20 if scores else None,
                complexity=mean_or_zero(h.complexity for h in self.history),
            ),
            details={
                "patterns_solved": len(self.history),
                "attempts": len(self._attempts),
                "completion_time": sum(times),
                "speed_trend": speed_trend(self.history),
                "cognitive_assessment": {
                    "pattern_recognition": pattern_recognition_score(self.history),
                    "spatial_reasoning": spatial_score(self.history),
                    "logical_thinking": logical_score(self.history),
                    "working_memory": working_memory_score(self.history),
                },
                "iq_analysis": iq_analysis.to_dict(),
                "adaptive_metrics": {
                    "final_difficulty": self.manager.get_current_difficulty(),
                    "difficulty_level": self.manager.get_difficulty_level(),
                    "streak_count": self.manager.get_streak_count(),
                    "performance_history": [
                        r.to_dict() for r in self.manager.get_performance_history()
                    ],
                },
                "pattern_history": [
                    {
                        "type": h.type,
                        "complexity": h.complexity,
                        "score": h.score,
                        "accuracy": h.analysis.correct_positions / h.element_count,
                    }
                    for h in self.history
                ],
            },
        )
