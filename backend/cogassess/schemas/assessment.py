"""
Pydantic schemas for test results, sessions, profiles and assessment reports.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Category(str, Enum):
    """Cognitive domain a test belongs to. Used as the aggregation join key."""

    MEMORY = "memory"
    ATTENTION = "attention"
    PROCESSING = "processing"
    EXECUTIVE = "executive"
    LEARNING = "learning"
    PROBLEM_SOLVING = "problem_solving"
    REASONING = "reasoning"


class ComputerUsage(str, Enum):
    """Self-reported computer experience from the pre-test form."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PerformanceMetrics(BaseModel):
    """Normalized measurement attached to every test result.

    ``speed`` is always raw seconds: the mean time per response for the
    attempt. Consumers normalize it themselves.
    """

    model_config = ConfigDict(frozen=True)

    accuracy: float = Field(..., ge=0.0, le=1.0, description="Correct / total")
    speed: float = Field(
        ..., ge=0.0, description="Mean seconds per response (raw, not normalized)"
    )
    consistency: float = Field(
        ..., ge=0.0, le=1.0, description="1.0 when fewer than two samples"
    )
    combo: Optional[float] = Field(
        None, ge=0.0, description="Streak-derived bonus, test specific"
    )
    complexity: Optional[float] = Field(
        None, ge=0.0, description="Task complexity, test specific"
    )


class TestResult(BaseModel):
    """Output of one completed test attempt. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(..., description="Nominally 0-100")
    metrics: PerformanceMetrics
    details: Dict[str, Any] = Field(
        default_factory=dict, description="Raw answers and timings, passed through"
    )


class SessionMetrics(BaseModel):
    """Per-session metrics consumed by the profile aggregator."""

    model_config = ConfigDict(frozen=True)

    accuracy: float = Field(..., ge=0.0, le=1.0)
    reaction_time_ms: float = Field(..., ge=0.0, description="Milliseconds")
    consistency: float = Field(..., ge=0.0, le=1.0)
    error_rate: float = Field(0.0, ge=0.0, le=1.0)
    completion_time: float = Field(0.0, ge=0.0, description="Seconds")
    attention_lapses: int = Field(0, ge=0)


def ensure_timezone_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """Return ``dt`` with UTC attached when it is naive."""
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


class TestSession(BaseModel):
    """One completed test, tagged with its category and difficulty."""

    model_config = ConfigDict(frozen=True)

    test_id: str = Field(..., min_length=1)
    category: Category
    subtype: Optional[str] = Field(
        None, description="Narrows the profile sub-field this session feeds"
    )
    difficulty: float = Field(1.0, ge=0.0)
    score: float = 0.0
    metrics: SessionMetrics
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    @field_validator("started_at", "ended_at")
    @classmethod
    def normalize_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_timezone_aware(value)

    @model_validator(mode="after")
    def validate_timestamps(self) -> "TestSession":
        if self.started_at and self.ended_at and self.ended_at < self.started_at:
            raise ValueError("ended_at must not be earlier than started_at")
        return self

    @classmethod
    def from_result(
        cls,
        test_id: str,
        category: Category,
        result: TestResult,
        *,
        subtype: Optional[str] = None,
        difficulty: float = 1.0,
        started_at: Optional[datetime] = None,
        ended_at: Optional[datetime] = None,
    ) -> "TestSession":
        """Build a session from a test result.

        This is the single place where ``speed`` (seconds) becomes
        ``reaction_time_ms``.
        """
        started_at = ensure_timezone_aware(started_at)
        ended_at = ensure_timezone_aware(ended_at)
        if started_at and ended_at:
            completion_time = (ended_at - started_at).total_seconds()
        else:
            completion_time = float(result.details.get("completion_time", 0.0))

        return cls(
            test_id=test_id,
            category=category,
            subtype=subtype,
            difficulty=difficulty,
            score=result.score,
            metrics=SessionMetrics(
                accuracy=result.metrics.accuracy,
                reaction_time_ms=result.metrics.speed * 1000.0,
                consistency=result.metrics.consistency,
                error_rate=1.0 - result.metrics.accuracy,
                completion_time=max(0.0, completion_time),
                attention_lapses=int(result.details.get("attention_lapses", 0)),
            ),
            started_at=started_at,
            ended_at=ended_at,
        )


class MemoryCapacity(BaseModel):
    short_term: float = 0.0
    working: float = 0.0
    visual: float = 0.0


class AttentionMetrics(BaseModel):
    sustained: float = 0.0
    selective: float = 0.0
    divided: float = 0.0


class ProcessingSpeed(BaseModel):
    reaction: float = 0.0
    decision: float = 0.0
    cognitive: float = 0.0


class ExecutiveFunction(BaseModel):
    planning: float = 0.0
    flexibility: float = 0.0
    inhibition: float = 0.0


class CognitiveProfile(BaseModel):
    """Domain scores (each sub-field in [0, 100])."""

    memory_capacity: MemoryCapacity
    attention_metrics: AttentionMetrics
    processing_speed: ProcessingSpeed
    executive_function: ExecutiveFunction


class IQSubScores(BaseModel):
    memory: float
    attention: float
    processing: float
    problem_solving: float
    reasoning: float


class IQMetrics(BaseModel):
    """Heuristic IQ estimate."""

    overall_iq: int = Field(..., description="Rounded, centered at 100 (SD 15)")
    sub_scores: IQSubScores
    confidence: float = Field(..., ge=0.0, le=1.0)
    percentile: int = Field(..., ge=1, le=99)


class UserProfile(BaseModel):
    """Read-only pre-test record supplied by the profile store."""

    id: str = Field("anonymous", min_length=1)
    age: int = Field(..., ge=1, le=120, description="Age in years")
    education: Optional[str] = None
    language: str = "en"
    previous_experience: bool = False
    computer_usage: ComputerUsage = ComputerUsage.MEDIUM
    medical_conditions: List[str] = Field(default_factory=list)

    @field_validator("medical_conditions")
    @classmethod
    def strip_empty_conditions(cls, v: List[str]) -> List[str]:
        """Drop blank entries left over from form input."""
        return [c.strip() for c in v if c and c.strip()]


class DifficultySettings(BaseModel):
    """Per-session difficulty, one value per category plus timing (seconds)."""

    model_config = ConfigDict(frozen=True)

    memory: float = Field(..., ge=1.0)
    attention: float = Field(..., ge=1.0)
    processing: float = Field(..., ge=1.0)
    executive: float = Field(..., ge=1.0)
    learning: float = Field(..., ge=1.0)
    time_allowed: int = Field(..., gt=0, description="Seconds")
    break_interval: int = Field(..., gt=0, description="Seconds")

    def for_category(self, category: Category) -> float:
        """Difficulty for a category; categories without a field use executive."""
        return float(getattr(self, category.value, self.executive))


class AssessmentReport(BaseModel):
    """Terminal aggregate of an assessment run."""

    user_id: str
    session_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    user_profile: UserProfile
    test_sessions: List[TestSession]
    cognitive_profile: CognitiveProfile
    recommendations: List[str]
    percentile_ranks: Dict[str, int]
    iq_metrics: IQMetrics
    interpretations: List[str]


class AdaptiveReplayRequest(BaseModel):
    """Replay a result history through an adaptive difficulty manager."""

    age: int = Field(..., ge=1, le=120)
    initial_difficulty: Optional[float] = None
    results: List[TestResult] = Field(default_factory=list)


class AgeAppropriateSettings(BaseModel):
    time_limit: int = Field(..., description="Seconds")
    complexity: float
    features: List[str]


class AdaptiveReplayResponse(BaseModel):
    current_difficulty: float
    difficulty_level: str
    streak_count: int
    history_length: int
    settings: AgeAppropriateSettings


class ReportRequest(BaseModel):
    user_profile: UserProfile
    test_sessions: List[TestSession] = Field(default_factory=list)


class IQRequest(BaseModel):
    """Direct IQ estimate from domain scores (0-100 scale)."""

    age: int = Field(..., ge=1, le=120)
    scores: IQSubScores
