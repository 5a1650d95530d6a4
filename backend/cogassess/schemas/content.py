"""
Pydantic schemas for generated challenge/question content.
"""
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ContentDomain(str, Enum):
    """Cognitive areas the content generator can target."""

    MEMORY = "memory"
    ATTENTION = "attention"
    PROCESSING = "processing"
    REASONING = "reasoning"
    SPATIAL = "spatial"
    PROBLEM_SOLVING = "problem_solving"
    LANGUAGE = "language"


class DifficultyLabel(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class GenerationRequest(BaseModel):
    """Parameters for one content generation call."""

    age: int = Field(..., ge=3, le=120, description="Age of the test taker in years")
    domain: ContentDomain
    difficulty: DifficultyLabel = DifficultyLabel.MEDIUM
    count: int = Field(5, ge=1, le=20, description="Number of questions wanted")


class GeneratedQuestion(BaseModel):
    """A single multiple-choice or sequence question."""

    id: str = Field(..., min_length=1)
    type: Literal["multiple_choice", "sequence", "pattern", "memory"] = "multiple_choice"
    prompt: str = Field(..., min_length=1)
    options: List[str] = Field(..., min_length=2)
    correct_answer: str
    explanation: Optional[str] = None

    @field_validator("options")
    @classmethod
    def options_unique(cls, v: List[str]) -> List[str]:
        if len(set(v)) != len(v):
            raise ValueError("options must be unique")
        return v

    @model_validator(mode="after")
    def answer_in_options(self) -> "GeneratedQuestion":
        if self.correct_answer not in self.options:
            raise ValueError("correct_answer must be one of the options")
        return self


class GeneratedContent(BaseModel):
    """Validated content returned by the content generator."""

    domain: ContentDomain
    difficulty: DifficultyLabel
    title: str
    instructions: str
    questions: List[GeneratedQuestion] = Field(..., min_length=1)
    source: Literal["generated", "fallback"] = "generated"
