"""
Age-appropriate content generation.

ContentGenerator asks a generative model for a short set of questions in a
cognitive domain and validates the reply into GeneratedContent. Any failure
(missing API key, provider error, unparseable or invalid JSON) surfaces as a
GenerationError from generate(); generate_or_fallback() turns it into the
static question bank so callers never depend on generation succeeding.
"""
import json
import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from cogassess.core.config import settings
from cogassess.core.errors import GenerationError
from cogassess.core.graceful_failure import graceful_failure, graceful_failure_decorator
from cogassess.providers.base import BaseLLMProvider, LLMProviderError
from cogassess.schemas.assessment import AssessmentReport
from cogassess.schemas.content import GeneratedContent, GenerationRequest
from cogassess.services.question_bank import fallback_content

logger = logging.getLogger(__name__)

# Names shown to the model for each domain
DOMAIN_NAMES = {
    "memory": "Memory & Recall",
    "attention": "Attention & Focus",
    "processing": "Processing Speed",
    "reasoning": "Logical Reasoning",
    "spatial": "Spatial Awareness",
    "problem_solving": "Problem Solving",
    "language": "Language Skills",
}

RESPONSE_SCHEMA: Dict[str, Any] = {
    "title": "string",
    "instructions": "string",
    "questions": [
        {
            "id": "string",
            "type": "multiple_choice | sequence | pattern | memory",
            "prompt": "string",
            "options": ["string"],
            "correct_answer": "string (one of options)",
            "explanation": "string",
        }
    ],
}


def build_generation_prompt(request: GenerationRequest) -> str:
    return (
        f"Generate an interactive cognitive test for a {request.age}-year-old.\n"
        f"Focus on {DOMAIN_NAMES[request.domain.value]} assessment "
        f"at {request.difficulty.value} difficulty.\n"
        f"Include:\n"
        f"- Exactly {request.count} multiple choice questions\n"
        f"- Clear, age-appropriate wording and instructions\n"
        f"- The correct answer for each question, copied verbatim from its options\n"
        f"- A one-sentence explanation for each answer"
    )


def build_analysis_prompt(report: AssessmentReport) -> str:
    summary = {
        "age": report.user_profile.age,
        "cognitive_profile": report.cognitive_profile.model_dump(),
        "percentile_ranks": report.percentile_ranks,
        "iq": report.iq_metrics.overall_iq,
    }
    return (
        f"Analyze these cognitive test results:\n"
        f"{json.dumps(summary)}\n"
        f"Provide:\n"
        f"- Cognitive strengths\n"
        f"- Areas for improvement\n"
        f"- Development recommendations\n"
        f"- Age-appropriate activities"
    )


class ContentGenerator:
    """
    Generates assessment content through a generative model provider.

    Args:
        provider: Provider to use. None makes generation unavailable, so
            only the fallback bank is served.
    """

    def __init__(self, provider: Optional[BaseLLMProvider] = None):
        self.provider = provider

    @classmethod
    def from_settings(cls) -> "ContentGenerator":
        """GoogleProvider-backed generator when GOOGLE_API_KEY is set."""
        if not settings.GOOGLE_API_KEY:
            return cls()

        from cogassess.providers.google_provider import GoogleProvider

        return cls(
            GoogleProvider(
                api_key=settings.GOOGLE_API_KEY,
                model=settings.GEMINI_MODEL,
            )
        )

    @property
    def is_available(self) -> bool:
        return self.provider is not None

    def generate(self, request: GenerationRequest) -> GeneratedContent:
        """
        Generate and validate content for a request.

        Raises:
            GenerationError: No provider configured, the provider call failed,
                or the reply could not be validated
        """
        if self.provider is None:
            raise GenerationError("Content generation is not configured (missing API key)")

        prompt = build_generation_prompt(request)
        try:
            payload = self.provider.generate_structured_completion(
                prompt,
                RESPONSE_SCHEMA,
                temperature=settings.GENERATION_TEMPERATURE,
                max_tokens=settings.GENERATION_MAX_TOKENS,
            )
        except LLMProviderError as e:
            raise GenerationError(f"Provider call failed: {e}", cause=e) from e
        except ValueError as e:
            raise GenerationError(f"Malformed provider response: {e}", cause=e) from e

        questions = payload.get("questions")
        if isinstance(questions, list):
            payload["questions"] = questions[: request.count]
        payload.update(
            domain=request.domain,
            difficulty=request.difficulty,
            source="generated",
        )
        try:
            content = GeneratedContent.model_validate(payload)
        except ValidationError as e:
            raise GenerationError(
                f"Generated content failed validation: {e.error_count()} errors",
                cause=e,
            ) from e

        logger.info(
            f"Generated {len(content.questions)} questions for {request.domain.value}",
            extra={"domain": request.domain.value, "age": request.age},
        )
        return content

    def generate_or_fallback(self, request: GenerationRequest) -> GeneratedContent:
        """Like generate(), but degrades to the static bank instead of raising."""
        with graceful_failure(
            "generate content",
            logger,
            context={"domain": request.domain.value, "age": request.age},
            capture=self.is_available,
        ):
            return self.generate(request)

        return fallback_content(request.domain, request.difficulty, request.count)

    @graceful_failure_decorator("analyze results")
    def analyze_results(self, report: AssessmentReport) -> Optional[str]:
        """Free-text analysis of a finished report, or None when unavailable."""
        if self.provider is None:
            return None
        return self.provider.generate_completion(
            build_analysis_prompt(report),
            temperature=settings.GENERATION_TEMPERATURE,
            max_tokens=settings.GENERATION_MAX_TOKENS,
        )
