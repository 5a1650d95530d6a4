"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Dict, List, Optional, Self


# Tolerance for floating-point weight summation checks
_WEIGHT_SUM_TOLERANCE = 1e-6

# Domains combined by the IQ estimator. Keys of IQ_SUBSCORE_WEIGHTS must match.
IQ_DOMAINS = ("memory", "attention", "processing", "problem_solving", "reasoning")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Cognitive Assessment API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:8080",
    ]

    # Content generation (Google Generative AI)
    # Leave GOOGLE_API_KEY unset to serve the static fallback question bank only
    GOOGLE_API_KEY: Optional[str] = Field(
        default=None,
        repr=False,
        description="Google Generative AI API key (optional)",
    )
    GEMINI_MODEL: str = "gemini-pro"
    GENERATION_TEMPERATURE: float = Field(default=0.7, ge=0.0, le=2.0)
    GENERATION_MAX_TOKENS: int = 2048
    GENERATION_MAX_RETRIES: int = Field(default=2, ge=0)
    GENERATION_RETRY_BASE_DELAY: float = 1.0  # seconds
    GENERATION_RETRY_MAX_DELAY: float = 30.0  # seconds

    # Scoring
    # Sub-score weights for the IQ estimator. Each weight is applied inside the
    # sub-score and the sub-scores are then averaged equally.
    IQ_SUBSCORE_WEIGHTS: Dict[str, float] = {
        "memory": 0.20,
        "attention": 0.15,
        "processing": 0.20,
        "problem_solving": 0.25,
        "reasoning": 0.20,
    }
    # Profile sub-fields below this score trigger a recommendation
    RECOMMENDATION_THRESHOLD: float = 70.0
    # Rest break is offered after every N completed tests
    BREAK_EVERY_N_TESTS: int = Field(default=2, ge=1)

    # Sentry Error Tracking
    SENTRY_DSN: str = Field(
        default="",
        description="Sentry DSN for error tracking (leave empty to disable)",
    )
    SENTRY_TRACES_SAMPLE_RATE: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sentry traces sample rate (0.0-1.0, 0.1 = 10% of transactions)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_iq_weights(self) -> Self:
        """Validate IQ_SUBSCORE_WEIGHTS: the five IQ domains, positive, summing to 1.0."""
        weights = self.IQ_SUBSCORE_WEIGHTS
        if set(weights.keys()) != set(IQ_DOMAINS):
            raise ValueError(
                f"IQ_SUBSCORE_WEIGHTS keys must be {sorted(IQ_DOMAINS)}, "
                f"got {sorted(weights.keys())}"
            )
        non_positive = [k for k, v in weights.items() if v <= 0]
        if non_positive:
            raise ValueError(
                f"All IQ weights must be positive, got non-positive: {non_positive}"
            )
        total = sum(weights.values())
        if abs(total - 1.0) > _WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"IQ_SUBSCORE_WEIGHTS must sum to 1.0, got {total}")
        return self


settings = Settings()
