"""Generative model providers."""

from cogassess.providers.base import (
    BaseLLMProvider,
    LLMProviderError,
    RetryConfig,
    calculate_backoff_delay,
    with_retry,
)
from cogassess.providers.error_classifier import (
    ClassifiedError,
    ErrorCategory,
    ErrorClassifier,
    ErrorSeverity,
)

__all__ = [
    "BaseLLMProvider",
    "ClassifiedError",
    "ErrorCategory",
    "ErrorClassifier",
    "ErrorSeverity",
    "LLMProviderError",
    "RetryConfig",
    "calculate_backoff_delay",
    "with_retry",
]
