"""Base class for content providers and the shared retry helper."""

import logging
import random
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, TypeVar

from cogassess.core.config import settings
from cogassess.providers.error_classifier import ClassifiedError, ErrorClassifier

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Floor for any backoff sleep, in seconds
MIN_RETRY_DELAY = 0.1
# Jitter applied to each backoff delay, as a fraction of the delay
_JITTER_FRACTION = 0.25


class LLMProviderError(Exception):
    """Exception raised by providers, carrying the classified error.

    Attributes:
        classified_error: The classified error with category and severity
        original_exception: The exception raised by the client library
    """

    def __init__(self, classified_error: ClassifiedError, original_exception: Exception):
        self.classified_error = classified_error
        self.original_exception = original_exception
        super().__init__(str(classified_error))

    @property
    def is_retryable(self) -> bool:
        return self.classified_error.is_retryable


@dataclass
class RetryConfig:
    """Backoff parameters; defaults come from settings."""

    max_retries: int = settings.GENERATION_MAX_RETRIES
    base_delay: float = settings.GENERATION_RETRY_BASE_DELAY
    max_delay: float = settings.GENERATION_RETRY_MAX_DELAY
    exponential_base: float = 2.0


def calculate_backoff_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    exponential_base: float = 2.0,
) -> float:
    """
    Exponential backoff with +-25% jitter.

    Args:
        attempt: Zero-based retry attempt
        base_delay: Delay for the first retry
        max_delay: Cap applied before jitter
        exponential_base: Growth factor per attempt

    Returns:
        Delay in seconds, never below MIN_RETRY_DELAY
    """
    delay = min(base_delay * (exponential_base**attempt), max_delay)
    jitter = delay * _JITTER_FRACTION * (2 * random.random() - 1)
    return max(MIN_RETRY_DELAY, delay + jitter)


def with_retry(
    func: Callable[[], T],
    provider_name: str,
    config: Optional[RetryConfig] = None,
) -> T:
    """
    Call func, retrying retryable LLMProviderErrors with exponential backoff.

    Non-retryable errors are raised immediately. After max_retries failed
    retries the last error is raised.
    """
    config = config or RetryConfig()
    attempt = 0
    while True:
        try:
            return func()
        except LLMProviderError as e:
            if not e.is_retryable:
                raise
            if attempt >= config.max_retries:
                logger.error(
                    f"Retries exhausted for {provider_name} after {attempt + 1} attempts: {e}"
                )
                raise
            delay = calculate_backoff_delay(
                attempt,
                config.base_delay,
                config.max_delay,
                config.exponential_base,
            )
            logger.warning(
                f"Retryable error from {provider_name} "
                f"(attempt {attempt + 1}/{config.max_retries + 1}), "
                f"retrying in {delay:.2f}s: {e.classified_error.category.value}"
            )
            time.sleep(delay)
            attempt += 1


class BaseLLMProvider(ABC):
    """Abstract base class for generative model integrations."""

    def __init__(self, api_key: str, model: str):
        """
        Args:
            api_key: API key for the provider
            model: Model identifier to use
        """
        self.api_key = api_key
        self.model = model

    @abstractmethod
    def generate_completion(
        self,
        prompt: str,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        **kwargs: Any,
    ) -> str:
        """
        Generate a text completion.

        Raises:
            LLMProviderError: If the API call fails
        """

    @abstractmethod
    def generate_structured_completion(
        self,
        prompt: str,
        response_format: Dict[str, Any],
        temperature: float = 0.7,
        max_tokens: int = 1000,
        **kwargs: Any,
    ) -> Dict[str, Any]:
        """
        Generate a JSON completion matching response_format.

        Raises:
            LLMProviderError: If the API call fails
            ValueError: If the response is not valid JSON
        """

    @abstractmethod
    def count_tokens(self, text: str) -> int:
        """Estimate the token count for a given text."""

    def get_provider_name(self) -> str:
        """Provider name, e.g. "google" for GoogleProvider."""
        return self.__class__.__name__.replace("Provider", "").lower()

    def _handle_api_error(self, error: Exception) -> LLMProviderError:
        classified = ErrorClassifier.classify_error(
            error=error,
            provider=self.get_provider_name(),
        )
        return LLMProviderError(classified_error=classified, original_exception=error)

    def _execute_with_retry(
        self, func: Callable[[], T], config: Optional[RetryConfig] = None
    ) -> T:
        return with_retry(func, self.get_provider_name(), config)
