"""Classification of content provider failures.

Maps raw exceptions from the generative model client onto a small set of
categories so callers can decide whether to retry, fall back or alert.
"""

import re
from dataclasses import asdict, dataclass
from enum import Enum
from typing import List, Tuple


class ErrorCategory(Enum):
    """Categories of provider errors."""

    BILLING_QUOTA = "billing_quota"
    RATE_LIMIT = "rate_limit"
    AUTHENTICATION = "authentication"
    INVALID_REQUEST = "invalid_request"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    MODEL_ERROR = "model_error"
    SAFETY_BLOCKED = "safety_blocked"  # Response withheld by content filters
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class ClassifiedError:
    """A provider error with category, severity and retry hint."""

    category: ErrorCategory
    severity: ErrorSeverity
    provider: str
    original_error: str
    message: str
    is_retryable: bool = False

    def __str__(self) -> str:
        return (
            f"[{self.severity.value.upper()}] {self.provider}: "
            f"{self.category.value} - {self.message}"
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["category"] = self.category.value
        data["severity"] = self.severity.value
        return data


# (category, severity, retryable, patterns, message template)
# Rules are tried in order; the first match wins.
_RULES: List[Tuple[ErrorCategory, ErrorSeverity, bool, Tuple[str, ...], str]] = [
    (
        ErrorCategory.BILLING_QUOTA,
        ErrorSeverity.CRITICAL,
        False,
        (
            r"insufficient.*(funds|quota)",
            r"quota.*exceeded",
            r"billing",
            r"payment.*required",
            r"\b402\b",
        ),
        "Billing or quota issue. Check the {provider} account limits.",
    ),
    (
        ErrorCategory.AUTHENTICATION,
        ErrorSeverity.CRITICAL,
        False,
        (
            r"api.*key.*(invalid|expired|not valid)",
            r"invalid.*api.*key",
            r"unauthori[sz]ed",
            r"permission.*denied",
            r"\b40[13]\b",
        ),
        "Authentication failed. Verify the {provider} API key.",
    ),
    (
        ErrorCategory.RATE_LIMIT,
        ErrorSeverity.HIGH,
        True,
        (r"rate.*limit", r"too.*many.*requests", r"resource.*exhausted", r"\b429\b"),
        "Rate limit exceeded for {provider}.",
    ),
    (
        ErrorCategory.SAFETY_BLOCKED,
        ErrorSeverity.LOW,
        False,
        (r"safety", r"blocked", r"finish_reason.*(3|safety)"),
        "Response blocked by {provider} content filters.",
    ),
    (
        ErrorCategory.MODEL_ERROR,
        ErrorSeverity.MEDIUM,
        False,
        (r"model.*not.*found", r"invalid.*model", r"model.*(unavailable|deprecated)"),
        "Model configuration issue with {provider}. Verify the model name.",
    ),
    (
        ErrorCategory.SERVER_ERROR,
        ErrorSeverity.MEDIUM,
        True,
        (r"internal.*error", r"service.*unavailable", r"\b50[0-9]\b", r"server.*error"),
        "{provider} server error. This may be temporary.",
    ),
    (
        ErrorCategory.NETWORK_ERROR,
        ErrorSeverity.LOW,
        True,
        (r"connection", r"timed? ?out", r"deadline.*exceeded", r"network"),
        "Network issue reaching {provider}. This may be temporary.",
    ),
    (
        ErrorCategory.INVALID_REQUEST,
        ErrorSeverity.MEDIUM,
        False,
        (r"invalid", r"bad request", r"\b400\b"),
        "Invalid request to {provider}. Check request parameters.",
    ),
]


class ErrorClassifier:
    """Classifies exceptions raised by provider clients."""

    @staticmethod
    def classify_error(error: Exception, provider: str) -> ClassifiedError:
        """Classify an exception by matching its message against known patterns.

        Args:
            error: The exception that was raised
            provider: Provider name used in the message

        Returns:
            ClassifiedError; UNKNOWN when nothing matches
        """
        text = str(error).lower()
        error_type = type(error).__name__

        for category, severity, retryable, patterns, template in _RULES:
            if any(re.search(p, text) for p in patterns):
                return ClassifiedError(
                    category=category,
                    severity=severity,
                    provider=provider,
                    original_error=error_type,
                    message=template.format(provider=provider),
                    is_retryable=retryable,
                )

        return ClassifiedError(
            category=ErrorCategory.UNKNOWN,
            severity=ErrorSeverity.MEDIUM,
            provider=provider,
            original_error=error_type,
            message=f"Unclassified error from {provider}: {str(error)[:100]}",
        )

    @staticmethod
    def should_alert(classified_error: ClassifiedError) -> bool:
        """Critical errors need an operator; everything else degrades to fallback."""
        return classified_error.severity == ErrorSeverity.CRITICAL
