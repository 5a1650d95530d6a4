"""
Graceful failure utilities.

Reusable context manager and decorator for non-critical operations that
should not block the main execution flow: attempt the operation, log any
exception with context, and continue without raising.

Content generation is the main client. A failed provider call degrades to
the static question bank instead of failing the assessment.

Usage:
    from cogassess.core.graceful_failure import graceful_failure

    with graceful_failure("generate content", logger):
        content = generator.generate(request)

    @graceful_failure_decorator("analyze results", default=None)
    def analyze(report): ...
"""

import logging
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Generator, Optional, TypeVar

from cogassess.observability import observability


# Type variable for decorator return type preservation
T = TypeVar("T")


@contextmanager
def graceful_failure(
    operation_name: str,
    logger: logging.Logger,
    *,
    log_level: int = logging.WARNING,
    exc_info: bool = False,
    context: Optional[dict[str, Any]] = None,
    capture: bool = False,
) -> Generator[None, None, None]:
    """Context manager for non-critical operations that should not block execution.

    Args:
        operation_name: Human-readable name of the operation for logging
            (e.g., "generate content", "analyze results").
        logger: The logger instance to use for logging errors.
        log_level: Logging level for error messages. Defaults to WARNING.
        exc_info: Whether to include exception traceback in log. Defaults to False.
        context: Optional dictionary of additional context to include in the log
            message (e.g., {"domain": "memory", "age": 9}).
        capture: Also report the exception to Sentry. Defaults to False.

    Yields:
        None - the context manager is used for its side effects only.

    Example:
        >>> with graceful_failure(
        ...     "generate content",
        ...     logger,
        ...     context={"domain": request.domain},
        ... ):
        ...     content = generator.generate(request)
    """
    try:
        yield
    except Exception as e:
        if context:
            context_str = ", ".join(f"{k}={v}" for k, v in context.items())
            message = f"Failed to {operation_name} ({context_str}): {e}"
        else:
            message = f"Failed to {operation_name}: {e}"

        logger.log(log_level, message, exc_info=exc_info)

        if capture:
            observability.capture_error(
                e,
                context=context,
                tags={"error_type": "GracefulFailure"},
                level="warning",
            )


class GracefulFailureDecorator:
    """Decorator class for handling non-critical operations in functions.

    Swallows exceptions raised by the decorated function and returns a
    default value instead (None by default).

    Usage:
        @graceful_failure_decorator("analyze results")
        def analyze_results(report) -> Optional[str]:
            ...

        # With custom default return value:
        @graceful_failure_decorator("load fallback bank", default=[])
        def load_bank() -> list:
            ...
    """

    def __init__(
        self,
        operation_name: str,
        *,
        logger: Optional[logging.Logger] = None,
        log_level: int = logging.WARNING,
        exc_info: bool = False,
        default: Any = None,
    ):
        """Initialize the decorator.

        Args:
            operation_name: Human-readable name of the operation.
            logger: Logger to use. If None, uses the module's logger of the
                decorated function.
            log_level: Logging level for errors. Defaults to WARNING.
            exc_info: Whether to include stack trace. Defaults to False.
            default: Default value to return on failure. Defaults to None.
        """
        self.operation_name = operation_name
        self._logger = logger
        self.log_level = log_level
        self.exc_info = exc_info
        self.default = default

    def __call__(self, func: Callable[..., T]) -> Callable[..., Optional[T]]:
        """Decorate the function with graceful failure handling."""

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Optional[T]:
            logger = self._logger or logging.getLogger(func.__module__)

            with graceful_failure(
                self.operation_name,
                logger,
                log_level=self.log_level,
                exc_info=self.exc_info,
            ):
                return func(*args, **kwargs)

            # Reached only when the wrapped call raised
            return self.default

        return wrapper


# Convenience alias for the decorator
graceful_failure_decorator = GracefulFailureDecorator
