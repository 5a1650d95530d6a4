"""Sentry error tracking.

Wraps all Sentry SDK interactions behind a small facade so that callers can
capture errors unconditionally; every call is a no-op until `init()` succeeds.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any
from uuid import UUID

import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

logger = logging.getLogger(__name__)


def _serialize_value(value: Any) -> Any:
    """Serialize a value to a JSON-compatible type.

    Falls back to str() for unknown types.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value

    if isinstance(value, (datetime, date)):
        return value.isoformat()

    if isinstance(value, UUID):
        return str(value)

    if isinstance(value, dict):
        return {k: _serialize_value(v) for k, v in value.items()}

    if isinstance(value, (list, tuple, set)):
        return [_serialize_value(item) for item in value]

    return str(value)


class SentryBackend:
    """Backend for Sentry error tracking."""

    def __init__(self) -> None:
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def init(
        self,
        dsn: str,
        *,
        environment: str,
        release: str | None = None,
        traces_sample_rate: float = 0.1,
    ) -> bool:
        """Initialize the Sentry SDK with FastAPI/Starlette integrations.

        Returns:
            True if Sentry was initialized, False if skipped (no DSN) or failed.

        Note:
            Does not raise exceptions - failures are logged and return False.
        """
        if not dsn:
            logger.debug("Sentry initialization skipped (DSN not configured)")
            return False

        try:
            sentry_sdk.init(
                dsn=dsn,
                environment=environment,
                release=release,
                traces_sample_rate=traces_sample_rate,
                integrations=[
                    LoggingIntegration(level=None, event_level=None),
                    FastApiIntegration(transaction_style="endpoint"),
                    StarletteIntegration(transaction_style="endpoint"),
                ],
                send_default_pii=False,
            )
        except Exception as e:
            logger.error(f"Failed to initialize Sentry: {e}", exc_info=True)
            return False

        self._initialized = True
        logger.info(
            f"Sentry initialized for environment '{environment}' "
            f"with {traces_sample_rate * 100:.0f}% trace sampling"
        )
        return True

    def capture_error(
        self,
        exception: BaseException,
        *,
        context: dict[str, Any] | None = None,
        tags: dict[str, str] | None = None,
        level: str = "error",
    ) -> str | None:
        """Capture an exception and send to Sentry.

        Returns:
            Event ID if captured, None if not initialized.
        """
        if not self._initialized:
            return None

        with sentry_sdk.new_scope() as scope:
            if context:
                scope.set_context("additional", _serialize_value(context))
            if tags:
                for key, value in tags.items():
                    scope.set_tag(key, value)
            scope.level = level
            return sentry_sdk.capture_exception(exception)

    def shutdown(self) -> None:
        """Flush pending events and close the client."""
        if not self._initialized:
            return

        client = sentry_sdk.get_client()
        if client is not None:
            client.close(timeout=2.0)

        self._initialized = False


observability = SentryBackend()
