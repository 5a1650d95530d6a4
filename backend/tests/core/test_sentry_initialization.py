"""
Tests for the Sentry backend in cogassess.observability.

These tests verify that SentryBackend only talks to the SDK once it has been
initialized with a DSN.
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch
from uuid import UUID

from cogassess.observability import SentryBackend, _serialize_value


class TestInit:
    """Tests for SentryBackend.init()."""

    def test_returns_true_when_dsn_is_provided(self):
        backend = SentryBackend()
        with patch("cogassess.observability.sentry_sdk.init") as mock_init:
            result = backend.init(
                "https://public@sentry.io/123456",
                environment="test",
                release="0.1.0",
            )
        assert result is True
        assert backend.is_initialized
        kwargs = mock_init.call_args.kwargs
        assert kwargs["environment"] == "test"
        assert kwargs["release"] == "0.1.0"
        assert kwargs["send_default_pii"] is False

    def test_returns_false_when_dsn_is_empty(self):
        backend = SentryBackend()
        with patch("cogassess.observability.sentry_sdk.init") as mock_init:
            assert backend.init("", environment="test") is False
        mock_init.assert_not_called()
        assert not backend.is_initialized

    def test_sdk_failure_is_reported_not_raised(self):
        backend = SentryBackend()
        with patch(
            "cogassess.observability.sentry_sdk.init", side_effect=Exception("bad dsn")
        ):
            assert backend.init("not-a-dsn", environment="test") is False
        assert not backend.is_initialized


class TestCaptureError:
    """Tests for SentryBackend.capture_error()."""

    def test_noop_before_init(self):
        backend = SentryBackend()
        with patch("cogassess.observability.sentry_sdk.capture_exception") as mock_capture:
            assert backend.capture_error(RuntimeError("x")) is None
        mock_capture.assert_not_called()

    def test_sets_context_tags_and_level(self):
        backend = SentryBackend()
        backend._initialized = True
        scope = MagicMock()
        with patch("cogassess.observability.sentry_sdk") as mock_sdk:
            mock_sdk.new_scope.return_value.__enter__.return_value = scope
            mock_sdk.capture_exception.return_value = "event-1"
            event_id = backend.capture_error(
                RuntimeError("x"),
                context={"domain": "memory"},
                tags={"error_type": "GracefulFailure"},
                level="warning",
            )

        assert event_id == "event-1"
        scope.set_context.assert_called_once_with("additional", {"domain": "memory"})
        scope.set_tag.assert_called_once_with("error_type", "GracefulFailure")
        assert scope.level == "warning"

    def test_shutdown_closes_client(self):
        backend = SentryBackend()
        backend._initialized = True
        with patch("cogassess.observability.sentry_sdk") as mock_sdk:
            backend.shutdown()
        mock_sdk.get_client.return_value.close.assert_called_once_with(timeout=2.0)
        assert not backend.is_initialized


class TestSerializeValue:
    """Tests for _serialize_value()."""

    def test_nested_values(self):
        when = datetime(2024, 1, 2, tzinfo=timezone.utc)
        uid = UUID("12345678-1234-5678-1234-567812345678")
        value = {"at": when, "ids": (uid,), "n": 3, "obj": object}
        result = _serialize_value(value)
        assert result["at"] == when.isoformat()
        assert result["ids"] == [str(uid)]
        assert result["n"] == 3
        assert isinstance(result["obj"], str)
