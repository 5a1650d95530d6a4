"""
Pytest configuration and shared fixtures for testing.
"""
import random
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from cogassess.api.v1.content import get_content_generator
from cogassess.main import app
from cogassess.providers.base import BaseLLMProvider
from cogassess.schemas.assessment import (
    Category,
    PerformanceMetrics,
    TestResult,
    TestSession,
    UserProfile,
)
from cogassess.services.content_generator import ContentGenerator


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests that require live external services",
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(reason="need --run-integration option to run")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@asynccontextmanager
async def _test_lifespan(app):
    """No-op lifespan for tests. Skips Sentry initialization."""
    yield


app.router.lifespan_context = _test_lifespan


class FakeProvider(BaseLLMProvider):
    """In-memory provider returning canned replies (or raising a canned error)."""

    def __init__(
        self,
        structured: Optional[Dict[str, Any]] = None,
        text: str = "",
        error: Optional[Exception] = None,
    ):
        super().__init__(api_key="test-key", model="fake-model")
        self.structured = structured or {}
        self.text = text
        self.error = error
        self.prompts: List[str] = []

    def generate_completion(self, prompt, temperature=0.7, max_tokens=1000, **kwargs):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.text

    def generate_structured_completion(
        self, prompt, response_format, temperature=0.7, max_tokens=1000, **kwargs
    ):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return dict(self.structured)

    def count_tokens(self, text):
        return len(text) // 4


def _make_result(
    accuracy: float = 1.0,
    speed: float = 0.0,
    consistency: float = 1.0,
    score: Optional[float] = None,
    details: Optional[Dict[str, Any]] = None,
) -> TestResult:
    """Build a TestResult with the given metrics."""
    return TestResult(
        score=accuracy * 100 if score is None else score,
        metrics=PerformanceMetrics(
            accuracy=accuracy, speed=speed, consistency=consistency
        ),
        details=details or {},
    )


def _make_session(
    category: Category,
    accuracy: float = 1.0,
    speed: float = 0.0,
    consistency: float = 1.0,
    subtype: Optional[str] = None,
    test_id: Optional[str] = None,
) -> TestSession:
    """Build a TestSession through TestSession.from_result."""
    return TestSession.from_result(
        test_id or f"{category.value}-test",
        category,
        _make_result(accuracy=accuracy, speed=speed, consistency=consistency),
        subtype=subtype,
    )


@pytest.fixture
def rng():
    """Deterministic random generator."""
    return random.Random(1234)


@pytest.fixture
def adult_profile():
    return UserProfile(id="user-1", age=25)


@pytest.fixture
def child_profile():
    return UserProfile(id="child-1", age=9, computer_usage="low")


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def client():
    """Test client with the content generator restricted to the fallback bank."""
    app.dependency_overrides[get_content_generator] = lambda: ContentGenerator()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def result_factory():
    """Factory for TestResult objects: result_factory(accuracy=..., speed=...)."""
    return _make_result


@pytest.fixture
def session_factory():
    """Factory for TestSession objects: session_factory(Category.MEMORY, ...)."""
    return _make_session
