"""
Pytest configuration and shared fixtures.

Contains common test fixtures and setup for all test modules.
"""

from typing import Any, Callable, Dict, Generator, Optional

import pytest
from fastapi.testclient import TestClient
from prometheus_client import CollectorRegistry

from logredact.config import RedactionSettings, ServerSettings, Settings
from logredact.core.engine import RedactionEngine, set_redaction_engine
from logredact.core.metrics import RedactionMetrics
from logredact.core.policy import RedactionPolicy

EMAIL_PATTERN = r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}"


@pytest.fixture(autouse=True)
def reset_global_engine() -> Generator[None, None, None]:
    """Each test starts without a process engine installed."""
    set_redaction_engine(None)
    yield
    set_redaction_engine(None)


@pytest.fixture
def make_policy() -> Callable[..., RedactionPolicy]:
    """Factory for policies; defaults to one email pattern and one sensitive field."""
    def _make(**overrides: Any) -> RedactionPolicy:
        options: Dict[str, Any] = {
            "sensitive_fields": ["password"],
            "patterns": [{"name": "email", "pattern": EMAIL_PATTERN}],
        }
        options.update(overrides)
        return RedactionPolicy.build(**options)

    return _make


@pytest.fixture
def make_engine(make_policy: Callable[..., RedactionPolicy]) -> Callable[..., RedactionEngine]:
    def _make(metrics: Optional[RedactionMetrics] = None, **overrides: Any) -> RedactionEngine:
        return RedactionEngine(make_policy(**overrides), metrics)

    return _make


@pytest.fixture
def engine(make_engine: Callable[..., RedactionEngine]) -> RedactionEngine:
    """Engine for the basic scenario: email pattern, 'password' field."""
    return make_engine()


@pytest.fixture
def default_engine() -> RedactionEngine:
    """Engine built from the built-in defaults."""
    return RedactionEngine(RedactionPolicy.from_settings(RedactionSettings()))


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> RedactionMetrics:
    """Metrics on an isolated registry so tests do not share counters."""
    return RedactionMetrics(registry=registry)


@pytest.fixture
def test_settings() -> Settings:
    """Settings for the HTTP tests."""
    return Settings(
        server=ServerSettings(max_payload_bytes=4096),
        redaction=RedactionSettings(
            sensitive_fields=["password", "api_key", "email", "user_id"],
            patterns=[
                {"name": "email", "pattern": EMAIL_PATTERN},
                {"name": "ssn", "pattern": r"\b\d{3}-\d{2}-\d{4}\b"},
            ],
            mode="partial",
            field_strategies={"user_id": "Hash"},
            hash_salt="test-salt",
        ),
    )


@pytest.fixture
def test_client(test_settings: Settings) -> Generator[TestClient, None, None]:
    """FastAPI test client with test configuration."""
    from logredact.main import create_app

    app = create_app(test_settings)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def sensitive_document() -> Dict[str, Any]:
    """Document with sensitive data for redaction tests."""
    return {
        "username": "alice",
        "password": "p@ss",
        "bio": "mail me at alice@example.com",
        "profile": {
            "api_key": "sk_live_dangerous_key",
            "note": "call 555-123-4567",
        },
        "tags": ["ok", "bob@example.org"],
        "count": 3,
        "active": True,
        "deleted_at": None,
    }
