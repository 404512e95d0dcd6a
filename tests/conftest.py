"""Shared test fixtures for loadcompare tests."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import httpx
import pytest
import structlog

from loadcompare.engine.config import EngineConfig
from loadcompare.engine.models import ErrorKind, RequestOutcome, Scenario, TargetSpec

T0 = datetime(2026, 1, 15, 14, 0, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _reset_logging():
    # setup_logging binds the current sys.stderr, which capsys swaps per test
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def fast_config() -> EngineConfig:
    """Engine config with short timeouts and no inter-batch pause."""
    return EngineConfig(request_timeout_seconds=2.0, batch_delay_ms=0.0, health_timeout_seconds=1.0)


@pytest.fixture
def target_factory() -> Callable[..., TargetSpec]:
    def _make(**overrides) -> TargetSpec:
        fields = {
            "target_id": "spring",
            "base_url": "http://spring.test",
            "token": "test-token",
            "count": 10,
            "concurrency": 5,
            "scenario": Scenario.POST,
            "recipient": "user-42",
        }
        fields.update(overrides)
        return TargetSpec(**fields)

    return _make


@pytest.fixture
def outcome_factory() -> Callable[..., RequestOutcome]:
    """Build outcomes; ``at`` is seconds after a fixed start instant."""

    def _make(
        duration_ms: float,
        success: bool = True,
        at: float = 0.0,
        index: int = 0,
        status_code: int | None = None,
    ) -> RequestOutcome:
        return RequestOutcome(
            index=index,
            success=success,
            status_code=status_code if status_code is not None else (200 if success else 500),
            duration_ms=duration_ms,
            error=None if success else "HTTP 500",
            error_kind=None if success else ErrorKind.HTTP_STATUS,
            completed_at=T0 + timedelta(seconds=at),
        )

    return _make


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Wrap a request handler in an ``AsyncClient`` over ``httpx.MockTransport``."""

    def _make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make
