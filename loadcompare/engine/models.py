"""Pydantic models for the load engine."""

from datetime import datetime
from enum import StrEnum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# --- Enums ---


class Scenario(StrEnum):
    POST = "post"
    GET = "get"
    MIXED = "mixed"
    STRESS = "stress"


class Operation(StrEnum):
    SEND = "send"
    FETCH = "fetch"


class ErrorKind(StrEnum):
    HTTP_STATUS = "http_status"
    TRANSPORT = "transport"
    TIMEOUT = "timeout"


class _WireModel(BaseModel):
    """Immutable value type serialized with camelCase keys."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


# --- Inputs ---


class RequestShape(_WireModel):
    operation: Operation
    method: Literal["GET", "POST"]
    path: str


class TargetSpec(_WireModel):
    """One backend under test. Validated by the scheduler, not at construction."""

    target_id: str
    base_url: str = ""
    token: str = ""
    count: int = 100
    concurrency: int = 10
    scenario: Scenario = Scenario.POST
    # User id the synthetic messages are addressed to
    recipient: str = ""
    connected: bool = True


# --- Per-request results ---


class RequestOutcome(_WireModel):
    index: int
    success: bool
    status_code: int | None = None
    duration_ms: float = Field(ge=0)
    error: str | None = None
    error_kind: ErrorKind | None = None
    completed_at: datetime


# --- Aggregates ---


class MetricsSummary(_WireModel):
    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    success_rate: float = Field(default=0.0, ge=0, le=100)
    throughput: float = 0.0
    avg_response_time: float = 0.0
    min_response_time: float = 0.0
    max_response_time: float = 0.0
    p95_response_time: float = 0.0
    p99_response_time: float = 0.0
    error_count: int = 0

    def rounded(self, ndigits: int = 2) -> "MetricsSummary":
        """Return a display copy with every float rounded to *ndigits*."""
        return self.model_copy(
            update={
                name: round(value, ndigits)
                for name, value in self
                if isinstance(value, float)
            }
        )


class RunProgress(_WireModel):
    completed: int
    total: int
    target_id: str


class RunResult(_WireModel):
    target_id: str
    success: bool
    metrics: MetricsSummary = Field(default_factory=MetricsSummary)
    outcomes: list[RequestOutcome] | None = None
    error: str | None = None
    cancelled: bool = False
    # dashboards read this as ``appRuntime``
    app_runtime_ms: float = Field(default=0.0, alias="appRuntime")


# --- Events ---


class ProgressEvent(_WireModel):
    kind: Literal["progress"] = "progress"
    progress: RunProgress


class MetricsEvent(_WireModel):
    kind: Literal["metrics"] = "metrics"
    target_id: str
    metrics: MetricsSummary
    final: bool = False


RunEvent = ProgressEvent | MetricsEvent
