"""Load generation and statistics engine."""

from .config import EndpointPaths, EngineConfig, default_config
from .errors import ConfigurationError
from .executor import RequestExecutor
from .health import HealthProbe
from .metrics import MetricsAggregator, percentile
from .models import (
    MetricsEvent,
    MetricsSummary,
    ProgressEvent,
    RequestOutcome,
    RequestShape,
    RunEvent,
    RunProgress,
    RunResult,
    Scenario,
    TargetSpec,
)
from .orchestrator import TestOrchestrator, open_orchestrator
from .scenarios import shape_for
from .scheduler import BatchScheduler, plan_batches

__all__ = [
    "BatchScheduler",
    "ConfigurationError",
    "EndpointPaths",
    "EngineConfig",
    "HealthProbe",
    "MetricsAggregator",
    "MetricsEvent",
    "MetricsSummary",
    "ProgressEvent",
    "RequestExecutor",
    "RequestOutcome",
    "RequestShape",
    "RunEvent",
    "RunProgress",
    "RunResult",
    "Scenario",
    "TargetSpec",
    "TestOrchestrator",
    "default_config",
    "open_orchestrator",
    "percentile",
    "plan_batches",
    "shape_for",
]
