"""Multi-target test orchestration.

Every eligible target gets its own scheduler run; the runs proceed
concurrently and share no mutable state. A target that errors, whether every
request fails or the run itself blows up, only produces a failed result for
that target.
"""

import asyncio
import time
from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager

import httpx
import structlog

from .config import EngineConfig, default_config
from .errors import ConfigurationError
from .executor import RequestExecutor
from .metrics import MetricsAggregator
from .models import (
    MetricsEvent,
    ProgressEvent,
    RequestOutcome,
    RunEvent,
    RunProgress,
    RunResult,
    TargetSpec,
)
from .scheduler import BatchScheduler

logger = structlog.get_logger()

EventListener = Callable[[RunEvent], None]


class TestOrchestrator:
    """Coordinates scheduler runs for one or more targets."""

    __test__ = False  # not a pytest test class

    def __init__(
        self,
        scheduler: BatchScheduler,
        aggregator: MetricsAggregator,
        listeners: Sequence[EventListener] = (),
        metrics_every: int = 1,
    ) -> None:
        self._scheduler = scheduler
        self._aggregator = aggregator
        self._listeners = list(listeners)
        # Intermediate metrics are emitted every ``metrics_every`` batches
        self._metrics_every = max(1, metrics_every)
        self._cancel_event = asyncio.Event()

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def cancel(self) -> None:
        """Stop every active run before its next batch."""
        logger.info("orchestrator_cancel_requested")
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    async def start_run(self, target: TargetSpec, include_outcomes: bool = False) -> RunResult:
        """Run a single target and summarize it.

        Configuration problems come back as ``success=False`` without any
        request being sent.
        """
        t0 = time.perf_counter()
        batches_done = 0

        def on_progress(progress: RunProgress, outcomes: Sequence[RequestOutcome]) -> None:
            nonlocal batches_done
            batches_done += 1
            if not self._listeners:
                return
            self._emit(ProgressEvent(progress=progress))
            if batches_done % self._metrics_every == 0:
                self._emit(
                    MetricsEvent(
                        target_id=progress.target_id,
                        metrics=self._aggregator.summarize(outcomes),
                    )
                )

        try:
            outcomes = await self._scheduler.run(
                target, on_progress=on_progress, cancel_event=self._cancel_event
            )
        except ConfigurationError as exc:
            logger.warning("run_rejected", target_id=target.target_id, error=str(exc))
            return RunResult(target_id=target.target_id, success=False, error=str(exc))

        metrics = self._aggregator.summarize(outcomes)
        cancelled = len(outcomes) < target.count
        self._emit(MetricsEvent(target_id=target.target_id, metrics=metrics, final=True))

        app_runtime_ms = (time.perf_counter() - t0) * 1000.0
        logger.info(
            "run_completed",
            target_id=target.target_id,
            total=metrics.total_requests,
            successful=metrics.successful_requests,
            success_rate=round(metrics.success_rate, 2),
            p95_ms=round(metrics.p95_response_time, 2),
            cancelled=cancelled,
            app_runtime_ms=round(app_runtime_ms, 2),
        )
        return RunResult(
            target_id=target.target_id,
            success=True,
            metrics=metrics,
            outcomes=outcomes if include_outcomes else None,
            cancelled=cancelled,
            app_runtime_ms=app_runtime_ms,
        )

    async def run_all(
        self, targets: Sequence[TargetSpec], include_outcomes: bool = False
    ) -> dict[str, RunResult]:
        """Run every connected target concurrently, keyed by target id."""
        eligible = [t for t in targets if t.connected]
        skipped = [t.target_id for t in targets if not t.connected]
        if skipped:
            logger.info("targets_skipped", target_ids=skipped, reason="not_connected")
        if not eligible:
            raise ConfigurationError("No connected targets to test")

        ids = [t.target_id for t in eligible]
        if len(set(ids)) != len(ids):
            raise ConfigurationError(f"Duplicate target ids: {ids}")

        logger.info("comparison_started", target_ids=ids)
        results = await asyncio.gather(
            *(self.start_run(t, include_outcomes=include_outcomes) for t in eligible),
            return_exceptions=True,
        )

        by_target: dict[str, RunResult] = {}
        for target, result in zip(eligible, results):
            if isinstance(result, Exception):
                logger.error(
                    "run_failed",
                    target_id=target.target_id,
                    error=str(result),
                    exc_info=result,
                )
                result = RunResult(
                    target_id=target.target_id,
                    success=False,
                    error=f"{type(result).__name__}: {result}",
                )
            elif isinstance(result, BaseException):
                raise result
            by_target[target.target_id] = result
        return by_target

    def _emit(self, event: RunEvent) -> None:
        for listener in self._listeners:
            try:
                listener(event)
            except Exception:
                logger.warning("event_listener_failed", kind=event.kind, exc_info=True)


def build_client(config: EngineConfig) -> httpx.AsyncClient:
    """HTTP client for outbound test traffic. No transport-level retries."""
    transport = httpx.AsyncHTTPTransport(
        retries=0,
        limits=httpx.Limits(
            max_connections=config.max_connections,
            max_keepalive_connections=config.max_keepalive_connections,
        ),
    )
    return httpx.AsyncClient(
        transport=transport,
        timeout=httpx.Timeout(config.request_timeout_seconds),
    )


@asynccontextmanager
async def open_orchestrator(
    config: EngineConfig | None = None,
    listeners: Sequence[EventListener] = (),
    client: httpx.AsyncClient | None = None,
) -> AsyncIterator[TestOrchestrator]:
    """Wire client, executor, scheduler and aggregator into an orchestrator.

    A client passed in is used as is and left open; otherwise one is built
    from *config* and closed on exit.
    """
    cfg = config or default_config
    owns_client = client is None
    http_client = client if client is not None else build_client(cfg)
    try:
        executor = RequestExecutor(http_client, cfg)
        scheduler = BatchScheduler(executor, cfg)
        yield TestOrchestrator(
            scheduler,
            MetricsAggregator(),
            listeners,
            metrics_every=cfg.metrics_every_batches,
        )
    finally:
        if owns_client:
            await http_client.aclose()
