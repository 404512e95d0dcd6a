"""Concurrency-bounded batch scheduling for one target.

A run of ``N`` requests at concurrency ``C`` is split into contiguous batches
of ``min(C, remaining)`` indices. Each batch is launched concurrently and
joined before the next starts, so no more than ``C`` requests are ever in
flight. Outcomes are kept in issue order regardless of completion order.
"""

import asyncio
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Protocol

import structlog

from .config import EngineConfig, default_config
from .errors import ConfigurationError
from .models import ErrorKind, RequestOutcome, RequestShape, RunProgress, TargetSpec
from .scenarios import shape_for

logger = structlog.get_logger()

ProgressCallback = Callable[[RunProgress, Sequence[RequestOutcome]], None]


class Executor(Protocol):
    async def execute(
        self, target: TargetSpec, shape: RequestShape, index: int
    ) -> RequestOutcome: ...


def plan_batches(count: int, concurrency: int) -> list[range]:
    """Partition ``[0, count)`` into contiguous batches of at most *concurrency*."""
    if count <= 0:
        return []
    if concurrency <= 0:
        raise ConfigurationError(f"concurrency must be positive, got {concurrency}")
    return [
        range(start, min(start + concurrency, count))
        for start in range(0, count, concurrency)
    ]


def validate_target(target: TargetSpec) -> None:
    """Raise :class:`ConfigurationError` if *target* cannot start a run."""
    if not target.base_url:
        raise ConfigurationError(f"{target.target_id}: missing endpoint address")
    if not target.base_url.startswith(("http://", "https://")):
        raise ConfigurationError(
            f"{target.target_id}: endpoint must be an http(s) URL, got {target.base_url!r}"
        )
    if not target.token:
        raise ConfigurationError(f"{target.target_id}: missing bearer token")
    if target.count <= 0:
        raise ConfigurationError(f"{target.target_id}: count must be positive, got {target.count}")
    if target.concurrency <= 0:
        raise ConfigurationError(
            f"{target.target_id}: concurrency must be positive, got {target.concurrency}"
        )


class BatchScheduler:
    """Runs one target's requests batch by batch.

    The outcome list of a run is local to that :meth:`run` call, so a single
    scheduler can serve several targets concurrently.
    """

    def __init__(self, executor: Executor, config: EngineConfig | None = None) -> None:
        self._executor = executor
        self._config = config or default_config

    async def run(
        self,
        target: TargetSpec,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[RequestOutcome]:
        validate_target(target)

        batches = plan_batches(target.count, target.concurrency)
        delay_s = self._config.batch_delay_ms / 1000.0
        outcomes: list[RequestOutcome] = []

        logger.info(
            "run_started",
            target_id=target.target_id,
            scenario=target.scenario.value,
            count=target.count,
            concurrency=target.concurrency,
            batches=len(batches),
        )

        for number, batch in enumerate(batches):
            if _cancelled(cancel_event, target, len(outcomes)):
                break
            if number > 0 and delay_s > 0:
                await asyncio.sleep(delay_s)
                if _cancelled(cancel_event, target, len(outcomes)):
                    break

            outcomes.extend(await self._run_batch(target, batch))

            progress = RunProgress(
                completed=len(outcomes), total=target.count, target_id=target.target_id
            )
            logger.debug(
                "batch_completed",
                target_id=target.target_id,
                batch=number + 1,
                completed=progress.completed,
                total=progress.total,
            )
            if on_progress is not None:
                # live list, only valid for the duration of the callback
                _notify(on_progress, progress, outcomes)

        return outcomes

    async def _run_batch(self, target: TargetSpec, batch: range) -> list[RequestOutcome]:
        paths = self._config.paths
        results = await asyncio.gather(
            *(
                self._executor.execute(target, shape_for(target.scenario, index, paths), index)
                for index in batch
            ),
            return_exceptions=True,
        )
        # gather keeps argument order, which is issue order
        return [
            result if isinstance(result, RequestOutcome) else _crashed(target, index, result)
            for index, result in zip(batch, results)
        ]


def _cancelled(cancel_event: asyncio.Event | None, target: TargetSpec, completed: int) -> bool:
    if cancel_event is None or not cancel_event.is_set():
        return False
    logger.info(
        "run_cancelled",
        target_id=target.target_id,
        completed=completed,
        total=target.count,
    )
    return True


def _crashed(target: TargetSpec, index: int, exc: BaseException) -> RequestOutcome:
    logger.warning(
        "executor_raised",
        target_id=target.target_id,
        index=index,
        error=repr(exc),
    )
    return RequestOutcome(
        index=index,
        success=False,
        duration_ms=0.0,
        error=f"{type(exc).__name__}: {exc}",
        error_kind=ErrorKind.TRANSPORT,
        completed_at=datetime.now(UTC),
    )


def _notify(
    callback: ProgressCallback, progress: RunProgress, outcomes: Sequence[RequestOutcome]
) -> None:
    try:
        callback(progress, outcomes)
    except Exception:
        logger.warning("progress_listener_failed", target_id=progress.target_id, exc_info=True)
