"""Command-line runner for comparative load tests.

Usage:
    python -m loadcompare --target spring=http://localhost:8080 --token spring=$SPRING_TOKEN
    python -m loadcompare --target spring=http://localhost:8080 --target node=http://localhost:5000 \\
        --token spring=$SPRING_TOKEN --token node=$NODE_TOKEN --scenario mixed --count 500
    python -m loadcompare ... --scenario stress --count 5000 --concurrency 200 --probe-health
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import structlog

from loadcompare.config import settings
from loadcompare.engine.config import EngineConfig
from loadcompare.engine.errors import ConfigurationError
from loadcompare.engine.health import HealthProbe
from loadcompare.engine.models import (
    ProgressEvent,
    RunEvent,
    RunResult,
    Scenario,
    TargetSpec,
)
from loadcompare.engine.orchestrator import build_client, open_orchestrator
from loadcompare.shared.logging import setup_logging

logger = structlog.get_logger()


def _pairs(values: list[str], flag: str) -> dict[str, str]:
    """Parse repeated ``NAME=VALUE`` options."""
    parsed: dict[str, str] = {}
    for raw in values:
        name, sep, value = raw.partition("=")
        if not sep or not name:
            raise ConfigurationError(f"{flag} expects NAME=VALUE, got {raw!r}")
        parsed[name] = value
    return parsed


def build_targets(args: argparse.Namespace) -> list[TargetSpec]:
    endpoints = _pairs(args.target, "--target")
    tokens = _pairs(args.token, "--token")
    unknown = sorted(set(tokens) - set(endpoints))
    if unknown:
        raise ConfigurationError(f"--token given for unknown targets: {', '.join(unknown)}")
    return [
        TargetSpec(
            target_id=name,
            base_url=url,
            token=tokens.get(name, ""),
            count=args.count,
            concurrency=args.concurrency,
            scenario=Scenario(args.scenario),
            recipient=args.recipient,
        )
        for name, url in endpoints.items()
    ]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loadcompare",
        description="Comparative load tests against one or more backends",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--target",
        action="append",
        default=[],
        metavar="NAME=URL",
        help="Backend to test; repeat for a comparison.",
    )
    parser.add_argument(
        "--token",
        action="append",
        default=[],
        metavar="NAME=TOKEN",
        help="Bearer token for the backend NAME.",
    )
    parser.add_argument(
        "--scenario",
        choices=[s.value for s in Scenario],
        default=Scenario.POST.value,
        help="Workload shape (default: post).",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=100,
        help="Requests per backend (default: 100).",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=10,
        help="Requests in flight per batch (default: 10).",
    )
    parser.add_argument(
        "--recipient",
        type=str,
        default="",
        help="User id messages are sent to and fetched from.",
    )
    parser.add_argument(
        "--probe-health",
        action="store_true",
        help="Skip backends whose health endpoint does not answer 2xx.",
    )
    parser.add_argument(
        "--include-outcomes",
        action="store_true",
        help="Include every request outcome in the JSON report.",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write JSON results to this file path.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=settings.log_level,
        help=f"Log level (default: {settings.log_level}).",
    )
    return parser


def _progress_printer(event: RunEvent) -> None:
    if isinstance(event, ProgressEvent):
        p = event.progress
        print(f"  [{p.target_id}] {p.completed}/{p.total}", file=sys.stderr, flush=True)


async def async_main(args: argparse.Namespace) -> dict[str, RunResult]:
    config = EngineConfig.from_env()
    targets = build_targets(args)

    async with build_client(config) as client:
        if args.probe_health:
            targets = await HealthProbe(client, config).probe_targets(targets)
        async with open_orchestrator(
            config, listeners=[_progress_printer], client=client
        ) as orchestrator:
            return await orchestrator.run_all(targets, include_outcomes=args.include_outcomes)


def build_report(results: dict[str, RunResult]) -> dict[str, Any]:
    return {
        target_id: result.model_copy(update={"metrics": result.metrics.rounded()}).model_dump(
            mode="json", by_alias=True, exclude_none=True
        )
        for target_id, result in results.items()
    }


def _print_summary(results: dict[str, RunResult]) -> None:
    """Human-readable comparison printed to stderr."""
    line = "-" * 78
    print(f"\n{line}", file=sys.stderr)
    print("  LOAD TEST RESULTS SUMMARY", file=sys.stderr)
    print(line, file=sys.stderr)
    print(
        f"  {'Target':<12} {'Success %':>9} {'Avg (ms)':>9} {'p95 (ms)':>9} "
        f"{'p99 (ms)':>9} {'Min/Max (ms)':>15} {'req/s':>8}",
        file=sys.stderr,
    )
    for target_id, result in results.items():
        if not result.success:
            print(f"  {target_id:<12} FAILED: {result.error}", file=sys.stderr)
            continue
        m = result.metrics
        minmax = f"{m.min_response_time:.2f}/{m.max_response_time:.2f}"
        print(
            f"  {target_id:<12} {m.success_rate:>9.1f} {m.avg_response_time:>9.2f} "
            f"{m.p95_response_time:>9.2f} {m.p99_response_time:>9.2f} {minmax:>15} "
            f"{m.throughput:>8.2f}",
            file=sys.stderr,
        )
        if m.error_count:
            print(f"  {'':<12} errors: {m.error_count}/{m.total_requests}", file=sys.stderr)
    print(f"{line}\n", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level, settings.json_logs)

    try:
        results = asyncio.run(async_main(args))
    except ConfigurationError as exc:
        logger.error("configuration_error", error=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return 2

    _print_summary(results)
    report = build_report(results)
    if args.output:
        path = Path(args.output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(report, indent=2))
        logger.info("report_written", path=str(path))
    else:
        print(json.dumps(report, indent=2))

    return 0 if all(r.success for r in results.values()) else 1
