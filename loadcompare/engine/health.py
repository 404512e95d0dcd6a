"""Reachability probe used to decide which targets are eligible."""

import asyncio
from collections.abc import Sequence

import httpx
import structlog

from .config import EngineConfig, default_config
from .models import TargetSpec

logger = structlog.get_logger()


class HealthProbe:
    def __init__(self, client: httpx.AsyncClient, config: EngineConfig | None = None) -> None:
        self._client = client
        self._config = config or default_config

    async def check(self, base_url: str) -> bool:
        """GET the health path; True only for a 2xx answer."""
        if not base_url:
            return False
        url = f"{base_url.rstrip('/')}{self._config.paths.health}"
        try:
            response = await self._client.get(url, timeout=self._config.health_timeout_seconds)
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
            logger.info("health_probe_unreachable", url=url, error=str(exc) or type(exc).__name__)
            return False
        healthy = response.is_success
        logger.info("health_probe", url=url, status_code=response.status_code, healthy=healthy)
        return healthy

    async def probe_targets(self, targets: Sequence[TargetSpec]) -> list[TargetSpec]:
        """Copies of *targets* with ``connected`` set from their probe result."""
        results = await asyncio.gather(*(self.check(t.base_url) for t in targets))
        return [
            t.model_copy(update={"connected": ok}) for t, ok in zip(targets, results)
        ]
