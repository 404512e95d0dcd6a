"""Load engine configuration with sensible defaults."""

import os
from dataclasses import dataclass, field


@dataclass
class EndpointPaths:
    send: str = "/api/message/send"
    fetch: str = "/api/message/message"
    health: str = "/api/health"


@dataclass
class EngineConfig:
    request_timeout_seconds: float = 30.0
    # Pause between batches, never before the first or after the last
    batch_delay_ms: float = 10.0
    protocol_version: str = "1"
    health_timeout_seconds: float = 5.0
    max_connections: int = 100
    max_keepalive_connections: int = 20
    # Batches between intermediate metrics events; only computed for listeners
    metrics_every_batches: int = 1
    paths: EndpointPaths = field(default_factory=EndpointPaths)

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Load config with env var overrides. Env vars use LOADTEST_ prefix."""
        config = cls()

        if v := os.getenv("LOADTEST_REQUEST_TIMEOUT_SECONDS"):
            config.request_timeout_seconds = float(v)
        if v := os.getenv("LOADTEST_BATCH_DELAY_MS"):
            config.batch_delay_ms = float(v)
        if v := os.getenv("LOADTEST_PROTOCOL_VERSION"):
            config.protocol_version = v
        if v := os.getenv("LOADTEST_HEALTH_TIMEOUT_SECONDS"):
            config.health_timeout_seconds = float(v)
        if v := os.getenv("LOADTEST_METRICS_EVERY_BATCHES"):
            config.metrics_every_batches = int(v)

        # Connection pool overrides
        if v := os.getenv("LOADTEST_MAX_CONNECTIONS"):
            config.max_connections = int(v)
        if v := os.getenv("LOADTEST_MAX_KEEPALIVE_CONNECTIONS"):
            config.max_keepalive_connections = int(v)

        # Endpoint path overrides
        if v := os.getenv("LOADTEST_SEND_PATH"):
            config.paths.send = v
        if v := os.getenv("LOADTEST_FETCH_PATH"):
            config.paths.fetch = v
        if v := os.getenv("LOADTEST_HEALTH_PATH"):
            config.paths.health = v

        return config


# Module-level default instance
default_config = EngineConfig()
