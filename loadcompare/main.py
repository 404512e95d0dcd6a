"""FastAPI relay: receives test requests and hands them to the load engine."""

import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from loadcompare.api.middleware.error_handler import global_exception_handler
from loadcompare.api.middleware.logging import StructuredLoggingMiddleware
from loadcompare.api.routes.health import router as health_router
from loadcompare.api.routes.load_tests import router as load_tests_router
from loadcompare.config import settings
from loadcompare.shared.logging import setup_logging

logger = structlog.get_logger()

# Track app start time for uptime calculation
APP_START_TIME: float = 0.0


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown logic."""
    global APP_START_TIME
    APP_START_TIME = time.time()
    setup_logging(settings.log_level, settings.json_logs)

    logger.info(
        "relay_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        debug=settings.debug,
    )

    yield

    logger.info("relay_shutting_down")


app = FastAPI(
    title="loadcompare relay",
    description="Runs comparative load tests against backend services",
    version=settings.app_version,
    lifespan=lifespan,
)

# The dashboard is served from a different origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(StructuredLoggingMiddleware)

# ValueError is registered on its own so rejected runs answer 400 without
# passing through the server-error middleware.
app.add_exception_handler(ValueError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(health_router)
app.include_router(load_tests_router)


def get_uptime() -> int:
    """Get application uptime in seconds."""
    if APP_START_TIME == 0.0:
        return 0
    return int(time.time() - APP_START_TIME)
