"""Health endpoint of the relay itself."""

from datetime import UTC, datetime

from fastapi import APIRouter

from loadcompare.config import settings
from loadcompare.engine.models import Scenario
from loadcompare.engine.scenarios import SCENARIO_DESCRIPTIONS

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict:
    from loadcompare.main import get_uptime

    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime_seconds": get_uptime(),
    }


@router.get("/api/v1/scenarios")
async def scenarios() -> dict:
    """Scenario catalog for clients that build their own selectors."""
    return {
        scenario.value: SCENARIO_DESCRIPTIONS[scenario] for scenario in Scenario
    }
