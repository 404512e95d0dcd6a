"""Scenario policy: which request each sequence index issues.

``stress`` shares the ``post`` shape. A stress run differs only in the count
and concurrency the caller picks.
"""

from .config import EndpointPaths
from .models import Operation, RequestShape, Scenario

DEFAULT_PATHS = EndpointPaths()

SCENARIO_DESCRIPTIONS: dict[Scenario, dict[str, str]] = {
    Scenario.POST: {"name": "POST Messages", "description": "Send multiple messages via POST"},
    Scenario.GET: {"name": "GET Messages", "description": "Fetch messages via GET"},
    Scenario.MIXED: {"name": "Mixed Workload", "description": "50% POST, 50% GET requests"},
    Scenario.STRESS: {"name": "Stress Test", "description": "High concurrency rapid fire"},
}


def operation_for(scenario: Scenario, index: int) -> Operation:
    match scenario:
        case Scenario.POST | Scenario.STRESS:
            return Operation.SEND
        case Scenario.GET:
            return Operation.FETCH
        case Scenario.MIXED:
            return Operation.SEND if index % 2 == 0 else Operation.FETCH
    raise ValueError(f"Unknown scenario: {scenario!r}")


def shape_for(
    scenario: Scenario, index: int, paths: EndpointPaths = DEFAULT_PATHS
) -> RequestShape:
    """Map ``(scenario, index)`` to the method and path of one request."""
    operation = operation_for(scenario, index)
    if operation is Operation.SEND:
        return RequestShape(operation=operation, method="POST", path=paths.send)
    return RequestShape(operation=operation, method="GET", path=paths.fetch)
