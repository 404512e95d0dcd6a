"""Global exception handling for the relay.

Error bodies use the relay's result shape, ``{"success": false, "error": ...}``,
so dashboard callers read failed runs and rejected requests the same way.
"""

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse

from loadcompare.engine.errors import ConfigurationError

logger = structlog.get_logger()


def _error(status_code: int, code: str, message: str, request_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": message,
            "code": code,
            "request_id": request_id,
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "unknown")

    if isinstance(exc, ConfigurationError):
        logger.warning("configuration_error", request_id=request_id, error=str(exc))
        return _error(400, "configuration_error", str(exc), request_id)

    if isinstance(exc, ValueError):
        logger.warning("bad_request", request_id=request_id, error=str(exc))
        return _error(400, "bad_request", str(exc), request_id)

    if isinstance(exc, PermissionError):
        logger.warning("forbidden", request_id=request_id, error=str(exc))
        return _error(403, "forbidden", str(exc), request_id)

    if isinstance(exc, LookupError):
        logger.warning("not_found", request_id=request_id, error=str(exc))
        return _error(404, "not_found", str(exc), request_id)

    logger.exception("unhandled_exception", request_id=request_id, error=str(exc))
    return _error(500, "internal_server_error", "Internal server error", request_id)
