"""Single-request execution with timing and outcome classification."""

import asyncio
import time
from datetime import UTC, datetime

import httpx
import structlog

from .config import EngineConfig, default_config
from .models import ErrorKind, Operation, RequestOutcome, RequestShape, TargetSpec

logger = structlog.get_logger()


class RequestExecutor:
    """Issues one outbound call per :meth:`execute` over a shared client.

    Request-level failures never raise; they come back as failed outcomes.
    """

    def __init__(self, client: httpx.AsyncClient, config: EngineConfig | None = None) -> None:
        self._client = client
        self._config = config or default_config

    @property
    def timeout_seconds(self) -> float:
        return self._config.request_timeout_seconds

    def build_request(self, target: TargetSpec, shape: RequestShape, index: int) -> httpx.Request:
        url = f"{target.base_url.rstrip('/')}{shape.path}"
        if shape.operation is Operation.SEND:
            params = {
                "toUserId": target.recipient,
                "message": f"TestMessage_{index}_{int(time.time() * 1000)}",
            }
        else:
            params = {"type": "user", "target": target.recipient, "page": "0"}
        headers = {
            "Authorization": f"Bearer {target.token}",
            "version": self._config.protocol_version,
            "Content-Type": "application/json",
        }
        return self._client.build_request(shape.method, url, params=params, headers=headers)

    async def execute(self, target: TargetSpec, shape: RequestShape, index: int) -> RequestOutcome:
        status_code: int | None = None
        error: str | None = None
        error_kind: ErrorKind | None = None

        t0 = time.perf_counter()
        try:
            request = self.build_request(target, shape, index)
            # The timeout scope owns the call; leaving it cancels only this request.
            async with asyncio.timeout(self.timeout_seconds):
                response = await self._client.send(request)
            status_code = response.status_code
            if not response.is_success:
                error = f"HTTP {status_code}"
                error_kind = ErrorKind.HTTP_STATUS
        except (TimeoutError, httpx.TimeoutException):
            error = f"Request timed out after {self.timeout_seconds:g}s"
            error_kind = ErrorKind.TIMEOUT
        except (httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
            error = str(exc) or type(exc).__name__
            error_kind = ErrorKind.TRANSPORT
        except Exception as exc:
            logger.warning(
                "request_unexpected_error",
                target_id=target.target_id,
                index=index,
                exc_info=True,
            )
            error = f"{type(exc).__name__}: {exc}"
            error_kind = ErrorKind.TRANSPORT
        duration_ms = (time.perf_counter() - t0) * 1000.0

        return RequestOutcome(
            index=index,
            success=error_kind is None,
            status_code=status_code,
            duration_ms=duration_ms,
            error=error,
            error_kind=error_kind,
            completed_at=datetime.now(UTC),
        )
