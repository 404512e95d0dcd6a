"""Tests for single-request execution and outcome classification."""

import asyncio

import httpx
import pytest

from loadcompare.engine.config import EngineConfig
from loadcompare.engine.executor import RequestExecutor
from loadcompare.engine.models import ErrorKind, Scenario
from loadcompare.engine.scenarios import shape_for


class TestRequestConstruction:
    @pytest.mark.asyncio
    async def test_send_request(self, mock_client, target_factory, fast_config):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(201, json={"ok": True})

        async with mock_client(handler) as client:
            executor = RequestExecutor(client, fast_config)
            target = target_factory(base_url="http://spring.test/")
            outcome = await executor.execute(target, shape_for(Scenario.POST, 3), 3)

        assert outcome.success is True
        assert outcome.status_code == 201
        request = captured[0]
        assert request.method == "POST"
        assert request.url.host == "spring.test"
        assert request.url.path == "/api/message/send"
        assert request.url.params["toUserId"] == "user-42"
        assert request.url.params["message"].startswith("TestMessage_3_")
        assert request.headers["Authorization"] == "Bearer test-token"
        assert request.headers["version"] == "1"
        assert request.headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_fetch_request(self, mock_client, target_factory, fast_config):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json=[])

        async with mock_client(handler) as client:
            executor = RequestExecutor(client, fast_config)
            await executor.execute(target_factory(), shape_for(Scenario.GET, 0), 0)

        request = captured[0]
        assert request.method == "GET"
        assert request.url.path == "/api/message/message"
        assert dict(request.url.params) == {"type": "user", "target": "user-42", "page": "0"}

    @pytest.mark.asyncio
    async def test_protocol_version_from_config(self, mock_client, target_factory):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200)

        async with mock_client(handler) as client:
            executor = RequestExecutor(client, EngineConfig(protocol_version="2"))
            await executor.execute(target_factory(), shape_for(Scenario.POST, 0), 0)

        assert captured[0].headers["version"] == "2"


class TestOutcomeClassification:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 401, 404, 500, 503])
    async def test_non_2xx_is_failure(self, mock_client, target_factory, fast_config, status):
        async with mock_client(lambda request: httpx.Response(status)) as client:
            outcome = await RequestExecutor(client, fast_config).execute(
                target_factory(), shape_for(Scenario.POST, 0), 0
            )
        assert outcome.success is False
        assert outcome.status_code == status
        assert outcome.error == f"HTTP {status}"
        assert outcome.error_kind is ErrorKind.HTTP_STATUS
        assert outcome.duration_ms >= 0

    @pytest.mark.asyncio
    async def test_transport_error(self, mock_client, target_factory, fast_config):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with mock_client(handler) as client:
            outcome = await RequestExecutor(client, fast_config).execute(
                target_factory(), shape_for(Scenario.GET, 1), 1
            )
        assert outcome.success is False
        assert outcome.status_code is None
        assert outcome.error_kind is ErrorKind.TRANSPORT
        assert "connection refused" in outcome.error

    @pytest.mark.asyncio
    async def test_httpx_timeout_classified_as_timeout(
        self, mock_client, target_factory, fast_config
    ):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        async with mock_client(handler) as client:
            outcome = await RequestExecutor(client, fast_config).execute(
                target_factory(), shape_for(Scenario.POST, 0), 0
            )
        assert outcome.success is False
        assert outcome.error_kind is ErrorKind.TIMEOUT

    @pytest.mark.asyncio
    async def test_hung_call_times_out(self, mock_client, target_factory):
        async def never_answers(request: httpx.Request) -> httpx.Response:
            await asyncio.sleep(30)
            return httpx.Response(200)

        config = EngineConfig(request_timeout_seconds=0.05)
        async with mock_client(never_answers) as client:
            outcome = await asyncio.wait_for(
                RequestExecutor(client, config).execute(
                    target_factory(), shape_for(Scenario.POST, 0), 0
                ),
                timeout=5,
            )

        assert outcome.success is False
        assert outcome.error_kind is ErrorKind.TIMEOUT
        assert outcome.error == "Request timed out after 0.05s"
        assert 45.0 <= outcome.duration_ms < 1000.0

    @pytest.mark.asyncio
    async def test_timeout_does_not_cancel_siblings(self, mock_client, target_factory):
        async def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params["message"].startswith("TestMessage_0_"):
                await asyncio.sleep(30)
            return httpx.Response(200)

        config = EngineConfig(request_timeout_seconds=0.05)
        target = target_factory()
        async with mock_client(handler) as client:
            executor = RequestExecutor(client, config)
            outcomes = await asyncio.gather(
                *(executor.execute(target, shape_for(Scenario.POST, i), i) for i in range(4))
            )

        assert [o.success for o in outcomes] == [False, True, True, True]
