"""
Unit tests for Logfire middleware.

This test suite covers:
- Request/response processing
- Duration measurement and the X-Process-Time header
- Slow request detection
- Error handling and exception tracking
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient
from starlette.responses import Response

from practiceflow.server.middleware.logfire_middleware import LogfireMiddleware

MIDDLEWARE_MODULE = "practiceflow.server.middleware.logfire_middleware"


def _request(method: str = "GET", path: str = "/api/v1/tasks"):
    mock_request = AsyncMock(spec=Request)
    mock_request.method = method
    mock_request.url.path = path
    mock_request.state = MagicMock()
    return mock_request


def _clock(*values: float) -> MagicMock:
    clock = MagicMock()
    clock.time.side_effect = list(values)
    return clock


class TestLogfireMiddlewareDispatch:
    """Test LogfireMiddleware.dispatch method."""

    @pytest.mark.asyncio
    async def test_middleware_processes_successful_request(self):
        async def call_next(request):
            return Response(content="ok", status_code=200)

        middleware = LogfireMiddleware(app=AsyncMock())

        with patch(f"{MIDDLEWARE_MODULE}.log_api_request") as mock_log:
            response = await middleware.dispatch(_request(), call_next)

        assert response.status_code == 200
        mock_log.assert_called_once()
        kwargs = mock_log.call_args[1]
        assert kwargs["method"] == "GET"
        assert kwargs["path"] == "/api/v1/tasks"
        assert kwargs["status_code"] == 200
        assert kwargs["duration_ms"] >= 0

    @pytest.mark.asyncio
    async def test_middleware_adds_process_time_header(self):
        async def call_next(request):
            return Response(content="ok", status_code=201)

        middleware = LogfireMiddleware(app=AsyncMock())

        with patch(f"{MIDDLEWARE_MODULE}.log_api_request"), patch(f"{MIDDLEWARE_MODULE}.time", _clock(10.0, 10.25)):
            response = await middleware.dispatch(_request("POST"), call_next)

        assert response.headers["X-Process-Time"] == "250.00"

    @pytest.mark.asyncio
    async def test_middleware_stores_start_time(self):
        mock_request = _request()

        async def call_next(request):
            return Response(status_code=204)

        middleware = LogfireMiddleware(app=AsyncMock())

        with patch(f"{MIDDLEWARE_MODULE}.log_api_request"), patch(f"{MIDDLEWARE_MODULE}.time", _clock(42.0, 42.01)):
            await middleware.dispatch(mock_request, call_next)

        assert mock_request.state.start_time == 42.0

    @pytest.mark.asyncio
    async def test_middleware_detects_slow_requests(self):
        async def call_next(request):
            return Response(status_code=200)

        middleware = LogfireMiddleware(app=AsyncMock())

        with (
            patch(f"{MIDDLEWARE_MODULE}.log_api_request"),
            patch(f"{MIDDLEWARE_MODULE}.time", _clock(0.0, 2.5)),
            patch(f"{MIDDLEWARE_MODULE}.logger") as mock_logger,
        ):
            await middleware.dispatch(_request(path="/api/v1/planner/employees"), call_next)

        mock_logger.warning.assert_called_once()
        assert "Slow API request" in mock_logger.warning.call_args[0][0]
        assert mock_logger.warning.call_args[1]["extra"]["duration_ms"] == 2500.0

    @pytest.mark.asyncio
    async def test_middleware_fast_request_has_no_warning(self):
        async def call_next(request):
            return Response(status_code=200)

        middleware = LogfireMiddleware(app=AsyncMock())

        with (
            patch(f"{MIDDLEWARE_MODULE}.log_api_request"),
            patch(f"{MIDDLEWARE_MODULE}.time", _clock(0.0, 0.01)),
            patch(f"{MIDDLEWARE_MODULE}.logger") as mock_logger,
        ):
            await middleware.dispatch(_request(), call_next)

        mock_logger.warning.assert_not_called()

    @pytest.mark.asyncio
    async def test_middleware_handles_request_exception(self):
        async def call_next(request):
            raise ValueError("Test error")

        middleware = LogfireMiddleware(app=AsyncMock())

        with (
            patch(f"{MIDDLEWARE_MODULE}.log_api_request") as mock_log,
            patch(f"{MIDDLEWARE_MODULE}.logger") as mock_logger,
        ):
            with pytest.raises(ValueError, match="Test error"):
                await middleware.dispatch(_request("DELETE"), call_next)

        assert mock_log.call_args[1]["status_code"] == 500
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args[1]["extra"]["error"] == "Test error"
        assert mock_logger.error.call_args[1]["exc_info"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [200, 201, 400, 403, 404, 409])
    async def test_middleware_logs_different_status_codes(self, status_code):
        async def call_next(request):
            return Response(status_code=status_code)

        middleware = LogfireMiddleware(app=AsyncMock())

        with patch(f"{MIDDLEWARE_MODULE}.log_api_request") as mock_log:
            response = await middleware.dispatch(_request(), call_next)

        assert response.status_code == status_code
        assert mock_log.call_args[1]["status_code"] == status_code


class TestLogfireMiddlewareIntegration:
    """The middleware installed on an application."""

    @pytest.mark.asyncio
    async def test_header_on_real_response(self):
        app = FastAPI()
        app.add_middleware(LogfireMiddleware)

        @app.get("/ping")
        async def ping():
            return {"pong": True}

        with patch(f"{MIDDLEWARE_MODULE}.log_api_request") as mock_log:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                response = await client.get("/ping")

        assert response.status_code == 200
        assert response.json() == {"pong": True}
        assert float(response.headers["X-Process-Time"]) >= 0
        assert mock_log.call_args[1]["path"] == "/ping"
