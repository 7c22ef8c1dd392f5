"""
Unit tests for server exception handlers.

Tests cover application error rendering, the global handler for unhandled
exceptions and handler registration, including a round trip through a
small FastAPI app.
"""

import json
from unittest.mock import Mock, patch

import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient

from practiceflow.core.errors import (
    AppError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
)
from practiceflow.server.exception_handlers import setup_exception_handlers
from practiceflow.server.exception_handlers.global_handler import (
    app_error_handler,
    global_exception_handler,
)

HANDLER_MODULE = "practiceflow.server.exception_handlers.global_handler"


@pytest.fixture
def mock_request():
    """Create a mock request object."""
    request = Mock(spec=Request)
    request.method = "GET"
    request.url.path = "/api/v1/tasks/1"
    request.query_params = {}
    request.client = Mock()
    request.client.host = "127.0.0.1"
    return request


class TestAppErrorHandler:
    """Test suite for application error rendering."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "exc,status_code,code",
        [
            (NotFoundError("Task not found"), 404, "NOT_FOUND"),
            (ForbiddenError(), 403, "FORBIDDEN"),
            (ValidationError("Bad input"), 400, "VALIDATION_ERROR"),
            (ConflictError("Already exists"), 409, "CONFLICT"),
            (PayloadTooLargeError("Too big"), 413, "PAYLOAD_TOO_LARGE"),
        ],
    )
    async def test_renders_status_and_code(self, mock_request, exc, status_code, code):
        with patch(f"{HANDLER_MODULE}.logger"):
            response = await app_error_handler(mock_request, exc)

        assert response.status_code == status_code
        body = json.loads(response.body.decode())
        assert body["success"] is False
        assert body["code"] == code
        assert body["error"] == exc.message

    @pytest.mark.asyncio
    async def test_includes_details(self, mock_request):
        exc = ValidationError("Client acceptance required", details={"client_id": 3, "acceptance_required": True})

        with patch(f"{HANDLER_MODULE}.logger"):
            response = await app_error_handler(mock_request, exc)

        body = json.loads(response.body.decode())
        assert body["details"] == {"client_id": 3, "acceptance_required": True}

    @pytest.mark.asyncio
    async def test_client_errors_logged_at_info(self, mock_request):
        with patch(f"{HANDLER_MODULE}.logger") as mock_logger:
            await app_error_handler(mock_request, NotFoundError("Task not found"))

        mock_logger.info.assert_called_once()
        mock_logger.warning.assert_not_called()
        assert "404 NOT_FOUND" in mock_logger.info.call_args[0][0]

    @pytest.mark.asyncio
    async def test_server_errors_logged_at_warning(self, mock_request):
        with patch(f"{HANDLER_MODULE}.logger") as mock_logger:
            await app_error_handler(mock_request, AppError(502, "Upstream failed"))

        mock_logger.warning.assert_called_once()


class TestGlobalExceptionHandler:
    """Test suite for global exception handler."""

    @pytest.mark.asyncio
    async def test_exception_handler_logs_error(self, mock_request):
        """Test that exception handler logs errors."""
        exc = ValueError("Test error")

        with patch(f"{HANDLER_MODULE}.logger") as mock_logger, patch(f"{HANDLER_MODULE}.log_error"):
            await global_exception_handler(mock_request, exc)

            mock_logger.error.assert_called_once()
            call_args = mock_logger.error.call_args
            assert "Unhandled exception" in call_args[0][0]
            assert call_args[1]["extra"]["error_type"] == "ValueError"
            assert call_args[1]["exc_info"] is True

    @pytest.mark.asyncio
    async def test_exception_handler_returns_500_json(self, mock_request):
        exc = RuntimeError("Test error")

        with patch(f"{HANDLER_MODULE}.logger"), patch(f"{HANDLER_MODULE}.log_error"):
            response = await global_exception_handler(mock_request, exc)

        assert isinstance(response, JSONResponse)
        assert response.status_code == 500
        body = json.loads(response.body.decode())
        assert body["detail"] == "Internal server error"
        assert body["error_type"] == "RuntimeError"
        assert isinstance(body["error_id"], str)
        assert len(body["error_id"]) == 12

    @pytest.mark.asyncio
    async def test_exception_handler_error_id_is_unique(self, mock_request):
        with patch(f"{HANDLER_MODULE}.logger"), patch(f"{HANDLER_MODULE}.log_error"):
            first = await global_exception_handler(mock_request, RuntimeError("one"))
            second = await global_exception_handler(mock_request, RuntimeError("two"))

        assert json.loads(first.body)["error_id"] != json.loads(second.body)["error_id"]

    @pytest.mark.asyncio
    async def test_exception_handler_logs_request_context(self, mock_request):
        mock_request.query_params = {"page": "2"}

        with patch(f"{HANDLER_MODULE}.logger") as mock_logger, patch(f"{HANDLER_MODULE}.log_error"):
            await global_exception_handler(mock_request, KeyError("missing"))

        extra = mock_logger.error.call_args[1]["extra"]
        assert extra["method"] == "GET"
        assert extra["path"] == "/api/v1/tasks/1"
        assert extra["query_params"] == {"page": "2"}
        assert extra["client"] == "127.0.0.1"
        assert isinstance(extra["traceback"], str)

    @pytest.mark.asyncio
    async def test_exception_handler_handles_missing_client(self, mock_request):
        mock_request.client = None

        with patch(f"{HANDLER_MODULE}.logger") as mock_logger, patch(f"{HANDLER_MODULE}.log_error"):
            await global_exception_handler(mock_request, RuntimeError("Test error"))

        assert mock_logger.error.call_args[1]["extra"]["client"] == "unknown"

    @pytest.mark.asyncio
    async def test_exception_handler_reports_to_monitoring(self, mock_request):
        with patch(f"{HANDLER_MODULE}.logger"), patch(f"{HANDLER_MODULE}.log_error") as mock_log_error:
            response = await global_exception_handler(mock_request, TypeError("bad type"))

        error_id = json.loads(response.body)["error_id"]
        mock_log_error.assert_called_once_with(
            "TypeError", "bad type", {"error_id": error_id, "path": "/api/v1/tasks/1"}
        )


class TestSetupExceptionHandlers:
    """Test suite for setup_exception_handlers function."""

    def test_setup_exception_handlers_registers_handlers(self):
        app = FastAPI()

        with patch(f"{HANDLER_MODULE}.logger"):
            setup_exception_handlers(app)

        assert AppError in app.exception_handlers
        assert Exception in app.exception_handlers

    def test_setup_exception_handlers_logs_debug_message(self):
        app = FastAPI()

        with patch(f"{HANDLER_MODULE}.logger") as mock_logger:
            setup_exception_handlers(app)

            mock_logger.debug.assert_called_once()
            assert "Exception handlers registered" in mock_logger.debug.call_args[0][0]

    def test_setup_exception_handlers_with_existing_handlers(self):
        app = FastAPI()

        @app.exception_handler(ValueError)
        async def value_error_handler(request, exc):
            return JSONResponse(status_code=400, content={"error": "value error"})

        with patch(f"{HANDLER_MODULE}.logger"):
            setup_exception_handlers(app)

        assert ValueError in app.exception_handlers
        assert Exception in app.exception_handlers


class TestHandlersInApp:
    """Errors raised from routes reach the client in the rendered shape."""

    @pytest.fixture
    def app(self):
        app = FastAPI()
        setup_exception_handlers(app)

        @app.get("/conflict")
        async def conflict():
            raise ConflictError("Task is archived", details={"task_id": 1})

        @app.get("/boom")
        async def boom():
            raise RuntimeError("unexpected")

        return app

    @pytest.mark.asyncio
    async def test_app_error_response(self, app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.get("/conflict")

        assert response.status_code == 409
        assert response.json() == {
            "success": False,
            "error": "Task is archived",
            "code": "CONFLICT",
            "details": {"task_id": 1},
        }

    @pytest.mark.asyncio
    async def test_unhandled_error_response(self, app):
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        with patch(f"{HANDLER_MODULE}.log_error"):
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/boom")

        assert response.status_code == 500
        assert response.json()["error_type"] == "RuntimeError"
