"""
Monitoring and Tracing Configuration Module.

Integrates Pydantic Logfire for tracing of PracticeFlow operations:
- API endpoint tracing
- Database operation monitoring
- AI drafting model calls
- Workflow events (approvals, acceptance decisions)

Logfire is only configured when ``LOGFIRE_ENABLED`` is set and a token is
available. The ``log_*`` helpers are safe to call either way.
"""

import logging
import os
from typing import Any, Optional

import logfire
from fastapi import FastAPI

logger = logging.getLogger(__name__)

LOGFIRE_ENABLED = os.getenv("LOGFIRE_ENABLED", "false").lower() in ("true", "1", "yes")
LOGFIRE_TOKEN = os.getenv("LOGFIRE_TOKEN", "")
LOGFIRE_ENVIRONMENT = os.getenv("LOGFIRE_ENVIRONMENT", "development")
LOGFIRE_SERVICE_NAME = os.getenv("LOGFIRE_SERVICE_NAME", "practiceflow-server")
LOGFIRE_SERVICE_VERSION = os.getenv("LOGFIRE_SERVICE_VERSION", "0.1.0")

LOGFIRE_TRACE_PYDANTIC_AI = os.getenv("LOGFIRE_TRACE_PYDANTIC_AI", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_SQLALCHEMY = os.getenv("LOGFIRE_TRACE_SQLALCHEMY", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_FASTAPI = os.getenv("LOGFIRE_TRACE_FASTAPI", "true").lower() in ("true", "1", "yes")

_configured = False


def initialize_logfire(app: FastAPI | None = None) -> bool:
    """
    Initialize Logfire monitoring.

    Args:
        app: FastAPI application to instrument (optional).

    Returns:
        True when Logfire was configured.
    """
    global _configured

    if not LOGFIRE_ENABLED:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return False

    if not LOGFIRE_TOKEN:
        logger.warning("Logfire is enabled but LOGFIRE_TOKEN is not set. Monitoring will not work.")
        return False

    logfire.configure(
        token=LOGFIRE_TOKEN,
        service_name=LOGFIRE_SERVICE_NAME,
        service_version=LOGFIRE_SERVICE_VERSION,
        environment=LOGFIRE_ENVIRONMENT,
    )

    if LOGFIRE_TRACE_PYDANTIC_AI:
        try:
            logfire.instrument_pydantic_ai()
            logger.info("Logfire: Pydantic AI instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument Pydantic AI: {e}")

    if LOGFIRE_TRACE_SQLALCHEMY:
        try:
            logfire.instrument_sqlalchemy()
            logger.info("Logfire: SQLAlchemy instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument SQLAlchemy: {e}")

    if LOGFIRE_TRACE_FASTAPI and app is not None:
        try:
            logfire.instrument_fastapi(app=app)
            logger.info("Logfire: FastAPI instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to instrument FastAPI: {e}")

    _configured = True
    logger.info(f"Logfire monitoring initialized: environment={LOGFIRE_ENVIRONMENT}, service={LOGFIRE_SERVICE_NAME}")
    return True


def is_enabled() -> bool:
    return _configured


def log_api_request(method: str, path: str, status_code: int, duration_ms: float) -> None:
    """
    Log an API request with performance metrics.

    Args:
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        duration_ms: Request duration in milliseconds
    """
    if not _configured:
        return
    logfire.info(
        "API request completed",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=duration_ms,
    )


def log_workflow_event(event: str, **attributes: Any) -> None:
    """
    Record a workflow event such as an approval decision.

    Args:
        event: Short event name
        **attributes: Structured attributes attached to the event
    """
    logger.debug(f"{event}: {attributes}")
    if _configured:
        logfire.info(event, **attributes)


def log_ai_call(purpose: str, model: Optional[str], duration_ms: float, fallback: bool) -> None:
    """
    Log a drafting assistant call.

    Args:
        purpose: What the call produced (section content, chat reply)
        model: Model name, None when the deterministic fallback ran
        duration_ms: Call duration in milliseconds
        fallback: Whether the deterministic fallback produced the output
    """
    if not _configured:
        return
    logfire.info("AI call completed", purpose=purpose, model=model, duration_ms=duration_ms, fallback=fallback)


def log_error(error_type: str, error_message: str, context: Optional[dict] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    if not _configured:
        return
    logfire.error(f"{error_type}: {error_message}", **(context or {}))
