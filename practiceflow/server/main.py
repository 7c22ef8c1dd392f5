"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request timing), exception handlers and monitoring, and includes all API
routers. It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from practiceflow.core import monitoring
from practiceflow.core.database.session import init_db
from practiceflow.core.logging_config import get_logger, setup_logging

from .api.v1 import (
    acceptance,
    approvals,
    clients,
    compliance,
    dashboard,
    health,
    notifications,
    opinions,
    planner,
    sars,
    service_lines,
    tasks,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Creates missing tables and seeds the default approval routes on startup.
    """
    # Startup
    try:
        logger.info(f"Starting up {constant.PROJECT_NAME} Server...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info(f"Shutting down {constant.PROJECT_NAME} Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    PracticeFlow Server API

    Practice management for professional-services firms: service lines and access,
    clients and tasks, the Kanban board and planners, client acceptance, generic
    approval routing, compliance tracking and AI-assisted opinion drafting.

    Every endpoint except health and version expects the caller's user id in the
    `X-User-Id` header.
    """,
    version=constant.API_VERSION,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=cors.allow_methods,
    allow_headers=cors.allow_headers,
)
app.add_middleware(LogfireMiddleware)

setup_exception_handlers(app)
monitoring.initialize_logfire(app)

api = constant.API_V1_STR
app.include_router(health.router, tags=["health"])
app.include_router(dashboard.router, prefix=f"{api}/dashboard", tags=["dashboard"])
app.include_router(service_lines.router, prefix=f"{api}/service-lines", tags=["service-lines"])
app.include_router(clients.router, prefix=f"{api}/clients", tags=["clients"])
app.include_router(acceptance.router, prefix=f"{api}/clients", tags=["acceptance"])
app.include_router(clients.groups_router, prefix=f"{api}/groups", tags=["groups"])
app.include_router(tasks.router, prefix=f"{api}/tasks", tags=["tasks"])
app.include_router(planner.task_router, prefix=f"{api}/tasks", tags=["planner"])
app.include_router(opinions.router, prefix=f"{api}/tasks", tags=["opinions"])
app.include_router(compliance.router, prefix=f"{api}/tasks", tags=["compliance"])
app.include_router(sars.router, prefix=f"{api}/tasks", tags=["sars"])
app.include_router(planner.router, prefix=f"{api}/planner", tags=["planner"])
app.include_router(approvals.router, prefix=f"{api}/approvals", tags=["approvals"])
app.include_router(notifications.router, prefix=f"{api}/notifications", tags=["notifications"])


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "practiceflow.server.main:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )
