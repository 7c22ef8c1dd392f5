"""
Liveness and version endpoints.

Unauthenticated; load balancers and deploy checks call these without an
``X-User-Id`` header.
"""

from fastapi import APIRouter

from practiceflow.server.core.constant import API_VERSION, SCHEMA_VERSION

router = APIRouter()


@router.get(
    "/health",
    summary="Health Check",
    description="Report that the PracticeFlow API process is up.",
    response_description="Status object.",
)
async def health_check():
    return {"status": "ok"}


@router.get(
    "/version",
    summary="Get Version",
    description="API version and the response schema version.",
    response_description="Version object.",
)
async def version():
    """Semantic API version plus the schema version of the JSON responses."""
    return {"version": API_VERSION, "schema_version": SCHEMA_VERSION}
