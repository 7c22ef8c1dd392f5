from typing import AsyncGenerator, Callable, Dict
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from practiceflow.core.database.entities.users import User


@pytest_asyncio.fixture(name="client")
async def client_fixture(session: AsyncSession, world, seeded_routes, tmp_path) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with mocked lifespan and overridden dependencies."""
    from practiceflow.core.database.repositories import build_repositories
    from practiceflow.core.database.session import get_session
    from practiceflow.server.main import app
    from practiceflow.server.services.deps import get_opinion_service
    from practiceflow.services.opinions import DocumentStore, DraftingAssistant, OpinionService

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    def get_opinion_service_override() -> OpinionService:
        # No model configured: the drafting assistant falls back to template output
        return OpinionService(
            build_repositories(session),
            assistant=DraftingAssistant(model=None),
            store=DocumentStore(tmp_path, max_upload_size_mb=1),
        )

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_opinion_service] = get_opinion_service_override

    # Mock the lifespan to prevent database initialization during tests
    async def mock_lifespan(app):
        yield

    with patch("practiceflow.server.main.lifespan", mock_lifespan):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
            yield client

    app.dependency_overrides.clear()


@pytest.fixture
def auth() -> Callable[[User], Dict[str, str]]:
    """Headers authenticating as ``user``."""

    def _headers(user: User) -> Dict[str, str]:
        return {"X-User-Id": user.id}

    return _headers
