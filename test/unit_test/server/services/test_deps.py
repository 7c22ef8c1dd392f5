"""Unit tests for server request dependencies.

Tests verify that the annotated dependencies are wired through FastAPI's
Depends mechanism and that the caller is resolved from the X-User-Id header.
"""

import pytest

from practiceflow.core.errors import UnauthorizedError
from practiceflow.server.core.config import settings
from practiceflow.server.services.deps import (
    ApprovalDep,
    CurrentUser,
    get_approval_service,
    get_current_user,
    get_opinion_service,
    get_repos,
)
from practiceflow.services.approvals import ApprovalService
from practiceflow.services.opinions import OpinionService


class TestAnnotatedDependencies:
    """Test the Annotated dependency aliases."""

    def test_current_user_is_annotated(self):
        assert hasattr(CurrentUser, "__metadata__")
        assert CurrentUser.__metadata__[0].dependency is get_current_user

    def test_approval_dep_has_depends(self):
        assert ApprovalDep.__metadata__[0].dependency is get_approval_service


class TestGetCurrentUser:
    @pytest.mark.asyncio
    async def test_resolves_known_user(self, repos, world):
        user = await get_current_user(repos, x_user_id="partner")

        assert user.id == "partner"
        assert user.name == "Pat Partner"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", [None, ""])
    async def test_missing_header(self, repos, header):
        with pytest.raises(UnauthorizedError, match="Missing X-User-Id header"):
            await get_current_user(repos, x_user_id=header)

    @pytest.mark.asyncio
    async def test_unknown_user(self, repos, world):
        with pytest.raises(UnauthorizedError) as exc_info:
            await get_current_user(repos, x_user_id="ghost")

        assert exc_info.value.status_code == 401


class TestServiceFactories:
    @pytest.mark.asyncio
    async def test_repos_generator_yields_bundle(self, session):
        generator = get_repos(session)
        bundle = await generator.__anext__()

        assert bundle.session is session
        await generator.aclose()

    def test_service_factories_share_the_bundle(self, repos):
        approvals = get_approval_service(repos)

        assert isinstance(approvals, ApprovalService)
        assert approvals.repos is repos

    def test_opinion_service_without_api_key_has_no_model(self, repos, monkeypatch):
        monkeypatch.setattr(settings, "openai_api_key", None)

        service = get_opinion_service(repos)

        assert isinstance(service, OpinionService)
        assert service.assistant.available is False
