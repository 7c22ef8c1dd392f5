from __future__ import annotations

import os
from datetime import date
from pathlib import Path
from typing import AsyncGenerator, Iterable

import httpx
import pytest
import pytest_asyncio
from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel.pool import StaticPool

TEST_ROOT = Path(__file__).resolve().parent
load_dotenv(TEST_ROOT / ".env", override=False)

# Set before any application import so the global engine and settings use them
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ.pop("OPENAI_API_KEY", None)
os.environ["LOGFIRE_ENABLED"] = "false"

from practiceflow.core.database.base import Base  # noqa: E402
from practiceflow.core.database.entities.clients import Client  # noqa: E402
from practiceflow.core.database.entities.service_lines import ServiceLine, ServiceLineUser  # noqa: E402
from practiceflow.core.database.entities.users import Employee, User  # noqa: E402
from practiceflow.core.database.repositories import RepositoryBundle, build_repositories  # noqa: E402
from practiceflow.core.database.utils import create_sessionmaker  # noqa: E402
from practiceflow.core.models.domain.enums import ServiceLineRole  # noqa: E402


@pytest.fixture(autouse=True)
def _global_offline_http_guard(monkeypatch: pytest.MonkeyPatch):
    allowed_prefixes: Iterable[str] = (
        "http://mock",
        "https://mock",
        "http://localhost",
        "http://127.0.0.1",
        "http://0.0.0.0",
        "http://test",
        "/",  # Allow relative paths (used by ASGI transport)
    )

    orig_sync = httpx._client.Client.request
    orig_async = httpx._client.AsyncClient.request

    def _is_allowed(url_str: str) -> bool:
        return any(url_str.startswith(p) for p in allowed_prefixes)

    def offline_sync(self, method, url, *args, **kwargs):
        url_str = str(url)
        if _is_allowed(url_str):
            return orig_sync(self, method, url, *args, **kwargs)
        raise RuntimeError(f"External HTTP blocked by global offline guard: {url_str}")

    async def offline_async(self, method, url, *args, **kwargs):
        url_str = str(url)
        if _is_allowed(url_str):
            return await orig_async(self, method, url, *args, **kwargs)
        raise RuntimeError(f"External HTTP blocked by global offline guard (async): {url_str}")

    monkeypatch.setattr(httpx._client.Client, "request", offline_sync, raising=True)
    monkeypatch.setattr(httpx._client.AsyncClient, "request", offline_async, raising=True)


# =====================================================================
# Database
# =====================================================================


@pytest_asyncio.fixture
async def test_engine():
    """Fresh in-memory database per test."""
    import practiceflow.core.database.entities  # noqa: F401

    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(test_engine) -> AsyncGenerator[AsyncSession, None]:
    async with create_sessionmaker(test_engine)() as session:
        yield session


@pytest.fixture
def repos(session: AsyncSession) -> RepositoryBundle:
    return build_repositories(session)


# =====================================================================
# Seeded practice
# =====================================================================

TAX_CODE = "TAX01"
TAX_SUB_GROUP = "TAXCOMP"
AUDIT_CODE = "AUD01"
AUDIT_SUB_GROUP = "AUDGEN"


class World:
    """Users, employees, grants and a client shared by service and API tests."""

    admin: User
    partner: User
    manager: User
    staff: User
    viewer: User
    outsider: User
    client: Client


@pytest_asyncio.fixture
async def world(session: AsyncSession) -> World:
    w = World()
    w.admin = User(id="admin", email="admin@firm.test", name="System Admin", is_system_admin=True)
    w.partner = User(id="partner", email="partner@firm.test", name="Pat Partner")
    w.manager = User(id="manager", email="manager@firm.test", name="Max Manager")
    w.staff = User(id="staff", email="staff@firm.test", name="Sam Staff")
    w.viewer = User(id="viewer", email="viewer@firm.test", name="Val Viewer")
    w.outsider = User(id="outsider", email="outsider@firm.test", name="Oli Outsider")
    session.add_all([w.admin, w.partner, w.manager, w.staff, w.viewer, w.outsider])

    session.add_all(
        [
            Employee(emp_code="P001", emp_name="Pat Partner", win_logon="partner@firm.test", job_grade="PARTNER"),
            Employee(emp_code="M001", emp_name="Max Manager", win_logon="manager@firm.test", job_grade="MANAGER"),
            Employee(emp_code="S001", emp_name="Sam Staff", win_logon="staff@firm.test", job_grade="CONSULTANT"),
            Employee(emp_code="X001", emp_name="No Account", win_logon="nobody@firm.test"),
        ]
    )
    session.add_all(
        [
            ServiceLine(
                serv_line_code=TAX_CODE,
                serv_line_desc="Tax Compliance",
                sub_group=TAX_SUB_GROUP,
                sub_group_desc="Tax Compliance",
                master_code="TAX",
                master_desc="Tax",
            ),
            ServiceLine(
                serv_line_code=AUDIT_CODE,
                serv_line_desc="General Audit",
                sub_group=AUDIT_SUB_GROUP,
                sub_group_desc="General Audit",
                master_code="AUDIT",
                master_desc="Audit",
            ),
        ]
    )
    grants = [
        (w.partner, TAX_SUB_GROUP, "TAX", ServiceLineRole.PARTNER),
        (w.manager, TAX_SUB_GROUP, "TAX", ServiceLineRole.MANAGER),
        (w.staff, TAX_SUB_GROUP, "TAX", ServiceLineRole.USER),
        (w.viewer, TAX_SUB_GROUP, "TAX", ServiceLineRole.VIEWER),
        (w.outsider, AUDIT_SUB_GROUP, "AUDIT", ServiceLineRole.USER),
    ]
    session.add_all(
        [
            ServiceLineUser(user_id=user.id, sub_group=sub_group, master_code=master, role=role.value)
            for user, sub_group, master, role in grants
        ]
    )
    w.client = Client(
        client_code="CL001",
        client_name="Acme Holdings",
        group_code="G01",
        group_desc="Acme Group",
        partner_code="P001",
        manager_code="M001",
        industry="Manufacturing",
    )
    session.add(w.client)
    await session.commit()
    return w


@pytest_asyncio.fixture
async def seeded_routes(repos: RepositoryBundle) -> int:
    from practiceflow.services.approvals import ApprovalService

    return await ApprovalService(repos).seed_default_routes()


@pytest.fixture
def today() -> date:
    return date(2026, 10, 19)


# Answers that pass every required question with no high-risk answer
SAFE_ANSWERS = {
    "Q1ClientBackground": "Manufacturer of industrial parts",
    "Q2ClientBackground": "Yes",
    "Q3ClientBackground": "Yes",
    "Q1ClientFinancial": "No",
    "Q2ClientFinancial": "No",
    "Q3ClientFinancial": "No",
    "Q1ClientRegulatory": "No",
    "Q2ClientRegulatory": "No",
    "Q3ClientRegulatory": "No",
    "Q1ClientReputation": "No",
    "Q2ClientReputation": "No",
    "Q3ClientReputation": "No",
    "Q4ClientReputation": "No",
    "Q1ClientRelationship": "Yes",
    "Q2ClientRelationship": "No",
    "Q3ClientRelationship": "No",
    "Q1ClientApproval": "Yes - Accept",
}


@pytest.fixture
def safe_answers() -> dict[str, str]:
    return dict(SAFE_ANSWERS)
