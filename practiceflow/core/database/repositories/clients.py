"""
Client repository.

Listing queries take an optional set of service-line codes. When given, only
clients with at least one task in one of those codes are returned; ``None``
means unrestricted.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import func
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from practiceflow.core.models.domain.enums import ChangeRequestStatus

from ..entities.clients import Client, ClientChangeRequest
from ..entities.tasks import Task
from .base import QueryBuilder, SQLModelRepository


class ClientRepository(SQLModelRepository[Client]):
    """Repository for client records."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Client)

    @staticmethod
    def _scope(stmt, serv_line_codes: Optional[Sequence[str]]):
        if serv_line_codes is None:
            return stmt
        with_tasks = select(Task.client_id).where(col(Task.serv_line_code).in_(list(serv_line_codes)))
        return stmt.where(col(Client.id).in_(with_tasks))

    async def search(
        self,
        *,
        page: int,
        limit: int,
        search: Optional[str] = None,
        group_code: Optional[str] = None,
        partner_code: Optional[str] = None,
        industry: Optional[str] = None,
        serv_line_codes: Optional[Sequence[str]] = None,
    ) -> tuple[Sequence[Client], int]:
        stmt = select(Client)
        stmt = QueryBuilder.apply_search(stmt, [Client.client_code, Client.client_name, Client.group_desc], search)
        stmt = QueryBuilder.apply_filters(
            stmt, Client, {"group_code": group_code, "partner_code": partner_code, "industry": industry}
        )
        stmt = self._scope(stmt, serv_line_codes).order_by(Client.client_name)
        return await self.paginate(stmt, page, limit)

    async def get_by_code(self, client_code: str) -> Optional[Client]:
        result = await self.session.exec(select(Client).where(Client.client_code == client_code))
        return result.first()

    async def get_many(self, client_ids: Sequence[int]) -> Dict[int, Client]:
        ids = {client_id for client_id in client_ids if client_id is not None}
        if not ids:
            return {}
        result = await self.session.exec(select(Client).where(col(Client.id).in_(ids)))
        return {client.id: client for client in result.all()}

    async def list_groups(
        self,
        *,
        page: int,
        limit: int,
        search: Optional[str] = None,
        serv_line_codes: Optional[Sequence[str]] = None,
    ) -> tuple[List[Dict[str, Any]], int]:
        """Distinct client groups with their client counts."""
        stmt = select(Client.group_code, Client.group_desc, func.count(col(Client.id)).label("client_count")).where(
            col(Client.group_code).is_not(None)
        )
        stmt = QueryBuilder.apply_search(stmt, [Client.group_code, Client.group_desc], search)
        stmt = self._scope(stmt, serv_line_codes)
        stmt = stmt.group_by(Client.group_code, Client.group_desc).order_by(Client.group_desc)

        total = await self.count(stmt)
        result = await self.session.exec(QueryBuilder.apply_pagination(stmt, limit, (page - 1) * limit))
        groups = [
            {"group_code": code, "group_desc": desc, "client_count": count} for code, desc, count in result.all()
        ]
        return groups, total

    async def list_group_clients(
        self,
        group_code: str,
        *,
        page: int,
        limit: int,
        serv_line_codes: Optional[Sequence[str]] = None,
    ) -> tuple[Sequence[Client], int]:
        stmt = select(Client).where(Client.group_code == group_code)
        stmt = self._scope(stmt, serv_line_codes).order_by(Client.client_name)
        return await self.paginate(stmt, page, limit)


class ClientChangeRequestRepository(SQLModelRepository[ClientChangeRequest]):
    """Repository for partner/manager change requests."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, ClientChangeRequest)

    async def get_pending(self, client_id: int, change_type: str) -> Optional[ClientChangeRequest]:
        stmt = select(ClientChangeRequest).where(
            ClientChangeRequest.client_id == client_id,
            ClientChangeRequest.change_type == change_type,
            ClientChangeRequest.status == ChangeRequestStatus.PENDING.value,
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def list_for_client(
        self, client_id: int, *, page: int, limit: int, status: Optional[str] = None
    ) -> tuple[Sequence[ClientChangeRequest], int]:
        """A client's change requests, newest first."""
        stmt = select(ClientChangeRequest).where(ClientChangeRequest.client_id == client_id)
        stmt = QueryBuilder.apply_filters(stmt, ClientChangeRequest, {"status": status})
        stmt = stmt.order_by(col(ClientChangeRequest.created_at).desc(), col(ClientChangeRequest.id).desc())
        return await self.paginate(stmt, page, limit)
