"""
Client and Client Group Endpoints.

Clients are visible through the service lines of their tasks. Changing a
client's partner or manager, directly or through an approved change
request, invalidates its acceptance.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from practiceflow.core.logging_config import get_logger
from practiceflow.core.models.domain.enums import ChangeRequestStatus, ServiceLineRole
from practiceflow.core.models.io.clients import (
    AcceptanceSummary,
    ChangeRequestCreate,
    ChangeRequestRead,
    ClientDetail,
    ClientGroupDetail,
    ClientGroupRead,
    ClientRead,
    ClientUpdate,
)
from practiceflow.core.models.io.common import Page
from practiceflow.core.models.io.tasks import TaskRead
from practiceflow.server.services.deps import AcceptanceDep, AccessDep, ChangeRequestDep, CurrentUser, ReposDep

logger = get_logger(__name__)

router = APIRouter()
groups_router = APIRouter()

PageParam = Query(default=1, ge=1)
LimitParam = Query(default=20, ge=1, le=100)


@router.get("", response_model=Page[ClientRead], summary="List Clients")
async def list_clients(
    user: CurrentUser,
    access: AccessDep,
    repos: ReposDep,
    page: int = PageParam,
    limit: int = LimitParam,
    search: Optional[str] = None,
    group_code: Optional[str] = None,
    partner_code: Optional[str] = None,
    industry: Optional[str] = None,
    service_line: Optional[str] = None,
    sub_group: Optional[str] = None,
):
    """
    List clients.

    Clients appear when they have a task in a service line the caller can
    see; system admins without a scope see every client.
    """
    codes = await access.scoped_service_line_codes(user, service_line, sub_group)
    clients, total = await repos.clients.search(
        page=page,
        limit=limit,
        search=search,
        group_code=group_code,
        partner_code=partner_code,
        industry=industry,
        serv_line_codes=codes,
    )
    return Page.build([ClientRead.model_validate(client) for client in clients], total, page, limit)


@router.get("/{client_id}", response_model=ClientDetail, summary="Get Client")
async def get_client(
    client_id: int,
    user: CurrentUser,
    access: AccessDep,
    acceptance: AcceptanceDep,
    repos: ReposDep,
    task_page: int = PageParam,
    task_limit: int = LimitParam,
):
    client = await access.require_client_access(user, client_id)
    codes = await access.scoped_service_line_codes(user)
    tasks, total = await repos.tasks.search(
        page=task_page, limit=task_limit, client_ids=[client_id], serv_line_codes=codes
    )
    acceptance_status = await acceptance.get_status(client_id)
    return ClientDetail(
        **ClientRead.model_validate(client).model_dump(),
        task_count=await repos.tasks.count_for_client(client_id),
        tasks=Page.build([TaskRead.model_validate(task) for task in tasks], total, task_page, task_limit),
        acceptance=AcceptanceSummary(**acceptance_status.model_dump(include=set(AcceptanceSummary.model_fields))),
    )


@router.patch("/{client_id}", response_model=ClientRead, summary="Update Client")
async def update_client(
    client_id: int, payload: ClientUpdate, user: CurrentUser, access: AccessDep, acceptance: AcceptanceDep, repos: ReposDep
):
    """
    Update editable client fields.

    A change of partner or manager invalidates the client acceptance in the
    same transaction.
    """
    client = await access.require_client_access(user, client_id, ServiceLineRole.MANAGER.value)
    changes = payload.model_dump(exclude_unset=True)
    team_changes = [
        field for field in ("partner_code", "manager_code") if field in changes and changes[field] != getattr(client, field)
    ]
    for field, value in changes.items():
        setattr(client, field, value)
    await repos.clients.stage(client)

    if team_changes:
        reason = ", ".join(f"{field.replace('_code', '')} changed" for field in team_changes)
        await acceptance.invalidate(client_id, reason, user, commit=False)
        logger.info(f"Client {client_id} acceptance invalidated: {reason}")
    await repos.commit()
    return ClientRead.model_validate(client)


@router.post(
    "/{client_id}/change-requests",
    response_model=ChangeRequestRead,
    status_code=status.HTTP_201_CREATED,
    summary="Request Partner/Manager Change",
)
async def create_change_request(
    client_id: int, payload: ChangeRequestCreate, user: CurrentUser, access: AccessDep, change_requests: ChangeRequestDep
):
    """
    Propose a new client partner or manager.

    The change goes through the CHANGE_REQUEST approval and is applied to
    the client, invalidating its acceptance, once that approval completes.
    """
    client = await access.require_client_access(user, client_id)
    return ChangeRequestRead.model_validate(await change_requests.create(client, user, payload))


@router.get("/{client_id}/change-requests", response_model=Page[ChangeRequestRead], summary="List Change Requests")
async def list_change_requests(
    client_id: int,
    user: CurrentUser,
    access: AccessDep,
    change_requests: ChangeRequestDep,
    page: int = PageParam,
    limit: int = LimitParam,
    status: Optional[ChangeRequestStatus] = None,
):
    await access.require_client_access(user, client_id)
    requests, total = await change_requests.list_for_client(client_id, page=page, limit=limit, status=status)
    return Page.build([ChangeRequestRead.model_validate(request) for request in requests], total, page, limit)


@router.get(
    "/{client_id}/change-requests/{request_id}", response_model=ChangeRequestRead, summary="Get Change Request"
)
async def get_change_request(
    client_id: int, request_id: int, user: CurrentUser, access: AccessDep, change_requests: ChangeRequestDep
):
    await access.require_client_access(user, client_id)
    return ChangeRequestRead.model_validate(await change_requests.get(client_id, request_id))


@groups_router.get("", response_model=Page[ClientGroupRead], summary="List Client Groups")
async def list_groups(
    user: CurrentUser,
    access: AccessDep,
    repos: ReposDep,
    page: int = PageParam,
    limit: int = LimitParam,
    search: Optional[str] = None,
):
    codes = await access.scoped_service_line_codes(user)
    groups, total = await repos.clients.list_groups(page=page, limit=limit, search=search, serv_line_codes=codes)
    return Page.build([ClientGroupRead(**group) for group in groups], total, page, limit)


@groups_router.get("/{group_code}", response_model=ClientGroupDetail, summary="Get Client Group")
async def get_group(
    group_code: str,
    user: CurrentUser,
    access: AccessDep,
    repos: ReposDep,
    page: int = PageParam,
    limit: int = LimitParam,
):
    codes = await access.scoped_service_line_codes(user)
    clients, total = await repos.clients.list_group_clients(group_code, page=page, limit=limit, serv_line_codes=codes)
    if total == 0:
        _, unscoped_total = await repos.clients.list_group_clients(group_code, page=1, limit=1)
        if unscoped_total == 0:
            raise HTTPException(status_code=404, detail="Client group not found")
    group_desc = clients[0].group_desc if clients else None
    return ClientGroupDetail(
        group_code=group_code,
        group_desc=group_desc,
        clients=Page.build([ClientRead.model_validate(client) for client in clients], total, page, limit),
    )
