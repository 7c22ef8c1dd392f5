"""
Service Line Endpoints.

The caller's service lines, the members of a sub-group and role grants.
"""

from typing import List

from fastapi import APIRouter, HTTPException, status

from practiceflow.core.database.entities.service_lines import ServiceLineUser
from practiceflow.core.logging_config import get_logger
from practiceflow.core.models.domain.enums import ServiceLineRole
from practiceflow.core.models.io.common import MessageResponse
from practiceflow.core.models.io.service_lines import (
    ServiceLineGrant,
    ServiceLineMemberRead,
    UserServiceLineRead,
)
from practiceflow.server.services.deps import AccessDep, CurrentUser, ReposDep

logger = get_logger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=List[UserServiceLineRead],
    summary="List My Service Lines",
    description="Service lines the caller belongs to, with sub-groups and roles.",
)
async def list_service_lines(user: CurrentUser, access: AccessDep):
    return await access.get_user_service_lines(user)


@router.get(
    "/{service_line}/{sub_group}/users",
    response_model=List[ServiceLineMemberRead],
    summary="List Sub-group Members",
    responses={403: {"description": "Caller is not a member of the sub-group"}, 404: {"description": "Unknown sub-group"}},
)
async def list_members(service_line: str, sub_group: str, user: CurrentUser, access: AccessDep, repos: ReposDep):
    mapping = await repos.service_lines.get_sub_group(sub_group)
    if mapping is None or mapping.master_code != service_line:
        raise HTTPException(status_code=404, detail="Service line group not found")
    await access.require_service_line_role(user, sub_group, ServiceLineRole.VIEWER.value)

    grants = await repos.service_line_users.list_for_sub_groups([sub_group])
    users = await repos.users.get_many([grant.user_id for grant in grants])
    members = [
        ServiceLineMemberRead(
            user_id=grant.user_id,
            name=users[grant.user_id].name,
            email=users[grant.user_id].email,
            sub_group=grant.sub_group,
            role=grant.role,
        )
        for grant in grants
        if grant.user_id in users
    ]
    return sorted(members, key=lambda member: member.name.lower())


@router.put(
    "/{sub_group}/users/{user_id}",
    response_model=ServiceLineMemberRead,
    summary="Grant Sub-group Role",
    description="Grant or change a user's role in a sub-group. Requires ADMINISTRATOR in the group.",
)
async def grant_role(
    sub_group: str, user_id: str, payload: ServiceLineGrant, user: CurrentUser, access: AccessDep, repos: ReposDep
):
    mapping = await repos.service_lines.get_sub_group(sub_group)
    if mapping is None:
        raise HTTPException(status_code=404, detail="Service line group not found")
    await access.require_service_line_role(user, sub_group, ServiceLineRole.ADMINISTRATOR.value)
    member = await repos.users.get_by_id(user_id)
    if member is None:
        raise HTTPException(status_code=404, detail="User not found")

    grant = await repos.service_line_users.get_grant(user_id, sub_group)
    if grant is None:
        grant = ServiceLineUser(user_id=user_id, sub_group=sub_group, master_code=mapping.master_code, role=payload.role.value)
        grant = await repos.service_line_users.create(grant)
    else:
        grant.role = payload.role.value
        grant = await repos.service_line_users.update(grant)
    logger.info(f"Granted {grant.role} in {sub_group} to {user_id} by {user.id}")
    return ServiceLineMemberRead(
        user_id=member.id, name=member.name, email=member.email, sub_group=sub_group, role=grant.role
    )


@router.delete(
    "/{sub_group}/users/{user_id}",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Revoke Sub-group Role",
)
async def revoke_role(sub_group: str, user_id: str, user: CurrentUser, access: AccessDep, repos: ReposDep):
    await access.require_service_line_role(user, sub_group, ServiceLineRole.ADMINISTRATOR.value)
    grant = await repos.service_line_users.get_grant(user_id, sub_group)
    if grant is None:
        raise HTTPException(status_code=404, detail="Grant not found")
    await repos.service_line_users.delete(grant.id)
    logger.info(f"Revoked {sub_group} grant of {user_id} by {user.id}")
    return MessageResponse(message="Access revoked")
