"""
User role endpoints.

Exposed endpoints:
- GET /api/users/me/permissions - Caller's role and effective permissions
- GET /api/users/assignable-roles - Roles the caller may hand out
- PUT /api/users/{id}/role - Change another user's role
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from auth.actor import Actor
from auth.rbac_dependencies import get_current_actor
from practice.database import DatabaseManager
from practice.errors import to_http_exception
from practice.service import UserService
from practice.schemas import (
    AssignableRolesResponse,
    PermissionsResponse,
    RoleChangeRequest,
    RoleChangeResponse,
)
from security.policy.permissions import hierarchy_level, permissions_of

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me/permissions", response_model=PermissionsResponse)
async def get_my_permissions(actor: Actor = Depends(get_current_actor)):
    """
    Get the caller's role, hierarchy level and permissions.
    """
    return {
        "user_id": actor.user_id,
        "role": actor.role.value,
        "hierarchy_level": hierarchy_level(actor.role),
        "permissions": sorted(p.value for p in permissions_of(actor.role)),
    }


@router.get("/assignable-roles", response_model=AssignableRolesResponse)
async def get_assignable_roles(actor: Actor = Depends(get_current_actor)):
    """
    Get the roles the caller may assign, most senior first.
    """
    return {
        "role": actor.role.value,
        "assignable_roles": [r.value for r in UserService.assignable_roles_for(actor)],
    }


@router.put("/{user_id}/role", response_model=RoleChangeResponse)
async def change_user_role(
    user_id: str,
    request: RoleChangeRequest,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(DatabaseManager.get_session)
):
    """
    Change a user's role.

    The caller must outrank the user's current role and be allowed to assign
    the new one. Nobody can change their own role.
    """
    try:
        return UserService.change_role(db, actor, user_id, request.role)
    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e)
