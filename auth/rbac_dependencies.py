"""
Role-Based Access Control (RBAC) dependencies for FastAPI.
Provides reusable dependency functions to protect routes with permission checks.
"""

from typing import List

from fastapi import Depends, HTTPException, Header
from loguru import logger

from auth.actor import Actor
from auth.auth_manager import get_auth_manager
from security.policy.errors import PolicyInputError
from security.policy.permissions import (
    PermissionLike,
    has_all_permissions,
    has_any_permission,
    has_permission,
    parse_permission,
    parse_role,
)

FORBIDDEN = "Insufficient permissions"

# ==================== DEPENDENCY FUNCTIONS ====================

async def verify_jwt_token(authorization: str = Header(None)) -> dict:
    """
    Dependency: Verify JWT token and return payload.
    """
    if not authorization or "Bearer " not in authorization:
        raise HTTPException(status_code=401, detail="Missing authorization token")

    token = authorization.replace("Bearer ", "").strip()
    payload = get_auth_manager().verify_token(token)

    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return payload


async def get_current_actor(payload: dict = Depends(verify_jwt_token)) -> Actor:
    """
    Dependency: Build the Actor for the token holder.

    A token whose role claim is missing or not a known role is rejected as
    unauthenticated; it is never treated as a role with no permissions.
    """
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    try:
        role = parse_role(payload.get("role"))
    except PolicyInputError:
        logger.warning(f"[AUTH] Token for user {user_id} carries unknown role {payload.get('role')!r}")
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return Actor(
        user_id=user_id,
        role=role,
        email=payload.get("email"),
        client_id=payload.get("client_id"),
    )


def require_permission(required_permission: PermissionLike):
    """
    Dependency factory: Require specific permission.
    """
    permission = parse_permission(required_permission)

    async def _require_permission(actor: Actor = Depends(get_current_actor)) -> Actor:
        if not has_permission(actor.role, permission):
            logger.warning(
                f"[RBAC] User {actor.user_id} ({actor.role.value}) denied permission: {permission.value}"
            )
            raise HTTPException(status_code=403, detail=FORBIDDEN)

        return actor

    return _require_permission


def require_any_permission(required_permissions: List[PermissionLike]):
    """
    Dependency factory: Require at least one of several permissions.
    """
    permissions = [parse_permission(p) for p in required_permissions]

    async def _require_any_permission(actor: Actor = Depends(get_current_actor)) -> Actor:
        if not has_any_permission(actor.role, permissions):
            logger.warning(
                f"[RBAC] User {actor.user_id} ({actor.role.value}) lacks all of "
                f"{[p.value for p in permissions]}"
            )
            raise HTTPException(status_code=403, detail=FORBIDDEN)

        return actor

    return _require_any_permission


def require_all_permissions(required_permissions: List[PermissionLike]):
    """
    Dependency factory: Require every listed permission.
    """
    permissions = [parse_permission(p) for p in required_permissions]

    async def _require_all_permissions(actor: Actor = Depends(get_current_actor)) -> Actor:
        if not has_all_permissions(actor.role, permissions):
            logger.warning(
                f"[RBAC] User {actor.user_id} ({actor.role.value}) lacks one of "
                f"{[p.value for p in permissions]}"
            )
            raise HTTPException(status_code=403, detail=FORBIDDEN)

        return actor

    return _require_all_permissions
