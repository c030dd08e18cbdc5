"""
Client API endpoints.

Exposed endpoints:
- POST /api/clients/check-conflicts - Report existing clients sharing identity fields
- POST /api/clients - Create client (conflicts reported, not blocking)
- PUT /api/clients/{id} - Update client (conflicts reported, not blocking)
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from auth.actor import Actor
from auth.rbac_dependencies import require_all_permissions, require_permission
from conflicts.models import ClientRecord
from practice.database import DatabaseManager
from practice.errors import to_http_exception
from practice.service import ClientService
from practice.schemas import (
    ClientConflictCheckResponse,
    ClientIdentityRequest,
    ClientWriteResponse,
    CreateClientRequest,
    UpdateClientRequest,
)
from security.policy.permissions import Permission

router = APIRouter(prefix="/api/clients", tags=["clients"])


@router.post("/check-conflicts", response_model=ClientConflictCheckResponse)
async def check_client_conflicts(
    request: ClientIdentityRequest,
    actor: Actor = Depends(require_permission(Permission.CLIENT_CONFLICT_CHECK)),
    db: Session = Depends(DatabaseManager.get_session)
):
    """
    Check a prospective client against existing active clients.

    Example request:
        {"email": "a.sharma@example.com", "tax_id": "ABCDE1234F"}

    Returns:
        Conflicts grouped by the identity field they share
    """
    try:
        candidate = ClientRecord(
            id=request.exclude_id or "",
            email=request.email,
            phone=request.phone,
            tax_id=request.tax_id,
        )
        groups = ClientService.check_conflicts(db, candidate, exclude_id=request.exclude_id)
        return {
            "has_conflicts": bool(groups),
            "conflicts": [group.to_dict() for group in groups],
        }
    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e)


@router.post("", response_model=ClientWriteResponse)
async def create_client(
    request: CreateClientRequest,
    actor: Actor = Depends(require_permission(Permission.CLIENT_CREATE)),
    db: Session = Depends(DatabaseManager.get_session)
):
    """
    Create a client. Any identity conflicts are returned with the new record.
    """
    try:
        return ClientService.create_client(db, actor, request.model_dump())
    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e)


@router.put("/{client_id}", response_model=ClientWriteResponse)
async def update_client(
    client_id: str,
    request: UpdateClientRequest,
    actor: Actor = Depends(require_all_permissions(
        [Permission.CLIENT_READ, Permission.CLIENT_UPDATE]
    )),
    db: Session = Depends(DatabaseManager.get_session)
):
    """
    Update a client. The client itself is never reported as a conflict.

    The response carries the stored record and any conflicting clients, so
    read access is required alongside update.
    """
    try:
        return ClientService.update_client(
            db, actor, client_id, request.model_dump(exclude_unset=True)
        )
    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e)
