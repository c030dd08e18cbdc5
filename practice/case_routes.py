"""
Case and document API endpoints.

Exposed endpoints:
- GET /api/cases/{id} - Get case (assignment-checked)
- GET /api/documents/{id} - Get document (confidentiality-checked)
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from auth.actor import Actor
from auth.rbac_dependencies import require_permission
from practice.database import DatabaseManager
from practice.errors import to_http_exception
from practice.service import CaseService, DocumentService
from security.policy.permissions import Permission

router = APIRouter(prefix="/api", tags=["cases"])


@router.get("/cases/{case_id}")
async def get_case(
    case_id: str,
    actor: Actor = Depends(require_permission(Permission.CASE_READ)),
    db: Session = Depends(DatabaseManager.get_session)
):
    """
    Get case details.
    """
    try:
        return CaseService.get_case(db, actor, case_id)
    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e)


@router.get("/documents/{document_id}")
async def get_document(
    document_id: str,
    actor: Actor = Depends(require_permission(Permission.DOCUMENT_READ)),
    db: Session = Depends(DatabaseManager.get_session)
):
    """
    Get document metadata.
    """
    try:
        return DocumentService.get_document(db, actor, document_id)
    except HTTPException:
        raise
    except Exception as e:
        raise to_http_exception(e)
