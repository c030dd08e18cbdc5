"""
Per-instance access decisions for cases and documents.

The role catalog answers "may this role read cases at all"; this module
answers "may this user read *this* case". Both checks are pure functions of
their arguments and never raise for a legitimate denial.

Case access:
  - super_admin, partner: every case
  - senior_associate, junior_associate, paralegal: only cases where the actor
    is the assigned partner or one of the assigned associates
  - client, guest: never through this function. Client ownership is a
    separate check (``client_owns_case``) layered on by the caller.

Document access:
  - super_admin: every document
  - partner: every document that is not confidential
  - everyone else: the blanket ``document:read`` permission
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, FrozenSet, Mapping, Optional

from security.policy.permissions import (
    Permission,
    Role,
    RoleLike,
    has_permission,
    parse_role,
    require_total,
)


@dataclass(frozen=True)
class CaseAccess:
    """Access-relevant attributes of a case, loaded by the caller."""
    case_id: str
    assigned_partner: Optional[str] = None
    assigned_associates: FrozenSet[str] = field(default_factory=frozenset)
    client_id: Optional[str] = None

    def __post_init__(self):
        # Callers often hand over lists straight from the database
        object.__setattr__(self, "assigned_associates", frozenset(self.assigned_associates or ()))

    def is_assigned(self, user_id: str) -> bool:
        return user_id is not None and (
            user_id == self.assigned_partner or user_id in self.assigned_associates
        )


@dataclass(frozen=True)
class DocumentAccess:
    """Access-relevant attributes of a document, loaded by the caller."""
    document_id: str
    case_id: Optional[str] = None
    uploaded_by: Optional[str] = None
    is_confidential: bool = False


# ==================== CASE RULES ====================

def _always(actor_id: str, case: CaseAccess) -> bool:
    return True


def _never(actor_id: str, case: CaseAccess) -> bool:
    return False


def _assigned_only(actor_id: str, case: CaseAccess) -> bool:
    return case.is_assigned(actor_id)


_CASE_RULES: Mapping[Role, Callable[[str, CaseAccess], bool]] = MappingProxyType({
    Role.SUPER_ADMIN: _always,
    Role.PARTNER: _always,
    Role.SENIOR_ASSOCIATE: _assigned_only,
    Role.JUNIOR_ASSOCIATE: _assigned_only,
    Role.PARALEGAL: _assigned_only,
    Role.CLIENT: _never,
    Role.GUEST: _never,
})


# ==================== DOCUMENT RULES ====================

def _document_always(role: Role, document: DocumentAccess) -> bool:
    return True


def _document_unless_confidential(role: Role, document: DocumentAccess) -> bool:
    return not document.is_confidential


def _document_by_permission(role: Role, document: DocumentAccess) -> bool:
    return has_permission(role, Permission.DOCUMENT_READ)


_DOCUMENT_RULES: Mapping[Role, Callable[[Role, DocumentAccess], bool]] = MappingProxyType({
    Role.SUPER_ADMIN: _document_always,
    Role.PARTNER: _document_unless_confidential,
    Role.SENIOR_ASSOCIATE: _document_by_permission,
    Role.JUNIOR_ASSOCIATE: _document_by_permission,
    Role.PARALEGAL: _document_by_permission,
    Role.CLIENT: _document_by_permission,
    Role.GUEST: _document_by_permission,
})

require_total(_CASE_RULES, "case access rules")
require_total(_DOCUMENT_RULES, "document access rules")


# ==================== PUBLIC API ====================

def can_access_case(role: RoleLike, actor_id: str, case: CaseAccess) -> bool:
    """Check if a user can access a specific case."""
    return _CASE_RULES[parse_role(role)](actor_id, case)


def can_access_document(role: RoleLike, actor_id: str, document: DocumentAccess) -> bool:
    """
    Check if a user can access a specific document.

    ``actor_id`` is accepted for symmetry with ``can_access_case``; no rule
    currently depends on it.
    """
    role = parse_role(role)
    return _DOCUMENT_RULES[role](role, document)


def client_owns_case(actor_client_id: Optional[str], case: CaseAccess) -> bool:
    """True when the client-portal user's linked client is the case's client."""
    return actor_client_id is not None and actor_client_id == case.client_id
