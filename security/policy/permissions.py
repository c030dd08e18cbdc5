"""
Permission catalog and role hierarchy for the practice.

Roles (most to least senior):
  - super_admin: Full system access
  - partner: Strategic case management and business oversight
  - senior_associate: Case strategy and client consultations
  - junior_associate: Research and document preparation
  - paralegal: Administrative support
  - client: Limited access to own cases
  - guest: Public content only

Both tables below are built once at import time and exposed read-only.
Every role must appear in every per-role table; ``require_total`` enforces
that when the module is imported.
"""

from enum import Enum
from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping, Union

from security.policy.errors import UnknownPermissionError, UnknownRoleError


class Role(str, Enum):
    """User roles, declared from most to least senior."""

    SUPER_ADMIN = "super_admin"
    PARTNER = "partner"
    SENIOR_ASSOCIATE = "senior_associate"
    JUNIOR_ASSOCIATE = "junior_associate"
    PARALEGAL = "paralegal"
    CLIENT = "client"
    GUEST = "guest"


class Permission(str, Enum):
    """Named capabilities, formatted as ``resource:action``."""

    # User management
    USER_CREATE = "user:create"
    USER_READ = "user:read"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"
    USER_MANAGE_ROLES = "user:manage_roles"

    # Client management
    CLIENT_CREATE = "client:create"
    CLIENT_READ = "client:read"
    CLIENT_UPDATE = "client:update"
    CLIENT_DELETE = "client:delete"
    CLIENT_CONFLICT_CHECK = "client:conflict_check"

    # Case management
    CASE_CREATE = "case:create"
    CASE_READ = "case:read"
    CASE_UPDATE = "case:update"
    CASE_DELETE = "case:delete"
    CASE_ASSIGN = "case:assign"
    CASE_COMPLETE = "case:complete"

    # Documents
    DOCUMENT_CREATE = "document:create"
    DOCUMENT_READ = "document:read"
    DOCUMENT_UPDATE = "document:update"
    DOCUMENT_DELETE = "document:delete"
    DOCUMENT_DOWNLOAD = "document:download"

    # Time tracking & billing
    TIME_ENTRY_CREATE = "time_entry:create"
    TIME_ENTRY_READ = "time_entry:read"
    TIME_ENTRY_UPDATE = "time_entry:update"
    TIME_ENTRY_DELETE = "time_entry:delete"
    BILLING_READ = "billing:read"
    BILLING_CREATE = "billing:create"
    BILLING_UPDATE = "billing:update"

    # Calendar & scheduling
    CALENDAR_READ = "calendar:read"
    CALENDAR_CREATE = "calendar:create"
    CALENDAR_UPDATE = "calendar:update"
    CALENDAR_DELETE = "calendar:delete"

    # Content management
    CONTENT_CREATE = "content:create"
    CONTENT_READ = "content:read"
    CONTENT_UPDATE = "content:update"
    CONTENT_DELETE = "content:delete"
    CONTENT_PUBLISH = "content:publish"

    # Reporting & analytics
    REPORT_READ = "report:read"
    REPORT_CREATE = "report:create"
    REPORT_EXPORT = "report:export"

    # System administration
    SYSTEM_CONFIG = "system:config"
    AUDIT_LOG_READ = "audit_log:read"
    BACKUP_MANAGE = "backup:manage"

    # Communication
    MESSAGE_SEND = "message:send"
    MESSAGE_READ = "message:read"
    NOTIFICATION_SEND = "notification:send"


RoleLike = Union[Role, str]
PermissionLike = Union[Permission, str]


# ==================== BOUNDARY COERCION ====================

def parse_role(value: RoleLike) -> Role:
    """
    Coerce a role value into ``Role``.

    Values must be spelled exactly as stored; anything else, including a
    differently cased or padded spelling, raises ``UnknownRoleError``.
    """
    if isinstance(value, Role):
        return value
    if isinstance(value, str):
        try:
            return Role(value)
        except ValueError:
            pass
    raise UnknownRoleError(value)


def parse_permission(value: PermissionLike) -> Permission:
    """Coerce a permission value into ``Permission``; exact spelling only."""
    if isinstance(value, Permission):
        return value
    if isinstance(value, str):
        try:
            return Permission(value)
        except ValueError:
            pass
    raise UnknownPermissionError(value)


def require_total(table: Mapping[Role, object], name: str) -> None:
    """Fail at import time if ``table`` does not cover every role."""
    missing = [role.value for role in Role if role not in table]
    if missing:
        raise RuntimeError(f"{name} is missing entries for roles: {missing}")


# ==================== ROLE -> PERMISSIONS ====================

P = Permission

ROLE_PERMISSIONS: Mapping[Role, FrozenSet[Permission]] = MappingProxyType({
    Role.SUPER_ADMIN: frozenset(Permission),

    Role.PARTNER: frozenset({
        P.USER_READ,
        P.CLIENT_CREATE, P.CLIENT_READ, P.CLIENT_UPDATE, P.CLIENT_CONFLICT_CHECK,
        P.CASE_CREATE, P.CASE_READ, P.CASE_UPDATE, P.CASE_ASSIGN, P.CASE_COMPLETE,
        P.DOCUMENT_CREATE, P.DOCUMENT_READ, P.DOCUMENT_UPDATE, P.DOCUMENT_DELETE,
        P.DOCUMENT_DOWNLOAD,
        P.TIME_ENTRY_CREATE, P.TIME_ENTRY_READ, P.TIME_ENTRY_UPDATE, P.TIME_ENTRY_DELETE,
        P.BILLING_READ, P.BILLING_CREATE, P.BILLING_UPDATE,
        P.CALENDAR_READ, P.CALENDAR_CREATE, P.CALENDAR_UPDATE, P.CALENDAR_DELETE,
        P.CONTENT_CREATE, P.CONTENT_READ, P.CONTENT_UPDATE, P.CONTENT_PUBLISH,
        P.REPORT_READ, P.REPORT_CREATE, P.REPORT_EXPORT,
        P.MESSAGE_SEND, P.MESSAGE_READ, P.NOTIFICATION_SEND,
    }),

    Role.SENIOR_ASSOCIATE: frozenset({
        P.USER_READ,
        P.CLIENT_READ, P.CLIENT_UPDATE,
        P.CASE_CREATE, P.CASE_READ, P.CASE_UPDATE,
        P.DOCUMENT_CREATE, P.DOCUMENT_READ, P.DOCUMENT_UPDATE, P.DOCUMENT_DOWNLOAD,
        P.TIME_ENTRY_CREATE, P.TIME_ENTRY_READ, P.TIME_ENTRY_UPDATE, P.TIME_ENTRY_DELETE,
        P.BILLING_READ,
        P.CALENDAR_READ, P.CALENDAR_CREATE, P.CALENDAR_UPDATE,
        P.CONTENT_CREATE, P.CONTENT_READ, P.CONTENT_UPDATE,
        P.REPORT_READ,
        P.MESSAGE_SEND, P.MESSAGE_READ,
    }),

    Role.JUNIOR_ASSOCIATE: frozenset({
        P.USER_READ,
        P.CLIENT_READ,
        P.CASE_READ,
        P.DOCUMENT_CREATE, P.DOCUMENT_READ, P.DOCUMENT_UPDATE, P.DOCUMENT_DOWNLOAD,
        P.TIME_ENTRY_CREATE, P.TIME_ENTRY_READ, P.TIME_ENTRY_UPDATE,
        P.BILLING_READ,
        P.CALENDAR_READ,
        P.CONTENT_READ,
        P.MESSAGE_READ,
    }),

    Role.PARALEGAL: frozenset({
        P.USER_READ,
        P.CLIENT_READ,
        P.CASE_READ,
        P.DOCUMENT_CREATE, P.DOCUMENT_READ, P.DOCUMENT_UPDATE, P.DOCUMENT_DOWNLOAD,
        P.TIME_ENTRY_CREATE, P.TIME_ENTRY_READ,
        P.CALENDAR_READ, P.CALENDAR_CREATE,
        P.MESSAGE_READ,
    }),

    # Instance-level restriction to the client's own cases happens in rbac.py
    Role.CLIENT: frozenset({
        P.CASE_READ,
        P.DOCUMENT_READ, P.DOCUMENT_DOWNLOAD,
        P.CALENDAR_READ,
        P.MESSAGE_READ, P.MESSAGE_SEND,
    }),

    Role.GUEST: frozenset({
        P.CONTENT_READ,
        P.MESSAGE_READ,
    }),
})

del P


# ==================== HIERARCHY ====================

# Higher number = more privileges
ROLE_HIERARCHY: Mapping[Role, int] = MappingProxyType({
    Role.SUPER_ADMIN: 7,
    Role.PARTNER: 6,
    Role.SENIOR_ASSOCIATE: 5,
    Role.JUNIOR_ASSOCIATE: 4,
    Role.PARALEGAL: 3,
    Role.CLIENT: 2,
    Role.GUEST: 1,
})


def _validate_catalog() -> None:
    require_total(ROLE_PERMISSIONS, "ROLE_PERMISSIONS")
    require_total(ROLE_HIERARCHY, "ROLE_HIERARCHY")

    empty = [role.value for role, perms in ROLE_PERMISSIONS.items() if not perms]
    if empty:
        raise RuntimeError(f"Roles without permissions: {empty}")

    if len(set(ROLE_HIERARCHY.values())) != len(ROLE_HIERARCHY):
        raise RuntimeError("ROLE_HIERARCHY must not contain ties")


_validate_catalog()


# ==================== LOOKUPS ====================

def permissions_of(role: RoleLike) -> FrozenSet[Permission]:
    """Get all permissions held by a role."""
    return ROLE_PERMISSIONS[parse_role(role)]


def has_permission(role: RoleLike, permission: PermissionLike) -> bool:
    """Check if a role holds a specific permission."""
    return parse_permission(permission) in ROLE_PERMISSIONS[parse_role(role)]


def has_any_permission(role: RoleLike, permissions: Iterable[PermissionLike]) -> bool:
    """
    Check if a role holds at least one of ``permissions``.

    Every value is validated, so an unknown permission raises even when an
    earlier one already matched. An empty iterable yields False.
    """
    granted = ROLE_PERMISSIONS[parse_role(role)]
    requested = [parse_permission(p) for p in permissions]
    return any(p in granted for p in requested)


def has_all_permissions(role: RoleLike, permissions: Iterable[PermissionLike]) -> bool:
    """Check if a role holds every one of ``permissions`` (True for an empty iterable)."""
    granted = ROLE_PERMISSIONS[parse_role(role)]
    requested = [parse_permission(p) for p in permissions]
    return all(p in granted for p in requested)


def hierarchy_level(role: RoleLike) -> int:
    """Get the hierarchy level of a role (higher number = more senior)."""
    return ROLE_HIERARCHY[parse_role(role)]


def can_access_resource(role: RoleLike, resource_type: str, action: str) -> bool:
    """Check a ``resource_type:action`` pair against the role's permissions."""
    return has_permission(role, f"{resource_type}:{action}")
