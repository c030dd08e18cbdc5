from security.policy import errors
from security.policy import governance
from security.policy import permissions
from security.policy import rbac

from security.policy.errors import (PolicyInputError, UnknownPermissionError,
                                    UnknownRoleError,)
from security.policy.governance import (assignable_roles, can_assign_role,
                                        can_change_role, can_manage_user,)
from security.policy.permissions import (Permission, ROLE_HIERARCHY,
                                         ROLE_PERMISSIONS, Role,
                                         can_access_resource,
                                         has_all_permissions,
                                         has_any_permission, has_permission,
                                         hierarchy_level, parse_permission,
                                         parse_role, permissions_of,
                                         require_total,)
from security.policy.rbac import (CaseAccess, DocumentAccess, can_access_case,
                                  can_access_document, client_owns_case,)

__all__ = ['CaseAccess', 'DocumentAccess', 'Permission', 'PolicyInputError',
           'ROLE_HIERARCHY', 'ROLE_PERMISSIONS', 'Role',
           'UnknownPermissionError', 'UnknownRoleError', 'assignable_roles',
           'can_access_case', 'can_access_document', 'can_access_resource',
           'can_assign_role', 'can_change_role', 'can_manage_user',
           'client_owns_case', 'errors', 'governance', 'has_all_permissions',
           'has_any_permission', 'has_permission', 'hierarchy_level',
           'parse_permission', 'parse_role', 'permissions_of', 'permissions',
           'require_total',
           'rbac']
