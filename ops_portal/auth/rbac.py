"""
Role-Based Access Control (RBAC): Permission Matrix
=============================================================================
CONCEPT: Permissions belong to ROLES, not people

Every portal user has exactly one role:

    Admin     runs the portal: approves, procures, manages people and money
    Ops/HR    runs day-to-day operations: approves tool and leave requests
    Finance   sees all requests and the tool registry, approves nothing
    Employee  submits requests, sees only their own
    Intern    same rights as Employee

THE PERMISSION MATRIX:
  PERMISSIONS[role][resource][action] -> bool

  Resources are the things a principal acts on:
    - tool_requests, leave_requests: the two approval workflows
    - tools: the software registry
    - employees: the people directory
    - finance: payments, expenses, salary transfers
    - users: accounts (invite, role change, deactivate)
    - audit_logs: the audit trail
    - admin: maintenance utilities

  Workflow actions (approve, reject, need_info, procure, grant_access) are
  matrix entries like any other, so "may Ops/HR procure?" is one lookup.

SECURITY PRINCIPLE: Default Deny
  An unknown role, resource or action is DENIED. A resource added to the
  portal without a matrix entry is locked down, not open.

ROW-LEVEL VISIBILITY:
  The matrix answers "may this role do X to this KIND of thing". Some rules
  depend on the row itself; those are the visibility filters at the bottom
  of this module (private_admin tools, own-requests-only).
=============================================================================
"""

from typing import Iterable, TypeVar

from ops_portal.domain.entities import Role, Tool, VisibilityLevel
from ops_portal.errors import AuthorizationDenied
from ops_portal.observability.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Permission Matrix
# =============================================================================
_APPROVER_TOOL_REQUESTS = {
    "view_all": True,
    "view_own": True,
    "create": True,
    "approve": True,
    "reject": True,
    "need_info": True,
    "procure": True,
    "grant_access": True,
}

_APPROVER_LEAVE_REQUESTS = {
    "view_all": True,
    "view_own": True,
    "create": True,
    "approve": True,
    "reject": True,
    "need_info": True,
}

_REQUESTER_TOOL_REQUESTS = {
    "view_all": False,
    "view_own": True,
    "create": True,
    "approve": False,
    "reject": False,
    "need_info": False,
    "procure": False,
    "grant_access": False,
}

_REQUESTER_LEAVE_REQUESTS = {
    "view_all": False,
    "view_own": True,
    "create": True,
    "approve": False,
    "reject": False,
    "need_info": False,
}

PERMISSIONS: dict[Role, dict[str, dict[str, bool]]] = {
    # -----------------------------------------------------------------
    # ADMIN: everything
    # -----------------------------------------------------------------
    Role.ADMIN: {
        "tool_requests": dict(_APPROVER_TOOL_REQUESTS),
        "leave_requests": dict(_APPROVER_LEAVE_REQUESTS),
        "tools": {"view": True, "view_private": True, "create": True},
        "employees": {"view": True},
        "attendance": {"view_all": True, "view_own": True, "update_all": True, "update_own": True},
        "finance": {"view": True, "create": True},
        "users": {"view": True, "invite": True, "update": True},
        "audit_logs": {"view": True},
        "admin": {"reset_demo_data": True, "test_notification": True},
    },

    # -----------------------------------------------------------------
    # OPS/HR: approvals for both workflows, no money, no accounts
    # -----------------------------------------------------------------
    Role.OPS_HR: {
        "tool_requests": dict(_APPROVER_TOOL_REQUESTS),
        "leave_requests": dict(_APPROVER_LEAVE_REQUESTS),
        "tools": {"view": True, "view_private": False, "create": False},
        "employees": {"view": True},
        "attendance": {"view_all": True, "view_own": True, "update_all": True, "update_own": True},
        "finance": {"view": False, "create": False},
        "users": {"view": False, "invite": False, "update": False},
        "audit_logs": {"view": False},
    },

    # -----------------------------------------------------------------
    # FINANCE: sees every request, decides none of them.
    # The finance PAGE is Admin-only; see ops_portal/auth/navigation.py.
    # -----------------------------------------------------------------
    Role.FINANCE: {
        "tool_requests": {**_REQUESTER_TOOL_REQUESTS, "view_all": True},
        "leave_requests": {**_REQUESTER_LEAVE_REQUESTS, "view_all": True},
        "tools": {"view": True, "view_private": False, "create": False},
        "employees": {"view": True},
        "attendance": {"view_all": False, "view_own": True, "update_all": False, "update_own": True},
        "finance": {"view": False, "create": False},
        "users": {"view": False, "invite": False, "update": False},
        "audit_logs": {"view": False},
    },

    # -----------------------------------------------------------------
    # EMPLOYEE / INTERN: own requests only
    # -----------------------------------------------------------------
    Role.EMPLOYEE: {
        "tool_requests": dict(_REQUESTER_TOOL_REQUESTS),
        "leave_requests": dict(_REQUESTER_LEAVE_REQUESTS),
        "tools": {"view": True, "view_private": False, "create": False},
        "employees": {"view": True},
        "attendance": {"view_all": False, "view_own": True, "update_all": False, "update_own": True},
        "finance": {"view": False, "create": False},
        "users": {"view": False, "invite": False, "update": False},
        "audit_logs": {"view": False},
    },
    Role.INTERN: {
        "tool_requests": dict(_REQUESTER_TOOL_REQUESTS),
        "leave_requests": dict(_REQUESTER_LEAVE_REQUESTS),
        "tools": {"view": True, "view_private": False, "create": False},
        "employees": {"view": True},
        "attendance": {"view_all": False, "view_own": True, "update_all": False, "update_own": True},
        "finance": {"view": False, "create": False},
        "users": {"view": False, "invite": False, "update": False},
        "audit_logs": {"view": False},
    },
}


def _as_role(role: Role | str) -> Role | None:
    if isinstance(role, Role):
        return role
    try:
        return Role(role)
    except ValueError:
        return None


def check_permission(role: Role | str, resource: str, action: str) -> bool:
    """
    Whether `role` may perform `action` on `resource`.

    Unknown roles, resources and actions return False (default deny):

        check_permission(Role.ADMIN, "tool_requests", "procure")      -> True
        check_permission(Role.FINANCE, "tool_requests", "approve")    -> False
        check_permission("Ops/HR", "leave_requests", "need_info")     -> True
        check_permission("Contractor", "tools", "view")               -> False
    """
    known_role = _as_role(role)
    if known_role is None:
        return False
    return PERMISSIONS.get(known_role, {}).get(resource, {}).get(action, False)


def get_role_permissions(role: Role | str) -> dict[str, dict[str, bool]]:
    """The full resource -> action -> bool map for a role ({} if unknown)."""
    known_role = _as_role(role)
    if known_role is None:
        return {}
    return PERMISSIONS.get(known_role, {})


def get_allowed_actions(role: Role | str, resource: str) -> list[str]:
    """Actions the role may perform on the resource, for building UI controls."""
    resource_permissions = get_role_permissions(role).get(resource, {})
    return [action for action, allowed in resource_permissions.items() if allowed]


def require_permission(role: Role | str, resource: str, action: str) -> None:
    """
    Raise AuthorizationDenied unless the role may perform the action.

    Called BEFORE any store access, so a denied attempt changes nothing.
    """
    if not check_permission(role, resource, action):
        logger.warning("permission_denied", role=str(getattr(role, "value", role)),
                       resource=resource, action=action)
        raise AuthorizationDenied(
            f"Your role is not allowed to {action.replace('_', ' ')} {resource.replace('_', ' ')}."
        )


# =============================================================================
# Row-level visibility
# =============================================================================
def can_view_tool(role: Role | str, tool: Tool) -> bool:
    if tool.visibility_level == VisibilityLevel.PRIVATE_ADMIN:
        return check_permission(role, "tools", "view_private")
    return check_permission(role, "tools", "view")


def visible_tools(role: Role | str, tools: Iterable[Tool]) -> list[Tool]:
    """Drop tools the role may not see (private_admin for non-admins)."""
    return [tool for tool in tools if can_view_tool(role, tool)]


RequestT = TypeVar("RequestT")


def scope_rows(
    role: Role | str,
    user_id: str,
    resource: str,
    items: Iterable[RequestT],
) -> list[RequestT]:
    """
    Restrict a listing (requests, attendance) to what the principal may see.

    Roles with `view_all` see everything; roles with only `view_own` see
    rows whose user_id is their own; anyone else sees nothing.
    """
    if check_permission(role, resource, "view_all"):
        return list(items)
    if check_permission(role, resource, "view_own"):
        return [item for item in items if getattr(item, "user_id", None) == user_id]
    return []
