"""
Navigation Gate
=============================================================================
Which portal pages a principal may open, and which menu entries they see.

ROUTES:
    /login                        public
    /dashboard /tools /requests   any signed-in user
    /hr                           any signed-in user
    /finance /admin               Admin only
    /                             -> /dashboard
    anything else                 -> /login

  Not signed in, protected route  -> /login
  Signed in non-Admin, admin-only -> /dashboard

The MENU is a separate table: it lists Finance for the Finance role too, but
the route itself stays Admin-only, so a Finance user clicking it lands back
on the dashboard.
=============================================================================
"""

from dataclasses import dataclass

from ops_portal.domain.entities import Role, User

LOGIN = "/login"
DASHBOARD = "/dashboard"

PUBLIC_ROUTES = frozenset({LOGIN})
PROTECTED_ROUTES = frozenset({"/dashboard", "/tools", "/requests", "/hr"})
ADMIN_ONLY_ROUTES = frozenset({"/finance", "/admin"})

ALL_ROLES = tuple(Role)


@dataclass(frozen=True)
class NavItem:
    name: str
    path: str
    roles: tuple[Role, ...]


NAVIGATION: tuple[NavItem, ...] = (
    NavItem("Dashboard", "/dashboard", ALL_ROLES),
    NavItem("Tool Registry", "/tools", ALL_ROLES),
    NavItem("HR / Employees", "/hr", (Role.ADMIN, Role.OPS_HR, Role.EMPLOYEE, Role.INTERN)),
    NavItem("Finance", "/finance", (Role.ADMIN, Role.FINANCE)),
    NavItem("Requests", "/requests", ALL_ROLES),
    NavItem("Admin", "/admin", (Role.ADMIN,)),
)

# Requesters only ever see their own requests
_RELABELS = {
    ("/requests", Role.EMPLOYEE): "My Requests",
    ("/requests", Role.INTERN): "My Requests",
}


@dataclass(frozen=True)
class NavigationDecision:
    """`path` is where the principal ends up; `redirected` if it differs."""
    requested: str
    path: str

    @property
    def redirected(self) -> bool:
        return self.requested != self.path


def _normalize_path(path: str) -> str:
    cleaned = "/" + path.strip().strip("/")
    return cleaned.lower()


def resolve_navigation(principal: User | None, path: str) -> NavigationDecision:
    requested = _normalize_path(path)

    if requested == "/":
        target = DASHBOARD if principal is not None else LOGIN
        return NavigationDecision(requested=requested, path=target)

    if requested in PUBLIC_ROUTES:
        return NavigationDecision(requested=requested, path=requested)

    if requested not in PROTECTED_ROUTES and requested not in ADMIN_ONLY_ROUTES:
        return NavigationDecision(requested=requested, path=LOGIN)

    if principal is None:
        return NavigationDecision(requested=requested, path=LOGIN)

    if requested in ADMIN_ONLY_ROUTES and principal.role != Role.ADMIN:
        return NavigationDecision(requested=requested, path=DASHBOARD)

    return NavigationDecision(requested=requested, path=requested)


def navigation_items(role: Role) -> list[NavItem]:
    """Menu entries for a role, with role-specific labels applied."""
    return [
        NavItem(_RELABELS.get((item.path, role), item.name), item.path, item.roles)
        for item in NAVIGATION
        if role in item.roles
    ]
