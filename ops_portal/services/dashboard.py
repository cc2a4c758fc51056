"""
Dashboard statistics.

Counts are computed from what the principal may see: pending requests are
scoped like the request listings, and the expense burn is only reported
to roles that may view finance (None otherwise).
"""

from datetime import date, datetime, timezone

from pydantic import Field

from ops_portal.adapters.base import DataAdapter
from ops_portal.auth.rbac import check_permission, scope_rows, visible_tools
from ops_portal.auth.session import SessionContext
from ops_portal.domain.entities import Employee, PortalModel, ToolStatus
from ops_portal.services.people import UNKNOWN_NAME
from ops_portal.workflow.states import PENDING_TOOL_STATUSES

BIRTHDAY_WINDOW_DAYS = 30
MAX_BIRTHDAYS = 5


class UpcomingBirthday(PortalModel):
    name: str
    department: str
    date: str  # next occurrence, ISO
    days_away: int


class DashboardStats(PortalModel):
    headcount: int
    active_tools: int
    pending_requests: int
    monthly_burn: float | None
    upcoming_birthdays: list[UpcomingBirthday] = Field(default_factory=list)


def next_birthday(birthday: date, today: date) -> date:
    """Next occurrence on or after `today`. Feb 29 falls on Mar 1 in common years."""
    for year in (today.year, today.year + 1):
        try:
            candidate = birthday.replace(year=year)
        except ValueError:
            candidate = date(year, 3, 1)
        if candidate >= today:
            return candidate
    raise AssertionError("unreachable")


def upcoming_birthdays(
    employees: list[Employee],
    names: dict[str, str],
    today: date,
    window_days: int = BIRTHDAY_WINDOW_DAYS,
    limit: int = MAX_BIRTHDAYS,
) -> list[UpcomingBirthday]:
    upcoming = []
    for employee in employees:
        if not employee.birthday:
            continue
        try:
            born = date.fromisoformat(employee.birthday[:10])
        except ValueError:
            continue
        occurrence = next_birthday(born, today)
        days_away = (occurrence - today).days
        if days_away <= window_days:
            upcoming.append(
                UpcomingBirthday(
                    name=names.get(employee.user_id or "", UNKNOWN_NAME),
                    department=employee.department,
                    date=occurrence.isoformat(),
                    days_away=days_away,
                )
            )
    upcoming.sort(key=lambda b: b.days_away)
    return upcoming[:limit]


class DashboardService:
    def __init__(self, adapter: DataAdapter):
        self.adapter = adapter

    async def stats(self, session: SessionContext, today: date | None = None) -> DashboardStats:
        principal = session.require_principal()
        today = today or datetime.now(timezone.utc).date()

        employees = await self.adapter.list_employees()
        users = await self.adapter.list_users()
        tools = visible_tools(principal.role, await self.adapter.list_tools())
        requests = scope_rows(principal.role, principal.user_id, "tool_requests",
                              await self.adapter.list_tool_requests())

        monthly_burn = None
        if check_permission(principal.role, "finance", "view"):
            month = today.strftime("%Y-%m")
            expenses = await self.adapter.list_expenses(f"{month}-01", None)
            monthly_burn = round(sum(e.amount for e in expenses if e.date.startswith(month)), 2)

        return DashboardStats(
            headcount=len(employees),
            active_tools=sum(1 for tool in tools if tool.status == ToolStatus.ACTIVE),
            pending_requests=sum(1 for request in requests if request.status in PENDING_TOOL_STATUSES),
            monthly_burn=monthly_burn,
            upcoming_birthdays=upcoming_birthdays(
                employees, {user.user_id: user.name for user in users}, today
            ),
        )
