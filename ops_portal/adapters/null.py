"""
Null adapter: the portal boots with no store configured.

Reads answer "nothing there", writes fail with StoreNotImplemented so the
user sees a clear message instead of a success that was never persisted.
"""

from typing import Any

from ops_portal.adapters.base import DataAdapter
from ops_portal.domain.entities import (
    Attendance,
    AuditLog,
    Employee,
    Expense,
    LeaveRequest,
    LeaveStatus,
    RequestStatus,
    SalaryTransfer,
    Tool,
    ToolPayment,
    ToolRequest,
    User,
)
from ops_portal.errors import StoreNotImplemented


def _not_configured(operation: str) -> StoreNotImplemented:
    return StoreNotImplemented(f"No record store is configured; '{operation}' is unavailable.")


class NullAdapter(DataAdapter):
    is_mock = True
    kind = "null"

    async def get_user_by_email(self, email: str) -> User | None:
        return None

    async def list_users(self) -> list[User]:
        return []

    async def create_user(self, data: dict[str, Any]) -> User:
        raise _not_configured("create_user")

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> None:
        raise _not_configured("update_user")

    async def update_user_last_login(self, user_id: str, timestamp: str) -> None:
        raise _not_configured("update_user_last_login")

    async def list_employees(self) -> list[Employee]:
        return []

    async def create_employee(self, data: dict[str, Any]) -> Employee:
        raise _not_configured("create_employee")

    async def list_tools(self) -> list[Tool]:
        return []

    async def get_tool_by_id(self, tool_id: str) -> Tool | None:
        return None

    async def create_tool(self, data: dict[str, Any]) -> Tool:
        raise _not_configured("create_tool")

    async def list_tool_requests(self) -> list[ToolRequest]:
        return []

    async def create_tool_request(self, data: dict[str, Any]) -> ToolRequest:
        raise _not_configured("create_tool_request")

    async def update_tool_request_status(
        self, request_id: str, status: RequestStatus, approver_id: str, notes: str
    ) -> None:
        raise _not_configured("update_tool_request_status")

    async def list_tool_payments(self) -> list[ToolPayment]:
        return []

    async def create_tool_payment(self, data: dict[str, Any]) -> ToolPayment:
        raise _not_configured("create_tool_payment")

    async def list_leave_requests(self) -> list[LeaveRequest]:
        return []

    async def create_leave_request(self, data: dict[str, Any]) -> LeaveRequest:
        raise _not_configured("create_leave_request")

    async def update_leave_request_status(
        self, leave_id: str, status: LeaveStatus, approver_id: str, notes: str
    ) -> None:
        raise _not_configured("update_leave_request_status")

    async def list_attendance(self, start: str, end: str) -> list[Attendance]:
        return []

    async def upsert_attendance(self, entry: Attendance) -> Attendance:
        raise _not_configured("upsert_attendance")

    async def list_expenses(self, start: str | None = None, end: str | None = None) -> list[Expense]:
        return []

    async def create_expense(self, data: dict[str, Any]) -> Expense:
        raise _not_configured("create_expense")

    async def list_salary_transfers(self) -> list[SalaryTransfer]:
        return []

    async def create_salary_transfer(self, data: dict[str, Any]) -> SalaryTransfer:
        raise _not_configured("create_salary_transfer")

    async def list_audit_logs(self) -> list[AuditLog]:
        return []

    async def write_audit_log(self, data: dict[str, Any]) -> None:
        raise _not_configured("write_audit_log")

    async def reset_demo_data(self) -> None:
        raise _not_configured("reset_demo_data")
