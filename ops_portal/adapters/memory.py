"""
In-Memory Demo Adapter
=============================================================================
Full read/write behaviour over plain Python lists, seeded from
ops_portal/adapters/demo_data.py.

COPY SEMANTICS:
  Every entity leaving the adapter is a deep copy, and every entity entering
  it is validated into a fresh object. A caller mutating a returned
  ToolRequest therefore cannot change what the next reader sees; only an
  adapter write can.

Used when `demo_mode=true` and by the test-suite, which drives the real
workflow engine against it.
=============================================================================
"""

from typing import Any

from pydantic import ValidationError

from ops_portal.adapters.base import DataAdapter, build_entity, in_date_range
from ops_portal.adapters.demo_data import DemoDataset, build_demo_dataset
from ops_portal.domain.entities import (
    Attendance,
    AuditLog,
    Employee,
    Expense,
    LeaveRequest,
    LeaveStatus,
    PortalModel,
    RequestStatus,
    SalaryTransfer,
    Tool,
    ToolPayment,
    ToolRequest,
    User,
    normalize_email,
    utc_now_iso,
)
from ops_portal.errors import EntityNotFound, StoreRejected
from ops_portal.observability.logging import get_logger

logger = get_logger(__name__)


def _copies(rows: list) -> list:
    return [row.model_copy(deep=True) for row in rows]


def _updated(entity: PortalModel, changes: dict[str, Any]) -> PortalModel:
    # Re-validate so a bad status string is rejected, not stored
    try:
        return type(entity).model_validate({**entity.model_dump(), **changes})
    except ValidationError as e:
        raise StoreRejected(f"Invalid update: {e.errors()[0]['msg']}") from e


class InMemoryAdapter(DataAdapter):
    """Process-local store. `seed=None` starts with the demo dataset."""

    is_mock = True
    kind = "memory"

    def __init__(self, seed: DemoDataset | None = None):
        self._seed = seed
        self._data = self._fresh()

    def _fresh(self) -> DemoDataset:
        if self._seed is None:
            return build_demo_dataset()
        return DemoDataset(**{name: _copies(rows) for name, rows in vars(self._seed).items()})

    # =========================================================================
    # Users
    # =========================================================================
    async def get_user_by_email(self, email: str) -> User | None:
        wanted = normalize_email(email)
        for user in self._data.users:
            if normalize_email(user.email) == wanted:
                return user.model_copy(deep=True)
        return None

    async def list_users(self) -> list[User]:
        return _copies(self._data.users)

    async def create_user(self, data: dict[str, Any]) -> User:
        user = build_entity(User, "user_id", "usr", data)
        if await self.get_user_by_email(user.email) is not None:
            raise StoreRejected(f"A user with email {user.email} already exists.")
        self._data.users.append(user)
        return user.model_copy(deep=True)

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> None:
        index = self._index_of(self._data.users, "user_id", user_id)
        self._data.users[index] = _updated(self._data.users[index], changes)

    async def update_user_last_login(self, user_id: str, timestamp: str) -> None:
        await self.update_user(user_id, {"last_login_at": timestamp})

    # =========================================================================
    # Employees
    # =========================================================================
    async def list_employees(self) -> list[Employee]:
        return _copies(self._data.employees)

    async def create_employee(self, data: dict[str, Any]) -> Employee:
        employee = build_entity(Employee, "employee_id", "emp", data)
        self._data.employees.append(employee)
        return employee.model_copy(deep=True)

    # =========================================================================
    # Tools
    # =========================================================================
    async def list_tools(self) -> list[Tool]:
        return _copies(self._data.tools)

    async def get_tool_by_id(self, tool_id: str) -> Tool | None:
        for tool in self._data.tools:
            if tool.tool_id == tool_id:
                return tool.model_copy(deep=True)
        return None

    async def create_tool(self, data: dict[str, Any]) -> Tool:
        tool = build_entity(Tool, "tool_id", "tool", data)
        self._data.tools.append(tool)
        return tool.model_copy(deep=True)

    # =========================================================================
    # Tool requests
    # =========================================================================
    async def list_tool_requests(self) -> list[ToolRequest]:
        return _copies(self._data.tool_requests)

    async def create_tool_request(self, data: dict[str, Any]) -> ToolRequest:
        request = build_entity(ToolRequest, "request_id", "req", data)
        self._data.tool_requests.append(request)
        return request.model_copy(deep=True)

    async def update_tool_request_status(
        self, request_id: str, status: RequestStatus, approver_id: str, notes: str
    ) -> None:
        index = self._index_of(self._data.tool_requests, "request_id", request_id)
        self._data.tool_requests[index] = _updated(
            self._data.tool_requests[index],
            {"status": status, "approver_id": approver_id, "notes": notes},
        )

    # =========================================================================
    # Ledger: tool payments
    # =========================================================================
    async def list_tool_payments(self) -> list[ToolPayment]:
        return _copies(self._data.tool_payments)

    async def create_tool_payment(self, data: dict[str, Any]) -> ToolPayment:
        payment = build_entity(ToolPayment, "payment_id", "pay", data)
        self._data.tool_payments.append(payment)
        return payment.model_copy(deep=True)

    # =========================================================================
    # Leave requests
    # =========================================================================
    async def list_leave_requests(self) -> list[LeaveRequest]:
        return _copies(self._data.leave_requests)

    async def create_leave_request(self, data: dict[str, Any]) -> LeaveRequest:
        leave = build_entity(LeaveRequest, "leave_id", "lv", data)
        self._data.leave_requests.append(leave)
        return leave.model_copy(deep=True)

    async def update_leave_request_status(
        self, leave_id: str, status: LeaveStatus, approver_id: str, notes: str
    ) -> None:
        index = self._index_of(self._data.leave_requests, "leave_id", leave_id)
        self._data.leave_requests[index] = _updated(
            self._data.leave_requests[index],
            {"status": status, "approver_id": approver_id, "notes": notes},
        )

    # =========================================================================
    # Attendance
    # =========================================================================
    async def list_attendance(self, start: str, end: str) -> list[Attendance]:
        return [
            entry.model_copy(deep=True)
            for entry in self._data.attendance
            if in_date_range(entry.date, start, end)
        ]

    async def upsert_attendance(self, entry: Attendance) -> Attendance:
        stored = Attendance.model_validate(entry.model_dump())
        for index, existing in enumerate(self._data.attendance):
            if existing.date == stored.date and existing.user_id == stored.user_id:
                self._data.attendance[index] = stored
                break
        else:
            self._data.attendance.append(stored)
        return stored.model_copy(deep=True)

    # =========================================================================
    # Ledger: expenses and salary transfers
    # =========================================================================
    async def list_expenses(self, start: str | None = None, end: str | None = None) -> list[Expense]:
        return [
            expense.model_copy(deep=True)
            for expense in self._data.expenses
            if in_date_range(expense.date, start, end)
        ]

    async def create_expense(self, data: dict[str, Any]) -> Expense:
        expense = build_entity(Expense, "expense_id", "exp", data)
        self._data.expenses.append(expense)
        return expense.model_copy(deep=True)

    async def list_salary_transfers(self) -> list[SalaryTransfer]:
        return _copies(self._data.salary_transfers)

    async def create_salary_transfer(self, data: dict[str, Any]) -> SalaryTransfer:
        transfer = build_entity(SalaryTransfer, "transfer_id", "sal", data)
        self._data.salary_transfers.append(transfer)
        return transfer.model_copy(deep=True)

    # =========================================================================
    # Audit
    # =========================================================================
    async def list_audit_logs(self) -> list[AuditLog]:
        return _copies(self._data.audit_logs)

    async def write_audit_log(self, data: dict[str, Any]) -> None:
        entry = build_entity(AuditLog, "log_id", "log", {"timestamp": utc_now_iso(), **data})
        self._data.audit_logs.append(entry)

    # =========================================================================
    # Maintenance
    # =========================================================================
    async def reset_demo_data(self) -> None:
        self._data = self._fresh()
        logger.info("demo_data_reset", adapter=self.kind)

    @staticmethod
    def _index_of(rows: list, key: str, value: str) -> int:
        for index, row in enumerate(rows):
            if getattr(row, key) == value:
                return index
        raise EntityNotFound(f"No record with {key}={value}.")
