"""
Data-Access Adapter Contract
=============================================================================
CONCEPT: Repository behind an interface

Every workflow, service and API route talks to the record store ONLY
through a DataAdapter. The adapter decides WHERE rows live:

    RemoteStoreAdapter  spreadsheet-style HTTPS record store (production)
    SqlAdapter          a SQL database through async SQLAlchemy
    InMemoryAdapter     seeded demo data held in process memory
    NullAdapter         nothing configured: empty reads, failing writes

Because the workflow engine only sees this class, swapping the store never
touches approval logic. Tests run the same engine against InMemoryAdapter.

ERRORS:
  Every method may raise one of the StoreError subclasses
  (ops_portal/errors.py):
    StoreUnavailable     store unreachable, throttled, or 5xx
    StoreRejected        store refused the request (bad field, bad id, ...)
    StoreNotImplemented  this store does not offer the operation

  Lookups that find nothing return None / [] instead of raising.

WRITES:
  `create_*` methods take a snake_case dict of field values. The adapter
  fills identifiers and timestamps it owns, persists the row and returns
  the stored entity. Ledger rows (payments, expenses, salary transfers,
  audit logs) are append-only: there is no update or delete for them.
=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Any, TypeVar

from pydantic import ValidationError

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
    new_id,
    utc_now_iso,
)
from ops_portal.errors import StoreRejected

EntityT = TypeVar("EntityT", bound=PortalModel)


class DataAdapter(ABC):
    """Abstract record store. See the module docstring for the error contract."""

    #: True for adapters backed by sample data rather than a real store
    is_mock: bool = False
    #: Short name reported by /ready and in logs
    kind: str = "abstract"

    # --- Users ---
    @abstractmethod
    async def get_user_by_email(self, email: str) -> User | None: ...

    @abstractmethod
    async def list_users(self) -> list[User]: ...

    @abstractmethod
    async def create_user(self, data: dict[str, Any]) -> User: ...

    @abstractmethod
    async def update_user(self, user_id: str, changes: dict[str, Any]) -> None: ...

    @abstractmethod
    async def update_user_last_login(self, user_id: str, timestamp: str) -> None: ...

    # --- Employees ---
    @abstractmethod
    async def list_employees(self) -> list[Employee]: ...

    @abstractmethod
    async def create_employee(self, data: dict[str, Any]) -> Employee: ...

    # --- Tools ---
    @abstractmethod
    async def list_tools(self) -> list[Tool]: ...

    @abstractmethod
    async def get_tool_by_id(self, tool_id: str) -> Tool | None: ...

    @abstractmethod
    async def create_tool(self, data: dict[str, Any]) -> Tool: ...

    # --- Tool requests ---
    @abstractmethod
    async def list_tool_requests(self) -> list[ToolRequest]: ...

    @abstractmethod
    async def create_tool_request(self, data: dict[str, Any]) -> ToolRequest: ...

    @abstractmethod
    async def update_tool_request_status(
        self,
        request_id: str,
        status: RequestStatus,
        approver_id: str,
        notes: str,
    ) -> None: ...

    # --- Tool payments (ledger) ---
    @abstractmethod
    async def list_tool_payments(self) -> list[ToolPayment]: ...

    @abstractmethod
    async def create_tool_payment(self, data: dict[str, Any]) -> ToolPayment: ...

    # --- Leave requests ---
    @abstractmethod
    async def list_leave_requests(self) -> list[LeaveRequest]: ...

    @abstractmethod
    async def create_leave_request(self, data: dict[str, Any]) -> LeaveRequest: ...

    @abstractmethod
    async def update_leave_request_status(
        self,
        leave_id: str,
        status: LeaveStatus,
        approver_id: str,
        notes: str,
    ) -> None: ...

    # --- Attendance ---
    @abstractmethod
    async def list_attendance(self, start: str, end: str) -> list[Attendance]:
        """Entries with start <= date <= end (ISO dates, inclusive)."""

    @abstractmethod
    async def upsert_attendance(self, entry: Attendance) -> Attendance:
        """Insert or replace the entry for (date, user_id)."""

    # --- Expenses (ledger) ---
    @abstractmethod
    async def list_expenses(
        self, start: str | None = None, end: str | None = None
    ) -> list[Expense]: ...

    @abstractmethod
    async def create_expense(self, data: dict[str, Any]) -> Expense: ...

    # --- Salary transfers (ledger) ---
    @abstractmethod
    async def list_salary_transfers(self) -> list[SalaryTransfer]: ...

    @abstractmethod
    async def create_salary_transfer(self, data: dict[str, Any]) -> SalaryTransfer: ...

    # --- Audit ---
    @abstractmethod
    async def list_audit_logs(self) -> list[AuditLog]: ...

    @abstractmethod
    async def write_audit_log(self, data: dict[str, Any]) -> None: ...

    # --- Maintenance ---
    @abstractmethod
    async def reset_demo_data(self) -> None:
        """Restore the demo dataset. Live stores raise StoreNotImplemented."""

    async def aclose(self) -> None:
        """Release network clients / connection pools. No-op by default."""
        return None


def in_date_range(value: str, start: str | None, end: str | None) -> bool:
    """Inclusive ISO-date range check shared by adapters that filter in Python."""
    day = value[:10]
    if start and day < start[:10]:
        return False
    if end and day > end[:10]:
        return False
    return True


def build_entity(model: type[EntityT], id_field: str, prefix: str, data: dict[str, Any]) -> EntityT:
    """
    Turn a create payload into a full entity: drop None values so model
    defaults apply, assign an id and createdAt when the caller did not.

    Raises StoreRejected when the payload does not form a valid entity.
    """
    values = {key: value for key, value in data.items() if value is not None}
    values.setdefault(id_field, new_id(prefix))
    if "created_at" in model.model_fields:
        values.setdefault("created_at", utc_now_iso())
    try:
        return model.model_validate(values)
    except ValidationError as e:
        raise StoreRejected(f"Invalid {model.__name__} record: {e.errors()[0]['msg']}") from e
