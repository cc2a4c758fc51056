"""
SQL Adapter (async SQLAlchemy)
=============================================================================
Implements the adapter contract over the tables in ops_portal/db/models.py
using the repository functions in ops_portal/db/repositories.py.

One AsyncSession per adapter call: every method opens a session, runs its
queries, commits and closes. There is no session shared across requests.

ERROR MAPPING:
  IntegrityError (duplicate key, NOT NULL)        -> StoreRejected
  OperationalError / InterfaceError (connection)  -> StoreUnavailable
  any other DBAPIError                            -> StoreRejected

Demo reset is only allowed when the adapter was built with demo_mode=True;
a production database is never wiped from the admin page.
=============================================================================
"""

import time
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, AsyncIterator

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from ops_portal.adapters.base import DataAdapter, EntityT, build_entity
from ops_portal.adapters.demo_data import DemoDataset, build_demo_dataset
from ops_portal.db import repositories as repo
from ops_portal.db.engine import Base, build_session_maker
from ops_portal.db.models import (
    AttendanceRecord,
    AuditLogRecord,
    EmployeeRecord,
    ExpenseRecord,
    LeaveRequestRecord,
    SalaryTransferRecord,
    ToolPaymentRecord,
    ToolRecord,
    ToolRequestRecord,
    UserRecord,
)
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
from ops_portal.errors import EntityNotFound, StoreNotImplemented, StoreRejected, StoreUnavailable
from ops_portal.observability.logging import get_logger
from ops_portal.observability.metrics import record_store_request

logger = get_logger(__name__)

ALL_RECORDS = (
    UserRecord,
    EmployeeRecord,
    ToolRecord,
    ToolRequestRecord,
    ToolPaymentRecord,
    LeaveRequestRecord,
    AttendanceRecord,
    ExpenseRecord,
    SalaryTransferRecord,
    AuditLogRecord,
)


def to_entity(model: type[EntityT], row: Base) -> EntityT:
    values = {
        column.key: getattr(row, column.key)
        for column in row.__table__.columns
        if column.key in model.model_fields
    }
    return model.model_validate(values)


def to_record(record_cls: type[Base], entity: PortalModel) -> Base:
    # mode="json" turns enums into their stored values
    return record_cls(**entity.model_dump(mode="json"))


class SqlAdapter(DataAdapter):
    kind = "sql"

    def __init__(self, engine: AsyncEngine, demo_mode: bool = False):
        self.engine = engine
        self.demo_mode = demo_mode
        self.is_mock = demo_mode
        self._session_maker = build_session_maker(engine)

    async def aclose(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        started = time.perf_counter()
        try:
            async with self._session_maker() as session:
                yield session
        except IntegrityError as e:
            logger.warning("sql_integrity_error", operation=operation, error=str(e.orig))
            raise StoreRejected(f"The database rejected '{operation}'.") from e
        except (OperationalError, InterfaceError) as e:
            logger.warning("sql_unavailable", operation=operation, error=str(e.orig))
            raise StoreUnavailable() from e
        except DBAPIError as e:
            logger.warning("sql_error", operation=operation, error=str(e.orig))
            raise StoreRejected(f"The database rejected '{operation}'.") from e
        finally:
            record_store_request(operation, (time.perf_counter() - started) * 1000)

    async def _list(self, record_cls: type[Base], model: type[EntityT], operation: str) -> list[EntityT]:
        async with self._session(operation) as db:
            rows = await repo.list_rows(db, record_cls)
        return [to_entity(model, row) for row in rows]

    async def _insert(
        self,
        record_cls: type[Base],
        model: type[EntityT],
        id_field: str,
        prefix: str,
        data: dict[str, Any],
    ) -> EntityT:
        entity = build_entity(model, id_field, prefix, data)
        async with self._session(f"create:{record_cls.__tablename__}") as db:
            row = await repo.insert_row(db, to_record(record_cls, entity))
        return to_entity(model, row)

    async def _update(self, record_cls: type[Base], key: str, **changes) -> None:
        async with self._session(f"update:{record_cls.__tablename__}") as db:
            found = await repo.update_row(db, record_cls, key, **changes)
        if not found:
            raise EntityNotFound(f"No {record_cls.__tablename__} row with id {key}.")

    # =========================================================================
    # Users
    # =========================================================================
    async def get_user_by_email(self, email: str) -> User | None:
        async with self._session("get_user_by_email") as db:
            row = await repo.get_user_by_email(db, normalize_email(email))
        return to_entity(User, row) if row is not None else None

    async def list_users(self) -> list[User]:
        return await self._list(UserRecord, User, "list_users")

    async def create_user(self, data: dict[str, Any]) -> User:
        if "email" in data:
            data = {**data, "email": normalize_email(data["email"])}
        return await self._insert(UserRecord, User, "user_id", "usr", data)

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> None:
        columns = {key: value.value if isinstance(value, Enum) else value for key, value in changes.items()}
        if "email" in columns:
            columns["email"] = normalize_email(columns["email"])
        await self._update(UserRecord, user_id, **columns)

    async def update_user_last_login(self, user_id: str, timestamp: str) -> None:
        await self._update(UserRecord, user_id, last_login_at=timestamp)

    # =========================================================================
    # Employees / tools
    # =========================================================================
    async def list_employees(self) -> list[Employee]:
        return await self._list(EmployeeRecord, Employee, "list_employees")

    async def create_employee(self, data: dict[str, Any]) -> Employee:
        return await self._insert(EmployeeRecord, Employee, "employee_id", "emp", data)

    async def list_tools(self) -> list[Tool]:
        return await self._list(ToolRecord, Tool, "list_tools")

    async def get_tool_by_id(self, tool_id: str) -> Tool | None:
        async with self._session("get_tool_by_id") as db:
            row = await repo.get_row(db, ToolRecord, tool_id)
        return to_entity(Tool, row) if row is not None else None

    async def create_tool(self, data: dict[str, Any]) -> Tool:
        return await self._insert(ToolRecord, Tool, "tool_id", "tool", data)

    # =========================================================================
    # Requests
    # =========================================================================
    async def list_tool_requests(self) -> list[ToolRequest]:
        return await self._list(ToolRequestRecord, ToolRequest, "list_tool_requests")

    async def create_tool_request(self, data: dict[str, Any]) -> ToolRequest:
        return await self._insert(ToolRequestRecord, ToolRequest, "request_id", "req", data)

    async def update_tool_request_status(
        self, request_id: str, status: RequestStatus, approver_id: str, notes: str
    ) -> None:
        await self._update(
            ToolRequestRecord,
            request_id,
            status=RequestStatus(status).value,
            approver_id=approver_id,
            notes=notes,
        )

    async def list_leave_requests(self) -> list[LeaveRequest]:
        return await self._list(LeaveRequestRecord, LeaveRequest, "list_leave_requests")

    async def create_leave_request(self, data: dict[str, Any]) -> LeaveRequest:
        return await self._insert(LeaveRequestRecord, LeaveRequest, "leave_id", "lv", data)

    async def update_leave_request_status(
        self, leave_id: str, status: LeaveStatus, approver_id: str, notes: str
    ) -> None:
        await self._update(
            LeaveRequestRecord,
            leave_id,
            status=LeaveStatus(status).value,
            approver_id=approver_id,
            notes=notes,
        )

    # =========================================================================
    # Attendance
    # =========================================================================
    async def list_attendance(self, start: str, end: str) -> list[Attendance]:
        async with self._session("list_attendance") as db:
            rows = await repo.list_in_date_range(db, AttendanceRecord, start, end)
        return [to_entity(Attendance, row) for row in rows]

    async def upsert_attendance(self, entry: Attendance) -> Attendance:
        async with self._session("upsert_attendance") as db:
            row = await repo.upsert_attendance(db, **entry.model_dump(mode="json"))
        return to_entity(Attendance, row)

    # =========================================================================
    # Ledger
    # =========================================================================
    async def list_tool_payments(self) -> list[ToolPayment]:
        return await self._list(ToolPaymentRecord, ToolPayment, "list_tool_payments")

    async def create_tool_payment(self, data: dict[str, Any]) -> ToolPayment:
        return await self._insert(ToolPaymentRecord, ToolPayment, "payment_id", "pay", data)

    async def list_expenses(self, start: str | None = None, end: str | None = None) -> list[Expense]:
        async with self._session("list_expenses") as db:
            rows = await repo.list_in_date_range(db, ExpenseRecord, start, end)
        return [to_entity(Expense, row) for row in rows]

    async def create_expense(self, data: dict[str, Any]) -> Expense:
        return await self._insert(ExpenseRecord, Expense, "expense_id", "exp", data)

    async def list_salary_transfers(self) -> list[SalaryTransfer]:
        return await self._list(SalaryTransferRecord, SalaryTransfer, "list_salary_transfers")

    async def create_salary_transfer(self, data: dict[str, Any]) -> SalaryTransfer:
        return await self._insert(SalaryTransferRecord, SalaryTransfer, "transfer_id", "sal", data)

    # =========================================================================
    # Audit / maintenance
    # =========================================================================
    async def list_audit_logs(self) -> list[AuditLog]:
        return await self._list(AuditLogRecord, AuditLog, "list_audit_logs")

    async def write_audit_log(self, data: dict[str, Any]) -> None:
        await self._insert(AuditLogRecord, AuditLog, "log_id", "log", {"timestamp": utc_now_iso(), **data})

    async def seed(self, dataset: DemoDataset) -> None:
        """Insert every row of `dataset`. Used by reset and scripts/seed_data.py."""
        pairs = [
            (UserRecord, dataset.users),
            (EmployeeRecord, dataset.employees),
            (ToolRecord, dataset.tools),
            (ToolRequestRecord, dataset.tool_requests),
            (ToolPaymentRecord, dataset.tool_payments),
            (LeaveRequestRecord, dataset.leave_requests),
            (AttendanceRecord, dataset.attendance),
            (ExpenseRecord, dataset.expenses),
            (SalaryTransferRecord, dataset.salary_transfers),
            (AuditLogRecord, dataset.audit_logs),
        ]
        async with self._session("seed") as db:
            for record_cls, entities in pairs:
                db.add_all([to_record(record_cls, entity) for entity in entities])
            await db.commit()

    async def reset_demo_data(self) -> None:
        if not self.demo_mode:
            raise StoreNotImplemented("Demo data can only be reset when demo mode is enabled.")
        async with self._session("reset_demo_data") as db:
            await repo.clear_tables(db, *ALL_RECORDS)
        await self.seed(build_demo_dataset())
        logger.info("demo_data_reset", adapter=self.kind)
