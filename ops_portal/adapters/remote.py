"""
Remote Record-Store Adapter (httpx)
=============================================================================
CONCEPT: A spreadsheet as a database

The production store is an Airtable-style HTTPS API. Each entity lives in a
TABLE; each row is a RECORD:

    GET  /v0/{base}/{table}?filterByFormula=...&offset=...
        -> {"records": [{"id": "recXXXX", "fields": {...}}], "offset": "..."}
    POST  /v0/{base}/{table}               {"fields": {...}}
    PATCH /v0/{base}/{table}/{recordId}    {"fields": {...}}

`recordId` is the store's own row id. The portal never exposes it: rows are
addressed by their business key (requestId, userId, ...), so an update is
"find the record whose key field matches, then PATCH it".

FILTERS:
  Reads are filtered by the store itself with formulas, e.g.
      LOWER({email})='tom@creooglobal.com'
      AND(NOT(IS_BEFORE({date},'2026-10-01')),NOT(IS_AFTER({date},'2026-10-31')))
  String literals are escaped before they go into a formula.

PAGINATION:
  A list response carries an `offset` token while more pages remain. List
  reads keep requesting until the token disappears.

ERROR MAPPING:
  network failure / timeout     -> StoreUnavailable
  HTTP 429 (rate limited), 5xx  -> StoreUnavailable
  any other 4xx                 -> StoreRejected

Every request is timed into the `portal_store_request_seconds` histogram.
=============================================================================
"""

import time
from enum import Enum
from typing import Any

import httpx
from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from ops_portal.adapters.base import DataAdapter, EntityT, build_entity
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
    normalize_email,
    utc_now_iso,
)
from ops_portal.errors import EntityNotFound, StoreNotImplemented, StoreRejected, StoreUnavailable
from ops_portal.observability.logging import get_logger
from ops_portal.observability.metrics import record_store_request

logger = get_logger(__name__)


# Table names in the record store
USERS = "Users"
EMPLOYEES = "Employees"
TOOLS = "ToolsRegistry"
TOOL_REQUESTS = "ToolRequests"
TOOL_PAYMENTS = "ToolPayments"
LEAVE_REQUESTS = "LeaveRequests"
ATTENDANCE = "Attendance"
EXPENSES = "Expenses"
SALARY_TRANSFERS = "SalaryTransfers"
AUDIT_LOGS = "AuditLogs"


def quote_formula_value(value: str) -> str:
    """Render a Python string as a single-quoted formula literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def date_range_formula(field: str, start: str | None, end: str | None) -> str | None:
    clauses = []
    if start:
        clauses.append(f"NOT(IS_BEFORE({{{field}}},{quote_formula_value(start[:10])}))")
    if end:
        clauses.append(f"NOT(IS_AFTER({{{field}}},{quote_formula_value(end[:10])}))")
    if not clauses:
        return None
    if len(clauses) == 1:
        return clauses[0]
    return f"AND({','.join(clauses)})"


def to_store_fields(changes: dict[str, Any]) -> dict[str, Any]:
    """snake_case update dict -> camelCase store fields with plain values."""
    return {
        to_camel(key): value.value if isinstance(value, Enum) else value
        for key, value in changes.items()
    }


class RemoteStoreAdapter(DataAdapter):
    """
    Adapter over the remote record store.

    `transport` lets tests substitute httpx.MockTransport; production uses
    the default network transport. `timeout=None` means no client-side
    timeout.
    """

    kind = "remote"

    def __init__(
        self,
        api_url: str,
        base_id: str,
        token: str,
        write_enabled: bool = True,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.write_enabled = write_enabled
        self._client = httpx.AsyncClient(
            base_url=f"{api_url.rstrip('/')}/{base_id}/",
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # =========================================================================
    # HTTP plumbing
    # =========================================================================
    async def _request(self, method: str, operation: str, path: str, **kwargs: Any) -> dict:
        started = time.perf_counter()
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.warning("store_unreachable", operation=operation, error=str(e))
            raise StoreUnavailable() from e
        finally:
            record_store_request(operation, (time.perf_counter() - started) * 1000)

        if response.status_code == 429 or response.status_code >= 500:
            logger.warning("store_unavailable", operation=operation, status=response.status_code)
            raise StoreUnavailable()
        if response.status_code >= 400:
            logger.warning(
                "store_rejected",
                operation=operation,
                status=response.status_code,
                body=response.text[:500],
            )
            raise StoreRejected(f"The record store rejected '{operation}' (HTTP {response.status_code}).")
        try:
            return response.json()
        except ValueError as e:
            # A proxy answering for the store, e.g. an HTML gateway page
            logger.warning("store_bad_response", operation=operation, status=response.status_code,
                           body=response.text[:200])
            raise StoreUnavailable() from e

    async def _list_records(
        self,
        table: str,
        formula: str | None = None,
        max_records: int | None = None,
    ) -> list[dict]:
        params: dict[str, Any] = {}
        if formula:
            params["filterByFormula"] = formula
        if max_records:
            params["maxRecords"] = max_records

        records: list[dict] = []
        while True:
            body = await self._request("GET", f"list:{table}", table, params=params)
            records.extend(body.get("records", []))
            offset = body.get("offset")
            if not offset:
                return records
            params = {**params, "offset": offset}

    def _parse(self, model: type[EntityT], records: list[dict]) -> list[EntityT]:
        rows = []
        for record in records:
            try:
                rows.append(model.model_validate(record.get("fields", {})))
            except ValidationError as e:
                # One hand-edited row must not take the whole table down
                logger.warning(
                    "store_record_skipped",
                    model=model.__name__,
                    record_id=record.get("id"),
                    error=e.errors()[0]["msg"],
                )
        return rows

    async def _all(self, table: str, model: type[EntityT], formula: str | None = None) -> list[EntityT]:
        return self._parse(model, await self._list_records(table, formula=formula))

    async def _first(self, table: str, model: type[EntityT], formula: str) -> EntityT | None:
        rows = self._parse(model, await self._list_records(table, formula=formula, max_records=1))
        return rows[0] if rows else None

    def _ensure_writable(self, operation: str) -> None:
        if not self.write_enabled:
            raise StoreNotImplemented(f"Writes are disabled on this record store ('{operation}').")

    async def _create(
        self, table: str, model: type[EntityT], id_field: str, prefix: str, data: dict[str, Any]
    ) -> EntityT:
        self._ensure_writable(f"create:{table}")
        entity = build_entity(model, id_field, prefix, data)
        body = await self._request(
            "POST",
            f"create:{table}",
            table,
            json={"fields": entity.to_store(exclude_none=True), "typecast": True},
        )
        return model.model_validate({**entity.to_store(), **body.get("fields", {})})

    async def _record_id(self, table: str, key_field: str, key: str) -> str:
        records = await self._list_records(
            table, formula=f"{{{key_field}}}={quote_formula_value(key)}", max_records=1
        )
        if not records:
            raise EntityNotFound(f"No {table} record with {key_field}={key}.")
        return records[0]["id"]

    async def _update(self, table: str, key_field: str, key: str, changes: dict[str, Any]) -> None:
        self._ensure_writable(f"update:{table}")
        record_id = await self._record_id(table, key_field, key)
        await self._request(
            "PATCH",
            f"update:{table}",
            f"{table}/{record_id}",
            json={"fields": to_store_fields(changes), "typecast": True},
        )

    # =========================================================================
    # Users
    # =========================================================================
    async def get_user_by_email(self, email: str) -> User | None:
        formula = f"LOWER({{email}})={quote_formula_value(normalize_email(email))}"
        return await self._first(USERS, User, formula)

    async def list_users(self) -> list[User]:
        return await self._all(USERS, User)

    async def create_user(self, data: dict[str, Any]) -> User:
        return await self._create(USERS, User, "user_id", "usr", data)

    async def update_user(self, user_id: str, changes: dict[str, Any]) -> None:
        await self._update(USERS, "userId", user_id, changes)

    async def update_user_last_login(self, user_id: str, timestamp: str) -> None:
        await self._update(USERS, "userId", user_id, {"last_login_at": timestamp})

    # =========================================================================
    # Employees / tools
    # =========================================================================
    async def list_employees(self) -> list[Employee]:
        return await self._all(EMPLOYEES, Employee)

    async def create_employee(self, data: dict[str, Any]) -> Employee:
        return await self._create(EMPLOYEES, Employee, "employee_id", "emp", data)

    async def list_tools(self) -> list[Tool]:
        return await self._all(TOOLS, Tool)

    async def get_tool_by_id(self, tool_id: str) -> Tool | None:
        return await self._first(TOOLS, Tool, f"{{toolId}}={quote_formula_value(tool_id)}")

    async def create_tool(self, data: dict[str, Any]) -> Tool:
        return await self._create(TOOLS, Tool, "tool_id", "tool", data)

    # =========================================================================
    # Requests
    # =========================================================================
    async def list_tool_requests(self) -> list[ToolRequest]:
        return await self._all(TOOL_REQUESTS, ToolRequest)

    async def create_tool_request(self, data: dict[str, Any]) -> ToolRequest:
        return await self._create(TOOL_REQUESTS, ToolRequest, "request_id", "req", data)

    async def update_tool_request_status(
        self, request_id: str, status: RequestStatus, approver_id: str, notes: str
    ) -> None:
        await self._update(
            TOOL_REQUESTS,
            "requestId",
            request_id,
            {"status": status, "approver_id": approver_id, "notes": notes},
        )

    async def list_leave_requests(self) -> list[LeaveRequest]:
        return await self._all(LEAVE_REQUESTS, LeaveRequest)

    async def create_leave_request(self, data: dict[str, Any]) -> LeaveRequest:
        return await self._create(LEAVE_REQUESTS, LeaveRequest, "leave_id", "lv", data)

    async def update_leave_request_status(
        self, leave_id: str, status: LeaveStatus, approver_id: str, notes: str
    ) -> None:
        await self._update(
            LEAVE_REQUESTS,
            "leaveId",
            leave_id,
            {"status": status, "approver_id": approver_id, "notes": notes},
        )

    # =========================================================================
    # Attendance
    # =========================================================================
    async def list_attendance(self, start: str, end: str) -> list[Attendance]:
        return await self._all(ATTENDANCE, Attendance, date_range_formula("date", start, end))

    async def upsert_attendance(self, entry: Attendance) -> Attendance:
        self._ensure_writable("upsert:Attendance")
        formula = (
            f"AND(DATETIME_FORMAT({{date}},'YYYY-MM-DD')={quote_formula_value(entry.date[:10])},"
            f"{{userId}}={quote_formula_value(entry.user_id)})"
        )
        existing = await self._list_records(ATTENDANCE, formula=formula, max_records=1)
        payload = {"fields": entry.to_store(exclude_none=True), "typecast": True}
        if existing:
            await self._request("PATCH", "update:Attendance", f"{ATTENDANCE}/{existing[0]['id']}", json=payload)
        else:
            await self._request("POST", "create:Attendance", ATTENDANCE, json=payload)
        return entry

    # =========================================================================
    # Ledger
    # =========================================================================
    async def list_tool_payments(self) -> list[ToolPayment]:
        return await self._all(TOOL_PAYMENTS, ToolPayment)

    async def create_tool_payment(self, data: dict[str, Any]) -> ToolPayment:
        return await self._create(TOOL_PAYMENTS, ToolPayment, "payment_id", "pay", data)

    async def list_expenses(self, start: str | None = None, end: str | None = None) -> list[Expense]:
        return await self._all(EXPENSES, Expense, date_range_formula("date", start, end))

    async def create_expense(self, data: dict[str, Any]) -> Expense:
        return await self._create(EXPENSES, Expense, "expense_id", "exp", data)

    async def list_salary_transfers(self) -> list[SalaryTransfer]:
        return await self._all(SALARY_TRANSFERS, SalaryTransfer)

    async def create_salary_transfer(self, data: dict[str, Any]) -> SalaryTransfer:
        return await self._create(SALARY_TRANSFERS, SalaryTransfer, "transfer_id", "sal", data)

    # =========================================================================
    # Audit / maintenance
    # =========================================================================
    async def list_audit_logs(self) -> list[AuditLog]:
        return await self._all(AUDIT_LOGS, AuditLog)

    async def write_audit_log(self, data: dict[str, Any]) -> None:
        await self._create(AUDIT_LOGS, AuditLog, "log_id", "log", {"timestamp": utc_now_iso(), **data})

    async def reset_demo_data(self) -> None:
        raise StoreNotImplemented("Demo data cannot be reset on a live record store.")
