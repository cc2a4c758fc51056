"""
Database Models (SQLAlchemy ORM)
=============================================================================
One table per portal entity, mirroring ops_portal/domain/entities.py.

The SQL store keeps the record store's data shape: identifiers are the same
opaque strings (usr_..., req_...), dates and timestamps are ISO strings and
status columns hold the enum VALUES ("need_info", "Ops/HR"). Moving rows
between the remote store and a database is therefore a copy, not a
conversion.

TABLES:
  - users, employees, tools
  - tool_requests, leave_requests      (the two approval workflows)
  - attendance                         (one row per user per day)
  - tool_payments, expenses, salary_transfers   (append-only ledger)
  - audit_logs                         (write-only trail)

References between tables (employees.user_id, tool_payments.tool_id, ...)
are WEAK: the record store has no foreign keys, so neither does this schema.
=============================================================================
"""

from sqlalchemy import Column, Float, Index, Integer, String, Text, UniqueConstraint

from ops_portal.db.engine import Base


# =============================================================================
# People
# =============================================================================
class UserRecord(Base):
    __tablename__ = "users"

    user_id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False, default="")
    # Stored normalized (trim + lower); lookups compare normalized values
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False, default="")
    role = Column(String(32), nullable=False, default="Employee")
    status = Column(String(32), nullable=False, default="active")
    last_login_at = Column(String(40))


class EmployeeRecord(Base):
    __tablename__ = "employees"

    employee_id = Column(String(64), primary_key=True)
    user_id = Column(String(64), index=True)
    department = Column(String(100), nullable=False, default="")
    manager_id = Column(String(64))
    joining_date = Column(String(10))
    employment_type = Column(String(32), nullable=False, default="full_time")
    work_location = Column(String(255), nullable=False, default="")
    timezone = Column(String(64), nullable=False, default="UTC")
    birthday = Column(String(10))


class AttendanceRecord(Base):
    __tablename__ = "attendance"
    __table_args__ = (UniqueConstraint("date", "user_id", name="uq_attendance_day_user"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(String(10), nullable=False, index=True)
    user_id = Column(String(64), nullable=False)
    status = Column(String(16), nullable=False)
    location = Column(String(255), nullable=False, default="")
    check_in = Column(String(16), nullable=False, default="")
    check_out = Column(String(16))
    notes = Column(Text, nullable=False, default="")


# =============================================================================
# Tools & workflows
# =============================================================================
class ToolRecord(Base):
    __tablename__ = "tools"

    tool_id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False, default="Software")
    billing_cycle = Column(String(16), nullable=False, default="monthly")
    cost = Column(Float, nullable=False, default=0.0)
    currency = Column(String(8), nullable=False, default="USD")
    renewal_date = Column(String(10))
    owner_role = Column(String(32), nullable=False, default="Admin")
    visibility_level = Column(String(32), nullable=False, default="company_shared")
    seats_total = Column(Integer, nullable=False, default=1)
    status = Column(String(16), nullable=False, default="active")
    vendor = Column(String(255), nullable=False, default="")
    notes = Column(Text, nullable=False, default="")


class ToolRequestRecord(Base):
    __tablename__ = "tool_requests"

    request_id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    tool_name = Column(String(255), nullable=False)
    justification = Column(Text, nullable=False, default="")
    expected_users = Column(Integer, nullable=False, default=1)
    urgency = Column(String(16), nullable=False, default="medium")
    status = Column(String(32), nullable=False, default="requested", index=True)
    approver_id = Column(String(64))
    notes = Column(Text, nullable=False, default="")
    created_at = Column(String(40), nullable=False, default="")


class LeaveRequestRecord(Base):
    __tablename__ = "leave_requests"

    leave_id = Column(String(64), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    start_date = Column(String(10), nullable=False)
    end_date = Column(String(10), nullable=False)
    leave_type = Column(String(64), nullable=False, default="Casual")
    reason = Column(Text, nullable=False, default="")
    status = Column(String(32), nullable=False, default="requested", index=True)
    approver_id = Column(String(64))
    notes = Column(Text, nullable=False, default="")
    created_at = Column(String(40), nullable=False, default="")


# =============================================================================
# Ledger (append-only)
# =============================================================================
class ToolPaymentRecord(Base):
    __tablename__ = "tool_payments"

    payment_id = Column(String(64), primary_key=True)
    tool_id = Column(String(64), nullable=False, index=True)
    payment_date = Column(String(10), nullable=False)
    month_for = Column(String(7), nullable=False)
    amount = Column(Float, nullable=False)
    currency = Column(String(8), nullable=False, default="USD")
    paid_by_user_id = Column(String(64), nullable=False, default="")
    method = Column(String(64), nullable=False, default="")
    reference_id = Column(String(255), nullable=False, default="")
    invoice_link = Column(String(1024), nullable=False, default="")
    notes = Column(Text, nullable=False, default="")
    created_at = Column(String(40), nullable=False, default="")


class ExpenseRecord(Base):
    __tablename__ = "expenses"

    expense_id = Column(String(64), primary_key=True)
    date = Column(String(10), nullable=False, index=True)
    vendor = Column(String(255), nullable=False, default="")
    category = Column(String(32), nullable=False, default="Misc")
    amount = Column(Float, nullable=False)
    currency = Column(String(8), nullable=False, default="USD")
    recurring = Column(String(1), nullable=False, default="N")
    linked_tool_id = Column(String(64))
    notes = Column(Text, nullable=False, default="")


class SalaryTransferRecord(Base):
    __tablename__ = "salary_transfers"

    transfer_id = Column(String(64), primary_key=True)
    date = Column(String(10), nullable=False)
    paid_to_user_id = Column(String(64), nullable=False, index=True)
    paid_to_name = Column(String(255), nullable=False, default="")
    amount = Column(Float, nullable=False)
    currency = Column(String(8), nullable=False, default="USD")
    month_for = Column(String(7), nullable=False, default="")
    method = Column(String(64), nullable=False, default="")
    reference_id = Column(String(255), nullable=False, default="")
    notes = Column(Text, nullable=False, default="")
    created_by_user_id = Column(String(64), nullable=False, default="")
    created_at = Column(String(40), nullable=False, default="")


# =============================================================================
# Audit trail
# =============================================================================
class AuditLogRecord(Base):
    __tablename__ = "audit_logs"

    log_id = Column(String(64), primary_key=True)
    action = Column(String(64), nullable=False)
    performed_by = Column(String(64), nullable=False)
    entity_type = Column(String(64), nullable=False)
    entity_id = Column(String(64), nullable=False)
    timestamp = Column(String(40), nullable=False)
    details_json = Column(Text, nullable=False, default="{}")

    __table_args__ = (
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
    )
