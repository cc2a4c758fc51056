"""Initial schema for the ops portal SQL store.

CONCEPT: The SQL store mirrors the remote record store table for table.
Ids are the portal's own opaque strings ("req_3f9a1c0b2e"), dates are ISO
strings, so rows move between stores without conversion.

Revision ID: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

# Revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # --- Users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(255), nullable=False, server_default=""),
        sa.Column("role", sa.String(32), nullable=False, server_default="Employee"),
        sa.Column("status", sa.String(32), nullable=False, server_default="active"),
        sa.Column("last_login_at", sa.String(40)),
    )
    op.create_index("ix_users_email", "users", ["email"])

    # --- Employees ---
    op.create_table(
        "employees",
        sa.Column("employee_id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(64)),
        sa.Column("department", sa.String(100), nullable=False, server_default=""),
        sa.Column("manager_id", sa.String(64)),
        sa.Column("joining_date", sa.String(10)),
        sa.Column("employment_type", sa.String(32), nullable=False, server_default="full_time"),
        sa.Column("work_location", sa.String(255), nullable=False, server_default=""),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("birthday", sa.String(10)),
    )
    op.create_index("ix_employees_user_id", "employees", ["user_id"])

    # --- Attendance (one row per day and user) ---
    op.create_table(
        "attendance",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("location", sa.String(255), nullable=False, server_default=""),
        sa.Column("check_in", sa.String(16), nullable=False, server_default=""),
        sa.Column("check_out", sa.String(16)),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.UniqueConstraint("date", "user_id", name="uq_attendance_day_user"),
    )
    op.create_index("ix_attendance_date", "attendance", ["date"])

    # --- Tools ---
    op.create_table(
        "tools",
        sa.Column("tool_id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=False, server_default="Software"),
        sa.Column("billing_cycle", sa.String(16), nullable=False, server_default="monthly"),
        sa.Column("cost", sa.Float, nullable=False, server_default="0"),
        sa.Column("currency", sa.String(8), nullable=False, server_default="USD"),
        sa.Column("renewal_date", sa.String(10)),
        sa.Column("owner_role", sa.String(32), nullable=False, server_default="Admin"),
        sa.Column("visibility_level", sa.String(32), nullable=False, server_default="company_shared"),
        sa.Column("seats_total", sa.Integer, nullable=False, server_default="1"),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column("vendor", sa.String(255), nullable=False, server_default=""),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
    )

    # --- Tool Requests ---
    op.create_table(
        "tool_requests",
        sa.Column("request_id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("tool_name", sa.String(255), nullable=False),
        sa.Column("justification", sa.Text, nullable=False, server_default=""),
        sa.Column("expected_users", sa.Integer, nullable=False, server_default="1"),
        sa.Column("urgency", sa.String(16), nullable=False, server_default="medium"),
        sa.Column("status", sa.String(32), nullable=False, server_default="requested"),
        sa.Column("approver_id", sa.String(64)),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column("created_at", sa.String(40), nullable=False, server_default=""),
    )
    op.create_index("ix_tool_requests_user_id", "tool_requests", ["user_id"])
    op.create_index("ix_tool_requests_status", "tool_requests", ["status"])

    # --- Leave Requests ---
    op.create_table(
        "leave_requests",
        sa.Column("leave_id", sa.String(64), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("start_date", sa.String(10), nullable=False),
        sa.Column("end_date", sa.String(10), nullable=False),
        sa.Column("leave_type", sa.String(64), nullable=False, server_default="Casual"),
        sa.Column("reason", sa.Text, nullable=False, server_default=""),
        sa.Column("status", sa.String(32), nullable=False, server_default="requested"),
        sa.Column("approver_id", sa.String(64)),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column("created_at", sa.String(40), nullable=False, server_default=""),
    )
    op.create_index("ix_leave_requests_user_id", "leave_requests", ["user_id"])
    op.create_index("ix_leave_requests_status", "leave_requests", ["status"])

    # --- Ledger: tool payments, expenses, salary transfers ---
    op.create_table(
        "tool_payments",
        sa.Column("payment_id", sa.String(64), primary_key=True),
        sa.Column("tool_id", sa.String(64), nullable=False),
        sa.Column("payment_date", sa.String(10), nullable=False),
        sa.Column("month_for", sa.String(7), nullable=False),
        sa.Column("amount", sa.Float, nullable=False),
        sa.Column("currency", sa.String(8), nullable=False, server_default="USD"),
        sa.Column("paid_by_user_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("method", sa.String(64), nullable=False, server_default=""),
        sa.Column("reference_id", sa.String(255), nullable=False, server_default=""),
        sa.Column("invoice_link", sa.String(1024), nullable=False, server_default=""),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column("created_at", sa.String(40), nullable=False, server_default=""),
    )
    op.create_index("ix_tool_payments_tool_id", "tool_payments", ["tool_id"])

    op.create_table(
        "expenses",
        sa.Column("expense_id", sa.String(64), primary_key=True),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column("vendor", sa.String(255), nullable=False, server_default=""),
        sa.Column("category", sa.String(32), nullable=False, server_default="Misc"),
        sa.Column("amount", sa.Float, nullable=False),
        sa.Column("currency", sa.String(8), nullable=False, server_default="USD"),
        sa.Column("recurring", sa.String(1), nullable=False, server_default="N"),
        sa.Column("linked_tool_id", sa.String(64)),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
    )
    op.create_index("ix_expenses_date", "expenses", ["date"])

    op.create_table(
        "salary_transfers",
        sa.Column("transfer_id", sa.String(64), primary_key=True),
        sa.Column("date", sa.String(10), nullable=False),
        sa.Column("paid_to_user_id", sa.String(64), nullable=False),
        sa.Column("paid_to_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("amount", sa.Float, nullable=False),
        sa.Column("currency", sa.String(8), nullable=False, server_default="USD"),
        sa.Column("month_for", sa.String(7), nullable=False, server_default=""),
        sa.Column("method", sa.String(64), nullable=False, server_default=""),
        sa.Column("reference_id", sa.String(255), nullable=False, server_default=""),
        sa.Column("notes", sa.Text, nullable=False, server_default=""),
        sa.Column("created_by_user_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("created_at", sa.String(40), nullable=False, server_default=""),
    )
    op.create_index("ix_salary_transfers_paid_to_user_id", "salary_transfers", ["paid_to_user_id"])

    # --- Audit Log ---
    op.create_table(
        "audit_logs",
        sa.Column("log_id", sa.String(64), primary_key=True),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("performed_by", sa.String(64), nullable=False),
        sa.Column("entity_type", sa.String(64), nullable=False),
        sa.Column("entity_id", sa.String(64), nullable=False),
        sa.Column("timestamp", sa.String(40), nullable=False),
        sa.Column("details_json", sa.Text, nullable=False, server_default="{}"),
    )
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("salary_transfers")
    op.drop_table("expenses")
    op.drop_table("tool_payments")
    op.drop_table("leave_requests")
    op.drop_table("tool_requests")
    op.drop_table("tools")
    op.drop_table("attendance")
    op.drop_table("employees")
    op.drop_table("users")
