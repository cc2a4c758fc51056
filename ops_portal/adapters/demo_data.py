"""
Demo Dataset
=============================================================================
Sample rows for the in-memory adapter (and scripts/seed_data.py).

  - 5 users, one per role, all with the demo password "demo1234"
  - matching employee records
  - 5 tools, including one private_admin tool hidden from non-admins
  - tool requests and leave requests in several lifecycle states
  - a month of ledger rows (payments, expenses, salary transfers)

Demo passwords are stored verbatim, like the secrets in hand-maintained
record stores; the login path accepts both verbatim secrets and bcrypt
hashes (see ops_portal/auth/identity.py).
=============================================================================
"""

from dataclasses import dataclass, field

from ops_portal.domain.entities import (
    Attendance,
    AttendanceStatus,
    AuditLog,
    BillingCycle,
    Employee,
    EmploymentType,
    Expense,
    ExpenseCategory,
    LeaveRequest,
    LeaveStatus,
    RequestStatus,
    Role,
    SalaryTransfer,
    Tool,
    ToolPayment,
    ToolRequest,
    ToolStatus,
    Urgency,
    User,
    UserStatus,
    VisibilityLevel,
)

DEMO_PASSWORD = "demo1234"


@dataclass
class DemoDataset:
    users: list[User] = field(default_factory=list)
    employees: list[Employee] = field(default_factory=list)
    tools: list[Tool] = field(default_factory=list)
    tool_requests: list[ToolRequest] = field(default_factory=list)
    tool_payments: list[ToolPayment] = field(default_factory=list)
    leave_requests: list[LeaveRequest] = field(default_factory=list)
    attendance: list[Attendance] = field(default_factory=list)
    expenses: list[Expense] = field(default_factory=list)
    salary_transfers: list[SalaryTransfer] = field(default_factory=list)
    audit_logs: list[AuditLog] = field(default_factory=list)


def build_demo_dataset() -> DemoDataset:
    """Fresh objects on every call, so resetting never shares state."""
    users = [
        User(user_id="usr_admin", name="Aisha Raman", email="admin@creooglobal.com",
             password_hash=DEMO_PASSWORD, role=Role.ADMIN),
        User(user_id="usr_finance", name="Marco Bianchi", email="finance@creooglobal.com",
             password_hash=DEMO_PASSWORD, role=Role.FINANCE),
        User(user_id="usr_ops", name="Leila Haddad", email="ops@creooglobal.com",
             password_hash=DEMO_PASSWORD, role=Role.OPS_HR),
        User(user_id="usr_emp", name="Tom Okafor", email="tom@creooglobal.com",
             password_hash=DEMO_PASSWORD, role=Role.EMPLOYEE),
        User(user_id="usr_intern", name="Sara Lind", email="sara@creoo.co",
             password_hash=DEMO_PASSWORD, role=Role.INTERN,
             status=UserStatus.ACTIVE_TEMP_PASSWORD),
    ]

    employees = [
        Employee(employee_id="emp_001", user_id="usr_admin", department="Leadership",
                 joining_date="2021-03-01", work_location="Dubai", timezone="Asia/Dubai",
                 birthday="1988-11-02"),
        Employee(employee_id="emp_002", user_id="usr_finance", department="Finance",
                 manager_id="emp_001", joining_date="2022-01-10", work_location="Milan",
                 timezone="Europe/Rome", birthday="1990-04-17"),
        Employee(employee_id="emp_003", user_id="usr_ops", department="Operations",
                 manager_id="emp_001", joining_date="2022-06-15", work_location="Dubai",
                 timezone="Asia/Dubai", birthday="1993-10-28"),
        Employee(employee_id="emp_004", user_id="usr_emp", department="Engineering",
                 manager_id="emp_003", joining_date="2023-02-20", work_location="Lagos",
                 timezone="Africa/Lagos", birthday="1995-07-09"),
        Employee(employee_id="emp_005", user_id="usr_intern", department="Engineering",
                 manager_id="emp_004", joining_date="2024-09-01",
                 employment_type=EmploymentType.INTERN, work_location="Remote",
                 timezone="Europe/Stockholm", birthday="2002-12-24"),
    ]

    tools = [
        Tool(tool_id="tool_figma", name="Figma", category="Design", cost=45.0,
             renewal_date="2026-12-01", visibility_level=VisibilityLevel.COMPANY_SHARED,
             seats_total=3, vendor="Figma Inc."),
        Tool(tool_id="tool_github", name="GitHub Team", category="Engineering", cost=84.0,
             renewal_date="2026-11-15", visibility_level=VisibilityLevel.TEAM_SHARED,
             seats_total=12, vendor="GitHub"),
        Tool(tool_id="tool_notion", name="Notion", category="Productivity", cost=96.0,
             billing_cycle=BillingCycle.YEARLY, renewal_date="2027-02-01", seats_total=20,
             vendor="Notion Labs"),
        Tool(tool_id="tool_bank", name="Business Banking Portal", category="Finance",
             cost=0.0, visibility_level=VisibilityLevel.PRIVATE_ADMIN, seats_total=2,
             vendor="Emirates NBD", notes="Admin credentials only."),
        Tool(tool_id="tool_loom", name="Loom", category="Productivity", cost=15.0,
             status=ToolStatus.TRIAL, visibility_level=VisibilityLevel.ROLE_BASED,
             vendor="Loom"),
    ]

    tool_requests = [
        ToolRequest(request_id="req_001", user_id="usr_emp", tool_name="Postman",
                    justification="API testing for the billing service", expected_users=2,
                    urgency=Urgency.MEDIUM, notes="Estimated cost: 24 USD/month. API testing",
                    created_at="2026-10-01T09:15:00Z"),
        ToolRequest(request_id="req_002", user_id="usr_intern", tool_name="Canva Pro",
                    justification="Social media assets", urgency=Urgency.LOW,
                    status=RequestStatus.NEED_INFO, approver_id="usr_ops",
                    notes="[2026-10-03T11:00:00Z] need_info by usr_ops: Which team budget?",
                    created_at="2026-10-02T14:40:00Z"),
        ToolRequest(request_id="req_003", user_id="usr_emp", tool_name="Sentry",
                    justification="Error tracking in production", expected_users=5,
                    urgency=Urgency.HIGH, status=RequestStatus.APPROVED,
                    approver_id="usr_admin",
                    notes="[2026-09-21T08:05:00Z] approve by usr_admin: go ahead",
                    created_at="2026-09-20T16:00:00Z"),
    ]

    leave_requests = [
        LeaveRequest(leave_id="lv_001", user_id="usr_emp", start_date="2026-11-03",
                     end_date="2026-11-07", leave_type="Annual", reason="Family visit",
                     created_at="2026-10-10T10:00:00Z"),
        LeaveRequest(leave_id="lv_002", user_id="usr_intern", start_date="2026-10-12",
                     end_date="2026-10-12", leave_type="Sick", reason="Flu",
                     status=LeaveStatus.APPROVED, approver_id="usr_ops",
                     notes="[2026-10-12T07:30:00Z] approve by usr_ops: get well soon",
                     created_at="2026-10-12T07:00:00Z"),
    ]

    attendance = [
        Attendance(date="2026-10-15", user_id="usr_emp", status=AttendanceStatus.WFH,
                   location="Lagos", check_in="09:02", check_out="17:45"),
        Attendance(date="2026-10-15", user_id="usr_ops", status=AttendanceStatus.WFO,
                   location="Dubai office", check_in="08:30"),
    ]

    tool_payments = [
        ToolPayment(payment_id="pay_001", tool_id="tool_figma", payment_date="2026-10-01",
                    month_for="2026-10", amount=45.0, paid_by_user_id="usr_finance",
                    method="Card", reference_id="FIG-2026-10",
                    created_at="2026-10-01T12:00:00Z"),
        ToolPayment(payment_id="pay_002", tool_id="tool_github", payment_date="2026-10-02",
                    month_for="2026-10", amount=84.0, paid_by_user_id="usr_finance",
                    method="Card", created_at="2026-10-02T12:00:00Z"),
    ]

    expenses = [
        Expense(expense_id="exp_001", date="2026-10-01", vendor="Figma Inc.",
                category=ExpenseCategory.TOOLS, amount=45.0, recurring="Y",
                linked_tool_id="tool_figma"),
        Expense(expense_id="exp_002", date="2026-10-05", vendor="WeWork",
                category=ExpenseCategory.OFFICE, amount=1200.0, recurring="Y"),
        Expense(expense_id="exp_003", date="2026-10-08", vendor="Emirates",
                category=ExpenseCategory.TRAVEL, amount=640.0, notes="Client visit"),
    ]

    salary_transfers = [
        SalaryTransfer(transfer_id="sal_001", date="2026-09-30", paid_to_user_id="usr_emp",
                       paid_to_name="Tom Okafor", amount=3200.0, month_for="2026-09",
                       method="Bank transfer", created_by_user_id="usr_admin",
                       created_at="2026-09-30T15:00:00Z"),
    ]

    return DemoDataset(
        users=users,
        employees=employees,
        tools=tools,
        tool_requests=tool_requests,
        tool_payments=tool_payments,
        leave_requests=leave_requests,
        attendance=attendance,
        expenses=expenses,
        salary_transfers=salary_transfers,
    )
