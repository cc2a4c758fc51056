"""
Domain Entities
=============================================================================
CONCEPT: One model, two spellings

The record store speaks camelCase (`userId`, `passwordHash`,
`visibilityLevel`); Python code speaks snake_case. Every entity below uses
an alias generator so that:

    ToolRequest.model_validate({"requestId": "req_1", "userId": "usr_1", ...})
    ToolRequest(request_id="req_1", user_id="usr_1", ...)

both work, and `model_dump(by_alias=True, mode="json")` produces exactly
the field names the store expects.

CONCEPT: Closed status types

Statuses are Enums, not free strings. A typo like "aproved" fails at
validation time instead of silently creating a request that no transition
will ever match.

Fields have defaults wherever the store may omit them: spreadsheet-style
stores drop empty cells from the record entirely.
=============================================================================
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


# =============================================================================
# Enumerations
# =============================================================================
class Role(str, Enum):
    ADMIN = "Admin"
    FINANCE = "Finance"
    OPS_HR = "Ops/HR"
    EMPLOYEE = "Employee"
    INTERN = "Intern"

    @classmethod
    def _missing_(cls, value: object) -> "Role | None":
        # Stores edited by hand contain "admin", "OpsHR", "ops/hr", ...
        if isinstance(value, str):
            folded = value.replace("/", "").replace(" ", "").lower()
            for member in cls:
                if member.value.replace("/", "").lower() == folded:
                    return member
        return None


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    ACTIVE_TEMP_PASSWORD = "active_temp_password"


class VisibilityLevel(str, Enum):
    COMPANY_SHARED = "company_shared"
    TEAM_SHARED = "team_shared"
    PRIVATE_ADMIN = "private_admin"
    ROLE_BASED = "role_based"


class ToolStatus(str, Enum):
    ACTIVE = "active"
    TRIAL = "trial"
    CANCELLED = "cancelled"


class BillingCycle(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RequestStatus(str, Enum):
    """Tool request lifecycle. See ops_portal/workflow/states.py."""
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEED_INFO = "need_info"
    PROCURED = "procured"
    ACCESS_GRANTED = "access_granted"
    CLOSED = "closed"


class LeaveStatus(str, Enum):
    REQUESTED = "requested"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEED_INFO = "need_info"


class Urgency(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EmploymentType(str, Enum):
    FULL_TIME = "full_time"
    CONTRACT = "contract"
    INTERN = "intern"


class AttendanceStatus(str, Enum):
    WFH = "WFH"
    WFO = "WFO"
    CLIENT = "Client"
    LEAVE = "Leave"


class ExpenseCategory(str, Enum):
    SALARIES = "Salaries"
    TOOLS = "Tools"
    MARKETING = "Marketing"
    TRAVEL = "Travel"
    OFFICE = "Office"
    CONTRACTORS = "Contractors"
    MISC = "Misc"


# =============================================================================
# Base model
# =============================================================================
class PortalModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_store(self, exclude_none: bool = False) -> dict[str, Any]:
        """Serialize with store field names (camelCase) and plain JSON values."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=exclude_none)


def normalize_email(email: str) -> str:
    """Canonical form used for EVERY email lookup and comparison."""
    return email.strip().lower()


def new_id(prefix: str) -> str:
    """Opaque identifier such as 'req_3f9a1c0b2e'."""
    return f"{prefix}_{uuid4().hex[:10]}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _first_linked(value: Any) -> Any:
    # Linked-record cells arrive as one-element lists: ["usr_123"]
    if isinstance(value, list):
        return value[0] if value else None
    return value


# =============================================================================
# People
# =============================================================================
class User(PortalModel):
    user_id: str
    name: str = ""
    email: str
    password_hash: str = ""
    role: Role = Role.EMPLOYEE
    status: UserStatus = UserStatus.ACTIVE
    last_login_at: str | None = None


class Employee(PortalModel):
    employee_id: str
    user_id: str | None = None
    department: str = ""
    manager_id: str | None = None
    joining_date: str | None = None
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    work_location: str = ""
    timezone: str = "UTC"
    birthday: str | None = None

    @field_validator("user_id", "manager_id", mode="before")
    @classmethod
    def _unwrap_links(cls, value: Any) -> Any:
        return _first_linked(value)


class Attendance(PortalModel):
    date: str
    user_id: str
    status: AttendanceStatus
    location: str = ""
    check_in: str = ""
    check_out: str | None = None
    notes: str = ""


# =============================================================================
# Tools and workflow entities
# =============================================================================
class Tool(PortalModel):
    tool_id: str
    name: str
    category: str = "Software"
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    cost: float = 0.0
    currency: str = "USD"
    renewal_date: str | None = None
    owner_role: Role = Role.ADMIN
    visibility_level: VisibilityLevel = VisibilityLevel.COMPANY_SHARED
    seats_total: int = 1
    status: ToolStatus = ToolStatus.ACTIVE
    vendor: str = ""
    notes: str = ""


class ToolRequest(PortalModel):
    request_id: str
    user_id: str
    tool_name: str
    justification: str = ""
    expected_users: int = 1
    urgency: Urgency = Urgency.MEDIUM
    status: RequestStatus = RequestStatus.REQUESTED
    approver_id: str | None = None
    notes: str = ""
    created_at: str = ""


class LeaveRequest(PortalModel):
    leave_id: str
    user_id: str
    start_date: str
    end_date: str
    leave_type: str = "Casual"
    reason: str = ""
    status: LeaveStatus = LeaveStatus.REQUESTED
    approver_id: str | None = None
    notes: str = ""
    created_at: str = ""


# =============================================================================
# Ledger (append-only) and audit
# =============================================================================
class ToolPayment(PortalModel):
    payment_id: str
    tool_id: str
    payment_date: str
    month_for: str  # YYYY-MM
    amount: float
    currency: str = "USD"
    paid_by_user_id: str = ""
    method: str = ""
    reference_id: str = ""
    invoice_link: str = ""
    notes: str = ""
    created_at: str = ""


class Expense(PortalModel):
    expense_id: str
    date: str
    vendor: str = ""
    category: ExpenseCategory = ExpenseCategory.MISC
    amount: float
    currency: str = "USD"
    recurring: str = "N"  # "Y" | "N"
    linked_tool_id: str | None = None
    notes: str = ""


class SalaryTransfer(PortalModel):
    transfer_id: str
    date: str
    paid_to_user_id: str
    paid_to_name: str = ""
    amount: float
    currency: str = "USD"
    month_for: str = ""
    method: str = ""
    reference_id: str = ""
    notes: str = ""
    created_by_user_id: str = ""
    created_at: str = ""


class AuditLog(PortalModel):
    log_id: str
    action: str
    performed_by: str
    entity_type: str
    entity_id: str
    timestamp: str
    details_json: str = "{}"
