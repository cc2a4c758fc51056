"""
Request Service: submitting and listing tool / leave requests
=============================================================================
Submission creates the entity in its initial status with no approver, then
emits a TOOL_REQUEST / LEAVE_REQUEST notification. Listing applies the
row-level scope (requesters see only their own rows), an optional
all / pending / resolved filter, and annotates each row with:

  - requester: name and email resolved from the users table
  - available_actions: what THIS principal can do to the row right now,
    i.e. actions that are both valid from the row's status (state machine)
    and allowed for the principal's role (permission matrix)

Status changes are NOT made here; see ops_portal/workflow/engine.py.
=============================================================================
"""

from dataclasses import dataclass, field
from datetime import date

from ops_portal.adapters.base import DataAdapter
from ops_portal.auth.rbac import check_permission, require_permission, scope_rows
from ops_portal.auth.session import SessionContext
from ops_portal.config import Settings
from ops_portal.domain.entities import (
    LeaveRequest,
    ToolRequest,
    Urgency,
    User,
)
from ops_portal.errors import ValidationFailure
from ops_portal.notifications.sink import NotificationEvent, NotificationPayload, NotificationSink, Party
from ops_portal.observability.logging import get_logger
from ops_portal.services.audit import record_audit
from ops_portal.workflow.states import (
    LEAVE_REQUEST_FLOW,
    PENDING_LEAVE_STATUSES,
    PENDING_TOOL_STATUSES,
    TOOL_REQUEST_FLOW,
)

logger = get_logger(__name__)

STATUS_FILTERS = ("all", "pending", "resolved")


@dataclass
class RequestItem:
    """One row of a request listing as the principal sees it."""
    request: ToolRequest | LeaveRequest
    requester: Party
    available_actions: list[str] = field(default_factory=list)


def format_tool_request_notes(estimated_cost: float, currency: str, justification: str) -> str:
    return f"Estimated cost: {estimated_cost:g} {currency}/month. {justification}".rstrip()


def parse_iso_date(value: str, field_name: str) -> date:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationFailure(f"{field_name} must be an ISO date (YYYY-MM-DD).") from e


def _matches_filter(is_pending: bool, status_filter: str) -> bool:
    if status_filter == "pending":
        return is_pending
    if status_filter == "resolved":
        return not is_pending
    return True


class RequestService:
    def __init__(self, adapter: DataAdapter, notifier: NotificationSink, settings: Settings):
        self.adapter = adapter
        self.notifier = notifier
        self.settings = settings

    def _deep_link(self, path: str) -> str:
        return f"{self.settings.portal_base_url.rstrip('/')}{path}"

    # =========================================================================
    # Submission
    # =========================================================================
    async def submit_tool_request(
        self,
        session: SessionContext,
        tool_name: str,
        justification: str = "",
        expected_users: int = 1,
        urgency: Urgency = Urgency.MEDIUM,
        estimated_cost: float = 0.0,
        currency: str = "USD",
    ) -> ToolRequest:
        principal = session.require_principal()
        require_permission(principal.role, "tool_requests", "create")

        if not tool_name.strip():
            raise ValidationFailure("Tool name is required.")
        if expected_users < 1:
            raise ValidationFailure("Expected users must be at least 1.")
        if estimated_cost < 0:
            raise ValidationFailure("Estimated cost cannot be negative.")

        request = await self.adapter.create_tool_request(
            {
                "user_id": principal.user_id,
                "tool_name": tool_name.strip(),
                "justification": justification.strip(),
                "expected_users": expected_users,
                "urgency": Urgency(urgency),
                "status": TOOL_REQUEST_FLOW.initial,
                "approver_id": None,
                "notes": format_tool_request_notes(estimated_cost, currency, justification.strip()),
            }
        )
        logger.info("tool_request_submitted", request_id=request.request_id, user_id=principal.user_id)

        await record_audit(self.adapter, "tool_request_created", principal.user_id,
                           "ToolRequest", request.request_id, {"toolName": request.tool_name})
        self.notifier.notify(
            NotificationEvent.TOOL_REQUEST,
            NotificationPayload(
                request_type="tool_request",
                event="submitted",
                id=request.request_id,
                requester=Party.from_user(principal),
                fields=request.to_store(),
                status=request.status.value,
                deep_link=self._deep_link("/requests"),
            ),
        )
        return request

    async def submit_leave_request(
        self,
        session: SessionContext,
        start_date: str,
        end_date: str,
        leave_type: str = "Casual",
        reason: str = "",
    ) -> LeaveRequest:
        principal = session.require_principal()
        require_permission(principal.role, "leave_requests", "create")

        start = parse_iso_date(start_date, "Start date")
        end = parse_iso_date(end_date, "End date")
        if start > end:
            raise ValidationFailure("Start date must be on or before the end date.")

        leave = await self.adapter.create_leave_request(
            {
                "user_id": principal.user_id,
                "start_date": start.isoformat(),
                "end_date": end.isoformat(),
                "leave_type": leave_type.strip() or "Casual",
                "reason": reason.strip(),
                "status": LEAVE_REQUEST_FLOW.initial,
                "approver_id": None,
            }
        )
        logger.info("leave_request_submitted", leave_id=leave.leave_id, user_id=principal.user_id)

        await record_audit(self.adapter, "leave_request_created", principal.user_id,
                           "LeaveRequest", leave.leave_id,
                           {"startDate": leave.start_date, "endDate": leave.end_date})
        self.notifier.notify(
            NotificationEvent.LEAVE_REQUEST,
            NotificationPayload(
                request_type="leave_request",
                event="submitted",
                id=leave.leave_id,
                requester=Party.from_user(principal),
                fields=leave.to_store(),
                status=leave.status.value,
                deep_link=self._deep_link("/hr"),
            ),
        )
        return leave

    # =========================================================================
    # Listing
    # =========================================================================
    async def list_tool_requests(self, session: SessionContext, status_filter: str = "all") -> list[RequestItem]:
        principal = session.require_principal()
        _check_filter(status_filter)

        rows = scope_rows(principal.role, principal.user_id, "tool_requests",
                          await self.adapter.list_tool_requests())
        rows = [row for row in rows
                if _matches_filter(row.status in PENDING_TOOL_STATUSES, status_filter)]
        return await self._annotate(principal, rows, "tool_requests", TOOL_REQUEST_FLOW)

    async def list_leave_requests(self, session: SessionContext, status_filter: str = "all") -> list[RequestItem]:
        principal = session.require_principal()
        _check_filter(status_filter)

        rows = scope_rows(principal.role, principal.user_id, "leave_requests",
                          await self.adapter.list_leave_requests())
        rows = [row for row in rows
                if _matches_filter(row.status in PENDING_LEAVE_STATUSES, status_filter)]
        return await self._annotate(principal, rows, "leave_requests", LEAVE_REQUEST_FLOW)

    async def _annotate(self, principal: User, rows: list, resource: str, flow) -> list[RequestItem]:
        users = {user.user_id: user for user in await self.adapter.list_users()}
        items = []
        for row in sorted(rows, key=lambda r: r.created_at, reverse=True):
            requester = users.get(row.user_id)
            items.append(
                RequestItem(
                    request=row,
                    requester=Party.from_user(requester) if requester else Party(user_id=row.user_id),
                    available_actions=[
                        action.value
                        for action in flow.available_actions(row.status)
                        if check_permission(principal.role, resource, action.value)
                    ],
                )
            )
        return items


def _check_filter(status_filter: str) -> None:
    if status_filter not in STATUS_FILTERS:
        raise ValidationFailure(f"Filter must be one of: {', '.join(STATUS_FILTERS)}.")
