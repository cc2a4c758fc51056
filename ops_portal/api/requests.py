"""
Tool Request Endpoints
=============================================================================
  GET  /requests?filter=all|pending|resolved
       Approvers (Admin, Ops/HR) and Finance see every request, requesters
       only their own. Each item carries `availableActions`: the buttons
       THIS caller may press on THIS row right now.

  POST /requests
       Submit a new request (status `requested`, no approver).

  POST /requests/{id}/{action}     action: approve | reject | need_info |
                                           procure | grant_access
       Body: {"note": "...", "cancelled": false}
       `cancelled: true` is the approver dismissing the note prompt: the
       response is 200 with outcome "cancelled" and nothing is written.

  Status codes: 401 signed out, 403 role may not act, 404 unknown id,
  409 action not valid from the current status, 5xx store failures.
=============================================================================
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field

from ops_portal.api.deps import get_request_service, get_workflow
from ops_portal.auth.dependencies import get_session
from ops_portal.auth.session import SessionContext
from ops_portal.domain.entities import PortalModel, ToolRequest, Urgency
from ops_portal.notifications.sink import Party
from ops_portal.services.requests import RequestItem, RequestService
from ops_portal.workflow.engine import TransitionResult, WorkflowEngine

router = APIRouter(prefix="/requests", tags=["Tool Requests"])


# =============================================================================
# Schemas (shared with ops_portal/api/leave.py)
# =============================================================================
class ActionBody(PortalModel):
    """The approver's note. `cancelled` models a dismissed prompt."""
    note: str = ""
    cancelled: bool = False

    def effective_note(self) -> str | None:
        return None if self.cancelled else self.note


class ActionResponse(PortalModel):
    outcome: str
    action: str
    previous_status: str | None = None
    item: dict[str, Any] | None = None

    @classmethod
    def from_result(cls, result: TransitionResult) -> "ActionResponse":
        return cls(
            outcome=result.outcome,
            action=result.action.value,
            previous_status=result.previous_status,
            item=result.entity.to_store() if result.entity is not None else None,
        )


class RequestListItem(PortalModel):
    item: dict[str, Any]
    requester: Party
    available_actions: list[str] = Field(default_factory=list)

    @classmethod
    def from_item(cls, item: RequestItem) -> "RequestListItem":
        return cls(item=item.request.to_store(), requester=item.requester,
                   available_actions=item.available_actions)


class ToolRequestCreate(PortalModel):
    tool_name: str = Field(..., min_length=1)
    justification: str = ""
    expected_users: int = Field(1, ge=1)
    urgency: Urgency = Urgency.MEDIUM
    estimated_cost: float = Field(0.0, ge=0)
    currency: str = "USD"


# =============================================================================
# Endpoints
# =============================================================================
@router.get("", response_model=list[RequestListItem])
async def list_requests(
    status_filter: str = Query("all", alias="filter", description="all | pending | resolved"),
    session: SessionContext = Depends(get_session),
    service: RequestService = Depends(get_request_service),
) -> list[RequestListItem]:
    items = await service.list_tool_requests(session, status_filter)
    return [RequestListItem.from_item(item) for item in items]


@router.post("", response_model=ToolRequest, status_code=status.HTTP_201_CREATED)
async def submit_request(
    body: ToolRequestCreate,
    session: SessionContext = Depends(get_session),
    service: RequestService = Depends(get_request_service),
) -> ToolRequest:
    return await service.submit_tool_request(session, **body.model_dump())


@router.post("/{request_id}/{action}", response_model=ActionResponse)
async def act_on_request(
    request_id: str,
    action: str,
    body: ActionBody | None = None,
    session: SessionContext = Depends(get_session),
    engine: WorkflowEngine = Depends(get_workflow),
) -> ActionResponse:
    body = body or ActionBody()
    result = await engine.act_on_tool_request(session, request_id, action, body.effective_note())
    return ActionResponse.from_result(result)
