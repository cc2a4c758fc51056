"""
Leave Request Endpoints
=============================================================================
Same shape as /requests (see ops_portal/api/requests.py), for leave:

  GET  /leave?filter=all|pending|resolved
  POST /leave                      {startDate, endDate, leaveType, reason}
  POST /leave/{id}/{action}        action: approve | reject | need_info
=============================================================================
"""

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field

from ops_portal.api.deps import get_request_service, get_workflow
from ops_portal.api.requests import ActionBody, ActionResponse, RequestListItem
from ops_portal.auth.dependencies import get_session
from ops_portal.auth.session import SessionContext
from ops_portal.domain.entities import LeaveRequest, PortalModel
from ops_portal.services.requests import RequestService
from ops_portal.workflow.engine import WorkflowEngine

router = APIRouter(prefix="/leave", tags=["Leave Requests"])


class LeaveRequestCreate(PortalModel):
    start_date: str = Field(..., description="YYYY-MM-DD")
    end_date: str = Field(..., description="YYYY-MM-DD")
    leave_type: str = "Casual"
    reason: str = ""


@router.get("", response_model=list[RequestListItem])
async def list_leave(
    status_filter: str = Query("all", alias="filter", description="all | pending | resolved"),
    session: SessionContext = Depends(get_session),
    service: RequestService = Depends(get_request_service),
) -> list[RequestListItem]:
    items = await service.list_leave_requests(session, status_filter)
    return [RequestListItem.from_item(item) for item in items]


@router.post("", response_model=LeaveRequest, status_code=status.HTTP_201_CREATED)
async def submit_leave(
    body: LeaveRequestCreate,
    session: SessionContext = Depends(get_session),
    service: RequestService = Depends(get_request_service),
) -> LeaveRequest:
    return await service.submit_leave_request(session, **body.model_dump())


@router.post("/{leave_id}/{action}", response_model=ActionResponse)
async def act_on_leave(
    leave_id: str,
    action: str,
    body: ActionBody | None = None,
    session: SessionContext = Depends(get_session),
    engine: WorkflowEngine = Depends(get_workflow),
) -> ActionResponse:
    body = body or ActionBody()
    result = await engine.act_on_leave_request(session, leave_id, action, body.effective_note())
    return ActionResponse.from_result(result)
