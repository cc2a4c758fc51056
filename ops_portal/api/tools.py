"""
Tool Registry Endpoints
=============================================================================
  GET  /tools             visible tools, ?search= (name/vendor) &category=
  GET  /tools/categories  "All" plus every category the caller can see
  GET  /tools/{id}        one tool; private tools are 404 for non-admins
  POST /tools             Admin only; ownerRole is always Admin
=============================================================================
"""

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field

from ops_portal.api.deps import get_tool_service
from ops_portal.auth.dependencies import get_session
from ops_portal.auth.session import SessionContext
from ops_portal.domain.entities import BillingCycle, PortalModel, Tool, ToolStatus, VisibilityLevel
from ops_portal.services.tools import ALL_CATEGORIES, ToolService

router = APIRouter(prefix="/tools", tags=["Tools"])


class ToolCreate(PortalModel):
    name: str = Field(..., min_length=1)
    vendor: str = ""
    category: str = "Software"
    cost: float = Field(0.0, ge=0)
    currency: str = "USD"
    billing_cycle: BillingCycle = BillingCycle.MONTHLY
    renewal_date: str | None = None
    visibility_level: VisibilityLevel = VisibilityLevel.COMPANY_SHARED
    seats_total: int = Field(1, ge=0)
    status: ToolStatus = ToolStatus.ACTIVE
    notes: str = ""


@router.get("", response_model=list[Tool])
async def list_tools(
    search: str = Query("", description="Case-insensitive match on name or vendor"),
    category: str = Query(ALL_CATEGORIES),
    session: SessionContext = Depends(get_session),
    service: ToolService = Depends(get_tool_service),
) -> list[Tool]:
    return await service.list_tools(session, search=search, category=category)


@router.get("/categories", response_model=list[str])
async def list_categories(
    session: SessionContext = Depends(get_session),
    service: ToolService = Depends(get_tool_service),
) -> list[str]:
    return await service.categories(session)


@router.get("/{tool_id}", response_model=Tool)
async def get_tool(
    tool_id: str,
    session: SessionContext = Depends(get_session),
    service: ToolService = Depends(get_tool_service),
) -> Tool:
    return await service.get_tool(session, tool_id)


@router.post("", response_model=Tool, status_code=status.HTTP_201_CREATED)
async def create_tool(
    body: ToolCreate,
    session: SessionContext = Depends(get_session),
    service: ToolService = Depends(get_tool_service),
) -> Tool:
    return await service.create_tool(session, body.model_dump())
