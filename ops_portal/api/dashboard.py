from fastapi import APIRouter, Depends

from ops_portal.api.deps import get_dashboard_service
from ops_portal.auth.dependencies import get_session
from ops_portal.auth.session import SessionContext
from ops_portal.services.dashboard import DashboardService, DashboardStats

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("", response_model=DashboardStats)
async def dashboard(
    session: SessionContext = Depends(get_session),
    service: DashboardService = Depends(get_dashboard_service),
) -> DashboardStats:
    """Headcount, active tools, pending requests, burn (finance roles only), birthdays."""
    return await service.stats(session)
