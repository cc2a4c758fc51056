"""Navigation menu and route gate for API clients (the SPA asks before rendering a view)."""

from fastapi import APIRouter, Depends, Query

from ops_portal.api.auth import NavEntry
from ops_portal.auth.dependencies import get_principal, get_session
from ops_portal.auth.navigation import navigation_items, resolve_navigation
from ops_portal.auth.session import SessionContext
from ops_portal.domain.entities import PortalModel, User

router = APIRouter(prefix="/navigation", tags=["Navigation"])


class NavigationResponse(PortalModel):
    requested: str
    path: str
    redirected: bool


@router.get("", response_model=list[NavEntry])
async def menu(user: User = Depends(get_principal)) -> list[NavEntry]:
    return [NavEntry(name=item.name, path=item.path) for item in navigation_items(user.role)]


@router.get("/resolve", response_model=NavigationResponse)
async def resolve(
    path: str = Query(..., description="Route the client wants to show, e.g. /finance"),
    session: SessionContext = Depends(get_session),
) -> NavigationResponse:
    """Where a visit to `path` lands. Answers signed-out visitors too (with /login)."""
    decision = resolve_navigation(session.principal, path)
    return NavigationResponse(requested=decision.requested, path=decision.path, redirected=decision.redirected)
