"""
FastAPI Authentication Dependencies
=============================================================================
CONCEPT: One SessionContext per HTTP request

    HTTP Request
      -> HTTPBearer (extracts the token, if any)
        -> get_session (SessionContext.restore: verify JWT, reload user)
          -> get_principal (AuthenticationFailure -> 401 when signed out)
            -> route handler -> service (permission checks, 403)

The bearer scheme does not fail on its own (auto_error=False): routes such
as /navigation/resolve still answer for signed-out visitors, and a missing
token surfaces as our own AuthenticationFailure so every 401 has the same
JSON body.

Errors raised here are PortalErrors; ops_portal/main.py turns them into
HTTP responses.

Tests override `get_adapter` or build the app with their own adapter:
    app = create_app(settings, adapter=InMemoryAdapter())
=============================================================================
"""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ops_portal.adapters.base import DataAdapter
from ops_portal.auth.session import SessionContext
from ops_portal.config import Settings
from ops_portal.domain.entities import User
from ops_portal.notifications.sink import NotificationSink
from ops_portal.observability.logging import bind_request_user

bearer_scheme = HTTPBearer(
    auto_error=False,
    description="Session token from POST /auth/login or POST /auth/delegated",
)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_adapter(request: Request) -> DataAdapter:
    return request.app.state.adapter


def get_notifier(request: Request) -> NotificationSink:
    return request.app.state.notifier


async def get_session(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    adapter: DataAdapter = Depends(get_adapter),
    settings: Settings = Depends(get_settings),
) -> SessionContext:
    """A SessionContext restored from the bearer token; unauthenticated if none or invalid."""
    session = SessionContext(adapter, settings)
    if credentials is not None:
        await session.restore(credentials.credentials)
    bind_request_user(session.principal.user_id if session.principal else None)
    return session


async def get_principal(session: SessionContext = Depends(get_session)) -> User:
    return session.require_principal()
