import httpx
import structlog
from fastapi import Depends

from conftest import auth_headers
from ops_portal.auth.dependencies import get_session
from ops_portal.auth.session import SessionContext
from ops_portal.observability.logging import bind_request_user


def test_bind_request_user_replaces_context():
    structlog.contextvars.bind_contextvars(request_path="/old")

    bind_request_user("usr_ops")
    assert structlog.contextvars.get_contextvars() == {"user_id": "usr_ops"}

    bind_request_user(None)
    assert structlog.contextvars.get_contextvars() == {}


async def test_session_dependency_binds_principal(app):
    captured = {}

    @app.get("/_context")
    async def context_probe(session: SessionContext = Depends(get_session)):
        captured.update(structlog.contextvars.get_contextvars())
        return {}

    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://portal.test") as c:
        await c.get("/_context", headers=auth_headers("usr_finance"))

    assert captured == {"user_id": "usr_finance"}
