"""Shared fixtures: an in-memory store seeded with the demo dataset, a
notifier that records instead of sending, and signed-in sessions per role."""

import httpx
import pytest

from ops_portal.adapters.demo_data import build_demo_dataset
from ops_portal.adapters.memory import InMemoryAdapter
from ops_portal.auth.jwt import create_session_token
from ops_portal.auth.session import SessionContext
from ops_portal.config import Settings
from ops_portal.domain.entities import User
from ops_portal.notifications.sink import NotificationEvent, NotificationPayload, NotificationSink

DEMO_USERS: dict[str, User] = {user.user_id: user for user in build_demo_dataset().users}


class RecordingNotifier(NotificationSink):
    def __init__(self):
        self.sent: list[tuple[NotificationEvent, NotificationPayload]] = []

    def notify(self, event_type: NotificationEvent, payload: NotificationPayload) -> None:
        self.sent.append((event_type, payload))

    def events(self) -> list[NotificationEvent]:
        return [event for event, _ in self.sent]


@pytest.fixture
def settings():
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        demo_mode=True,
        portal_base_url="https://portal.test",
        delegated_login_allowed_domains=["creooglobal.com", "creoo.co"],
    )


@pytest.fixture
def adapter():
    return InMemoryAdapter()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def session_for(adapter):
    """Factory: a SessionContext signed in as the given demo user id."""

    async def _make(user_id: str) -> SessionContext:
        users = {user.user_id: user for user in await adapter.list_users()}
        session = SessionContext(adapter)
        session.establish(users[user_id])
        return session

    return _make


def auth_headers(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_session_token(DEMO_USERS[user_id])}"}


@pytest.fixture
def app(settings, adapter, notifier):
    from ops_portal.main import create_app

    return create_app(settings=settings, adapter=adapter, notifier=notifier)


@pytest.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://portal.test") as c:
        yield c
