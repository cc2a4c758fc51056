"""
Notification Sink (outbound webhooks)
=============================================================================
CONCEPT: Fire-and-forget after the authoritative write

When a request is submitted or changes status, chat-ops automation (n8n
workflows posting to Slack) wants to hear about it. The portal emits one
JSON payload per event to a per-event webhook URL:

    TOOL_REQUEST    a tool request was submitted
    LEAVE_REQUEST   a leave request was submitted
    STATUS_UPDATE   an approver acted on either kind of request
    FINANCE_EVENT   a ledger row was logged (or an admin sent a test)

RULES:
  - notify() returns immediately; delivery happens in a background task.
  - Delivery is BEST EFFORT: failures are logged and counted in
    portal_notifications_total{outcome="failed"}, never raised. The
    transition that triggered the event has already been written and its
    result does not depend on the webhook.
  - Background tasks are kept in a set until they finish (the event loop
    only holds weak references to tasks).

Two sinks:
  WebhookNotifier   POSTs with httpx (notifications_enabled=true)
  LoggingNotifier   only logs the payload (default; local/dev)
=============================================================================
"""

import asyncio
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

import httpx
from pydantic import Field

from ops_portal.config import Settings
from ops_portal.domain.entities import PortalModel, User, utc_now_iso
from ops_portal.observability.logging import get_logger
from ops_portal.observability.metrics import record_notification

logger = get_logger(__name__)


class NotificationEvent(str, Enum):
    TOOL_REQUEST = "TOOL_REQUEST"
    LEAVE_REQUEST = "LEAVE_REQUEST"
    STATUS_UPDATE = "STATUS_UPDATE"
    FINANCE_EVENT = "FINANCE_EVENT"


class Party(PortalModel):
    user_id: str
    name: str = ""
    email: str = ""

    @classmethod
    def from_user(cls, user: User) -> "Party":
        return cls(user_id=user.user_id, name=user.name, email=user.email)


class NotificationPayload(PortalModel):
    request_type: str
    event: str
    id: str
    requester: Party
    fields: dict[str, Any] = Field(default_factory=dict)
    status: str
    approver: Party | None = None
    timestamp: str = Field(default_factory=utc_now_iso)
    deep_link: str = ""


class NotificationSink(ABC):
    @abstractmethod
    def notify(self, event_type: NotificationEvent, payload: NotificationPayload) -> None:
        """Hand off a payload. Must return without waiting and must not raise."""

    async def drain(self) -> None:
        """Wait for in-flight deliveries (shutdown, tests)."""
        return None

    async def aclose(self) -> None:
        await self.drain()


class LoggingNotifier(NotificationSink):
    def notify(self, event_type: NotificationEvent, payload: NotificationPayload) -> None:
        logger.info(
            "notification_emitted",
            notification=event_type.value,
            entity_id=payload.id,
            status=payload.status,
            payload=payload.to_store(),
        )
        record_notification(event_type.value, "logged")


class WebhookNotifier(NotificationSink):
    def __init__(
        self,
        urls: dict[NotificationEvent, str],
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.urls = {event: url for event, url in urls.items() if url}
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._tasks: set[asyncio.Task] = set()

    def notify(self, event_type: NotificationEvent, payload: NotificationPayload) -> None:
        url = self.urls.get(event_type)
        if url is None:
            logger.debug("notification_skipped_no_url", notification=event_type.value)
            record_notification(event_type.value, "skipped")
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("notification_dropped_no_event_loop", notification=event_type.value)
            record_notification(event_type.value, "dropped")
            return

        task = loop.create_task(self._deliver(event_type, url, payload.to_store()))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, event_type: NotificationEvent, url: str, body: dict[str, Any]) -> None:
        try:
            response = await self._client.post(url, json=body)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(
                "notification_delivery_failed",
                notification=event_type.value,
                entity_id=body.get("id"),
                error=str(e),
            )
            record_notification(event_type.value, "failed")
            return
        record_notification(event_type.value, "delivered")

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def aclose(self) -> None:
        await self.drain()
        await self._client.aclose()


def build_notifier(settings: Settings) -> NotificationSink:
    if not settings.notifications_enabled:
        return LoggingNotifier()
    return WebhookNotifier(
        urls={
            NotificationEvent.TOOL_REQUEST: settings.webhook_tool_request_url,
            NotificationEvent.LEAVE_REQUEST: settings.webhook_leave_request_url,
            NotificationEvent.STATUS_UPDATE: settings.webhook_status_update_url,
            NotificationEvent.FINANCE_EVENT: settings.webhook_finance_event_url,
        },
        timeout=settings.webhook_timeout_seconds,
    )
