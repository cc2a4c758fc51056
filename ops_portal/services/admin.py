"""Admin utilities: demo data reset and a test notification."""

from ops_portal.adapters.base import DataAdapter
from ops_portal.auth.rbac import require_permission
from ops_portal.auth.session import SessionContext
from ops_portal.config import Settings
from ops_portal.notifications.sink import NotificationEvent, NotificationPayload, NotificationSink, Party
from ops_portal.observability.logging import get_logger
from ops_portal.services.audit import record_audit

logger = get_logger(__name__)


class AdminService:
    def __init__(self, adapter: DataAdapter, notifier: NotificationSink, settings: Settings):
        self.adapter = adapter
        self.notifier = notifier
        self.settings = settings

    async def reset_demo_data(self, session: SessionContext) -> None:
        """Restore the demo dataset. StoreNotImplemented on real stores."""
        principal = session.require_principal()
        require_permission(principal.role, "admin", "reset_demo_data")

        await self.adapter.reset_demo_data()
        logger.warning("demo_data_reset", user_id=principal.user_id, adapter=self.adapter.kind)
        await record_audit(self.adapter, "demo_data_reset", principal.user_id, "System", self.adapter.kind)

    def send_test_notification(self, session: SessionContext) -> NotificationPayload:
        principal = session.require_principal()
        require_permission(principal.role, "admin", "test_notification")

        payload = NotificationPayload(
            request_type="test",
            event="test",
            id="test",
            requester=Party.from_user(principal),
            fields={"message": f"Test notification from {self.settings.app_name}"},
            status="test",
            deep_link=f"{self.settings.portal_base_url.rstrip('/')}/admin",
        )
        self.notifier.notify(NotificationEvent.FINANCE_EVENT, payload)
        logger.info("test_notification_sent", user_id=principal.user_id)
        return payload
