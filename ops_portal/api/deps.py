"""Service providers for route handlers, built from app.state per request."""

from fastapi import Depends, Request

from ops_portal.adapters.base import DataAdapter
from ops_portal.auth.delegated import DelegatedTokenVerifier
from ops_portal.auth.dependencies import get_adapter, get_notifier, get_settings
from ops_portal.auth.identity import IdentityService
from ops_portal.config import Settings
from ops_portal.notifications.sink import NotificationSink
from ops_portal.services.admin import AdminService
from ops_portal.services.dashboard import DashboardService
from ops_portal.services.finance import FinanceService
from ops_portal.services.people import PeopleService
from ops_portal.services.requests import RequestService
from ops_portal.services.tools import ToolService
from ops_portal.workflow.engine import WorkflowEngine


def get_identity(
    adapter: DataAdapter = Depends(get_adapter),
    settings: Settings = Depends(get_settings),
) -> IdentityService:
    return IdentityService(adapter, settings)


def get_verifier(request: Request) -> DelegatedTokenVerifier:
    return request.app.state.verifier


def get_workflow(
    adapter: DataAdapter = Depends(get_adapter),
    notifier: NotificationSink = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> WorkflowEngine:
    return WorkflowEngine(adapter, notifier, settings)


def get_request_service(
    adapter: DataAdapter = Depends(get_adapter),
    notifier: NotificationSink = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> RequestService:
    return RequestService(adapter, notifier, settings)


def get_tool_service(adapter: DataAdapter = Depends(get_adapter)) -> ToolService:
    return ToolService(adapter)


def get_people_service(
    adapter: DataAdapter = Depends(get_adapter),
    settings: Settings = Depends(get_settings),
) -> PeopleService:
    return PeopleService(adapter, settings)


def get_finance_service(
    adapter: DataAdapter = Depends(get_adapter),
    notifier: NotificationSink = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> FinanceService:
    return FinanceService(adapter, notifier, settings)


def get_dashboard_service(adapter: DataAdapter = Depends(get_adapter)) -> DashboardService:
    return DashboardService(adapter)


def get_admin_service(
    adapter: DataAdapter = Depends(get_adapter),
    notifier: NotificationSink = Depends(get_notifier),
    settings: Settings = Depends(get_settings),
) -> AdminService:
    return AdminService(adapter, notifier, settings)
