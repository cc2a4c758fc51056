"""
Admin Endpoints
=============================================================================
  GET   /admin/users                  every user (credentials never returned)
  POST  /admin/users/invite           create user + employee; returns the
                                      temporary password ONCE
  PATCH /admin/users/{id}             {role} and/or {status: active|inactive}
  POST  /admin/users/{id}/toggle-status
  GET   /admin/audit-logs?limit=
  POST  /admin/reset-demo-data        demo stores only (501 elsewhere)
  POST  /admin/test-notification      sends a FINANCE_EVENT test payload
=============================================================================
"""

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field

from ops_portal.api.auth import PublicUser
from ops_portal.api.deps import get_admin_service, get_people_service
from ops_portal.auth.dependencies import get_session
from ops_portal.auth.session import SessionContext
from ops_portal.domain.entities import AuditLog, Employee, EmploymentType, PortalModel, Role, UserStatus
from ops_portal.notifications.sink import NotificationPayload
from ops_portal.services.admin import AdminService
from ops_portal.services.people import PeopleService

router = APIRouter(prefix="/admin", tags=["Admin"])


class InviteRequest(PortalModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    role: Role = Role.EMPLOYEE
    department: str = ""
    joining_date: str | None = None
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    work_location: str = ""
    timezone: str = "UTC"
    birthday: str | None = None


class InviteResponse(PortalModel):
    user: PublicUser
    employee: Employee
    temporary_password: str


class UserUpdate(PortalModel):
    role: Role | None = None
    status: UserStatus | None = None


@router.get("/users", response_model=list[PublicUser])
async def list_users(
    session: SessionContext = Depends(get_session),
    service: PeopleService = Depends(get_people_service),
) -> list[PublicUser]:
    return [PublicUser.from_user(user) for user in await service.list_users(session)]


@router.post("/users/invite", response_model=InviteResponse, status_code=status.HTTP_201_CREATED)
async def invite_user(
    body: InviteRequest,
    session: SessionContext = Depends(get_session),
    service: PeopleService = Depends(get_people_service),
) -> InviteResponse:
    employee_fields = body.model_dump(exclude={"name", "email", "role"})
    result = await service.invite_user(session, body.name, body.email, body.role, employee_fields)
    return InviteResponse(
        user=PublicUser.from_user(result.user),
        employee=result.employee,
        temporary_password=result.temporary_password,
    )


@router.patch("/users/{user_id}", response_model=PublicUser)
async def update_user(
    user_id: str,
    body: UserUpdate,
    session: SessionContext = Depends(get_session),
    service: PeopleService = Depends(get_people_service),
) -> PublicUser:
    user = await service.update_user(session, user_id, role=body.role, status=body.status)
    return PublicUser.from_user(user)


@router.post("/users/{user_id}/toggle-status", response_model=PublicUser)
async def toggle_user_status(
    user_id: str,
    session: SessionContext = Depends(get_session),
    service: PeopleService = Depends(get_people_service),
) -> PublicUser:
    return PublicUser.from_user(await service.toggle_user_status(session, user_id))


@router.get("/audit-logs", response_model=list[AuditLog])
async def audit_logs(
    limit: int | None = Query(None, ge=1, le=1000),
    session: SessionContext = Depends(get_session),
    service: PeopleService = Depends(get_people_service),
) -> list[AuditLog]:
    return await service.list_audit_logs(session, limit)


@router.post("/reset-demo-data")
async def reset_demo_data(
    session: SessionContext = Depends(get_session),
    service: AdminService = Depends(get_admin_service),
):
    await service.reset_demo_data(session)
    return {"status": "reset"}


@router.post("/test-notification", response_model=NotificationPayload)
async def test_notification(
    session: SessionContext = Depends(get_session),
    service: AdminService = Depends(get_admin_service),
) -> NotificationPayload:
    return service.send_test_notification(session)
