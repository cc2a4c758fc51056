from fastapi import APIRouter, Depends

from ops_portal.api.deps import get_people_service
from ops_portal.auth.dependencies import get_session
from ops_portal.auth.session import SessionContext
from ops_portal.domain.entities import Employee, PortalModel, Role
from ops_portal.services.people import PeopleService

router = APIRouter(prefix="/employees", tags=["Employees"])


class DirectoryItem(PortalModel):
    employee: Employee
    name: str
    email: str
    role: Role | None = None


@router.get("", response_model=list[DirectoryItem])
async def list_employees(
    session: SessionContext = Depends(get_session),
    service: PeopleService = Depends(get_people_service),
) -> list[DirectoryItem]:
    """Employee directory; rows whose user is missing show as "Unknown"."""
    entries = await service.directory(session)
    return [
        DirectoryItem(employee=entry.employee, name=entry.name, email=entry.email, role=entry.role)
        for entry in entries
    ]
