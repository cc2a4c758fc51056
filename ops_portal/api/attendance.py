"""
Attendance Endpoints
=============================================================================
  GET /attendance?start=YYYY-MM-DD&end=YYYY-MM-DD
      Admin / Ops/HR see everyone, others only their own days.
  PUT /attendance
      Log one day (insert or replace the (date, user) row). `userId`
      defaults to the caller; logging for someone else needs update_all.
=============================================================================
"""

from fastapi import APIRouter, Depends, Query

from ops_portal.api.deps import get_people_service
from ops_portal.auth.dependencies import get_session
from ops_portal.auth.session import SessionContext
from ops_portal.domain.entities import Attendance, AttendanceStatus, PortalModel
from ops_portal.services.people import PeopleService

router = APIRouter(prefix="/attendance", tags=["Attendance"])


class AttendanceEntry(PortalModel):
    date: str
    status: AttendanceStatus
    user_id: str | None = None
    location: str = ""
    check_in: str = ""
    check_out: str | None = None
    notes: str = ""


@router.get("", response_model=list[Attendance])
async def list_attendance(
    start: str = Query(..., description="YYYY-MM-DD, inclusive"),
    end: str = Query(..., description="YYYY-MM-DD, inclusive"),
    session: SessionContext = Depends(get_session),
    service: PeopleService = Depends(get_people_service),
) -> list[Attendance]:
    return await service.list_attendance(session, start, end)


@router.put("", response_model=Attendance)
async def record_attendance(
    body: AttendanceEntry,
    session: SessionContext = Depends(get_session),
    service: PeopleService = Depends(get_people_service),
) -> Attendance:
    return await service.record_attendance(session, **body.model_dump())
