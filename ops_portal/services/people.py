"""
People Service: directory, user administration, attendance
=============================================================================
DIRECTORY
  Employees joined to users by userId. An employee row whose user is gone
  (or never existed) still shows up, as "Unknown", so HR sees the orphan
  instead of silently losing a person.

INVITES (Admin)
  1. reject the email if any user already has it (case-insensitive)
  2. generate a temporary password with `secrets`
  3. create the user with status `active_temp_password` (password hashed)
  4. create the matching employee record
  The plaintext temporary password is returned ONCE to the inviting admin
  and never stored.

ATTENDANCE
  Everyone may view and log their own days; Admin and Ops/HR may view and
  edit everyone's. One row per (date, user).
=============================================================================
"""

import secrets
import string
from dataclasses import dataclass
from typing import Any

from ops_portal.adapters.base import DataAdapter
from ops_portal.auth.identity import hash_password
from ops_portal.auth.rbac import check_permission, require_permission, scope_rows
from ops_portal.auth.session import SessionContext
from ops_portal.config import Settings
from ops_portal.domain.entities import (
    Attendance,
    AttendanceStatus,
    AuditLog,
    Employee,
    Role,
    User,
    UserStatus,
    normalize_email,
)
from ops_portal.errors import AuthorizationDenied, EntityNotFound, ValidationFailure
from ops_portal.observability.logging import get_logger
from ops_portal.services.audit import record_audit
from ops_portal.services.requests import parse_iso_date

logger = get_logger(__name__)

UNKNOWN_NAME = "Unknown"
_PASSWORD_ALPHABET = string.ascii_letters + string.digits


def generate_temporary_password(length: int) -> str:
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


@dataclass
class DirectoryEntry:
    employee: Employee
    name: str
    email: str
    role: Role | None


@dataclass
class InviteResult:
    user: User
    employee: Employee
    temporary_password: str


class PeopleService:
    def __init__(self, adapter: DataAdapter, settings: Settings):
        self.adapter = adapter
        self.settings = settings

    # =========================================================================
    # Directory
    # =========================================================================
    async def directory(self, session: SessionContext) -> list[DirectoryEntry]:
        principal = session.require_principal()
        require_permission(principal.role, "employees", "view")

        employees = await self.adapter.list_employees()
        users = {user.user_id: user for user in await self.adapter.list_users()}

        entries = []
        for employee in employees:
            user = users.get(employee.user_id) if employee.user_id else None
            entries.append(
                DirectoryEntry(
                    employee=employee,
                    name=user.name if user else UNKNOWN_NAME,
                    email=user.email if user else "",
                    role=user.role if user else None,
                )
            )
        return sorted(entries, key=lambda entry: entry.name.lower())

    # =========================================================================
    # User administration (Admin)
    # =========================================================================
    async def list_users(self, session: SessionContext) -> list[User]:
        principal = session.require_principal()
        require_permission(principal.role, "users", "view")
        return sorted(await self.adapter.list_users(), key=lambda user: user.name.lower())

    async def invite_user(
        self,
        session: SessionContext,
        name: str,
        email: str,
        role: Role = Role.EMPLOYEE,
        employee_fields: dict[str, Any] | None = None,
    ) -> InviteResult:
        principal = session.require_principal()
        require_permission(principal.role, "users", "invite")

        email = normalize_email(email)
        if not name.strip():
            raise ValidationFailure("Name is required.")
        if "@" not in email or email.startswith("@") or email.endswith("@"):
            raise ValidationFailure("A valid email address is required.")
        if await self.adapter.get_user_by_email(email) is not None:
            raise ValidationFailure(f"A user with email {email} already exists.")

        temporary_password = generate_temporary_password(self.settings.temp_password_length)
        user = await self.adapter.create_user(
            {
                "name": name.strip(),
                "email": email,
                "role": Role(role),
                "password_hash": hash_password(temporary_password),
                "status": UserStatus.ACTIVE_TEMP_PASSWORD,
            }
        )
        employee = await self.adapter.create_employee({**(employee_fields or {}), "user_id": user.user_id})

        logger.info("user_invited", user_id=user.user_id, role=user.role.value, invited_by=principal.user_id)
        await record_audit(self.adapter, "user_invited", principal.user_id, "User", user.user_id,
                           {"email": user.email, "role": user.role.value})
        return InviteResult(user=user, employee=employee, temporary_password=temporary_password)

    async def update_user(
        self,
        session: SessionContext,
        user_id: str,
        role: Role | None = None,
        status: UserStatus | None = None,
    ) -> User:
        """Change a user's role and/or flip them between active and inactive."""
        principal = session.require_principal()
        require_permission(principal.role, "users", "update")

        changes: dict[str, Any] = {}
        if role is not None:
            changes["role"] = Role(role)
        if status is not None:
            if UserStatus(status) not in (UserStatus.ACTIVE, UserStatus.INACTIVE):
                raise ValidationFailure("Status can only be set to active or inactive.")
            changes["status"] = UserStatus(status)
        if not changes:
            raise ValidationFailure("Nothing to update.")

        await self.adapter.update_user(user_id, changes)
        logger.info("user_updated", user_id=user_id, updated_by=principal.user_id,
                    changes={key: value.value for key, value in changes.items()})
        await record_audit(self.adapter, "user_updated", principal.user_id, "User", user_id,
                           {key: value.value for key, value in changes.items()})
        return await self._get_user(user_id)

    async def toggle_user_status(self, session: SessionContext, user_id: str) -> User:
        user = await self._get_user(user_id)
        new_status = UserStatus.INACTIVE if user.status != UserStatus.INACTIVE else UserStatus.ACTIVE
        return await self.update_user(session, user_id, status=new_status)

    async def _get_user(self, user_id: str) -> User:
        for user in await self.adapter.list_users():
            if user.user_id == user_id:
                return user
        raise EntityNotFound(f"No user with id {user_id}.")

    async def list_audit_logs(self, session: SessionContext, limit: int | None = None) -> list[AuditLog]:
        principal = session.require_principal()
        require_permission(principal.role, "audit_logs", "view")
        logs = sorted(await self.adapter.list_audit_logs(), key=lambda log: log.timestamp, reverse=True)
        return logs[:limit] if limit else logs

    # =========================================================================
    # Attendance
    # =========================================================================
    async def list_attendance(self, session: SessionContext, start: str, end: str) -> list[Attendance]:
        principal = session.require_principal()
        if parse_iso_date(start, "Start date") > parse_iso_date(end, "End date"):
            raise ValidationFailure("Start date must be on or before the end date.")
        rows = await self.adapter.list_attendance(start, end)
        rows = scope_rows(principal.role, principal.user_id, "attendance", rows)
        return sorted(rows, key=lambda row: (row.date, row.user_id))

    async def record_attendance(
        self,
        session: SessionContext,
        date: str,
        status: AttendanceStatus,
        user_id: str | None = None,
        location: str = "",
        check_in: str = "",
        check_out: str | None = None,
        notes: str = "",
    ) -> Attendance:
        principal = session.require_principal()
        user_id = user_id or principal.user_id
        action = "update_own" if user_id == principal.user_id else "update_all"
        if not check_permission(principal.role, "attendance", action):
            raise AuthorizationDenied("You can only log your own attendance.")

        entry = Attendance(
            date=parse_iso_date(date, "Date").isoformat(),
            user_id=user_id,
            status=AttendanceStatus(status),
            location=location,
            check_in=check_in,
            check_out=check_out,
            notes=notes,
        )
        saved = await self.adapter.upsert_attendance(entry)
        logger.info("attendance_recorded", user_id=user_id, date=saved.date, status=saved.status.value,
                    recorded_by=principal.user_id)
        return saved
