"""
Workflow Engine
=============================================================================
CONCEPT: Every approval click follows the same seven steps

    1. who is acting?               session.require_principal()
                                    action outside this machine -> 409
    2. may their role do this?      rbac.require_permission()      -> 403
    3. did they cancel the note?    note is None -> "cancelled", nothing else
    4. what is the status NOW?      re-read the entity from the store
                                    unknown id -> 404, bad action -> 409
    5. write it                     status + approverId + notes, one call
    6. tell people                  audit entry + STATUS_UPDATE webhook
                                    (best effort: failures are logged only)
    7. show the result              reload the entity from the store

Steps 1-4 make no writes, so a denied, cancelled or invalid attempt leaves
the store untouched. If step 5 fails the error propagates and steps 6-7 do
not run: the approver sees the failure and the request is unchanged.

NOTES TRAIL:
  Each action appends one line to the entity's `notes`:

      [2026-10-19T09:12:44Z] approve by usr_admin: budget confirmed

  so the history of who decided what survives in the record itself, even on
  stores whose audit table is read-only.

CONCURRENCY:
  Two approvers acting on the same request are not fenced: the later write
  wins. Re-reading in step 4 means each decision is computed from the
  freshest status the store reports.
=============================================================================
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from ops_portal.adapters.base import DataAdapter
from ops_portal.auth.rbac import require_permission
from ops_portal.auth.session import SessionContext
from ops_portal.config import Settings
from ops_portal.domain.entities import LeaveRequest, ToolRequest, User, utc_now_iso
from ops_portal.errors import AuthorizationDenied, EntityNotFound, InvalidTransition, StoreError
from ops_portal.notifications.sink import NotificationEvent, NotificationPayload, NotificationSink, Party
from ops_portal.observability.logging import get_logger
from ops_portal.observability.metrics import record_notification, record_transition
from ops_portal.services.audit import record_audit
from ops_portal.workflow.states import (
    LEAVE_REQUEST_FLOW,
    TOOL_REQUEST_FLOW,
    TransitionTable,
    WorkflowAction,
    parse_action,
)

logger = get_logger(__name__)


def append_note(existing: str, timestamp: str, action: WorkflowAction, approver_id: str, note: str) -> str:
    line = f"[{timestamp}] {action.value} by {approver_id}"
    if note.strip():
        line = f"{line}: {note.strip()}"
    return f"{existing.rstrip()}\n{line}" if existing.strip() else line


@dataclass(frozen=True)
class _Machine:
    table: TransitionTable
    resource: str
    entity_type: str
    id_attr: str
    deep_link_path: str


_TOOL_REQUEST = _Machine(TOOL_REQUEST_FLOW, "tool_requests", "ToolRequest", "request_id", "/requests")
_LEAVE_REQUEST = _Machine(LEAVE_REQUEST_FLOW, "leave_requests", "LeaveRequest", "leave_id", "/hr")


@dataclass
class TransitionResult:
    """
    outcome is "applied" or "cancelled". For a cancelled attempt `entity`
    is None and no store call was made.
    """
    outcome: str
    action: WorkflowAction
    entity: ToolRequest | LeaveRequest | None = None
    previous_status: str | None = None

    @property
    def cancelled(self) -> bool:
        return self.outcome == "cancelled"


class WorkflowEngine:
    def __init__(self, adapter: DataAdapter, notifier: NotificationSink, settings: Settings):
        self.adapter = adapter
        self.notifier = notifier
        self.settings = settings

    async def act_on_tool_request(
        self,
        session: SessionContext,
        request_id: str,
        action: WorkflowAction | str,
        note: str | None,
    ) -> TransitionResult:
        return await self._act(
            _TOOL_REQUEST,
            session,
            request_id,
            action,
            note,
            load=self.adapter.list_tool_requests,
            write=self.adapter.update_tool_request_status,
        )

    async def act_on_leave_request(
        self,
        session: SessionContext,
        leave_id: str,
        action: WorkflowAction | str,
        note: str | None,
    ) -> TransitionResult:
        return await self._act(
            _LEAVE_REQUEST,
            session,
            leave_id,
            action,
            note,
            load=self.adapter.list_leave_requests,
            write=self.adapter.update_leave_request_status,
        )

    # =========================================================================
    # The seven steps
    # =========================================================================
    async def _act(
        self,
        machine: _Machine,
        session: SessionContext,
        entity_id: str,
        raw_action: WorkflowAction | str,
        note: str | None,
        load: Callable[[], Awaitable[list[Any]]],
        write: Callable[..., Awaitable[None]],
    ) -> TransitionResult:
        name = machine.table.name

        # Step 1-2
        principal = session.require_principal()
        action = parse_action(raw_action)
        if not machine.table.supports(action):
            record_transition(name, action.value, "invalid")
            raise InvalidTransition(
                f"A {name.replace('_', ' ')} has no '{action.value}' step."
            )
        try:
            require_permission(principal.role, machine.resource, action.value)
        except AuthorizationDenied:
            record_transition(name, action.value, "denied")
            raise

        # Step 3
        if note is None:
            record_transition(name, action.value, "cancelled")
            logger.info("transition_cancelled", machine=name, entity_id=entity_id,
                        action=action.value, approver_id=principal.user_id)
            return TransitionResult(outcome="cancelled", action=action)

        # Step 4
        current = await self._find(machine, load, entity_id)
        try:
            next_status = machine.table.next_status(current.status, action)
        except InvalidTransition:
            record_transition(name, action.value, "invalid")
            logger.info("transition_invalid", machine=name, entity_id=entity_id,
                        action=action.value, status=current.status.value)
            raise

        # Step 5
        timestamp = utc_now_iso()
        notes = append_note(current.notes, timestamp, action, principal.user_id, note)
        try:
            await write(entity_id, next_status, principal.user_id, notes)
        except StoreError:
            record_transition(name, action.value, "failed")
            logger.warning("transition_write_failed", machine=name, entity_id=entity_id,
                           action=action.value)
            raise

        record_transition(name, action.value, "applied")
        logger.info(
            "transition_applied",
            machine=name,
            entity_id=entity_id,
            action=action.value,
            previous_status=current.status.value,
            status=next_status.value,
            approver_id=principal.user_id,
        )

        # Step 6
        await record_audit(
            self.adapter,
            action=f"{name}_{action.value}",
            performed_by=principal.user_id,
            entity_type=machine.entity_type,
            entity_id=entity_id,
            details={"from": current.status.value, "to": next_status.value, "note": note},
        )
        updated = current.model_copy(
            update={"status": next_status, "approver_id": principal.user_id, "notes": notes}
        )
        try:
            await self._emit_status_update(machine, updated, principal, note, timestamp)
        except Exception:
            # The status is already written; the result stands
            record_notification(NotificationEvent.STATUS_UPDATE.value, "failed")
            logger.exception("status_notification_failed", machine=name, entity_id=entity_id,
                             action=action.value)

        # Step 7
        try:
            reloaded = await self._find(machine, load, entity_id)
        except (StoreError, EntityNotFound) as e:
            logger.warning("transition_reload_failed", machine=name, entity_id=entity_id, error=e.message)
            reloaded = updated

        return TransitionResult(
            outcome="applied",
            action=action,
            entity=reloaded,
            previous_status=current.status.value,
        )

    async def _find(self, machine: _Machine, load: Callable[[], Awaitable[list[Any]]], entity_id: str):
        for entity in await load():
            if getattr(entity, machine.id_attr) == entity_id:
                return entity
        raise EntityNotFound(f"No {machine.table.name.replace('_', ' ')} with id {entity_id}.")

    async def _emit_status_update(
        self,
        machine: _Machine,
        entity: ToolRequest | LeaveRequest,
        approver: User,
        note: str,
        timestamp: str,
    ) -> None:
        requester = await resolve_party(self.adapter, entity.user_id)
        fields = entity.to_store()
        fields["note"] = note
        payload = NotificationPayload(
            request_type=machine.table.name,
            event="status_changed",
            id=getattr(entity, machine.id_attr),
            requester=requester,
            fields=fields,
            status=entity.status.value,
            approver=Party.from_user(approver),
            timestamp=timestamp,
            deep_link=f"{self.settings.portal_base_url.rstrip('/')}{machine.deep_link_path}",
        )
        self.notifier.notify(NotificationEvent.STATUS_UPDATE, payload)


async def resolve_party(adapter: DataAdapter, user_id: str) -> Party:
    """Name and email for a user id; just the id when the store cannot say."""
    try:
        users = await adapter.list_users()
    except StoreError as e:
        logger.warning("requester_lookup_failed", user_id=user_id, error=e.message)
        return Party(user_id=user_id)
    for user in users:
        if user.user_id == user_id:
            return Party.from_user(user)
    return Party(user_id=user_id)
