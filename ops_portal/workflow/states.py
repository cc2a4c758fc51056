"""
Approval State Machines
=============================================================================
CONCEPT: One table per machine

Each approval workflow is a finite state machine written down as data:
a mapping (current status, action) -> next status. Anything not in the
table is an invalid transition, whatever the role of the person trying.

TOOL REQUEST (initial: requested)

    requested  --approve-->       approved
    requested  --reject-->        rejected         (terminal)
    requested  --need_info-->     need_info
    need_info  --approve-->       approved
    need_info  --reject-->        rejected         (terminal)
    need_info  --need_info-->     need_info        (another round of questions)
    approved   --procure-->       procured
    procured   --grant_access-->  access_granted   (terminal)

    closed is terminal too. It only arrives from the store (set by hand);
    no action leads to it or away from it.

LEAVE REQUEST (initial: requested)

    requested  --approve|reject|need_info-->  approved | rejected | need_info
    need_info  --approve|reject|need_info-->  approved | rejected | need_info
    approved, rejected: terminal

`available_actions(status)` drives the buttons an approver sees: a row in
`procured` offers only "grant_access".

WHO may fire an action is a separate question, answered by the permission
matrix in ops_portal/auth/rbac.py.
=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Mapping, TypeVar

from ops_portal.domain.entities import LeaveStatus, RequestStatus
from ops_portal.errors import InvalidTransition, ValidationFailure


class WorkflowAction(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    NEED_INFO = "need_info"
    PROCURE = "procure"
    GRANT_ACCESS = "grant_access"


def parse_action(value: "WorkflowAction | str") -> WorkflowAction:
    if isinstance(value, WorkflowAction):
        return value
    try:
        return WorkflowAction(value.strip().lower().replace("-", "_"))
    except ValueError as e:
        raise ValidationFailure(f"Unknown action '{value}'.") from e


StatusT = TypeVar("StatusT", RequestStatus, LeaveStatus)


@dataclass(frozen=True)
class TransitionTable(Generic[StatusT]):
    name: str
    initial: StatusT
    transitions: Mapping[tuple[StatusT, WorkflowAction], StatusT]
    terminal: frozenset = field(default_factory=frozenset)

    def next_status(self, current: StatusT, action: WorkflowAction) -> StatusT:
        """The status `action` leads to from `current`; InvalidTransition if none."""
        try:
            return self.transitions[(current, action)]
        except KeyError:
            raise InvalidTransition(
                f"Cannot {action.value.replace('_', ' ')} a {self.name.replace('_', ' ')} "
                f"that is '{current.value}'."
            ) from None

    def supports(self, action: WorkflowAction) -> bool:
        return any(step == action for (_, step) in self.transitions)

    def available_actions(self, status: StatusT) -> list[WorkflowAction]:
        return [action for (source, action) in self.transitions if source == status]

    def is_terminal(self, status: StatusT) -> bool:
        return status in self.terminal


TOOL_REQUEST_FLOW: TransitionTable[RequestStatus] = TransitionTable(
    name="tool_request",
    initial=RequestStatus.REQUESTED,
    transitions={
        (RequestStatus.REQUESTED, WorkflowAction.APPROVE): RequestStatus.APPROVED,
        (RequestStatus.REQUESTED, WorkflowAction.REJECT): RequestStatus.REJECTED,
        (RequestStatus.REQUESTED, WorkflowAction.NEED_INFO): RequestStatus.NEED_INFO,
        (RequestStatus.NEED_INFO, WorkflowAction.APPROVE): RequestStatus.APPROVED,
        (RequestStatus.NEED_INFO, WorkflowAction.REJECT): RequestStatus.REJECTED,
        (RequestStatus.NEED_INFO, WorkflowAction.NEED_INFO): RequestStatus.NEED_INFO,
        (RequestStatus.APPROVED, WorkflowAction.PROCURE): RequestStatus.PROCURED,
        (RequestStatus.PROCURED, WorkflowAction.GRANT_ACCESS): RequestStatus.ACCESS_GRANTED,
    },
    terminal=frozenset({RequestStatus.REJECTED, RequestStatus.ACCESS_GRANTED, RequestStatus.CLOSED}),
)


LEAVE_REQUEST_FLOW: TransitionTable[LeaveStatus] = TransitionTable(
    name="leave_request",
    initial=LeaveStatus.REQUESTED,
    transitions={
        (LeaveStatus.REQUESTED, WorkflowAction.APPROVE): LeaveStatus.APPROVED,
        (LeaveStatus.REQUESTED, WorkflowAction.REJECT): LeaveStatus.REJECTED,
        (LeaveStatus.REQUESTED, WorkflowAction.NEED_INFO): LeaveStatus.NEED_INFO,
        (LeaveStatus.NEED_INFO, WorkflowAction.APPROVE): LeaveStatus.APPROVED,
        (LeaveStatus.NEED_INFO, WorkflowAction.REJECT): LeaveStatus.REJECTED,
        (LeaveStatus.NEED_INFO, WorkflowAction.NEED_INFO): LeaveStatus.NEED_INFO,
    },
    terminal=frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED}),
)

# Statuses an approver still has to act on
PENDING_TOOL_STATUSES = frozenset({RequestStatus.REQUESTED, RequestStatus.NEED_INFO})
PENDING_LEAVE_STATUSES = frozenset({LeaveStatus.REQUESTED, LeaveStatus.NEED_INFO})
