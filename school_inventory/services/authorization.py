"""Who may move an item request to which status.

The full policy is the two tables below plus the department and
self-approval checks in ``can_transition``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from school_inventory.exceptions import AuthorizationError, StateConflictError
from school_inventory.models.enums import RequestStatus, Role

if TYPE_CHECKING:
    from school_inventory.models.request import ItemRequest
    from school_inventory.schemas.auth import AuthContext

_S = RequestStatus

_CONTROLLER_TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    _S.PENDING: frozenset({_S.APPROVED, _S.REJECTED}),
    _S.DEPARTMENT_APPROVED: frozenset({_S.APPROVED, _S.REJECTED, _S.FULFILLED}),
    _S.APPROVED: frozenset({_S.FULFILLED}),
}

# (current status, actor role) -> statuses that role may move the request to.
ROLE_TRANSITIONS: dict[tuple[RequestStatus, Role], frozenset[RequestStatus]] = {
    **{(status, Role.ADMIN): targets for status, targets in _CONTROLLER_TRANSITIONS.items()},
    **{(status, Role.STOCK_MANAGER): targets for status, targets in _CONTROLLER_TRANSITIONS.items()},
    (_S.PENDING, Role.DEPARTMENT_HEAD): frozenset({_S.DEPARTMENT_APPROVED, _S.REJECTED}),
    (_S.DEPARTMENT_APPROVED, Role.DEPARTMENT_HEAD): frozenset({_S.REJECTED, _S.FULFILLED}),
    (_S.APPROVED, Role.DEPARTMENT_HEAD): frozenset({_S.FULFILLED}),
}

# current status -> statuses the requester may move their own request to, whatever their role.
REQUESTER_TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    _S.PENDING: frozenset({_S.CANCELLED}),
    _S.DEPARTMENT_APPROVED: frozenset({_S.CANCELLED}),
}


def _build_status_graph() -> dict[RequestStatus, frozenset[RequestStatus]]:
    graph: dict[RequestStatus, set[RequestStatus]] = {}
    for (status, _role), targets in ROLE_TRANSITIONS.items():
        graph.setdefault(status, set()).update(targets)
    for status, targets in REQUESTER_TRANSITIONS.items():
        graph.setdefault(status, set()).update(targets)
    return {status: frozenset(targets) for status, targets in graph.items()}


# Every edge any actor can take; a target outside it is a state conflict, not a permission problem.
STATUS_GRAPH = _build_status_graph()

_SELF_REVIEW_BLOCKED = frozenset({_S.DEPARTMENT_APPROVED, _S.REJECTED})


@dataclass(frozen=True)
class Decision:
    """Outcome of a policy check. ``code`` and ``reason`` are set when denied."""

    allowed: bool
    code: str | None = None
    reason: str | None = None

    def raise_if_denied(self) -> None:
        if self.allowed:
            return
        if self.code == "forbidden":
            raise AuthorizationError(self.reason or "Forbidden")
        raise StateConflictError(self.reason or "Transition not allowed", code=self.code)


ALLOWED = Decision(allowed=True)


def _deny(code: str, reason: str) -> Decision:
    return Decision(allowed=False, code=code, reason=reason)


def can_transition(auth: AuthContext, request: ItemRequest, target: RequestStatus) -> Decision:
    """Decide whether ``auth`` may move ``request`` to ``target``. Pure; performs no I/O."""
    current = RequestStatus(request.status)

    if current.is_terminal:
        return _deny("already_finalized", f"Request is already {current.value}")
    if target not in STATUS_GRAPH.get(current, frozenset()):
        return _deny("invalid_transition", f"Cannot move a {current.value} request to {target.value}")

    is_requester = auth.user_id == request.requester_id
    if target in REQUESTER_TRANSITIONS.get(current, frozenset()):
        if is_requester:
            return ALLOWED
        return _deny("forbidden", "Only the requester can cancel this request")

    if target not in ROLE_TRANSITIONS.get((current, auth.role), frozenset()):
        return _deny("forbidden", f"Role {auth.role.value} cannot move a {current.value} request to {target.value}")

    if auth.role == Role.DEPARTMENT_HEAD:
        if is_requester and target in _SELF_REVIEW_BLOCKED:
            return _deny("forbidden", "You cannot approve or reject your own requests")
        if auth.department_id is None or auth.department_id != request.requester_department_id:
            return _deny("forbidden", "Request does not belong to your department")

    return ALLOWED


def can_view(auth: AuthContext, request: ItemRequest) -> bool:
    """Whether ``auth`` may read a single request."""
    if auth.is_stock_controller or auth.user_id == request.requester_id:
        return True
    return (
        auth.role == Role.DEPARTMENT_HEAD
        and auth.department_id is not None
        and auth.department_id == request.requester_department_id
    )
