"""Tests for the transition policy: role table, requester rules, self-review and department scoping."""

from __future__ import annotations

import uuid

import pytest

from school_inventory.exceptions import AuthorizationError, StateConflictError
from school_inventory.models.enums import TERMINAL_STATUSES, RequestStatus, Role
from school_inventory.models.request import ItemRequest
from school_inventory.schemas.auth import AuthContext
from school_inventory.services.authorization import (
    REQUESTER_TRANSITIONS,
    ROLE_TRANSITIONS,
    STATUS_GRAPH,
    can_transition,
    can_view,
)

SCIENCE = uuid.uuid4()
ARTS = uuid.uuid4()
REQUESTER_ID = uuid.uuid4()


def _request(status: RequestStatus = RequestStatus.PENDING, department_id: uuid.UUID | None = SCIENCE) -> ItemRequest:
    return ItemRequest(
        item_id=uuid.uuid4(),
        item_name="Stapler",
        requested_quantity=3,
        requester_id=REQUESTER_ID,
        requester_name="Sam Staff",
        requester_department_id=department_id,
        requester_department_name="Science",
        status=status.value,
    )


def _actor(role: Role, user_id: uuid.UUID | None = None, department_id: uuid.UUID | None = SCIENCE) -> AuthContext:
    return AuthContext(
        user_id=user_id or uuid.uuid4(),
        full_name=f"{role.value} User",
        role=role,
        department_id=department_id,
    )


# ---------------------------------------------------------------------------
# Table shape
# ---------------------------------------------------------------------------


def test_status_graph_has_no_edges_out_of_terminal_states() -> None:
    for status in TERMINAL_STATUSES:
        assert status not in STATUS_GRAPH


def test_status_graph_never_targets_pending() -> None:
    for targets in STATUS_GRAPH.values():
        assert RequestStatus.PENDING not in targets


def test_status_graph_edges() -> None:
    assert STATUS_GRAPH[RequestStatus.PENDING] == {
        RequestStatus.DEPARTMENT_APPROVED,
        RequestStatus.APPROVED,
        RequestStatus.REJECTED,
        RequestStatus.CANCELLED,
    }
    assert STATUS_GRAPH[RequestStatus.DEPARTMENT_APPROVED] == {
        RequestStatus.APPROVED,
        RequestStatus.REJECTED,
        RequestStatus.FULFILLED,
        RequestStatus.CANCELLED,
    }
    assert STATUS_GRAPH[RequestStatus.APPROVED] == {RequestStatus.FULFILLED}


def test_staff_and_viewer_have_no_role_transitions() -> None:
    for status, role in ROLE_TRANSITIONS:
        assert role not in (Role.STAFF, Role.VIEWER), (status, role)


def test_only_department_heads_department_approve() -> None:
    for (_status, role), targets in ROLE_TRANSITIONS.items():
        if RequestStatus.DEPARTMENT_APPROVED in targets:
            assert role == Role.DEPARTMENT_HEAD


def test_cancellation_is_only_a_requester_transition() -> None:
    for targets in ROLE_TRANSITIONS.values():
        assert RequestStatus.CANCELLED not in targets
    assert set(REQUESTER_TRANSITIONS) == {RequestStatus.PENDING, RequestStatus.DEPARTMENT_APPROVED}


# ---------------------------------------------------------------------------
# Enumerated decisions for non-requester actors in the request's department
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("role", list(Role))
@pytest.mark.parametrize("current", list(RequestStatus))
@pytest.mark.parametrize("target", list(RequestStatus))
def test_decision_matches_tables(role: Role, current: RequestStatus, target: RequestStatus) -> None:
    decision = can_transition(_actor(role), _request(current), target)

    if current.is_terminal:
        assert decision.code == "already_finalized"
    elif target not in STATUS_GRAPH.get(current, frozenset()):
        assert decision.code == "invalid_transition"
    elif target in ROLE_TRANSITIONS.get((current, role), frozenset()):
        assert decision.allowed
    else:
        assert decision.code == "forbidden"


# ---------------------------------------------------------------------------
# Department head rules
# ---------------------------------------------------------------------------


def test_department_head_approves_request_from_own_department() -> None:
    decision = can_transition(_actor(Role.DEPARTMENT_HEAD), _request(), RequestStatus.DEPARTMENT_APPROVED)
    assert decision.allowed


def test_department_head_cannot_review_other_department() -> None:
    head = _actor(Role.DEPARTMENT_HEAD, department_id=ARTS)
    decision = can_transition(head, _request(), RequestStatus.DEPARTMENT_APPROVED)
    assert not decision.allowed
    assert decision.code == "forbidden"


def test_department_head_without_department_is_denied() -> None:
    head = _actor(Role.DEPARTMENT_HEAD, department_id=None)
    decision = can_transition(head, _request(), RequestStatus.REJECTED)
    assert decision.code == "forbidden"


@pytest.mark.parametrize("target", [RequestStatus.DEPARTMENT_APPROVED, RequestStatus.REJECTED])
def test_department_head_cannot_review_own_request(target: RequestStatus) -> None:
    head = _actor(Role.DEPARTMENT_HEAD, user_id=REQUESTER_ID)
    decision = can_transition(head, _request(), target)
    assert not decision.allowed
    assert decision.code == "forbidden"
    assert "own" in (decision.reason or "")


def test_department_head_may_cancel_own_request() -> None:
    head = _actor(Role.DEPARTMENT_HEAD, user_id=REQUESTER_ID)
    assert can_transition(head, _request(), RequestStatus.CANCELLED).allowed


def test_department_head_fulfills_department_approved_request() -> None:
    decision = can_transition(
        _actor(Role.DEPARTMENT_HEAD), _request(RequestStatus.DEPARTMENT_APPROVED), RequestStatus.FULFILLED
    )
    assert decision.allowed


# ---------------------------------------------------------------------------
# Requester rules
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("current", [RequestStatus.PENDING, RequestStatus.DEPARTMENT_APPROVED])
def test_staff_requester_cancels_own_open_request(current: RequestStatus) -> None:
    staff = _actor(Role.STAFF, user_id=REQUESTER_ID)
    assert can_transition(staff, _request(current), RequestStatus.CANCELLED).allowed


def test_staff_cannot_cancel_someone_elses_request() -> None:
    decision = can_transition(_actor(Role.STAFF), _request(), RequestStatus.CANCELLED)
    assert decision.code == "forbidden"


def test_admin_cannot_cancel_someone_elses_request() -> None:
    decision = can_transition(_actor(Role.ADMIN), _request(), RequestStatus.CANCELLED)
    assert decision.code == "forbidden"


def test_staff_cannot_cancel_approved_request() -> None:
    staff = _actor(Role.STAFF, user_id=REQUESTER_ID)
    decision = can_transition(staff, _request(RequestStatus.APPROVED), RequestStatus.CANCELLED)
    assert not decision.allowed


def test_staff_requester_cannot_approve_own_request() -> None:
    staff = _actor(Role.STAFF, user_id=REQUESTER_ID)
    decision = can_transition(staff, _request(), RequestStatus.APPROVED)
    assert decision.code == "forbidden"


@pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES))
def test_requester_cannot_cancel_finalized_request(terminal: RequestStatus) -> None:
    staff = _actor(Role.STAFF, user_id=REQUESTER_ID)
    decision = can_transition(staff, _request(terminal), RequestStatus.CANCELLED)
    assert decision.code == "already_finalized"


# ---------------------------------------------------------------------------
# Decision.raise_if_denied
# ---------------------------------------------------------------------------


def test_raise_if_denied_maps_forbidden_to_authorization_error() -> None:
    decision = can_transition(_actor(Role.STAFF), _request(), RequestStatus.APPROVED)
    with pytest.raises(AuthorizationError):
        decision.raise_if_denied()


def test_raise_if_denied_maps_state_codes_to_state_conflict() -> None:
    decision = can_transition(_actor(Role.ADMIN), _request(RequestStatus.FULFILLED), RequestStatus.APPROVED)
    with pytest.raises(StateConflictError) as exc_info:
        decision.raise_if_denied()
    assert exc_info.value.code == "already_finalized"


def test_raise_if_denied_is_silent_when_allowed() -> None:
    can_transition(_actor(Role.ADMIN), _request(), RequestStatus.APPROVED).raise_if_denied()


# ---------------------------------------------------------------------------
# can_view
# ---------------------------------------------------------------------------


def test_can_view_rules() -> None:
    request = _request()
    assert can_view(_actor(Role.ADMIN, department_id=None), request)
    assert can_view(_actor(Role.STOCK_MANAGER, department_id=None), request)
    assert can_view(_actor(Role.STAFF, user_id=REQUESTER_ID), request)
    assert can_view(_actor(Role.DEPARTMENT_HEAD), request)
    assert not can_view(_actor(Role.DEPARTMENT_HEAD, department_id=ARTS), request)
    assert not can_view(_actor(Role.STAFF), request)
    assert not can_view(_actor(Role.VIEWER), request)
