from __future__ import annotations

import uuid

from school_inventory.models import (
    AuditLog,
    InventoryItem,
    ItemRequest,
    SQLModel,
)
from school_inventory.models.enums import TERMINAL_STATUSES, AttributionKind, RequestStatus, Role

EXPECTED_TABLES = {
    "audit_log",
    "inventory_items",
    "item_requests",
}


def _request(**overrides: object) -> ItemRequest:
    fields: dict[str, object] = {
        "item_id": uuid.uuid4(),
        "item_name": "Stapler",
        "requested_quantity": 5,
        "requester_id": uuid.uuid4(),
        "requester_name": "Sam Staff",
    }
    fields.update(overrides)
    return ItemRequest(**fields)  # type: ignore[arg-type]


def test_all_tables_registered() -> None:
    table_names = set(SQLModel.metadata.tables.keys())
    assert EXPECTED_TABLES.issubset(table_names)


def test_inventory_item_defaults() -> None:
    item = InventoryItem(item_name="Stapler")
    assert item.quantity == 0
    assert item.id is not None
    assert item.updated_by_id is None
    assert item.updated_at.tzinfo is not None


def test_item_request_defaults() -> None:
    request = _request()
    assert request.status == RequestStatus.PENDING
    assert request.fulfilled_quantity == 0
    assert request.remaining_quantity == 5
    assert request.attribution_kind == AttributionKind.NONE
    assert request.attribution_actor_id is None
    assert request.response_date is None
    assert request.rejection_reason is None


def test_record_action_replaces_attribution() -> None:
    request = _request()
    first_actor = uuid.uuid4()
    second_actor = uuid.uuid4()

    request.record_action(AttributionKind.APPROVED, first_actor, "Dana Head", Role.DEPARTMENT_HEAD.value)
    request.record_action(AttributionKind.REJECTED, second_actor, "Ada Admin", Role.ADMIN.value)

    assert request.attribution_kind == "rejected"
    assert request.attribution_actor_id == second_actor
    assert request.attribution_actor_name == "Ada Admin"
    assert request.attribution_actor_role == "Admin"


def test_record_action_none_clears_actor() -> None:
    request = _request()
    request.record_action(AttributionKind.APPROVED, uuid.uuid4(), "Dana Head", Role.DEPARTMENT_HEAD.value)

    request.record_action(AttributionKind.NONE, uuid.uuid4(), "Sam Staff", Role.STAFF.value)

    assert request.attribution_kind == "none"
    assert request.attribution_actor_id is None
    assert request.attribution_actor_name is None
    assert request.attribution_actor_role is None


def test_remaining_quantity_tracks_partial_fulfillment() -> None:
    request = _request(requested_quantity=6, fulfilled_quantity=4)
    assert request.remaining_quantity == 2


def test_terminal_statuses() -> None:
    assert TERMINAL_STATUSES == {RequestStatus.FULFILLED, RequestStatus.REJECTED, RequestStatus.CANCELLED}
    assert RequestStatus.CANCELLED.is_terminal
    assert not RequestStatus.DEPARTMENT_APPROVED.is_terminal


def test_audit_log_instantiation() -> None:
    log = AuditLog(
        actor_id=uuid.uuid4(),
        entity_type="REQUEST",
        entity_id=uuid.uuid4(),
        action="SUBMIT",
    )
    assert log.before_json is None
    assert log.after_json is None
