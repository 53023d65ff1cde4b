# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from school_inventory.exceptions import (
    AuthorizationError,
    NotFoundError,
    StateConflictError,
    StockConflictError,
    ValidationError,
)
from school_inventory.models.base import now_utc
from school_inventory.models.enums import AttributionKind, AuditAction, AuditEntityType, RequestStatus, Role
from school_inventory.models.request import ItemRequest
from school_inventory.schemas.request import (
    Attribution,
    RequestListResponse,
    RequestResponse,
    SubmitRequestResponse,
)
from school_inventory.services.audit import model_to_audit_dict, write_audit_log
from school_inventory.services.authorization import can_transition, can_view
from school_inventory.services.repository import RequestFilter, transaction

if TYPE_CHECKING:
    from school_inventory.schemas.auth import AuthContext
    from school_inventory.schemas.request import SubmitRequestPayload, TransitionPayload
    from school_inventory.services.repository import InventoryRepository

logger = logging.getLogger(__name__)

_AUDIT_ACTIONS: dict[RequestStatus, AuditAction] = {
    RequestStatus.DEPARTMENT_APPROVED: AuditAction.DEPARTMENT_APPROVE,
    RequestStatus.APPROVED: AuditAction.APPROVE,
    RequestStatus.REJECTED: AuditAction.REJECT,
    RequestStatus.FULFILLED: AuditAction.FULFILL,
    RequestStatus.CANCELLED: AuditAction.CANCEL,
}

_ATTRIBUTION_KINDS: dict[RequestStatus, AttributionKind] = {
    RequestStatus.DEPARTMENT_APPROVED: AttributionKind.APPROVED,
    RequestStatus.APPROVED: AttributionKind.APPROVED,
    RequestStatus.REJECTED: AttributionKind.REJECTED,
    RequestStatus.CANCELLED: AttributionKind.NONE,
}


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_attribution(request: ItemRequest) -> Attribution | None:
    kind = AttributionKind(request.attribution_kind)
    if kind == AttributionKind.NONE or request.attribution_actor_id is None:
        return None
    return Attribution(
        kind=kind,
        actor_id=request.attribution_actor_id,
        actor_name=request.attribution_actor_name or "",
        actor_role=Role(request.attribution_actor_role),
    )


def _build_request_response(request: ItemRequest, current_stock: int) -> RequestResponse:
    """Map a request model and its item's stock to the response schema."""
    return RequestResponse(
        id=request.id,
        item_id=request.item_id,
        item_name=request.item_name,
        requested_quantity=request.requested_quantity,
        fulfilled_quantity=request.fulfilled_quantity,
        current_stock=current_stock,
        requester_id=request.requester_id,
        requester_name=request.requester_name,
        requester_department_id=request.requester_department_id,
        requester_department_name=request.requester_department_name,
        status=RequestStatus(request.status),
        notes=request.notes,
        admin_notes=request.admin_notes,
        rejection_reason=request.rejection_reason,
        attribution=_build_attribution(request),
        request_date=request.request_date,
        response_date=request.response_date,
    )


async def _get_request_or_404(
    repo: InventoryRepository,
    request_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> ItemRequest:
    request = await repo.get_request(request_id, for_update=for_update)
    if request is None:
        raise NotFoundError("Item request not found")
    return request


async def _current_stock(repo: InventoryRepository, item_id: uuid.UUID) -> int:
    item = await repo.get_item(item_id)
    if item is None:
        raise NotFoundError("Inventory item not found")
    return item.quantity


def _validate_transition_payload(payload: TransitionPayload) -> RequestStatus:
    """Reject malformed transition input before any unit of work begins. Returns the target status."""
    try:
        target = RequestStatus(payload.status)
    except ValueError:
        raise ValidationError(f"Invalid status provided: {payload.status!r}", code="invalid_status") from None
    if target == RequestStatus.PENDING:
        raise ValidationError("Requests cannot be moved back to Pending", code="invalid_status")
    if target == RequestStatus.FULFILLED and (
        payload.fulfilled_quantity is None or payload.fulfilled_quantity <= 0
    ):
        raise ValidationError("A positive fulfilled_quantity is required to fulfill a request")
    if target == RequestStatus.REJECTED and not (payload.rejection_reason or "").strip():
        raise ValidationError("A rejection reason is required when rejecting a request")
    return target


async def _fulfill(
    repo: InventoryRepository,
    auth: AuthContext,
    request: ItemRequest,
    quantity: int,
) -> int:
    """Deduct ``quantity`` from the item's stock and credit it to the request.

    The request row is already locked by the caller; the item row is locked
    here, after the remaining-quantity check. Returns the new on-hand stock.
    """
    remaining = request.remaining_quantity
    if quantity > remaining:
        raise StateConflictError(
            f"Cannot fulfill more than requested. Only {remaining} units remaining to fulfill.",
            code="exceeds_requested",
        )

    item = await repo.get_item(request.item_id, for_update=True)
    if item is None:
        raise NotFoundError("Inventory item not found for fulfillment")
    if item.quantity < quantity:
        logger.warning(
            "Insufficient stock for request %s: wanted %d of %r, %d on hand",
            request.id,
            quantity,
            item.item_name,
            item.quantity,
        )
        raise StockConflictError(f"Insufficient stock to fulfill {quantity} units. Only {item.quantity} available.")

    now = now_utc()
    item.quantity -= quantity
    item.updated_at = now
    item.updated_by_id = auth.user_id

    request.fulfilled_quantity += quantity
    # A partial fulfillment leaves the request Approved so the rest can follow later.
    if request.fulfilled_quantity == request.requested_quantity:
        request.status = RequestStatus.FULFILLED.value
    else:
        request.status = RequestStatus.APPROVED.value
    request.rejection_reason = None
    request.record_action(AttributionKind.FULFILLED, auth.user_id, auth.full_name, auth.role.value)
    request.response_date = now
    return item.quantity


def _apply_decision(
    request: ItemRequest, auth: AuthContext, target: RequestStatus, payload: TransitionPayload
) -> None:
    """Status change with no stock side effect: approve, reject or cancel."""
    request.status = target.value
    if target == RequestStatus.REJECTED:
        request.rejection_reason = (payload.rejection_reason or "").strip()
    else:
        request.rejection_reason = None
    kind = _ATTRIBUTION_KINDS[target]
    request.record_action(kind, auth.user_id, auth.full_name, auth.role.value)
    request.response_date = now_utc()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def submit_request(
    repo: InventoryRepository,
    auth: AuthContext,
    payload: SubmitRequestPayload,
) -> SubmitRequestResponse:
    """Create a Pending request for an existing item.

    The requester's identity and department are snapshotted onto the request.
    No stock is reserved; the stock figure returned is informational.
    """
    item_name = payload.item_name.strip()
    if not item_name:
        raise ValidationError("Item name is required")
    if payload.requested_quantity <= 0:
        raise ValidationError("Requested quantity must be a positive number")

    async with transaction(repo):
        item = await repo.get_item_by_name(item_name, for_update=True)
        if item is None:
            raise NotFoundError(f'Item "{item_name}" not found in inventory')

        request = ItemRequest(
            item_id=item.id,
            item_name=item.item_name,
            requested_quantity=payload.requested_quantity,
            requester_id=auth.user_id,
            requester_name=auth.full_name,
            requester_department_id=auth.department_id,
            requester_department_name=auth.department_name,
            notes=payload.notes,
            status=RequestStatus.PENDING.value,
            request_date=now_utc(),
        )
        repo.add(request)
        await repo.flush()

        write_audit_log(
            repo,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.REQUEST,
            entity_id=request.id,
            action=AuditAction.SUBMIT,
            after_json=model_to_audit_dict(request),
        )
        response = SubmitRequestResponse(request_id=request.id, current_stock=item.quantity)

    logger.info(
        "Request %s submitted by %s: %d x %r", response.request_id, auth.user_id, payload.requested_quantity, item_name
    )
    return response


async def transition_request(
    repo: InventoryRepository,
    auth: AuthContext,
    request_id: uuid.UUID,
    payload: TransitionPayload,
) -> RequestResponse:
    """Move a request to the status named in ``payload`` on behalf of ``auth``.

    Flow:
    1. Validate the payload (no unit of work yet).
    2. Lock the request row.
    3. Consult the authorization policy (terminal state, reachability, role).
    4. Fulfillment: lock the item row, check stock, deduct, credit the request.
       Other targets: update status and attribution only.
    5. Audit log with before/after.
    6. Commit; any error rolls back every step.
    """
    target = _validate_transition_payload(payload)

    async with transaction(repo):
        request = await _get_request_or_404(repo, request_id, for_update=True)
        from_status = request.status

        can_transition(auth, request, target).raise_if_denied()

        before_dict = model_to_audit_dict(request)

        if target == RequestStatus.FULFILLED:
            current_stock = await _fulfill(repo, auth, request, payload.fulfilled_quantity)  # type: ignore[arg-type]
        else:
            _apply_decision(request, auth, target, payload)
            current_stock = await _current_stock(repo, request.item_id)

        if payload.admin_notes is not None and target != RequestStatus.CANCELLED:
            request.admin_notes = payload.admin_notes

        await repo.flush()

        write_audit_log(
            repo,
            actor_id=auth.user_id,
            entity_type=AuditEntityType.REQUEST,
            entity_id=request.id,
            action=_AUDIT_ACTIONS[target],
            before_json=before_dict,
            after_json=model_to_audit_dict(request),
        )
        response = _build_request_response(request, current_stock)

    logger.info(
        "Request %s moved %s -> %s by %s (%s)",
        request_id,
        from_status,
        response.status.value,
        auth.user_id,
        auth.role.value,
    )
    return response


async def get_request(
    repo: InventoryRepository,
    auth: AuthContext,
    request_id: uuid.UUID,
) -> RequestResponse:
    """Get a single request the actor is allowed to see."""
    request = await _get_request_or_404(repo, request_id)
    if not can_view(auth, request):
        raise AuthorizationError("You do not have permission to view this request")
    return _build_request_response(request, await _current_stock(repo, request.item_id))


async def _list(
    repo: InventoryRepository,
    filters: RequestFilter,
    offset: int,
    limit: int,
) -> RequestListResponse:
    rows, total = await repo.list_requests(filters, offset, limit)
    return RequestListResponse(
        items=[_build_request_response(row.request, row.current_stock) for row in rows],
        total=total,
    )


async def list_own_requests(
    repo: InventoryRepository,
    auth: AuthContext,
    status_filter: RequestStatus | None = None,
    search: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """Requests submitted by the actor, newest first."""
    filters = RequestFilter(requester_id=auth.user_id, status=status_filter, search=search)
    return await _list(repo, filters, offset, limit)


async def list_department_requests(
    repo: InventoryRepository,
    auth: AuthContext,
    status_filter: RequestStatus | None = None,
    search: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """Requests from the actor's department, newest first.

    Admins and stock managers see every department. A department head with
    no department assigned sees nothing.
    """
    if auth.is_stock_controller:
        filters = RequestFilter(status=status_filter, search=search)
    elif auth.role == Role.DEPARTMENT_HEAD:
        if auth.department_id is None:
            return RequestListResponse(items=[], total=0)
        filters = RequestFilter(department_id=auth.department_id, status=status_filter, search=search)
    else:
        raise AuthorizationError("You do not have permission to view department requests")
    return await _list(repo, filters, offset, limit)


async def list_all_requests(
    repo: InventoryRepository,
    auth: AuthContext,
    status_filter: RequestStatus | None = None,
    search: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """Every request, newest first. Admins and stock managers only."""
    if not auth.is_stock_controller:
        raise AuthorizationError("You do not have permission to view all requests")
    return await _list(repo, RequestFilter(status=status_filter, search=search), offset, limit)


async def list_requests_for_actor(
    repo: InventoryRepository,
    auth: AuthContext,
    status_filter: RequestStatus | None = None,
    search: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> RequestListResponse:
    """The projection that matches the actor's role."""
    if auth.is_stock_controller:
        projection = list_all_requests
    elif auth.role == Role.DEPARTMENT_HEAD:
        projection = list_department_requests
    else:
        projection = list_own_requests
    return await projection(repo, auth, status_filter, search, offset, limit)
