# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from school_inventory.models.enums import AttributionKind, RequestStatus, Role

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class SubmitRequestPayload(BaseModel):
    """Request body for submitting a new item request."""

    item_name: str = Field(min_length=1, max_length=255)
    requested_quantity: int
    notes: str | None = Field(default=None, max_length=2000)


class TransitionPayload(BaseModel):
    """Request body for moving a request to a new status."""

    status: str = Field(min_length=1, max_length=50)
    fulfilled_quantity: int | None = None
    rejection_reason: str | None = Field(default=None, max_length=2000)
    admin_notes: str | None = Field(default=None, max_length=2000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class SubmitRequestResponse(BaseModel):
    """Result of a successful submission."""

    request_id: uuid.UUID
    current_stock: int


class Attribution(BaseModel):
    """The actor whose action produced the request's current status."""

    kind: AttributionKind
    actor_id: uuid.UUID
    actor_name: str
    actor_role: Role


class RequestResponse(BaseModel):
    """Projection of a request joined with the item's current stock."""

    id: uuid.UUID
    item_id: uuid.UUID
    item_name: str
    requested_quantity: int
    fulfilled_quantity: int
    current_stock: int
    requester_id: uuid.UUID
    requester_name: str
    requester_department_id: uuid.UUID | None
    requester_department_name: str | None
    status: str = Field(min_length=1, max_length=50)
    notes: str | None
    admin_notes: str | None
    rejection_reason: str | None
    attribution: Attribution | None
    request_date: datetime
    response_date: datetime | None


class RequestListResponse(BaseModel):
    """Paginated list of item requests."""

    items: list[RequestResponse]
    total: int
