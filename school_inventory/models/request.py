# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from school_inventory.models.base import UUIDBase, now_utc
from school_inventory.models.enums import AttributionKind, RequestStatus


class ItemRequest(UUIDBase, table=True):
    """A requester's ask for a quantity of one inventory item, with workflow state.

    The actor that produced the current status is stored as a single tagged
    record (``attribution_*``); ``kind == "none"`` means no actor is recorded.
    """

    __tablename__ = "item_requests"
    __table_args__ = (
        sa.Index("ix_item_requests_status_date", "status", "request_date"),
        sa.CheckConstraint("requested_quantity > 0", name="ck_item_requests_requested_positive"),
        sa.CheckConstraint(
            "fulfilled_quantity >= 0 AND fulfilled_quantity <= requested_quantity",
            name="ck_item_requests_fulfilled_range",
        ),
    )

    item_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("inventory_items.id", ondelete="RESTRICT"), nullable=False, index=True
        ),
    )
    item_name: str = Field(max_length=255)
    requested_quantity: int
    fulfilled_quantity: int = Field(default=0, sa_column_kwargs={"server_default": "0"})

    requester_id: uuid.UUID = Field(index=True)
    requester_name: str = Field(max_length=255)
    requester_department_id: uuid.UUID | None = Field(default=None, index=True)
    requester_department_name: str | None = Field(default=None, max_length=255)

    status: str = Field(
        default=RequestStatus.PENDING, max_length=50, index=True, sa_column_kwargs={"server_default": "Pending"}
    )
    notes: str | None = None
    admin_notes: str | None = None
    rejection_reason: str | None = None

    attribution_kind: str = Field(
        default=AttributionKind.NONE, max_length=20, sa_column_kwargs={"server_default": "none"}
    )
    attribution_actor_id: uuid.UUID | None = None
    attribution_actor_name: str | None = Field(default=None, max_length=255)
    attribution_actor_role: str | None = Field(default=None, max_length=50)

    request_date: datetime = Field(
        default_factory=now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
    response_date: datetime | None = Field(default=None, sa_type=sa.DateTime(timezone=True))  # ty: ignore[invalid-argument-type]

    @property
    def remaining_quantity(self) -> int:
        return self.requested_quantity - self.fulfilled_quantity

    def record_action(
        self,
        kind: AttributionKind,
        actor_id: uuid.UUID | None = None,
        actor_name: str | None = None,
        actor_role: str | None = None,
    ) -> None:
        """Replace the attribution with the actor behind the latest status change."""
        if kind == AttributionKind.NONE:
            actor_id = actor_name = actor_role = None
        self.attribution_kind = kind.value
        self.attribution_actor_id = actor_id
        self.attribution_actor_name = actor_name
        self.attribution_actor_role = actor_role
