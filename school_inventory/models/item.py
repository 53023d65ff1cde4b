# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlmodel import Field

from school_inventory.models.base import UUIDBase, now_utc


class InventoryItem(UUIDBase, table=True):
    """Stock ledger entry: on-hand quantity for one inventory item."""

    __tablename__ = "inventory_items"
    __table_args__ = (sa.CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity_non_negative"),)

    item_name: str = Field(max_length=255, unique=True, index=True)
    quantity: int = Field(default=0, sa_column_kwargs={"server_default": "0"})
    updated_at: datetime = Field(
        default_factory=now_utc,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
        sa_column_kwargs={"server_default": sa.func.now()},
    )
    updated_by_id: uuid.UUID | None = None
