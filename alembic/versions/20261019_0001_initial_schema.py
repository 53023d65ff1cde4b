"""initial schema: inventory items, item requests, audit log

Revision ID: 20261019_0001_initial_schema
Revises:
Create Date: 2026-10-19
"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "20261019_0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "inventory_items",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("item_name", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_by_id", sa.Uuid(), nullable=True),
        sa.CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity_non_negative"),
    )
    op.create_index("ix_inventory_items_item_name", "inventory_items", ["item_name"], unique=True)

    op.create_table(
        "item_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "item_id",
            sa.Uuid(),
            sa.ForeignKey("inventory_items.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("item_name", sa.String(length=255), nullable=False),
        sa.Column("requested_quantity", sa.Integer(), nullable=False),
        sa.Column("fulfilled_quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("requester_id", sa.Uuid(), nullable=False),
        sa.Column("requester_name", sa.String(length=255), nullable=False),
        sa.Column("requester_department_id", sa.Uuid(), nullable=True),
        sa.Column("requester_department_name", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=False, server_default="Pending"),
        sa.Column("notes", sa.String(), nullable=True),
        sa.Column("admin_notes", sa.String(), nullable=True),
        sa.Column("rejection_reason", sa.String(), nullable=True),
        sa.Column("attribution_kind", sa.String(length=20), nullable=False, server_default="none"),
        sa.Column("attribution_actor_id", sa.Uuid(), nullable=True),
        sa.Column("attribution_actor_name", sa.String(length=255), nullable=True),
        sa.Column("attribution_actor_role", sa.String(length=50), nullable=True),
        sa.Column("request_date", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("response_date", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("requested_quantity > 0", name="ck_item_requests_requested_positive"),
        sa.CheckConstraint(
            "fulfilled_quantity >= 0 AND fulfilled_quantity <= requested_quantity",
            name="ck_item_requests_fulfilled_range",
        ),
    )
    op.create_index("ix_item_requests_item_id", "item_requests", ["item_id"])
    op.create_index("ix_item_requests_requester_id", "item_requests", ["requester_id"])
    op.create_index("ix_item_requests_requester_department_id", "item_requests", ["requester_department_id"])
    op.create_index("ix_item_requests_status", "item_requests", ["status"])
    op.create_index("ix_item_requests_status_date", "item_requests", ["status", "request_date"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("item_requests")
    op.drop_table("inventory_items")
