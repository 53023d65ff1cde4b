from sqlmodel import SQLModel

from school_inventory.models.audit import AuditLog
from school_inventory.models.base import UUIDBase
from school_inventory.models.enums import (
    TERMINAL_STATUSES,
    AttributionKind,
    AuditAction,
    AuditEntityType,
    RequestStatus,
    Role,
)
from school_inventory.models.item import InventoryItem
from school_inventory.models.request import ItemRequest

__all__ = [
    "TERMINAL_STATUSES",
    "AttributionKind",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "InventoryItem",
    "ItemRequest",
    "RequestStatus",
    "Role",
    "SQLModel",
    "UUIDBase",
]
