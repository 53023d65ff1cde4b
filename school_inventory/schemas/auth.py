# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel

from school_inventory.models.enums import Role


class AuthContext(BaseModel):
    """Identity of the acting user, resolved by the authentication layer."""

    user_id: uuid.UUID
    full_name: str
    role: Role = Role.STAFF
    department_id: uuid.UUID | None = None
    department_name: str | None = None

    @property
    def is_stock_controller(self) -> bool:
        """Admins and stock managers see and act on every request."""
        return self.role in (Role.ADMIN, Role.STOCK_MANAGER)
