# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Header

from school_inventory.db import SessionDep
from school_inventory.models.enums import Role
from school_inventory.schemas.auth import AuthContext
from school_inventory.services.repository import InventoryRepository, SqlInventoryRepository


async def get_auth_context(
    x_user_id: uuid.UUID = Header(),
    x_user_name: str = Header(min_length=1),
    x_role: Role = Header(default=Role.STAFF),
    x_department_id: uuid.UUID | None = Header(default=None),
    x_department_name: str | None = Header(default=None),
) -> AuthContext:
    """Extract dev auth context from request headers."""
    return AuthContext(
        user_id=x_user_id,
        full_name=x_user_name,
        role=x_role,
        department_id=x_department_id,
        department_name=x_department_name,
    )


AuthDep = Annotated[AuthContext, Depends(get_auth_context)]


async def get_repository(session: SessionDep) -> AsyncIterator[InventoryRepository]:
    """FastAPI dependency yielding one unit of work per HTTP request."""
    yield SqlInventoryRepository(session)


RepositoryDep = Annotated[InventoryRepository, Depends(get_repository)]
