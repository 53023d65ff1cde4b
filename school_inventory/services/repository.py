# ruff: noqa: TC003
"""Persistence port for the request workflow.

Every workflow operation runs against one ``InventoryRepository``, which is a
single unit of work: rows read with ``for_update=True`` stay locked until
``commit()`` or ``rollback()``.
"""

from __future__ import annotations

import asyncio
import uuid
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, TypeVar, runtime_checkable

from sqlalchemy import func, or_, select
from sqlmodel import SQLModel, col

from school_inventory.models.audit import AuditLog
from school_inventory.models.item import InventoryItem
from school_inventory.models.request import ItemRequest

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncSession

    from school_inventory.models.enums import RequestStatus

_ModelT = TypeVar("_ModelT", bound=SQLModel)


@dataclass(frozen=True)
class RequestFilter:
    """Row filter for request projections. ``None`` fields are not applied."""

    requester_id: uuid.UUID | None = None
    department_id: uuid.UUID | None = None
    status: RequestStatus | None = None
    search: str | None = None


@dataclass(frozen=True)
class RequestRow:
    """A request joined with its item's current on-hand quantity."""

    request: ItemRequest
    current_stock: int


@runtime_checkable
class InventoryRepository(Protocol):
    """Interface for request and stock ledger persistence."""

    async def get_item(self, item_id: uuid.UUID, *, for_update: bool = False) -> InventoryItem | None:
        """Fetch an item by id, optionally locking its row."""
        ...

    async def get_item_by_name(self, item_name: str, *, for_update: bool = False) -> InventoryItem | None:
        """Fetch an item by its unique name, optionally locking its row."""
        ...

    async def get_request(self, request_id: uuid.UUID, *, for_update: bool = False) -> ItemRequest | None:
        """Fetch a request by id, optionally locking its row."""
        ...

    def add(self, model: SQLModel) -> None:
        """Stage a new row (request or audit entry) in this unit of work."""
        ...

    async def flush(self) -> None:
        """Push staged changes so generated values are available."""
        ...

    async def list_requests(self, filters: RequestFilter, offset: int, limit: int) -> tuple[list[RequestRow], int]:
        """Return one page of matching requests, newest first, and the total match count."""
        ...

    async def commit(self) -> None:
        """Publish staged changes and release row locks."""
        ...

    async def rollback(self) -> None:
        """Discard staged changes and release row locks."""
        ...


@asynccontextmanager
async def transaction(repo: InventoryRepository) -> AsyncIterator[InventoryRepository]:
    """Commit the unit of work on success, roll it back on any error."""
    try:
        yield repo
    except BaseException:
        await repo.rollback()
        raise
    await repo.commit()


# ---------------------------------------------------------------------------
# SQL implementation
# ---------------------------------------------------------------------------


def _escape_like(term: str) -> str:
    # Search text is matched literally, so LIKE wildcards in it are escaped.
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlInventoryRepository:
    """Repository backed by an async SQLAlchemy session.

    Row locks are taken with ``SELECT ... FOR UPDATE``; the session's
    transaction is the unit of work.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _get(self, model: type[_ModelT], row_id: uuid.UUID, for_update: bool) -> _ModelT | None:
        query = select(model).where(col(model.id) == row_id)  # type: ignore[attr-defined]
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_item(self, item_id: uuid.UUID, *, for_update: bool = False) -> InventoryItem | None:
        return await self._get(InventoryItem, item_id, for_update)

    async def get_item_by_name(self, item_name: str, *, for_update: bool = False) -> InventoryItem | None:
        query = select(InventoryItem).where(col(InventoryItem.item_name) == item_name)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_request(self, request_id: uuid.UUID, *, for_update: bool = False) -> ItemRequest | None:
        return await self._get(ItemRequest, request_id, for_update)

    def add(self, model: SQLModel) -> None:
        self.session.add(model)

    async def flush(self) -> None:
        await self.session.flush()

    async def list_requests(self, filters: RequestFilter, offset: int, limit: int) -> tuple[list[RequestRow], int]:
        conditions = []
        if filters.requester_id is not None:
            conditions.append(col(ItemRequest.requester_id) == filters.requester_id)
        if filters.department_id is not None:
            conditions.append(col(ItemRequest.requester_department_id) == filters.department_id)
        if filters.status is not None:
            conditions.append(col(ItemRequest.status) == filters.status.value)
        if filters.search:
            pattern = f"%{_escape_like(filters.search)}%"
            conditions.append(
                or_(
                    col(ItemRequest.item_name).ilike(pattern, escape="\\"),
                    col(ItemRequest.requester_name).ilike(pattern, escape="\\"),
                )
            )

        count_result = await self.session.execute(select(func.count()).select_from(ItemRequest).where(*conditions))
        total = count_result.scalar_one()

        result = await self.session.execute(
            select(ItemRequest, col(InventoryItem.quantity))
            .join(InventoryItem, col(ItemRequest.item_id) == col(InventoryItem.id))
            .where(*conditions)
            .order_by(col(ItemRequest.request_date).desc(), col(ItemRequest.id).desc())
            .offset(offset)
            .limit(limit)
        )
        rows = [RequestRow(request=request, current_stock=quantity) for request, quantity in result.all()]
        return rows, total

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


def _clone(model: _ModelT) -> _ModelT:
    return type(model)(**model.model_dump())


def _matches(request: ItemRequest, filters: RequestFilter) -> bool:
    if filters.requester_id is not None and request.requester_id != filters.requester_id:
        return False
    if filters.department_id is not None and request.requester_department_id != filters.department_id:
        return False
    if filters.status is not None and request.status != filters.status.value:
        return False
    if filters.search:
        term = filters.search.lower()
        return term in request.item_name.lower() or term in request.requester_name.lower()
    return True


class InMemoryInventoryStore:
    """Shared in-process store with one lock per row.

    Each ``repository()`` call opens an independent unit of work against it,
    so concurrent workflow operations contend for row locks the same way they
    would on a database.
    """

    def __init__(self) -> None:
        self.items: dict[uuid.UUID, InventoryItem] = {}
        self.requests: dict[uuid.UUID, ItemRequest] = {}
        self.audit_log: list[AuditLog] = []
        self._locks: defaultdict[uuid.UUID, asyncio.Lock] = defaultdict(asyncio.Lock)

    def seed_item(self, item: InventoryItem) -> InventoryItem:
        """Seed a stock ledger entry for testing."""
        self.items[item.id] = _clone(item)
        return item

    def seed_request(self, request: ItemRequest) -> ItemRequest:
        """Seed a request for testing."""
        self.requests[request.id] = _clone(request)
        return request

    def lock_for(self, row_id: uuid.UUID) -> asyncio.Lock:
        return self._locks[row_id]

    def repository(self) -> InMemoryInventoryRepository:
        """Open a new unit of work."""
        return InMemoryInventoryRepository(self)


class InMemoryInventoryRepository:
    """One unit of work over an ``InMemoryInventoryStore``.

    Locked and newly added rows are staged as private copies; ``commit()``
    publishes them, ``rollback()`` drops them. Unlocked reads return detached
    copies of committed state.
    """

    def __init__(self, store: InMemoryInventoryStore) -> None:
        self._store = store
        self._staged: dict[uuid.UUID, SQLModel] = {}
        self._new_audit: list[AuditLog] = []
        self._held: list[asyncio.Lock] = []

    async def _lock(self, row_id: uuid.UUID) -> None:
        lock = self._store.lock_for(row_id)
        if lock in self._held:
            return
        await lock.acquire()
        self._held.append(lock)
        # Yield once while holding the lock, as a database round trip would.
        await asyncio.sleep(0)

    async def _get(
        self, table: dict[uuid.UUID, _ModelT], row_id: uuid.UUID, for_update: bool
    ) -> _ModelT | None:
        staged = self._staged.get(row_id)
        if staged is not None:
            return staged  # type: ignore[return-value]
        if for_update:
            await self._lock(row_id)
        row = table.get(row_id)
        if row is None:
            return None
        copy = _clone(row)
        if for_update:
            self._staged[row_id] = copy
        return copy

    async def get_item(self, item_id: uuid.UUID, *, for_update: bool = False) -> InventoryItem | None:
        return await self._get(self._store.items, item_id, for_update)

    async def get_item_by_name(self, item_name: str, *, for_update: bool = False) -> InventoryItem | None:
        for item in self._store.items.values():
            if item.item_name == item_name:
                return await self.get_item(item.id, for_update=for_update)
        return None

    async def get_request(self, request_id: uuid.UUID, *, for_update: bool = False) -> ItemRequest | None:
        return await self._get(self._store.requests, request_id, for_update)

    def add(self, model: SQLModel) -> None:
        if isinstance(model, AuditLog):
            self._new_audit.append(model)
        else:
            self._staged[model.id] = model  # type: ignore[attr-defined]

    async def flush(self) -> None:
        return None

    async def list_requests(self, filters: RequestFilter, offset: int, limit: int) -> tuple[list[RequestRow], int]:
        matching = [r for r in self._store.requests.values() if _matches(r, filters)]
        matching.sort(key=lambda r: (r.request_date, str(r.id)), reverse=True)
        page = matching[offset : offset + limit]
        rows = [
            RequestRow(request=_clone(r), current_stock=self._store.items[r.item_id].quantity)
            for r in page
        ]
        return rows, len(matching)

    def _release(self) -> None:
        self._staged.clear()
        self._new_audit.clear()
        for lock in self._held:
            lock.release()
        self._held.clear()

    async def commit(self) -> None:
        for row_id, model in self._staged.items():
            if isinstance(model, InventoryItem):
                self._store.items[row_id] = _clone(model)
            elif isinstance(model, ItemRequest):
                self._store.requests[row_id] = _clone(model)
        self._store.audit_log.extend(self._new_audit)
        self._release()

    async def rollback(self) -> None:
        self._release()
