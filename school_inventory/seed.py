"""Seed script for development data.

Run with:  python -m school_inventory.seed
Requires the schema to exist (``alembic upgrade head``).
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from school_inventory.config import get_settings
from school_inventory.db import dispose_engine, get_session_factory
from school_inventory.logging_config import configure_logging
from school_inventory.models.item import InventoryItem

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

ITEMS: list[tuple[str, int]] = [
    ("Stapler", 10),
    ("A4 Paper Ream", 120),
    ("Whiteboard Marker", 60),
    ("Chalk Box", 40),
    ("Scientific Calculator", 15),
    ("Printer Toner", 6),
]


async def seed_items(session: AsyncSession, items: list[tuple[str, int]] = ITEMS) -> int:
    """Insert any missing stock items. Returns how many were created."""
    result = await session.execute(select(col(InventoryItem.item_name)))
    existing = set(result.scalars().all())

    created = 0
    for name, quantity in items:
        if name in existing:
            logger.info("Skipping %r: already present", name)
            continue
        session.add(InventoryItem(item_name=name, quantity=quantity))
        created += 1

    await session.commit()
    return created


async def _run() -> None:
    session_factory = get_session_factory()
    try:
        async with session_factory() as session:
            created = await seed_items(session)
        logger.info("Seeded %d inventory items", created)
    finally:
        await dispose_engine()


def main() -> None:
    """Entry point for the seed command."""
    configure_logging(get_settings())
    asyncio.run(_run())


if __name__ == "__main__":
    main()
