import asyncio

from sqlalchemy import select

from fitsocial.db.async_session import get_async_db_manager, shutdown_async_database
from fitsocial.models.program import Program
from fitsocial.services.catalog import BUILTIN_PROGRAMS


async def seed_programs() -> int:
    """Insert the built-in program catalogue, skipping programs already present by name and author."""
    manager = await get_async_db_manager()
    added = 0
    async for db in manager.get_async_session():
        for entry in BUILTIN_PROGRAMS:
            exists = await db.execute(
                select(Program.id).where(Program.name == entry["name"], Program.author == entry["author"])
            )
            if exists.scalar_one_or_none() is None:
                db.add(Program(creator_id=None, is_public=True, **entry))
                added += 1
        await db.commit()
    return added


async def main():
    try:
        added = await seed_programs()
        print(f"Seeded programs table ({added} new).")
    finally:
        await shutdown_async_database()


if __name__ == "__main__":
    asyncio.run(main())
