"""
Script to create all database tables.

This script creates all tables defined in the models.
Run this after starting PostgreSQL with Docker.
"""
import asyncio
import sys

from playerauth.database import engine
from playerauth.models.base import Base
from playerauth.models.user import UserAccount  # noqa: F401 - registers the table


async def create_all_tables():
    """Create all tables in the database."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("All tables created successfully!")


async def drop_all_tables():
    """Drop all tables in the database (for testing)."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    print("All tables dropped!")


async def main():
    """Main entry point. Pass --drop to drop tables instead."""
    if "--drop" in sys.argv[1:]:
        print("Dropping database tables...")
        await drop_all_tables()
    else:
        print("Creating database tables...")
        await create_all_tables()
    await engine.dispose()
    print("Done!")


if __name__ == "__main__":
    asyncio.run(main())
