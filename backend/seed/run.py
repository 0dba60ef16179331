#!/usr/bin/env python3
"""Create the schema and populate the database with development data.

Usage:
    python -m seed.run [--clear]

Options:
    --clear     Remove all seed data before inserting
"""

import argparse
import asyncio
import sys

import psycopg

from core.config import AppConfig
from seed.capabilities import seed_capabilities, clear_capabilities
from seed.clients import seed_clients, clear_clients
from seed.roles import seed_roles, clear_roles
from seed.schema import create_schema
from seed.users import seed_users, clear_users


async def main(clear: bool = False) -> int:
    """Run all seed scripts."""
    config = AppConfig.load()

    if not config.database.host:
        print("Error: No database configured")
        return 1

    print(f"Connecting to database: {config.database.host}/{config.database.name}")

    async with await psycopg.AsyncConnection.connect(
        config.database.conninfo
    ) as conn:
        await conn.set_autocommit(True)

        print("\n=== Creating schema ===")
        await create_schema(conn, config.jobs)

        if clear:
            print("\n=== Clearing seed data ===")
            await clear_clients(conn)
            await clear_users(conn)
            await clear_roles(conn)
            await clear_capabilities(conn)

        print("\n=== Seeding capabilities ===")
        await seed_capabilities(conn)

        print("\n=== Seeding roles ===")
        await seed_roles(conn)

        print("\n=== Seeding users ===")
        await seed_users(conn)

        print("\n=== Seeding clients ===")
        await seed_clients(conn)

        print("\n=== Seed complete ===")
        return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the database with development data")
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Clear existing seed data before inserting",
    )
    args = parser.parse_args()

    sys.exit(asyncio.run(main(clear=args.clear)))
