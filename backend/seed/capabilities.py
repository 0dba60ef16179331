"""Seed data for capabilities table."""

# Format: (cap_name, description)
CAPABILITIES = [
    ("clients:read", "مشاهده مشتری‌ها"),
    ("clients:write", "ایجاد، ویرایش و حذف مشتری‌ها"),
    ("pre_orders:read", "مشاهده پیش سفارش‌ها"),
    ("pre_orders:write", "ایجاد، ویرایش و حذف پیش سفارش‌ها"),
    ("orders:read", "مشاهده سفارش‌ها"),
    ("jobs:read", "مشاهده وضعیت اکشن‌ها"),
    ("jobs:write", "ثبت اکشن‌ها"),
]


async def seed_capabilities(conn) -> None:
    """Insert capabilities if not exists."""
    async with conn.cursor() as cur:
        for cap_name, description in CAPABILITIES:
            await cur.execute(
                "SELECT id FROM capabilities WHERE cap_name = %(cap_name)s",
                {"cap_name": cap_name},
            )
            if await cur.fetchone():
                print(f"Capability already exists: {cap_name}")
                continue

            await cur.execute(
                """
                INSERT INTO capabilities (cap_name, description)
                VALUES (%(cap_name)s, %(description)s)
                """,
                {"cap_name": cap_name, "description": description},
            )
            print(f"Created capability: {cap_name}")


async def clear_capabilities(conn) -> None:
    """Remove all seeded capabilities."""
    async with conn.cursor() as cur:
        await cur.execute("DELETE FROM rolecapabilities")
        print("Cleared role-capability mappings")

        await cur.execute("DELETE FROM capabilities")
        print("Cleared capabilities")
