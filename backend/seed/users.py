"""Seed data for users table with sample users."""

from core.password import hash_password

# Development password for every sample user.
DEV_PASSWORD = "pishkhan-dev"

SAMPLE_USERS = [
    {
        "id": "00000000-0000-0000-0000-000000000001",
        "username": "admin",
        "full_name": "مدیر سیستم",
        "descr": "دسترسی کامل",
        "roles": ["مدیر سیستم"],
    },
    {
        "id": "00000000-0000-0000-0000-000000000002",
        "username": "sales",
        "full_name": "کارشناس فروش",
        "descr": "مدیریت مشتری‌ها و پیش سفارش‌ها",
        "roles": ["کارشناس فروش"],
    },
    {
        "id": "00000000-0000-0000-0000-000000000003",
        "username": "viewer",
        "full_name": "ناظر",
        "descr": "فقط مشاهده",
        "roles": ["ناظر"],
    },
]


async def seed_users(conn) -> None:
    """Insert sample users with role assignments."""
    async with conn.cursor() as cur:
        for user in SAMPLE_USERS:
            user_id = user["id"]
            await cur.execute("SELECT id FROM users WHERE id = %(id)s", {"id": user_id})
            if await cur.fetchone():
                print(f"User already exists: {user['username']}")
            else:
                await cur.execute(
                    """
                    INSERT INTO users (id, username, full_name, descr, pwhash)
                    VALUES (%(id)s, %(username)s, %(full_name)s, %(descr)s, %(pwhash)s)
                    """,
                    {
                        "id": user_id,
                        "username": user["username"],
                        "full_name": user["full_name"],
                        "descr": user["descr"],
                        "pwhash": hash_password(DEV_PASSWORD),
                    },
                )
                print(f"Created user: {user['username']} (id: {user_id})")

            for role_name in user.get("roles", []):
                await cur.execute(
                    "SELECT id FROM roles WHERE role_name = %(role_name)s",
                    {"role_name": role_name},
                )
                role_row = await cur.fetchone()
                if not role_row:
                    print(f"  Warning: Role not found: {role_name}")
                    continue

                await cur.execute(
                    """
                    INSERT INTO userroles (userid, roleid)
                    VALUES (%(user_id)s, %(role_id)s)
                    ON CONFLICT (userid, roleid) DO NOTHING
                    """,
                    {"user_id": user_id, "role_id": role_row[0]},
                )


async def clear_users(conn) -> None:
    """Remove all seeded users and their sessions."""
    async with conn.cursor() as cur:
        user_ids = [user["id"] for user in SAMPLE_USERS]
        await cur.execute("DELETE FROM sessions WHERE userid = ANY(%(ids)s)", {"ids": user_ids})
        await cur.execute("DELETE FROM userroles WHERE userid = ANY(%(ids)s)", {"ids": user_ids})
        print("Cleared user-role mappings for seeded users")

        await cur.execute("DELETE FROM users WHERE id = ANY(%(ids)s)", {"ids": user_ids})
        print("Cleared seeded users")
