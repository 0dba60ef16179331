"""Login and logout against the users/sessions tables."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import psycopg

import core.db as db
from core.password import verify_password
from core.queries_admin import sql_select_user_capabilities
from core.responses import ActionState, fail, ok


logger = logging.getLogger(__name__)

LOGIN_SUCCESS = "با موفقیت وارد شدید. در حال انتقال ..."
LOGIN_FAILED = "ورود موفقیت آمیز نبود دوباره تلاش کنید."
LOGOUT_SUCCESS = "با موفقیت خارج شدید."
LOGOUT_FAILED = "خروج موفقیت آمیز نبود دوباره تلاش کنید."


@dataclass
class Session:
    id: str
    user_id: str
    username: str
    full_name: str | None
    expires: datetime
    capabilities: list[str] = field(default_factory=list)


def sql_select_login_user() -> str:
    return """
        SELECT id, username, full_name, pwhash, inactive
        FROM users
        WHERE username = %(username)s
    """


def sql_insert_session() -> str:
    return """
        INSERT INTO sessions (id, userid, issued, expires)
        VALUES (%(id)s, %(userid)s, %(issued)s, %(expires)s)
    """


def sql_deactivate_session() -> str:
    return "UPDATE sessions SET inactive = true WHERE id = %(id)s"


async def login(
    conn: psycopg.AsyncConnection,
    username: str,
    password: str,
    expire_minutes: int,
) -> ActionState[Session]:
    """Check the credentials and open a session.

    Unknown users, inactive accounts and wrong passwords all get the same
    message.
    """
    try:
        user = await db.fetch_one(conn, sql_select_login_user(), {"username": username})
        if not user or user["inactive"] or not user["pwhash"]:
            return fail(LOGIN_FAILED)
        if not verify_password(password, user["pwhash"]):
            return fail(LOGIN_FAILED)

        caps = await db.fetch_all(conn, sql_select_user_capabilities(), {"user_id": user["id"]})

        now = datetime.now(timezone.utc)
        session = Session(
            id=str(uuid4()),
            user_id=str(user["id"]),
            username=user["username"],
            full_name=user["full_name"],
            expires=now + timedelta(minutes=expire_minutes),
            capabilities=sorted(r["cap_name"] for r in caps),
        )
        await db.execute(
            conn,
            sql_insert_session(),
            {
                "id": session.id,
                "userid": user["id"],
                "issued": now.replace(tzinfo=None),
                "expires": session.expires.replace(tzinfo=None),
            },
        )
    except psycopg.Error as e:
        logger.error("Login for %s failed: %s", username, e)
        return fail(LOGIN_FAILED)

    logger.info("User %s logged in", session.username)
    return ok(LOGIN_SUCCESS, data=session)


async def logout(conn: psycopg.AsyncConnection, session_id: str | None) -> ActionState[None]:
    if not session_id:
        return ok(LOGOUT_SUCCESS)

    try:
        await db.execute(conn, sql_deactivate_session(), {"id": session_id})
    except psycopg.Error as e:
        logger.error("Logout of session %s failed: %s", session_id, e)
        return fail(LOGOUT_FAILED)

    return ok(LOGOUT_SUCCESS)
