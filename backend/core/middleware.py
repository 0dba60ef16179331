"""Session cookie handling."""

import logging
from datetime import datetime, timezone

import psycopg
from litestar.middleware import AbstractMiddleware
from litestar.types import Receive, Scope, Send

from core.auth import SESSION_COOKIE, AuthenticatedUser
import core.db as db
from core.queries_admin import sql_select_session_user, sql_select_user_capabilities


logger = logging.getLogger(__name__)


class SessionMiddleware(AbstractMiddleware):
    """Resolve the session cookie to an ``AuthenticatedUser`` in ``scope["user"]``."""

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        session_id = self._get_session_cookie(scope)

        if session_id and db.pool:
            user = await self._validate_session(session_id)
            if user:
                scope["user"] = user

        await self.app(scope, receive, send)

    def _get_session_cookie(self, scope: Scope) -> str | None:
        headers = dict(scope.get("headers", []))
        cookie_header = headers.get(b"cookie", b"").decode()

        for cookie in cookie_header.split(";"):
            cookie = cookie.strip()
            if cookie.startswith(f"{SESSION_COOKIE}="):
                return cookie.split("=", 1)[1]

        return None

    async def _validate_session(self, session_id: str) -> AuthenticatedUser | None:
        try:
            async with db.pool.connection() as conn:
                return await load_session_user(conn, session_id)
        except psycopg.Error as e:
            logger.error("Session lookup failed: %s", e)
            return None


async def load_session_user(
    conn: psycopg.AsyncConnection, session_id: str
) -> AuthenticatedUser | None:
    """The user behind an active, unexpired session."""
    row = await db.fetch_one(conn, sql_select_session_user(), {"session_id": session_id})
    if not row or row["inactive"] or row["user_inactive"]:
        return None

    # expires is stored as naive UTC
    if row["expires"] and row["expires"] < datetime.now(timezone.utc).replace(tzinfo=None):
        return None

    caps = await db.fetch_all(conn, sql_select_user_capabilities(), {"user_id": row["id"]})
    return AuthenticatedUser(
        id=str(row["id"]),
        username=row["username"],
        full_name=row["full_name"],
        capabilities={r["cap_name"] for r in caps},
    )
