"""Login, logout and current-user endpoints."""

from dataclasses import dataclass

import psycopg
from litestar import Controller, Request, Response, get, post

from actions import auth
from core.auth import SESSION_COOKIE, scope_user
from core.responses import ActionState


@dataclass
class LoginRequest:
    username: str
    password: str


@dataclass
class UserResponse:
    id: str
    username: str
    full_name: str | None
    capabilities: list[str]


def _get_config():
    """Get app config from module-level variable in app.py."""
    import app

    return app.config


class AuthController(Controller):
    path = "/api/auth"
    tags = ["auth"]

    @post("/login")
    async def login(
        self,
        conn: psycopg.AsyncConnection,
        data: LoginRequest,
    ) -> Response[ActionState[UserResponse]]:
        """Authenticate and set the session cookie."""
        config = _get_config()

        state = await auth.login(conn, data.username, data.password, config.session.expire_minutes)
        if not state.success:
            return Response(state, status_code=401)

        session = state.data
        response = Response(
            ActionState(
                message=state.message,
                success=True,
                data=UserResponse(
                    id=session.user_id,
                    username=session.username,
                    full_name=session.full_name,
                    capabilities=session.capabilities,
                ),
            ),
            status_code=200,
        )
        response.set_cookie(
            key=SESSION_COOKIE,
            value=session.id,
            httponly=True,
            secure=config.session.secure_cookie,
            samesite="strict",
            path="/",
            max_age=config.session.expire_minutes * 60,
        )
        return response

    @post("/logout", status_code=200)
    async def logout(
        self,
        conn: psycopg.AsyncConnection,
        request: Request,
    ) -> Response[ActionState[None]]:
        """Invalidate the session and clear the cookie."""
        state = await auth.logout(conn, request.cookies.get(SESSION_COOKIE))

        response = Response(state, status_code=200 if state.success else 500)
        if state.success:
            response.delete_cookie(key=SESSION_COOKIE, path="/")
        return response

    @get("/me")
    async def get_current_user(self, request: Request) -> UserResponse:
        user = scope_user(request.scope)
        return UserResponse(
            id=user.id,
            username=user.username,
            full_name=user.full_name,
            capabilities=sorted(user.capabilities),
        )
