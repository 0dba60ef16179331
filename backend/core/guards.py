"""Capability guards for route handlers."""

from litestar.connection import ASGIConnection
from litestar.exceptions import PermissionDeniedException
from litestar.handlers import BaseRouteHandler
from litestar.types import Guard

from core.auth import scope_user


def require_capability(capability: str) -> Guard:
    """Guard that lets the request through only when the user holds ``capability``.

    Capabilities are named ``<area>:<read|write>``, for example::

        @delete("/{client_id:str}", guards=[require_capability("clients:write")])
    """

    async def guard(connection: ASGIConnection, _: BaseRouteHandler) -> None:
        if not scope_user(connection.scope).can(capability):
            raise PermissionDeniedException(detail=f"دسترسی {capability} برای این کاربر تعریف نشده است.")

    return guard
