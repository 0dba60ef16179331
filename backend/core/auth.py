"""The signed-in user carried in the ASGI scope."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from litestar import Request
from litestar.exceptions import NotAuthorizedException


SESSION_COOKIE = "session_id"
NOT_SIGNED_IN = "احراز هویت انجام نشده است."


@dataclass
class AuthenticatedUser:
    id: str
    username: str
    full_name: str | None
    capabilities: set[str] = field(default_factory=set)

    def can(self, capability: str) -> bool:
        return capability in self.capabilities


def scope_user(scope: Mapping[str, Any]) -> AuthenticatedUser:
    """The user the session middleware placed in ``scope``, or 401."""
    user = scope.get("user")
    if not isinstance(user, AuthenticatedUser):
        raise NotAuthorizedException(detail=NOT_SIGNED_IN)
    return user


async def provide_current_user(request: Request) -> AuthenticatedUser:
    return scope_user(request.scope)
