from typing import Protocol

from spaceborn.core.security import decode_token
from spaceborn.models.actor import Actor, UserRole


class IIdentityProvider(Protocol):
    """Resolves a bearer token into the acting user"""

    async def current_actor(self, token: str) -> Actor:
        ...


class JWTIdentityProvider:
    """Identity from a signed access token (sub, role, name claims)"""

    async def current_actor(self, token: str) -> Actor:
        payload = decode_token(token)
        if not payload or payload.get("type") != "access":
            raise ValueError("INVALID_TOKEN")

        user_id = payload.get("sub")
        if not user_id:
            raise ValueError("INVALID_TOKEN")

        try:
            role = UserRole(payload.get("role", UserRole.GUEST.value))
        except ValueError:
            raise ValueError("INVALID_TOKEN")

        return Actor(id=user_id, role=role, name=payload.get("name"))
