"""Caller identity supplied by the fronting auth proxy.

Authentication itself happens upstream; the proxy forwards the signed-in
user's id and role as trusted headers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from fastapi import Depends, Header, HTTPException

USER_ID_HEADER = "X-User-Id"
USER_ROLE_HEADER = "X-User-Role"


class Role(str, Enum):
    USER = "USER"
    SUPER_ADMIN = "SUPER_ADMIN"


@dataclass(frozen=True, slots=True)
class Identity:
    user_id: str
    role: str = Role.USER.value

    @property
    def is_admin(self) -> bool:
        return self.role == Role.SUPER_ADMIN.value


def current_identity(
    user_id: str | None = Header(None, alias=USER_ID_HEADER),
    role: str | None = Header(None, alias=USER_ROLE_HEADER),
) -> Identity:
    user_id = (user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return Identity(user_id=user_id, role=(role or Role.USER.value).strip().upper())


def require_admin(identity: Identity = Depends(current_identity)) -> Identity:
    if not identity.is_admin:
        raise HTTPException(status_code=403, detail="Forbidden")
    return identity


__all__ = ["Identity", "Role", "current_identity", "require_admin"]
