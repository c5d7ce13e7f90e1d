"""Bearer token handling.

Tokens are issued by the identity provider and signed with the shared
`jwt_secret`. `sub` carries the user id and `name`, when present, seeds the
profile display name. `create_access_token` exists for local tooling and tests.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from fitchallenge.core.config import settings


@dataclass(frozen=True)
class TokenIdentity:
    user_id: str
    display_name: str | None = None


def create_access_token(
    user_id: str,
    *,
    display_name: str | None = None,
    expires_minutes: int | None = None,
) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes or settings.jwt_expire_minutes),
    }
    if display_name:
        payload["name"] = display_name
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Decode and validate a JWT. Returns payload or None if invalid."""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def identity_from_token(token: str) -> TokenIdentity | None:
    payload = decode_access_token(token)
    if not payload or not payload.get("sub"):
        return None
    name = payload.get("name")
    return TokenIdentity(user_id=str(payload["sub"]), display_name=name if isinstance(name, str) else None)
