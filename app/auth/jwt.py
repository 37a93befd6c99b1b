from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt

from app.core.config import settings

ROLES = ("user", "admin")


class TokenError(Exception):
    pass


def create_access_token(*, sub: str, role: str, expires_minutes: Optional[int] = None) -> str:
    """
    Tokens are normally minted by the identity provider in front of this
    service; this is here for operators and tests sharing JWT_SECRET.
    """
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=expires_minutes or settings.JWT_EXPIRE_MINUTES)

    payload: dict[str, Any] = {
        "sub": sub,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def decode_token(token: str) -> dict[str, Any]:
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    except JWTError as e:
        raise TokenError("invalid token") from e

    if not claims.get("sub"):
        raise TokenError("token has no subject")
    if claims.get("role") not in ROLES:
        raise TokenError("token has no valid role")
    return claims
