from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.auth.jwt import TokenError, decode_token

log = logging.getLogger("app.auth")

bearer = HTTPBearer(
    auto_error=False,
    bearerFormat="JWT",
    description="JWT Authorization header using the Bearer scheme. Example: 'Authorization: Bearer <token>'",
)


@dataclass(frozen=True)
class Caller:
    id: str
    role: str


def get_current_caller(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> Caller:
    if creds is None or creds.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing token")

    try:
        claims = decode_token(creds.credentials)
    except TokenError as e:
        log.info("token rejected", extra={"reason": str(e)})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid token")

    return Caller(id=str(claims["sub"]), role=claims["role"])
