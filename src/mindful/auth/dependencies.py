"""FastAPI authentication dependencies.

Every service call receives the caller's identity explicitly; nothing reads
authentication state from a global.
"""

from __future__ import annotations

from dataclasses import dataclass

import jwt
from fastapi import HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from mindful.auth.jwt import verify_token

_bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller."""

    user_id: str
    email: str | None = None
    role: str = "authenticated"


async def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer),
) -> Identity:
    """Extract and verify the bearer JWT. Raises 401 on failure."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = verify_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    return Identity(
        user_id=str(payload["sub"]),
        email=payload.get("email"),
        role=payload.get("role", "authenticated"),
    )
