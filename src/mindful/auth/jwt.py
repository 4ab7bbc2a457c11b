"""
HS256 JWT verification.

Access tokens are issued by the platform's identity provider and signed with a
shared secret. The `sub` claim is the profile id; `aud` must match the
configured audience. This service never issues tokens.
"""

from __future__ import annotations

from typing import Any

import jwt

from mindful.config import get_settings


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify and decode an access token.

    Raises:
        jwt.InvalidTokenError: If the token is invalid, expired, for another
            audience, or has no subject.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if not payload.get("sub"):
        msg = "Token has no subject"
        raise jwt.InvalidTokenError(msg)

    return payload
