"""Test helpers shared by the API tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from mindful.config import get_settings

USER_ID = "11111111-1111-1111-1111-111111111111"


def create_access_token(
    user_id: str,
    email: str | None = None,
    role: str = "authenticated",
    expires_minutes: int = 60,
    audience: str | None = None,
) -> str:
    """Sign a token the way the identity provider does."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "role": role,
        "aud": audience or settings.jwt_audience,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def auth_headers(user_id: str = USER_ID, email: str | None = "ana@example.com") -> dict[str, str]:
    """Bearer header carrying a freshly signed access token."""
    return {"Authorization": f"Bearer {create_access_token(user_id, email=email)}"}
