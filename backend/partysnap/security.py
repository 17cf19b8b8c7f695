from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any
import jwt
from partysnap.config import settings

JWT_ALG = "HS256"

def _make_token(sub: str, ttl_min: int, token_type: str, role: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": sub,
        "type": token_type,
        "role": role,
        "iat": now.timestamp(),  # Use float for microsecond precision
        "exp": int((now + timedelta(minutes=ttl_min)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=JWT_ALG)

def make_access_token(sub: str, role: str = "host") -> str:
    """Host tokens normally come from the identity provider; this mints compatible ones (dev, tests)."""
    return _make_token(sub, settings.access_ttl_min, "access", role)

def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALG])
