from __future__ import annotations
from dataclasses import dataclass
from uuid import UUID
from fastapi import Depends, Header, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
import jwt
from partysnap.db import get_session
from partysnap.models.event import Event
from partysnap.security import decode_token

security = HTTPBearer()

@dataclass
class HostIdentity:
    sub: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

async def get_current_host(credentials: HTTPAuthorizationCredentials = Depends(security)) -> HostIdentity:
    token = credentials.credentials
    try:
        data = decode_token(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if data.get("type") != "access":
        raise HTTPException(status_code=401, detail="Wrong token type")
    sub = data.get("sub")
    if not sub:
        raise HTTPException(status_code=401, detail="Token has no subject")
    return HostIdentity(sub=str(sub), role=str(data.get("role") or "host"))

async def get_current_admin(host: HostIdentity = Depends(get_current_host)) -> HostIdentity:
    if not host.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return host

async def get_device_id(x_device_id: str = Header(..., alias="X-Device-Id", min_length=1, max_length=128)) -> str:
    """Opaque per-device key used for idempotent re-join. Not an authentication mechanism."""
    return x_device_id

async def require_event_owner(session: AsyncSession, event_id: UUID, host: HostIdentity) -> Event:
    ev = await session.get(Event, event_id)
    if not ev:
        raise HTTPException(status_code=404, detail="Event not found")
    if ev.host_id != host.sub and not host.is_admin:
        raise HTTPException(status_code=403, detail="Only the event host can do this")
    return ev
