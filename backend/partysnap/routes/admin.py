from __future__ import annotations
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from partysnap.db import get_session
from partysnap.auth_deps import HostIdentity, get_current_admin
from partysnap.schemas.access_code import AccessCodeCreate, AccessCodePublic
from partysnap.services.events import generate_access_code, list_access_codes

router = APIRouter(prefix="/admin", tags=["admin"])

@router.post("/access-codes", response_model=AccessCodePublic, status_code=201)
async def create_access_code(
    payload: AccessCodeCreate,
    session: AsyncSession = Depends(get_session),
    admin: HostIdentity = Depends(get_current_admin),
):
    ac = await generate_access_code(session, payload.prefix)
    await session.commit()
    return AccessCodePublic(id=ac.id, code=ac.code, created_at=ac.created_at)

@router.get("/access-codes", response_model=list[AccessCodePublic])
async def get_access_codes(session: AsyncSession = Depends(get_session), admin: HostIdentity = Depends(get_current_admin)):
    rows = await list_access_codes(session)
    return [
        AccessCodePublic(
            id=r.code.id,
            code=r.code.code,
            created_at=r.code.created_at,
            event_id=r.code.event_id,
            consumed_at=r.code.consumed_at,
            event_title=r.event_title,
            event_status=r.event_status,
            host_id=r.host_id,
        ) for r in rows
    ]
