from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from partysnap.db import get_session
from partysnap.auth_deps import HostIdentity, get_current_host, require_event_owner
from partysnap.schemas.event import (
    EventCreate, EventPublic, EventLookupPublic, EventStatusUpdate, GlobalChallengeStart,
)
from partysnap.services import events as event_service
from partysnap.services.assignment import start_global_challenge

router = APIRouter(prefix="/events", tags=["events"])

@router.post("", response_model=EventPublic, status_code=201)
async def create_event(
    payload: EventCreate,
    session: AsyncSession = Depends(get_session),
    host: HostIdentity = Depends(get_current_host),
):
    ev = await event_service.create_event(
        session,
        host.sub,
        title=payload.title,
        description=payload.description,
        type=payload.type,
        timer_mode=payload.timer_mode,
        start_time=payload.start_time,
        end_time=payload.end_time,
        max_participants=payload.max_participants,
        access_code=payload.access_code,
    )
    await session.commit()
    return EventPublic.model_validate(ev)

@router.get("/mine", response_model=list[EventPublic])
async def list_my_events(session: AsyncSession = Depends(get_session), host: HostIdentity = Depends(get_current_host)):
    rows = await event_service.list_events_for_host(session, host.sub)
    return [EventPublic.model_validate(e) for e in rows]

@router.get("/lookup/{code}", response_model=EventLookupPublic)
async def lookup_by_code(code: str, session: AsyncSession = Depends(get_session)):
    found = await event_service.find_event_by_code(session, code)
    return EventLookupPublic(
        event=EventPublic.model_validate(found.event) if found.event else None,
        reason=found.reason,
    )

@router.get("/{event_id}", response_model=EventPublic)
async def get_event(event_id: UUID, session: AsyncSession = Depends(get_session)):
    return EventPublic.model_validate(await event_service.get_event(session, event_id))

@router.patch("/{event_id}/status", response_model=EventPublic)
async def update_status(
    event_id: UUID,
    payload: EventStatusUpdate,
    session: AsyncSession = Depends(get_session),
    host: HostIdentity = Depends(get_current_host),
):
    await require_event_owner(session, event_id, host)
    ev = await event_service.set_event_status(session, event_id, payload.status)
    await session.commit()
    return EventPublic.model_validate(ev)

@router.delete("/{event_id}", status_code=204)
async def delete_event(
    event_id: UUID,
    session: AsyncSession = Depends(get_session),
    host: HostIdentity = Depends(get_current_host),
):
    await require_event_owner(session, event_id, host)
    await event_service.delete_event(session, event_id)
    await session.commit()
    return Response(status_code=204)

@router.post("/{event_id}/global-challenge", response_model=EventPublic)
async def start_global(
    event_id: UUID,
    payload: GlobalChallengeStart,
    session: AsyncSession = Depends(get_session),
    host: HostIdentity = Depends(get_current_host),
):
    await require_event_owner(session, event_id, host)
    ev = await start_global_challenge(session, event_id, payload.challenge_id)
    await session.commit()
    return EventPublic.model_validate(ev)
