from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from partysnap.db import get_session
from partysnap.auth_deps import HostIdentity, get_current_host, require_event_owner
from partysnap.schemas.challenge import (
    ChallengeCreate, ChallengeUpdate, ChallengeBulkCreate, ChallengePublic, ChallengeTemplatePublic,
)
from partysnap.services import challenges as challenge_service
from partysnap.services import templates as template_service
from partysnap.services.templates import TEMPLATES
from partysnap.services.events import get_event

router = APIRouter(tags=["challenges"])

@router.get("/events/{event_id}/challenges", response_model=list[ChallengePublic])
async def list_challenges(event_id: UUID, session: AsyncSession = Depends(get_session)):
    await get_event(session, event_id)
    rows = await challenge_service.get_challenges_for_event(session, event_id)
    return [ChallengePublic.model_validate(c) for c in rows]

@router.post("/events/{event_id}/challenges", response_model=ChallengePublic, status_code=201)
async def add_challenge(
    event_id: UUID,
    payload: ChallengeCreate,
    session: AsyncSession = Depends(get_session),
    host: HostIdentity = Depends(get_current_host),
):
    await require_event_owner(session, event_id, host)
    ch = await challenge_service.add_challenge(session, event_id, payload.model_dump())
    await session.commit()
    return ChallengePublic.model_validate(ch)

@router.post("/events/{event_id}/challenges/bulk", response_model=list[ChallengePublic], status_code=201)
async def add_challenges(
    event_id: UUID,
    payload: ChallengeBulkCreate,
    session: AsyncSession = Depends(get_session),
    host: HostIdentity = Depends(get_current_host),
):
    await require_event_owner(session, event_id, host)
    rows = await challenge_service.add_challenges(session, event_id, [c.model_dump() for c in payload.challenges])
    await session.commit()
    return [ChallengePublic.model_validate(c) for c in rows]

@router.get("/challenges/{challenge_id}", response_model=ChallengePublic)
async def get_challenge(challenge_id: UUID, session: AsyncSession = Depends(get_session)):
    return ChallengePublic.model_validate(await challenge_service.get_challenge(session, challenge_id))

@router.put("/challenges/{challenge_id}", response_model=ChallengePublic)
async def update_challenge(
    challenge_id: UUID,
    payload: ChallengeUpdate,
    session: AsyncSession = Depends(get_session),
    host: HostIdentity = Depends(get_current_host),
):
    ch = await challenge_service.get_challenge(session, challenge_id)
    await require_event_owner(session, ch.event_id, host)
    ch = await challenge_service.update_challenge(session, challenge_id, payload.model_dump(exclude_none=True))
    await session.commit()
    return ChallengePublic.model_validate(ch)

@router.delete("/challenges/{challenge_id}", status_code=204)
async def delete_challenge(
    challenge_id: UUID,
    session: AsyncSession = Depends(get_session),
    host: HostIdentity = Depends(get_current_host),
):
    ch = await challenge_service.get_challenge(session, challenge_id)
    await require_event_owner(session, ch.event_id, host)
    await challenge_service.delete_challenge(session, challenge_id)
    await session.commit()
    return Response(status_code=204)

@router.get("/challenge-templates", response_model=list[ChallengeTemplatePublic])
async def list_templates():
    return [
        ChallengeTemplatePublic(key=t.key, label=t.label, challenges=[c.as_new() for c in t.challenges])
        for t in TEMPLATES.values()
    ]

@router.post("/events/{event_id}/challenges/templates/{key}", response_model=list[ChallengePublic], status_code=201)
async def apply_template(
    event_id: UUID,
    key: str,
    session: AsyncSession = Depends(get_session),
    host: HostIdentity = Depends(get_current_host),
):
    await require_event_owner(session, event_id, host)
    rows = await template_service.apply_template(session, event_id, key)
    await session.commit()
    return [ChallengePublic.model_validate(c) for c in rows]
