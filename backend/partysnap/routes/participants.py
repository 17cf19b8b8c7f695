from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from partysnap.clock import utcnow
from partysnap.db import get_session
from partysnap.auth_deps import HostIdentity, get_current_host, get_device_id, require_event_owner
from partysnap.schemas.challenge import ChallengePublic, CurrentChallengePublic
from partysnap.schemas.participant import (
    ParticipantJoin, ParticipantPublic, LeaderboardRow, ScoreAdjustment, ScoreAdjustmentResult,
)
from partysnap.services import participants as participant_service
from partysnap.services.assignment import current_challenge
from partysnap.services.events import get_event
from partysnap.services.scoring import adjust_score

router = APIRouter(tags=["participants"])

@router.post("/events/{event_id}/participants", response_model=ParticipantPublic)
async def join_event(
    event_id: UUID,
    payload: ParticipantJoin,
    response: Response,
    session: AsyncSession = Depends(get_session),
    device_id: str = Depends(get_device_id),
):
    p, created = await participant_service.create_participant(session, event_id, payload.name, device_id)
    await session.commit()
    response.status_code = 201 if created else 200
    return ParticipantPublic.model_validate(p)

@router.get("/events/{event_id}/participants", response_model=list[LeaderboardRow])
async def leaderboard(event_id: UUID, session: AsyncSession = Depends(get_session)):
    await get_event(session, event_id)
    rows = await participant_service.get_participants_for_event(session, event_id)
    return [
        LeaderboardRow(position=i, **ParticipantPublic.model_validate(p).model_dump())
        for i, p in enumerate(rows, start=1)
    ]

@router.get("/participants/{participant_id}", response_model=ParticipantPublic)
async def get_participant(participant_id: UUID, session: AsyncSession = Depends(get_session)):
    return ParticipantPublic.model_validate(await participant_service.get_participant(session, participant_id))

@router.get("/participants/{participant_id}/current-challenge", response_model=CurrentChallengePublic)
async def get_current_challenge(participant_id: UUID, session: AsyncSession = Depends(get_session)):
    now = utcnow()
    cur = await current_challenge(session, participant_id, now=now)
    # The read may have refreshed an expired assignment or assigned an idle guest
    await session.commit()
    seconds_left = max(0, int((cur.expires_at - now).total_seconds())) if cur.expires_at else None
    return CurrentChallengePublic(
        timer_mode=cur.timer_mode,
        challenge=ChallengePublic.model_validate(cur.challenge) if cur.challenge else None,
        expires_at=cur.expires_at,
        seconds_left=seconds_left,
    )

@router.post("/participants/{participant_id}/score-adjustments", response_model=ScoreAdjustmentResult)
async def adjust_participant_score(
    participant_id: UUID,
    payload: ScoreAdjustment,
    session: AsyncSession = Depends(get_session),
    host: HostIdentity = Depends(get_current_host),
):
    p = await participant_service.get_participant(session, participant_id)
    await require_event_owner(session, p.event_id, host)
    total = await adjust_score(session, participant_id, payload.delta)
    await session.commit()
    return ScoreAdjustmentResult(participant_id=participant_id, delta=payload.delta, total_points=total)

@router.delete("/participants/{participant_id}", status_code=204)
async def kick_participant(
    participant_id: UUID,
    session: AsyncSession = Depends(get_session),
    host: HostIdentity = Depends(get_current_host),
):
    p = await participant_service.get_participant(session, participant_id)
    await require_event_owner(session, p.event_id, host)
    await participant_service.delete_participant(session, participant_id)
    await session.commit()
    return Response(status_code=204)
