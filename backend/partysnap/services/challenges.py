from __future__ import annotations
from typing import Any, Iterable
from uuid import UUID
import structlog
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from partysnap.models.challenge import Challenge
from partysnap.models.event import Event
from partysnap.models.participant import Participant
from partysnap.models.submission import Submission
from partysnap.services.errors import NotFound, InvalidState

log = structlog.get_logger()

EDITABLE_FIELDS = ("title", "description", "difficulty", "points", "time_limit", "is_special")


async def get_challenge(session: AsyncSession, challenge_id: UUID) -> Challenge:
    ch = await session.get(Challenge, challenge_id)
    if not ch:
        raise NotFound("Challenge not found")
    return ch


async def get_challenges_for_event(session: AsyncSession, event_id: UUID) -> list[Challenge]:
    q = select(Challenge).where(Challenge.event_id == event_id).order_by(Challenge.created_at.asc(), Challenge.id.asc())
    return list((await session.execute(q)).scalars().all())


async def add_challenges(session: AsyncSession, event_id: UUID, items: Iterable[dict[str, Any]]) -> list[Challenge]:
    if not await session.get(Event, event_id):
        raise NotFound("Event not found")
    created = [Challenge(event_id=event_id, **{k: v for k, v in data.items() if k in EDITABLE_FIELDS}) for data in items]
    session.add_all(created)
    await session.flush()
    log.info("challenges_added", event_id=str(event_id), count=len(created))
    return created


async def add_challenge(session: AsyncSession, event_id: UUID, data: dict[str, Any]) -> Challenge:
    return (await add_challenges(session, event_id, [data]))[0]


async def update_challenge(session: AsyncSession, challenge_id: UUID, data: dict[str, Any]) -> Challenge:
    """Edit in place. Submissions keep their own points/time snapshot, so history is unaffected."""
    ch = await get_challenge(session, challenge_id)
    for k, v in data.items():
        if k in EDITABLE_FIELDS:
            setattr(ch, k, v)
    await session.flush()
    log.info("challenge_updated", challenge_id=str(ch.id), fields=sorted(k for k in data if k in EDITABLE_FIELDS))
    return ch


async def delete_challenge(session: AsyncSession, challenge_id: UUID) -> None:
    """Remove a challenge nobody has submitted yet; current assignments pointing at it are cleared."""
    ch = await get_challenge(session, challenge_id)
    refs = await session.scalar(select(func.count()).select_from(Submission).where(Submission.challenge_id == ch.id))
    if refs:
        raise InvalidState("Challenge has submissions and cannot be deleted")

    await session.execute(
        update(Participant)
        .where(Participant.current_challenge_id == ch.id)
        .values(current_challenge_id=None, challenge_assigned_at=None, challenge_expires_at=None)
        .execution_options(synchronize_session=False)
    )
    await session.execute(
        update(Event)
        .where(Event.current_global_challenge_id == ch.id)
        .values(current_global_challenge_id=None, global_challenge_expires_at=None)
        .execution_options(synchronize_session=False)
    )
    await session.delete(ch)
    await session.flush()
    log.info("challenge_deleted", challenge_id=str(challenge_id), event_id=str(ch.event_id))
