from __future__ import annotations
import random
from datetime import datetime
from uuid import UUID
import structlog
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from partysnap.clock import utcnow
from partysnap.models.event import Event
from partysnap.models.participant import Participant
from partysnap.services.assignment import assign_next
from partysnap.services.errors import NotFound, InvalidState
from partysnap.services.scoring import rank

log = structlog.get_logger()

AVATAR_EMOJIS = ["🥳", "😎", "🤩", "🎉", "📸", "✨"]


def random_avatar() -> tuple[str, str]:
    return f"#{random.randrange(0x1000000):06x}", random.choice(AVATAR_EMOJIS)


async def get_participant(session: AsyncSession, participant_id: UUID) -> Participant:
    p = await session.get(Participant, participant_id)
    if not p:
        raise NotFound("Participant not found")
    return p


async def _by_device(session: AsyncSession, event_id: UUID, device_id: str) -> Participant | None:
    return await session.scalar(
        select(Participant).where(Participant.event_id == event_id, Participant.device_id == device_id)
    )


async def create_participant(
    session: AsyncSession,
    event_id: UUID,
    name: str,
    device_id: str,
    now: datetime | None = None,
) -> tuple[Participant, bool]:
    """
    Join an event, or re-join it from the same device.

    Returns (participant, created). A re-join keeps name, totals and any
    current assignment; an unassigned individual-mode participant is offered
    a challenge again if one is eligible. A fresh individual-mode participant
    gets a first challenge right away. New guests count against
    `max_participants`; returning ones do not.
    """
    now = now or utcnow()
    ev = await session.get(Event, event_id)
    if not ev:
        raise NotFound("Event not found")

    existing = await _by_device(session, ev.id, device_id)
    if existing:
        log.info("participant_rejoined", participant_id=str(existing.id), event_id=str(ev.id))
        if ev.timer_mode == "individual" and ev.status != "completed" and not existing.current_challenge_id:
            await assign_next(session, existing.id, now=now)
        return existing, False
    if ev.status == "completed":
        raise InvalidState("Event has ended")
    joined = await session.scalar(
        select(func.count()).select_from(Participant).where(Participant.event_id == ev.id)
    )
    if joined >= ev.max_participants:
        raise InvalidState(f"Event is full ({ev.max_participants} participants)")

    color, emoji = random_avatar()
    p = Participant(event_id=ev.id, name=name, device_id=device_id, avatar_color=color, avatar_emoji=emoji, joined_at=now)
    session.add(p)
    try:
        await session.flush()
    except IntegrityError:
        # Concurrent first join from the same device won the unique constraint
        await session.rollback()
        existing = await _by_device(session, event_id, device_id)
        if not existing:
            raise
        return existing, False

    if ev.timer_mode == "individual":
        await assign_next(session, p.id, now=now)
    log.info("participant_joined", participant_id=str(p.id), event_id=str(ev.id), timer_mode=ev.timer_mode)
    return p, True


async def get_participants_for_event(session: AsyncSession, event_id: UUID) -> list[Participant]:
    """Leaderboard order."""
    rows = (await session.execute(select(Participant).where(Participant.event_id == event_id))).scalars().all()
    return rank(rows)


async def delete_participant(session: AsyncSession, participant_id: UUID) -> None:
    """Host kick; the participant's submissions go with it."""
    p = await get_participant(session, participant_id)
    await session.delete(p)
    await session.flush()
    log.info("participant_deleted", participant_id=str(participant_id), event_id=str(p.event_id))
