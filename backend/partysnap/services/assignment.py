from __future__ import annotations
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from partysnap.clock import utcnow
from partysnap.models.challenge import Challenge
from partysnap.models.event import Event
from partysnap.models.participant import Participant
from partysnap.models.submission import Submission
from partysnap.services.errors import NotFound, InvalidState

log = structlog.get_logger()

_rng = random.SystemRandom()


@dataclass
class CurrentChallenge:
    challenge: Challenge | None
    expires_at: datetime | None
    timer_mode: str


async def lock_participant(session: AsyncSession, participant_id: UUID) -> Participant:
    """Load a participant with a row lock; serializes writers for one participant."""
    p = await session.get(Participant, participant_id, with_for_update=True, populate_existing=True)
    if not p:
        raise NotFound("Participant not found")
    return p


async def eligible_challenges(session: AsyncSession, p: Participant) -> list[Challenge]:
    """Event pool minus challenges this participant already has a valid submission for."""
    done = select(Submission.challenge_id).where(
        Submission.participant_id == p.id,
        Submission.status == "valid",
    )
    q = (
        select(Challenge)
        .where(Challenge.event_id == p.event_id, Challenge.id.not_in(done))
        .order_by(Challenge.created_at.asc(), Challenge.id.asc())
    )
    return list((await session.execute(q)).scalars().all())


async def assign_next(
    session: AsyncSession,
    participant_id: UUID,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> Challenge | None:
    """
    Pick the participant's next challenge uniformly at random from the
    eligible pool and stamp assignment/expiry. An empty pool clears the
    assignment (terminal "all done" state). Individual timer mode only.
    """
    now = now or utcnow()
    p = await lock_participant(session, participant_id)
    ev = await session.get(Event, p.event_id)
    if not ev:
        raise NotFound("Event not found")
    if ev.timer_mode != "individual":
        raise InvalidState("Assignment is host-driven in global timer mode")

    pool = await eligible_challenges(session, p)
    if not pool:
        p.current_challenge_id = None
        p.challenge_assigned_at = None
        p.challenge_expires_at = None
        await session.flush()
        log.info("challenges_exhausted", participant_id=str(p.id), event_id=str(ev.id))
        return None

    ch = (rng or _rng).choice(pool)
    p.current_challenge_id = ch.id
    p.challenge_assigned_at = now
    p.challenge_expires_at = now + timedelta(seconds=ch.time_limit)
    await session.flush()
    log.info(
        "challenge_assigned",
        participant_id=str(p.id),
        challenge_id=str(ch.id),
        expires_at=p.challenge_expires_at.isoformat(),
        eligible=len(pool),
    )
    return ch


async def start_global_challenge(
    session: AsyncSession,
    event_id: UUID,
    challenge_id: UUID,
    now: datetime | None = None,
) -> Event:
    """Put every participant of a global-mode event on `challenge_id`. Last writer wins."""
    now = now or utcnow()
    ev = await session.get(Event, event_id)
    if not ev:
        raise NotFound("Event not found")
    if ev.timer_mode != "global":
        raise InvalidState("Event is not in global timer mode")
    ch = await session.get(Challenge, challenge_id)
    if not ch or ch.event_id != ev.id:
        raise NotFound("Challenge not found for this event")

    previous = ev.current_global_challenge_id
    ev.current_global_challenge_id = ch.id
    ev.global_challenge_expires_at = now + timedelta(seconds=ch.time_limit)
    await session.flush()
    log.info(
        "global_challenge_started",
        event_id=str(ev.id),
        challenge_id=str(ch.id),
        replaced=str(previous) if previous else None,
        expires_at=ev.global_challenge_expires_at.isoformat(),
    )
    return ev


async def current_challenge(
    session: AsyncSession,
    participant_id: UUID,
    now: datetime | None = None,
) -> CurrentChallenge:
    """
    What the participant should be working on right now.

    Stored expiry is compared with server time here and only here: an
    expired individual assignment is refreshed, an expired global challenge
    reads as none until the host starts the next one. An unassigned
    participant is assigned as soon as the eligible pool is non-empty again;
    an exhausted pool reads as none.
    """
    now = now or utcnow()
    p = await session.get(Participant, participant_id)
    if not p:
        raise NotFound("Participant not found")
    ev = await session.get(Event, p.event_id)
    if not ev:
        raise NotFound("Event not found")

    if ev.timer_mode == "global":
        if not ev.current_global_challenge_id:
            return CurrentChallenge(None, None, "global")
        if ev.global_challenge_expires_at and ev.global_challenge_expires_at <= now:
            return CurrentChallenge(None, None, "global")
        ch = await session.get(Challenge, ev.current_global_challenge_id)
        return CurrentChallenge(ch, ev.global_challenge_expires_at, "global")

    if not p.current_challenge_id:
        # Cleared by a challenge delete, or the pool grew since (new challenge, a rejection)
        if ev.status == "completed" or not await eligible_challenges(session, p):
            return CurrentChallenge(None, None, "individual")
        log.info("assignment_resumed", participant_id=str(p.id))
        ch = await assign_next(session, p.id, now=now)
        return CurrentChallenge(ch, p.challenge_expires_at, "individual")
    if p.challenge_expires_at and p.challenge_expires_at <= now:
        log.info("assignment_expired", participant_id=str(p.id), challenge_id=str(p.current_challenge_id))
        ch = await assign_next(session, p.id, now=now)
        return CurrentChallenge(ch, p.challenge_expires_at, "individual")
    ch = await session.get(Challenge, p.current_challenge_id)
    return CurrentChallenge(ch, p.challenge_expires_at, "individual")
