from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID
import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from partysnap.clock import utcnow
from partysnap.config import settings
from partysnap.models.challenge import Challenge
from partysnap.models.event import Event
from partysnap.models.participant import Participant
from partysnap.models.submission import Submission
from partysnap.services.assignment import assign_next, lock_participant
from partysnap.services.errors import NotFound, InvalidState
from partysnap.services.media import compress_photo
from partysnap.services.scoring import apply_delta
from partysnap.services.storage import MediaStore, photo_key

log = structlog.get_logger()


@dataclass
class GalleryItem:
    submission: Submission
    participant_name: str
    challenge_title: str


def elapsed_seconds(p: Participant, ch: Challenge, now: datetime) -> int:
    """Seconds since assignment; the full time limit when there is no assignment stamp."""
    if p.challenge_assigned_at is None:
        return int(ch.time_limit)
    return max(0, int((now - p.challenge_assigned_at).total_seconds()))


async def _valid_submission(session: AsyncSession, participant_id: UUID, challenge_id: UUID) -> Submission | None:
    return await session.scalar(
        select(Submission).where(
            Submission.participant_id == participant_id,
            Submission.challenge_id == challenge_id,
            Submission.status == "valid",
        )
    )


async def complete_challenge(
    session: AsyncSession,
    media_store: MediaStore,
    participant_id: UUID,
    challenge_id: UUID,
    photo: bytes,
    filename: str | None = None,
    now: datetime | None = None,
) -> Submission:
    """
    Record a completion and its scoring effects.

    Order matters: the photo is processed and uploaded before anything is
    written, so a processing/upload failure leaves no trace. The writes
    (submission row, aggregate credit, re-assignment) happen in the caller's
    transaction under the participant row lock; if they fail the uploaded
    object is removed again.

    Submitting a challenge that already has a valid submission for this
    participant returns that submission and credits nothing.
    """
    p = await session.get(Participant, participant_id)
    if not p:
        raise NotFound("Participant not found")
    ch = await session.get(Challenge, challenge_id)
    if not ch:
        raise NotFound("Challenge not found")
    if ch.event_id != p.event_id:
        raise InvalidState("Challenge does not belong to the participant's event")
    ev = await session.get(Event, p.event_id)
    if not ev:
        raise NotFound("Event not found")

    existing = await _valid_submission(session, p.id, ch.id)
    if existing:
        log.info("duplicate_completion_ignored", participant_id=str(p.id), challenge_id=str(ch.id), submission_id=str(existing.id))
        return existing

    processed = await run_in_threadpool(
        compress_photo,
        photo,
        quality=ev.compression_quality,
        max_width=ev.compression_max_width,
        max_bytes=settings.max_upload_bytes,
    )
    key = photo_key(ev.id, p.id)
    media_url = await run_in_threadpool(media_store.upload, key, processed.data, processed.mime_type)

    try:
        now = now or utcnow()
        p = await lock_participant(session, participant_id)
        existing = await _valid_submission(session, p.id, ch.id)
        if existing:
            # Lost the race against a duplicate tap; the first one already credited
            await run_in_threadpool(media_store.remove, key)
            return existing

        elapsed = elapsed_seconds(p, ch, now)
        s = Submission(
            participant_id=p.id,
            challenge_id=ch.id,
            media_url=media_url,
            storage_key=key,
            original_filename=filename,
            compressed_size=processed.compressed_size,
            points_awarded=int(ch.points),
            time_taken_seconds=elapsed,
            completed_at=now,
            status="valid",
        )
        session.add(s)
        await session.flush()
        await apply_delta(session, p.id, points=ch.points, seconds=elapsed)

        if ev.timer_mode == "individual":
            await assign_next(session, p.id, now=now)
    except Exception:
        await run_in_threadpool(media_store.remove, key)
        raise

    log.info(
        "challenge_completed",
        participant_id=str(p.id),
        challenge_id=str(ch.id),
        submission_id=str(s.id),
        points=int(ch.points),
        time_taken_seconds=elapsed,
    )
    return s


async def get_submission(session: AsyncSession, submission_id: UUID) -> Submission:
    s = await session.get(Submission, submission_id)
    if not s:
        raise NotFound("Submission not found")
    return s


async def reject_submission(session: AsyncSession, submission_id: UUID, now: datetime | None = None) -> Submission:
    """
    Host moderation: mark a valid submission rejected and reverse its credit
    exactly (points and time). The row is kept. No re-assignment happens
    here; the challenge simply becomes eligible again the next time the
    participant is assigned.
    """
    now = now or utcnow()
    s = await get_submission(session, submission_id)

    # compare-and-swap valid -> rejected; a concurrent second reject matches no row
    res = await session.execute(
        update(Submission)
        .where(Submission.id == submission_id, Submission.status == "valid")
        .values(status="rejected", rejected_at=now)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        raise InvalidState("Submission is already rejected")

    await apply_delta(session, s.participant_id, points=-s.points_awarded, seconds=-s.time_taken_seconds)
    await session.refresh(s)
    log.info(
        "submission_rejected",
        submission_id=str(s.id),
        participant_id=str(s.participant_id),
        points_reversed=int(s.points_awarded),
        seconds_reversed=int(s.time_taken_seconds),
    )
    return s


async def get_completed_for_event(session: AsyncSession, event_id: UUID) -> list[GalleryItem]:
    """Valid submissions of an event, newest first, with names for the gallery."""
    rows = (await session.execute(
        select(Submission, Participant.name, Challenge.title)
        .join(Participant, Participant.id == Submission.participant_id)
        .join(Challenge, Challenge.id == Submission.challenge_id)
        .where(Participant.event_id == event_id, Submission.status == "valid")
        .order_by(Submission.completed_at.desc(), Submission.id.desc())
    )).all()
    return [GalleryItem(s, name, title) for (s, name, title) in rows]


async def list_submissions_for_participant(
    session: AsyncSession, participant_id: UUID, include_rejected: bool = True
) -> list[Submission]:
    q = select(Submission).where(Submission.participant_id == participant_id)
    if not include_rejected:
        q = q.where(Submission.status == "valid")
    q = q.order_by(Submission.completed_at.desc(), Submission.id.desc())
    return list((await session.execute(q)).scalars().all())
