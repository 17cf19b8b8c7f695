from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Literal
from uuid import UUID
import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from partysnap.clock import utcnow
from partysnap.config import settings
from partysnap.models.event import Event, AccessCode
from partysnap.services.errors import NotFound, InvalidState, InvalidCode, CodeAlreadyUsed, ConcurrencyConflict
from partysnap.services.invite_code import generate_code, normalize_code, access_code_for

log = structlog.get_logger()

LookupReason = Literal["not_found", "not_yet_started", "ended"]
EVENT_STATUSES = ("pending", "active", "completed")


@dataclass
class EventLookup:
    event: Event | None
    reason: LookupReason | None = None


@dataclass
class AccessCodeRow:
    code: AccessCode
    event_title: str | None
    event_status: str | None
    host_id: str | None


# ---------- license gate ----------

def is_bypass_code(code: str) -> bool:
    """Test escape hatch: codes with the configured prefix need not be issued first."""
    prefix = settings.access_code_bypass_prefix
    return bool(prefix) and code.startswith(prefix.upper())


async def generate_access_code(session: AsyncSession, prefix: str) -> AccessCode:
    """Issue a new unconsumed code `PREFIX-XXXXXX` (retry on collision)."""
    for _ in range(5):
        code = access_code_for(prefix or "PS", settings.access_code_length)
        exists = await session.scalar(select(AccessCode.id).where(AccessCode.code == code))
        if exists:
            continue
        ac = AccessCode(code=code)
        session.add(ac)
        await session.flush()
        log.info("access_code_generated", code=code)
        return ac
    raise ConcurrencyConflict("Failed to generate unique access code")


async def list_access_codes(session: AsyncSession) -> list[AccessCodeRow]:
    rows = (await session.execute(
        select(AccessCode, Event.title, Event.status, Event.host_id)
        .outerjoin(Event, Event.id == AccessCode.event_id)
        .order_by(AccessCode.created_at.desc(), AccessCode.code.asc())
    )).all()
    return [AccessCodeRow(ac, title, status, host) for (ac, title, status, host) in rows]


async def _unique_join_code(session: AsyncSession) -> str:
    for _ in range(5):
        code = generate_code(settings.join_code_length)
        taken = await session.scalar(select(Event.id).where(Event.join_code == code))
        if not taken:
            return code
    raise ConcurrencyConflict("Failed to generate unique join code")


async def create_event(
    session: AsyncSession,
    host_id: str,
    *,
    title: str,
    access_code: str,
    description: str | None = None,
    type: str = "other",
    timer_mode: str = "individual",
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    max_participants: int = 50,
    now: datetime | None = None,
) -> Event:
    """
    Create an event, consuming `access_code`.

    The code is bound with a conditional UPDATE (only while unbound) inside
    the same transaction as the event insert: both land or neither does.
    """
    now = now or utcnow()
    code = normalize_code(access_code)
    if not code:
        raise InvalidCode("Invalid access code")
    if start_time and end_time and end_time <= start_time:
        raise InvalidState("end_time must be after start_time")

    ac = await session.scalar(
        select(AccessCode).where(AccessCode.code == code).execution_options(populate_existing=True)
    )
    if ac is None:
        if not is_bypass_code(code):
            raise InvalidCode("Invalid access code")
        ac = AccessCode(code=code)
        session.add(ac)
        await session.flush()
    elif ac.event_id is not None:
        raise CodeAlreadyUsed("Access code is already in use by another event")

    ev = Event(
        host_id=host_id,
        title=title,
        description=description,
        type=type,
        timer_mode=timer_mode,
        join_code=await _unique_join_code(session),
        status="active",
        start_time=start_time,
        end_time=end_time,
        max_participants=max_participants,
        compression_quality=settings.compression_quality,
        compression_max_width=settings.compression_max_width,
        created_at=now,
    )
    session.add(ev)
    await session.flush()

    res = await session.execute(
        update(AccessCode)
        .where(AccessCode.id == ac.id, AccessCode.event_id.is_(None))
        .values(event_id=ev.id, consumed_at=now)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        # Someone else consumed it between our read and this write
        raise CodeAlreadyUsed("Access code is already in use by another event")
    log.info("event_created", event_id=str(ev.id), host_id=host_id, join_code=ev.join_code, timer_mode=timer_mode)
    return ev


# ---------- directory ----------

async def get_event(session: AsyncSession, event_id: UUID) -> Event:
    ev = await session.get(Event, event_id)
    if not ev:
        raise NotFound("Event not found")
    return ev


async def list_events_for_host(session: AsyncSession, host_id: str) -> list[Event]:
    q = select(Event).where(Event.host_id == host_id).order_by(Event.created_at.desc())
    return list((await session.execute(q)).scalars().all())


async def find_event_by_code(session: AsyncSession, code: str, now: datetime | None = None) -> EventLookup:
    """Case-insensitive join code lookup, gated by status and the optional start/end window."""
    now = now or utcnow()
    ev = await session.scalar(select(Event).where(Event.join_code == normalize_code(code)))
    if not ev:
        return EventLookup(None, "not_found")
    if ev.status == "completed":
        return EventLookup(None, "ended")
    if ev.status == "pending" or (ev.start_time and ev.start_time > now):
        return EventLookup(None, "not_yet_started")
    if ev.end_time and ev.end_time < now:
        return EventLookup(None, "ended")
    return EventLookup(ev)


async def set_event_status(session: AsyncSession, event_id: UUID, status: str) -> Event:
    if status not in EVENT_STATUSES:
        raise InvalidState(f"Unknown event status {status!r}")
    ev = await get_event(session, event_id)
    prev = ev.status
    ev.status = status
    await session.flush()
    log.info("event_status_changed", event_id=str(ev.id), previous=prev, status=status)
    return ev


async def delete_event(session: AsyncSession, event_id: UUID) -> None:
    """Delete an event; challenges, participants and submissions cascade, the access code is freed."""
    ev = await get_event(session, event_id)
    # Release explicitly too; the FK does the same on backends enforcing it
    await session.execute(
        update(AccessCode)
        .where(AccessCode.event_id == ev.id)
        .values(event_id=None, consumed_at=None)
        .execution_options(synchronize_session=False)
    )
    await session.delete(ev)
    await session.flush()
    log.info("event_deleted", event_id=str(event_id))
