from __future__ import annotations
from typing import Iterable, Protocol
from uuid import UUID
import structlog
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from partysnap.models.participant import Participant
from partysnap.models.submission import Submission
from partysnap.services.errors import NotFound

log = structlog.get_logger()


class Rankable(Protocol):
    id: UUID
    total_points: int
    total_time_taken_seconds: int


def rank_key(p: Rankable) -> tuple[int, int, str]:
    return (-int(p.total_points), int(p.total_time_taken_seconds), str(p.id))


def rank(participants: Iterable[Rankable]) -> list:
    """Most points first; less total time wins ties; participant id settles exact ties."""
    return sorted(participants, key=rank_key)


async def apply_delta(session: AsyncSession, participant_id: UUID, *, points: int = 0, seconds: int = 0) -> None:
    """
    Atomic in-database increment of the aggregates. Never read-modify-write
    from an in-memory copy: concurrent credits/reversals must not lose updates.
    """
    res = await session.execute(
        update(Participant)
        .where(Participant.id == participant_id)
        .values(
            total_points=Participant.total_points + int(points),
            total_time_taken_seconds=Participant.total_time_taken_seconds + int(seconds),
        )
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        raise NotFound("Participant not found")


async def adjust_score(session: AsyncSession, participant_id: UUID, delta: int) -> int:
    """Host override: add `delta` (may be negative) to total_points. No clamping."""
    await apply_delta(session, participant_id, points=delta)
    total = await session.scalar(select(Participant.total_points).where(Participant.id == participant_id))
    log.info("score_adjusted", participant_id=str(participant_id), delta=int(delta), total_points=int(total))
    return int(total)


async def recompute_totals(session: AsyncSession, participant_id: UUID) -> tuple[int, int]:
    """(points, seconds) summed from valid submissions only; manual adjustments are not included."""
    row = (await session.execute(
        select(
            func.coalesce(func.sum(Submission.points_awarded), 0),
            func.coalesce(func.sum(Submission.time_taken_seconds), 0),
        ).where(Submission.participant_id == participant_id, Submission.status == "valid")
    )).one()
    return int(row[0]), int(row[1])
