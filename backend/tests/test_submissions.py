import threading
from datetime import timedelta
import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from partysnap.models.participant import Participant
from partysnap.models.submission import Submission
from partysnap.services import submissions as submission_service
from partysnap.services.errors import InvalidState, ProcessingError, UploadError
from partysnap.services.participants import create_participant
from partysnap.services.scoring import recompute_totals
from partysnap.services.submissions import (
    complete_challenge, reject_submission, get_completed_for_event, list_submissions_for_participant,
)
from helpers import T0, jpeg_bytes, make_event, make_challenges


async def _reload(session, participant_id):
    return await session.get(Participant, participant_id, populate_existing=True)


async def _submission_count(session, participant_id):
    return await session.scalar(
        select(func.count()).select_from(Submission).where(Submission.participant_id == participant_id)
    )


@pytest.mark.asyncio
async def test_completion_credits_points_and_elapsed_time(session, media_store):
    ev = await make_event(session)
    await make_challenges(session, ev.id, ("A", 10, 60), ("B", 20, 90))
    p, _ = await create_participant(session, ev.id, "Ana", "dev-1", now=T0)
    cid = p.current_challenge_id

    s = await complete_challenge(
        session, media_store, p.id, cid, jpeg_bytes(2400, 1600), filename="cake.jpg", now=T0 + timedelta(seconds=42),
    )
    assert s.status == "valid"
    assert s.time_taken_seconds == 42
    assert s.original_filename == "cake.jpg"
    assert s.storage_key in media_store.objects
    assert s.media_url.endswith(s.storage_key)
    assert s.compressed_size == len(media_store.objects[s.storage_key])

    p = await _reload(session, p.id)
    assert p.total_points == s.points_awarded
    assert p.total_time_taken_seconds == 42
    assert p.current_challenge_id is not None and p.current_challenge_id != cid
    assert p.challenge_assigned_at == T0 + timedelta(seconds=42)


@pytest.mark.asyncio
async def test_duplicate_completion_credits_once(session, media_store):
    ev = await make_event(session)
    (a,) = await make_challenges(session, ev.id, ("A", 10, 60))
    p, _ = await create_participant(session, ev.id, "Ana", "dev-1", now=T0)

    first = await complete_challenge(session, media_store, p.id, a.id, jpeg_bytes(), now=T0 + timedelta(seconds=5))
    again = await complete_challenge(session, media_store, p.id, a.id, jpeg_bytes(), now=T0 + timedelta(seconds=9))
    assert again.id == first.id
    assert len(media_store.objects) == 1

    p = await _reload(session, p.id)
    assert p.total_points == 10
    assert p.total_time_taken_seconds == 5
    assert await _submission_count(session, p.id) == 1


@pytest.mark.asyncio
async def test_store_refuses_second_valid_row_for_same_challenge(session, media_store):
    ev = await make_event(session)
    (a,) = await make_challenges(session, ev.id, ("A", 10, 60))
    p, _ = await create_participant(session, ev.id, "Ana", "dev-1", now=T0)
    await complete_challenge(session, media_store, p.id, a.id, jpeg_bytes(), now=T0)

    session.add(Submission(
        participant_id=p.id, challenge_id=a.id, media_url="x", points_awarded=10, time_taken_seconds=1,
    ))
    with pytest.raises(IntegrityError):
        await session.flush()


@pytest.mark.asyncio
async def test_store_refuses_unknown_submission_status(session, media_store):
    ev = await make_event(session)
    (a,) = await make_challenges(session, ev.id, ("A", 10, 60))
    p, _ = await create_participant(session, ev.id, "Ana", "dev-1", now=T0)
    s = await complete_challenge(session, media_store, p.id, a.id, jpeg_bytes(), now=T0)
    s.status = "pending"
    with pytest.raises(IntegrityError):
        await session.flush()


@pytest.mark.asyncio
async def test_upload_failure_changes_nothing(session, media_store):
    ev = await make_event(session)
    await make_challenges(session, ev.id, ("A", 10, 60))
    p, _ = await create_participant(session, ev.id, "Ana", "dev-1", now=T0)
    cid, expires = p.current_challenge_id, p.challenge_expires_at

    media_store.fail = True
    with pytest.raises(UploadError):
        await complete_challenge(session, media_store, p.id, cid, jpeg_bytes(), now=T0 + timedelta(seconds=5))

    p = await _reload(session, p.id)
    assert p.total_points == 0 and p.total_time_taken_seconds == 0
    assert p.current_challenge_id == cid and p.challenge_expires_at == expires
    assert await _submission_count(session, p.id) == 0


@pytest.mark.asyncio
async def test_unreadable_photo_is_refused_before_upload(session, media_store):
    ev = await make_event(session)
    await make_challenges(session, ev.id, ("A", 10, 60))
    p, _ = await create_participant(session, ev.id, "Ana", "dev-1", now=T0)

    with pytest.raises(ProcessingError):
        await complete_challenge(session, media_store, p.id, p.current_challenge_id, b"definitely not a jpeg", now=T0)
    assert media_store.objects == {}
    assert await _submission_count(session, p.id) == 0


@pytest.mark.asyncio
async def test_photo_is_compressed_off_the_event_loop(session, media_store, monkeypatch):
    ev = await make_event(session)
    await make_challenges(session, ev.id, ("A", 10, 60))
    p, _ = await create_participant(session, ev.id, "Ana", "dev-1", now=T0)
    seen = []
    real = submission_service.compress_photo

    def recording(*args, **kwargs):
        seen.append(threading.get_ident())
        return real(*args, **kwargs)

    monkeypatch.setattr(submission_service, "compress_photo", recording)
    await complete_challenge(session, media_store, p.id, p.current_challenge_id, jpeg_bytes(), now=T0)
    assert len(seen) == 1
    assert seen[0] != threading.get_ident()


@pytest.mark.asyncio
async def test_write_failure_removes_uploaded_photo(session, media_store, monkeypatch):
    ev = await make_event(session)
    await make_challenges(session, ev.id, ("A", 10, 60))
    p, _ = await create_participant(session, ev.id, "Ana", "dev-1", now=T0)

    async def boom(*args, **kwargs):
        raise RuntimeError("db went away")

    monkeypatch.setattr(submission_service, "apply_delta", boom)
    with pytest.raises(RuntimeError):
        await complete_challenge(session, media_store, p.id, p.current_challenge_id, jpeg_bytes(), now=T0)
    assert media_store.objects == {}
    assert len(media_store.removed) == 1


@pytest.mark.asyncio
async def test_challenge_from_another_event_is_refused(session, media_store):
    ev = await make_event(session)
    other = await make_event(session, host_id="host-2")
    (foreign,) = await make_challenges(session, other.id, ("X", 10, 60))
    await make_challenges(session, ev.id, ("A", 10, 60))
    p, _ = await create_participant(session, ev.id, "Ana", "dev-1", now=T0)
    with pytest.raises(InvalidState):
        await complete_challenge(session, media_store, p.id, foreign.id, jpeg_bytes(), now=T0)


@pytest.mark.asyncio
async def test_global_mode_scores_full_time_limit_without_reassigning(session, media_store):
    ev = await make_event(session, timer_mode="global")
    (c,) = await make_challenges(session, ev.id, ("Toast", 15, 45))
    p, _ = await create_participant(session, ev.id, "Ana", "dev-1", now=T0)

    s = await complete_challenge(session, media_store, p.id, c.id, jpeg_bytes(), now=T0 + timedelta(seconds=3))
    assert s.points_awarded == 15
    assert s.time_taken_seconds == 45
    p = await _reload(session, p.id)
    assert p.total_points == 15
    assert p.current_challenge_id is None


@pytest.mark.asyncio
async def test_reject_reverses_credit_exactly(session, media_store):
    ev = await make_event(session)
    a, b = await make_challenges(session, ev.id, ("A", 10, 60), ("B", 20, 90))
    p, _ = await create_participant(session, ev.id, "Ana", "dev-1", now=T0)
    s1 = await complete_challenge(session, media_store, p.id, a.id, jpeg_bytes(), now=T0 + timedelta(seconds=12))
    s2 = await complete_challenge(session, media_store, p.id, b.id, jpeg_bytes(), now=T0 + timedelta(seconds=40))
    p = await _reload(session, p.id)
    before = (p.total_points, p.total_time_taken_seconds)

    rejected = await reject_submission(session, s2.id, now=T0 + timedelta(minutes=5))
    assert rejected.status == "rejected"
    assert rejected.rejected_at == T0 + timedelta(minutes=5)

    p = await _reload(session, p.id)
    assert (p.total_points, p.total_time_taken_seconds) == (
        before[0] - s2.points_awarded, before[1] - s2.time_taken_seconds,
    )
    assert (p.total_points, p.total_time_taken_seconds) == await recompute_totals(session, p.id)
    assert p.total_points == s1.points_awarded

    # the row stays for audit
    history = await list_submissions_for_participant(session, p.id)
    assert {h.id for h in history} == {s1.id, s2.id}
    valid_only = await list_submissions_for_participant(session, p.id, include_rejected=False)
    assert [h.id for h in valid_only] == [s1.id]


@pytest.mark.asyncio
async def test_second_reject_is_refused(session, media_store):
    ev = await make_event(session)
    (a,) = await make_challenges(session, ev.id, ("A", 10, 60))
    p, _ = await create_participant(session, ev.id, "Ana", "dev-1", now=T0)
    s = await complete_challenge(session, media_store, p.id, a.id, jpeg_bytes(), now=T0)
    await reject_submission(session, s.id, now=T0)
    with pytest.raises(InvalidState):
        await reject_submission(session, s.id, now=T0)
    p = await _reload(session, p.id)
    assert p.total_points == 0 and p.total_time_taken_seconds == 0


@pytest.mark.asyncio
async def test_resubmitting_after_rejection_credits_again(session, media_store):
    ev = await make_event(session)
    (a,) = await make_challenges(session, ev.id, ("A", 10, 60))
    p, _ = await create_participant(session, ev.id, "Ana", "dev-1", now=T0)
    s = await complete_challenge(session, media_store, p.id, a.id, jpeg_bytes(), now=T0 + timedelta(seconds=8))
    await reject_submission(session, s.id, now=T0 + timedelta(seconds=20))

    s2 = await complete_challenge(session, media_store, p.id, a.id, jpeg_bytes(), now=T0 + timedelta(seconds=30))
    assert s2.id != s.id
    p = await _reload(session, p.id)
    assert p.total_points == 10
    assert (p.total_points, p.total_time_taken_seconds) == await recompute_totals(session, p.id)


@pytest.mark.asyncio
async def test_gallery_lists_valid_submissions_newest_first(session, media_store):
    ev = await make_event(session)
    a, b = await make_challenges(session, ev.id, ("Cake", 10, 60), ("Dance", 20, 90))
    ana, _ = await create_participant(session, ev.id, "Ana", "dev-1", now=T0)
    ben, _ = await create_participant(session, ev.id, "Ben", "dev-2", now=T0)

    s1 = await complete_challenge(session, media_store, ana.id, a.id, jpeg_bytes(), now=T0 + timedelta(seconds=10))
    s2 = await complete_challenge(session, media_store, ben.id, b.id, jpeg_bytes(), now=T0 + timedelta(seconds=20))
    s3 = await complete_challenge(session, media_store, ben.id, a.id, jpeg_bytes(), now=T0 + timedelta(seconds=30))
    await reject_submission(session, s2.id, now=T0 + timedelta(seconds=40))

    items = await get_completed_for_event(session, ev.id)
    assert [it.submission.id for it in items] == [s3.id, s1.id]
    assert [(it.participant_name, it.challenge_title) for it in items] == [("Ben", "Cake"), ("Ana", "Cake")]
