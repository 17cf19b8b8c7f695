from __future__ import annotations
from uuid import UUID
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from partysnap.config import settings
from partysnap.db import get_session
from partysnap.auth_deps import HostIdentity, get_current_host, require_event_owner
from partysnap.schemas.submission import SubmissionPublic, GalleryItem
from partysnap.services import submissions as submission_service
from partysnap.services.errors import ProcessingError
from partysnap.services.events import get_event
from partysnap.services.participants import get_participant
from partysnap.services.storage import MediaStore, get_media_store

router = APIRouter(tags=["submissions"])

@router.post("/participants/{participant_id}/submissions", response_model=SubmissionPublic, status_code=201)
async def complete_challenge(
    participant_id: UUID,
    challenge_id: UUID = Form(...),
    photo: UploadFile = File(..., description="challenge photo (JPEG/PNG/WebP)"),
    session: AsyncSession = Depends(get_session),
    media_store: MediaStore = Depends(get_media_store),
):
    if photo.size is not None and photo.size > settings.max_upload_bytes:
        raise ProcessingError(f"Photo too large ({photo.size} bytes, max {settings.max_upload_bytes})")
    # One byte past the cap is enough for the size check downstream
    data = await photo.read(settings.max_upload_bytes + 1)
    s = await submission_service.complete_challenge(
        session, media_store, participant_id, challenge_id, data, filename=photo.filename,
    )
    await session.commit()
    return SubmissionPublic.model_validate(s)

@router.get("/participants/{participant_id}/submissions", response_model=list[SubmissionPublic])
async def participant_history(
    participant_id: UUID,
    include_rejected: bool = Query(default=True),
    session: AsyncSession = Depends(get_session),
):
    await get_participant(session, participant_id)
    rows = await submission_service.list_submissions_for_participant(session, participant_id, include_rejected)
    return [SubmissionPublic.model_validate(s) for s in rows]

@router.get("/events/{event_id}/gallery", response_model=list[GalleryItem])
async def gallery(event_id: UUID, session: AsyncSession = Depends(get_session)):
    await get_event(session, event_id)
    items = await submission_service.get_completed_for_event(session, event_id)
    return [
        GalleryItem(
            participant_name=it.participant_name,
            challenge_title=it.challenge_title,
            **SubmissionPublic.model_validate(it.submission).model_dump(),
        )
        for it in items
    ]

@router.post("/submissions/{submission_id}/reject", response_model=SubmissionPublic)
async def reject_submission(
    submission_id: UUID,
    session: AsyncSession = Depends(get_session),
    host: HostIdentity = Depends(get_current_host),
):
    s = await submission_service.get_submission(session, submission_id)
    p = await get_participant(session, s.participant_id)
    await require_event_owner(session, p.event_id, host)
    s = await submission_service.reject_submission(session, submission_id)
    await session.commit()
    return SubmissionPublic.model_validate(s)
