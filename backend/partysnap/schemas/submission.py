from __future__ import annotations
from pydantic import BaseModel, ConfigDict
from typing import Literal
from uuid import UUID
from datetime import datetime


class SubmissionPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    participant_id: UUID
    challenge_id: UUID
    media_url: str
    original_filename: str | None = None
    compressed_size: int
    points_awarded: int
    time_taken_seconds: int
    completed_at: datetime
    status: Literal["valid", "rejected"]
    rejected_at: datetime | None = None
    # 🔒 storage_key stays server-side


class GalleryItem(SubmissionPublic):
    participant_name: str
    challenge_title: str
