from __future__ import annotations
from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime


class AccessCodeCreate(BaseModel):
    prefix: str = Field(min_length=1, max_length=16, pattern=r"^[A-Za-z0-9]+$")


class AccessCodePublic(BaseModel):
    id: UUID
    code: str
    created_at: datetime
    event_id: UUID | None = None
    consumed_at: datetime | None = None
    event_title: str | None = None
    event_status: str | None = None
    host_id: str | None = None
