from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import Literal
from uuid import UUID
from datetime import datetime

EventType = Literal["wedding", "baby_shower", "birthday", "other"]
TimerMode = Literal["individual", "global"]
EventStatus = Literal["pending", "active", "completed"]
LookupReason = Literal["not_found", "not_yet_started", "ended"]

class EventCreate(BaseModel):
    title: str = Field(min_length=3, max_length=120)
    description: str | None = None
    type: EventType = "other"
    timer_mode: TimerMode = "individual"
    start_time: datetime | None = None
    end_time: datetime | None = None
    max_participants: int = Field(default=50, ge=1, le=1000)
    access_code: str = Field(min_length=1, max_length=64)

    @model_validator(mode="after")
    def window_order(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self

class EventPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    host_id: str
    title: str
    description: str | None
    type: EventType
    timer_mode: TimerMode
    join_code: str
    status: EventStatus
    start_time: datetime | None = None
    end_time: datetime | None = None
    max_participants: int
    compression_quality: int
    compression_max_width: int
    current_global_challenge_id: UUID | None = None
    global_challenge_expires_at: datetime | None = None
    created_at: datetime

class EventLookupPublic(BaseModel):
    event: EventPublic | None = None
    reason: LookupReason | None = None

class EventStatusUpdate(BaseModel):
    status: EventStatus

class GlobalChallengeStart(BaseModel):
    challenge_id: UUID
