from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict
from uuid import UUID
from datetime import datetime

class ParticipantJoin(BaseModel):
    name: str = Field(min_length=1, max_length=60)

class ParticipantPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    name: str
    avatar_color: str
    avatar_emoji: str
    total_points: int
    total_time_taken_seconds: int
    current_challenge_id: UUID | None = None
    challenge_assigned_at: datetime | None = None
    challenge_expires_at: datetime | None = None
    joined_at: datetime

class LeaderboardRow(ParticipantPublic):
    position: int

class ScoreAdjustment(BaseModel):
    delta: int

class ScoreAdjustmentResult(BaseModel):
    participant_id: UUID
    delta: int
    total_points: int
