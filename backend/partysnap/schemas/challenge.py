from __future__ import annotations
from pydantic import BaseModel, Field, ConfigDict
from typing import Literal
from uuid import UUID
from datetime import datetime

Difficulty = Literal["easy", "medium", "hard"]

class ChallengeCreate(BaseModel):
    title: str = Field(min_length=1, max_length=120)
    description: str = ""
    difficulty: Difficulty = "easy"
    points: int = Field(gt=0, default=10)
    time_limit: int = Field(gt=0, default=300, description="seconds")
    is_special: bool = False

class ChallengeUpdate(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = None
    difficulty: Difficulty | None = None
    points: int | None = Field(default=None, gt=0)
    time_limit: int | None = Field(default=None, gt=0)
    is_special: bool | None = None

class ChallengeBulkCreate(BaseModel):
    challenges: list[ChallengeCreate] = Field(min_length=1, max_length=200)

class ChallengePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    title: str
    description: str
    difficulty: Difficulty
    points: int
    time_limit: int
    is_special: bool
    created_at: datetime

class CurrentChallengePublic(BaseModel):
    timer_mode: Literal["individual", "global"]
    challenge: ChallengePublic | None = None
    expires_at: datetime | None = None
    seconds_left: int | None = None

class ChallengeTemplatePublic(BaseModel):
    key: str
    label: str
    challenges: list[ChallengeCreate]
