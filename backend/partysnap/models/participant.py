from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, ForeignKey, UniqueConstraint, Uuid
from partysnap.db import Base, UTCDateTime, utcnow

class Participant(Base):
    __tablename__ = "participants"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    event_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("events.id", ondelete="CASCADE"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(60), nullable=False)
    device_id: Mapped[str] = mapped_column(String(128), nullable=False)  # opaque, re-join lookup only
    avatar_color: Mapped[str] = mapped_column(String(7), nullable=False, default="#6366f1")
    avatar_emoji: Mapped[str] = mapped_column(String(8), nullable=False, default="🥳")

    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_time_taken_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Individual timer mode only; in global mode the event's fields are authoritative
    current_challenge_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("challenges.id", ondelete="SET NULL"), nullable=True
    )
    challenge_assigned_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    challenge_expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    joined_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("event_id", "device_id", name="uq_participant_device_per_event"),
    )
