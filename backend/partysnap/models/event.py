from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Text, ForeignKey, CheckConstraint, Uuid
from partysnap.db import Base, UTCDateTime, utcnow

class Event(Base):
    __tablename__ = "events"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    host_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str | None] = mapped_column(Text())
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="other")  # wedding|baby_shower|birthday|other
    timer_mode: Mapped[str] = mapped_column(String(16), nullable=False, default="individual")  # individual|global
    join_code: Mapped[str] = mapped_column(String(12), unique=True, index=True, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="active")  # pending|active|completed
    start_time: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    end_time: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    # Display/config values carried per event
    max_participants: Mapped[int] = mapped_column(Integer, nullable=False, default=50)
    compression_quality: Mapped[int] = mapped_column(Integer, nullable=False, default=80)
    compression_max_width: Mapped[int] = mapped_column(Integer, nullable=False, default=1200)

    # Global timer mode only
    current_global_challenge_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("challenges.id", ondelete="SET NULL", use_alter=True, name="fk_events_global_challenge"),
        nullable=True,
    )
    global_challenge_expires_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("timer_mode IN ('individual','global')", name="ck_events_timer_mode"),
        CheckConstraint("status IN ('pending','active','completed')", name="ck_events_status"),
    )


class AccessCode(Base):
    """
    One-time license code required to create an event.
    `event_id` is NULL while the code is unconsumed; deleting the event frees it.
    """
    __tablename__ = "access_codes"
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    event_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("events.id", ondelete="SET NULL"), unique=True, nullable=True
    )
    consumed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
