from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Text, ForeignKey, CheckConstraint, Index, Uuid, text
from partysnap.db import Base, UTCDateTime, utcnow


class Submission(Base):
    """
    A completed challenge. Rows are never deleted on moderation: a rejected
    submission keeps its scoring snapshot for audit and is excluded from
    totals and the gallery.
    """
    __tablename__ = "submissions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    participant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("participants.id", ondelete="CASCADE"), index=True, nullable=False
    )
    challenge_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("challenges.id"), index=True, nullable=False
    )

    media_url: Mapped[str] = mapped_column(Text(), nullable=False)
    storage_key: Mapped[str | None] = mapped_column(Text(), nullable=True)
    original_filename: Mapped[str | None] = mapped_column(String(255), nullable=True)
    compressed_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Snapshots; later challenge edits never touch these
    points_awarded: Mapped[int] = mapped_column(Integer, nullable=False)
    time_taken_seconds: Mapped[int] = mapped_column(Integer, nullable=False)

    completed_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="valid")  # valid|rejected
    rejected_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    __table_args__ = (
        CheckConstraint("status IN ('valid','rejected')", name="ck_submissions_status"),
        # One accepted completion per participant and challenge
        Index(
            "uq_submission_valid_per_challenge",
            "participant_id",
            "challenge_id",
            unique=True,
            postgresql_where=text("status = 'valid'"),
            sqlite_where=text("status = 'valid'"),
        ),
    )
