from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "events",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("host_id", sa.String(length=128), nullable=False),
        sa.Column("title", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("type", sa.String(length=16), nullable=False, server_default="other"),
        sa.Column("timer_mode", sa.String(length=16), nullable=False, server_default="individual"),
        sa.Column("join_code", sa.String(length=12), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="active"),
        sa.Column("start_time", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("end_time", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("max_participants", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("compression_quality", sa.Integer(), nullable=False, server_default="80"),
        sa.Column("compression_max_width", sa.Integer(), nullable=False, server_default="1200"),
        sa.Column("current_global_challenge_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("global_challenge_expires_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("timer_mode IN ('individual','global')", name="ck_events_timer_mode"),
        sa.CheckConstraint("status IN ('pending','active','completed')", name="ck_events_status"),
    )
    op.create_index("ix_events_join_code", "events", ["join_code"], unique=True)
    op.create_index("ix_events_host_id", "events", ["host_id"])

    op.create_table(
        "challenges",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("event_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("title", sa.String(length=120), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("difficulty", sa.String(length=8), nullable=False, server_default="easy"),
        sa.Column("points", sa.Integer(), nullable=False),
        sa.Column("time_limit", sa.Integer(), nullable=False),
        sa.Column("is_special", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("points > 0", name="ck_challenges_points_positive"),
        sa.CheckConstraint("time_limit > 0", name="ck_challenges_time_limit_positive"),
    )
    op.create_index("ix_challenges_event_id", "challenges", ["event_id"])

    # events <-> challenges reference each other
    op.create_foreign_key(
        "fk_events_global_challenge", "events", "challenges",
        ["current_global_challenge_id"], ["id"], ondelete="SET NULL",
    )

    op.create_table(
        "participants",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("event_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=60), nullable=False),
        sa.Column("device_id", sa.String(length=128), nullable=False),
        sa.Column("avatar_color", sa.String(length=7), nullable=False, server_default="#6366f1"),
        sa.Column("avatar_emoji", sa.String(length=8), nullable=False),
        sa.Column("total_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_time_taken_seconds", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("current_challenge_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("challenges.id", ondelete="SET NULL"), nullable=True),
        sa.Column("challenge_assigned_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("challenge_expires_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("joined_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_participants_event_id", "participants", ["event_id"])
    op.create_unique_constraint("uq_participant_device_per_event", "participants", ["event_id", "device_id"])

    op.create_table(
        "submissions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("participant_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("participants.id", ondelete="CASCADE"), nullable=False),
        sa.Column("challenge_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("challenges.id"), nullable=False),
        sa.Column("media_url", sa.Text(), nullable=False),
        sa.Column("storage_key", sa.Text(), nullable=True),
        sa.Column("original_filename", sa.String(length=255), nullable=True),
        sa.Column("compressed_size", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("points_awarded", sa.Integer(), nullable=False),
        sa.Column("time_taken_seconds", sa.Integer(), nullable=False),
        sa.Column("completed_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="valid"),
        sa.Column("rejected_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint("status IN ('valid','rejected')", name="ck_submissions_status"),
    )
    op.create_index("ix_submissions_participant_id", "submissions", ["participant_id"])
    op.create_index("ix_submissions_challenge_id", "submissions", ["challenge_id"])
    op.execute("""
        CREATE UNIQUE INDEX uq_submission_valid_per_challenge
        ON submissions (participant_id, challenge_id) WHERE status = 'valid'
    """)

    op.create_table(
        "access_codes",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("event_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("events.id", ondelete="SET NULL"), nullable=True),
        sa.Column("consumed_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_access_codes_code", "access_codes", ["code"], unique=True)
    op.create_unique_constraint("uq_access_codes_event_id", "access_codes", ["event_id"])

def downgrade() -> None:
    op.drop_constraint("uq_access_codes_event_id", "access_codes", type_="unique")
    op.drop_index("ix_access_codes_code", table_name="access_codes")
    op.drop_table("access_codes")
    op.execute("DROP INDEX IF EXISTS uq_submission_valid_per_challenge")
    op.drop_index("ix_submissions_challenge_id", table_name="submissions")
    op.drop_index("ix_submissions_participant_id", table_name="submissions")
    op.drop_table("submissions")
    op.drop_constraint("uq_participant_device_per_event", "participants", type_="unique")
    op.drop_index("ix_participants_event_id", table_name="participants")
    op.drop_table("participants")
    op.drop_constraint("fk_events_global_challenge", "events", type_="foreignkey")
    op.drop_index("ix_challenges_event_id", table_name="challenges")
    op.drop_table("challenges")
    op.drop_index("ix_events_host_id", table_name="events")
    op.drop_index("ix_events_join_code", table_name="events")
    op.drop_table("events")
