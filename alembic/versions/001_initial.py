"""Initial schema — profiles, watch sessions, and activity tables.

The activity tables and profiles are shared with the rest of the platform;
`watch_sessions` is owned by this service.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

_NOW = sa.text("CURRENT_TIMESTAMP")
_JSON = sa.JSON().with_variant(postgresql.JSONB(), "postgresql")


def upgrade() -> None:
    # --- Profiles ---
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("grade", sa.String(50), nullable=True),
        sa.Column("school_name", sa.String(200), nullable=True),
        sa.Column("city", sa.String(100), nullable=True),
        sa.Column("country", sa.String(100), nullable=True),
        sa.Column("age", sa.Integer, nullable=True),
        sa.Column("sex", sa.String(20), nullable=True),
        sa.Column("avatar_url", sa.Text, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_NOW),
    )
    op.create_index("idx_profiles_created", "profiles", ["created_at"])

    # --- Watch sessions ---
    op.create_table(
        "watch_sessions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("content_id", sa.String(64), nullable=False),
        sa.Column("content_title", sa.String(200), nullable=False, server_default=""),
        sa.Column("program", sa.String(32), nullable=False, server_default="meditation"),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("watch_duration", sa.Float, nullable=False, server_default="0"),
        sa.Column("total_duration", sa.Float, nullable=False, server_default="0"),
        sa.Column("last_position", sa.Float, nullable=False, server_default="0"),
        sa.Column("completion_percentage", sa.Integer, nullable=False, server_default="0"),
        sa.Column("view_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("skip_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("reflection_text", sa.Text, nullable=True),
        sa.Column("techniques_applied", _JSON, nullable=False, server_default="[]"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_NOW),
        sa.UniqueConstraint("user_id", "content_id", name="uq_watch_session_user_content"),
    )
    op.create_index("ix_watch_sessions_user_id", "watch_sessions", ["user_id"])

    # --- Activities ---
    op.create_table(
        "user_responses",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("question", sa.Text, nullable=False),
        sa.Column("response", sa.Text, nullable=False, server_default=""),
        sa.Column("activity_type", sa.String(64), nullable=False, server_default="cuentame_quien_eres"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW),
    )
    op.create_index("ix_user_responses_user_id", "user_responses", ["user_id"])

    op.create_table(
        "timeline_notes",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("text", sa.Text, nullable=False, server_default=""),
        sa.Column("emoji", sa.String(16), nullable=True),
        sa.Column("color", sa.String(32), nullable=True),
        sa.Column("position_x", sa.Float, nullable=False, server_default="0"),
        sa.Column("position_y", sa.Float, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW),
    )
    op.create_index("ix_timeline_notes_user_id", "timeline_notes", ["user_id"])

    op.create_table(
        "letters",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(200), nullable=False, server_default=""),
        sa.Column("content", sa.Text, nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW),
    )
    op.create_index("ix_letters_user_id", "letters", ["user_id"])

    op.create_table(
        "emotion_matches",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("emotion_name", sa.String(64), nullable=False),
        sa.Column("is_correct", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("explanation_shown", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW),
    )
    op.create_index("ix_emotion_matches_user_id", "emotion_matches", ["user_id"])

    op.create_table(
        "user_emotion_log",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("emotion_name", sa.String(64), nullable=False),
        sa.Column("intensity", sa.Integer, nullable=True),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("felt_at", sa.DateTime(timezone=True), server_default=_NOW),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_NOW),
    )
    op.create_index("ix_user_emotion_log_user_id", "user_emotion_log", ["user_id"])


def downgrade() -> None:
    op.drop_table("user_emotion_log")
    op.drop_table("emotion_matches")
    op.drop_table("letters")
    op.drop_table("timeline_notes")
    op.drop_table("user_responses")
    op.drop_table("watch_sessions")
    op.drop_table("profiles")
