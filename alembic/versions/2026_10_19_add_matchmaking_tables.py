"""Add participants, recent_partners and queued_messages tables

Revision ID: add_matchmaking_tables
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "add_matchmaking_tables"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "participants",
        sa.Column("id", sa.String(255), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("partner", sa.String(255), nullable=True),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_search_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_activity", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_participants_status_last_search",
        "participants",
        ["status", "last_search_time"],
        unique=False,
    )

    op.create_table(
        "recent_partners",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("participant_id", sa.String(255), nullable=False),
        sa.Column("partner_id", sa.String(255), nullable=False),
        sa.Column("matched_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["participant_id"], ["participants.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_recent_partners_participant_matched",
        "recent_partners",
        ["participant_id", "matched_at"],
        unique=False,
    )

    op.create_table(
        "queued_messages",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("sender", sa.String(255), nullable=False),
        sa.Column("recipient", sa.String(255), nullable=False),
        sa.Column("message_type", sa.String(16), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("caption", sa.Text(), nullable=True),
        sa.Column("media_payload", sa.LargeBinary(), nullable=True),
        sa.Column("media_ref", sa.String(512), nullable=True),
        sa.Column("mime_type", sa.String(128), nullable=True),
        sa.Column(
            "voice", sa.Boolean(), nullable=False, server_default=sa.text("false")
        ),
        sa.Column("data", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("status", sa.String(24), nullable=False),
        sa.Column("retries", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("error", sa.Text(), nullable=True),
        sa.Column("reason", sa.String(64), nullable=True),
        sa.Column("queued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_attempt", sa.DateTime(timezone=True), nullable=True),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_queued_messages_sender", "queued_messages", ["sender"], unique=False
    )
    op.create_index(
        "ix_queued_messages_status_queued_at",
        "queued_messages",
        ["status", "queued_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_queued_messages_status_queued_at", table_name="queued_messages")
    op.drop_index("ix_queued_messages_sender", table_name="queued_messages")
    op.drop_table("queued_messages")
    op.drop_index("ix_recent_partners_participant_matched", table_name="recent_partners")
    op.drop_table("recent_partners")
    op.drop_index("ix_participants_status_last_search", table_name="participants")
    op.drop_table("participants")
