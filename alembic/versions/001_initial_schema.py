"""users, presence, crew chats, buddy matches, waves 테이블 생성

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("image_url", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "user_blocks",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("blocker_id", sa.String(length=64), nullable=False),
        sa.Column("blocked_id", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("blocker_id", "blocked_id", name="uq_user_block_pair"),
    )
    op.create_index(op.f("ix_user_blocks_id"), "user_blocks", ["id"], unique=False)
    op.create_index(op.f("ix_user_blocks_blocker_id"), "user_blocks", ["blocker_id"], unique=False)
    op.create_index(op.f("ix_user_blocks_blocked_id"), "user_blocks", ["blocked_id"], unique=False)

    op.create_table(
        "presence_broadcasts",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("activity_type", sa.String(length=20), nullable=False),
        sa.Column("note", sa.String(length=140), nullable=True),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("set_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
    )
    op.create_index(op.f("ix_presence_broadcasts_id"), "presence_broadcasts", ["id"], unique=False)
    op.create_index("idx_presence_broadcasts_location", "presence_broadcasts", ["lat", "lng"], unique=False)
    op.create_index("idx_presence_broadcasts_expires_at", "presence_broadcasts", ["expires_at"], unique=False)

    op.create_table(
        "crew_chats",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("kind", sa.String(length=10), nullable=False),
        sa.Column("activity_type", sa.String(length=20), nullable=False),
        sa.Column("area", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("last_message_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_crew_chats_id"), "crew_chats", ["id"], unique=False)

    op.create_table(
        "crew_chat_members",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("chat_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["chat_id"], ["crew_chats.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("chat_id", "user_id", name="uq_crew_chat_member"),
    )
    op.create_index(op.f("ix_crew_chat_members_id"), "crew_chat_members", ["id"], unique=False)
    op.create_index(op.f("ix_crew_chat_members_chat_id"), "crew_chat_members", ["chat_id"], unique=False)
    op.create_index(op.f("ix_crew_chat_members_user_id"), "crew_chat_members", ["user_id"], unique=False)

    op.create_table(
        "crew_messages",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("chat_id", sa.Integer(), nullable=False),
        sa.Column("sender_id", sa.String(length=64), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["chat_id"], ["crew_chats.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_crew_messages_id"), "crew_messages", ["id"], unique=False)
    op.create_index("idx_crew_messages_chat_created", "crew_messages", ["chat_id", "created_at"], unique=False)

    op.create_table(
        "buddy_matches",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("initiator_id", sa.String(length=64), nullable=False),
        sa.Column("recipient_id", sa.String(length=64), nullable=False),
        sa.Column("user_low", sa.String(length=64), nullable=False),
        sa.Column("user_high", sa.String(length=64), nullable=False),
        sa.Column("activity_type", sa.String(length=20), nullable=False),
        sa.Column("chat_id", sa.Integer(), nullable=False),
        sa.Column("matched_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["chat_id"], ["crew_chats.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("chat_id"),
        sa.UniqueConstraint("user_low", "user_high", name="uq_buddy_match_pair"),
    )
    op.create_index(op.f("ix_buddy_matches_id"), "buddy_matches", ["id"], unique=False)
    op.create_index(op.f("ix_buddy_matches_initiator_id"), "buddy_matches", ["initiator_id"], unique=False)
    op.create_index(op.f("ix_buddy_matches_recipient_id"), "buddy_matches", ["recipient_id"], unique=False)

    op.create_table(
        "wave_activities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("creator_id", sa.String(length=64), nullable=False),
        sa.Column("activity_type", sa.String(length=20), nullable=False),
        sa.Column("area", sa.String(length=200), nullable=False),
        sa.Column("location_name", sa.String(length=300), nullable=True),
        sa.Column("lat", sa.Float(), nullable=False),
        sa.Column("lng", sa.Float(), nullable=False),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=True),
        sa.Column("note", sa.String(length=140), nullable=True),
        sa.Column("threshold", sa.Integer(), nullable=False, server_default=sa.text("3")),
        sa.Column("started_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("unlocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("chat_id", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["chat_id"], ["crew_chats.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("chat_id"),
    )
    op.create_index(op.f("ix_wave_activities_id"), "wave_activities", ["id"], unique=False)
    op.create_index(op.f("ix_wave_activities_creator_id"), "wave_activities", ["creator_id"], unique=False)
    op.create_index("idx_wave_activities_location", "wave_activities", ["lat", "lng"], unique=False)
    op.create_index("idx_wave_activities_expires_at", "wave_activities", ["expires_at"], unique=False)

    op.create_table(
        "wave_participants",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("wave_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("joined_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["wave_id"], ["wave_activities.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("wave_id", "user_id", name="uq_wave_participant"),
    )
    op.create_index(op.f("ix_wave_participants_id"), "wave_participants", ["id"], unique=False)
    op.create_index(op.f("ix_wave_participants_wave_id"), "wave_participants", ["wave_id"], unique=False)
    op.create_index(op.f("ix_wave_participants_user_id"), "wave_participants", ["user_id"], unique=False)


def downgrade() -> None:
    op.drop_table("wave_participants")
    op.drop_table("wave_activities")
    op.drop_table("buddy_matches")
    op.drop_table("crew_messages")
    op.drop_table("crew_chat_members")
    op.drop_table("crew_chats")
    op.drop_table("presence_broadcasts")
    op.drop_table("user_blocks")
    op.drop_table("users")
