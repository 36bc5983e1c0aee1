"""add thread_contexts table

Revision ID: 7a1c3e9b2f04
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "7a1c3e9b2f04"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create thread_contexts table."""
    op.create_table(
        "thread_contexts",
        sa.Column("thread_id", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("channel_id", sa.String(length=64), nullable=False),
        sa.Column("guild_id", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("messages", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("last_activity", sa.DateTime(), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("message_count", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index(
        "ix_thread_contexts_user_id", "thread_contexts", ["user_id"], unique=False
    )
    op.create_index(
        "ix_thread_contexts_last_activity",
        "thread_contexts",
        ["last_activity"],
        unique=False,
    )


def downgrade() -> None:
    """Drop thread_contexts table."""
    op.drop_index("ix_thread_contexts_last_activity", table_name="thread_contexts")
    op.drop_index("ix_thread_contexts_user_id", table_name="thread_contexts")
    op.drop_table("thread_contexts")
