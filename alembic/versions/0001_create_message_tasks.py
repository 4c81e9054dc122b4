"""create message_tasks

Revision ID: 0001
Revises:
Create Date: 2026-10-17
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "message_tasks",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("recipient_id", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("instance_id", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("user", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("subject", sa.Text(), nullable=False, server_default=""),
        sa.Column("body", sa.Text(), nullable=False, server_default=""),
        sa.Column("is_priority", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("state", sa.SmallInteger(), nullable=False, server_default="1"),
        sa.Column("status", sa.SmallInteger(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("sent_at", sa.BigInteger(), nullable=True),
        sa.Column("result", sa.LargeBinary(), nullable=True),
    )
    op.create_index(
        "ix_message_tasks_sending",
        "message_tasks",
        ["state", "status", "is_priority", "id"],
    )


def downgrade() -> None:
    op.drop_index("ix_message_tasks_sending", table_name="message_tasks")
    op.drop_table("message_tasks")
