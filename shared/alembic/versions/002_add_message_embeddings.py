"""Add message_embeddings twin table for conversation messages.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19 00:00:01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "message_embeddings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("message_id", UUID(as_uuid=True), nullable=False, unique=True),
        sa.Column("point_id", sa.String(32), nullable=False),
        sa.Column("embedded_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        schema="ingest",
    )
    op.execute("ALTER TABLE ingest.message_embeddings ADD COLUMN embedding vector NOT NULL")


def downgrade() -> None:
    op.drop_table("message_embeddings", schema="ingest")
