"""Create ingest schema: file change records, cracked documents, chunks with pgvector twins.

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")
    op.execute("CREATE SCHEMA IF NOT EXISTS ingest")
    op.create_table(
        "document_metadata",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("file_path", sa.String(2048), nullable=False, unique=True),
        sa.Column("content_hash", sa.String(64), nullable=False),
        sa.Column("last_scanned_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("ruleset_id", sa.String(255), nullable=False),
        sa.Column("document_kind", sa.String(64), nullable=False),
        schema="ingest",
    )
    op.create_table(
        "cracked_documents",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("file_path", sa.String(2048), nullable=False, unique=True),
        sa.Column("relative_directory", sa.String(2048), nullable=True),
        sa.Column("file_name", sa.String(512), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("page_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("file_size", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("cracked_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("ruleset_id", sa.String(255), nullable=False),
        sa.Column("document_kind", sa.String(64), nullable=False),
        sa.Column("is_processed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("total_chunks", sa.Integer(), nullable=True),
        schema="ingest",
    )
    op.create_table(
        "document_chunks",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("chunk_id", sa.String(255), nullable=False, unique=True),
        sa.Column(
            "document_id",
            sa.Integer(),
            sa.ForeignKey("ingest.cracked_documents.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("chunk_text", sa.Text(), nullable=False),
        sa.Column("chunk_index", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("point_id", sa.String(32), nullable=True),
        sa.Column("embedded_at", sa.DateTime(timezone=True), nullable=True),
        schema="ingest",
    )
    # Dimension is fixed by the embedding model at runtime, so the column is left unsized.
    op.execute("ALTER TABLE ingest.document_chunks ADD COLUMN embedding vector")
    op.create_index(
        "ix_document_chunks_document_id",
        "document_chunks",
        ["document_id"],
        schema="ingest",
    )


def downgrade() -> None:
    op.drop_index("ix_document_chunks_document_id", table_name="document_chunks", schema="ingest")
    op.drop_table("document_chunks", schema="ingest")
    op.drop_table("cracked_documents", schema="ingest")
    op.drop_table("document_metadata", schema="ingest")
    op.execute("DROP SCHEMA IF EXISTS ingest")
