"""initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-17

Tables as defined in docsight/models/database_models.py:
data_files, document_templates, uploaded_documents.
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql
from pgvector.sqlalchemy import Vector

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None

VECTOR_DIM = 768


def upgrade() -> None:
    # pgvector extension
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")

    # ── Enum types ────────────────────────────────────────────────────────
    processing_status = sa.Enum(
        "uploaded", "parsing", "extracting", "analyzing", "embedding", "completed", "failed",
        name="processingstatus",
    )
    processing_status.create(op.get_bind(), checkfirst=True)
    # Type already created above; columns must not re-create it
    status_column = postgresql.ENUM(*processing_status.enums, name="processingstatus", create_type=False)

    # ── data_files ────────────────────────────────────────────────────────
    op.create_table(
        "data_files",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.String(255), nullable=False, index=True),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_type", sa.String(50), nullable=False),
        sa.Column("file_size", sa.Integer, nullable=False, server_default="0"),
        sa.Column("file_path", sa.String(512), nullable=False),
        sa.Column("column_headers", sa.JSON, nullable=True),
        sa.Column("column_types", sa.JSON, nullable=True),
        sa.Column("row_count", sa.Integer, nullable=True),
        sa.Column("column_count", sa.Integer, nullable=True),
        sa.Column("data_preview", sa.JSON, nullable=True),
        sa.Column("analysis_json", sa.JSON, nullable=True),
        sa.Column("correlations_json", sa.JSON, nullable=True),
        sa.Column("quality_json", sa.JSON, nullable=True),
        sa.Column("schema_description", sa.Text, nullable=True),
        sa.Column("schema_embedding", Vector(VECTOR_DIM), nullable=True),
        sa.Column("processing_status", status_column, nullable=False, server_default="uploaded", index=True),
        sa.Column("processing_progress", sa.Integer, nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
    )

    # ── document_templates ────────────────────────────────────────────────
    op.create_table(
        "document_templates",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.String(255), nullable=False, index=True),
        sa.Column("template_name", sa.String(255), nullable=False),
        sa.Column("template_type", sa.String(100), nullable=False, index=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("content", sa.Text, nullable=False),
        sa.Column("structure_json", sa.JSON, nullable=True),
        sa.Column("embedding", Vector(VECTOR_DIM), nullable=True),
        sa.Column("tags", sa.JSON, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true(), index=True),
        sa.Column("usage_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # ── uploaded_documents ────────────────────────────────────────────────
    op.create_table(
        "uploaded_documents",
        sa.Column("id", sa.Integer, primary_key=True, index=True),
        sa.Column("user_id", sa.String(255), nullable=False, index=True),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_type", sa.String(50), nullable=False),
        sa.Column("file_size", sa.Integer, nullable=False, server_default="0"),
        sa.Column("file_path", sa.String(512), nullable=False),
        sa.Column("extracted_text", sa.Text, nullable=True),
        sa.Column("structure_json", sa.JSON, nullable=True),
        sa.Column("metadata_json", sa.JSON, nullable=True),
        sa.Column("language", sa.String(20), nullable=True),
        sa.Column("word_count", sa.Integer, nullable=True),
        sa.Column("page_count", sa.Integer, nullable=True),
        sa.Column("embedding", Vector(VECTOR_DIM), nullable=True),
        sa.Column("processing_status", status_column, nullable=False, server_default="uploaded", index=True),
        sa.Column("processing_progress", sa.Integer, nullable=False, server_default="0"),
        sa.Column("error_message", sa.Text, nullable=True),
        sa.Column("suggested_templates", sa.JSON, nullable=True),
        sa.Column(
            "selected_template_id",
            sa.Integer,
            sa.ForeignKey("document_templates.id", ondelete="SET NULL"),
            nullable=True,
            index=True,
        ),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
    )

    # HNSW indexes for cosine ranking
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_uploaded_documents_embedding "
        "ON uploaded_documents USING hnsw (embedding vector_cosine_ops)"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS ix_document_templates_embedding "
        "ON document_templates USING hnsw (embedding vector_cosine_ops)"
    )


def downgrade() -> None:
    op.drop_table("uploaded_documents")
    op.drop_table("document_templates")
    op.drop_table("data_files")
    sa.Enum(name="processingstatus").drop(op.get_bind(), checkfirst=True)
