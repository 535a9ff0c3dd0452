"""
SQLAlchemy ORM models for the docsight database.
Includes pgvector support for embeddings.
"""
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
    ForeignKey,
    Boolean,
    Enum as SQLEnum,
    JSON,
)
from sqlalchemy.sql import func
from pgvector.sqlalchemy import Vector
from datetime import datetime, timezone
import enum

from docsight.database import Base
from docsight.config import settings


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(enum_cls) -> list:
    # Store "completed", not "COMPLETED"
    return [member.value for member in enum_cls]


# Enums
class ProcessingStatus(str, enum.Enum):
    """Lifecycle of an uploaded file through parsing and analysis."""

    UPLOADED = "uploaded"
    PARSING = "parsing"
    EXTRACTING = "extracting"
    ANALYZING = "analyzing"
    EMBEDDING = "embedding"
    COMPLETED = "completed"
    FAILED = "failed"


# Models
class DataFile(Base):
    """Uploaded CSV/Excel file with its profiling results."""

    __tablename__ = "data_files"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)

    # File information
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(50), nullable=False)  # csv, tsv, xlsx
    file_size = Column(Integer, nullable=False, default=0)
    file_path = Column(String(512), nullable=False)

    # Structure analysis
    column_headers = Column(JSON, nullable=True)
    column_types = Column(JSON, nullable=True)  # name, type, nullable, unique_count, sample_values
    row_count = Column(Integer, nullable=True)
    column_count = Column(Integer, nullable=True)
    data_preview = Column(JSON, nullable=True)  # first DATA_PREVIEW_ROWS analysed rows

    # Analysis results (opaque blobs)
    analysis_json = Column(JSON, nullable=True)
    correlations_json = Column(JSON, nullable=True)
    quality_json = Column(JSON, nullable=True)

    # Schema description + embedding for dataset similarity
    schema_description = Column(Text, nullable=True)
    schema_embedding = Column(Vector(settings.VECTOR_DIMENSION), nullable=True)

    # Processing status
    processing_status = Column(
        SQLEnum(ProcessingStatus, name="processingstatus", values_callable=_enum_values),
        nullable=False,
        default=ProcessingStatus.UPLOADED,
        index=True,
    )
    processing_progress = Column(Integer, nullable=False, default=0)  # 0-100
    error_message = Column(Text, nullable=True)

    uploaded_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)


class DocumentTemplate(Base):
    """Reusable document template with structure and embedding for matching."""

    __tablename__ = "document_templates"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)

    template_name = Column(String(255), nullable=False)
    template_type = Column(String(100), nullable=False, index=True)  # proposal, report, memo, ...
    description = Column(Text, nullable=True)

    content = Column(Text, nullable=False)
    structure_json = Column(JSON, nullable=True)
    embedding = Column(Vector(settings.VECTOR_DIMENSION), nullable=True)

    tags = Column(JSON, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)
    usage_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow, nullable=False
    )



class UploadedDocument(Base):
    """Uploaded PDF/DOCX/text document with extracted text and structure."""

    __tablename__ = "uploaded_documents"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)

    # File information
    file_name = Column(String(255), nullable=False)
    file_type = Column(String(50), nullable=False)  # pdf, docx, txt, md
    file_size = Column(Integer, nullable=False, default=0)
    file_path = Column(String(512), nullable=False)

    # Content extraction
    extracted_text = Column(Text, nullable=True)
    structure_json = Column(JSON, nullable=True)
    metadata_json = Column(JSON, nullable=True)  # title, author, language, ...
    language = Column(String(20), nullable=True)
    word_count = Column(Integer, nullable=True)
    page_count = Column(Integer, nullable=True)

    embedding = Column(Vector(settings.VECTOR_DIMENSION), nullable=True)

    # Processing status
    processing_status = Column(
        SQLEnum(ProcessingStatus, name="processingstatus", values_callable=_enum_values),
        nullable=False,
        default=ProcessingStatus.UPLOADED,
        index=True,
    )
    processing_progress = Column(Integer, nullable=False, default=0)  # 0-100
    error_message = Column(Text, nullable=True)

    # Template matching
    suggested_templates = Column(JSON, nullable=True)
    selected_template_id = Column(
        Integer, ForeignKey("document_templates.id", ondelete="SET NULL"), nullable=True, index=True
    )

    uploaded_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)

