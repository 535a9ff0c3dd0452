"""
Pydantic schemas for request/response validation.
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Dict, Any, Union
from datetime import datetime

from docsight.models.database_models import ProcessingStatus


# A single table cell as accepted over JSON
CellValue = Optional[Union[bool, int, float, str]]


# Profiling Schemas
class ProfileOptionsRequest(BaseModel):
    """Options for a profiling run."""

    sample_size: Optional[int] = Field(None, description="Rows to analyse; <= 0 or null means default")
    detect_types: bool = True
    find_correlations: bool = True


class ProfileRequest(BaseModel):
    """Schema for stateless tabular profiling."""

    headers: List[str]
    rows: List[Dict[str, CellValue]] = Field(default_factory=list)
    options: ProfileOptionsRequest = Field(default_factory=ProfileOptionsRequest)


class ColumnProfileResponse(BaseModel):
    """Schema for one profiled column."""

    name: str
    inferred_type: str
    nullable: bool
    unique_count: int
    null_count: int
    sample_values: List[str] = []
    stats: Optional[Dict[str, Any]] = None


class CorrelationResponse(BaseModel):
    """Schema for a notable correlation between two numeric columns."""

    column1: str
    column2: str
    correlation: float
    strength: str


class DatasetSummaryResponse(BaseModel):
    total_rows: int
    total_columns: int
    numeric_columns: int = 0
    categorical_columns: int = 0
    date_columns: int = 0


class QualityIssueResponse(BaseModel):
    type: str
    severity: str
    description: str
    affected_columns: List[str] = []
    affected_rows: Optional[int] = None


class DataQualityResponse(BaseModel):
    """Schema for data quality assessment."""

    completeness: float
    overall_score: float
    issues: List[QualityIssueResponse] = []


class DatasetAnalysisResponse(BaseModel):
    """Schema for a full dataset analysis."""

    row_count: int
    analyzed_row_count: int
    column_count: int
    columns: List[ColumnProfileResponse]
    correlations: List[CorrelationResponse] = []
    summary: DatasetSummaryResponse
    quality: Optional[DataQualityResponse] = None


# Structure Schemas
class StructureRequest(BaseModel):
    """Schema for stateless structure extraction."""

    text: str
    numbered_headings: Optional[bool] = None


class HeadingResponse(BaseModel):
    level: int
    text: str
    line_number: int


class SectionResponse(BaseModel):
    title: str
    start_line: int
    end_line: int
    content: str


class DocumentStructureResponse(BaseModel):
    """Schema for extracted document structure."""

    headings: List[HeadingResponse] = []
    sections: List[SectionResponse] = []
    paragraph_count: int = 0
    word_count: int = 0
    has_lists: bool = False
    has_tables: bool = False


# Data File Schemas
class ColumnTypeResponse(BaseModel):
    name: str
    type: str
    nullable: bool
    unique_count: int
    sample_values: List[str] = []


class DataFileResponse(BaseModel):
    """Schema for data file details."""

    id: int
    file_name: str
    file_type: str
    file_size: int
    column_headers: Optional[List[str]] = None
    column_types: Optional[List[ColumnTypeResponse]] = None
    row_count: Optional[int] = None
    column_count: Optional[int] = None
    data_preview: Optional[List[Dict[str, Any]]] = None
    analysis: Optional[Dict[str, Any]] = Field(None, validation_alias="analysis_json")
    correlations: Optional[List[Dict[str, Any]]] = Field(None, validation_alias="correlations_json")
    quality: Optional[Dict[str, Any]] = Field(None, validation_alias="quality_json")
    schema_description: Optional[str] = None
    has_embedding: bool = False
    processing_status: ProcessingStatus
    processing_progress: int = 0
    error_message: Optional[str] = None
    uploaded_at: datetime
    processed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class DataFileSummary(BaseModel):
    """Schema for data file list entries."""

    id: int
    file_name: str
    file_type: str
    file_size: int
    row_count: Optional[int] = None
    column_count: Optional[int] = None
    processing_status: ProcessingStatus
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Document Schemas
class DocumentResponse(BaseModel):
    """Schema for document details."""

    id: int
    file_name: str
    file_type: str
    file_size: int
    extracted_text: Optional[str] = None
    structure: Optional[DocumentStructureResponse] = Field(None, validation_alias="structure_json")
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="metadata_json")
    language: Optional[str] = None
    word_count: Optional[int] = None
    page_count: Optional[int] = None
    has_embedding: bool = False
    suggested_templates: Optional[List[Dict[str, Any]]] = None
    selected_template_id: Optional[int] = None
    processing_status: ProcessingStatus
    processing_progress: int = 0
    error_message: Optional[str] = None
    uploaded_at: datetime
    processed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class DocumentSummary(BaseModel):
    """Schema for document list entries."""

    id: int
    file_name: str
    file_type: str
    file_size: int
    word_count: Optional[int] = None
    language: Optional[str] = None
    processing_status: ProcessingStatus
    uploaded_at: datetime

    model_config = ConfigDict(from_attributes=True)


# Processing Status Schemas
class ProcessingStatusResponse(BaseModel):
    """Schema for upload processing status."""

    id: int
    processing_status: ProcessingStatus
    processing_progress: int = 0
    error_message: Optional[str] = None
    processed_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# Template Schemas
class TemplateCreate(BaseModel):
    """Schema for creating a new document template."""

    template_name: str = Field(..., min_length=1, max_length=255)
    template_type: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    content: str = Field(..., min_length=1)
    tags: List[str] = []
    generate_embedding: bool = True


class TemplateResponse(BaseModel):
    """Schema for template details."""

    id: int
    template_name: str
    template_type: str
    description: Optional[str] = None
    content: str
    structure: Optional[DocumentStructureResponse] = Field(None, validation_alias="structure_json")
    tags: Optional[List[str]] = None
    has_embedding: bool = False
    is_active: bool = True
    usage_count: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class TemplateMatchResponse(BaseModel):
    """Schema for one template suggestion."""

    template_id: int
    template_name: str
    template_type: str
    similarity_score: float
    content_alignment: float
    structure_alignment: float
    match_reason: str


class TemplateMatchListResponse(BaseModel):
    document_id: int
    matches: List[TemplateMatchResponse] = []
    total: int = 0


class TemplateSelectResponse(BaseModel):
    document_id: int
    template_id: int
    usage_count: int
    message: str = "Template selected"


# Health Check Schema
class HealthCheckResponse(BaseModel):
    """Schema for health check endpoint."""

    status: str
    database: str
    ollama: str
    timestamp: datetime
    version: str = "0.1.0"
