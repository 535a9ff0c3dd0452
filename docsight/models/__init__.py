"""Database and schema models for docsight."""
from docsight.models.database_models import (
    DataFile,
    UploadedDocument,
    DocumentTemplate,
    ProcessingStatus,
)
from docsight.models.schemas import (
    DatasetAnalysisResponse,
    DocumentStructureResponse,
    DataFileResponse,
    DocumentResponse,
    TemplateResponse,
    TemplateMatchResponse,
    HealthCheckResponse,
)

__all__ = [
    # Database models
    "DataFile",
    "UploadedDocument",
    "DocumentTemplate",
    "ProcessingStatus",
    # Pydantic schemas
    "DatasetAnalysisResponse",
    "DocumentStructureResponse",
    "DataFileResponse",
    "DocumentResponse",
    "TemplateResponse",
    "TemplateMatchResponse",
    "HealthCheckResponse",
]
