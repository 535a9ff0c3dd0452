"""
Document upload and management endpoints.

POST   /upload                                — parse a PDF/DOCX/TXT/MD file, extract structure, embed.
GET    /                                      — the caller's 50 most recent documents.
GET    /{id}                                  — document details.
GET    /{id}/structure                        — extracted structure only.
GET    /{id}/status                           — processing status only.
POST   /{id}/match-templates                  — rank the caller's templates against the document.
POST   /{id}/templates/{template_id}/select   — record the chosen template.
DELETE /{id}                                  — delete the record and its file from disk.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docsight.config import settings
from docsight.database import get_db
from docsight.dependencies.auth import get_current_user_id
from docsight.exceptions import EmptyInputError, UnsupportedFormatError
from docsight.models.database_models import DocumentTemplate, ProcessingStatus, UploadedDocument
from docsight.models.schemas import (
    DocumentResponse,
    DocumentStructureResponse,
    DocumentSummary,
    ProcessingStatusResponse,
    TemplateMatchListResponse,
    TemplateMatchResponse,
    TemplateSelectResponse,
)
from docsight.services.document_processing import DocumentProcessor
from docsight.services.template_matcher import TemplateMatcher, select_template
from docsight.utils.uploads import safe_remove, save_upload

logger = logging.getLogger(__name__)

router = APIRouter()

LIST_LIMIT = 50


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

@router.post(
    "/upload",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    file: UploadFile = File(...),
    extract_structure: bool = Query(True),
    generate_embedding: bool = Query(True),
    numbered_headings: Optional[bool] = Query(
        None, description="Treat '1. Foo' lines as headings (default from settings)"
    ),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> DocumentResponse:
    """
    Upload a document, extract its text and structure, and embed it.

    - Max file size: 50 MB (configurable via MAX_FILE_SIZE)
    - Legacy .doc files are rejected; save them as .docx first
    - If extraction fails the record is kept with ``processing_status = failed``
    """
    stored = await save_upload(file, settings.SUPPORTED_DOCUMENT_TYPES)

    document = UploadedDocument(
        user_id=user_id,
        file_name=stored.file_name,
        file_type=stored.file_ext.lstrip("."),
        file_size=stored.file_size,
        file_path=stored.file_path,
    )
    db.add(document)
    await db.flush()   # populate document.id for status logging

    try:
        await DocumentProcessor().process(
            document,
            db,
            extract_structure_flag=extract_structure,
            generate_embedding=generate_embedding,
            numbered_headings=numbered_headings,
        )
    except UnsupportedFormatError as exc:
        await db.commit()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except (EmptyInputError, RuntimeError) as exc:
        await db.commit()
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))

    await db.commit()

    logger.info(f"Document {stored.file_name!r} stored as id={document.id} for user={user_id}")
    return _to_response(document)


# ---------------------------------------------------------------------------
# List / get
# ---------------------------------------------------------------------------

@router.get("/", response_model=List[DocumentSummary])
async def list_documents(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> List[DocumentSummary]:
    """List the caller's documents, newest first."""
    result = await db.execute(
        select(UploadedDocument)
        .where(UploadedDocument.user_id == user_id)
        .order_by(UploadedDocument.uploaded_at.desc(), UploadedDocument.id.desc())
        .limit(LIST_LIMIT)
    )
    return [DocumentSummary.model_validate(doc) for doc in result.scalars().all()]


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> DocumentResponse:
    document = await _get_owned_document(document_id, user_id, db)
    return _to_response(document)


@router.get("/{document_id}/structure", response_model=DocumentStructureResponse)
async def get_document_structure(
    document_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> DocumentStructureResponse:
    """Return the extracted structure; 404 if structure extraction was skipped."""
    document = await _get_owned_document(document_id, user_id, db)
    if document.structure_json is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No structure has been extracted for this document.",
        )
    return DocumentStructureResponse.model_validate(document.structure_json)


@router.get("/{document_id}/status", response_model=ProcessingStatusResponse)
async def get_document_status(
    document_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> ProcessingStatusResponse:
    document = await _get_owned_document(document_id, user_id, db)
    return ProcessingStatusResponse.model_validate(document)


# ---------------------------------------------------------------------------
# Template matching
# ---------------------------------------------------------------------------

@router.post("/{document_id}/match-templates", response_model=TemplateMatchListResponse)
async def match_templates(
    document_id: int,
    template_type: Optional[str] = Query(None),
    min_similarity: Optional[float] = Query(None, ge=-1.0, le=1.0),
    limit: Optional[int] = Query(None, ge=1, le=50),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> TemplateMatchListResponse:
    """
    Rank the caller's active templates by cosine similarity to the document.

    The ranked list is also stored on the document as ``suggested_templates``.
    """
    document = await _get_owned_document(document_id, user_id, db)

    if document.processing_status != ProcessingStatus.COMPLETED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Document is not processed yet (status: {document.processing_status.value}).",
        )
    if document.embedding is None:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Document has no embedding; re-upload it with generate_embedding=true.",
        )

    matcher = TemplateMatcher(threshold=min_similarity, limit=limit)
    matches = await matcher.match_document(document, db, template_type=template_type)
    await db.commit()

    return TemplateMatchListResponse(
        document_id=document.id,
        matches=[TemplateMatchResponse(**m.to_dict()) for m in matches],
        total=len(matches),
    )


@router.post(
    "/{document_id}/templates/{template_id}/select",
    response_model=TemplateSelectResponse,
)
async def select_document_template(
    document_id: int,
    template_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> TemplateSelectResponse:
    """Record *template_id* as the document's template and bump its usage count."""
    document = await _get_owned_document(document_id, user_id, db)

    result = await db.execute(
        select(DocumentTemplate).where(
            DocumentTemplate.id == template_id,
            DocumentTemplate.user_id == user_id,
        )
    )
    template = result.scalar_one_or_none()
    if template is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Template not found.",
        )

    await select_template(document, template, db)
    await db.commit()

    return TemplateSelectResponse(
        document_id=document.id,
        template_id=template.id,
        usage_count=template.usage_count,
        message=f"Template {template.template_name!r} selected",
    )


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT, response_model=None)
async def delete_document(
    document_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a document record and its file from disk."""
    document = await _get_owned_document(document_id, user_id, db)

    safe_remove(document.file_path)

    await db.delete(document)
    await db.commit()

    logger.info(f"Deleted document id={document_id} ({document.file_name!r})")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

async def _get_owned_document(
    document_id: int, user_id: str, db: AsyncSession
) -> UploadedDocument:
    """Load a document owned by *user_id*; anything else is a 404."""
    result = await db.execute(
        select(UploadedDocument).where(
            UploadedDocument.id == document_id,
            UploadedDocument.user_id == user_id,
        )
    )
    document = result.scalar_one_or_none()
    if document is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Document not found.",
        )
    return document


def _to_response(document: UploadedDocument) -> DocumentResponse:
    response = DocumentResponse.model_validate(document)
    response.has_embedding = document.embedding is not None
    return response
