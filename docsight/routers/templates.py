"""
Document template library endpoints.

POST   /       — create a template (structure extracted, content embedded).
GET    /       — list the caller's templates.
GET    /{id}   — template details.
DELETE /{id}   — delete a template.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docsight.config import settings
from docsight.database import get_db
from docsight.dependencies.auth import get_current_user_id
from docsight.models.database_models import DocumentTemplate
from docsight.models.schemas import TemplateCreate, TemplateResponse
from docsight.services.embedding import OllamaEmbeddingService
from docsight.services.structure import extract_structure

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED, include_in_schema=False)
@router.post("/", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    body: TemplateCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> TemplateResponse:
    """
    Add a template to the caller's library.

    The template content goes through the same structure extraction as
    uploaded documents so heading overlap can be scored during matching.
    """
    structure = extract_structure(
        body.content, numbered_headings=settings.STRUCTURE_NUMBERED_HEADINGS
    )

    embedding = None
    if body.generate_embedding:
        embedding = await OllamaEmbeddingService().embed_text(
            body.content[: settings.EMBEDDING_MAX_CHARS]
        )
        if embedding is None:
            logger.warning("Template %r created without an embedding", body.template_name)

    template = DocumentTemplate(
        user_id=user_id,
        template_name=body.template_name,
        template_type=body.template_type,
        description=body.description,
        content=body.content,
        structure_json=structure.to_dict(),
        embedding=embedding,
        tags=body.tags,
    )
    db.add(template)
    await db.commit()

    logger.info(
        "Created template id=%d %r (%s, %d headings) for user=%s",
        template.id,
        template.template_name,
        template.template_type,
        len(structure.headings),
        user_id,
    )
    return _to_response(template)


@router.get("/", response_model=List[TemplateResponse])
async def list_templates(
    template_type: Optional[str] = Query(None),
    include_inactive: bool = Query(False),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> List[TemplateResponse]:
    """List the caller's templates, most used first."""
    stmt = select(DocumentTemplate).where(DocumentTemplate.user_id == user_id)
    if template_type:
        stmt = stmt.where(DocumentTemplate.template_type == template_type)
    if not include_inactive:
        stmt = stmt.where(DocumentTemplate.is_active.is_(True))
    stmt = stmt.order_by(DocumentTemplate.usage_count.desc(), DocumentTemplate.id)

    result = await db.execute(stmt)
    return [_to_response(t) for t in result.scalars().all()]


@router.get("/{template_id}", response_model=TemplateResponse)
async def get_template(
    template_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> TemplateResponse:
    template = await _get_owned_template(template_id, user_id, db)
    return _to_response(template)


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT, response_model=None)
async def delete_template(
    template_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> None:
    template = await _get_owned_template(template_id, user_id, db)
    await db.delete(template)
    await db.commit()
    logger.info(f"Deleted template id={template_id} ({template.template_name!r})")


async def _get_owned_template(
    template_id: int, user_id: str, db: AsyncSession
) -> DocumentTemplate:
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
    return template


def _to_response(template: DocumentTemplate) -> TemplateResponse:
    response = TemplateResponse.model_validate(template)
    response.has_embedding = template.embedding is not None
    return response
