"""
Template matching for uploaded documents.

Public API
----------
TemplateMatcher.rank(document_embedding, document_headings, templates) → List[TemplateMatch]
TemplateMatcher.match_document(document, db, template_type)           → List[TemplateMatch]
select_template(document, template, db)                                → None
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set

import numpy as np
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docsight.config import settings
from docsight.models.database_models import DocumentTemplate, UploadedDocument

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateMatch:
    template_id: int
    template_name: str
    template_type: str
    similarity_score: float
    content_alignment: float
    structure_alignment: float
    match_reason: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class TemplateMatcher:
    """
    Cosine-similarity ranking of templates against a document embedding.

    Both sides are re-normalised before the dot product, so stored vectors do
    not need to be unit length.  Templates without an embedding are skipped.
    """

    def __init__(
        self,
        threshold: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> None:
        self.threshold = settings.TEMPLATE_MATCH_THRESHOLD if threshold is None else threshold
        self.limit = settings.TEMPLATE_MATCH_LIMIT if limit is None else limit

    def rank(
        self,
        document_embedding: Sequence[float],
        document_headings: Iterable[str],
        templates: Iterable[Any],
    ) -> List[TemplateMatch]:
        doc_vec = _unit(np.asarray(list(document_embedding), dtype=float))
        doc_headings = _heading_set(document_headings)

        matches: List[TemplateMatch] = []
        for template in templates:
            if template.embedding is None:
                continue
            tpl_vec = _unit(np.asarray(list(template.embedding), dtype=float))
            if tpl_vec.shape != doc_vec.shape:
                logger.warning(
                    "Template id=%s embedding has %d dims, document has %d; skipped",
                    template.id,
                    tpl_vec.shape[0],
                    doc_vec.shape[0],
                )
                continue

            similarity = round(float(np.clip(np.dot(doc_vec, tpl_vec), -1.0, 1.0)), 4)
            if similarity < self.threshold:
                continue

            structure = _jaccard(doc_headings, _heading_set(template_headings(template)))
            matches.append(
                TemplateMatch(
                    template_id=template.id,
                    template_name=template.template_name,
                    template_type=template.template_type,
                    similarity_score=similarity,
                    content_alignment=similarity,
                    structure_alignment=structure,
                    match_reason=_match_reason(similarity, structure),
                )
            )

        matches.sort(key=lambda m: (-m.similarity_score, m.template_id))
        return matches[: max(self.limit, 0)]

    async def match_document(
        self,
        document: UploadedDocument,
        db: AsyncSession,
        template_type: Optional[str] = None,
    ) -> List[TemplateMatch]:
        """
        Rank the caller's active templates against *document* and store the
        result on ``document.suggested_templates``.
        """
        if document.embedding is None:
            return []

        stmt = select(DocumentTemplate).where(
            DocumentTemplate.user_id == document.user_id,
            DocumentTemplate.is_active.is_(True),
            DocumentTemplate.embedding.isnot(None),
        )
        if template_type:
            stmt = stmt.where(DocumentTemplate.template_type == template_type)
        result = await db.execute(stmt)
        templates = result.scalars().all()

        headings = [h.get("text", "") for h in (document.structure_json or {}).get("headings", [])]
        matches = self.rank(document.embedding, headings, templates)

        document.suggested_templates = [m.to_dict() for m in matches]
        await db.flush()

        logger.info(
            "Document id=%d: %d of %d templates matched (threshold=%.2f)",
            document.id,
            len(matches),
            len(templates),
            self.threshold,
        )
        return matches


async def select_template(
    document: UploadedDocument,
    template: DocumentTemplate,
    db: AsyncSession,
) -> None:
    """Record *template* as the document's choice and bump its usage count."""
    document.selected_template_id = template.id
    template.usage_count = (template.usage_count or 0) + 1
    await db.flush()
    logger.info(
        "Document id=%d selected template id=%d (usage_count=%d)",
        document.id,
        template.id,
        template.usage_count,
    )


def template_headings(template: Any) -> List[str]:
    structure = template.structure_json or {}
    return [h.get("text", "") for h in structure.get("headings", [])]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _unit(vec: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(vec)
    if norm == 0:
        return vec
    return vec / norm


def _heading_set(headings: Iterable[str]) -> Set[str]:
    return {h.strip().lower() for h in headings if h and h.strip()}


def _jaccard(a: Set[str], b: Set[str]) -> float:
    union = a | b
    if not union:
        return 0.0
    return round(len(a & b) / len(union), 4)


def _match_reason(similarity: float, structure: float) -> str:
    if similarity >= 0.9:
        content = "Very similar content"
    elif similarity >= 0.8:
        content = "Similar content"
    else:
        content = "Related content"

    if structure >= 0.5:
        return f"{content} and closely matching section headings"
    if structure > 0:
        return f"{content} with some shared section headings"
    return content
