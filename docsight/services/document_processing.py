"""
Processing pipeline for uploaded documents.

extracting → analyzing → embedding → completed, or failed with error_message.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from docsight.config import settings
from docsight.exceptions import EmptyInputError
from docsight.models.database_models import ProcessingStatus, UploadedDocument
from docsight.services.document_parser import DocumentParser
from docsight.services.embedding import OllamaEmbeddingService
from docsight.services.structure import count_words, extract_structure

logger = logging.getLogger(__name__)


class DocumentProcessor:
    """Extracts text, structure and an embedding for one UploadedDocument."""

    def __init__(
        self,
        parser: Optional[DocumentParser] = None,
        embedder: Optional[OllamaEmbeddingService] = None,
    ) -> None:
        self.parser = parser or DocumentParser()
        self.embedder = embedder or OllamaEmbeddingService()

    async def process(
        self,
        document: UploadedDocument,
        db: AsyncSession,
        extract_structure_flag: bool = True,
        generate_embedding: bool = True,
        numbered_headings: Optional[bool] = None,
    ) -> UploadedDocument:
        if numbered_headings is None:
            numbered_headings = settings.STRUCTURE_NUMBERED_HEADINGS

        try:
            await _set_status(document, db, ProcessingStatus.EXTRACTING, 10)
            parsed = await self.parser.parse_document(document.file_path, document.file_type)
            if not parsed.full_text.strip():
                raise EmptyInputError("Document contains no extractable text.")

            document.extracted_text = parsed.full_text
            document.metadata_json = parsed.metadata
            document.language = parsed.metadata.get("detected_language")
            document.page_count = parsed.metadata.get("page_count")

            await _set_status(document, db, ProcessingStatus.ANALYZING, 40)
            if extract_structure_flag:
                structure = extract_structure(parsed.full_text, numbered_headings=numbered_headings)
                document.structure_json = structure.to_dict()
                document.word_count = structure.word_count
            else:
                document.word_count = count_words(parsed.full_text)

            if generate_embedding:
                await _set_status(document, db, ProcessingStatus.EMBEDDING, 70)
                embedding = await self.embedder.embed_text(
                    parsed.full_text[: settings.EMBEDDING_MAX_CHARS]
                )
                if embedding is None:
                    logger.warning("Document id=%d: embedding unavailable", document.id)
                document.embedding = embedding

            document.processed_at = datetime.now(timezone.utc)
            await _set_status(document, db, ProcessingStatus.COMPLETED, 100)
            logger.info(
                "Document id=%d processed: %d words, %d headings, language=%s",
                document.id,
                document.word_count,
                len((document.structure_json or {}).get("headings", [])),
                document.language,
            )
            return document

        except Exception as exc:
            document.processing_status = ProcessingStatus.FAILED
            document.error_message = str(exc)
            await db.flush()
            logger.error("Document id=%d failed: %s", document.id, exc)
            raise


async def _set_status(
    document: UploadedDocument,
    db: AsyncSession,
    status: ProcessingStatus,
    progress: int,
) -> None:
    document.processing_status = status
    document.processing_progress = progress
    await db.flush()
    logger.info("Document id=%d → %s (%d%%)", document.id, status.value, progress)
