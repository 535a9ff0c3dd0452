"""
Processing pipeline for uploaded tabular files.

parsing → analyzing → (embedding) → completed, or failed with error_message.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from docsight.config import settings
from docsight.exceptions import EmptyInputError
from docsight.models.database_models import DataFile, ProcessingStatus
from docsight.services.data_quality import assess_quality
from docsight.services.embedding import OllamaEmbeddingService
from docsight.services.profiler import DatasetAnalysis, ProfileOptions, profile
from docsight.services.tabular_loader import load_table

logger = logging.getLogger(__name__)


class DataFileProcessor:
    """Loads, profiles and stores the analysis of one DataFile record."""

    def __init__(self, embedder: Optional[OllamaEmbeddingService] = None) -> None:
        self.embedder = embedder or OllamaEmbeddingService()

    async def process(
        self,
        data_file: DataFile,
        db: AsyncSession,
        options: Optional[ProfileOptions] = None,
        generate_embedding: bool = True,
    ) -> DataFile:
        """
        Run the full analysis for *data_file* and persist the results on it.

        Raises whatever the loader or profiler raised, after marking the
        record as failed.
        """
        if options is None:
            options = ProfileOptions(sample_size=settings.PROFILE_SAMPLE_SIZE)

        try:
            await _set_status(data_file, db, ProcessingStatus.PARSING, 10)
            table = load_table(data_file.file_path, data_file.file_type)
            if not table.headers:
                raise EmptyInputError("The uploaded file has no columns.")
            if not table.rows:
                raise EmptyInputError("The uploaded file has a header row but no data rows.")

            await _set_status(data_file, db, ProcessingStatus.ANALYZING, 40)
            analysis = profile(table.headers, table.rows, options)
            quality = assess_quality(analysis)

            data_file.column_headers = table.headers
            data_file.column_types = column_types(analysis)
            data_file.row_count = analysis.row_count
            data_file.column_count = analysis.column_count
            data_file.data_preview = [
                dict(row) for row in table.rows[: min(settings.DATA_PREVIEW_ROWS, analysis.analyzed_row_count)]
            ]
            data_file.analysis_json = analysis.to_dict()
            data_file.correlations_json = data_file.analysis_json["correlations"]
            data_file.quality_json = quality.to_dict()
            data_file.schema_description = schema_description(analysis)

            if generate_embedding:
                await _set_status(data_file, db, ProcessingStatus.EMBEDDING, 80)
                embedding = await self.embedder.embed_text(data_file.schema_description)
                if embedding is None:
                    logger.warning("Data file id=%d: schema embedding unavailable", data_file.id)
                data_file.schema_embedding = embedding

            data_file.processed_at = datetime.now(timezone.utc)
            await _set_status(data_file, db, ProcessingStatus.COMPLETED, 100)
            logger.info(
                "Data file id=%d processed: %d rows (%d analysed), %d columns, %d correlations",
                data_file.id,
                analysis.row_count,
                analysis.analyzed_row_count,
                analysis.column_count,
                len(analysis.correlations),
            )
            return data_file

        except Exception as exc:
            data_file.processing_status = ProcessingStatus.FAILED
            data_file.error_message = str(exc)
            await db.flush()
            logger.error("Data file id=%d failed: %s", data_file.id, exc)
            raise


def column_types(analysis: DatasetAnalysis) -> List[Dict[str, Any]]:
    """Per-column summary stored alongside the full analysis."""
    return [
        {
            "name": col.name,
            "type": col.inferred_type.value,
            "nullable": col.nullable,
            "unique_count": col.unique_count,
            "sample_values": list(col.sample_values),
        }
        for col in analysis.columns
    ]


def schema_description(analysis: DatasetAnalysis) -> str:
    return f"Dataset with {analysis.column_count} columns and {analysis.row_count} rows"


async def _set_status(
    data_file: DataFile,
    db: AsyncSession,
    status: ProcessingStatus,
    progress: int,
) -> None:
    data_file.processing_status = status
    data_file.processing_progress = progress
    await db.flush()
    logger.info("Data file id=%d → %s (%d%%)", data_file.id, status.value, progress)
