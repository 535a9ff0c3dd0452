"""
Stateless analysis endpoints.

POST /profile    — profile an in-memory table (headers + row objects).
POST /structure  — extract headings/sections from raw text.

Nothing is persisted; these are the same analyses the upload routes run.
"""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends

from docsight.config import settings
from docsight.dependencies.auth import get_current_user_id
from docsight.models.schemas import (
    DatasetAnalysisResponse,
    DocumentStructureResponse,
    ProfileRequest,
    StructureRequest,
)
from docsight.services.data_quality import DataQuality, assess_quality
from docsight.services.profiler import DatasetAnalysis, ProfileOptions, profile
from docsight.services.structure import extract_structure

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/profile", response_model=DatasetAnalysisResponse)
async def profile_table(
    body: ProfileRequest,
    user_id: str = Depends(get_current_user_id),
) -> DatasetAnalysisResponse:
    """
    Profile a table: per-column type inference and statistics, notable
    correlations between numeric columns, and a data quality assessment.

    An empty table is valid and yields zero counts.
    """
    options = ProfileOptions(
        sample_size=body.options.sample_size,
        detect_types=body.options.detect_types,
        find_correlations=body.options.find_correlations,
    )
    analysis = profile(body.headers, body.rows, options)
    quality = assess_quality(analysis)

    logger.info(
        "Profiled %d rows x %d columns for user=%s",
        analysis.row_count,
        analysis.column_count,
        user_id,
    )
    return DatasetAnalysisResponse.model_validate(analysis_payload(analysis, quality))


@router.post("/structure", response_model=DocumentStructureResponse)
async def analyze_structure(
    body: StructureRequest,
    user_id: str = Depends(get_current_user_id),
) -> DocumentStructureResponse:
    """Extract headings, sections and simple layout flags from text."""
    numbered = (
        settings.STRUCTURE_NUMBERED_HEADINGS
        if body.numbered_headings is None
        else body.numbered_headings
    )
    structure = extract_structure(body.text, numbered_headings=numbered)
    return DocumentStructureResponse.model_validate(structure.to_dict())


def analysis_payload(analysis: DatasetAnalysis, quality: DataQuality) -> Dict[str, Any]:
    """Analysis blob with per-column ``nullable`` and the quality block attached."""
    payload = analysis.to_dict()
    for column, source in zip(payload["columns"], analysis.columns):
        column["nullable"] = source.nullable
    payload["quality"] = quality.to_dict()
    return payload
