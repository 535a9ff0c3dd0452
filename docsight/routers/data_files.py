"""
Data file upload and management endpoints.

POST   /upload       — store a CSV/TSV/XLSX file and profile it.
GET    /             — the caller's 50 most recent data files.
GET    /{id}         — full analysis for one data file.
GET    /{id}/status  — processing status only.
DELETE /{id}         — delete the record and its file from disk.
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
from docsight.models.database_models import DataFile
from docsight.models.schemas import DataFileResponse, DataFileSummary, ProcessingStatusResponse
from docsight.services.data_processing import DataFileProcessor
from docsight.services.profiler import ProfileOptions
from docsight.utils.uploads import safe_remove, save_upload

logger = logging.getLogger(__name__)

router = APIRouter()

LIST_LIMIT = 50


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

@router.post(
    "/upload",
    response_model=DataFileResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_data_file(
    file: UploadFile = File(...),
    sample_size: Optional[int] = Query(None, description="Rows to analyse (default 1000)"),
    detect_types: bool = Query(True),
    find_correlations: bool = Query(True),
    generate_embedding: bool = Query(True),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> DataFileResponse:
    """
    Upload a tabular file and run the profiler over it.

    - Max file size: 50 MB (configurable via MAX_FILE_SIZE)
    - A record is created before analysis; if analysis fails it is kept with
      ``processing_status = failed`` and the error message.
    """
    stored = await save_upload(file, settings.SUPPORTED_DATA_TYPES)

    data_file = DataFile(
        user_id=user_id,
        file_name=stored.file_name,
        file_type=stored.file_ext.lstrip("."),
        file_size=stored.file_size,
        file_path=stored.file_path,
    )
    db.add(data_file)
    await db.flush()   # populate data_file.id for status logging

    options = ProfileOptions(
        sample_size=sample_size if sample_size is not None else settings.PROFILE_SAMPLE_SIZE,
        detect_types=detect_types,
        find_correlations=find_correlations,
    )

    try:
        await DataFileProcessor().process(
            data_file, db, options=options, generate_embedding=generate_embedding
        )
    except UnsupportedFormatError as exc:
        await db.commit()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except (EmptyInputError, RuntimeError) as exc:
        await db.commit()
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))

    await db.commit()

    logger.info(f"Data file {stored.file_name!r} stored as id={data_file.id} for user={user_id}")
    return _to_response(data_file)


# ---------------------------------------------------------------------------
# List / get
# ---------------------------------------------------------------------------

@router.get("/", response_model=List[DataFileSummary])
async def list_data_files(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> List[DataFileSummary]:
    """List the caller's data files, newest first."""
    result = await db.execute(
        select(DataFile)
        .where(DataFile.user_id == user_id)
        .order_by(DataFile.uploaded_at.desc(), DataFile.id.desc())
        .limit(LIST_LIMIT)
    )
    return [DataFileSummary.model_validate(df) for df in result.scalars().all()]


@router.get("/{data_file_id}", response_model=DataFileResponse)
async def get_data_file(
    data_file_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> DataFileResponse:
    """Return the full analysis for a single data file."""
    data_file = await _get_owned(data_file_id, user_id, db)
    return _to_response(data_file)


@router.get("/{data_file_id}/status", response_model=ProcessingStatusResponse)
async def get_data_file_status(
    data_file_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> ProcessingStatusResponse:
    data_file = await _get_owned(data_file_id, user_id, db)
    return ProcessingStatusResponse.model_validate(data_file)


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@router.delete("/{data_file_id}", status_code=status.HTTP_204_NO_CONTENT, response_model=None)
async def delete_data_file(
    data_file_id: int,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> None:
    """Delete a data file record and its file from disk."""
    data_file = await _get_owned(data_file_id, user_id, db)

    safe_remove(data_file.file_path)

    await db.delete(data_file)
    await db.commit()

    logger.info(f"Deleted data file id={data_file_id} ({data_file.file_name!r})")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

async def _get_owned(data_file_id: int, user_id: str, db: AsyncSession) -> DataFile:
    """Load a data file owned by *user_id*; anything else is a 404."""
    result = await db.execute(
        select(DataFile).where(
            DataFile.id == data_file_id,
            DataFile.user_id == user_id,
        )
    )
    data_file = result.scalar_one_or_none()
    if data_file is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Data file not found.",
        )
    return data_file


def _to_response(data_file: DataFile) -> DataFileResponse:
    response = DataFileResponse.model_validate(data_file)
    response.has_embedding = data_file.schema_embedding is not None
    return response
