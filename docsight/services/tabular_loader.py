"""
Tabular file loading for CSV, TSV and Excel workbooks.

Turns an uploaded file into ``(headers, rows)`` for the profiler.  Parsing is
delegated to pandas; this module only normalises what comes back so the
profiler sees plain Python cells (str / int / float / bool / None).
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List
from zipfile import BadZipFile

import numpy as np
import pandas as pd

from docsight.exceptions import EmptyInputError, UnsupportedFormatError
from docsight.services.cells import Cell

logger = logging.getLogger(__name__)


@dataclass
class LoadedTable:
    """Parsed table: trimmed headers plus one dict per data row."""

    headers: List[str]
    rows: List[Dict[str, Cell]] = field(default_factory=list)


def load_table(file_path: str, file_type: str) -> LoadedTable:
    """
    Read a tabular file into a LoadedTable.

    Args:
        file_path: Path to the file on disk.
        file_type: Extension with or without dot, e.g. ".csv" or "xlsx".

    Raises:
        UnsupportedFormatError: Extension is not csv, tsv or xlsx.
        EmptyInputError:        The file holds no columns at all.
        RuntimeError:           The file could not be parsed.
    """
    ft = file_type.lower().lstrip(".")
    if ft not in ("csv", "tsv", "xlsx"):
        raise UnsupportedFormatError(f"Unsupported file type: {file_type!r}")

    try:
        if ft == "csv":
            df = pd.read_csv(file_path, skip_blank_lines=True)
        elif ft == "tsv":
            df = pd.read_csv(file_path, sep="\t", skip_blank_lines=True)
        else:
            # First sheet only
            df = pd.read_excel(file_path, sheet_name=0, engine="openpyxl")
    except pd.errors.EmptyDataError as exc:
        raise EmptyInputError("The uploaded file contains no data.") from exc
    except (pd.errors.ParserError, UnicodeDecodeError, ValueError, OSError, BadZipFile) as exc:
        raise RuntimeError(f"Cannot read {ft.upper()} file: {exc}") from exc

    return dataframe_to_table(df)


def dataframe_to_table(df: pd.DataFrame) -> LoadedTable:
    """Convert a DataFrame into trimmed headers and plain-Python row dicts."""
    headers = [str(column).strip() for column in df.columns]
    df = df.copy()
    df.columns = headers

    rows: List[Dict[str, Cell]] = []
    for record in df.to_dict(orient="records"):
        rows.append({key: _to_cell(value) for key, value in record.items()})

    logger.debug("Loaded table with %d columns and %d rows", len(headers), len(rows))
    return LoadedTable(headers=headers, rows=rows)


def _to_cell(value: Any) -> Cell:
    """Map pandas/numpy scalars onto the Cell union."""
    if value is None or value is pd.NaT or value is pd.NA:
        return None
    if isinstance(value, np.generic):
        value = value.item()
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, (pd.Timestamp, datetime, date)):
        return value.isoformat()
    if isinstance(value, (str, bool, int, float)):
        return value
    return str(value)
