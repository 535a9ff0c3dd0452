"""Unit tests for CSV/TSV/XLSX loading."""
from datetime import datetime

import numpy as np
import pandas as pd
import pytest
from openpyxl import Workbook

from docsight.exceptions import EmptyInputError, UnsupportedFormatError
from docsight.services.tabular_loader import _to_cell, dataframe_to_table, load_table


def test_load_csv_trims_headers_and_maps_missing(tmp_path):
    path = tmp_path / "scores.csv"
    path.write_text(" name ,score\nann,10\nben,\n")

    table = load_table(str(path), ".csv")

    assert table.headers == ["name", "score"]
    assert table.rows == [{"name": "ann", "score": 10.0}, {"name": "ben", "score": None}]


def test_load_tsv(tmp_path):
    path = tmp_path / "pairs.tsv"
    path.write_text("x\ty\n3\tred\n")

    table = load_table(str(path), "tsv")

    assert table.headers == ["x", "y"]
    assert table.rows == [{"x": 3, "y": "red"}]
    assert type(table.rows[0]["x"]) is int


def test_load_xlsx_reads_first_sheet(tmp_path):
    wb = Workbook()
    ws = wb.active
    ws.append(["when", "qty"])
    ws.append([datetime(2024, 1, 5), 4])
    other = wb.create_sheet("ignored")
    other.append(["nope"])
    path = tmp_path / "book.xlsx"
    wb.save(path)

    table = load_table(str(path), ".xlsx")

    assert table.headers == ["when", "qty"]
    assert table.rows == [{"when": "2024-01-05T00:00:00", "qty": 4}]


def test_unsupported_extension(tmp_path):
    with pytest.raises(UnsupportedFormatError):
        load_table(str(tmp_path / "data.json"), ".json")


def test_empty_file(tmp_path):
    path = tmp_path / "blank.csv"
    path.write_text("")
    with pytest.raises(EmptyInputError):
        load_table(str(path), ".csv")


def test_corrupt_workbook(tmp_path):
    path = tmp_path / "broken.xlsx"
    path.write_bytes(b"not a zip archive")
    with pytest.raises(RuntimeError):
        load_table(str(path), ".xlsx")


def test_dataframe_to_table_uses_plain_python_cells():
    df = pd.DataFrame({"flag": [True, False], "n": [1.5, np.nan]})
    table = dataframe_to_table(df)
    assert table.rows == [{"flag": True, "n": 1.5}, {"flag": False, "n": None}]
    assert type(table.rows[0]["flag"]) is bool


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, None),
        (pd.NaT, None),
        (float("nan"), None),
        (np.int64(3), 3),
        (np.bool_(True), True),
        (pd.Timestamp("2024-02-01"), "2024-02-01T00:00:00"),
        ("text", "text"),
    ],
)
def test_to_cell(value, expected):
    assert _to_cell(value) == expected
