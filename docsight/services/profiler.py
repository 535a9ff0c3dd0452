"""
Tabular data profiling: column type inference, descriptive statistics and
pairwise Pearson correlation over a bounded row sample.

The profiler is a pure, synchronous, single-pass computation over rows that
have already been parsed (see ``tabular_loader``).  It performs no I/O and
holds no state between calls, so profiling identical input twice yields an
identical ``DatasetAnalysis``.

Type inference is a statistical estimate: only the first
``TYPE_SAMPLE_SIZE`` non-null values of a column are classified, so highly
mixed columns can be mis-typed.
"""
from __future__ import annotations

import enum
import logging
import math
import re
from collections import Counter
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from docsight.services.cells import (
    Cell,
    Row,
    display_string,
    distinct_key,
    is_boolean_literal,
    is_null,
    to_datetime,
    to_number,
)

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 1000
TYPE_SAMPLE_SIZE = 10
TYPE_THRESHOLD = 0.8
CATEGORICAL_UNIQUE_RATIO = 0.5
MAX_SAMPLE_VALUES = 5

CORRELATION_MIN_PAIRS = 2
CORRELATION_REPORT_THRESHOLD = 0.3
CORRELATION_MODERATE = 0.4
CORRELATION_STRONG = 0.7

_INDEX_KEY_RE = re.compile(r"0|[1-9][0-9]*")
MAX_INDEX_KEY = 2 ** 32 - 1


# ---------------------------------------------------------------------------
# Data structures
# ---------------------------------------------------------------------------

class ColumnType(str, enum.Enum):
    """Semantic type inferred for a column."""

    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    MIXED = "mixed"


class CorrelationStrength(str, enum.Enum):
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


@dataclass(frozen=True)
class NumericStats:
    min: float
    max: float
    mean: float
    median: float
    std_dev: float


@dataclass(frozen=True)
class CategoricalStats:
    mode: str


@dataclass(frozen=True)
class DateStats:
    earliest: str
    latest: str


ColumnStats = Union[NumericStats, CategoricalStats, DateStats]


@dataclass(frozen=True)
class ColumnProfile:
    """Inferred type and statistics for one input column."""

    name: str
    inferred_type: ColumnType
    unique_count: int
    null_count: int
    sample_values: List[str] = field(default_factory=list)
    stats: Optional[ColumnStats] = None

    @property
    def nullable(self) -> bool:
        return self.null_count > 0


@dataclass(frozen=True)
class CorrelationPair:
    """A notable Pearson correlation between two numeric columns."""

    column1: str
    column2: str
    correlation: float
    strength: CorrelationStrength


@dataclass(frozen=True)
class DatasetSummary:
    total_rows: int
    total_columns: int
    numeric_columns: int = 0
    categorical_columns: int = 0
    date_columns: int = 0


@dataclass(frozen=True)
class DatasetAnalysis:
    """
    Full result of profiling one table.

    Attributes:
        row_count:          Number of rows handed to the profiler.
        analyzed_row_count: Rows actually analysed (the sample prefix).
        column_count:       Number of headers.
        columns:            One profile per header, in header order.
        correlations:       Notable pairs in discovery order.
        summary:            Per-type column tallies over the analysed rows.
    """

    row_count: int
    analyzed_row_count: int
    column_count: int
    columns: List[ColumnProfile]
    correlations: List[CorrelationPair]
    summary: DatasetSummary

    def to_dict(self) -> Dict[str, Any]:
        """Plain JSON-serialisable representation (enums become strings)."""
        return _jsonable(asdict(self))


@dataclass(frozen=True)
class ProfileOptions:
    """
    Knobs for a single profiling run.

    ``sample_size`` of None or <= 0 means ``min(DEFAULT_SAMPLE_SIZE, rows)``.
    """

    sample_size: Optional[int] = None
    detect_types: bool = True
    find_correlations: bool = True


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def profile(
    headers: Sequence[str],
    rows: Sequence[Row],
    options: Optional[ProfileOptions] = None,
) -> DatasetAnalysis:
    """
    Profile a parsed table.

    Args:
        headers: Column labels in column order.  Duplicates are not merged.
        rows:    Row mappings from header to raw cell value.
        options: Sampling and phase switches; defaults to everything enabled.

    Returns:
        An immutable DatasetAnalysis.  An empty table yields an analysis with
        zero counts rather than an error.
    """
    options = options or ProfileOptions()
    sample = list(rows[: _effective_sample_size(options.sample_size, len(rows))])

    columns: List[ColumnProfile] = []
    categorical = 0
    for header in headers:
        column, is_categorical = _profile_column(
            header.strip(), header, sample, options.detect_types
        )
        columns.append(column)
        if is_categorical:
            categorical += 1

    correlations: List[CorrelationPair] = []
    if options.find_correlations:
        numeric_headers = [
            header
            for header, column in zip(headers, columns)
            if column.inferred_type is ColumnType.NUMBER
        ]
        correlations = find_correlations(sample, numeric_headers)

    summary = DatasetSummary(
        total_rows=len(sample),
        total_columns=len(headers),
        numeric_columns=sum(1 for c in columns if c.inferred_type is ColumnType.NUMBER),
        categorical_columns=categorical,
        date_columns=sum(1 for c in columns if c.inferred_type is ColumnType.DATE),
    )

    logger.debug(
        "Profiled %d columns over %d/%d rows (%d correlations)",
        len(columns),
        len(sample),
        len(rows),
        len(correlations),
    )
    return DatasetAnalysis(
        row_count=len(rows),
        analyzed_row_count=len(sample),
        column_count=len(headers),
        columns=columns,
        correlations=correlations,
        summary=summary,
    )


def infer_type(values: Sequence[Cell]) -> ColumnType:
    """
    Classify a column from its non-null values.

    Only the first TYPE_SAMPLE_SIZE values are inspected.  Each one lands in
    at most one bucket, checked in the order boolean, number, date; a bucket
    wins when it holds more than TYPE_THRESHOLD of the inspected values.
    Anything else is a string column.
    """
    head = list(values[:TYPE_SAMPLE_SIZE])
    if not head:
        return ColumnType.STRING

    booleans = numbers = dates = 0
    for value in head:
        if is_boolean_literal(value):
            booleans += 1
        elif to_number(value) is not None:
            numbers += 1
        elif to_datetime(value) is not None:
            dates += 1

    size = len(head)
    if booleans / size > TYPE_THRESHOLD:
        return ColumnType.BOOLEAN
    if numbers / size > TYPE_THRESHOLD:
        return ColumnType.NUMBER
    if dates / size > TYPE_THRESHOLD:
        return ColumnType.DATE
    return ColumnType.STRING


def numeric_stats(values: Sequence[Cell]) -> Optional[NumericStats]:
    """
    Descriptive statistics over every numeric-parseable value.

    The median is the lower median (no averaging for even counts) and the
    standard deviation is the population one.  Mean and deviation are two
    explicit sequential passes so results are reproducible to the last bit.
    """
    numbers = sorted(n for n in (to_number(v) for v in values) if n is not None)
    if not numbers:
        return None

    count = len(numbers)
    total = 0.0
    for n in numbers:
        total += n
    mean = total / count

    squared = 0.0
    for n in numbers:
        squared += (n - mean) ** 2

    return NumericStats(
        min=numbers[0],
        max=numbers[-1],
        mean=mean,
        median=numbers[count // 2],
        std_dev=math.sqrt(squared / count),
    )


def date_stats(values: Sequence[Cell]) -> Optional[DateStats]:
    """Earliest and latest parseable date in the column, as ISO strings."""
    dates = [d for d in (to_datetime(v) for v in values) if d is not None]
    if not dates:
        return None
    return DateStats(earliest=min(dates).isoformat(), latest=max(dates).isoformat())


def find_correlations(
    rows: Sequence[Row],
    numeric_headers: Sequence[str],
) -> List[CorrelationPair]:
    """
    Pearson correlation for every unordered pair of numeric columns.

    Pairs are visited in column order (i < j).  Rows where either cell is null or
    not a finite number are dropped; a pair with fewer than two usable rows is
    skipped outright.  Only pairs with |r| above the report threshold are
    returned, with r rounded to three decimals.
    """
    correlations: List[CorrelationPair] = []
    for i, first in enumerate(numeric_headers):
        for second in numeric_headers[i + 1:]:
            pairs: List[Tuple[float, float]] = []
            for row in rows:
                x_cell, y_cell = _cell(row, first), _cell(row, second)
                # Empty strings are nulls here, not the zero to_number reads them as
                if is_null(x_cell) or is_null(y_cell):
                    continue
                x, y = to_number(x_cell), to_number(y_cell)
                if x is not None and y is not None:
                    pairs.append((x, y))

            if len(pairs) < CORRELATION_MIN_PAIRS:
                continue

            r = pearson(pairs)
            magnitude = abs(r)
            if magnitude <= CORRELATION_REPORT_THRESHOLD:
                continue

            correlations.append(
                CorrelationPair(
                    column1=first.strip(),
                    column2=second.strip(),
                    correlation=_round3(r),
                    strength=correlation_strength(magnitude),
                )
            )
    return correlations


def pearson(pairs: Sequence[Tuple[float, float]]) -> float:
    """Pearson's r via the sum-of-products formula; 0 when undefined."""
    n = len(pairs)
    if n == 0:
        return 0.0

    sum_x = sum_y = sum_xy = sum_x2 = sum_y2 = 0.0
    for x, y in pairs:
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_x2 += x * x
        sum_y2 += y * y

    numerator = n * sum_xy - sum_x * sum_y
    spread = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)
    # Rounding can push a zero spread slightly negative
    if spread <= 0:
        return 0.0
    r = numerator / math.sqrt(spread)
    return max(-1.0, min(1.0, r))


def correlation_strength(magnitude: float) -> CorrelationStrength:
    if magnitude > CORRELATION_STRONG:
        return CorrelationStrength.STRONG
    if magnitude > CORRELATION_MODERATE:
        return CorrelationStrength.MODERATE
    return CorrelationStrength.WEAK


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------

def _effective_sample_size(requested: Optional[int], available: int) -> int:
    if requested is None or requested <= 0:
        return min(DEFAULT_SAMPLE_SIZE, available)
    return requested


def _cell(row: Row, header: str) -> Cell:
    return row.get(header)


def _profile_column(
    name: str,
    header: str,
    sample: Sequence[Row],
    detect_types: bool,
) -> Tuple[ColumnProfile, bool]:
    """Profile one column; the flag reports whether it counts as categorical."""
    values = [v for v in (_cell(row, header) for row in sample) if not is_null(v)]

    distinct: Dict[Tuple[str, object], Cell] = {}
    for value in values:
        distinct.setdefault(distinct_key(value), value)
    samples = [display_string(v) for v in list(distinct.values())[:MAX_SAMPLE_VALUES]]

    inferred = ColumnType.STRING
    stats: Optional[ColumnStats] = None
    is_categorical = False

    if detect_types and values:
        inferred = infer_type(values)
        if inferred is ColumnType.NUMBER:
            stats = numeric_stats(values)
        elif inferred is ColumnType.DATE:
            stats = date_stats(values)
        elif inferred is ColumnType.STRING and len(distinct) < len(values) * CATEGORICAL_UNIQUE_RATIO:
            is_categorical = True
            stats = CategoricalStats(mode=_mode(values))

    profile_ = ColumnProfile(
        name=name,
        inferred_type=inferred,
        unique_count=len(distinct),
        null_count=len(sample) - len(values),
        sample_values=samples,
        stats=stats,
    )
    return profile_, is_categorical


def _mode(values: Sequence[Cell]) -> str:
    """
    Most frequent display value.

    Candidates are walked with integer-like keys first in ascending order,
    then the rest in first-seen order, and a later candidate
    replaces the current one unless the current count is strictly greater,
    so ties go to the last candidate in that order.
    """
    counts = Counter(display_string(v) for v in values)
    index_keys = sorted((k for k in counts if _is_index_key(k)), key=int)
    keys = index_keys + [k for k in counts if not _is_index_key(k)]

    best = keys[0]
    for key in keys[1:]:
        if not counts[best] > counts[key]:
            best = key
    return best


def _is_index_key(key: str) -> bool:
    """Canonical non-negative integer below 2**32 - 1, e.g. "7" but not "07"."""
    return bool(_INDEX_KEY_RE.fullmatch(key)) and int(key) < MAX_INDEX_KEY


def _round3(value: float) -> float:
    """Round half up to three decimals."""
    return math.floor(value * 1000 + 0.5) / 1000


def _jsonable(obj: Any) -> Any:
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, dict):
        return {k: _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_jsonable(v) for v in obj]
    return obj
