"""
Data quality assessment derived from a finished DatasetAnalysis.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from docsight.services.profiler import DatasetAnalysis

HIGH_MISSING_RATIO = 0.5
MEDIUM_MISSING_RATIO = 0.2
HIGH_PENALTY = 5.0
MEDIUM_PENALTY = 2.0


@dataclass(frozen=True)
class QualityIssue:
    type: str          # missing_data | constant_column
    severity: str      # low | medium | high
    description: str
    affected_columns: List[str] = field(default_factory=list)
    affected_rows: Optional[int] = None


@dataclass(frozen=True)
class DataQuality:
    completeness: float   # % of non-null cells in the analysed sample
    overall_score: float  # 0-100
    issues: List[QualityIssue] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def assess_quality(analysis: DatasetAnalysis) -> DataQuality:
    """Score completeness and list per-column issues for *analysis*."""
    rows = analysis.analyzed_row_count
    total_cells = rows * analysis.column_count
    null_cells = sum(column.null_count for column in analysis.columns)
    completeness = 100.0 if total_cells == 0 else round(
        (total_cells - null_cells) / total_cells * 100, 1
    )

    issues: List[QualityIssue] = []
    for column in analysis.columns:
        if column.null_count > 0 and rows > 0:
            ratio = column.null_count / rows
            if ratio > HIGH_MISSING_RATIO:
                severity = "high"
            elif ratio > MEDIUM_MISSING_RATIO:
                severity = "medium"
            else:
                severity = "low"
            issues.append(
                QualityIssue(
                    type="missing_data",
                    severity=severity,
                    description=(
                        f"Column '{column.name}' is missing {column.null_count} "
                        f"of {rows} values ({ratio:.0%})"
                    ),
                    affected_columns=[column.name],
                    affected_rows=column.null_count,
                )
            )
        if column.unique_count == 1 and rows > 1:
            issues.append(
                QualityIssue(
                    type="constant_column",
                    severity="low",
                    description=f"Column '{column.name}' holds a single distinct value",
                    affected_columns=[column.name],
                )
            )

    penalty = sum(
        HIGH_PENALTY if issue.severity == "high"
        else MEDIUM_PENALTY if issue.severity == "medium"
        else 0.0
        for issue in issues
    )
    overall = round(max(0.0, completeness - penalty), 1)

    return DataQuality(completeness=completeness, overall_score=overall, issues=issues)
