"""
Heuristic structure extraction from plain document text.

Walks the text line by line, flags heading-like lines, splits the document
into sections at each heading and records whether lists or pipe-delimited
tables appear anywhere.

Known quirks are kept on purpose:
  * any short all-caps line is a heading, including stray address lines;
  * a numbered line ("2. Results") is a heading *and* marks the document as
    having lists.  Pass ``numbered_headings=False`` to treat such lines as
    list items only.
  * ``paragraph_count`` counts non-empty lines, not blank-line separated
    paragraphs.
"""
from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

HEADING_MAX_LENGTH = 50

# ASCII digits only; \s stays Unicode-aware
_NUMBERED_RE = re.compile(r"^[0-9]+\.\s")
_KEYWORD_HEADING_RE = re.compile(r"^(chapter|section|part|appendix)\s+[0-9]+", re.IGNORECASE)
_BULLET_RE = re.compile(r"^\s*[-*•]\s")
_NUMBERED_ITEM_RE = re.compile(r"^\s*[0-9]+\.\s")


@dataclass(frozen=True)
class Heading:
    level: int
    text: str
    line_number: int  # 1-based


@dataclass
class Section:
    title: str
    start_line: int
    end_line: int
    content: str = ""


@dataclass(frozen=True)
class DocumentStructure:
    headings: List[Heading] = field(default_factory=list)
    sections: List[Section] = field(default_factory=list)
    paragraph_count: int = 0
    word_count: int = 0
    has_lists: bool = False
    has_tables: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def is_heading(line: str, numbered_headings: bool = True) -> bool:
    """Classify a trimmed, non-empty line as a heading."""
    if line == line.upper() and len(line) < HEADING_MAX_LENGTH:
        return True
    if numbered_headings and _NUMBERED_RE.match(line):
        return True
    return bool(_KEYWORD_HEADING_RE.match(line))


def extract_structure(text: str, numbered_headings: bool = True) -> DocumentStructure:
    """
    Segment *text* into headings and sections.

    Every heading closes the open section (its ``end_line`` becomes the line
    before the heading) and opens a new one starting after the heading.  Body
    lines are appended, newline included, to the open section; lines before
    the first heading belong to no section.

    Args:
        text:              Already-extracted document text.
        numbered_headings: Treat ``^[0-9]+\\.\\s`` lines as headings.

    Returns:
        A DocumentStructure.  Empty input yields an all-zero structure.
    """
    lines = text.split("\n")
    headings: List[Heading] = []
    sections: List[Section] = []
    current: Optional[Section] = None
    paragraphs = 0
    has_lists = False
    has_tables = False

    for index, line in enumerate(lines):
        trimmed = line.strip()
        if not trimmed:
            continue

        if is_heading(trimmed, numbered_headings):
            headings.append(Heading(level=1, text=trimmed, line_number=index + 1))
            if current is not None:
                current.end_line = index
                sections.append(current)
            current = Section(title=trimmed, start_line=index + 1, end_line=len(lines))
        elif current is not None:
            current.content += line + "\n"

        paragraphs += 1

        if not has_lists and (_BULLET_RE.match(line) or _NUMBERED_ITEM_RE.match(line)):
            has_lists = True
        if not has_tables and "|" in line and len(line.split("|")) > 2:
            has_tables = True

    if current is not None:
        current.end_line = len(lines)
        sections.append(current)

    return DocumentStructure(
        headings=headings,
        sections=sections,
        paragraph_count=paragraphs,
        word_count=count_words(text),
        has_lists=has_lists,
        has_tables=has_tables,
    )


def count_words(text: str) -> int:
    """Whitespace-delimited token count over the whole text."""
    return len(text.split())
