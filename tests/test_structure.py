"""Unit tests for heuristic document structure extraction."""
from docsight.services.structure import Heading, Section, count_words, extract_structure, is_heading


def test_caps_and_numbered_headings():
    text = "CHAPTER ONE\nSome text.\n2. Second heading\nMore text."
    structure = extract_structure(text)

    assert structure.headings == [
        Heading(level=1, text="CHAPTER ONE", line_number=1),
        Heading(level=1, text="2. Second heading", line_number=3),
    ]
    assert structure.sections == [
        Section(title="CHAPTER ONE", start_line=1, end_line=2, content="Some text.\n"),
        Section(title="2. Second heading", start_line=3, end_line=4, content="More text.\n"),
    ]
    # The numbered heading also counts as a list item
    assert structure.has_lists is True
    assert structure.has_tables is False
    assert structure.paragraph_count == 4
    assert structure.word_count == 9


def test_numbered_lines_as_list_items_only():
    structure = extract_structure("1. first point\n2. second point", numbered_headings=False)
    assert structure.headings == []
    assert structure.sections == []
    assert structure.has_lists is True


def test_only_ascii_digits_number_a_line():
    structure = extract_structure("٢. first point\n٣. second point")
    assert structure.headings == []
    assert structure.has_lists is False
    assert not is_heading("Section ٤ overview")


def test_keyword_headings():
    assert is_heading("Section 4 overview")
    assert is_heading("appendix 2: tables")
    assert not is_heading("Chapter one begins here")


def test_long_caps_line_is_not_a_heading():
    line = "THIS LINE IS WRITTEN ENTIRELY IN CAPITALS BUT RUNS ON TOO LONG"
    assert len(line) >= 50
    assert not is_heading(line)


def test_pipe_table_detection():
    assert extract_structure("Name | Qty | Price\nwidget | 2 | 3.50").has_tables is True
    assert extract_structure("either | or").has_tables is False


def test_bullet_lists():
    assert extract_structure("Shopping:\n* milk\n* eggs").has_lists is True
    assert extract_structure("Shopping:\n  • bread").has_lists is True
    assert extract_structure("No lists here.\nJust prose.").has_lists is False


def test_lines_before_first_heading_belong_to_no_section():
    structure = extract_structure("intro line\nSUMMARY\nbody text")
    assert len(structure.sections) == 1
    assert structure.sections[0].content == "body text\n"
    assert structure.paragraph_count == 3


def test_section_content_keeps_original_indentation():
    structure = extract_structure("NOTES\n    indented body\n\nlast line")
    section = structure.sections[0]
    assert section.content == "    indented body\nlast line\n"
    assert section.end_line == 4


def test_blank_lines_are_skipped_but_counted_in_line_numbers():
    structure = extract_structure("\n\nTITLE\nbody")
    assert structure.headings[0].line_number == 3
    assert structure.paragraph_count == 2


def test_empty_text():
    structure = extract_structure("")
    assert structure.headings == []
    assert structure.sections == []
    assert structure.paragraph_count == 0
    assert structure.word_count == 0
    assert structure.has_lists is False
    assert structure.has_tables is False


def test_to_dict_shape():
    payload = extract_structure("TITLE\nbody").to_dict()
    assert payload["headings"] == [{"level": 1, "text": "TITLE", "line_number": 1}]
    assert payload["sections"][0]["title"] == "TITLE"


def test_count_words():
    assert count_words("  one two\tthree\nfour ") == 4
    assert count_words("") == 0
