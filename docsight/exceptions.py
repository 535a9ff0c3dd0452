"""
Domain exceptions raised by the ingestion layer.

Both concrete errors subclass ValueError so callers that only know about the
built-in hierarchy keep working.
"""


class DocsightError(Exception):
    """Base class for docsight errors."""


class UnsupportedFormatError(DocsightError, ValueError):
    """The uploaded file's extension or MIME type is not recognised."""


class EmptyInputError(DocsightError, ValueError):
    """The parsed upload holds nothing to analyse (no rows, headers or text)."""
