"""Content file parsing: front-matter and cross-reference extraction."""

from .document import ParseError, parse_document
from .references import (
    document_id,
    extract_references,
    normalize_identifier,
    substitute_references,
)

__all__ = [
    "parse_document",
    "ParseError",
    "document_id",
    "extract_references",
    "normalize_identifier",
    "substitute_references",
]
