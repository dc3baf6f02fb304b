"""Content file parsing with YAML front-matter support."""

import frontmatter
from pydantic import ValidationError

from ..models import Document, FrontMatter
from .references import document_id, extract_references


class ParseError(Exception):
    """Raised when a content file cannot be turned into a Document."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


def parse_document(source_path: str, text: str) -> Document:
    """Parse one content file.

    Args:
        source_path: Path relative to the book root (used for the id).
        text: Full file contents.

    Returns:
        The loaded Document, with its references extracted.

    Raises:
        ParseError: If front-matter is missing, unparseable, or lacks a title.
    """
    try:
        post = frontmatter.loads(text.lstrip("\ufeff"))
    except Exception as e:
        raise ParseError(source_path, f"Failed to parse front-matter: {e}") from e

    if not post.metadata:
        raise ParseError(source_path, "Missing front-matter (YAML block required at start of file)")

    try:
        front_matter = FrontMatter.model_validate(post.metadata)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            errors.append(f"  - {loc}: {error['msg']}")
        raise ParseError(source_path, "Invalid front-matter:\n" + "\n".join(errors)) from e

    doc_id = document_id(source_path)
    body = post.content
    return Document(
        id=doc_id,
        source_path=source_path.replace("\\", "/"),
        front_matter=front_matter,
        body=body,
        references=tuple(extract_references(doc_id, body)),
    )
