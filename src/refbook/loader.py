"""Document loading.

Discovery and loading are separate steps: ``discover_sources`` reads the
filesystem once and produces an explicit manifest of (path, text) pairs, and
``load_documents`` turns that manifest into Documents without touching the
filesystem. Tests can feed ``load_documents`` in-memory sources directly.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path, PurePosixPath
from typing import NamedTuple

from .config import BookConfig
from .diagnostics import Diagnostics
from .models import DiagnosticKind, Document
from .parser import ParseError, document_id, parse_document

log = logging.getLogger(__name__)


class SourceFile(NamedTuple):
    """One manifest entry: a path relative to the book root and its text."""

    path: str
    text: str


@dataclass
class LoadResult:
    """Documents loaded from a manifest, in manifest order."""

    documents: list[Document] = field(default_factory=list)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


def _is_excluded(rel_path: str, patterns: list[str]) -> bool:
    return any(fnmatch(rel_path, pattern) for pattern in patterns)


def _scan(book_root: Path, config: BookConfig) -> list[str]:
    paths: list[str] = []
    for candidate in book_root.rglob("*"):
        if not candidate.is_file() or candidate.suffix not in config.suffixes:
            continue
        rel = candidate.relative_to(book_root)
        # Skip hidden and underscore-prefixed files and directories
        if any(part.startswith(("_", ".")) for part in rel.parts):
            continue
        rel_path = rel.as_posix()
        if _is_excluded(rel_path, config.exclude):
            continue
        paths.append(rel_path)
    return sorted(paths)


def discover_sources(
    book_root: Path,
    config: BookConfig,
    diagnostics: Diagnostics | None = None,
) -> list[SourceFile]:
    """Build the manifest of content files for a book.

    Uses ``config.manifest`` when it is set (in that order), otherwise scans
    the root for ``config.suffixes``. Manifest entries that are missing,
    unreadable or outside the root are reported as MissingSource and left out.
    A leading UTF-8 byte order mark is dropped.

    Args:
        book_root: Root directory of the book.
        config: Book configuration.
        diagnostics: Collector for MissingSource findings.

    Returns:
        List of SourceFile in manifest order, or sorted by path when scanning.
    """
    diagnostics = diagnostics if diagnostics is not None else Diagnostics()

    if config.manifest:
        rel_paths = [p.replace("\\", "/").strip("/") for p in config.manifest]
    else:
        rel_paths = _scan(book_root, config)

    sources: list[SourceFile] = []
    for rel_path in rel_paths:
        if ".." in PurePosixPath(rel_path).parts:
            diagnostics.report(
                DiagnosticKind.MISSING_SOURCE,
                f"Content file '{rel_path}' is outside the book root",
                document=rel_path,
            )
            continue
        path = book_root / rel_path
        try:
            text = path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeDecodeError) as e:
            diagnostics.report(
                DiagnosticKind.MISSING_SOURCE,
                f"Cannot read content file '{rel_path}': {e}",
                document=rel_path,
            )
            continue
        sources.append(SourceFile(rel_path, text))

    log.debug("Discovered %d content files under %s", len(sources), book_root)
    return sources


def load_documents(sources: Iterable[SourceFile | tuple[str, str]]) -> LoadResult:
    """Load Documents from a manifest.

    A file with malformed front-matter is skipped with a MissingFrontMatter
    diagnostic. A file whose id was already loaded is skipped with a
    DuplicateDocument diagnostic, and a path climbing out of the root with a
    MissingSource diagnostic. Loading never raises for content problems.
    """
    result = LoadResult()
    seen: dict[str, str] = {}

    for path, text in sources:
        if ".." in PurePosixPath(path.replace("\\", "/")).parts:
            result.diagnostics.report(
                DiagnosticKind.MISSING_SOURCE,
                f"Content file '{path}' is outside the book root; skipped",
                document=path,
            )
            continue
        doc_id = document_id(path)
        if doc_id in seen:
            result.diagnostics.report(
                DiagnosticKind.DUPLICATE_DOCUMENT,
                f"'{path}' has the same id '{doc_id}' as '{seen[doc_id]}'; skipped",
                document=path,
                target=doc_id,
            )
            continue

        try:
            document = parse_document(path, text)
        except ParseError as e:
            result.diagnostics.report(
                DiagnosticKind.MISSING_FRONT_MATTER,
                f"Skipped '{path}': {e.message}",
                document=path,
            )
            continue

        seen[doc_id] = path
        result.documents.append(document)

    log.debug(
        "Loaded %d documents (%d skipped)", len(result.documents), len(result.diagnostics)
    )
    return result
