"""Core pipeline for refbook.

Runs the batch phases in order (load, resolve, sequence) and exposes the
``publish`` entry point used by the CLI. Each phase consumes the finished
output of the previous one; nothing is shared or mutated across phases.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from .config import BookConfig, load_book_config
from .diagnostics import Diagnostics
from .loader import SourceFile, discover_sources, load_documents
from .models import Document, TocNode
from .navigation import NavigationResult, build_toc, sequence_navigation
from .resolver import ResolutionResult, resolve_references

log = logging.getLogger(__name__)


@dataclass
class Book:
    """Everything known about a book after the analysis phases."""

    config: BookConfig
    documents: list[Document]
    resolution: ResolutionResult
    navigation: NavigationResult
    toc: TocNode
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


def assemble_sources(
    sources: list[SourceFile],
    config: BookConfig | None = None,
    diagnostics: Diagnostics | None = None,
) -> Book:
    """Run load, resolve and sequence over an explicit manifest.

    Args:
        sources: Manifest of (path, text) pairs.
        config: Book configuration (defaults if omitted).
        diagnostics: Findings from earlier steps (e.g. discovery) to carry over.

    Returns:
        Book with all diagnostics collected in phase order.
    """
    config = config or BookConfig()
    all_diagnostics = Diagnostics(diagnostics or ())

    loaded = load_documents(sources)
    all_diagnostics.extend(loaded.diagnostics)

    resolution = resolve_references(loaded.documents, base_url=config.base_url)
    all_diagnostics.extend(resolution.diagnostics)

    navigation = sequence_navigation(loaded.documents, index=resolution.index)
    all_diagnostics.extend(navigation.diagnostics)

    toc = build_toc(loaded.documents, navigation.graph, base_url=config.base_url)

    log.info(
        "Assembled %d documents: %d errors, %d warnings",
        len(loaded.documents),
        len(all_diagnostics.errors),
        len(all_diagnostics.warnings),
    )
    return Book(
        config=config,
        documents=loaded.documents,
        resolution=resolution,
        navigation=navigation,
        toc=toc,
        diagnostics=all_diagnostics,
    )


def assemble(book_root: Path | str, config: BookConfig | None = None) -> Book:
    """Discover content under ``book_root`` and run the analysis phases.

    Raises:
        ConfigurationError: If the root or its .bookconfig is invalid.
    """
    root = Path(book_root)
    config = config or load_book_config(root)
    discovery = Diagnostics()
    sources = discover_sources(root, config, discovery)
    return assemble_sources(sources, config, discovery)


def publish(
    book_root: Path | str,
    output_dir: Path | str | None = None,
    *,
    config: BookConfig | None = None,
    clean: bool = True,
) -> dict:
    """Generate the static site for a book.

    Args:
        book_root: Book source directory.
        output_dir: Output directory (default: _site).
        config: Book configuration; loaded from .bookconfig when omitted.
        clean: Remove the output directory before building.

    Returns:
        Dict with:
        - documents_published: Number of document pages written
        - output_dir: Path to the output directory
        - diagnostics_path: Path to diagnostics.json
        - diagnostics: Serialized diagnostics report
    """
    from .config import DEFAULT_OUTPUT_DIR
    from .publisher import PublishConfig, SiteGenerator

    root = Path(book_root)
    config = config or load_book_config(root)
    book = assemble(root, config)

    publish_config = PublishConfig(
        output_dir=Path(output_dir) if output_dir else Path(DEFAULT_OUTPUT_DIR),
        base_url=config.base_url,
        site_title=config.title,
        index_entry=config.index_entry,
        clean=clean,
    )
    result = SiteGenerator(publish_config, book).generate()

    return {
        "documents_published": result.documents_published,
        "output_dir": result.output_dir,
        "diagnostics_path": result.diagnostics_path,
        "diagnostics": result.diagnostics.to_dict(),
    }
