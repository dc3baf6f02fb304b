"""Static site generator for refbook.

Renders an assembled Book: Markdown bodies with rewritten cross-references
become HTML pages with prev/next bars, plus a contents page, a JSON
navigation dump, a diagnostics report and theme assets.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from markdown_it import MarkdownIt

from ..diagnostics import Diagnostics
from ..models import DiagnosticKind, Document
from ..resolver import href_for, output_path, rewrite_references

if TYPE_CHECKING:
    from ..core import Book

log = logging.getLogger(__name__)

CONTENTS_PAGE = "contents.html"


@dataclass
class PublishConfig:
    """Configuration for site generation."""

    output_dir: Path = field(default_factory=lambda: Path("_site"))
    base_url: str = ""
    site_title: str = "Reference"
    index_entry: str | None = None  # Document id rendered at index.html
    clean: bool = True  # Remove output dir before build


@dataclass
class PageLink:
    """Title and href of a linked page."""

    title: str
    href: str


@dataclass
class PageData:
    """Processed document for rendering."""

    doc_id: str
    title: str
    html_content: str
    prev: PageLink | None = None
    next: PageLink | None = None
    backlinks: list[PageLink] = field(default_factory=list)


@dataclass
class PublishResult:
    """Result of site generation."""

    documents_published: int
    output_dir: str
    diagnostics_path: str
    diagnostics: Diagnostics


def _markdown() -> MarkdownIt:
    md = MarkdownIt()
    md.enable("table")
    return md


class SiteGenerator:
    """Generates a static HTML site from an assembled Book.

    Pipeline:
    1. Prepare the output directory
    2. Render every document page (rewritten references, prev/next bar)
    3. Render the contents page and landing page
    4. Write toc.json and diagnostics.json
    5. Copy theme assets
    """

    def __init__(self, config: PublishConfig, book: "Book"):
        self.config = config
        self.book = book
        self.by_id: dict[str, Document] = {doc.id: doc for doc in book.documents}
        self.diagnostics = Diagnostics(book.diagnostics)
        self.md = _markdown()
        self._written: dict[str, str] = {}  # output path -> doc id

    def generate(self) -> PublishResult:
        """Generate the complete static site."""
        out = self.config.output_dir
        if self.config.clean and out.exists():
            shutil.rmtree(out)
        out.mkdir(parents=True, exist_ok=True)

        backlinks = self.book.resolution.backlinks()
        pages: dict[str, str] = {}
        for doc in self.book.documents:
            html = self._render_document(doc, backlinks.get(doc.id, []))
            if html is not None:
                pages[doc.id] = html

        self._render_landing_pages(pages)
        self._write_toc()
        diagnostics_path = self._write_diagnostics()
        self._copy_theme_assets()

        log.info("Published %d pages to %s", len(pages), out)
        return PublishResult(
            documents_published=len(pages),
            output_dir=str(out),
            diagnostics_path=str(diagnostics_path),
            diagnostics=self.diagnostics,
        )

    def _link(self, doc_id: str | None) -> PageLink | None:
        if doc_id is None or doc_id not in self.by_id:
            return None
        doc = self.by_id[doc_id]
        return PageLink(title=doc.title, href=href_for(doc, self.config.base_url))

    def _render_document(self, doc: Document, referrers: list[str]) -> str | None:
        """Render and write one document page; returns its HTML."""
        from .templates import render_document_page

        rel_path = output_path(doc)
        if rel_path == CONTENTS_PAGE:
            self.diagnostics.report(
                DiagnosticKind.DUPLICATE_DOCUMENT,
                f"'{doc.id}' renders to '{rel_path}', which holds the table of contents; "
                f"'{doc.id}' was not written",
                document=doc.id,
                target=rel_path,
            )
            return None
        if rel_path in self._written:
            self.diagnostics.report(
                DiagnosticKind.DUPLICATE_DOCUMENT,
                f"'{doc.id}' and '{self._written[rel_path]}' both render to '{rel_path}'; "
                f"'{doc.id}' was not written",
                document=doc.id,
                target=rel_path,
            )
            return None

        body = rewrite_references(doc, self.book.resolution)
        links = self.book.navigation.graph.links.get(doc.id)
        page = PageData(
            doc_id=doc.id,
            title=doc.title,
            html_content=self.md.render(body),
            prev=self._link(links.prev) if links else None,
            next=self._link(links.next) if links else None,
            backlinks=[link for link in map(self._link, referrers) if link is not None],
        )
        html = render_document_page(page, self.config.site_title, self.config.base_url)

        target = self.config.output_dir / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(html, encoding="utf-8")
        self._written[rel_path] = doc.id
        return html

    def _render_landing_pages(self, pages: dict[str, str]) -> None:
        """Write contents.html and, unless a document owns it, index.html."""
        from .templates import render_contents_page

        unsequenced = [
            {"title": link.title, "href": link.href}
            for link in map(self._link, self.book.navigation.graph.unsequenced)
            if link is not None
        ]
        contents_html = render_contents_page(
            self.book.toc, unsequenced, self.config.site_title, self.config.base_url
        )
        (self.config.output_dir / CONTENTS_PAGE).write_text(contents_html, encoding="utf-8")

        if "index.html" in self._written:
            return

        landing = contents_html
        if self.config.index_entry:
            entry_id = self.book.resolution.index.resolve(self.config.index_entry)
            if entry_id is not None and entry_id in pages:
                landing = pages[entry_id]
            else:
                log.warning(
                    "Index entry '%s' is not a published document; using the contents page",
                    self.config.index_entry,
                )
        (self.config.output_dir / "index.html").write_text(landing, encoding="utf-8")

    def _write_toc(self) -> Path:
        graph = self.book.navigation.graph
        data = {
            "sequences": graph.sequences,
            "unsequenced": graph.unsequenced,
            "toc": self.book.toc.model_dump(mode="json"),
        }
        path = self.config.output_dir / "toc.json"
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    def _write_diagnostics(self) -> Path:
        path = self.config.output_dir / "diagnostics.json"
        path.write_text(json.dumps(self.diagnostics.to_dict(), indent=2), encoding="utf-8")
        return path

    def _copy_theme_assets(self) -> None:
        """Copy CSS theme assets to output directory."""
        assets_dir = self.config.output_dir / "assets"
        assets_dir.mkdir(exist_ok=True)

        # Theme files are bundled with the package
        theme_dir = Path(__file__).parent / "theme"

        for asset in theme_dir.glob("*"):
            if asset.is_file():
                shutil.copy(asset, assets_dir / asset.name)
