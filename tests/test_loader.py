"""Tests for document discovery, loading and book configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from refbook.config import BookConfig, ConfigurationError, load_book_config
from refbook.diagnostics import Diagnostics
from refbook.loader import SourceFile, discover_sources, load_documents
from refbook.models import DiagnosticKind


class TestLoadDocuments:
    def test_malformed_documents_are_skipped_with_diagnostics(self, make_doc):
        sources = [
            make_doc("a.md", "A"),
            SourceFile("no-front-matter.md", "# Heading only\n"),
            make_doc("b.md", "B"),
            make_doc("untitled.md", None, "body", next="a"),
            make_doc("c.md", "C"),
        ]

        result = load_documents(sources)

        assert [doc.id for doc in result.documents] == ["a", "b", "c"]
        assert len(result.diagnostics) == 2
        assert {d.kind for d in result.diagnostics} == {DiagnosticKind.MISSING_FRONT_MATTER}
        assert {d.document for d in result.diagnostics} == {"no-front-matter.md", "untitled.md"}
        assert all(d.severity == "warning" for d in result.diagnostics)

    def test_duplicate_ids_keep_the_first(self, make_doc):
        result = load_documents([make_doc("a.md", "First"), make_doc("a.markdown", "Second")])

        assert [doc.title for doc in result.documents] == ["First"]
        (diagnostic,) = result.diagnostics
        assert diagnostic.kind == DiagnosticKind.DUPLICATE_DOCUMENT
        assert diagnostic.target == "a"

    def test_accepts_plain_tuples(self):
        result = load_documents([("x.md", "---\ntitle: X\n---\nbody\n")])

        (doc,) = result.documents
        assert doc.id == "x"
        assert doc.title == "X"

    def test_paths_outside_the_root_are_skipped(self, make_doc):
        result = load_documents([make_doc("../secret.md", "Secret"), make_doc("a.md", "A")])

        assert [doc.id for doc in result.documents] == ["a"]
        (diagnostic,) = result.diagnostics
        assert diagnostic.kind == DiagnosticKind.MISSING_SOURCE
        assert diagnostic.document == "../secret.md"

    def test_empty_manifest(self):
        result = load_documents([])

        assert result.documents == []
        assert not result.diagnostics


class TestDiscoverSources:
    def test_scans_sorted_and_skips_hidden(self, book_root: Path, write_doc):
        write_doc("zeta.md", "Zeta")
        write_doc("alpha.markdown", "Alpha")
        write_doc("lib/io.md", "IO")
        write_doc("_drafts/wip.md", "WIP")
        write_doc(".git/notes.md", "Hidden")
        write_doc("_partial.md", "Partial")
        (book_root / "notes.txt").write_text("not content")

        sources = discover_sources(book_root, BookConfig())

        assert [s.path for s in sources] == ["alpha.markdown", "lib/io.md", "zeta.md"]

    def test_exclude_patterns(self, book_root: Path, write_doc):
        write_doc("keep.md", "Keep")
        write_doc("old/gone.md", "Gone")

        sources = discover_sources(book_root, BookConfig(exclude=["old/*"]))

        assert [s.path for s in sources] == ["keep.md"]

    def test_manifest_order_is_used(self, book_root: Path, write_doc):
        write_doc("a.md", "A")
        write_doc("b.md", "B")
        write_doc("unlisted.md", "Unlisted")

        sources = discover_sources(book_root, BookConfig(manifest=["b.md", "a.md"]))

        assert [s.path for s in sources] == ["b.md", "a.md"]

    def test_missing_manifest_entry_is_reported(self, book_root: Path, write_doc):
        write_doc("a.md", "A")
        diagnostics = Diagnostics()

        sources = discover_sources(
            book_root, BookConfig(manifest=["a.md", "missing.md"]), diagnostics
        )

        assert [s.path for s in sources] == ["a.md"]
        (diagnostic,) = diagnostics
        assert diagnostic.kind == DiagnosticKind.MISSING_SOURCE
        assert diagnostic.severity == "error"
        assert diagnostic.document == "missing.md"

    def test_manifest_entry_outside_the_root_is_not_read(
        self, book_root: Path, write_doc, tmp_path: Path
    ):
        (tmp_path / "secret.md").write_text("---\ntitle: Secret\n---\n")
        write_doc("a.md", "A")
        diagnostics = Diagnostics()

        sources = discover_sources(
            book_root, BookConfig(manifest=["../secret.md", "a.md"]), diagnostics
        )

        assert [s.path for s in sources] == ["a.md"]
        (diagnostic,) = diagnostics
        assert diagnostic.kind == DiagnosticKind.MISSING_SOURCE
        assert "outside the book root" in diagnostic.message

    def test_byte_order_mark_is_dropped(self, book_root: Path):
        (book_root / "intro.md").write_bytes("\ufeff---\ntitle: Intro\n---\n\nhi\n".encode("utf-8"))

        result = load_documents(discover_sources(book_root, BookConfig()))

        assert [doc.title for doc in result.documents] == ["Intro"]
        assert not result.diagnostics


class TestBookConfig:
    def test_defaults_without_file(self, book_root: Path):
        config = load_book_config(book_root)

        assert config.title == "Reference"
        assert config.base_url == ""
        assert config.suffixes == [".md", ".markdown"]
        assert config.source_file is None

    def test_reads_bookconfig(self, book_root: Path):
        (book_root / ".bookconfig").write_text(
            "title: Ruby Reference Manual\n"
            "base_url: refm/\n"
            "index_entry: intro\n"
            "suffixes: [md, .rd]\n"
            "exclude: ['drafts/*']\n"
            "strict: true\n"
        )

        config = load_book_config(book_root)

        assert config.title == "Ruby Reference Manual"
        assert config.base_url == "/refm"
        assert config.index_entry == "intro"
        assert config.suffixes == [".md", ".rd"]
        assert config.exclude == ["drafts/*"]
        assert config.strict is True
        assert config.source_file == book_root / ".bookconfig"

    def test_empty_file(self, book_root: Path):
        (book_root / ".bookconfig").write_text("# nothing yet\n")

        assert load_book_config(book_root).title == "Reference"

    @pytest.mark.parametrize(
        "content",
        [
            "- just\n- a list\n",
            "title: [unclosed\n",
            "manifest: intro.md\n",
        ],
    )
    def test_invalid_file(self, book_root: Path, content: str):
        (book_root / ".bookconfig").write_text(content)

        with pytest.raises(ConfigurationError):
            load_book_config(book_root)

    def test_root_must_be_directory(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="not a directory"):
            load_book_config(tmp_path / "nope")
