"""Tests for navigation sequencing and the contents tree."""

from __future__ import annotations

from refbook.loader import load_documents
from refbook.models import DiagnosticKind, NavLinks
from refbook.navigation import build_toc, sequence_navigation


def _sequence(*sources):
    docs = load_documents(sources).documents
    return docs, sequence_navigation(docs)


def _kinds(diagnostics) -> list[DiagnosticKind]:
    return [d.kind for d in diagnostics]


class TestSequenceNavigation:
    def test_symmetric_pair(self, make_doc):
        _, result = _sequence(
            make_doc("intro.md", "Introduction", next="language"),
            make_doc("language.md", "Language", prev="intro"),
        )

        assert result.graph.sequences == [["intro", "language"]]
        assert result.graph.unsequenced == []
        assert len(result.diagnostics) == 0

    def test_links_follow_sequence(self, make_doc):
        _, result = _sequence(
            make_doc("a.md", "A", next="b"),
            make_doc("b.md", "B", prev="a", next="c"),
            make_doc("c.md", "C", prev="b"),
        )

        assert result.graph.links["a"] == NavLinks(prev=None, next="b")
        assert result.graph.links["b"] == NavLinks(prev="a", next="c")
        assert result.graph.links["c"] == NavLinks(prev="b", next=None)

    def test_load_order_does_not_matter(self, make_doc):
        _, result = _sequence(
            make_doc("c.md", "C", prev="b"),
            make_doc("a.md", "A", next="b"),
            make_doc("b.md", "B", prev="a", next="c"),
        )

        assert result.graph.sequences == [["a", "b", "c"]]

    def test_unlinked_documents_are_single_sequences(self, make_doc):
        _, result = _sequence(make_doc("x.md", "X"), make_doc("y.md", "Y"))

        assert result.graph.sequences == [["x"], ["y"]]
        assert not result.diagnostics

    def test_two_document_cycle_is_reported(self, make_doc):
        _, result = _sequence(
            make_doc("a.md", "A", next="b"),
            make_doc("b.md", "B", next="a"),
        )

        cycles = result.diagnostics.of_kind(DiagnosticKind.NAVIGATION_CYCLE)
        assert len(cycles) == 1
        assert cycles[0].severity == "error"
        assert "a -> b -> a" in cycles[0].message
        assert result.graph.sequences == []
        assert result.graph.unsequenced == ["a", "b"]

    def test_self_cycle(self, make_doc):
        _, result = _sequence(make_doc("a.md", "A", next="a", prev="a"))

        assert _kinds(result.diagnostics) == [DiagnosticKind.NAVIGATION_CYCLE]
        assert result.graph.unsequenced == ["a"]

    def test_cycle_only_aborts_its_own_chain(self, make_doc):
        _, result = _sequence(
            make_doc("head.md", "Head", next="a"),
            make_doc("a.md", "A", prev="head", next="b"),
            make_doc("b.md", "B", prev="a", next="a"),
            make_doc("x.md", "X", next="y"),
            make_doc("y.md", "Y", prev="x"),
        )

        assert len(result.diagnostics.of_kind(DiagnosticKind.NAVIGATION_CYCLE)) == 1
        assert result.graph.sequences == [["x", "y"]]
        assert result.graph.unsequenced == ["head", "a", "b"]

    def test_chains_leading_into_a_cycle(self, make_doc):
        _, result = _sequence(
            make_doc("a.md", "A", next="b"),
            make_doc("b.md", "B", next="a"),
            make_doc("t1.md", "T1", next="a"),
            make_doc("t2.md", "T2", next="b"),
        )

        assert len(result.diagnostics.of_kind(DiagnosticKind.NAVIGATION_CYCLE)) == 1
        assert result.graph.sequences == []
        assert result.graph.unsequenced == ["a", "b", "t1", "t2"]

    def test_broken_link_is_reported_and_ignored(self, make_doc):
        _, result = _sequence(
            make_doc("intro.md", "Intro", next="missing"),
            make_doc("other.md", "Other", prev="gone"),
        )

        broken = result.diagnostics.of_kind(DiagnosticKind.BROKEN_NAVIGATION_LINK)
        assert [(d.document, d.target) for d in broken] == [("intro", "missing"), ("other", "gone")]
        assert all(d.severity == "error" for d in broken)
        assert result.graph.sequences == [["intro"], ["other"]]

    def test_missing_back_pointer_is_a_warning(self, make_doc):
        _, result = _sequence(
            make_doc("a.md", "A", next="b"),
            make_doc("b.md", "B"),
        )

        (warning,) = result.diagnostics
        assert warning.kind == DiagnosticKind.ASYMMETRIC_NAVIGATION
        assert warning.severity == "warning"
        assert (warning.document, warning.target) == ("a", "b")
        assert result.graph.sequences == [["a", "b"]]

    def test_prev_only_chain(self, make_doc):
        _, result = _sequence(
            make_doc("a.md", "A"),
            make_doc("b.md", "B", prev="a"),
        )

        assert result.graph.sequences == [["a", "b"]]
        assert _kinds(result.diagnostics) == [DiagnosticKind.ASYMMETRIC_NAVIGATION]

    def test_conflicting_back_pointer(self, make_doc):
        _, result = _sequence(
            make_doc("a.md", "A", next="b"),
            make_doc("b.md", "B", prev="c"),
            make_doc("c.md", "C"),
        )

        assert result.graph.sequences == [["a", "b"], ["c"]]
        assert _kinds(result.diagnostics) == [
            DiagnosticKind.ASYMMETRIC_NAVIGATION,
            DiagnosticKind.ASYMMETRIC_NAVIGATION,
        ]

    def test_pointers_resolve_like_references(self, make_doc):
        _, result = _sequence(
            make_doc("io/console/IO.md", "IO", next="./winsize.md"),
            make_doc("io/console/winsize.md", "winsize", prev="/io/console/IO"),
        )

        assert result.graph.sequences == [["io/console/IO", "io/console/winsize"]]
        assert not result.diagnostics


class TestBuildToc:
    def test_groups_by_directory_in_reading_order(self, make_doc):
        docs, result = _sequence(
            make_doc("intro.md", "Introduction", next="language/index"),
            make_doc("language/index.md", "The Language", prev="intro", next="language/syntax"),
            make_doc("language/syntax.md", "Syntax", prev="language/index", next="language/literals"),
            make_doc("language/literals.md", "Literals", prev="language/syntax", next="io/IO"),
            make_doc("io/IO.md", "IO", prev="language/literals"),
        )

        toc = build_toc(docs, result.graph, base_url="/refm")

        assert toc.title == "Contents"
        assert [child.title for child in toc.children] == ["Introduction", "The Language", "io"]
        language = toc.children[1]
        assert language.doc_id == "language/index"
        assert language.href == "/refm/language/index.html"
        assert [c.doc_id for c in language.children] == ["language/syntax", "language/literals"]
        io = toc.children[2]
        assert io.doc_id is None
        assert [c.title for c in io.children] == ["IO"]

    def test_unsequenced_documents_are_left_out(self, make_doc):
        docs, result = _sequence(
            make_doc("a.md", "A", next="b"),
            make_doc("b.md", "B", next="a"),
            make_doc("c.md", "C"),
        )

        toc = build_toc(docs, result.graph)

        assert [child.doc_id for child in toc.children] == ["c"]
