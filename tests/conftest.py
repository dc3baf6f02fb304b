"""Shared test fixtures for the refbook test suite.

Design:
- book_root: isolated book directory in tmp_path
- write_doc: writes a content file with front-matter into a book
- make_doc: builds an in-memory SourceFile for pure loader/resolver tests
- runner: CliRunner for command tests
"""

from collections.abc import Callable
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from refbook.loader import SourceFile


def render_source(
    title: str | None,
    body: str = "",
    *,
    prev: str | None = None,
    next: str | None = None,
    permalink: str | None = None,
) -> str:
    """Build the text of a content file."""
    meta: dict[str, str] = {}
    if title is not None:
        meta["title"] = title
    if prev is not None:
        meta["prev"] = prev
    if next is not None:
        meta["next"] = next
    if permalink is not None:
        meta["permalink"] = permalink
    if not meta:
        return body
    front = yaml.safe_dump(meta, default_flow_style=False, sort_keys=False)
    return f"---\n{front}---\n\n{body}\n"


@pytest.fixture
def make_doc() -> Callable[..., SourceFile]:
    """Factory for in-memory sources.

    Usage:
        def test_something(make_doc):
            src = make_doc("intro.md", "Introduction", next="language")
    """

    def _make(path: str, title: str | None, body: str = "", **fields: str) -> SourceFile:
        return SourceFile(path, render_source(title, body, **fields))

    return _make


@pytest.fixture
def book_root(tmp_path: Path) -> Path:
    """Empty book directory."""
    root = tmp_path / "book"
    root.mkdir()
    return root


@pytest.fixture
def write_doc(book_root: Path) -> Callable[..., Path]:
    """Write a content file into book_root and return its path."""

    def _write(rel_path: str, title: str | None, body: str = "", **fields: str) -> Path:
        path = book_root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_source(title, body, **fields), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_book(book_root: Path, write_doc) -> Path:
    """Small book with one dangling reference.

    Creates:
    - intro.md (next: language)
    - language.md (prev: intro, refers to intro and io/console/IO)
    """
    write_doc(
        "intro.md",
        "Introduction",
        "Welcome. Continue with [[ref:language]].",
        next="language",
    )
    write_doc(
        "language.md",
        "Language",
        "Back to [the start](ref:intro).\n\nSee [[ref:io/console/IO]].",
        prev="intro",
    )
    return book_root


@pytest.fixture
def runner() -> CliRunner:
    """CLI runner with isolated environment."""
    return CliRunner()
