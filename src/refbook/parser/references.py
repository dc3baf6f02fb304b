"""Cross-reference extraction and substitution.

Two forms are recognized in document bodies:

    [[ref:io/console/IO]]             bracket form
    [[ref:io/console/IO|IO#winsize]]  bracket form with a label
    [console](ref:io/console#usage)   Markdown link form

A target is any run of characters other than whitespace, ']', '|', '#' and
')'. An optional '#anchor' follows the target. Text inside fenced code blocks
and inline code spans is never scanned or rewritten.
"""

import re
from collections.abc import Callable, Iterator
from pathlib import PurePosixPath
from typing import NamedTuple

from ..models import Reference

BRACKET_PATTERN = re.compile(
    r"\[\[ref:(?P<target>[^\s\]|#)]+)(?:#(?P<anchor>[^\s\]|]*))?(?:\|(?P<label>[^\]]*))?\]\]"
)
LINK_PATTERN = re.compile(
    r"\[(?P<label>[^\]]*)\]\(ref:(?P<target>[^\s\]|#)]+)(?:#(?P<anchor>[^\s)]*))?\)"
)

# Opening/closing fence: up to 3 spaces, then ``` or ~~~ (3 or more)
FENCE_PATTERN = re.compile(r"^ {0,3}(`{3,}|~{3,})")
CODE_SPAN_PATTERN = re.compile(r"(`+)(.+?)\1")

STRIPPED_SUFFIXES = (".md", ".markdown", ".html")


class ReferenceMatch(NamedTuple):
    """A reference occurrence with its span inside the line."""

    start: int
    end: int
    form: str  # "bracket" or "link"
    reference: Reference


def normalize_identifier(identifier: str) -> str:
    """Normalize a document identifier.

    - Strips whitespace
    - Normalizes path separators to forward slashes
    - Removes leading/trailing slashes
    - Removes a content or output suffix (.md, .markdown, .html)

    Relative prefixes ('./', '../') are kept for the resolver.
    """
    identifier = identifier.strip().replace("\\", "/").strip("/")
    for suffix in STRIPPED_SUFFIXES:
        if identifier.endswith(suffix):
            identifier = identifier[: -len(suffix)]
            break
    return identifier


def document_id(source_path: str) -> str:
    """Derive a document id from its path relative to the book root."""
    normalized = source_path.replace("\\", "/").strip("/")
    return PurePosixPath(normalized).with_suffix("").as_posix()


def _mask_code_spans(line: str) -> str:
    # Replace inline code with spaces so match offsets stay valid
    return CODE_SPAN_PATTERN.sub(lambda m: " " * len(m.group(0)), line)


def _scan_lines(body: str) -> Iterator[tuple[int, str, str | None]]:
    """Yield (line_number, line, masked) for every line of the body.

    ``masked`` is None for lines inside fenced code blocks (and the fences
    themselves); otherwise it is the line with inline code blanked out.
    """
    fence: str | None = None
    for number, line in enumerate(body.splitlines(keepends=True), start=1):
        match = FENCE_PATTERN.match(line)
        if fence is None:
            if match:
                fence = match.group(1)
                yield number, line, None
                continue
            yield number, line, _mask_code_spans(line)
        else:
            if match and match.group(1)[0] == fence[0] and len(match.group(1)) >= len(fence):
                fence = None
            yield number, line, None


def _match_line(source: str, number: int, masked: str) -> list[ReferenceMatch]:
    found: list[ReferenceMatch] = []
    for form, pattern in (("bracket", BRACKET_PATTERN), ("link", LINK_PATTERN)):
        for match in pattern.finditer(masked):
            target = normalize_identifier(match.group("target"))
            if not target:
                continue
            label = match.group("label")
            found.append(
                ReferenceMatch(
                    start=match.start(),
                    end=match.end(),
                    form=form,
                    reference=Reference(
                        source=source,
                        target=target,
                        anchor=match.group("anchor") or None,
                        label=label.strip() if label and label.strip() else None,
                        line=number,
                        raw=match.group(0),
                    ),
                )
            )
    found.sort(key=lambda m: m.start)
    return found


def extract_references(source: str, body: str) -> list[Reference]:
    """Extract references from a document body, in body order.

    Args:
        source: Id of the document the body belongs to.
        body: Markup text without front-matter.

    Returns:
        List of references. Repeated references are kept, since each
        occurrence is rewritten and reported on its own.
    """
    references: list[Reference] = []
    for number, _line, masked in _scan_lines(body):
        if masked is None:
            continue
        references.extend(m.reference for m in _match_line(source, number, masked))
    return references


def substitute_references(
    source: str,
    body: str,
    replace: Callable[[ReferenceMatch], str],
) -> str:
    """Return the body with every reference replaced by ``replace(match)``.

    Code blocks and inline code are left untouched.
    """
    out: list[str] = []
    for number, line, masked in _scan_lines(body):
        if masked is None:
            out.append(line)
            continue
        pieces: list[str] = []
        cursor = 0
        for match in _match_line(source, number, masked):
            if match.start < cursor:
                continue
            pieces.append(line[cursor : match.start])
            pieces.append(replace(match))
            cursor = match.end
        pieces.append(line[cursor:])
        out.append("".join(pieces))
    return "".join(out)
