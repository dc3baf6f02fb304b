"""Cross-reference resolution.

Builds an identifier index over loaded documents, resolves every reference
found in their bodies, and rewrites bodies so references point at output
paths. Dangling references are collected as diagnostics; they never stop
processing.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from .diagnostics import Diagnostics
from .models import DiagnosticKind, Document, ResolvedReference
from .parser import normalize_identifier, substitute_references
from .parser.references import ReferenceMatch

log = logging.getLogger(__name__)


def permalink_path(permalink: str) -> str | None:
    """Output path for a permalink, or None when it climbs out of the site root.

    '/a/b/' -> 'a/b/index.html', '/a/b.html' -> 'a/b.html', '/a/b' -> 'a/b.html'.
    """
    cleaned = permalink.strip().replace("\\", "/")
    parts = PurePosixPath(cleaned.strip("/")).parts
    if ".." in parts:
        return None
    stem = "/".join(parts)
    if not stem:
        return "index.html"
    if cleaned.endswith("/"):
        return f"{stem}/index.html"
    return stem if stem.endswith(".html") else f"{stem}.html"


def output_path(document: Document) -> str:
    """Output file path of a document, relative to the site root.

    A usable permalink wins; otherwise '<id>.html'.
    """
    permalink = document.front_matter.permalink
    if permalink:
        path = permalink_path(permalink)
        if path is not None:
            return path
    return f"{document.id}.html"


def href_for(document: Document, base_url: str = "", anchor: str | None = None) -> str:
    """Absolute link to a document's output page."""
    href = f"{base_url}/{output_path(document)}"
    if anchor:
        href = f"{href}#{anchor}"
    return href


def _resolve_relative(source: str, target: str) -> str:
    """Resolve './x' and '../x' against the directory of ``source``."""
    result_parts = source.split("/")[:-1]
    for part in target.split("/"):
        if part == "..":
            if result_parts:
                result_parts.pop()
        elif part in (".", ""):
            continue
        else:
            result_parts.append(part)
    return "/".join(result_parts)


class IdentifierIndex:
    """Lookup of document identifiers.

    Resolution order for a target:
    1. Exact id
    2. Relative id ('./x', '../x') against the source document
    3. Declared permalink
    4. Case-insensitive id
    5. Unique trailing path match ('IO' -> 'io/console/IO')
    """

    def __init__(self, documents: list[Document]) -> None:
        self.documents: dict[str, Document] = {doc.id: doc for doc in documents}
        self._by_permalink: dict[str, str] = {}
        self._by_lower: dict[str, str] = {}
        for doc in documents:
            if doc.front_matter.permalink and permalink_path(doc.front_matter.permalink):
                key = normalize_identifier(doc.front_matter.permalink)
                self._by_permalink.setdefault(key, doc.id)
            self._by_lower.setdefault(doc.id.lower(), doc.id)

    def resolve(self, target: str, source: str | None = None) -> str | None:
        """Resolve a target identifier to a document id, or None."""
        normalized = normalize_identifier(target)
        if not normalized:
            return None

        if normalized in self.documents:
            return normalized

        if source is not None and normalized.startswith(("./", "../")):
            relative = _resolve_relative(source, normalized)
            if relative in self.documents:
                return relative

        if normalized in self._by_permalink:
            return self._by_permalink[normalized]

        lowered = normalized.lower()
        if lowered in self._by_lower:
            return self._by_lower[lowered]

        candidates = [
            doc_id for doc_id in self.documents if doc_id.lower().endswith(f"/{lowered}")
        ]
        if len(candidates) == 1:
            return candidates[0]
        if len(candidates) > 1:
            log.debug("Ambiguous target %r matches %s", target, candidates)
        return None


@dataclass
class ResolutionResult:
    """References per source document, resolved or not."""

    index: IdentifierIndex
    base_url: str = ""
    references: dict[str, list[ResolvedReference]] = field(default_factory=dict)
    diagnostics: Diagnostics = field(default_factory=Diagnostics)

    @property
    def unresolved(self) -> list[ResolvedReference]:
        return [r for refs in self.references.values() for r in refs if not r.resolved]

    def backlinks(self) -> dict[str, list[str]]:
        """Map each target id to the documents referring to it, without repeats."""
        result: dict[str, list[str]] = {}
        for source, refs in self.references.items():
            for ref in refs:
                if ref.target_id is None or ref.target_id == source:
                    continue
                sources = result.setdefault(ref.target_id, [])
                if source not in sources:
                    sources.append(source)
        return result


def resolve_references(documents: list[Document], base_url: str = "") -> ResolutionResult:
    """Resolve every reference in every document.

    Each reference that names no loaded document yields one
    UnresolvedReference diagnostic; the remaining references still resolve.
    A permalink that leaves the site root is reported as InvalidPermalink and
    the document keeps its default output path.
    """
    index = IdentifierIndex(documents)
    result = ResolutionResult(index=index, base_url=base_url)

    for doc in documents:
        permalink = doc.front_matter.permalink
        if permalink and permalink_path(permalink) is None:
            result.diagnostics.report(
                DiagnosticKind.INVALID_PERMALINK,
                f"'{doc.id}' declares permalink '{permalink}' outside the site root; "
                f"writing '{output_path(doc)}' instead",
                document=doc.id,
                target=permalink,
            )

    for doc in documents:
        resolved_refs: list[ResolvedReference] = []
        for ref in doc.references:
            target_id = index.resolve(ref.target, source=doc.id)
            if target_id is None:
                result.diagnostics.report(
                    DiagnosticKind.UNRESOLVED_REFERENCE,
                    f"Unresolved reference 'ref:{ref.target}' in '{doc.id}'",
                    document=doc.id,
                    target=ref.target,
                    line=ref.line,
                )
                resolved_refs.append(ResolvedReference(reference=ref))
                continue
            resolved_refs.append(
                ResolvedReference(
                    reference=ref,
                    target_id=target_id,
                    href=href_for(index.documents[target_id], base_url, ref.anchor),
                )
            )
        result.references[doc.id] = resolved_refs

    log.debug(
        "Resolved references for %d documents, %d unresolved",
        len(documents),
        len(result.unresolved),
    )
    return result


# Characters that would end or restart a link label
_LABEL_SPECIALS = re.compile(r"([\\`\[\]])")


def _escape_label(label: str) -> str:
    return _LABEL_SPECIALS.sub(r"\\\1", label)


def _code_span(text: str) -> str:
    """Wrap text in an inline code span that its own backticks cannot close."""
    longest = max((len(run) for run in re.findall(r"`+", text)), default=0)
    fence = "`" * (longest + 1)
    if text.startswith("`") or text.endswith("`"):
        text = f" {text} "
    return f"{fence}{text}{fence}"


def rewrite_references(document: Document, resolution: ResolutionResult) -> str:
    """Rewrite a document body so references become Markdown links.

    - Resolved: ``[label](href)``; the label defaults to the target's title.
    - Unresolved bracket form: the identifier as inline code.
    - Unresolved link form: the bare label (or the identifier).
    """
    index = resolution.index

    def replace(match: ReferenceMatch) -> str:
        ref = match.reference
        target_id = index.resolve(ref.target, source=document.id)
        if target_id is None:
            if match.form == "link" and ref.label:
                return _escape_label(ref.label)
            return _code_span(ref.label or ref.target)
        target = index.documents[target_id]
        label = _escape_label(ref.label or target.title)
        return f"[{label}]({href_for(target, resolution.base_url, ref.anchor)})"

    return substitute_references(document.id, document.body, replace)
