"""Pydantic models for the book."""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FrontMatter(BaseModel):
    """Front-matter block at the head of a content file."""

    # YAML reads bare scalars like 2 or 3.0 as numbers
    model_config = ConfigDict(coerce_numbers_to_str=True)

    title: str
    prev: str | None = None  # Identifier of the preceding page
    next: str | None = None  # Identifier of the following page
    permalink: str | None = None  # Output location override, e.g. /io/console/

    @field_validator("title")
    @classmethod
    def _title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be blank")
        return value

    @field_validator("prev", "next", "permalink", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class Reference(BaseModel):
    """An in-body pointer to another document's identifier."""

    model_config = ConfigDict(frozen=True)

    source: str  # Id of the document containing the reference
    target: str  # Normalized identifier as written (without anchor)
    anchor: str | None = None  # Fragment after '#'
    label: str | None = None  # Display text, if the author gave one
    line: int  # 1-based line in the body
    raw: str  # Exact matched text


class Document(BaseModel):
    """A loaded content file. Immutable once loaded."""

    model_config = ConfigDict(frozen=True)

    id: str  # Relative path without suffix, forward slashes
    source_path: str  # Relative path as listed in the manifest
    front_matter: FrontMatter
    body: str
    references: tuple[Reference, ...] = ()

    @property
    def title(self) -> str:
        return self.front_matter.title


class ResolvedReference(BaseModel):
    """A reference paired with its resolution (target_id is None if dangling)."""

    reference: Reference
    target_id: str | None = None
    href: str | None = None

    @property
    def resolved(self) -> bool:
        return self.target_id is not None


class NavLinks(BaseModel):
    """Effective neighbours of a document inside its reading sequence."""

    prev: str | None = None
    next: str | None = None


class NavigationGraph(BaseModel):
    """Reading order derived from prev/next pointers."""

    sequences: list[list[str]] = Field(default_factory=list)
    links: dict[str, NavLinks] = Field(default_factory=dict)
    unsequenced: list[str] = Field(default_factory=list)  # Members of chains holding a cycle

    def order(self) -> list[str]:
        """Flatten sequences into a single reading order."""
        return [doc_id for sequence in self.sequences for doc_id in sequence]


class TocNode(BaseModel):
    """A node in the table-of-contents tree."""

    title: str
    doc_id: str | None = None
    href: str | None = None
    children: list["TocNode"] = Field(default_factory=list)


class DiagnosticKind(str, Enum):
    """Recoverable problems found while assembling a book."""

    MISSING_FRONT_MATTER = "MissingFrontMatter"
    UNRESOLVED_REFERENCE = "UnresolvedReference"
    BROKEN_NAVIGATION_LINK = "BrokenNavigationLink"
    NAVIGATION_CYCLE = "NavigationCycle"
    ASYMMETRIC_NAVIGATION = "AsymmetricNavigation"
    DUPLICATE_DOCUMENT = "DuplicateDocument"
    MISSING_SOURCE = "MissingSource"
    INVALID_PERMALINK = "InvalidPermalink"


Severity = Literal["error", "warning"]


class Diagnostic(BaseModel):
    """A single finding reported at the end of a run."""

    kind: DiagnosticKind
    severity: Severity
    document: str | None = None  # Id or source path the finding is about
    target: str | None = None  # Identifier that failed, if any
    message: str
    line: int | None = None
