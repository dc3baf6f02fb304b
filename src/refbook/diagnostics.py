"""Collection and reporting of diagnostics.

Every phase records findings here instead of raising, so a single bad
document never stops the batch. The collector is filled phase by phase and
reported once at the end of the run.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Iterator
from typing import Any

from .models import Diagnostic, DiagnosticKind, Severity

log = logging.getLogger(__name__)

# Default severity per kind
SEVERITIES: dict[DiagnosticKind, Severity] = {
    DiagnosticKind.MISSING_FRONT_MATTER: "warning",
    DiagnosticKind.UNRESOLVED_REFERENCE: "error",
    DiagnosticKind.BROKEN_NAVIGATION_LINK: "error",
    DiagnosticKind.NAVIGATION_CYCLE: "error",
    DiagnosticKind.ASYMMETRIC_NAVIGATION: "warning",
    DiagnosticKind.DUPLICATE_DOCUMENT: "warning",
    DiagnosticKind.MISSING_SOURCE: "error",
    DiagnosticKind.INVALID_PERMALINK: "warning",
}


class Diagnostics:
    """Ordered collector of diagnostics for one run."""

    def __init__(self, items: Iterable[Diagnostic] = ()) -> None:
        self._items: list[Diagnostic] = list(items)

    def report(
        self,
        kind: DiagnosticKind,
        message: str,
        *,
        document: str | None = None,
        target: str | None = None,
        line: int | None = None,
    ) -> Diagnostic:
        """Record a finding with the default severity for its kind."""
        diagnostic = Diagnostic(
            kind=kind,
            severity=SEVERITIES[kind],
            document=document,
            target=target,
            message=message,
            line=line,
        )
        self._items.append(diagnostic)
        if diagnostic.severity == "error":
            log.info("%s: %s", kind.value, message)
        else:
            log.debug("%s: %s", kind.value, message)
        return diagnostic

    def extend(self, other: Iterable[Diagnostic]) -> None:
        self._items.extend(other)

    def __iter__(self) -> Iterator[Diagnostic]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity == "error"]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self._items if d.severity == "warning"]

    @property
    def has_errors(self) -> bool:
        return any(d.severity == "error" for d in self._items)

    def of_kind(self, kind: DiagnosticKind) -> list[Diagnostic]:
        return [d for d in self._items if d.kind == kind]

    def summary(self) -> dict[str, int]:
        """Count diagnostics per kind, in first-seen order."""
        return dict(Counter(d.kind.value for d in self._items))

    def to_dict(self) -> dict[str, Any]:
        """Serialize for diagnostics.json and --json output."""
        return {
            "errors": len(self.errors),
            "warnings": len(self.warnings),
            "summary": self.summary(),
            "diagnostics": [d.model_dump(mode="json") for d in self._items],
        }


def format_diagnostic(diagnostic: Diagnostic) -> str:
    """Format a diagnostic as a single human-readable line."""
    location = diagnostic.document or "-"
    if diagnostic.line is not None:
        location = f"{location}:{diagnostic.line}"
    return f"{diagnostic.severity}: {location}: [{diagnostic.kind.value}] {diagnostic.message}"
