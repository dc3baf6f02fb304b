"""Navigation sequencing.

Turns the prev/next pointers declared in front-matter into reading-order
sequences and a table-of-contents tree. Broken pointers, cycles and
one-sided pairs are reported as diagnostics; a cycle only removes the chain
that contains it from the reading order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .diagnostics import Diagnostics
from .models import DiagnosticKind, Document, NavigationGraph, NavLinks, TocNode
from .resolver import IdentifierIndex, href_for

log = logging.getLogger(__name__)


@dataclass
class NavigationResult:
    """Navigation graph plus the findings made while building it."""

    graph: NavigationGraph
    diagnostics: Diagnostics = field(default_factory=Diagnostics)


def _declared_pointers(
    documents: list[Document],
    index: IdentifierIndex,
    diagnostics: Diagnostics,
) -> tuple[dict[str, str], dict[str, str]]:
    """Resolve every declared prev/next; broken ones are reported and dropped."""
    declared_next: dict[str, str] = {}
    declared_prev: dict[str, str] = {}

    for doc in documents:
        for name, value, store in (
            ("prev", doc.front_matter.prev, declared_prev),
            ("next", doc.front_matter.next, declared_next),
        ):
            if value is None:
                continue
            target = index.resolve(value, source=doc.id)
            if target is None:
                diagnostics.report(
                    DiagnosticKind.BROKEN_NAVIGATION_LINK,
                    f"'{doc.id}' declares {name}='{value}', which matches no document",
                    document=doc.id,
                    target=value,
                )
                continue
            store[doc.id] = target

    return declared_next, declared_prev


def _check_symmetry(
    declared_next: dict[str, str],
    declared_prev: dict[str, str],
    diagnostics: Diagnostics,
) -> None:
    for source, target in declared_next.items():
        if declared_prev.get(target) != source:
            diagnostics.report(
                DiagnosticKind.ASYMMETRIC_NAVIGATION,
                f"'{source}' has next='{target}' but '{target}' does not point back with prev",
                document=source,
                target=target,
            )
    for source, target in declared_prev.items():
        if declared_next.get(target) != source:
            diagnostics.report(
                DiagnosticKind.ASYMMETRIC_NAVIGATION,
                f"'{source}' has prev='{target}' but '{target}' does not point back with next",
                document=source,
                target=target,
            )


def _successors(
    order: list[str],
    declared_next: dict[str, str],
    declared_prev: dict[str, str],
) -> dict[str, str]:
    """Effective successor of each document.

    A declared next wins; otherwise the first document (in load order) whose
    prev points at it.
    """
    successor = {doc_id: declared_next[doc_id] for doc_id in order if doc_id in declared_next}
    for doc_id in order:
        prev = declared_prev.get(doc_id)
        if prev is not None and prev not in successor:
            successor[prev] = doc_id
    return successor


def sequence_navigation(
    documents: list[Document],
    index: IdentifierIndex | None = None,
) -> NavigationResult:
    """Build reading-order sequences from prev/next pointers.

    Chains are walked from their heads (documents nobody precedes) in load
    order. Every walk keeps the set of nodes on its own chain, so a revisit
    is detected as a cycle instead of looping. A chain holding or leading
    into a cycle is reported once and its members are left unsequenced;
    other chains are unaffected.
    """
    index = index or IdentifierIndex(documents)
    diagnostics = Diagnostics()
    order = [doc.id for doc in documents]

    declared_next, declared_prev = _declared_pointers(documents, index, diagnostics)
    _check_symmetry(declared_next, declared_prev, diagnostics)
    successor = _successors(order, declared_next, declared_prev)

    preceded = set(successor.values())
    heads = [doc_id for doc_id in order if doc_id not in preceded]
    # Pure cycles have no head; they are walked last, from any member
    starts = heads + [doc_id for doc_id in order if doc_id in preceded]

    graph = NavigationGraph()
    assigned: set[str] = set()
    unsequenced: set[str] = set()

    for start in starts:
        if start in assigned:
            continue

        chain: list[str] = []
        position: dict[str, int] = {}
        node: str | None = start
        while node is not None and node not in assigned and node not in position:
            position[node] = len(chain)
            chain.append(node)
            node = successor.get(node)

        assigned.update(chain)

        if node is not None and node in position:
            cycle = chain[position[node]:] + [node]
            diagnostics.report(
                DiagnosticKind.NAVIGATION_CYCLE,
                "Navigation cycle: " + " -> ".join(cycle),
                document=node,
                target=chain[-1],
            )
            unsequenced.update(chain)
            continue

        if node is not None and node in unsequenced:
            # Chain runs into a cycle reported earlier
            log.debug("Chain starting at %s leads into a cycle at %s", start, node)
            unsequenced.update(chain)
            continue

        graph.sequences.append(chain)

    graph.unsequenced = [doc_id for doc_id in order if doc_id in unsequenced]

    for sequence in graph.sequences:
        for i, doc_id in enumerate(sequence):
            graph.links[doc_id] = NavLinks(
                prev=sequence[i - 1] if i > 0 else None,
                next=sequence[i + 1] if i + 1 < len(sequence) else None,
            )

    log.debug(
        "Sequenced %d chains, %d documents unsequenced",
        len(graph.sequences),
        len(graph.unsequenced),
    )
    return NavigationResult(graph=graph, diagnostics=diagnostics)


def build_toc(
    documents: list[Document],
    graph: NavigationGraph,
    base_url: str = "",
    title: str = "Contents",
) -> TocNode:
    """Group the reading order into a directory-shaped contents tree.

    Sections appear in the order their first document is read. A directory's
    'index' document titles the section and is linked from it rather than
    listed as a child.
    """
    by_id = {doc.id: doc for doc in documents}
    root = TocNode(title=title)
    sections: dict[str, TocNode] = {"": root}

    def section_for(directory: str) -> TocNode:
        if directory in sections:
            return sections[directory]
        parent_dir, _, name = directory.rpartition("/")
        node = TocNode(title=name)
        index_doc = by_id.get(f"{directory}/index")
        if index_doc is not None:
            node.title = index_doc.title
            node.doc_id = index_doc.id
            node.href = href_for(index_doc, base_url)
        section_for(parent_dir).children.append(node)
        sections[directory] = node
        return node

    for doc_id in graph.order():
        doc = by_id.get(doc_id)
        if doc is None:
            continue
        directory, _, name = doc_id.rpartition("/")
        if name == "index" and directory:
            section_for(directory)
            continue
        section_for(directory).children.append(
            TocNode(title=doc.title, doc_id=doc.id, href=href_for(doc, base_url))
        )

    return root
