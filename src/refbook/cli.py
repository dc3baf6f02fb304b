#!/usr/bin/env python3
"""
refbook: assemble a navigable HTML book from reference pages

Usage:
    refbook check ./book           # Load, resolve and sequence; report findings
    refbook toc ./book             # Print the reading order
    refbook build ./book -o _site  # Render the site
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click

from . import __version__ as REFBOOK_VERSION
from .config import DEFAULT_OUTPUT_DIR, BookConfig, ConfigurationError, load_book_config
from .diagnostics import Diagnostics, format_diagnostic
from .models import Diagnostic


def output(data, as_json: bool = False):
    """Output data as JSON or formatted text."""
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
    else:
        click.echo(data)


def _load_config(book_root: Path) -> BookConfig:
    try:
        return load_book_config(book_root)
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _report_diagnostics(diagnostics: Diagnostics, quiet: bool) -> None:
    """Print diagnostics to stderr; warnings are hidden in quiet mode."""
    for diagnostic in diagnostics:
        if quiet and diagnostic.severity != "error":
            continue
        click.echo(format_diagnostic(diagnostic), err=True)
    if diagnostics:
        click.echo(
            f"{len(diagnostics.errors)} error(s), {len(diagnostics.warnings)} warning(s)",
            err=True,
        )


def _exit_for(diagnostics: Diagnostics, strict: bool) -> None:
    if strict and diagnostics.has_errors:
        sys.exit(1)


book_root_argument = click.argument(
    "book_root",
    required=False,
    default=".",
    envvar="REFBOOK_ROOT",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)


# ─────────────────────────────────────────────────────────────────────────────
# Main CLI Group
# ─────────────────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=REFBOOK_VERSION, prog_name="refbook")
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    envvar="REFBOOK_QUIET",
    help="Suppress warnings, show only errors and essential output",
)
@click.pass_context
def cli(ctx: click.Context, quiet: bool):
    """refbook: assemble a navigable HTML book from reference pages.

    \b
    Content files are Markdown with YAML front-matter:
      ---
      title: IO
      prev: io/console/index
      next: io/console/winsize
      ---
    and cross-references written as [[ref:io/console/IO]] or
    [label](ref:io/console/IO#anchor).
    """
    from ._logging import configure_logging, set_quiet_mode

    configure_logging()
    set_quiet_mode(quiet)

    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet


@cli.command()
@book_root_argument
@click.option("--strict", is_flag=True, help="Exit 1 when any error is reported")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def check(ctx: click.Context, book_root: Path, strict: bool, as_json: bool):
    """Load, resolve and sequence a book without rendering it.

    All findings are reported; the run never stops at the first problem.
    """
    from .core import assemble

    config = _load_config(book_root)
    book = assemble(book_root, config)

    if as_json:
        payload: dict[str, Any] = {
            "documents": len(book.documents),
            **book.diagnostics.to_dict(),
        }
        output(payload, as_json=True)
    else:
        _report_diagnostics(book.diagnostics, ctx.obj["quiet"])
        click.echo(f"Checked {len(book.documents)} documents")

    _exit_for(book.diagnostics, strict or config.strict)


@cli.command()
@book_root_argument
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def toc(ctx: click.Context, book_root: Path, as_json: bool):
    """Print the reading order derived from prev/next pointers."""
    from .core import assemble

    config = _load_config(book_root)
    book = assemble(book_root, config)
    graph = book.navigation.graph

    if as_json:
        output(
            {
                "sequences": graph.sequences,
                "unsequenced": graph.unsequenced,
                "toc": book.toc.model_dump(mode="json"),
            },
            as_json=True,
        )
        return

    titles = {doc.id: doc.title for doc in book.documents}
    for number, sequence in enumerate(graph.sequences, start=1):
        if len(graph.sequences) > 1:
            click.echo(f"Sequence {number}:")
        for doc_id in sequence:
            click.echo(f"  {doc_id}  {titles[doc_id]}")
    if graph.unsequenced:
        click.echo("Unsequenced:")
        for doc_id in graph.unsequenced:
            click.echo(f"  {doc_id}  {titles[doc_id]}")

    _report_diagnostics(Diagnostics(book.navigation.diagnostics), ctx.obj["quiet"])


@cli.command()
@book_root_argument
@click.option(
    "--output",
    "-o",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_OUTPUT_DIR,
    help=f"Output directory (default: {DEFAULT_OUTPUT_DIR})",
)
@click.option("--base-url", "-b", default=None, help="Base URL for links (e.g., /refm)")
@click.option("--title", default=None, help="Site title (default: from .bookconfig)")
@click.option("--index", "-i", "index_entry", default=None, help="Document id for index.html")
@click.option("--no-clean", is_flag=True, help="Don't remove output directory before build")
@click.option("--strict", is_flag=True, help="Exit 1 when any error is reported")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def build(
    ctx: click.Context,
    book_root: Path,
    output_dir: Path,
    base_url: str | None,
    title: str | None,
    index_entry: str | None,
    no_clean: bool,
    strict: bool,
    as_json: bool,
):
    """Render a book to a static HTML site.

    \b
    Writes:
      <doc>.html          One page per document, with prev/next links
      contents.html       Table of contents
      index.html          Contents, or the --index document
      toc.json            Reading order
      diagnostics.json    Every finding of the run

    \b
    Examples:
      refbook build ./book -o docs
      refbook build ./book --base-url /refm --index intro
    """
    from .config import normalize_base_url
    from .core import publish

    config = _load_config(book_root)
    if base_url is not None:
        config.base_url = normalize_base_url(base_url)
    if title:
        config.title = title
    if index_entry:
        config.index_entry = index_entry

    try:
        result = publish(book_root, output_dir, config=config, clean=not no_clean)
    except OSError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    diagnostics = Diagnostics(
        Diagnostic.model_validate(d) for d in result["diagnostics"]["diagnostics"]
    )

    if as_json:
        output(result, as_json=True)
    else:
        _report_diagnostics(diagnostics, ctx.obj["quiet"])
        click.echo(f"Published {result['documents_published']} documents to {result['output_dir']}")
        click.echo(f"Diagnostics: {result['diagnostics_path']}")

    _exit_for(diagnostics, strict or config.strict)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
