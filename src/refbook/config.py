"""Configuration management for refbook.

Constants live here rather than scattered through the codebase. Per-book
settings come from a .bookconfig YAML file in the book root.

Example .bookconfig file:
    title: Ruby Reference Manual
    base_url: /refm
    index_entry: intro          # Page shown at index.html instead of the contents
    suffixes: [.md, .markdown]
    exclude:
      - drafts/*
    manifest:                   # Explicit file list; disables directory scanning
      - intro.md
      - language/syntax.md
    strict: false               # Exit non-zero when errors are reported
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# Book config filename (lives in the book root)
BOOK_CONFIG_FILENAME = ".bookconfig"

# Content file suffixes scanned when no manifest is configured
DEFAULT_SUFFIXES = (".md", ".markdown")

DEFAULT_SITE_TITLE = "Reference"

DEFAULT_OUTPUT_DIR = "_site"


class ConfigurationError(Exception):
    """Raised when the book configuration is missing or invalid."""

    pass


@dataclass
class BookConfig:
    """Book configuration from a .bookconfig file."""

    title: str = DEFAULT_SITE_TITLE
    """Site title used in page headers."""

    base_url: str = ""
    """Prefix for generated links (e.g. '/refm' for subdirectory hosting)."""

    index_entry: str | None = None
    """Document id rendered as the landing page."""

    suffixes: list[str] = field(default_factory=lambda: list(DEFAULT_SUFFIXES))
    """Content file suffixes picked up by directory scanning."""

    exclude: list[str] = field(default_factory=list)
    """Glob patterns (relative to the root) skipped by directory scanning."""

    manifest: list[str] = field(default_factory=list)
    """Explicit ordered list of content files. Empty means scan the root."""

    strict: bool = False
    """Treat error diagnostics as a failed run."""

    source_file: Path | None = None
    """Path to the .bookconfig file that was loaded."""

    @classmethod
    def from_dict(cls, data: dict[str, Any], source_file: Path | None = None) -> "BookConfig":
        """Create BookConfig from parsed YAML dict."""
        suffixes = data.get("suffixes") or list(DEFAULT_SUFFIXES)
        return cls(
            title=str(data.get("title") or DEFAULT_SITE_TITLE),
            base_url=normalize_base_url(data.get("base_url") or ""),
            index_entry=data.get("index_entry"),
            suffixes=[s if s.startswith(".") else f".{s}" for s in _str_list(suffixes, "suffixes")],
            exclude=_str_list(data.get("exclude", []), "exclude"),
            manifest=_str_list(data.get("manifest", []), "manifest"),
            strict=bool(data.get("strict", False)),
            source_file=source_file,
        )


def _str_list(value: Any, key: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"'{key}' must be a list of strings")
    return list(value)


def normalize_base_url(base_url: str) -> str:
    """Strip trailing slashes and ensure a leading one ('' stays '')."""
    base_url = base_url.strip().rstrip("/")
    if base_url and not base_url.startswith("/") and "://" not in base_url:
        base_url = f"/{base_url}"
    return base_url


def load_book_config(book_root: Path) -> BookConfig:
    """Load .bookconfig from a book root.

    A missing file yields the defaults. An unreadable or malformed file is a
    configuration error.

    Raises:
        ConfigurationError: If the root is not a directory or the file is invalid.
    """
    if not book_root.is_dir():
        raise ConfigurationError(f"Book root is not a directory: {book_root}")

    config_file = book_root / BOOK_CONFIG_FILENAME
    if not config_file.exists():
        return BookConfig()

    try:
        data = yaml.safe_load(config_file.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read {config_file}: {e}") from e

    # Empty or all-comments file
    if data is None:
        return BookConfig(source_file=config_file)

    if not isinstance(data, dict):
        raise ConfigurationError(f"{config_file} must contain a YAML mapping")

    return BookConfig.from_dict(data, source_file=config_file)
