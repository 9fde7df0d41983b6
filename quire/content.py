"""Content model for Quire.

This module holds the records that flow through a build and the Markdown
conversion entry point.

Key classes and functions:
- ParsedDocument: Title, HTML body and front matter of one Markdown file.
- Breadcrumb: One navigational step passed to templates.
- EntitySummary: Record of one built collection member, used for its index.
- md_to_html: Convert Markdown text into a ParsedDocument.
- read_document: Read and convert a Markdown file.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from .errors import ReadError
from .extractors import FrontMatter, extract_title_and_front_matter
from .renderers import MarkdownRenderer

__all__ = [
    "Breadcrumb",
    "EntitySummary",
    "FrontMatter",
    "ParsedDocument",
    "md_to_html",
    "read_document",
]


@dataclass(frozen=True)
class ParsedDocument:
    """A Markdown document converted to HTML.

    Attributes:
        title: Text of the first level-1 heading, or empty.
        html: Rendered HTML fragment.
        front_matter: Embedded metadata, if present and well formed.
    """

    title: str
    html: str
    front_matter: FrontMatter | None = None


@dataclass(frozen=True)
class Breadcrumb:
    """One step in a page's navigational path."""

    name: str
    link: str


@dataclass(frozen=True)
class EntitySummary:
    """Summary of one built collection member.

    Attributes:
        filename: Output filename, relative to the collection directory.
        title: Title of the entity.
        created_at_iso: ``YYYY-MM-DD`` date, used for sorting.
        created_at_display: Human-readable date, e.g. ``Mar 24, 2023``.
    """

    filename: str
    title: str
    created_at_iso: str
    created_at_display: str


def md_to_html(text: str) -> ParsedDocument:
    """Convert Markdown text into a ParsedDocument.

    The text is parsed twice: once as a syntax tree to find the title and front
    matter, once to render HTML.

    Args:
        text: Markdown source.

    Returns:
        ParsedDocument for the text.
    """
    title, front_matter = extract_title_and_front_matter(text)
    body = MarkdownRenderer().render(text)
    return ParsedDocument(title=title, html=body, front_matter=front_matter)


def read_document(path: Path) -> ParsedDocument:
    """Read a Markdown file and convert it.

    Args:
        path: Path to the Markdown file.

    Returns:
        ParsedDocument for the file.

    Raises:
        ReadError: If the file cannot be read or decoded.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ReadError(path, exc) from exc
    return md_to_html(text)
