"""Utility functions for Quire.

Key functions:
    titleize: Convert a name to a human-readable title.
    is_markdown: Check if a filename is a Markdown file.
    html_name: Map a Markdown filename to its HTML output name.
    template_name: Derive a template's registered name from its filename.
    is_ignored_template: Check if a templates/ entry is an editor or OS artifact.
    display_date: Format a date the way collection listings show it.
"""

from __future__ import annotations

import re
from datetime import date

DISPLAY_DATE_FORMAT = "%b %d, %Y"


def titleize(name: str) -> str:
    """Convert a name to a human-readable title.

    Replaces hyphens and underscores with spaces and capitalizes each word.

    Args:
        name: Directory or file name.

    Returns:
        Human-readable title string.

    Examples:
        >>> titleize("posts")
        'Posts'

        >>> titleize("field-notes")
        'Field Notes'
    """
    words = re.split(r"[\s\-_]+", name)
    return " ".join(word.capitalize() for word in words if word)


def is_markdown(name: str) -> bool:
    """Check if a filename is a Markdown file.

    Args:
        name: Filename to check.

    Returns:
        True if the name ends with ``.md``.
    """
    return name.endswith(".md")


def html_name(name: str) -> str:
    """Map a Markdown filename to its HTML output name.

    Args:
        name: Markdown filename, e.g. ``about.md``.

    Returns:
        Output filename, e.g. ``about.html``.
    """
    return f"{name.removesuffix('.md')}.html"


def template_name(filename: str) -> str:
    """Derive a template's registered name from its filename.

    Everything from the first dot on is dropped, so ``post.html.jinja`` is
    registered as ``post``.

    Args:
        filename: Template filename.

    Returns:
        Template name.
    """
    return filename.split(".", 1)[0]


def is_ignored_template(filename: str) -> bool:
    """Check if a file in ``templates/`` should be left out.

    Hidden files (``.DS_Store``, editor swap files) and backups ending in
    ``~`` are never templates.

    Examples:
        >>> is_ignored_template("page.html~")
        True
    """
    return filename.startswith(".") or filename.endswith("~")


def display_date(value: date) -> str:
    """Format a date for display, e.g. ``Mar 24, 2023``."""
    return value.strftime(DISPLAY_DATE_FORMAT)
