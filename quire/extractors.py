"""Metadata extractors for Quire.

This module reads a Markdown document once, as a mistune syntax tree, to find
its title and its embedded front matter. The walk stops as soon as both are
known, so long documents are not traversed to the end.

Front matter lives in an HTML comment whose first line is ``<!--metadata``
and whose closing line is ``-->``. The lines in between are TOML::

    <!--metadata
    date = 2023-03-24
    shortname = "title"
    slug = " hey there "
    -->

Key classes and functions:
- FrontMatter: Parsed metadata block.
- parse_front_matter: Parse a raw HTML block into FrontMatter, or None.
- extract_title_and_front_matter: Single tree walk returning both.
"""

from __future__ import annotations

import datetime as dt
import tomllib
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

import mistune

from .renderers import MARKDOWN_PLUGINS, split_heading_attrs

FRONT_MATTER_OPEN = "<!--metadata"
FRONT_MATTER_CLOSE = "-->"


@dataclass(frozen=True)
class FrontMatter:
    """Metadata embedded at the top of a Markdown document.

    Attributes:
        date: Calendar date of the document.
        slug: Output name override, used verbatim before normalization.
        shortname: Short label used in breadcrumbs.
        extra: Any other keys found in the block. Not used by the build.
    """

    date: dt.date | None = None
    slug: str | None = None
    shortname: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)


def parse_front_matter(raw: str) -> FrontMatter | None:
    """Parse a raw HTML comment block into FrontMatter.

    Args:
        raw: Raw text of an HTML block.

    Returns:
        FrontMatter, or None if the block is not a metadata block or is malformed.
    """
    lines = raw.splitlines()
    if not lines or lines[0].strip() != FRONT_MATTER_OPEN:
        return None
    body: list[str] = []
    for line in lines[1:]:
        if line.strip() == FRONT_MATTER_CLOSE:
            break
        body.append(line)
    else:
        return None
    try:
        data = tomllib.loads("\n".join(body))
    except tomllib.TOMLDecodeError:
        return None
    return _front_matter_from_mapping(data)


def _front_matter_from_mapping(data: dict[str, Any]) -> FrontMatter | None:
    raw_date = data.pop("date", None)
    slug = data.pop("slug", None)
    shortname = data.pop("shortname", None)

    if isinstance(raw_date, dt.datetime):
        raw_date = raw_date.date()
    elif raw_date is not None and not isinstance(raw_date, dt.date):
        return None
    if slug is not None and not isinstance(slug, str):
        return None
    if shortname is not None and not isinstance(shortname, str):
        return None
    return FrontMatter(date=raw_date, slug=slug, shortname=shortname, extra=data)


def _inline_text(children: Iterable[dict[str, Any]]) -> str:
    parts: list[str] = []
    for child in children:
        kind = child.get("type")
        if kind in ("softbreak", "linebreak"):
            parts.append(" ")
        elif "children" in child:
            parts.append(_inline_text(child["children"]))
        else:
            parts.append(child.get("raw", ""))
    return "".join(parts)


def _syntax_tree(text: str) -> list[dict[str, Any]]:
    markdown = mistune.create_markdown(renderer="ast", plugins=MARKDOWN_PLUGINS)
    return markdown(text)


def extract_title_and_front_matter(text: str) -> tuple[str, FrontMatter | None]:
    """Find the first level-1 heading and the first metadata block.

    Args:
        text: Markdown source.

    Returns:
        Tuple of (title, front matter). The title is empty when the document has
        no level-1 heading.
    """
    title: str | None = None
    front_matter: FrontMatter | None = None
    metadata_seen = False
    for token in _syntax_tree(text):
        kind = token.get("type")
        if kind == "heading" and title is None:
            if token.get("attrs", {}).get("level") == 1:
                heading, _ = split_heading_attrs(_inline_text(token.get("children", [])))
                title = heading.strip()
        elif kind == "block_html" and not metadata_seen:
            raw = token.get("raw", "")
            if raw.lstrip().startswith(FRONT_MATTER_OPEN):
                metadata_seen = True
                front_matter = parse_front_matter(raw.lstrip())
        if title is not None and metadata_seen:
            break
    return title or "", front_matter
