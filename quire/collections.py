"""Collection building for Quire.

A collection is a top-level input directory, such as ``posts/``. Each Markdown
file in it is an entity: it is rendered to its own page and contributes a
summary to the collection's index page, which lists entities newest first.

Key functions:
- build_entity: Render one collection member and summarize it.
- build_collection: Render every member concurrently, then the index.
- entity_slug: Output filename of a collection member.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import date
from pathlib import Path

from .content import Breadcrumb, EntitySummary, FrontMatter, read_document
from .errors import BuildError, CollectionBuildError
from .output import write_atomic
from .scanner import scan_dir
from .templates import CollectionArgs, EntityArgs, TemplateSet
from .utils import display_date, html_name, is_markdown, titleize

COLLECTION_INDEX = "index.html"

# Characters that would move an entity out of its collection directory.
SLUG_SEPARATORS = frozenset("/\\")


def entity_slug(name: str, front_matter: FrontMatter | None) -> str:
    """Return the output filename of a collection member.

    A ``slug`` in the front matter wins; it is trimmed, spaces become
    underscores and ``.html`` is appended. Otherwise the Markdown filename is
    used with its suffix swapped.

    Args:
        name: Markdown filename.
        front_matter: Parsed front matter, if any.

    Returns:
        Output filename.

    Examples:
        >>> entity_slug("hello.md", FrontMatter(slug=" hey there "))
        'hey_there.html'
    """
    if front_matter is not None and front_matter.slug is not None:
        return f"{front_matter.slug.strip().replace(' ', '_')}.html"
    return html_name(name)


def _check_slug(source: Path, slug: str) -> None:
    stem = slug.removesuffix(".html")
    if not stem or stem in (".", "..") or any(ch in SLUG_SEPARATORS for ch in slug):
        raise BuildError(source, f'slug "{stem}" is not a plain file name')


async def build_entity(
    name: str,
    collection: str,
    breadcrumbs: Sequence[Breadcrumb],
    input_dir: Path,
    output_dir: Path,
    templates: TemplateSet,
    today: date | None = None,
) -> EntitySummary:
    """Render one collection member and return its summary.

    Args:
        name: Markdown filename inside the collection directory.
        collection: Collection name.
        breadcrumbs: Breadcrumbs inherited from the collection.
        input_dir: Collection input directory.
        output_dir: Collection output directory.
        templates: Compiled templates of this build.
        today: Date used when the document has none. Defaults to today.

    Returns:
        EntitySummary of the rendered entity.

    Raises:
        ReadError: If the source cannot be read.
        BuildError: If the slug is not a plain file name.
        TemplateNotFoundError: If the collection has no entity template.
        RenderError: If rendering fails.
        WriteError: If the output cannot be written.
    """
    source = input_dir / name
    document = await asyncio.to_thread(read_document, source)
    front_matter = document.front_matter

    if front_matter is not None and front_matter.date is not None:
        created = front_matter.date
    else:
        created = today or date.today()
    created_display = display_date(created)
    slug = entity_slug(name, front_matter)
    _check_slug(source, slug)
    shortname = front_matter.shortname if front_matter and front_matter.shortname else None

    args = EntityArgs(
        path=(*breadcrumbs, Breadcrumb(shortname or created_display, f"{collection}/{slug}")),
        title=document.title,
        contents=document.html,
    )
    lookup = templates.resolve_entity_template(collection)
    rendered = await asyncio.to_thread(templates.render, lookup, args, source)
    await asyncio.to_thread(write_atomic, output_dir / slug, rendered)

    return EntitySummary(
        filename=slug,
        title=document.title,
        created_at_iso=created.isoformat(),
        created_at_display=created_display,
    )


def _check_unique_slugs(collection_dir: Path, summaries: Sequence[EntitySummary]) -> None:
    seen = {COLLECTION_INDEX}
    for summary in summaries:
        if summary.filename in seen:
            raise BuildError(
                collection_dir,
                f'output "{summary.filename}" is produced by more than one entity',
            )
        seen.add(summary.filename)


async def build_collection(
    name: str,
    input_root: Path,
    output_root: Path,
    templates: TemplateSet,
    today: date | None = None,
) -> list[EntitySummary]:
    """Build every member of a collection, then the collection's index.

    Members are built concurrently. The first failing member fails the whole
    collection; the index is only rendered once every member has been built.

    Args:
        name: Collection directory name.
        input_root: Input tree root.
        output_root: Output tree root.
        templates: Compiled templates of this build.
        today: Date used for members without one.

    Returns:
        Summaries of all members, newest first.

    Raises:
        CollectionBuildError: If any member fails.
        BuildError: If the collection cannot be listed or its index fails.
    """
    title = titleize(name)
    breadcrumbs = (Breadcrumb(title, name),)
    input_dir = input_root / name
    output_dir = output_root / name

    entries = await asyncio.to_thread(scan_dir, input_dir)
    members = [entry.name for entry in entries if entry.is_file and is_markdown(entry.name)]
    try:
        summaries = await asyncio.gather(
            *(
                build_entity(member, name, breadcrumbs, input_dir, output_dir, templates, today)
                for member in members
            )
        )
        _check_unique_slugs(input_dir, summaries)
    except Exception as exc:
        raise CollectionBuildError(input_dir, name, exc) from exc

    ordered = sorted(summaries, key=lambda s: s.created_at_iso, reverse=True)

    index_path = output_dir / COLLECTION_INDEX
    args = CollectionArgs(path=breadcrumbs, title=title, entities=tuple(ordered))
    rendered = await asyncio.to_thread(templates.render, name, args, input_dir)
    await asyncio.to_thread(write_atomic, index_path, rendered)
    return ordered
