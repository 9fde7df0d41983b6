"""Template rendering engine for Quire.

This module uses Jinja2 to render pages. Every file in the input tree's
``templates/`` directory becomes one named template; the name is the filename
up to its first dot. Templates can include each other as partials
(``{% include "nav" %}``) and extend each other, overriding blocks
(``{% extends "base" %}``).

A TemplateSet is built fresh for each build and never mutated afterwards, so
it can be shared by all render tasks of that build.

Key classes:
- TemplateSet: Compiled templates of one build.
- IndexArgs, PageArgs, EntityArgs, CollectionArgs: Render argument variants.
- TemplateFound, TemplateMissing: Outcome of a template lookup.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Union

from jinja2 import (
    DictLoader,
    Environment,
    StrictUndefined,
    Template,
    TemplateSyntaxError,
)
from markupsafe import Markup

from .content import Breadcrumb, EntitySummary
from .errors import ReadError, RenderError, TemplateLoadError, TemplateNotFoundError
from .scanner import scan_dir
from .utils import is_ignored_template, template_name

__all__ = [
    "CollectionArgs",
    "EntityArgs",
    "IndexArgs",
    "PageArgs",
    "RenderArgs",
    "TemplateFound",
    "TemplateLookup",
    "TemplateMissing",
    "TemplateSet",
]

DEFAULT_PAGE_TEMPLATE = "page"


def _breadcrumbs(path: Sequence[Breadcrumb]) -> list[dict[str, str]]:
    return [{"name": crumb.name, "link": crumb.link} for crumb in path]


@dataclass(frozen=True)
class IndexArgs:
    """Arguments for the site root page."""

    kind: ClassVar[str] = "index"

    title: str
    contents: str

    def to_context(self) -> dict[str, Any]:
        return {
            "page_type": self.kind,
            "title": self.title,
            "contents": Markup(self.contents),
        }


@dataclass(frozen=True)
class PageArgs:
    """Arguments for a top-level page."""

    kind: ClassVar[str] = "page"

    path: Sequence[Breadcrumb]
    title: str
    contents: str

    def to_context(self) -> dict[str, Any]:
        return {
            "page_type": self.kind,
            "path": _breadcrumbs(self.path),
            "title": self.title,
            "contents": Markup(self.contents),
        }


@dataclass(frozen=True)
class EntityArgs(PageArgs):
    """Arguments for one member of a collection."""

    kind: ClassVar[str] = "entity"


@dataclass(frozen=True)
class CollectionArgs:
    """Arguments for a collection's index page."""

    kind: ClassVar[str] = "collection"

    path: Sequence[Breadcrumb]
    title: str
    entities: Sequence[EntitySummary] = field(default_factory=tuple)

    def to_context(self) -> dict[str, Any]:
        return {
            "page_type": self.kind,
            "path": _breadcrumbs(self.path),
            "title": self.title,
            "entities": [
                {
                    "filename": entity.filename,
                    "title": entity.title,
                    "created_at_iso": entity.created_at_iso,
                    "created_at": entity.created_at_display,
                }
                for entity in self.entities
            ],
        }


RenderArgs = Union[IndexArgs, PageArgs, EntityArgs, CollectionArgs]


@dataclass(frozen=True)
class TemplateFound:
    name: str
    template: Template


@dataclass(frozen=True)
class TemplateMissing:
    name: str


TemplateLookup = Union[TemplateFound, TemplateMissing]


class TemplateSet:
    """A named set of compiled Jinja2 templates.

    Attributes:
        env: Jinja2 environment holding the template sources.
    """

    def __init__(self, sources: Mapping[str, str]):
        """Compile a set of template sources.

        Args:
            sources: Mapping of template name to template source.

        Raises:
            jinja2.TemplateSyntaxError: If a template does not compile.
        """
        self._sources = dict(sources)
        self.env = Environment(
            loader=DictLoader(self._sources),
            autoescape=True,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            # Sources are fixed for the lifetime of the set.
            auto_reload=False,
        )
        self._templates = {name: self.env.get_template(name) for name in self._sources}

    @classmethod
    def load(cls, templates_dir: Path) -> TemplateSet:
        """Read and compile every template file in a directory.

        Args:
            templates_dir: The input tree's ``templates/`` directory.

        Returns:
            Compiled TemplateSet.

        Raises:
            ReadError: If the directory or a template file cannot be read.
            TemplateLoadError: If a template does not compile, or two files
                map to the same name.
        """
        sources: dict[str, str] = {}
        origins: dict[str, Path] = {}
        for entry in scan_dir(templates_dir):
            if not entry.is_file or is_ignored_template(entry.name):
                continue
            name = template_name(entry.name)
            if name in origins:
                raise TemplateLoadError(
                    entry.path,
                    f'template name "{name}" is already used by {origins[name].name}',
                )
            try:
                sources[name] = entry.path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise ReadError(entry.path, exc) from exc
            origins[name] = entry.path
        try:
            return cls(sources)
        except TemplateSyntaxError as exc:
            origin = origins.get(exc.name or "", templates_dir)
            raise TemplateLoadError(
                origin,
                f"Template syntax error on line {exc.lineno}: {exc.message}",
                exc,
            ) from exc

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)

    def names(self) -> list[str]:
        return sorted(self._templates)

    def resolve(self, name: str) -> TemplateLookup:
        """Look up a template by name."""
        template = self._templates.get(name)
        if template is None:
            return TemplateMissing(name)
        return TemplateFound(name, template)

    def resolve_page_template(self, page_name: str) -> TemplateLookup:
        """Look up the template for a top-level page.

        A template named after the page wins; otherwise the generic ``page``
        template is used.

        Args:
            page_name: Page filename without its ``.md`` suffix.
        """
        lookup = self.resolve(page_name)
        if isinstance(lookup, TemplateFound):
            return lookup
        return self.resolve(DEFAULT_PAGE_TEMPLATE)

    def resolve_entity_template(self, collection: str) -> TemplateLookup:
        """Look up the template for members of a collection.

        The template is the collection name with one trailing ``s`` removed
        (``posts`` renders with ``post``). There is no fallback.

        Args:
            collection: Collection directory name.
        """
        return self.resolve(collection.removesuffix("s"))

    def render(self, lookup: TemplateLookup | str, args: RenderArgs, source_path: Path) -> str:
        """Render a template with one of the render argument variants.

        Args:
            lookup: Result of a lookup, or a template name to look up.
            args: Render arguments.
            source_path: File the output is built from, for error reporting.

        Returns:
            Rendered HTML.

        Raises:
            TemplateNotFoundError: If the template is not registered.
            RenderError: If rendering raised, e.g. on an undefined field.
        """
        if isinstance(lookup, str):
            lookup = self.resolve(lookup)
        if isinstance(lookup, TemplateMissing):
            raise TemplateNotFoundError(source_path, lookup.name)
        try:
            return lookup.template.render(args.to_context())
        except Exception as exc:
            raise RenderError(source_path, lookup.name, exc) from exc
