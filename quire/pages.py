"""Page rendering for Quire.

Top-level Markdown files become pages next to the site index. A page renders
with a template named after it when one exists, and with ``page`` otherwise.
The root ``index.md`` always renders with the ``index`` template.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

from .content import Breadcrumb, read_document
from .output import write_atomic
from .templates import IndexArgs, PageArgs, TemplateSet
from .utils import html_name

INDEX_SOURCE = "index.md"
INDEX_TEMPLATE = "index"


async def build_page(name: str, input_dir: Path, output_dir: Path, templates: TemplateSet) -> str:
    """Render one top-level page.

    Args:
        name: Markdown filename in the input root.
        input_dir: Input tree root.
        output_dir: Output tree root.
        templates: Compiled templates of this build.

    Returns:
        Output filename of the page.
    """
    source = input_dir / name
    document = await asyncio.to_thread(read_document, source)
    out_name = html_name(name)
    args = PageArgs(
        path=(Breadcrumb(document.title, out_name),),
        title=document.title,
        contents=document.html,
    )
    lookup = templates.resolve_page_template(name.removesuffix(".md"))
    rendered = await asyncio.to_thread(templates.render, lookup, args, source)
    await asyncio.to_thread(write_atomic, output_dir / out_name, rendered)
    return out_name


async def build_index(input_dir: Path, output_dir: Path, templates: TemplateSet) -> str:
    """Render the site root page from ``index.md``.

    Returns:
        Output filename, always ``index.html``.
    """
    source = input_dir / INDEX_SOURCE
    document = await asyncio.to_thread(read_document, source)
    args = IndexArgs(title=document.title, contents=document.html)
    rendered = await asyncio.to_thread(templates.render, INDEX_TEMPLATE, args, source)
    await asyncio.to_thread(write_atomic, output_dir / "index.html", rendered)
    return "index.html"
