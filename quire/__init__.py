"""Quire static site builder.

This package turns a directory of Markdown files, Jinja2 templates and static
assets into a deployable tree of HTML pages and copied assets.

Input layout::

    index.md            site root page
    about.md            top-level pages
    posts/*.md          collections: one page per entity plus an index
    templates/*         one template per file, named after the file
    assets/**           copied verbatim

The main entry point is the CLI module, which provides commands for
scaffolding new projects, building sites, and watching them with live reload.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
