"""Markdown rendering for Quire.

This module converts Markdown into an HTML fragment with mistune. Raw HTML in
the source is passed through untouched, so metadata comments stay in the output.

Enabled extensions:
- footnotes and strikethrough (mistune plugins),
- heading attributes: ``# Title {#id .class key=value}``,
- fenced code highlighting with Pygments when a language is given.

Key classes and functions:
- MarkdownRenderer: Renders Markdown source to HTML.
- split_heading_attrs: Split a trailing attribute block off heading text.
"""

from __future__ import annotations

import html
import re

import mistune

MARKDOWN_PLUGINS = ["strikethrough", "footnotes"]

# Trailing ``{#id .class key=value}`` block on a heading line.
HEADING_ATTRS_RE = re.compile(r"\s*\{([^{}]*)\}\s*$")
ATTR_NAME_RE = re.compile(r"[A-Za-z_:][-A-Za-z0-9_:.]*\Z")


def split_heading_attrs(text: str) -> tuple[str, dict[str, str]]:
    """Split a trailing attribute block off heading text.

    Supports ``#id``, ``.class`` and ``key=value`` items. Multiple classes are
    joined with spaces. Items whose key is not a valid attribute name, or
    is an event handler (``onclick``), are dropped. Text whose braces hold
    no recognisable item is returned unchanged.

    Args:
        text: Heading text, possibly ending in ``{...}``.

    Returns:
        Tuple of (text without the block, attribute mapping).

    Examples:
        >>> split_heading_attrs("Title {#intro .wide}")
        ('Title', {'id': 'intro', 'class': 'wide'})
    """
    match = HEADING_ATTRS_RE.search(text)
    if not match:
        return text, {}
    attrs: dict[str, str] = {}
    classes: list[str] = []
    for item in match.group(1).split():
        if item.startswith("#") and len(item) > 1:
            attrs["id"] = item[1:]
        elif item.startswith(".") and len(item) > 1:
            classes.append(item[1:])
        elif "=" in item:
            key, _, value = item.partition("=")
            if ATTR_NAME_RE.match(key) and not key.lower().startswith("on"):
                attrs[key] = value.strip("\"'")
    if classes:
        attrs["class"] = " ".join(classes)
    if not attrs:
        return text, {}
    return text[: match.start()], attrs


class _HighlightRenderer(mistune.HTMLRenderer):
    """HTML renderer with heading attributes and syntax highlighting."""

    def __init__(self):
        super().__init__(escape=False)

    def heading(self, text: str, level: int, **attrs) -> str:
        """Render a heading, applying a trailing ``{...}`` attribute block.

        Args:
            text: Rendered heading text.
            level: Heading level (1-6).
            **attrs: Attributes set by mistune.

        Returns:
            HTML heading tag.
        """
        text, extra = split_heading_attrs(text)
        merged = {**{k: str(v) for k, v in attrs.items() if v}, **extra}
        rendered = "".join(
            f' {key}="{html.escape(value, quote=True)}"' for key, value in merged.items()
        )
        return f"<h{level}{rendered}>{text}</h{level}>\n"

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block with Pygments syntax highlighting.

        Args:
            code: The code content.
            info: Language identifier (e.g., 'python', 'javascript').

        Returns:
            HTML string with highlighted code.
        """
        lang = info.split()[0] if info and info.strip() else None
        if lang:
            from pygments import highlight
            from pygments.formatters import HtmlFormatter
            from pygments.lexers import get_lexer_by_name
            from pygments.util import ClassNotFound

            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return highlight(code, lexer, formatter)
        escaped = html.escape(code, quote=False)
        lang_class = f' class="language-{html.escape(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown content to HTML.

    A fresh mistune parser is created per call; mistune renderers carry state
    and are not shared between threads.
    """

    def render(self, content: str) -> str:
        """Render Markdown content to HTML.

        Args:
            content: Markdown source content.

        Returns:
            Rendered HTML fragment.
        """
        markdown = mistune.create_markdown(
            renderer=_HighlightRenderer(), plugins=MARKDOWN_PLUGINS
        )
        return markdown(content)
