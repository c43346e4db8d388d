"""Markdown rendering for Folio.

Converts a document body to an HTML fragment with mistune. Headings get
``id`` attributes derived from their text so themes can link to them, and
fenced code blocks with a language are highlighted with Pygments.

Key items:
- render_markdown: Render a markdown body to HTML.
- MarkdownRenderer: Reusable renderer object used by the site builder.
"""

from __future__ import annotations

import html
import re

import mistune

from .html_utils import escape_html, strip_tags

PLUGINS = ["strikethrough", "footnotes", "table", "url"]


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text.

    Args:
        text: The heading text, possibly containing inline HTML.

    Returns:
        URL-friendly slug suitable for anchor links.
    """
    slug = html.unescape(strip_tags(text)).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class _HighlightRenderer(mistune.HTMLRenderer):
    """HTML renderer with heading anchors and syntax highlighting."""

    def __init__(self):
        super().__init__(escape=False)
        self._heading_id_counts: dict[str, int] = {}
        self._used_ids: set[str] = set()

    def heading(self, text: str, level: int, **attrs) -> str:
        """Render a heading with an auto-generated, document-unique ID.

        Args:
            text: Heading text content.
            level: Heading level (1-6).
            **attrs: Additional attributes.

        Returns:
            HTML heading tag with id attribute.
        """
        base_id = _generate_heading_id(text) or "section"

        heading_id = base_id
        count = self._heading_id_counts.get(base_id, 0)
        while heading_id in self._used_ids:
            count += 1
            heading_id = f"{base_id}-{count}"
        self._heading_id_counts[base_id] = count
        self._used_ids.add(heading_id)

        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

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
            try:
                from pygments import highlight
                from pygments.formatters import HtmlFormatter
                from pygments.lexers import get_lexer_by_name
                from pygments.util import ClassNotFound

                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                pass
            else:
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return highlight(code, lexer, formatter)
        lang_class = f' class="language-{escape_html(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{escape_html(code)}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown content to HTML fragments.

    Rendering is total: malformed markdown is rendered best-effort and
    never rejected. Raw HTML in the source is passed through untouched.
    """

    def render(self, content: str) -> str:
        """Render Markdown content to HTML.

        A fresh renderer is created per call so heading IDs are unique
        within one document only.

        Args:
            content: Markdown source content.

        Returns:
            Rendered HTML fragment.
        """
        markdown = mistune.create_markdown(renderer=_HighlightRenderer(), plugins=PLUGINS)
        return markdown(content)


default_markdown_renderer = MarkdownRenderer()


def render_markdown(body: str) -> str:
    """Render a markdown body to an HTML fragment.

    Examples:
        >>> render_markdown("# Hi")
        '<h1 id="hi">Hi</h1>\\n'
    """
    return default_markdown_renderer.render(body)
