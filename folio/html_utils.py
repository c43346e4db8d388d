"""HTML utility functions for Folio.

Functions:
    escape_html: Escape special HTML characters in a string.
    strip_tags: Remove markup tags from an HTML fragment.
    inject_before_body_end: Insert a snippet before ``</body>``.
"""

from __future__ import annotations

import re

_TAG_RE = re.compile(r"<[^>]+>")


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Args:
        text: The string to escape.

    Returns:
        The escaped string, safe for inclusion in HTML.

    Examples:
        >>> escape_html('<script>alert("XSS")</script>')
        '&lt;script&gt;alert(&quot;XSS&quot;)&lt;/script&gt;'

        >>> escape_html('Tom & Jerry')
        'Tom &amp; Jerry'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def strip_tags(html: str) -> str:
    """Remove tags from an HTML fragment, keeping the text.

    Examples:
        >>> strip_tags("Hello <em>world</em>")
        'Hello world'
    """
    return _TAG_RE.sub("", html)


def inject_before_body_end(html: str, snippet: str) -> str:
    """Insert ``snippet`` before the closing body tag, or append it.

    Args:
        html: Full HTML document or fragment.
        snippet: Markup to insert.

    Returns:
        HTML with the snippet included once.
    """
    if "</body>" in html:
        return html.replace("</body>", f"{snippet}</body>", 1)
    return html + snippet
