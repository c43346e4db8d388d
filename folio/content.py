"""Content processing for Folio.

Discovers files under a project's ``content/`` directory and turns markdown
documents into Page objects ready for template binding.

Key items:
- Page: Render context for a single markdown file.
- ContentEntry: One directory or file found while walking content.
- iter_content: Walk a content tree parents-first in sorted order.
- list_content_files: Relative paths of every file in a content tree.
- PageBuilder: Parses and renders a markdown file into a Page.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from markupsafe import Markup

from . import frontmatter
from .renderers import MarkdownRenderer, default_markdown_renderer
from .utils import is_markdown, relative_posix


@dataclass
class Page:
    """Render context for one markdown file.

    Attributes:
        frontmatter: Parsed metadata mapping.
        content: Rendered HTML fragment, marked safe for templates.
        source_path: Absolute path of the markdown source.
        relative_path: Source path relative to the content directory.
    """

    frontmatter: dict[str, Any]
    content: Markup
    source_path: Path
    relative_path: str
    body: str = ""

    @property
    def title(self) -> str:
        return str(self.frontmatter.get("title", ""))


@dataclass
class ContentEntry:
    """A directory or file found under the content directory."""

    path: Path
    relative: Path
    is_dir: bool = False
    is_markdown: bool = field(init=False)

    def __post_init__(self):
        self.is_markdown = not self.is_dir and is_markdown(self.path)

    def output_relative(self) -> Path:
        """Relative output path: ``.md`` becomes ``.html``, others unchanged."""
        if self.is_markdown:
            return self.relative.with_name(self.relative.name[: -len(".md")] + ".html")
        return self.relative


def iter_content(content_dir: Path) -> Iterator[ContentEntry]:
    """Walk ``content_dir`` recursively, directories before their children.

    Args:
        content_dir: Root of the content tree.

    Yields:
        ContentEntry for every directory and file, in sorted order.
    """
    for path in sorted(content_dir.rglob("*")):
        yield ContentEntry(
            path=path,
            relative=path.relative_to(content_dir),
            is_dir=path.is_dir(),
        )


def list_content_files(content_dir: Path) -> list[str]:
    """Return the relative paths (``/`` separated) of every file in a tree."""
    return [
        relative_posix(entry.path, content_dir)
        for entry in iter_content(content_dir)
        if not entry.is_dir
    ]


class PageBuilder:
    """Builds Page objects from markdown source files.

    Attributes:
        content_dir: Directory relative paths are computed against.
        renderer: Markdown renderer used for bodies.
    """

    def __init__(self, content_dir: Path, renderer: MarkdownRenderer | None = None):
        self.content_dir = content_dir
        self.renderer = renderer or default_markdown_renderer

    def build(self, path: Path) -> Page:
        """Parse and render one markdown file.

        Args:
            path: Path to the markdown source.

        Returns:
            Page with front matter and rendered HTML.

        Raises:
            FrontMatterError: If the document cannot be parsed.
        """
        raw = path.read_text(encoding="utf-8")
        document = frontmatter.parse(raw, path)
        html = self.renderer.render(document.body)
        return Page(
            frontmatter=document.frontmatter,
            content=Markup(html),
            source_path=path,
            relative_path=relative_posix(path, self.content_dir),
            body=document.body,
        )
