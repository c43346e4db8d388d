"""On-disk layout of a Folio project.

Every project follows the same fixed convention::

    <root>/content/**                        source documents
    <root>/public/**                         build output, regenerated each build
    <root>/themes/default/templates/page.html
    <root>/themes/default/static/**
    <root>/addons/**                         reserved
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

THEME = "default"

SCAFFOLD_DIRS = (
    "content",
    "public",
    "themes/default/templates/partials",
    "themes/default/static/css",
    "themes/default/static/js",
    "addons",
)


@dataclass(frozen=True)
class ProjectLayout:
    """Paths of a project's subtrees."""

    root: Path

    @property
    def content_dir(self) -> Path:
        return self.root / "content"

    @property
    def public_dir(self) -> Path:
        return self.root / "public"

    @property
    def theme_dir(self) -> Path:
        return self.root / "themes" / THEME

    @property
    def templates_dir(self) -> Path:
        return self.theme_dir / "templates"

    @property
    def static_dir(self) -> Path:
        return self.theme_dir / "static"

    def watch_dirs(self) -> list[Path]:
        """Source directories whose changes should trigger a rebuild."""
        return [path for path in (self.content_dir, self.root / "themes") if path.exists()]
