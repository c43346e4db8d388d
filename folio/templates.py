"""Template rendering engine for Folio.

Each project theme supplies a single Jinja2 page template,
``themes/default/templates/page.html``. It is parsed once per build and
rendered for every markdown file.

Template context:
- page: The Page being rendered.
- frontmatter: The page's metadata mapping.
- content: Rendered HTML fragment (already marked safe).
- project: Name of the project directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    Template,
    TemplateNotFound,
    TemplateSyntaxError,
    select_autoescape,
)

from .content import Page
from .errors import TemplateInvalid

PAGE_TEMPLATE = "page.html"

__all__ = ["PAGE_TEMPLATE", "TemplateEngine"]


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        templates_dir: Directory holding the theme templates.
        env: Jinja2 environment.
        project_name: Exposed to templates as ``project``.
    """

    def __init__(self, templates_dir: Path, project_name: str = ""):
        """Initialize the template engine.

        Args:
            templates_dir: Theme template directory. Partials below it can be
                pulled in with ``{% include %}``.
            project_name: Name exposed to templates.
        """
        self.templates_dir = templates_dir
        self.project_name = project_name
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            enable_async=False,
        )
        self._template: Template | None = None

    @property
    def template_path(self) -> Path:
        return self.templates_dir / PAGE_TEMPLATE

    def load(self) -> Template:
        """Parse the page template.

        Returns:
            The compiled Jinja2 template.

        Raises:
            TemplateInvalid: If the template is missing or has a syntax error.
        """
        try:
            self._template = self.env.get_template(PAGE_TEMPLATE)
        except TemplateSyntaxError as exc:
            raise TemplateInvalid(
                self.template_path,
                f"Template syntax error on line {exc.lineno}: {exc.message}",
                exc,
            ) from exc
        except TemplateNotFound as exc:
            raise TemplateInvalid(
                self.template_path, "Page template not found", exc
            ) from exc
        return self._template

    def render_page(self, page: Page) -> str:
        """Render a page with the loaded template.

        Args:
            page: Page object to render.

        Returns:
            Rendered HTML string.
        """
        template = self._template or self.load()
        return template.render(**self.context_for(page))

    def context_for(self, page: Page) -> dict[str, Any]:
        return {
            "page": page,
            "frontmatter": page.frontmatter,
            "content": page.content,
            "project": self.project_name,
        }
