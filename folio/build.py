"""Site building functionality for Folio.

Builds a project's static site from its content tree and theme. A build is
a single synchronous pass through four phases:

1. Clean: wipe and recreate ``public/``.
2. Load template: parse ``themes/default/templates/page.html`` once.
3. Walk: mirror ``content/`` into ``public/``, rendering ``.md`` files
   through the template and copying everything else verbatim.
4. Copy static: copy ``themes/default/static/`` into ``public/``.

The first failure aborts the build. Output already written stays on disk;
there is no rollback. Every build is a full rebuild.

Key items:
- build_site: Build a project rooted at a path.
- SiteBuilder: Build runner tracking the current phase.
- BuildResult: Summary of a successful build.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .content import ContentEntry, PageBuilder, iter_content
from .errors import BuildError, FolioError, NotFoundError, TemplateInvalid
from .layout import ProjectLayout
from .templates import TemplateEngine
from .utils import copy_file, copy_tree, ensure_clean_dir

logger = logging.getLogger(__name__)


class BuildPhase(enum.Enum):
    IDLE = "idle"
    CLEANING = "cleaning"
    LOADING_TEMPLATE = "loading_template"
    WALKING = "walking"
    COPYING_ASSETS = "copying_assets"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BuildResult:
    """Result of a site build operation.

    Attributes:
        output_dir: Directory where the site was built.
        pages: Output paths of rendered markdown pages.
        copied: Output paths of files copied verbatim (content and static).
    """

    output_dir: Path
    pages: list[Path] = field(default_factory=list)
    copied: list[Path] = field(default_factory=list)


class SiteBuilder:
    """Runs a full build of one project.

    Attributes:
        layout: Path conventions of the project being built.
        phase: Current BuildPhase; FAILED after any error.
    """

    def __init__(self, project_root: Path):
        self.layout = ProjectLayout(Path(project_root))
        self.phase = BuildPhase.IDLE

    def build(self) -> BuildResult:
        """Build the site.

        Returns:
            BuildResult describing the generated output.

        Raises:
            NotFoundError: If the project has no content directory.
            TemplateInvalid: If the page template is missing or invalid.
            BuildError: For any other failure, wrapping the first error.
        """
        layout = self.layout
        result = BuildResult(output_dir=layout.public_dir)
        logger.info("Starting build for project: %s", layout.root.name)
        try:
            self._enter(BuildPhase.CLEANING)
            self._clean()

            self._enter(BuildPhase.LOADING_TEMPLATE)
            engine = TemplateEngine(layout.templates_dir, project_name=layout.root.name)
            engine.load()

            self._enter(BuildPhase.WALKING)
            self._walk(engine, result)

            self._enter(BuildPhase.COPYING_ASSETS)
            self._copy_static(result)
        except BaseException:
            self.phase = BuildPhase.FAILED
            raise

        self._enter(BuildPhase.DONE)
        logger.info(
            "Built %d pages and copied %d files into %s",
            len(result.pages),
            len(result.copied),
            result.output_dir,
        )
        return result

    def _enter(self, phase: BuildPhase) -> None:
        logger.debug("Build phase: %s", phase.value)
        self.phase = phase

    def _clean(self) -> None:
        public_dir = self.layout.public_dir
        logger.info("Cleaning public directory...")
        try:
            ensure_clean_dir(public_dir)
        except OSError as exc:
            raise BuildError(
                public_dir, f"Failed to clean public directory: {exc}", exc
            ) from exc

    def _walk(self, engine: TemplateEngine, result: BuildResult) -> None:
        content_dir = self.layout.content_dir
        if not content_dir.is_dir():
            raise NotFoundError(f"Content directory not found: {content_dir}")

        logger.info("Processing content files...")
        page_builder = PageBuilder(content_dir)
        for entry in iter_content(content_dir):
            try:
                self._process_entry(entry, page_builder, engine, result)
            except BuildError:
                raise
            except FolioError as exc:
                raise BuildError(entry.path, str(exc), exc) from exc
            except Exception as exc:
                raise BuildError(entry.path, _format_error_message(exc), exc) from exc

    def _process_entry(
        self,
        entry: ContentEntry,
        page_builder: PageBuilder,
        engine: TemplateEngine,
        result: BuildResult,
    ) -> None:
        dest = self.layout.public_dir / entry.output_relative()
        if entry.is_dir:
            dest.mkdir(parents=True, exist_ok=True)
            return
        if entry.is_markdown:
            logger.debug("Processing markdown file: %s", entry.path)
            page = page_builder.build(entry.path)
            rendered = engine.render_page(page)
            _write_page(dest, rendered)
            result.pages.append(dest)
            return
        copy_file(entry.path, dest)
        result.copied.append(dest)

    def _copy_static(self, result: BuildResult) -> None:
        static_dir = self.layout.static_dir
        if not static_dir.is_dir():
            logger.info("No static directory at %s; skipping.", static_dir)
            return
        logger.info("Copying static assets...")
        try:
            result.copied.extend(copy_tree(static_dir, self.layout.public_dir))
        except OSError as exc:
            raise BuildError(static_dir, f"Failed to copy static assets: {exc}", exc) from exc


def build_site(project_root: Path) -> BuildResult:
    """Build the static site for the project rooted at ``project_root``.

    Args:
        project_root: Root directory of the project.

    Returns:
        BuildResult describing the generated output.
    """
    return SiteBuilder(project_root).build()


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message.

    Args:
        exc: The exception to format.

    Returns:
        A human-readable error message.
    """
    error_type = type(exc).__name__
    error_msg = str(exc)

    if error_type == "TemplateSyntaxError":
        return f"Template syntax error on line {getattr(exc, 'lineno', '?')}: {error_msg}"
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "UnicodeDecodeError":
        return f"File is not valid UTF-8: {error_msg}"

    return f"{error_type}: {error_msg}"


def _write_page(dest: Path, rendered: str) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    with open(dest, "w", encoding="utf-8") as f:
        f.write(rendered)


__all__ = [
    "BuildError",
    "BuildPhase",
    "BuildResult",
    "SiteBuilder",
    "TemplateInvalid",
    "build_site",
]
