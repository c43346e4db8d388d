"""Caller-facing operations for Folio.

The Engine resolves project names through the registry and runs builds
and content operations on the project's root path. Builds, writes and
article saves hold the project's lock so they never interleave on the
same project.
"""

from __future__ import annotations

import logging
from pathlib import Path

from .articles import Article, ArticleRepository, SaveResult
from .build import BuildResult, build_site
from .locks import ProjectLocks, project_locks
from .registry import Project, ProjectRegistry

logger = logging.getLogger(__name__)


class Engine:
    """Entry point used by the CLI, the HTTP API and the preview server.

    Attributes:
        registry: Project registry used to resolve names.
        locks: Per-project lock registry.
    """

    def __init__(self, registry: ProjectRegistry, locks: ProjectLocks | None = None):
        self.registry = registry
        self.locks = locks or project_locks

    def project(self, name: str) -> Project:
        return self.registry.resolve(name)

    def _repository(self, name: str) -> tuple[Project, ArticleRepository]:
        project = self.project(name)
        return project, ArticleRepository(project.path)

    def build_project(self, name: str) -> BuildResult:
        """Run a full build of a project."""
        project = self.project(name)
        with self.locks.hold(project.path):
            return build_site(project.path)

    def build_path(self, project_root: Path) -> BuildResult:
        """Build a project by root path under its lock."""
        with self.locks.hold(project_root):
            return build_site(project_root)

    def read_file_content(self, name: str, relative_path: str) -> str:
        _, repo = self._repository(name)
        return repo.read_text(relative_path)

    def write_file_content(self, name: str, relative_path: str, content: str) -> None:
        """Write a content file, creating intermediate directories."""
        project, repo = self._repository(name)
        with self.locks.hold(project.path):
            repo.write_text(relative_path, content)
        logger.info("File '%s' saved in project '%s'.", relative_path, name)

    def parse_article(self, name: str, relative_path: str) -> Article:
        _, repo = self._repository(name)
        return repo.read(relative_path)

    def save_article(
        self, name: str, article: Article, original_relative_path: str = ""
    ) -> SaveResult:
        """Save an article, renaming its file when the title's slug changed."""
        project, repo = self._repository(name)
        with self.locks.hold(project.path):
            return repo.save(article, original_relative_path)

    def list_content_files(self, name: str) -> list[str]:
        _, repo = self._repository(name)
        return repo.list_files()
