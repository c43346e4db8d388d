"""Article persistence for Folio.

An article is a content document with a fixed schema: a ``title`` and a
publish ``date`` in its front matter plus a markdown body. Any other front
matter keys are carried along untouched in ``Article.extra``.

The file name of an article is always its slugified title. Saving a new
article places it at ``posts/<slug>.md``; saving an existing one under a
title with a different slug moves it to ``<slug>.md`` in the same directory.

Key classes:
- Article: Parsed article.
- SaveResult: Where a save landed and whether the old file lingers.
- ArticleRepository: Reads and writes documents inside one project.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path, PurePosixPath
from typing import Any

from . import frontmatter
from .content import list_content_files
from .errors import EmptyTitleError, NotFoundError, StorageError, ValidationError
from .frontmatter import MetaValue
from .layout import ProjectLayout
from .utils import confine_path, relative_posix, slugify

logger = logging.getLogger(__name__)

NEW_ARTICLE_DIR = "posts"
ARTICLE_SUFFIX = ".md"


@dataclass
class Article:
    """A parsed article.

    Attributes:
        title: Human readable title; the file name is derived from it.
        date: Publish timestamp.
        body: Markdown body.
        relative_path: Location inside the content directory.
        extra: Remaining front matter keys, in source order.
    """

    title: str
    date: datetime
    body: str = ""
    relative_path: str = ""
    extra: dict[str, MetaValue] = field(default_factory=dict)

    @property
    def slug(self) -> str:
        return slugify(self.title)

    def frontmatter(self) -> dict[str, MetaValue]:
        """Front matter mapping written to disk for this article."""
        data: dict[str, MetaValue] = {"title": self.title, "date": self.date}
        for key, value in self.extra.items():
            if key not in data:
                data[key] = value
        return data

    @classmethod
    def from_document(cls, document: frontmatter.Document) -> Article:
        """Map a generic document onto the article schema.

        Raises:
            ValidationError: If ``title`` or ``date`` is missing or unusable.
        """
        meta = dict(document.frontmatter)
        where = document.relative_path or "article"
        title = meta.pop("title", None)
        if title is None or not str(title).strip():
            raise ValidationError(f"{where}: front matter is missing 'title'")
        if "date" not in meta:
            raise ValidationError(f"{where}: front matter is missing 'date'")
        published = coerce_datetime(meta.pop("date"), where)
        return cls(
            title=str(title),
            date=published,
            body=document.body,
            relative_path=document.relative_path,
            extra=meta,
        )


@dataclass
class SaveResult:
    """Outcome of ArticleRepository.save.

    Attributes:
        path: Final relative path of the article.
        renamed: True if the article moved to a new file.
        stale_path: Old relative path that could not be deleted after a
            rename, or None.
    """

    path: str
    renamed: bool = False
    stale_path: str | None = None


def coerce_datetime(value: Any, where: str = "article") -> datetime:
    """Convert a front matter ``date`` value to a datetime.

    Accepts datetimes, plain dates (midnight) and ISO 8601 strings.

    Raises:
        ValidationError: For any other value.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            pass
    raise ValidationError(f"{where}: 'date' is not a valid timestamp: {value!r}")


def _same_file(a: Path, b: Path) -> bool:
    try:
        return a.samefile(b)
    except OSError:
        return False


class ArticleRepository:
    """Reads and writes documents inside one project's content directory.

    Every relative path handed in is confined to ``<root>/content``.

    Attributes:
        layout: Path conventions of the project.
    """

    def __init__(self, project_root: Path):
        self.layout = ProjectLayout(Path(project_root))

    @property
    def content_dir(self) -> Path:
        return self.layout.content_dir

    def resolve(self, relative_path: str) -> Path:
        """Absolute path of ``relative_path`` inside the content directory."""
        return confine_path(self.content_dir, relative_path)

    def read_text(self, relative_path: str) -> str:
        """Read a content file as text.

        Raises:
            NotFoundError: If the file does not exist.
            StorageError: If the file cannot be read.
        """
        path = self.resolve(relative_path)
        if not path.is_file():
            raise NotFoundError(f"File not found: {relative_path}")
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise StorageError(relative_path, f"could not read file: {exc}", exc) from exc

    def write_text(self, relative_path: str, content: str) -> Path:
        """Write a content file, creating intermediate directories.

        Returns:
            Absolute path written.

        Raises:
            StorageError: If the file cannot be written.
        """
        path = self.resolve(relative_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise StorageError(relative_path, f"could not write file: {exc}", exc) from exc
        return path

    def list_files(self) -> list[str]:
        """Relative paths of every file in the content directory."""
        if not self.content_dir.is_dir():
            raise NotFoundError(f"Content directory not found: {self.content_dir}")
        return list_content_files(self.content_dir)

    def read(self, relative_path: str) -> Article:
        """Read and parse an article.

        Args:
            relative_path: Path inside the content directory.

        Returns:
            The parsed Article.

        Raises:
            NotFoundError: If the file does not exist.
            FrontMatterError: If the document cannot be parsed.
            ValidationError: If required fields are missing.
        """
        text = self.read_text(relative_path)
        normalized = relative_posix(self.resolve(relative_path), self.content_dir.resolve())
        document = frontmatter.parse(text, normalized)
        return Article.from_document(document)

    def target_path(self, article: Article, original_relative_path: str = "") -> str:
        """Relative path an article will be saved to.

        Raises:
            EmptyTitleError: If the title slugifies to nothing.
        """
        new_slug = article.slug
        if not new_slug:
            raise EmptyTitleError("Article title cannot be empty or invalid")

        filename = f"{new_slug}{ARTICLE_SUFFIX}"
        if not original_relative_path:
            return f"{NEW_ARTICLE_DIR}/{filename}"

        original = PurePosixPath(original_relative_path.replace("\\", "/"))
        if new_slug == original.stem:
            return original.as_posix()
        return (original.parent / filename).as_posix()

    def save(self, article: Article, original_relative_path: str = "") -> SaveResult:
        """Write an article, renaming its file when the slug changed.

        Args:
            article: Article to save. ``relative_path`` is updated in place.
            original_relative_path: Where the article was read from, or empty
                for a new article.

        Returns:
            SaveResult with the final relative path.

        Raises:
            EmptyTitleError: If the title slugifies to nothing.
            PathTraversalError: If a path escapes the content directory.
            StorageError: If the file cannot be written.
        """
        final_path = self.target_path(article, original_relative_path)
        old_file = self.resolve(original_relative_path) if original_relative_path else None
        new_file = self.resolve(final_path)
        renamed = old_file is not None and old_file != new_file

        if renamed and _same_file(old_file, new_file):
            # Case-only rename on a case-insensitive filesystem: both names
            # point at one file, so move it instead of deleting it afterwards.
            try:
                old_file.rename(new_file)
            except OSError as exc:
                raise StorageError(original_relative_path, f"could not rename file: {exc}", exc) from exc
            old_file = None

        self.write_text(final_path, frontmatter.dump(article.frontmatter(), article.body))
        article.relative_path = final_path

        result = SaveResult(path=final_path, renamed=renamed)
        if old_file is not None and renamed:
            logger.info("Renaming article, deleting old file: %s", original_relative_path)
            try:
                old_file.unlink()
            except FileNotFoundError:
                pass
            except OSError as exc:
                logger.warning(
                    "Could not delete old article file %s after rename: %s",
                    original_relative_path,
                    exc,
                )
                result.stale_path = original_relative_path
        return result
