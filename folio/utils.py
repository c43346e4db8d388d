"""Utility functions for Folio.

String and path helpers shared by the builder, the article repository and
the registry.

Key functions:
    slugify: Convert a title to a filesystem-safe slug.
    ensure_clean_dir: Ensure a directory exists and is empty.
    confine_path: Join a caller-supplied relative path below a base directory.
    is_markdown: Check if a path is a Markdown source file.
    copy_file: Copy a single file byte for byte.
    copy_tree: Recursively copy a directory into another.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path, PurePosixPath

from .errors import PathTraversalError

SLUG_INVALID_RE = re.compile(r"[^a-z0-9-]+")


def slugify(title: str) -> str:
    """Convert a title to a slug.

    Lower-cases the title, collapses every run of characters outside
    ``[a-z0-9-]`` to a single hyphen and trims hyphens from both ends.
    An empty result means the title cannot name a file; callers must
    reject it.

    Args:
        title: Human readable title.

    Returns:
        The slug, possibly empty.

    Examples:
        >>> slugify("My Post!")
        'my-post'

        >>> slugify("   ")
        ''
    """
    slug = SLUG_INVALID_RE.sub("-", title.lower())
    return slug.strip("-")


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    Unlike a best-effort wipe, errors removing the old tree propagate so a
    build never runs on top of stale output.

    Args:
        path: Directory path to clean or create.
    """
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def confine_path(base: Path, relative_path: str) -> Path:
    """Join ``relative_path`` below ``base`` without escaping it.

    Args:
        base: Directory every result must stay within.
        relative_path: Caller-supplied path, using ``/`` or the OS separator.

    Returns:
        Absolute path inside ``base``.

    Raises:
        PathTraversalError: If the path is empty, absolute, or resolves
            outside ``base`` (through ``..`` segments or symlinks).
    """
    cleaned = (relative_path or "").replace("\\", "/").strip()
    if not cleaned or cleaned in (".", "/"):
        raise PathTraversalError("A relative file path is required")
    pure = PurePosixPath(cleaned)
    if pure.is_absolute() or ".." in pure.parts:
        raise PathTraversalError(f"Path escapes the content directory: {relative_path}")

    root = base.resolve()
    target = (root / Path(*pure.parts)).resolve()
    if target != root and root not in target.parents:
        raise PathTraversalError(f"Path escapes the content directory: {relative_path}")
    if target == root:
        raise PathTraversalError("A relative file path is required")
    return target


def relative_posix(path: Path, base: Path) -> str:
    """Return ``path`` relative to ``base`` with forward slashes."""
    return path.relative_to(base).as_posix()


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown source file.

    The match is case-sensitive: ``post.MD`` is copied verbatim, not rendered.

    Args:
        path: Path to check.

    Returns:
        True if the file name ends with ``.md``.
    """
    return path.name.endswith(".md")


def copy_file(source: Path, dest: Path) -> None:
    """Copy a file byte for byte, creating the destination directory."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, dest)


def copy_tree(source: Path, dest: Path) -> list[Path]:
    """Recursively copy the contents of ``source`` into ``dest``.

    Existing files in ``dest`` are overwritten.

    Args:
        source: Directory to copy from.
        dest: Directory to copy into.

    Returns:
        Destination paths of the copied files, in sorted order.
    """
    copied: list[Path] = []
    for path in sorted(source.rglob("*")):
        target = dest / path.relative_to(source)
        if path.is_dir():
            target.mkdir(parents=True, exist_ok=True)
            continue
        copy_file(path, target)
        copied.append(target)
    return copied
