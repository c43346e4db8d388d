"""Front matter parsing for Folio documents.

A document is a YAML metadata block between two ``---`` lines followed by a
markdown body::

    ---
    title: Hello
    date: 2024-01-15 09:30:00
    ---

    # Hi

This module performs no I/O: callers hand in raw text and get a Document
back, or hand in metadata and a body and get the text to write.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any, Union

import yaml

from .errors import InvalidMetadata, MalformedFrontMatter

DELIMITER = "---"
DELIMITER_RE = re.compile(r"^---[ \t]*\r?$", re.MULTILINE)

# Values a front matter mapping may hold. Anything else YAML can produce
# (binary blobs, sets, non-string keys) is rejected.
MetaValue = Union[
    str, int, float, bool, None, date, datetime, list["MetaValue"], dict[str, "MetaValue"]
]

_SCALAR_TYPES = (str, int, float, bool, date, datetime, type(None))


@dataclass
class Document:
    """A parsed content file.

    Attributes:
        frontmatter: Metadata mapping in source order.
        body: Markdown body with surrounding whitespace removed.
        relative_path: Path of the document inside the content directory.
    """

    frontmatter: dict[str, MetaValue] = field(default_factory=dict)
    body: str = ""
    relative_path: str = ""


def split(text: str, path: Path | str | None = None) -> tuple[str, str]:
    """Split raw text into the metadata block and the body.

    Only the first two delimiter lines count; later ``---`` lines belong to
    the body.

    Args:
        text: Raw file content.
        path: Source path used in error messages.

    Returns:
        Tuple of (metadata text, stripped body).

    Raises:
        MalformedFrontMatter: If two delimiter lines are not found, or text
            other than whitespace precedes the first one.
    """
    segments = DELIMITER_RE.split(text.lstrip("\ufeff"), maxsplit=2)
    if len(segments) < 3:
        raise MalformedFrontMatter("expected front matter between two '---' lines", path)
    prefix, meta, body = segments
    if prefix.strip():
        raise MalformedFrontMatter("content found before the opening '---' line", path)
    return meta, body.strip()


def parse(text: str, path: Path | str | None = None) -> Document:
    """Parse a document into front matter and body.

    Args:
        text: Raw file content.
        path: Source path, recorded on the Document and used in errors.

    Returns:
        Parsed Document.

    Raises:
        MalformedFrontMatter: If the delimiters are missing.
        InvalidMetadata: If the metadata is not a valid mapping.
    """
    meta, body = split(text, path)
    try:
        data = yaml.safe_load(meta)
    except yaml.YAMLError as exc:
        raise InvalidMetadata(f"could not parse front matter: {exc}", path) from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise InvalidMetadata(
            f"front matter must be a mapping, got {type(data).__name__}", path
        )
    return Document(
        frontmatter=_check_mapping(data, path),
        body=body,
        relative_path=str(path) if path is not None else "",
    )


def dump(frontmatter: dict[str, Any], body: str) -> str:
    """Serialize front matter and body into the on-disk document format.

    Args:
        frontmatter: Metadata mapping; key order is preserved.
        body: Markdown body.

    Returns:
        Text of the form ``---\\n<yaml>---\\n\\n<body>\\n``.
    """
    meta = ""
    if frontmatter:
        meta = yaml.safe_dump(
            frontmatter, sort_keys=False, allow_unicode=True, default_flow_style=False
        )
    text = f"{DELIMITER}\n{meta}{DELIMITER}\n\n{body.strip()}"
    return text if text.endswith("\n") else text + "\n"


def _check_mapping(data: dict, path: Path | str | None) -> dict[str, MetaValue]:
    checked: dict[str, MetaValue] = {}
    for key, value in data.items():
        if not isinstance(key, str):
            raise InvalidMetadata(f"front matter key {key!r} is not a string", path)
        checked[key] = _check_value(value, key, path)
    return checked


def _check_value(value: Any, key: str, path: Path | str | None) -> MetaValue:
    if isinstance(value, _SCALAR_TYPES):
        return value
    if isinstance(value, list):
        return [_check_value(item, key, path) for item in value]
    if isinstance(value, dict):
        return _check_mapping(value, path)
    raise InvalidMetadata(
        f"unsupported value for '{key}': {type(value).__name__}", path
    )
