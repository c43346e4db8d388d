"""Error types for Folio.

Every failure surfaced by the core is a FolioError subclass carrying enough
context (file path, underlying cause) for a caller to display or log it.

Hierarchy:
- NotFoundError: unknown project or missing file.
- FrontMatterError: document could not be split or its metadata parsed.
- ValidationError: caller-supplied data is unusable (empty title, bad path).
- StorageError: operating system level I/O failure.
- BuildError: first failure encountered during a site build.
"""

from __future__ import annotations

from pathlib import Path


class FolioError(Exception):
    """Base class for all Folio errors."""


class NotFoundError(FolioError):
    """A project or a file does not exist."""


class FrontMatterError(FolioError):
    """A document is structurally or semantically unparsable.

    Attributes:
        path: Path of the offending file, when known.
    """

    def __init__(self, message: str, path: Path | str | None = None):
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}" if path else message)


class MalformedFrontMatter(FrontMatterError):
    """The document lacks the two delimiter lines around its metadata."""


class InvalidMetadata(FrontMatterError):
    """The metadata block is not a valid mapping of supported values."""


class ValidationError(FolioError):
    """Caller-supplied data failed validation."""


class EmptyTitleError(ValidationError):
    """A title slugifies to an empty string."""


class PathTraversalError(ValidationError):
    """A relative path escapes the directory it must stay within."""


class StorageError(FolioError):
    """Filesystem operation failed.

    Attributes:
        path: Path the operation was acting on.
        original_error: The underlying OSError.
    """

    def __init__(self, path: Path | str, message: str, original_error: Exception | None = None):
        self.path = path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{path}: {message}")


class BuildError(FolioError):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class TemplateInvalid(BuildError):
    """The theme page template is missing or fails to parse."""
