"""Project registry for Folio.

Keeps the list of known projects in ``projects.json`` inside the settings
directory::

    {"projects": [{"name": "blog", "path": "/home/me/sites/blog"}]}

The registry only maps names to root paths. Builds and article operations
work on the resolved path and never modify the registry.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import asdict, dataclass
from pathlib import Path

from .config import settings_dir
from .errors import NotFoundError, StorageError, ValidationError
from .layout import SCAFFOLD_DIRS

logger = logging.getLogger(__name__)

REGISTRY_FILE = "projects.json"

# Starter theme and sample content copied into new projects
_SCAFFOLD_DIR = Path(__file__).parent / "scaffold"


@dataclass(frozen=True)
class Project:
    """A managed website project.

    Attributes:
        name: Unique, immutable project name.
        path: Absolute project root.
    """

    name: str
    path: Path

    def to_dict(self) -> dict[str, str]:
        data = asdict(self)
        data["path"] = str(self.path)
        return data


class ProjectRegistry:
    """Loads, queries and saves the project list.

    Attributes:
        registry_path: Location of projects.json.
    """

    def __init__(self, config_dir: Path | None = None):
        self.registry_path = (config_dir or settings_dir()) / REGISTRY_FILE
        self._projects: list[Project] = self._load()

    def _load(self) -> list[Project]:
        if not self.registry_path.exists():
            return []
        try:
            payload = json.loads(self.registry_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise StorageError(
                self.registry_path, f"failed to read project registry: {exc}", exc
            ) from exc
        entries = payload.get("projects") if isinstance(payload, dict) else None
        projects = []
        for entry in entries or []:
            if isinstance(entry, dict) and entry.get("name") and entry.get("path"):
                projects.append(Project(name=str(entry["name"]), path=Path(entry["path"])))
        return projects

    def save(self) -> None:
        """Write the project list back to projects.json."""
        payload = {"projects": [p.to_dict() for p in self._projects]}
        try:
            self.registry_path.parent.mkdir(parents=True, exist_ok=True)
            self.registry_path.write_text(
                json.dumps(payload, indent=2) + "\n", encoding="utf-8"
            )
        except OSError as exc:
            raise StorageError(
                self.registry_path, f"failed to write project registry: {exc}", exc
            ) from exc

    def projects(self) -> list[Project]:
        return list(self._projects)

    def resolve(self, name: str) -> Project:
        """Find a project by name.

        Raises:
            NotFoundError: If no project has that name.
        """
        for project in self._projects:
            if project.name == name:
                return project
        raise NotFoundError(f"Project '{name}' not found")

    def add(self, name: str, parent: Path | None = None) -> Project:
        """Register a new project and create its directory structure.

        The project lives at ``<parent>/<name>``, with ``parent`` defaulting
        to the current directory. Existing files are left in place.

        Raises:
            ValidationError: If the name is empty, contains a path
                separator, or is already registered.
        """
        name = (name or "").strip()
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise ValidationError(f"Invalid project name: {name!r}")
        if any(p.name == name for p in self._projects):
            raise ValidationError(f"Project with name '{name}' already exists")

        root = (Path(parent) if parent else Path.cwd()).expanduser().resolve() / name
        logger.info("Creating new project '%s' at: %s", name, root)
        try:
            _scaffold(root)
        except OSError as exc:
            raise StorageError(root, f"failed to create project: {exc}", exc) from exc

        project = Project(name=name, path=root)
        self._projects.append(project)
        self.save()
        return project

    def remove(self, name: str) -> Project:
        """Unregister a project without touching its files."""
        project = self.resolve(name)
        self._projects.remove(project)
        self.save()
        return project


def _scaffold(root: Path) -> None:
    """Create the directory structure and starter files for a project.

    Args:
        root: Root directory for the new project.
    """
    for rel in SCAFFOLD_DIRS:
        (root / rel).mkdir(parents=True, exist_ok=True)

    for src_path in _SCAFFOLD_DIR.rglob("*"):
        if src_path.is_dir():
            continue
        dest_path = root / src_path.relative_to(_SCAFFOLD_DIR)
        if dest_path.exists():
            continue
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dest_path)
