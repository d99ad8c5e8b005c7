"""
kitchenledger.storage.project
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Project layout resolution — maps a project name to its paths:

  ~/.kitchenledger/<project>/kitchenledger.db   — SQLite database
  ~/.kitchenledger/<project>/reports/           — exported VAT reports

One project per business (or per bookkeeping year, if you prefer to
start fresh every January).

Usage::

    from kitchenledger.storage.project import resolve_project

    layout = resolve_project()                  # "default" or KITCHENLEDGER_PROJECT
    layout = resolve_project("alinas-kitchen")  # explicit project name
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

KITCHENLEDGER_HOME = Path.home() / ".kitchenledger"
DEFAULT_PROJECT    = "default"
DB_FILENAME        = "kitchenledger.db"

# Project names: lowercase alphanumeric + hyphens + underscores, 1–64 chars
_NAME_RE = re.compile(r"^[a-z0-9][a-z0-9_-]{0,63}$")


@dataclass(frozen=True)
class ProjectLayout:
    """All paths belonging to a single project."""
    name:        str
    root:        Path   # ~/.kitchenledger/<name>/
    db_path:     Path   # root/kitchenledger.db
    reports_dir: Path   # root/reports/

    def create_dirs(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self.reports_dir.mkdir(parents=True, exist_ok=True)

    @property
    def is_default(self) -> bool:
        return self.name == DEFAULT_PROJECT

    @property
    def exists(self) -> bool:
        """True if the db file has been created."""
        return self.db_path.exists()


def _make_layout(name: str, home: Path | None = None) -> ProjectLayout:
    root = (home or KITCHENLEDGER_HOME) / name
    return ProjectLayout(
        name=name,
        root=root,
        db_path=root / DB_FILENAME,
        reports_dir=root / "reports",
    )


def resolve_project(
    project: str | None = None,
    *,
    env_var: bool = True,
    home: Path | None = None,
) -> ProjectLayout:
    """
    Resolve a project name to its layout.

    Priority order:
      1. Explicit ``project`` argument
      2. ``KITCHENLEDGER_PROJECT`` environment variable (when env_var=True)
      3. ``"default"``

    Names are stripped and lowercased first, as ``Config`` does.

    Raises:
        ValueError: the resolved name is not a valid project name.
    """
    name = normalise_project_name(
        project
        or (os.environ.get("KITCHENLEDGER_PROJECT") if env_var else None)
        or DEFAULT_PROJECT
    )
    error = validate_project_name(name)
    if error:
        raise ValueError(f"Invalid project name {name!r}: {error}")
    return _make_layout(name, home)


def normalise_project_name(name: str) -> str:
    return name.strip().lower() or DEFAULT_PROJECT


def validate_project_name(name: str) -> str | None:
    """
    Validate a proposed project name.
    Returns an error message string on failure, None on success.
    """
    if not name or not name.strip():
        return "Name cannot be empty."
    if not _NAME_RE.match(name):
        return (
            "Use only lowercase letters, digits, hyphens and underscores. "
            "Must start with a letter or digit (max 64 characters)."
        )
    return None


def list_projects(home: Path | None = None) -> list[ProjectLayout]:
    """
    Scan the kitchenledger home for project subdirectories.
    Returns layouts sorted: default first, then alphabetically.
    """
    base = home or KITCHENLEDGER_HOME
    if not base.exists():
        return []

    layouts = [
        _make_layout(subdir.name, base)
        for subdir in sorted(base.iterdir())
        if subdir.is_dir()
    ]
    layouts.sort(key=lambda l: (0 if l.is_default else 1, l.name))
    return layouts


__all__ = [
    "KITCHENLEDGER_HOME",
    "DEFAULT_PROJECT",
    "DB_FILENAME",
    "ProjectLayout",
    "resolve_project",
    "normalise_project_name",
    "validate_project_name",
    "list_projects",
]
