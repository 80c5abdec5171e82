"""Centralized path management for tillrules.

Campaign files live under ``<root>/config/campaigns``. The root is taken from
the TILLRULES_HOME environment variable, falling back to the current working
directory of the host process.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _get_project_root() -> Path:
    """Determine the project root directory."""
    env_root = os.environ.get("TILLRULES_HOME", "").strip()
    if env_root:
        return Path(env_root).expanduser()
    return Path.cwd()


@dataclass
class ProjectPaths:
    """Container for all project-related paths."""

    root: Path = field(default_factory=_get_project_root)

    def __post_init__(self) -> None:
        self.root = self.root.resolve()

    @property
    def config(self) -> Path:
        """Configuration directory (config/)."""
        return self.root / "config"

    @property
    def campaigns(self) -> Path:
        """Directory of campaign TOML files (config/campaigns/)."""
        return self.config / "campaigns"

    def campaign_file(self, campaign_id: str) -> Path:
        return self.campaigns / f"{campaign_id}.toml"


_paths: ProjectPaths | None = None


def get_paths() -> ProjectPaths:
    """Get the singleton ProjectPaths instance.

    Returns:
        The global ProjectPaths instance.
    """
    global _paths
    if _paths is None:
        _paths = ProjectPaths()
    return _paths


def reset_paths() -> None:
    """Forget the singleton so the next get_paths() re-reads TILLRULES_HOME."""
    global _paths
    _paths = None
