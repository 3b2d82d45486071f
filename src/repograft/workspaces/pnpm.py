"""pnpm-workspace.yaml plugin for repograft."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from repograft.plugins import hookimpl

logger = logging.getLogger(__name__)

PNPM_WORKSPACE = "pnpm-workspace.yaml"


class PnpmPlugin:
    """Reads package globs from pnpm-workspace.yaml."""

    @hookimpl
    def repograft_get_plugin_info(self) -> dict[str, str]:
        """Return plugin identification info."""
        return {
            "name": "pnpm",
            "description": "pnpm workspaces (pnpm-workspace.yaml)",
        }

    @hookimpl
    def repograft_package_globs(self, root: Path) -> list[str] | None:
        path = root / PNPM_WORKSPACE
        if not path.is_file():
            return None

        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as e:
            logger.warning("Could not read %s: %s", path, e)
            return None

        packages = data.get("packages") if isinstance(data, dict) else None
        if not isinstance(packages, list):
            return None
        # Negated globs exclude directories, they never name a package location
        return [str(p) for p in packages if not str(p).startswith("!")]
