"""package.json workspace plugin for repograft.

Provides both the ``workspaces`` globs of a host workspace and the package
name of an imported repository.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from repograft.plugins import hookimpl

logger = logging.getLogger(__name__)

PACKAGE_JSON = "package.json"


def _load_package_json(directory: Path) -> dict[str, Any] | None:
    path = directory / PACKAGE_JSON
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Could not read %s: %s", path, e)
        return None
    return data if isinstance(data, dict) else None


class NpmPlugin:
    """npm / yarn workspaces declared in package.json."""

    @hookimpl
    def repograft_get_plugin_info(self) -> dict[str, str]:
        """Return plugin identification info."""
        return {
            "name": "npm",
            "description": "npm/yarn workspaces and package.json names",
        }

    @hookimpl
    def repograft_package_globs(self, root: Path) -> list[str] | None:
        data = _load_package_json(root)
        if data is None:
            return None

        workspaces = data.get("workspaces")
        # yarn also accepts {"packages": [...], "nohoist": [...]}
        if isinstance(workspaces, dict):
            workspaces = workspaces.get("packages")
        if not isinstance(workspaces, list):
            return None
        return [str(w) for w in workspaces]

    @hookimpl
    def repograft_package_name(self, path: Path) -> str | None:
        data = _load_package_json(path)
        if data is None:
            return None
        name = data.get("name")
        return name if isinstance(name, str) and name else None
