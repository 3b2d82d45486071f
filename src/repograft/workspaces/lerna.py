"""lerna.json workspace plugin for repograft."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from repograft.plugins import hookimpl

logger = logging.getLogger(__name__)

LERNA_CONFIG = "lerna.json"


class LernaPlugin:
    """Reads package globs from lerna.json."""

    @hookimpl
    def repograft_get_plugin_info(self) -> dict[str, str]:
        """Return plugin identification info."""
        return {
            "name": "lerna",
            "description": "Lerna monorepos (lerna.json packages)",
        }

    @hookimpl
    def repograft_package_globs(self, root: Path) -> list[str] | None:
        config_path = root / LERNA_CONFIG
        if not config_path.is_file():
            return None

        try:
            config = json.loads(config_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Could not read %s: %s", config_path, e)
            return None

        packages = config.get("packages") if isinstance(config, dict) else None
        if not isinstance(packages, list):
            return None
        return [str(p) for p in packages]
