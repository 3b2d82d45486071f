"""Global settings management for repograft.

This module handles the global config file at ~/.repograft/config.yml.
For per-repository configuration, see config.py.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

# Global config file path
CONFIG_PATH = Path.home() / ".repograft" / "config.yml"


def get_settings() -> dict[str, Any]:
    """Get the global repograft settings.

    Config file format (~/.repograft/config.yml):
    ```yaml
    import:
      dest: packages
      flatten: false
      preserve_commit: true
    plugins:
      - mypackage.workspace:CargoPlugin
    ```

    Returns:
        The settings dict, or empty dict if the file is missing or unreadable.
    """
    if not CONFIG_PATH.exists():
        return {}

    try:
        content = CONFIG_PATH.read_text()
        data = yaml.safe_load(content) or {}
    except (yaml.YAMLError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def get_import_defaults() -> dict[str, Any]:
    """Return the ``import:`` section of the global settings."""
    section = get_settings().get("import") or {}
    return section if isinstance(section, dict) else {}


def save_settings(settings: dict[str, Any]) -> None:
    """Save the global repograft settings.

    Args:
        settings: The settings dict to save.
    """
    CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    CONFIG_PATH.write_text(yaml.dump(settings, default_flow_style=False, sort_keys=False))
