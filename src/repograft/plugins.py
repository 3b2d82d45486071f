"""Pluggy hookspecs for workspace discovery."""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from types import ModuleType
from typing import Any

import pluggy

logger = logging.getLogger(__name__)

hookspec = pluggy.HookspecMarker("repograft")
hookimpl = pluggy.HookimplMarker("repograft")


class RepograftSpec:
    """Hook specifications for repograft plugins."""

    @hookspec
    def repograft_get_plugin_info(self) -> dict[str, str] | None:
        """Return plugin identification info.

        Returns:
            Dict with 'name' (short identifier like 'lerna') and
            'description' (human-readable description), or None.
        """

    @hookspec
    def repograft_package_globs(self, root: Path) -> list[str] | None:
        """Return the package globs a workspace declares.

        Args:
            root: The workspace root directory.

        Returns:
            Globs such as ``["packages/*"]``, or None if this plugin does
            not recognize the workspace.
        """

    @hookspec(firstresult=True)
    def repograft_package_name(self, path: Path) -> str | None:
        """Read the package name declared in a package directory.

        Args:
            path: Directory of the package (the external repository).

        Returns:
            The package name, or None if this plugin finds no descriptor.
        """


def get_plugin_manager() -> pluggy.PluginManager:
    """Create and configure the plugin manager."""
    pm = pluggy.PluginManager("repograft")
    pm.add_hookspecs(RepograftSpec)
    return pm


def register_builtin_plugins(pm: pluggy.PluginManager) -> None:
    """Register the built-in workspace plugins."""
    from repograft.workspaces.lerna import LernaPlugin
    from repograft.workspaces.npm import NpmPlugin
    from repograft.workspaces.pnpm import PnpmPlugin

    pm.register(LernaPlugin())
    pm.register(NpmPlugin())
    pm.register(PnpmPlugin())


def _register(pm: pluggy.PluginManager, plugin: Any, name: str | None = None) -> bool:
    if isinstance(plugin, type):
        plugin = plugin()
    if plugin is None or pm.is_registered(plugin):
        return False
    pm.register(plugin, name=name)
    return True


def load_external_plugins(pm: pluggy.PluginManager) -> int:
    """Register plugins from entry points, then from the settings file.

    Returns the number of plugins added.
    """
    return load_plugins_from_entry_points(pm) + load_plugins_from_settings(pm)


def load_plugins_from_entry_points(pm: pluggy.PluginManager) -> int:
    """Register objects published under the ``repograft`` entry-point group.

    An entry point may name a plugin class or an instance. Entry points
    that fail to load are logged and skipped.
    """
    from importlib.metadata import entry_points

    loaded = 0
    for ep in entry_points(group="repograft"):
        try:
            loaded += _register(pm, ep.load(), name=ep.name)
        except Exception as e:
            logger.warning("Skipping plugin %s: %s", ep.name, e)
    return loaded


def load_plugins_from_settings(pm: pluggy.PluginManager) -> int:
    """Register the plugins listed under ``plugins:`` in ~/.repograft/config.yml.

    ```yaml
    plugins:
      - mypackage.workspace:CargoPlugin
      - ~/plugins/bazel.py:BazelPlugin
    ```
    """
    from repograft.settings import get_settings

    loaded = 0
    for entry in get_settings().get("plugins") or []:
        try:
            loaded += _register(pm, load_plugin_from_spec(entry))
        except Exception as e:
            logger.warning("Skipping plugin %s: %s", entry, e)
    return loaded


def _module_from_file(path: Path) -> ModuleType:
    import importlib.util

    if not path.is_file():
        raise FileNotFoundError(f"Plugin file not found: {path}")
    module_spec = importlib.util.spec_from_file_location(path.stem, path)
    if module_spec is None or module_spec.loader is None:
        raise ImportError(f"Cannot load module from {path}")
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


def load_plugin_from_spec(spec: str) -> Any:
    """Instantiate the plugin class named by ``module:Class`` or ``file.py:Class``.

    Raises:
        ValueError: If ``spec`` has no class part.
    """
    target, sep, class_name = spec.rpartition(":")
    if not sep or not target or not class_name:
        raise ValueError(f"Invalid plugin spec '{spec}': expected 'module:Class'")

    if target.endswith(".py"):
        module = _module_from_file(Path(target).expanduser().resolve())
    else:
        module = importlib.import_module(target)
    return getattr(module, class_name)()


_configured_plugin_manager: pluggy.PluginManager | None = None


def get_configured_plugin_manager() -> pluggy.PluginManager:
    """Get a plugin manager with all plugins registered.

    Loads plugins from:
    1. Built-in plugins (lerna, npm, pnpm)
    2. Pip-installed plugins (via entry points)
    3. Plugins listed in ~/.repograft/config.yml

    The manager is cached, so repeated calls return the same instance.
    """
    global _configured_plugin_manager
    if _configured_plugin_manager is None:
        _configured_plugin_manager = get_plugin_manager()
        register_builtin_plugins(_configured_plugin_manager)
        load_external_plugins(_configured_plugin_manager)
    return _configured_plugin_manager


def reset_plugin_manager() -> None:
    """Reset the cached plugin manager.

    Call this to force reloading of plugins.
    """
    global _configured_plugin_manager
    _configured_plugin_manager = None
