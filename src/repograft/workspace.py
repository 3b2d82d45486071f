"""Workspace layout: where packages live in the host repository."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import pluggy

from repograft.plugins import get_configured_plugin_manager

DEFAULT_PACKAGE_GLOBS = ["packages/*"]
DEFAULT_TARGET_BASE = "packages"


def _normalize(path: str) -> str:
    return os.path.normpath(path.replace("\\", "/")).replace(os.sep, "/")


@dataclass
class Workspace:
    """A workspace root and the package globs it declares."""

    root: Path
    package_globs: list[str] = field(default_factory=lambda: list(DEFAULT_PACKAGE_GLOBS))

    @classmethod
    def discover(cls, root: Path, pm: pluggy.PluginManager | None = None) -> Workspace:
        """Collect package globs for ``root`` from all workspace plugins.

        Globs are merged in plugin registration order with duplicates
        dropped. A workspace no plugin recognizes gets DEFAULT_PACKAGE_GLOBS.
        """
        pm = pm or get_configured_plugin_manager()
        root = root.resolve()

        globs: list[str] = []
        # pluggy returns results last-registered first
        for result in reversed(pm.hook.repograft_package_globs(root=root)):
            for glob in result or []:
                if glob not in globs:
                    globs.append(glob)

        return cls(root=root, package_globs=globs or list(DEFAULT_PACKAGE_GLOBS))

    @property
    def package_directories(self) -> list[str]:
        """Parent directories of the globs ending in ``*`` (``packages/*`` -> ``packages``)."""
        dirs = []
        for glob in self.package_globs:
            if glob.endswith("*"):
                dirs.append(_normalize(os.path.dirname(glob) or "."))
        return dirs

    def target_base(self, dest: str | None = None) -> str:
        """The directory imports go into: ``dest`` or the first package directory."""
        if dest:
            return _normalize(dest)
        dirs = self.package_directories
        return dirs[0] if dirs else DEFAULT_TARGET_BASE

    def accepts_target_base(self, target_base: str) -> bool:
        return _normalize(target_base) in self.package_directories


def read_package_name(path: Path, pm: pluggy.PluginManager | None = None) -> str | None:
    """Ask the workspace plugins for the package name declared at ``path``."""
    pm = pm or get_configured_plugin_manager()
    return pm.hook.repograft_package_name(path=path)
