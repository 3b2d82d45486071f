"""Tests for repograft.workspace and the built-in workspace plugins."""

import json

import pytest

from repograft.plugins import get_plugin_manager, register_builtin_plugins
from repograft.workspace import (
    DEFAULT_PACKAGE_GLOBS,
    DEFAULT_TARGET_BASE,
    Workspace,
    read_package_name,
)


@pytest.fixture
def pm():
    manager = get_plugin_manager()
    register_builtin_plugins(manager)
    return manager


class TestDiscover:
    """Tests for Workspace.discover."""

    def test_defaults_without_config(self, tmp_path, pm):
        """Should fall back to packages/* when no plugin recognizes the root."""
        workspace = Workspace.discover(tmp_path, pm)
        assert workspace.package_globs == DEFAULT_PACKAGE_GLOBS
        assert workspace.root == tmp_path.resolve()

    def test_lerna_json(self, tmp_path, pm):
        """Should read packages from lerna.json."""
        (tmp_path / "lerna.json").write_text(json.dumps({"packages": ["modules/*", "tools/cli"]}))
        workspace = Workspace.discover(tmp_path, pm)
        assert workspace.package_globs == ["modules/*", "tools/cli"]

    def test_npm_workspaces_list(self, tmp_path, pm):
        """Should read the workspaces list from package.json."""
        (tmp_path / "package.json").write_text(json.dumps({"workspaces": ["apps/*"]}))
        assert Workspace.discover(tmp_path, pm).package_globs == ["apps/*"]

    def test_yarn_workspaces_object(self, tmp_path, pm):
        """Should read workspaces.packages from package.json."""
        (tmp_path / "package.json").write_text(
            json.dumps({"workspaces": {"packages": ["libs/*"], "nohoist": ["**/x"]}})
        )
        assert Workspace.discover(tmp_path, pm).package_globs == ["libs/*"]

    def test_pnpm_workspace(self, tmp_path, pm):
        """Should read pnpm-workspace.yaml and drop negated globs."""
        (tmp_path / "pnpm-workspace.yaml").write_text(
            "packages:\n  - 'pkgs/*'\n  - '!pkgs/ignored'\n"
        )
        assert Workspace.discover(tmp_path, pm).package_globs == ["pkgs/*"]

    def test_merges_without_duplicates(self, tmp_path, pm):
        """Should merge globs from several plugins in registration order."""
        (tmp_path / "lerna.json").write_text(json.dumps({"packages": ["packages/*"]}))
        (tmp_path / "package.json").write_text(
            json.dumps({"workspaces": ["packages/*", "apps/*"]})
        )
        assert Workspace.discover(tmp_path, pm).package_globs == ["packages/*", "apps/*"]

    def test_invalid_json_is_ignored(self, tmp_path, pm):
        """Should treat unreadable config as absent."""
        (tmp_path / "lerna.json").write_text("{not json")
        assert Workspace.discover(tmp_path, pm).package_globs == DEFAULT_PACKAGE_GLOBS

    def test_invalid_yaml_is_ignored(self, tmp_path, pm):
        """Should treat unreadable pnpm config as absent."""
        (tmp_path / "pnpm-workspace.yaml").write_text("packages: [unclosed\n")
        assert Workspace.discover(tmp_path, pm).package_globs == DEFAULT_PACKAGE_GLOBS


class TestPackageDirectories:
    """Tests for package directory and target base resolution."""

    def test_only_wildcard_globs(self, tmp_path):
        """Should only turn globs ending in * into package directories."""
        workspace = Workspace(root=tmp_path, package_globs=["packages/*", "tools/cli", "apps/**"])
        assert workspace.package_directories == ["packages", "apps"]

    def test_target_base_defaults_to_first_directory(self, tmp_path):
        """Should use the first package directory when no destination is given."""
        workspace = Workspace(root=tmp_path, package_globs=["modules/*", "packages/*"])
        assert workspace.target_base() == "modules"

    def test_target_base_without_directories(self, tmp_path):
        """Should fall back to the conventional directory."""
        workspace = Workspace(root=tmp_path, package_globs=["tools/cli"])
        assert workspace.target_base() == DEFAULT_TARGET_BASE

    def test_explicit_destination(self, tmp_path):
        """Should normalize an explicit destination."""
        workspace = Workspace(root=tmp_path, package_globs=["packages/*"])
        assert workspace.target_base("packages/") == "packages"
        assert workspace.accepts_target_base("./packages")
        assert not workspace.accepts_target_base("elsewhere")


class TestPackageName:
    """Tests for read_package_name."""

    def test_reads_package_json(self, tmp_path, pm):
        """Should return the name from package.json."""
        (tmp_path / "package.json").write_text(json.dumps({"name": "@scope/foo"}))
        assert read_package_name(tmp_path, pm) == "@scope/foo"

    def test_missing_name(self, tmp_path, pm):
        """Should return None without a name."""
        (tmp_path / "package.json").write_text(json.dumps({"private": True}))
        assert read_package_name(tmp_path, pm) is None

    def test_missing_descriptor(self, tmp_path, pm):
        """Should return None without package.json."""
        assert read_package_name(tmp_path, pm) is None
