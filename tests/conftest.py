"""Shared fixtures: throwaway host and external git repositories."""

import json
from pathlib import Path

import pytest
from git import Actor, Repo

from repograft import plugins, settings

HOST_AUTHOR = Actor("Host User", "host@example.com")
EXTERNAL_AUTHOR = Actor("Alice Original", "alice@example.com")

# 2024-01-01T00:00:00Z
BASE_TIMESTAMP = 1704067200


def configure_user(repo: Repo, actor: Actor) -> None:
    with repo.config_writer() as writer:
        writer.set_value("user", "name", actor.name)
        writer.set_value("user", "email", actor.email)
        writer.set_value("commit", "gpgsign", "false")


def commit_files(repo, files, message, author=None, when=0):
    """Write (or delete, for None) files and commit them.

    ``when`` is an offset in hours from BASE_TIMESTAMP so history has a
    stable order.
    """
    author = author or HOST_AUTHOR
    root = Path(repo.working_tree_dir)
    for rel_path, content in files.items():
        if content is None:
            repo.index.remove([rel_path], working_tree=True)
            continue
        full_path = root / rel_path
        full_path.parent.mkdir(parents=True, exist_ok=True)
        full_path.write_text(content)
        repo.index.add([rel_path])

    date = f"{BASE_TIMESTAMP + when * 3600} +0000"
    commit = repo.index.commit(
        message,
        author=author,
        committer=author,
        author_date=date,
        commit_date=date,
    )
    # Files written in the same second as the index are otherwise racily dirty
    repo.git.update_index("-q", "--refresh")
    return commit


def tracked_files(repo: Repo) -> set[str]:
    return set(repo.git.ls_files().splitlines())


def changed_paths(repo: Repo, sha: str) -> list[str]:
    return repo.git.diff_tree("--no-commit-id", "--name-only", "-r", "--root", sha).splitlines()


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Point the global settings file somewhere empty and reset plugins."""
    monkeypatch.setattr(settings, "CONFIG_PATH", tmp_path / "home" / ".repograft" / "config.yml")
    plugins.reset_plugin_manager()
    yield
    plugins.reset_plugin_manager()


@pytest.fixture
def host_repo(tmp_path):
    """A lerna-style workspace repo with one commit."""
    root = tmp_path / "host"
    root.mkdir()
    repo = Repo.init(root)
    configure_user(repo, HOST_AUTHOR)
    commit_files(
        repo,
        {
            "lerna.json": json.dumps({"packages": ["packages/*"]}),
            "README.md": "# host\n",
        },
        "Initial commit",
    )
    return repo


@pytest.fixture
def host_root(host_repo):
    return Path(host_repo.working_tree_dir)


@pytest.fixture
def make_external(tmp_path):
    """Factory for external repositories with a package.json."""

    def _make(name="foo", package_name=None):
        root = tmp_path / name
        root.mkdir()
        repo = Repo.init(root)
        configure_user(repo, EXTERNAL_AUTHOR)
        commit_files(
            repo,
            {"package.json": json.dumps({"name": package_name or name})},
            "Add package.json",
            author=EXTERNAL_AUTHOR,
            when=1,
        )
        return repo

    return _make


@pytest.fixture
def linear_external(make_external):
    """External repo ``foo`` with three linear commits."""
    repo = make_external("foo")
    commit_files(
        repo,
        {"src/index.js": "module.exports = 1;\n"},
        "Add index",
        author=EXTERNAL_AUTHOR,
        when=2,
    )
    commit_files(
        repo,
        {"src/index.js": "module.exports = 2;\n", "README.md": "# foo\n"},
        "Bump export and add readme",
        author=EXTERNAL_AUTHOR,
        when=3,
    )
    return repo
