"""Per-repository configuration for repograft using git config."""

from __future__ import annotations

from configparser import NoOptionError, NoSectionError
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from repograft.core import ImportOptions

SECTION = "repograft"


@dataclass
class ProjectConfig:
    """Import defaults stored in the host repository's git config."""

    dest: str | None = None
    flatten: bool | None = None
    preserve_commit: bool | None = None


def _as_bool(value: Any) -> bool | None:
    if value is None or isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "yes", "on", "1"):
        return True
    if text in ("false", "no", "off", "0"):
        return False
    return None


def load_config(repo_dir: Path) -> ProjectConfig:
    """Load import defaults from git config.

    Args:
        repo_dir: A directory inside the host git repository.

    Returns:
        ProjectConfig with saved settings, or defaults if no config exists.
    """
    from git import Repo
    from git.exc import InvalidGitRepositoryError
    from git.exc import NoSuchPathError

    if not repo_dir.exists():
        return ProjectConfig()

    try:
        repo = Repo(repo_dir, search_parent_directories=True)
    except (InvalidGitRepositoryError, NoSuchPathError):
        return ProjectConfig()

    reader = repo.config_reader()

    def read(option: str) -> Any:
        try:
            return reader.get_value(SECTION, option)
        except (NoOptionError, NoSectionError):
            return None

    dest = read("dest")
    return ProjectConfig(
        dest=str(dest) if dest is not None else None,
        flatten=_as_bool(read("flatten")),
        preserve_commit=_as_bool(read("preserveCommit")),
    )


def save_config(repo_dir: Path, config: ProjectConfig) -> None:
    """Save import defaults to the repository's git config.

    Only values that are set are written.

    Args:
        repo_dir: A directory inside the host git repository.
        config: The configuration to save.
    """
    from git import Repo

    repo = Repo(repo_dir, search_parent_directories=True)
    with repo.config_writer() as writer:
        if config.dest is not None:
            writer.set_value(SECTION, "dest", config.dest)
        if config.flatten is not None:
            writer.set_value(SECTION, "flatten", "true" if config.flatten else "false")
        if config.preserve_commit is not None:
            writer.set_value(
                SECTION, "preserveCommit", "true" if config.preserve_commit else "false"
            )


def resolve_import_options(
    repo_dir: Path,
    dest: str | None = None,
    flatten: bool | None = None,
    preserve_commit: bool | None = None,
    yes: bool = False,
) -> ImportOptions:
    """Merge command-line values with repository and global defaults.

    Precedence: explicit argument, then git config, then
    ~/.repograft/config.yml, then built-in defaults.
    """
    from repograft.settings import get_import_defaults

    project = load_config(repo_dir)
    defaults = get_import_defaults()

    def pick(explicit: Any, configured: Any, key: str) -> Any:
        if explicit is not None:
            return explicit
        if configured is not None:
            return configured
        return defaults.get(key)

    resolved_dest = pick(dest, project.dest, "dest")
    return ImportOptions(
        dest=str(resolved_dest) if resolved_dest is not None else None,
        flatten=bool(_as_bool(pick(flatten, project.flatten, "flatten"))),
        preserve_commit=bool(
            _as_bool(pick(preserve_commit, project.preserve_commit, "preserve_commit"))
        ),
        yes=yes,
    )
