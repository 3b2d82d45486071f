"""Read-only queries against the external repository.

CommitEnumerator decides which commits get imported and in what order;
PatchGenerator renders each of them as patch text. These are the only
places that run git inside the external repository.
"""

from __future__ import annotations

import logging
from pathlib import Path

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from repograft.core import CommitRecord, Patch, PatchMode
from repograft.errors import NoCommitsError
from repograft.rewriter import DST_PREFIX, SRC_PREFIX

logger = logging.getLogger(__name__)

# Hash of the empty tree, used to diff a root commit
EMPTY_TREE_SHA = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"


def open_source_repo(path: Path) -> Repo:
    """Open the external repository at exactly ``path``.

    Raises:
        NoCommitsError: If ``path`` is not the top of a git repository.
    """
    try:
        return Repo(path)
    except (InvalidGitRepositoryError, NoSuchPathError):
        raise NoCommitsError(f'No git commits to import at "{path}"')


def _git_output(repo: Repo, command: str, *args: str) -> str:
    """Run a git command and return stdout with its trailing newline intact."""
    return getattr(repo.git, command)(*args, strip_newline_in_stdout=False)


def get_tool_version(repo: Repo) -> str:
    """Return the installed git version, without the "git version " prefix."""
    return repo.git.version().replace("git version ", "").strip()


class CommitEnumerator:
    """Lists the commits of the external repository, oldest first."""

    def __init__(self, repo: Repo, flatten: bool = False):
        self.repo = repo
        self.flatten = flatten

    def log_args(self) -> list[str]:
        args = ["--format=%h"]
        if self.flatten:
            args.append("--first-parent")
        return args

    def list_commits(self) -> list[CommitRecord]:
        """Return the commits to import in application order.

        With ``flatten`` set only the first-parent chain is listed, so side
        branches of merges are left out.

        Raises:
            NoCommitsError: If there is nothing to import.
        """
        location = self.repo.working_tree_dir or self.repo.git_dir
        try:
            output = self.repo.git.log(*self.log_args())
        except GitCommandError as e:
            # An unborn branch makes git log fail outright
            logger.debug("git log failed in %s: %s", location, e)
            output = ""

        shas = [line.strip() for line in output.splitlines() if line.strip()]
        if not shas:
            raise NoCommitsError(f'No git commits to import at "{location}"')

        shas.reverse()
        return [CommitRecord(sha) for sha in shas]

    def describe(self, record: CommitRecord) -> tuple[str, str]:
        """Return (author name, subject line) for a commit."""
        commit = self.repo.commit(record.sha)
        return commit.author.name or "", commit.summary


class PatchGenerator:
    """Produces patch text for single commits of the external repository."""

    def __init__(self, repo: Repo, mode: PatchMode = PatchMode.STANDARD):
        self.repo = repo
        self.mode = mode
        self._tool_version: str | None = None

    @property
    def tool_version(self) -> str:
        if self._tool_version is None:
            self._tool_version = get_tool_version(self.repo)
        return self._tool_version

    def generate(self, sha: str) -> Patch:
        """Produce the patch for one commit.

        Raises:
            GitCommandError: If git cannot read the commit.
        """
        if self.mode is PatchMode.FLATTENED:
            text = self.flattened_patch(sha)
        else:
            text = self.standard_patch(sha)
        return Patch(sha=sha, text=text, mode=self.mode)

    def standard_patch(self, sha: str) -> str:
        """A format-patch mailbox for exactly this commit."""
        return _git_output(
            self.repo,
            "format_patch",
            "-1",
            "--stdout",
            f"--src-prefix={SRC_PREFIX}",
            f"--dst-prefix={DST_PREFIX}",
            sha,
        )

    def flattened_patch(self, sha: str) -> str:
        """The commit's full change against its first parent, as one mail.

        Merge commits are diffed against their first parent only (``-m``
        with ``--first-parent``), so whatever the merge brought in lands as
        a single patch. The trailing signature names the git version that
        produced the diff, the same way format-patch signs its output.
        """
        diff = _git_output(
            self.repo,
            "log",
            "--reverse",
            "--first-parent",
            "-p",
            "-m",
            "--pretty=email",
            "--stat",
            "--binary",
            "-1",
            "--color=never",
            f"--src-prefix={SRC_PREFIX}",
            f"--dst-prefix={DST_PREFIX}",
            sha,
        )
        return f"{diff}\n--\n{self.tool_version}\n"

    def author_of(self, sha: str) -> tuple[str, str]:
        """Return the original (email, name) of a commit's author."""
        email = self.repo.git.show("-s", "--format=%ae", sha)
        name = self.repo.git.show("-s", "--format=%an", sha)
        return email, name

    def is_empty(self, sha: str) -> bool:
        """Whether the commit changes nothing relative to its first parent."""
        commit = self.repo.commit(sha)
        base = commit.parents[0].hexsha if commit.parents else EMPTY_TREE_SHA
        return self.repo.git.diff(base, commit.hexsha).strip() == ""
