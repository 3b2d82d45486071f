"""Git operations against the host repository."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from git import Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from repograft.core import Patch

logger = logging.getLogger(__name__)


class HostRepository:
    """The repository receiving the imported history.

    Wraps the handful of git commands an import needs: reading HEAD and
    the repository root, checking for local changes, applying mailbox
    patches with ``git am`` and undoing them.
    """

    def __init__(self, repo: Repo):
        self.repo = repo

    @classmethod
    def discover(cls, path: Path) -> HostRepository | None:
        """Open the git repository containing ``path``, if there is one."""
        try:
            return cls(Repo(path, search_parent_directories=True))
        except (InvalidGitRepositoryError, NoSuchPathError):
            return None

    @property
    def root(self) -> Path:
        """Top-level directory of the working tree."""
        return Path(self.repo.git.rev_parse("--show-toplevel")).resolve()

    def head(self) -> str:
        return self.repo.git.rev_parse("HEAD")

    def has_head(self) -> bool:
        try:
            self.head()
        except GitCommandError:
            return False
        return True

    def refresh_index(self) -> None:
        """Update cached stat info so touched but unchanged files read as clean."""
        try:
            self.repo.git.update_index("-q", "--refresh")
        except GitCommandError as e:
            # Non-zero when some file really differs, diff-index reports it
            logger.debug("git update-index --refresh: %s", e)

    def has_uncommitted_changes(self) -> bool:
        """Whether tracked files differ from HEAD (staged or not)."""
        self.refresh_index()
        return bool(self.repo.git.diff_index("HEAD").strip())

    def apply_patch(self, patch: Patch, keep_author_date: bool = False) -> None:
        """Apply a mailbox patch as a new commit.

        Uses a three-way merge when the patch does not apply directly and
        keeps bracketed subject text that is not a [PATCH] marker.

        Raises:
            GitCommandError: If ``git am`` stops. The am session is left in
                progress for the caller to skip or abort.
        """
        args = ["-3", "--keep-non-patch"]
        if keep_author_date:
            args.append("--committer-date-is-author-date")

        fd, patch_path = tempfile.mkstemp(prefix="repograft_", suffix=".patch")
        try:
            with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape", newline="") as f:
                f.write(patch.text)
            self.repo.git.am(*args, patch_path)
        finally:
            os.unlink(patch_path)

    def skip_patch(self) -> None:
        """Drop the patch ``git am`` stopped on."""
        try:
            self.repo.git.am("--skip")
        except GitCommandError as e:
            # git am may refuse to start at all (empty mailbox), leaving nothing to skip
            logger.debug("git am --skip: %s", e)

    def abort_patch(self) -> None:
        """Abort an in-progress ``git am``, if any."""
        try:
            self.repo.git.am("--abort")
        except GitCommandError as e:
            logger.debug("git am --abort: %s", e)

    def reset_hard(self, sha: str) -> None:
        self.repo.git.reset("--hard", sha)

