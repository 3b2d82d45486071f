"""Import session: validate, confirm, apply every commit, or roll back.

A session walks through Validating -> Confirming -> Applying and ends in
either Finalizing or RollingBack. Nothing in the host repository changes
before Applying starts, and once it has started every change can be
undone by resetting to the HEAD captured at that point.

Commits are applied strictly one after another. Each patch is made
against the result of all earlier ones, so there is no parallelism here.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

import pluggy
from git import Repo
from git.exc import BadName, BadObject, GitCommandError

from repograft.core import (
    CommitRecord,
    ExternalRepository,
    ImportOptions,
    ImportResult,
    SessionStage,
    SessionState,
    TargetMapping,
)
from repograft.errors import (
    ECHANGES,
    EDESTDIR,
    EEXISTS,
    ENODIR,
    ENOENT,
    ENOHEAD,
    ENOPKG,
    ENOTINREPO,
    ImportFailedError,
    ValidationError,
)
from repograft.host import HostRepository
from repograft.identity import IdentityManager
from repograft.rewriter import PathRewriter
from repograft.source import CommitEnumerator, PatchGenerator, open_source_repo
from repograft.workspace import Workspace, read_package_name

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[CommitRecord, int, int], None]


@dataclass(frozen=True)
class ImportPlan:
    """Everything Validating established. Fixed for the rest of the session."""

    external: ExternalRepository
    target: TargetMapping
    commits: tuple[CommitRecord, ...]
    host: HostRepository
    source_repo: Repo

    @property
    def summary(self) -> str:
        return (
            f"About to import {len(self.commits)} commits from "
            f"{self.external.path} into {self.target.target_dir}"
        )


ConfirmCallback = Callable[[ImportPlan], bool]


def _posix(path: str) -> str:
    return os.path.normpath(path).replace(os.sep, "/")


def validate(
    source_path: Path | str,
    options: ImportOptions,
    workspace_root: Path | None = None,
    pm: pluggy.PluginManager | None = None,
) -> ImportPlan:
    """Check every precondition of an import without touching anything.

    Raises:
        ValidationError: The first failed check, with its kind set.
        NoCommitsError: If the external repository has no history.
    """
    input_path = str(source_path)
    external_path = Path(source_path).expanduser().resolve()

    if not external_path.exists():
        raise ValidationError(ENOENT, f'No repository found at "{input_path}"')
    if not external_path.is_dir():
        raise ValidationError(ENODIR, f'Input path "{input_path}" is not a directory')

    package_name = read_package_name(external_path, pm)
    if not package_name:
        raise ValidationError(ENOPKG, f'No package name specified in "{external_path}"')
    external = ExternalRepository(path=external_path, package_name=package_name)

    workspace = Workspace.discover(workspace_root or Path.cwd(), pm)
    target_base = workspace.target_base(options.dest)
    if not workspace.accepts_target_base(target_base):
        raise ValidationError(
            EDESTDIR,
            "--dest does not match with the package directories: "
            + ", ".join(workspace.package_directories),
        )
    target_dir = _posix(os.path.join(target_base, external.base_name))

    host = HostRepository.discover(workspace.root)
    if host is None:
        raise ValidationError(
            ENOTINREPO, f"Project root {workspace.root} is not inside a git repository"
        )
    git_root = host.root
    relative_to_git_root = _posix(
        os.path.join(os.path.relpath(workspace.root, git_root), target_dir)
    )
    if relative_to_git_root == ".." or relative_to_git_root.startswith("../"):
        raise ValidationError(
            ENOTINREPO,
            f"Project root {workspace.root} is not a subdirectory of git root {git_root}",
        )

    target = TargetMapping(
        target_base=target_base,
        target_dir=target_dir,
        relative_to_git_root=relative_to_git_root,
        workspace_root=workspace.root,
    )
    if target.absolute_path.exists():
        raise ValidationError(EEXISTS, f'Target directory already exists "{target_dir}"')

    source_repo = open_source_repo(external_path)
    commits = CommitEnumerator(source_repo, flatten=options.flatten).list_commits()

    if not host.has_head():
        raise ValidationError(ENOHEAD, "Local repository has no commits to import onto")
    if host.has_uncommitted_changes():
        raise ValidationError(ECHANGES, "Local repository has un-committed changes")

    return ImportPlan(
        external=external,
        target=target,
        commits=tuple(commits),
        host=host,
        source_repo=source_repo,
    )


def _failure_detail(error: BaseException) -> str:
    return str(error) or type(error).__name__


def _is_empty_commit(generator: PatchGenerator, sha: str) -> bool:
    try:
        return generator.is_empty(sha)
    except (GitCommandError, BadName, BadObject, ValueError) as e:
        logger.debug("Could not diff commit %s against its parent: %s", sha, e)
        return False


def apply_commits(
    state: SessionState,
    plan: ImportPlan,
    generator: PatchGenerator,
    rewriter: PathRewriter,
    identities: IdentityManager | None = None,
    on_progress: ProgressCallback | None = None,
) -> None:
    """Apply every planned commit to the host, in order.

    A commit whose patch fails to apply but whose diff against its first
    parent is empty is skipped. Any other failure raises.

    Raises:
        ImportFailedError: Naming the commit that could not be applied.
    """
    total = len(plan.commits)
    keep_author_date = identities is not None

    for index, record in enumerate(plan.commits):
        sha = record.sha
        if on_progress is not None:
            on_progress(record, index, total)
        logger.info("Applying commit %s (%d/%d)", sha, index + 1, total)

        try:
            patch = rewriter.rewrite(generator.generate(sha))
            if identities is not None:
                identities.impersonate(sha)
        except Exception as e:
            raise ImportFailedError(sha, _failure_detail(e)) from e

        try:
            plan.host.apply_patch(patch, keep_author_date=keep_author_date)
        except (GitCommandError, OSError) as e:
            if _is_empty_commit(generator, sha):
                logger.info("Skipping empty commit %s", sha)
                plan.host.skip_patch()
                state.skipped.append(sha)
                continue
            raise ImportFailedError(sha, str(e)) from e
        except Exception as e:
            raise ImportFailedError(sha, _failure_detail(e)) from e

        state.applied.append(sha)


def finalize(
    state: SessionState, plan: ImportPlan, identities: IdentityManager | None
) -> ImportResult:
    """Wrap up a successful session."""
    state.stage = SessionStage.FINALIZING
    if identities is not None and state.original_identity is not None:
        identities.restore(state.original_identity)

    logger.info(
        "Imported %d commits into %s (%d skipped)",
        state.applied_count,
        plan.target.target_dir,
        len(state.skipped),
    )
    return ImportResult(
        target=plan.target,
        commits=list(plan.commits),
        applied=list(state.applied),
        skipped=list(state.skipped),
        pre_import_head=state.pre_import_head,
        head=plan.host.head(),
    )


def rollback(
    state: SessionState, host: HostRepository, identities: IdentityManager | None
) -> None:
    """Undo a failed session.

    Restores the author identity first, then aborts any ``git am`` in
    progress and hard-resets to the HEAD captured before the first commit
    was applied.
    """
    state.stage = SessionStage.ROLLING_BACK
    if identities is not None and state.original_identity is not None:
        identities.restore(state.original_identity)

    logger.error("Rolling back to previous HEAD (commit %s)", state.pre_import_head)
    host.abort_patch()
    host.reset_hard(state.pre_import_head)


class ImportSession:
    """Imports the history of one external repository into the host.

    Args:
        source_path: Path to the external repository.
        options: Import options (destination, flatten, identity, confirmation).
        workspace_root: Root of the host workspace. Defaults to the current
            directory.
        confirm: Called with the plan before anything changes. Returning
            False cancels the import. Not called when ``options.yes`` is set.
        on_progress: Called with (commit, index, total) before each commit.
        plugin_manager: Workspace plugin manager. Defaults to the configured one.
    """

    def __init__(
        self,
        source_path: Path | str,
        options: ImportOptions | None = None,
        workspace_root: Path | None = None,
        confirm: Optional[ConfirmCallback] = None,
        on_progress: Optional[ProgressCallback] = None,
        plugin_manager: pluggy.PluginManager | None = None,
    ):
        self.source_path = source_path
        self.options = options or ImportOptions()
        self.workspace_root = workspace_root
        self.confirm = confirm
        self.on_progress = on_progress
        self.plugin_manager = plugin_manager
        self.stage = SessionStage.VALIDATING

    def plan(self) -> ImportPlan:
        """Run the Validating stage only."""
        self.stage = SessionStage.VALIDATING
        return validate(self.source_path, self.options, self.workspace_root, self.plugin_manager)

    def _confirmed(self, plan: ImportPlan) -> bool:
        self.stage = SessionStage.CONFIRMING
        logger.info(plan.summary)
        if self.options.yes:
            return True
        if self.confirm is None:
            logger.warning("No confirmation callback given and yes is not set, not importing")
            return False
        return bool(self.confirm(plan))

    def run(self) -> ImportResult:
        """Validate, confirm and apply.

        Returns:
            ImportResult describing what was applied. ``cancelled`` is set
            if the confirmation was declined.

        Raises:
            ValidationError: If a precondition fails. Nothing was changed.
            ImportFailedError: If a commit could not be applied. The host
                repository has been reset to its pre-import HEAD.

        An interrupt during Applying rolls back the same way before it
        propagates.
        """
        plan = self.plan()

        if not self._confirmed(plan):
            logger.info("Import cancelled")
            return ImportResult(target=plan.target, commits=list(plan.commits), cancelled=True)

        self.stage = SessionStage.APPLYING
        generator = PatchGenerator(plan.source_repo, self.options.patch_mode)
        rewriter = PathRewriter(plan.target.relative_to_git_root)
        identities = (
            IdentityManager(plan.host.repo, generator) if self.options.preserve_commit else None
        )

        state = SessionState(
            pre_import_head=plan.host.head(),
            original_identity=identities.capture() if identities is not None else None,
        )

        try:
            apply_commits(state, plan, generator, rewriter, identities, self.on_progress)
        except BaseException:
            self.stage = SessionStage.ROLLING_BACK
            rollback(state, plan.host, identities)
            raise

        self.stage = SessionStage.FINALIZING
        return finalize(state, plan, identities)


def import_repository(
    source_path: Path | str,
    workspace_root: Path | None = None,
    dest: str | None = None,
    flatten: bool = False,
    preserve_commit: bool = False,
) -> ImportResult:
    """Import an external repository without asking for confirmation.

    Args:
        source_path: Path to the external repository.
        workspace_root: Root of the host workspace. Defaults to the current directory.
        dest: Package directory to import into.
        flatten: Import first-parent history only, one diff per commit.
        preserve_commit: Record the original authors as committers too.

    Returns:
        ImportResult for the session.
    """
    options = ImportOptions(dest=dest, flatten=flatten, preserve_commit=preserve_commit, yes=True)
    return ImportSession(source_path, options, workspace_root=workspace_root).run()
