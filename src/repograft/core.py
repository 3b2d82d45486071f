"""Core dataclasses for repograft."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Optional


class PatchMode(str, Enum):
    """How a commit's changes are rendered into patch text."""

    STANDARD = "standard"
    FLATTENED = "flattened"


class SessionStage(str, Enum):
    """Stages an import session moves through."""

    VALIDATING = "validating"
    CONFIRMING = "confirming"
    APPLYING = "applying"
    FINALIZING = "finalizing"
    ROLLING_BACK = "rolling_back"


@dataclass(frozen=True)
class CommitRecord:
    """A single commit to import, identified by its abbreviated hash."""

    sha: str

    def __str__(self) -> str:
        return self.sha


@dataclass(frozen=True)
class Patch:
    """Raw patch text for one commit."""

    sha: str
    text: str
    mode: PatchMode = PatchMode.STANDARD

    def with_text(self, text: str) -> Patch:
        """Return a copy of this patch carrying different text."""
        return replace(self, text=text)


@dataclass(frozen=True)
class ExternalRepository:
    """The repository whose history is being imported.

    Read-only: nothing in repograft writes to it.
    """

    path: Path
    package_name: str

    @property
    def base_name(self) -> str:
        """Directory name of the repository, used as the target leaf."""
        return self.path.name


@dataclass(frozen=True)
class TargetMapping:
    """Where the imported files land inside the host repository.

    Attributes:
        target_base: Package directory the import goes into (e.g. "packages").
        target_dir: target_base joined with the external repo's base name,
            relative to the workspace root.
        relative_to_git_root: target_dir relative to the host git root,
            always using forward slashes. This is what gets written into
            rewritten patches.
        workspace_root: Absolute path of the workspace root.
    """

    target_base: str
    target_dir: str
    relative_to_git_root: str
    workspace_root: Path

    @property
    def absolute_path(self) -> Path:
        return self.workspace_root / self.target_dir


@dataclass(frozen=True)
class Identity:
    """An author identity as stored in git config (user.email / user.name)."""

    email: Optional[str] = None
    name: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.name or ''} <{self.email or ''}>"


@dataclass
class ImportOptions:
    """Options controlling a single import run."""

    dest: Optional[str] = None
    flatten: bool = False
    preserve_commit: bool = False
    yes: bool = False

    @property
    def patch_mode(self) -> PatchMode:
        return PatchMode.FLATTENED if self.flatten else PatchMode.STANDARD


@dataclass
class SessionState:
    """Mutable state owned by one import session.

    pre_import_head is the rollback target. It is captured before the first
    mutating git call and never reassigned afterwards.
    """

    pre_import_head: str
    original_identity: Optional[Identity] = None
    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    stage: SessionStage = SessionStage.APPLYING

    def __setattr__(self, name: str, value: object) -> None:
        if name == "pre_import_head" and "pre_import_head" in self.__dict__:
            raise AttributeError("pre_import_head is captured once per session")
        super().__setattr__(name, value)

    @property
    def applied_count(self) -> int:
        return len(self.applied)

    @property
    def identity_changed(self) -> bool:
        return self.original_identity is not None


@dataclass
class ImportResult:
    """Outcome of an import session."""

    target: TargetMapping
    commits: list[CommitRecord] = field(default_factory=list)
    applied: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    pre_import_head: Optional[str] = None
    head: Optional[str] = None
    cancelled: bool = False

    @property
    def applied_count(self) -> int:
        return len(self.applied)

    @property
    def target_path(self) -> str:
        return self.target.relative_to_git_root
