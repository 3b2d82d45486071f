"""Exception types raised by repograft."""

from __future__ import annotations

ENOENT = "ENOENT"
ENODIR = "ENODIR"
ENOPKG = "ENOPKG"
EDESTDIR = "EDESTDIR"
ENOTINREPO = "ENOTINREPO"
EEXISTS = "EEXISTS"
NOCOMMITS = "NOCOMMITS"
ENOHEAD = "ENOHEAD"
ECHANGES = "ECHANGES"
EIMPORT = "EIMPORT"


class RepograftError(Exception):
    """Base class for all repograft errors.

    Every error carries a short machine-readable ``kind`` alongside the
    human-readable message.
    """

    kind = "EREPOGRAFT"

    def __init__(self, message: str, kind: str | None = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind

    def __str__(self) -> str:
        return self.message


class ValidationError(RepograftError):
    """A precondition failed before anything in the host repository changed."""

    def __init__(self, kind: str, message: str):
        super().__init__(message, kind=kind)


class NoCommitsError(ValidationError):
    """The external repository has nothing to import."""

    def __init__(self, message: str):
        super().__init__(NOCOMMITS, message)


class ImportFailedError(RepograftError):
    """Applying a commit failed and the host repository was rolled back."""

    kind = EIMPORT

    def __init__(self, sha: str, detail: str = ""):
        self.sha = sha
        self.detail = detail.strip()
        lines = [f"Failed to apply commit {sha}."]
        if self.detail:
            lines.append(self.detail)
        lines.append("")
        lines.append("You may try again with --flatten to import flat history.")
        super().__init__("\n".join(lines))
