"""repograft - Import the history of a repository into a subdirectory of another."""

from __future__ import annotations

from repograft.core import (
    CommitRecord,
    ExternalRepository,
    Identity,
    ImportOptions,
    ImportResult,
    Patch,
    PatchMode,
    SessionState,
    TargetMapping,
)
from repograft.errors import (
    ImportFailedError,
    NoCommitsError,
    RepograftError,
    ValidationError,
)
from repograft.plugins import hookimpl, hookspec
from repograft.rewriter import PathRewriter, rewrite_patch
from repograft.session import ImportSession, import_repository

__version__ = "0.1.0"

__all__ = [
    # Core types
    "CommitRecord",
    "ExternalRepository",
    "Identity",
    "ImportOptions",
    "ImportResult",
    "Patch",
    "PatchMode",
    "SessionState",
    "TargetMapping",
    # Errors
    "RepograftError",
    "ValidationError",
    "NoCommitsError",
    "ImportFailedError",
    # Plugin system
    "hookspec",
    "hookimpl",
    # Main functions
    "ImportSession",
    "import_repository",
    "PathRewriter",
    "rewrite_patch",
]
