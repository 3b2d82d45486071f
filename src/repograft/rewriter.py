"""Relocate file paths inside patch text into a target subdirectory.

Patches handed to the rewriter are produced with custom source/destination
prefixes (see PatchGenerator) instead of git's default ``a/`` and ``b/``.
Those prefixes are implausible as real path components, which makes the
handful of line-anchored substitutions below unambiguous. Only path
references are touched; hunk content is left alone.

Any change to the placeholder tokens must be mirrored in the rules.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from repograft.core import Patch

# Placeholder roots passed to git as --src-prefix / --dst-prefix
PLACEHOLDER_BEFORE = "COMPARE_A"
PLACEHOLDER_AFTER = "COMPARE_B"

SRC_PREFIX = f"{PLACEHOLDER_BEFORE}/"
DST_PREFIX = f"{PLACEHOLDER_AFTER}/"


@dataclass(frozen=True)
class RewriteRule:
    """One line-anchored substitution.

    Attributes:
        name: Short identifier, used in logs and tests.
        pattern: Compiled multiline pattern. Its groups are kept verbatim.
        template: Builds the replacement from the match and the target path.
        extended_header_only: Only rewrite inside the extended header block
            that follows a ``diff --git`` line, never in the commit message.
    """

    name: str
    pattern: re.Pattern[str]
    template: Callable[[re.Match[str], str], str]
    extended_header_only: bool = False

    def apply(self, text: str, target: str) -> str:
        return self.pattern.sub(lambda m: self.template(m, target), text)


def _after_group(match: re.Match[str], target: str) -> str:
    # "<prefix>COMPARE_X" + "/<target>", the rest of the path follows untouched
    return f"{match.group(1)}/{target}"


def _directive(match: re.Match[str], target: str) -> str:
    # "<directive> " + optional quote + "<target>/"
    return f"{match.group(1)} {match.group(3)}{target}/"


_BEFORE = re.escape(PLACEHOLDER_BEFORE)
_AFTER = re.escape(PLACEHOLDER_AFTER)

RULES: tuple[RewriteRule, ...] = (
    # --- COMPARE_A/path and +++ COMPARE_B/path
    RewriteRule(
        name="header",
        pattern=re.compile(rf'^([-+]{{3}} "?(?:{_BEFORE}|{_AFTER}))', re.MULTILINE),
        template=_after_group,
    ),
    # diff --git COMPARE_A/path ...
    RewriteRule(
        name="diff-before",
        pattern=re.compile(rf'^(diff --git "?{_BEFORE})', re.MULTILINE),
        template=_after_group,
    ),
    # diff --git ... COMPARE_B/path
    RewriteRule(
        name="diff-after",
        pattern=re.compile(rf'^(diff --git (?! "?{_AFTER}/).+ "?{_AFTER})', re.MULTILINE),
        template=_after_group,
    ),
    RewriteRule(
        name="copy",
        pattern=re.compile(r'^(copy (from|to)) ("?)', re.MULTILINE),
        template=_directive,
        extended_header_only=True,
    ),
    RewriteRule(
        name="rename",
        pattern=re.compile(r'^(rename (from|to)) ("?)', re.MULTILINE),
        template=_directive,
        extended_header_only=True,
    ),
)


# A diff --git line and the git extended header lines that follow it
_EXTENDED_HEADER = re.compile(
    r"^diff --git [^\n]*\n"
    r"(?:(?:old mode|new mode|deleted file mode|new file mode|copy from|copy to"
    r"|rename from|rename to|similarity index|dissimilarity index|index) [^\n]*\n)*",
    re.MULTILINE,
)


def format_target(target: str) -> str:
    """Normalize a target directory for use inside patch text."""
    return target.replace("\\", "/").strip("/")


class PathRewriter:
    """Applies the rewrite rules for one target directory."""

    def __init__(self, target: str, rules: tuple[RewriteRule, ...] = RULES):
        self.target = format_target(target)
        self.rules = rules

    def _apply(self, rule: RewriteRule, text: str) -> str:
        if not rule.extended_header_only:
            return rule.apply(text, self.target)
        return _EXTENDED_HEADER.sub(lambda m: rule.apply(m.group(0), self.target), text)

    def rewrite_text(self, text: str) -> str:
        for rule in self.rules:
            text = self._apply(rule, text)
        return text

    def rewrite(self, patch: Patch) -> Patch:
        """Return a new patch with every path moved under the target."""
        return patch.with_text(self.rewrite_text(patch.text))


def rewrite_patch(patch: Patch, target: str) -> Patch:
    """Convenience wrapper around PathRewriter."""
    return PathRewriter(target).rewrite(patch)
