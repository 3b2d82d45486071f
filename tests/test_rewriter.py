"""Tests for repograft.rewriter module."""

from repograft.core import Patch, PatchMode
from repograft.rewriter import (
    PLACEHOLDER_AFTER,
    PLACEHOLDER_BEFORE,
    RULES,
    PathRewriter,
    format_target,
    rewrite_patch,
)

SAMPLE_PATCH = """\
From 1234567 Mon Sep 17 00:00:00 2001
From: Alice Original <alice@example.com>
Date: Mon, 1 Jan 2024 02:00:00 +0000
Subject: [PATCH] Add index

---
 src/index.js | 1 +
 1 file changed, 1 insertion(+)
 create mode 100644 src/index.js

diff --git COMPARE_A/src/index.js COMPARE_B/src/index.js
new file mode 100644
index 0000000..e69de29
--- /dev/null
+++ COMPARE_B/src/index.js
@@ -0,0 +1 @@
+module.exports = 1;
--
2.43.0
"""


def rule(name):
    return next(r for r in RULES if r.name == name)


class TestRules:
    """Each rewrite rule on its own."""

    def test_five_rules_in_order(self):
        """Should define the five directive rules in application order."""
        assert [r.name for r in RULES] == ["header", "diff-before", "diff-after", "copy", "rename"]

    def test_header_rewrites_both_markers(self):
        """Should insert the target after either placeholder in ---/+++ lines."""
        text = "--- COMPARE_A/a.txt\n+++ COMPARE_B/a.txt\n"
        result = rule("header").apply(text, "packages/foo")
        assert result == "--- COMPARE_A/packages/foo/a.txt\n+++ COMPARE_B/packages/foo/a.txt\n"

    def test_header_keeps_quotes(self):
        """Should keep the quote of quoted paths in place."""
        text = '--- "COMPARE_A/with space.txt"\n'
        result = rule("header").apply(text, "packages/foo")
        assert result == '--- "COMPARE_A/packages/foo/with space.txt"\n'

    def test_header_ignores_dev_null(self):
        """Should leave /dev/null headers alone."""
        text = "--- /dev/null\n+++ COMPARE_B/new.txt\n"
        result = rule("header").apply(text, "pkg")
        assert result.startswith("--- /dev/null\n")
        assert "+++ COMPARE_B/pkg/new.txt" in result

    def test_header_ignores_hunk_content(self):
        """Should not touch removed or added lines that merely contain dashes."""
        text = "---- COMPARE_A/x\n+-- note\n"
        assert rule("header").apply(text, "pkg") == text

    def test_diff_before(self):
        """Should relocate the source path of a diff --git line."""
        text = "diff --git COMPARE_A/a.txt COMPARE_B/a.txt\n"
        result = rule("diff-before").apply(text, "packages/foo")
        assert result == "diff --git COMPARE_A/packages/foo/a.txt COMPARE_B/a.txt\n"

    def test_diff_after(self):
        """Should relocate the destination path of a diff --git line."""
        text = "diff --git COMPARE_A/packages/foo/a.txt COMPARE_B/a.txt\n"
        result = rule("diff-after").apply(text, "packages/foo")
        assert result == "diff --git COMPARE_A/packages/foo/a.txt COMPARE_B/packages/foo/a.txt\n"

    def test_diff_after_quoted(self):
        """Should handle quoted paths on the diff line."""
        text = 'diff --git "COMPARE_A/pkg/a b.txt" "COMPARE_B/a b.txt"\n'
        result = rule("diff-after").apply(text, "pkg")
        assert result == 'diff --git "COMPARE_A/pkg/a b.txt" "COMPARE_B/pkg/a b.txt"\n'

    def test_rename(self):
        """Should prefix both rename directives."""
        text = "rename from old.txt\nrename to new.txt\n"
        result = rule("rename").apply(text, "packages/foo")
        assert result == "rename from packages/foo/old.txt\nrename to packages/foo/new.txt\n"

    def test_rename_quoted(self):
        """Should place the target inside the opening quote."""
        text = 'rename from "old name.txt"\n'
        assert rule("rename").apply(text, "pkg") == 'rename from "pkg/old name.txt"\n'

    def test_copy(self):
        """Should prefix both copy directives."""
        text = "copy from a.txt\ncopy to b.txt\n"
        result = rule("copy").apply(text, "packages/foo")
        assert result == "copy from packages/foo/a.txt\ncopy to packages/foo/b.txt\n"


class TestPathRewriter:
    """Tests for PathRewriter."""

    def test_rewrites_full_patch(self):
        """Should relocate every path reference in a format-patch mail."""
        patch = Patch(sha="1234567", text=SAMPLE_PATCH)
        result = PathRewriter("packages/foo").rewrite(patch)

        assert (
            "diff --git COMPARE_A/packages/foo/src/index.js COMPARE_B/packages/foo/src/index.js"
            in result.text
        )
        assert "+++ COMPARE_B/packages/foo/src/index.js" in result.text
        assert "--- /dev/null" in result.text

    def test_leaves_content_untouched(self):
        """Should not change message, stat or hunk lines."""
        patch = Patch(sha="1234567", text=SAMPLE_PATCH)
        result = PathRewriter("packages/foo").rewrite(patch)

        assert "Subject: [PATCH] Add index" in result.text
        assert " src/index.js | 1 +" in result.text
        assert "+module.exports = 1;" in result.text

    def test_returns_new_patch(self):
        """Should not mutate the input patch and keep sha and mode."""
        patch = Patch(sha="abc", text=SAMPLE_PATCH, mode=PatchMode.FLATTENED)
        result = rewrite_patch(patch, "pkg")

        assert result is not patch
        assert patch.text == SAMPLE_PATCH
        assert result.sha == "abc"
        assert result.mode is PatchMode.FLATTENED

    def test_rename_patch(self):
        """Should rewrite a rename-only diff completely."""
        text = (
            "diff --git COMPARE_A/old.txt COMPARE_B/new.txt\n"
            "similarity index 100%\n"
            "rename from old.txt\n"
            "rename to new.txt\n"
        )
        result = PathRewriter("libs/bar").rewrite_text(text)
        assert result == (
            "diff --git COMPARE_A/libs/bar/old.txt COMPARE_B/libs/bar/new.txt\n"
            "similarity index 100%\n"
            "rename from libs/bar/old.txt\n"
            "rename to libs/bar/new.txt\n"
        )

    def test_directives_in_message_are_untouched(self):
        """Should only rewrite rename lines inside a diff header."""
        text = (
            "Subject: [PATCH] Move config\n"
            "\n"
            "rename from the old layout\n"
            "copy to keep a backup\n"
            "---\n"
            "diff --git COMPARE_A/old.txt COMPARE_B/new.txt\n"
            "similarity index 100%\n"
            "rename from old.txt\n"
            "rename to new.txt\n"
        )
        result = PathRewriter("libs/bar").rewrite_text(text)

        assert "\nrename from the old layout\n" in result
        assert "\ncopy to keep a backup\n" in result
        assert "rename from libs/bar/old.txt\n" in result
        assert "rename to libs/bar/new.txt\n" in result

    def test_normalizes_windows_separators(self):
        """Should write forward slashes into the patch."""
        rewriter = PathRewriter("packages\\foo")
        assert rewriter.target == "packages/foo"
        assert "COMPARE_B/packages/foo/x" in rewriter.rewrite_text("+++ COMPARE_B/x\n")


def test_format_target_strips_slashes():
    """Should drop leading and trailing slashes."""
    assert format_target("/packages/foo/") == "packages/foo"


def test_placeholders():
    """Placeholders are the prefix roots passed to git."""
    assert PLACEHOLDER_BEFORE == "COMPARE_A"
    assert PLACEHOLDER_AFTER == "COMPARE_B"
