"""Tests for document normalization and the footer marker."""

import pytest

from config.settings import DEFAULT_FOOTER
from core.document import render_update
from core.normalizer import DocumentNormalizer

MARKER = "[Managed by changeish](https://github.com/itlackey/changeish)"

SAMPLES = [
    "",
    "# Changelog\n",
    "# Changelog\n\n\n\n## v1.0.0\n- a\n\n\n",
    "## v1\n  \n\t\n- a\n",
    f"# Changelog\n\n## v1\n- a\n\n{MARKER}\n",
    f"# Changelog\n\n{MARKER}\n\n## v2\n- b\n- c\n- d\n- e\n- f\n",
]


def test_default_marker():
    assert DEFAULT_FOOTER == MARKER


def test_collapses_blank_runs():
    assert DocumentNormalizer.normalize("a\n\n\n\nb\n", footer_marker="") == "a\n\nb\n"
    assert DocumentNormalizer.normalize("a\n  \n\t\nb", footer_marker="") == "a\n\nb\n"


def test_single_trailing_newline():
    assert DocumentNormalizer.normalize("a\n\n\n", footer_marker="") == "a\n"
    assert DocumentNormalizer.normalize("a", footer_marker="") == "a\n"


def test_appends_footer():
    result = DocumentNormalizer.normalize("# Changelog\n")
    assert result == f"# Changelog\n\n{MARKER}\n"


def test_footer_only_for_empty_document():
    assert DocumentNormalizer.normalize("") == f"{MARKER}\n"
    assert DocumentNormalizer.normalize("", footer_marker="") == ""


def test_footer_in_window_is_kept():
    doc = f"# Changelog\n\n## v1\n- a\n\n{MARKER}\n"
    assert DocumentNormalizer.normalize(doc) == doc


def test_buried_footer_moves_to_end():
    doc = f"# Changelog\n\n{MARKER}\n\n## v2\n- b\n- c\n- d\n- e\n- f\n"
    result = DocumentNormalizer.normalize(doc)
    assert result.count(MARKER) == 1
    assert result.endswith(f"- f\n\n{MARKER}\n")
    assert "\n\n\n" not in result


@pytest.mark.parametrize("doc", SAMPLES)
def test_idempotent(doc):
    once = DocumentNormalizer.normalize(doc)
    assert DocumentNormalizer.normalize(once) == once
    assert once.count(MARKER) == 1


def test_first_changelog_entry():
    result = render_update("", "v0.1.0", "- first", "update")
    assert "## v0.1.0\n- first\n" in result
    assert result.endswith(f"{MARKER}\n")


def test_repeated_updates_keep_one_footer():
    doc = render_update("# Changelog\n", "v1", "- a", "append")
    for version in ("v2", "v3", "v4"):
        doc = render_update(doc, version, "- x\n- y\n- z\n- w", "append")
    assert doc.count(MARKER) == 1
    assert doc.endswith(f"{MARKER}\n")


def test_marker_inside_prose_is_not_a_footer():
    doc = f"# Changelog\n\nSee {MARKER} for details.\n\n## v1\n- a\n- b\n- c\n- d\n"
    result = DocumentNormalizer.normalize(doc)
    assert f"See {MARKER} for details." in result
    assert result.endswith(f"- d\n\n{MARKER}\n")
    assert [line for line in result.splitlines() if line == MARKER] == [MARKER]
    assert DocumentNormalizer.normalize(result) == result


def test_marker_inside_prose_near_end():
    doc = f"## v1\n- linked from {MARKER}\n"
    result = DocumentNormalizer.normalize(doc)
    assert result == f"## v1\n- linked from {MARKER}\n\n{MARKER}\n"
    assert DocumentNormalizer.normalize(result) == result
