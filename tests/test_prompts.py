"""Tests for prompt templates and builders."""

import pytest

from core.prompts import (
    CHANGELOG_PROMPT,
    TEMPLATES,
    build_document_prompt,
    build_history_prompt,
    load_template,
    tagged_block,
)


def test_builtin_templates():
    assert set(TEMPLATES) == {"message", "summary", "changelog", "release-notes", "announce"}
    assert load_template("changelog") == CHANGELOG_PROMPT


def test_unknown_template():
    with pytest.raises(KeyError):
        load_template("haiku")


def test_template_dir_override(tmp_path):
    (tmp_path / "summary.md").write_text("Summarize briefly.\n")
    assert load_template("summary", str(tmp_path)) == "Summarize briefly.\n"
    # templates without an override fall back to the built-in text
    assert load_template("changelog", str(tmp_path)) == CHANGELOG_PROMPT


def test_tagged_block():
    assert tagged_block("GIT_HISTORY", "diff\n\n") == "<<GIT_HISTORY>>\ndiff\n<<GIT_HISTORY>>"


def test_history_prompt():
    prompt = build_history_prompt("Write a message.\n", "**Message:** fix")
    assert prompt == "Write a message.\n\n<<GIT_HISTORY>>\n**Message:** fix\n<<GIT_HISTORY>>\n"


def test_document_prompt_without_existing_section():
    prompt = build_document_prompt(CHANGELOG_PROMPT, "- summary", "v1.2.0")
    assert "version v1.2.0" in prompt
    assert "{version}" not in prompt
    assert "<<EXAMPLE_OUTPUT>>" in prompt
    assert "<<EXISTING_SECTION>>" not in prompt
    assert prompt.rstrip().endswith("- summary\n<<COMMIT_SUMMARIES>>")


def test_document_prompt_keeps_existing_items():
    prompt = build_document_prompt(CHANGELOG_PROMPT, "- summary", "v1.2.0", "- old item")
    assert "<<EXISTING_SECTION>>\n- old item\n<<EXISTING_SECTION>>" in prompt
    assert "DO NOT remove any existing items" in prompt
    assert "<<EXAMPLE_OUTPUT>>" not in prompt
