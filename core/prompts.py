"""
Prompt templates and builders.

Each template can be overridden by dropping `<name>.md` into the directory
given with --template-dir; `changeish make-template` writes the built-in
text to a file as a starting point.
"""

import os
from typing import Optional


# ──────────────────────────────────────────────
# Templates
# ──────────────────────────────────────────────

COMMIT_MESSAGE_PROMPT = """\
Task: Write a git commit message for the changes in the Git history below.

Output rules:
1. Use only information from the Git history provided in the prompt.
2. The first line is a summary of at most 72 characters, in the imperative mood.
3. Leave one blank line, then list the notable changes as "- " bullets.
4. Output ONLY the commit message. Do not wrap it in ``` code block markers.
"""

SUMMARY_PROMPT = """\
Task: Summarize the change set in the Git history below for a release manager.

Output rules:
1. Use only information from the Git history provided in the prompt.
2. Start with one sentence describing the purpose of the change.
3. Follow with "- " bullets for each user-visible change, fix or chore.
4. Mention a version change if the history reports one.
5. Output ONLY Markdown. Do not wrap it in ``` code block markers.
"""

CHANGELOG_PROMPT = """\
Task: Generate a changelog for version {version} from the commit summaries below.
Be sure to use only the information from the summaries in your response.

Output rules:
1. Use only information from the summaries provided in the prompt.
2. Output **ONLY** valid Markdown based on the format provided in these instructions.
    - Do not include the ``` code block markers in your output.
3. Use this exact hierarchy:
   ### Enhancements

   - ...

   ### Fixes

   - ...

   ### Chores

   - ...
4. Omit any section that would be empty and do not include a ## header.
"""

RELEASE_NOTES_PROMPT = """\
Task: Write release notes for version {version} from the commit summaries below.

Output rules:
1. Use only information from the summaries provided in the prompt.
2. Open with a short paragraph describing the release as a whole.
3. Group the changes under ### Highlights, ### Fixes and ### Upgrade Notes,
   omitting any group that would be empty.
4. Output ONLY Markdown. Do not include a ## header or ``` code block markers.
"""

ANNOUNCEMENT_PROMPT = """\
Task: Write a blog-style announcement for version {version} from the commit summaries below.

Output rules:
1. Use only information from the summaries provided in the prompt.
2. Start with a # title naming the release, then two or three short paragraphs.
3. Close with a bulleted list of the most important changes.
4. Output ONLY Markdown. Do not include ``` code block markers.
"""

EXAMPLE_CHANGELOG = """\
<<EXAMPLE_OUTPUT>>
### Enhancements

- Example enhancement A

### Fixes

- Example fix B
<<EXAMPLE_OUTPUT>>"""

EXISTING_SECTION_RULE = """\
5. Include ALL of the existing items from the EXISTING_SECTION block in your response. \
DO NOT remove any existing items."""

TEMPLATES = {
    "message": COMMIT_MESSAGE_PROMPT,
    "summary": SUMMARY_PROMPT,
    "changelog": CHANGELOG_PROMPT,
    "release-notes": RELEASE_NOTES_PROMPT,
    "announce": ANNOUNCEMENT_PROMPT,
}


# ──────────────────────────────────────────────
# Builders
# ──────────────────────────────────────────────

def load_template(name: str, template_dir: Optional[str] = None) -> str:
    """
    The template called *name*: `<template_dir>/<name>.md` when that file
    exists, otherwise the built-in text.
    """
    if name not in TEMPLATES:
        raise KeyError(f"Unknown prompt template: {name}")
    if template_dir:
        path = os.path.join(template_dir, f"{name}.md")
        if os.path.isfile(path):
            with open(path, "r", encoding="utf-8") as fh:
                return fh.read()
    return TEMPLATES[name]


def tagged_block(tag: str, content: str) -> str:
    return f"<<{tag}>>\n{content.rstrip()}\n<<{tag}>>"


def build_history_prompt(instructions: str, history: str) -> str:
    """Instructions followed by the git history block."""
    return f"{instructions.rstrip()}\n\n{tagged_block('GIT_HISTORY', history)}\n"


def build_document_prompt(
    instructions: str,
    summaries: str,
    version: str,
    existing_section: str = "",
) -> str:
    """
    Prompt for a changelog, release notes or announcement.

    When the target section already has content, the model is told to keep
    every existing item; otherwise it is shown an example of the format.
    """
    parts = [instructions.replace("{version}", version).rstrip()]
    if existing_section.strip():
        parts.append(EXISTING_SECTION_RULE)
        parts.append(tagged_block("EXISTING_SECTION", existing_section))
    else:
        parts.append(EXAMPLE_CHANGELOG)
    parts.append(tagged_block("COMMIT_SUMMARIES", summaries))
    return "\n\n".join(parts) + "\n"
