"""
Section editor - merges a generated content block into a markdown document
under one of four update policies.

The document is split into lines once, edited in memory, and joined once.
Normalization (blank lines, trailing newline, footer) is a separate step;
see core.normalizer.
"""

from enum import Enum
from typing import List

from core.errors import InvalidUpdatePolicyError
from core.sections import is_title_heading, locate_section


class UpdatePolicy(str, Enum):
    """How new content is merged into an existing document."""
    REPLACE = "replace"
    PREPEND = "prepend"
    APPEND = "append"
    SKIP = "skip"

    @classmethod
    def parse(cls, value: "str | UpdatePolicy") -> "UpdatePolicy":
        """
        Map a user-facing mode onto a policy. `auto` and `update` are
        spellings of `replace`; `none` is a spelling of `skip`.
        """
        if isinstance(value, UpdatePolicy):
            return value
        key = (value or "").strip().lower()
        policy = _POLICY_ALIASES.get(key)
        if policy is None:
            raise InvalidUpdatePolicyError(value)
        return policy


_POLICY_ALIASES = {
    "auto": UpdatePolicy.REPLACE,
    "update": UpdatePolicy.REPLACE,
    "replace": UpdatePolicy.REPLACE,
    "prepend": UpdatePolicy.PREPEND,
    "append": UpdatePolicy.APPEND,
    "skip": UpdatePolicy.SKIP,
    "none": UpdatePolicy.SKIP,
}


class SectionEditor:
    """Applies an update policy to one named section of a document."""

    @staticmethod
    def apply(
        document: str,
        identifier: str,
        content: str,
        policy: "str | UpdatePolicy",
    ) -> str:
        """
        Return *document* with *content* merged in under the heading
        `## <identifier>`.

        - skip:    the document, unchanged.
        - replace: the first matching section keeps its heading line and gets
                   *content* as its body; the old body is discarded. Falls
                   back to prepend when no section matches.
        - prepend: a new section right after the first `# ` title, or at the
                   top when there is no title. Existing sections with the
                   same identifier are kept.
        - append:  a new section at the end of the document.

        Raises:
            InvalidUpdatePolicyError: *policy* is not a known mode.
        """
        policy = UpdatePolicy.parse(policy)
        if policy is UpdatePolicy.SKIP:
            return document

        lines = document.splitlines()
        body = SectionEditor._content_lines(content)

        if policy is UpdatePolicy.REPLACE:
            span = locate_section(lines, identifier)
            if span is None:
                return SectionEditor._join(SectionEditor._prepend(lines, identifier, body))
            edited = lines[:span.start + 1] + body + [""] + lines[span.end + 1:]
            return SectionEditor._join(edited)

        if policy is UpdatePolicy.PREPEND:
            return SectionEditor._join(SectionEditor._prepend(lines, identifier, body))

        separator = [""] if lines else []
        return SectionEditor._join(lines + separator + SectionEditor._block(identifier, body))

    @staticmethod
    def _prepend(lines: List[str], identifier: str, body: List[str]) -> List[str]:
        block = SectionEditor._block(identifier, body)
        for i, line in enumerate(lines):
            if is_title_heading(line):
                return lines[:i + 1] + [""] + block + lines[i + 1:]
        return block + lines

    @staticmethod
    def _block(identifier: str, body: List[str]) -> List[str]:
        return [f"## {identifier}"] + body + [""]

    @staticmethod
    def _content_lines(content: str) -> List[str]:
        text = (content or "").strip("\n")
        return text.splitlines() if text.strip() else []

    @staticmethod
    def _join(lines: List[str]) -> str:
        return "\n".join(lines) + "\n" if lines else ""
