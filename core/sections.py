"""
Section locator - finds level-2 sections (`## name` or `## [name]`) in a
markdown document.

Only the two-character `##` prefix is understood; deeper (`###`) and
shallower (`#`) headings are ordinary content.
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class SectionSpan:
    """Inclusive line range of a section: heading line through its last content line."""
    start: int
    end: int


def is_section_heading(line: str) -> bool:
    """True for a level-2 heading line."""
    return line.startswith("##") and not line.startswith("###")


def is_title_heading(line: str) -> bool:
    """True for a level-1 heading line."""
    return line.startswith("# ")


def heading_identifier(line: str) -> str:
    """
    Text of a level-2 heading with one layer of surrounding brackets removed.
    `## [v1.2.0]` and `##  v1.2.0 ` both give 'v1.2.0'.
    """
    text = line[2:].strip()
    if len(text) >= 2 and text.startswith("[") and text.endswith("]"):
        text = text[1:-1].strip()
    return text


def locate_section(lines: List[str], identifier: str) -> Optional[SectionSpan]:
    """
    Locate the first section whose heading matches *identifier* exactly.

    Later sections with the same identifier are left alone; they are plain
    content as far as replacement is concerned.
    """
    start = None
    for i, line in enumerate(lines):
        if not is_section_heading(line):
            continue
        if start is not None:
            return SectionSpan(start=start, end=i - 1)
        if heading_identifier(line) == identifier:
            start = i
    if start is None:
        return None
    return SectionSpan(start=start, end=len(lines) - 1)


def extract_section(document: str, identifier: str) -> str:
    """Return the content of the named section without its heading, or ''."""
    lines = document.splitlines()
    span = locate_section(lines, identifier)
    if span is None:
        return ""
    return "\n".join(lines[span.start + 1:span.end + 1]).strip("\n")


def count_sections(document: str) -> int:
    """Number of level-2 headings in *document*."""
    return sum(1 for line in document.splitlines() if is_section_heading(line))


def section_identifiers(document: str) -> List[str]:
    """Identifiers of every level-2 heading, in document order."""
    return [
        heading_identifier(line)
        for line in document.splitlines()
        if is_section_heading(line)
    ]
