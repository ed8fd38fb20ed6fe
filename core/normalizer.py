"""
Document normalizer - tidies a markdown document after an edit.

Rules, in order:
  1. Runs of blank lines collapse to a single empty line.
  2. The document ends with exactly one newline.
  3. The footer marker line sits within the last few lines, exactly once.
     A marker quoted inside other text is content, not a footer.

Running the normalizer on its own output changes nothing.
"""

from typing import List

from config.settings import DEFAULT_FOOTER

FOOTER_WINDOW = 5


class DocumentNormalizer:
    """Collapses blank lines, fixes the trailing newline and places the footer."""

    @staticmethod
    def normalize(document: str, footer_marker: str = DEFAULT_FOOTER) -> str:
        lines = DocumentNormalizer._collapse_blank_lines(document.splitlines())
        lines = DocumentNormalizer._strip_trailing_blank_lines(lines)
        if footer_marker and footer_marker.strip():
            lines = DocumentNormalizer._ensure_footer(lines, footer_marker.strip())
        return "\n".join(lines) + "\n" if lines else ""

    @staticmethod
    def has_footer(lines: List[str], footer_marker: str) -> bool:
        """True when one of the last FOOTER_WINDOW lines is the marker itself."""
        return any(line.strip() == footer_marker for line in lines[-FOOTER_WINDOW:])

    @staticmethod
    def _collapse_blank_lines(lines: List[str]) -> List[str]:
        collapsed: List[str] = []
        for line in lines:
            blank = not line.strip()
            if blank and collapsed and collapsed[-1] == "":
                continue
            collapsed.append("" if blank else line)
        return collapsed

    @staticmethod
    def _strip_trailing_blank_lines(lines: List[str]) -> List[str]:
        end = len(lines)
        while end > 0 and not lines[end - 1].strip():
            end -= 1
        return lines[:end]

    @staticmethod
    def _ensure_footer(lines: List[str], footer_marker: str) -> List[str]:
        if DocumentNormalizer.has_footer(lines, footer_marker):
            return lines
        # A footer buried by an appended section moves back to the end
        kept = [line for line in lines if line.strip() != footer_marker]
        kept = DocumentNormalizer._collapse_blank_lines(kept)
        kept = DocumentNormalizer._strip_trailing_blank_lines(kept)
        if not kept:
            return [footer_marker]
        return kept + ["", footer_marker]
