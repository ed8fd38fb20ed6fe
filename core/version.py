"""
Version resolution - pulls a semantic version token out of free text,
a project manifest, or a unified diff.

Resolution never raises: an empty string means "no version context" and
callers fall back to a fixed section label.
"""

import os
import re

# Tagged versions win over incidental numeric triples
_TAGGED_VERSION_RE = re.compile(r"[vV]\d+\.\d+\.\d+")
_BARE_VERSION_RE = re.compile(r"\d+\.\d+\.\d+")

# A line that declares a version, e.g. `version = "1.2.3"` or `"version": "2.0"`
_VERSION_LINE_RE = re.compile(r"version[^0-9]*[0-9]+\.[0-9]+(\.[0-9]+)?", re.IGNORECASE)


def resolve_version(text: str) -> str:
    """Return the first v-prefixed version in *text*, else the first bare one."""
    if not text:
        return ""
    match = _TAGGED_VERSION_RE.search(text) or _BARE_VERSION_RE.search(text)
    return match.group(0) if match else ""


def find_version_line(text: str) -> str:
    """Return the first line of *text* that declares a version, or ''."""
    for line in text.splitlines():
        if _VERSION_LINE_RE.search(line):
            return line
    return ""


def resolve_version_from_text(text: str) -> str:
    """Resolve the version declared in file contents already in memory."""
    return resolve_version(find_version_line(text))


def resolve_version_from_file(path: str) -> str:
    """
    Resolve the version declared in the file at *path*.

    A missing or unreadable file yields '' rather than an error.
    """
    if not path or not os.path.isfile(path):
        return ""
    try:
        with open(path, "r", encoding="utf-8", errors="ignore") as fh:
            content = fh.read()
    except OSError:
        return ""
    return resolve_version_from_text(content)


def resolve_version_from_diff(diff: str) -> str:
    """
    Resolve the version introduced by a unified diff: the first added line
    that mentions "version". File headers (+++) are ignored.
    """
    for line in diff.splitlines():
        if not line.startswith("+") or line.startswith("+++"):
            continue
        if "version" in line.lower():
            version = resolve_version(line)
            if version:
                return version
    return ""
