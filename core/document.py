"""
Document store - reads a markdown document, applies a section update and
writes it back atomically.

A missing document reads as empty. Writes go to a temporary file in the
target's directory and are moved into place with os.replace, so an
interrupted or failed write leaves the original file as it was.
"""

import os
import stat
import tempfile
from pathlib import Path
from typing import Optional

from config.settings import DEFAULT_FOOTER
from core.editor import SectionEditor, UpdatePolicy
from core.normalizer import DocumentNormalizer


def read_document(path: str) -> str:
    """Return the document at *path*, or '' when it does not exist yet."""
    if not os.path.isfile(path):
        return ""
    with open(path, "r", encoding="utf-8") as fh:
        return fh.read()


def _target_mode(destination: Path) -> int:
    """Permission bits the written file should end up with."""
    if destination.exists():
        return stat.S_IMODE(destination.stat().st_mode)
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def write_document(path: str, text: str) -> None:
    """
    Write *text* to *path* through a temp file and an atomic rename.

    An existing file keeps its permission bits; a new one gets the usual
    umask-derived mode rather than the 0600 of the temp file.
    """
    destination = Path(path)
    destination.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        newline="\n",
        dir=str(destination.parent),
        prefix=f".{destination.name}.",
        suffix=".tmp",
        delete=False,
    )
    temp_name = handle.name
    try:
        with handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(temp_name, _target_mode(destination))
        os.replace(temp_name, destination)
    finally:
        if os.path.exists(temp_name):
            os.remove(temp_name)


def render_update(
    document: str,
    identifier: str,
    content: str,
    policy: "str | UpdatePolicy",
    footer_marker: str = DEFAULT_FOOTER,
) -> str:
    """Apply the section edit and normalize, without touching the disk."""
    policy = UpdatePolicy.parse(policy)
    if policy is UpdatePolicy.SKIP:
        return document
    edited = SectionEditor.apply(document, identifier, content, policy)
    return DocumentNormalizer.normalize(edited, footer_marker)


def update_document(
    path: str,
    content: str,
    identifier: str,
    policy: "str | UpdatePolicy" = UpdatePolicy.REPLACE,
    footer_marker: str = DEFAULT_FOOTER,
    dry_run: bool = False,
) -> Optional[str]:
    """
    Merge *content* into the document at *path* under `## <identifier>`.

    Returns the new document text, or None when the policy is skip (nothing
    is read or written). With *dry_run* the text is computed but not saved.

    Raises:
        InvalidUpdatePolicyError: unknown *policy*; raised before any I/O.
        OSError: the document could not be read or written.
    """
    policy = UpdatePolicy.parse(policy)
    if policy is UpdatePolicy.SKIP:
        return None

    updated = render_update(read_document(path), identifier, content, policy, footer_marker)
    if not dry_run:
        write_document(path, updated)
    return updated
