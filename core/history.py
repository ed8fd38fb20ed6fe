"""
History extractor - the only component that talks to git.

Builds the markdown history blob that the prompts are made of: the commit
message (or a fixed label for staged/working-tree changes), the version
declared by the project's manifest, the unified diff, and a separate diff
of TODO files.

Targets:
    --current   working tree against the index (plus untracked files)
    --cached    index against HEAD
    <commit>    a single commit against its parent
    <a>..<b>    every commit in the range, oldest first
"""

import fnmatch
import os
import subprocess
import sys
from typing import List, Optional

from pydantic import BaseModel, Field

from config.settings import HistoryConfig
from core.errors import GitError
from core.version import resolve_version_from_diff, resolve_version_from_text

CURRENT = "--current"
CACHED = "--cached"

# `git hash-object -t tree /dev/null`; diff base for root commits
EMPTY_TREE = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"

# --compact-summary alone switches git to stat-only output; --patch keeps the hunks
DIFF_OPTIONS = [
    "--patch", "--minimal", "--no-prefix", "--unified=0", "--no-color",
    "-b", "-w", "--compact-summary", "--color-moved=no",
]
TODO_DIFF_OPTIONS = ["--unified=0", "-b", "-w", "--no-prefix", "--color=never"]


# ──────────────────────────────────────────────
# History entry
# ──────────────────────────────────────────────

class HistoryEntry(BaseModel):
    """Everything the model is told about one commit or change set."""
    label: str = Field(description="Commit id, or 'Staged Changes' / 'Current Changes'")
    message: str = Field(default="", description="Commit message or change-set label")
    version: str = Field(default="", description="Version note, e.g. '1.2.0 → 1.3.0' or '1.3.0 (current)'")
    diff: str = Field(default="", description="Unified diff of the change set")
    todo_diff: str = Field(default="", description="Diff restricted to TODO files")

    def to_markdown(self) -> str:
        parts = [f"**Message:** {self.message.strip()}\n"]
        if self.version:
            parts.append(f"**Version:** {self.version}\n")
        parts.append(f"```diff\n{self.diff.rstrip()}\n```\n")
        if self.todo_diff.strip():
            parts.append(f"\n### TODO Changes\n```diff\n{self.todo_diff.rstrip()}\n```\n")
        return "".join(parts)


# ──────────────────────────────────────────────
# Extractor
# ──────────────────────────────────────────────

class HistoryExtractor:
    """Reads diffs, versions and commit metadata from a git repository."""

    def __init__(
        self,
        config: Optional[HistoryConfig] = None,
        repo_path: str = ".",
        debug: bool = False,
    ):
        self.config = config or HistoryConfig()
        self.repo_path = repo_path
        self.debug = debug

    # ── git plumbing ──────────────────────────

    def _run(self, args: List[str]) -> subprocess.CompletedProcess:
        if self.debug:
            print(f"Debug: git {' '.join(args)}", file=sys.stderr)
        try:
            return subprocess.run(
                ["git", "--no-pager", *args],
                cwd=self.repo_path,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise GitError("git is not installed or not on PATH.") from e

    def _git(self, args: List[str]) -> str:
        """Run git and return stdout, raising GitError on a non-zero exit."""
        result = self._run(args)
        if result.returncode != 0:
            raise GitError(f"git {' '.join(args)} failed: {result.stderr.strip()}")
        return result.stdout

    def _git_ok(self, args: List[str]) -> bool:
        return self._run(args).returncode == 0

    # ── repository & targets ──────────────────

    def ensure_repository(self) -> None:
        """Raise GitError unless repo_path is a work tree with at least one commit."""
        if not self._git_ok(["rev-parse", "--is-inside-work-tree"]):
            raise GitError("Not a git repository. Run changeish inside a git repository.")
        if not self._git_ok(["rev-parse", "--verify", "--quiet", "HEAD"]):
            raise GitError("No commits found in repository. Nothing to show.")

    def is_commit(self, rev: str) -> bool:
        return self._git_ok(["rev-parse", "--verify", "--quiet", f"{rev}^{{commit}}"])

    def list_commits(self, target: Optional[str]) -> List[str]:
        """
        Expand *target* into the change sets to describe. Working-tree and
        staged targets are returned as-is; ranges expand oldest first.
        """
        if not target or target == CURRENT:
            return [CURRENT]
        if target == CACHED:
            return [CACHED]
        if ".." in target:
            if not self._git_ok(["rev-list", target]):
                raise GitError(f"Invalid commit range: {target}")
            commits = self._git(["rev-list", "--reverse", target]).split()
            if not commits:
                raise GitError(f"No commits found in range {target}")
            return commits
        if not self.is_commit(target):
            raise GitError(f"Invalid commit ID: {target}")
        return [target]

    def message_header(self, target: Optional[str]) -> str:
        if target == CACHED:
            return "Staged Changes"
        if not target or target == CURRENT:
            return "Current Changes"
        return self._git(["log", "-1", "--pretty=%B", target]).strip()

    def commit_messages(self, target: str) -> str:
        """Plain commit messages for a commit or a range, oldest first."""
        if ".." in target:
            return self._git(["log", "--reverse", "--pretty=%B", target]).strip()
        return self.message_header(target)

    # ── versions ──────────────────────────────

    def find_version_file(self) -> Optional[str]:
        """
        The explicit version file if it exists, otherwise the first
        manifest from the candidate list found in the repository root.
        """
        explicit = self.config.version_file
        if explicit and os.path.isfile(os.path.join(self.repo_path, explicit)):
            return explicit
        for candidate in self.config.version_candidates:
            if os.path.isfile(os.path.join(self.repo_path, candidate)):
                return candidate
        return None

    def _read_disk(self, version_file: str) -> str:
        path = os.path.join(self.repo_path, version_file)
        if not os.path.isfile(path):
            return ""
        with open(path, "r", encoding="utf-8", errors="ignore") as fh:
            return fh.read()

    def _read_blob(self, object_name: str) -> Optional[str]:
        result = self._run(["show", object_name])
        return result.stdout if result.returncode == 0 else None

    def _version_source(self, target: Optional[str], version_file: str) -> str:
        """Contents of *version_file* as of *target*, falling back to the disk."""
        if not target or target == CURRENT:
            return self._read_disk(version_file)
        if target == CACHED:
            staged = self._read_blob(f":{version_file}")
            return staged if staged is not None else self._read_disk(version_file)
        if not self.is_commit(target):
            return ""
        committed = self._read_blob(f"{target}:{version_file}")
        return committed if committed is not None else self._read_disk(version_file)

    def _previous_source(self, target: Optional[str], version_file: str) -> str:
        """Contents of *version_file* on the other side of the diff."""
        if not target or target == CURRENT:
            blob = self._read_blob(f":{version_file}")
        elif target == CACHED:
            blob = self._read_blob(f"HEAD:{version_file}")
        elif self.is_commit(f"{target}^"):
            blob = self._read_blob(f"{target}^:{version_file}")
        else:
            blob = None
        return blob or ""

    def get_version_info(self, target: Optional[str], version_file: Optional[str]) -> str:
        """Version declared in *version_file* as of *target*, or ''."""
        if not version_file:
            return ""
        return resolve_version_from_text(self._version_source(target, version_file))

    def version_note(self, target: Optional[str], version_file: Optional[str]) -> str:
        """'old → new' when the target changes the version, else 'new (current)'."""
        new = self.get_version_info(target, version_file)
        if not new:
            return ""
        old = resolve_version_from_text(self._previous_source(target, version_file))
        if old and old != new:
            return f"{old} → {new}"
        return f"{new} (current)"

    # ── diffs ─────────────────────────────────

    def _target_args(self, target: Optional[str]) -> List[str]:
        if not target or target == CURRENT:
            return []
        if target == CACHED:
            return ["--cached"]
        if self.is_commit(f"{target}^"):
            return [f"{target}^", target]
        return [EMPTY_TREE, target]

    def _pathspecs(self) -> List[str]:
        specs = []
        if self.config.include_pattern:
            specs.append(self.config.include_pattern)
        if self.config.exclude_pattern:
            specs.append(f":(exclude){self.config.exclude_pattern}")
        return specs

    @staticmethod
    def _pattern_matches(path: str, pattern: str) -> bool:
        """Glob match, or the path lies under *pattern* taken as a directory."""
        directory = pattern.rstrip("/")
        return fnmatch.fnmatch(path, pattern) or path == directory or path.startswith(directory + "/")

    def _matches_patterns(self, path: str) -> bool:
        include = self.config.include_pattern
        exclude = self.config.exclude_pattern
        if include and not self._pattern_matches(path, include):
            return False
        if exclude and self._pattern_matches(path, exclude):
            return False
        return True

    def _untracked_diffs(self) -> List[str]:
        diffs = []
        untracked = self._git(["ls-files", "--others", "--exclude-standard"]).splitlines()
        for path in untracked:
            if not os.path.isfile(os.path.join(self.repo_path, path)):
                continue
            if not self._matches_patterns(path):
                continue
            # --no-index exits 1 when the files differ
            result = self._run(["diff", *DIFF_OPTIONS, "--no-index", "/dev/null", path])
            if result.stdout.strip():
                diffs.append(result.stdout.rstrip())
        return diffs

    def build_diff(self, target: Optional[str]) -> str:
        """Unified diff of the target, restricted to the include/exclude patterns."""
        args = ["diff", *self._target_args(target), *DIFF_OPTIONS]
        pathspecs = self._pathspecs()
        if pathspecs:
            args += ["--", *pathspecs]
        parts = [self._git(args).rstrip()]
        if not target or target == CURRENT:
            parts.extend(self._untracked_diffs())
        return "\n".join(part for part in parts if part)

    def build_todo_diff(self, target: Optional[str]) -> str:
        """Diff of files matching the TODO pattern; '' when there is none."""
        pattern = self.config.todo_pattern
        if not pattern:
            return ""
        result = self._run(["diff", *self._target_args(target), *TODO_DIFF_OPTIONS, "--", pattern])
        return result.stdout.rstrip() if result.returncode == 0 else ""

    # ── history ───────────────────────────────

    def build_entry(self, target: Optional[str], version_file: Optional[str] = None) -> HistoryEntry:
        """
        Collect the history entry for a single change set. Without a version
        file, a version line added by the diff itself is reported instead.
        """
        diff = self.build_diff(target)
        version = self.version_note(target, version_file) or resolve_version_from_diff(diff)
        return HistoryEntry(
            label=target or CURRENT,
            message=self.message_header(target),
            version=version,
            diff=diff,
            todo_diff=self.build_todo_diff(target),
        )

    def build_history(self, target: Optional[str]) -> str:
        """Markdown history blob for every change set in *target*."""
        version_file = self.find_version_file()
        entries = [
            self.build_entry(commit, version_file)
            for commit in self.list_commits(target)
        ]
        return "\n".join(entry.to_markdown() for entry in entries)
