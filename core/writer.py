"""
Writer - the changeish pipeline. Turns git history into commit messages,
summaries, changelog and release-notes sections, and announcements.

    history (git) → per-commit summaries (LLM) → document prompt
        → generated section (LLM) → section edit → normalize → atomic write
"""

import os
import sys
from typing import List, Optional

from config.settings import AppConfig
from core.document import read_document, update_document, write_document
from core.editor import UpdatePolicy
from core.generator import ResponseGenerator
from core.history import CACHED, CURRENT, HistoryExtractor
from core.prompts import build_document_prompt, build_history_prompt, load_template
from core.sections import count_sections, extract_section, section_identifiers
from core.version import resolve_version_from_file

FALLBACK_SECTION = "Current Changes"
HISTORY_FILE = "history.md"
PROMPT_FILE = "prompt.md"

# Document kinds merged section by section; announcements are rewritten whole
SECTIONED_KINDS = ("changelog", "release-notes")
DOCUMENT_KINDS = SECTIONED_KINDS + ("announce",)


class DocumentWriter:
    """Runs the generation pipeline for one repository."""

    def __init__(
        self,
        config: AppConfig,
        extractor: HistoryExtractor,
        generator: ResponseGenerator,
    ):
        self.config = config
        self.extractor = extractor
        self.generator = generator

    # ── output helpers ────────────────────────

    def _info(self, message: str) -> None:
        if self.config.verbose:
            print(message)

    def _debug(self, message: str) -> None:
        if self.config.debug:
            print(f"Debug: {message}", file=sys.stderr)

    def _save_artifact(self, enabled: bool, path: str, text: str) -> None:
        if enabled and not self.config.dry_run:
            write_document(path, text)
            self._info(f"💾 Saved {path}")

    # ── section naming ────────────────────────

    def current_version(self) -> str:
        """Version declared by the project's manifest, or ''."""
        version_file = self.extractor.find_version_file()
        if not version_file:
            self._debug("no version file found")
            return ""
        path = os.path.join(self.extractor.repo_path, version_file)
        version = resolve_version_from_file(path)
        self._debug(f"version file {version_file} declares '{version}'")
        return version

    def resolve_section_name(self, section_name: Optional[str] = None) -> str:
        """
        The heading the generated text goes under: an explicit name, else
        the current version, else "Current Changes".
        """
        name = section_name if section_name is not None else self.config.section_name
        if name and name.strip() and name.strip() != "auto":
            return name.strip()
        return self.current_version() or FALLBACK_SECTION

    # ── history-level commands ────────────────

    def commit_message(self, target: Optional[str]) -> str:
        """
        A generated commit message for working-tree or staged changes; the
        recorded messages for a commit or range.
        """
        target = target or CURRENT
        if target not in (CURRENT, CACHED):
            # validates the target before asking git for messages
            self.extractor.list_commits(target)
            return self.extractor.commit_messages(target)

        history = self.extractor.build_history(target)
        self._save_artifact(self.config.save_history, HISTORY_FILE, history)
        prompt = build_history_prompt(load_template("message", self.config.template_dir), history)
        self._save_artifact(self.config.save_prompt, PROMPT_FILE, prompt)
        return self.generator.generate(prompt)

    def summarize(self, target: Optional[str]) -> str:
        """One generated summary per change set in *target*, oldest first."""
        instructions = load_template("summary", self.config.template_dir)
        version_file = self.extractor.find_version_file()
        commits = self.extractor.list_commits(target)
        histories: List[str] = []
        summaries = []
        for i, commit in enumerate(commits, 1):
            self._info(f"  🔎 [{i}/{len(commits)}] Summarizing {commit}...")
            history = self.extractor.build_entry(commit, version_file).to_markdown()
            histories.append(history)
            summary = self.generator.generate(build_history_prompt(instructions, history))
            summaries.append(summary.strip())
        self._save_artifact(self.config.save_history, HISTORY_FILE, "\n".join(histories))
        return "\n\n".join(summaries) + "\n"

    # ── document commands ─────────────────────

    def output_path(self, kind: str) -> str:
        if self.config.output_file:
            return self.config.output_file
        return {
            "changelog": self.config.changelog_file,
            "release-notes": self.config.release_file,
            "announce": self.config.announce_file,
        }[kind]

    def write_document(self, kind: str, target: Optional[str]) -> Optional[str]:
        """
        Generate a changelog, release-notes or announcement document for
        *target* and write it.

        Returns the path written, or None when nothing was written (skip
        policy, dry run, or no language model available).

        Raises:
            InvalidUpdatePolicyError: before any git or model work.
        """
        if kind not in DOCUMENT_KINDS:
            raise ValueError(f"Unknown document kind: {kind}")
        policy = UpdatePolicy.parse(self.config.update_mode)

        path = self.output_path(kind)
        section = self.resolve_section_name()
        self._info(f"📌 Using section name: {section}")

        existing = ""
        if kind in SECTIONED_KINDS:
            existing = extract_section(read_document(path), section)
            if existing:
                self._debug(f"existing section '{section}' has {len(existing.splitlines())} lines")

        summaries = self.summarize(target)
        instructions = load_template(kind, self.config.template_dir)
        prompt = build_document_prompt(instructions, summaries, section, existing)
        self._save_artifact(self.config.save_prompt, PROMPT_FILE, prompt)

        if not self.generator.enabled:
            self._info("⏭️  Generation skipped. Use --model-provider to enable it.")
            return None

        self._info(f"✍️  Generating {kind} with {self.generator.model_name}...")
        content = self.generator.generate(prompt)

        if kind == "announce":
            if self.config.dry_run:
                print(content)
                self._info(f"Dry run: would write to {path}")
                return None
            write_document(path, content.rstrip("\n") + "\n")
            self._info(f"✅ Announcement written to {path}")
            return path

        if policy is UpdatePolicy.SKIP:
            print(content)
            self._info(f"⏭️  Update mode skip: {path} left unchanged.")
            return None

        updated = update_document(
            path,
            content,
            section,
            policy,
            footer_marker=self.config.footer_marker,
            dry_run=self.config.dry_run,
        )
        self._debug(
            f"{path} has {count_sections(updated)} sections: "
            f"{', '.join(section_identifiers(updated))}"
        )
        if self.config.dry_run:
            print(updated)
            self._info(f"Dry run: would write to {path}")
            return None
        self._info(f"✅ Section '{section}' written to {path}")
        return path
