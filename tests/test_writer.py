"""Tests for the generation pipeline with fake git and model back ends."""

import pytest

from config.settings import AppConfig, HistoryConfig, LLMConfig
from core.errors import InvalidUpdatePolicyError
from core.history import CURRENT, HistoryEntry
from core.writer import FALLBACK_SECTION, DocumentWriter

MARKER = "[Managed by changeish](https://github.com/itlackey/changeish)"


class FakeExtractor:
    def __init__(self, repo_path, version_file=None, commits=("c1", "c2")):
        self.repo_path = repo_path
        self.version_file = version_file
        self.commits = list(commits)

    def find_version_file(self):
        return self.version_file

    def list_commits(self, target):
        if target in (None, CURRENT):
            return [CURRENT]
        return self.commits

    def commit_messages(self, target):
        return "\n\n".join(f"message {c}" for c in self.commits)

    def build_entry(self, commit, version_file=None):
        return HistoryEntry(label=commit, message=f"message {commit}", diff=f"+change in {commit}")

    def build_history(self, target):
        return "\n".join(self.build_entry(c).to_markdown() for c in self.list_commits(target))


class FakeGenerator:
    def __init__(self, enabled=True, document="### Fixes\n\n- fixed a bug"):
        self.enabled = enabled
        self.model_name = "fake-model"
        self.document = document
        self.prompts = []

    def generate(self, prompt):
        self.prompts.append(prompt)
        if not self.enabled:
            return prompt
        if "<<COMMIT_SUMMARIES>>" in prompt:
            return self.document
        commit = prompt.split("**Message:** message ")[-1].split("\n")[0]
        return f"- summary of {commit}"


@pytest.fixture
def make_writer(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    def factory(extractor=None, generator=None, **options):
        settings = dict(
            llm=LLMConfig(provider="none"),
            history=HistoryConfig(),
            changelog_file=str(tmp_path / "CHANGELOG.md"),
            release_file=str(tmp_path / "RELEASE_NOTES.md"),
            announce_file=str(tmp_path / "ANNOUNCEMENT.md"),
            verbose=False,
        )
        settings.update(options)
        config = AppConfig(**settings)
        return DocumentWriter(
            config,
            extractor or FakeExtractor(str(tmp_path)),
            generator or FakeGenerator(),
        )

    return factory


def test_section_name_resolution(make_writer, tmp_path):
    assert make_writer(section_name="v9.9.9").resolve_section_name() == "v9.9.9"
    assert make_writer().resolve_section_name() == FALLBACK_SECTION

    (tmp_path / "package.json").write_text('{\n  "version": "2.0.0"\n}\n')
    writer = make_writer(extractor=FakeExtractor(str(tmp_path), version_file="package.json"))
    assert writer.resolve_section_name() == "2.0.0"
    assert writer.resolve_section_name("  custom  ") == "custom"


def test_commit_message_for_working_tree(make_writer):
    generator = FakeGenerator()
    message = make_writer(generator=generator).commit_message(CURRENT)
    assert message == "- summary of --current"
    assert "<<GIT_HISTORY>>" in generator.prompts[0]


def test_commit_message_for_range_uses_recorded_messages(make_writer):
    generator = FakeGenerator()
    assert make_writer(generator=generator).commit_message("a..b") == "message c1\n\nmessage c2"
    assert generator.prompts == []


def test_summarize_one_per_commit(make_writer):
    generator = FakeGenerator()
    summary = make_writer(generator=generator).summarize("a..b")
    assert summary == "- summary of c1\n\n- summary of c2\n"
    assert len(generator.prompts) == 2


def test_save_history_and_prompt(make_writer, tmp_path):
    make_writer(save_history=True, save_prompt=True).commit_message(CURRENT)
    assert "**Message:** message --current" in (tmp_path / "history.md").read_text()
    assert "<<GIT_HISTORY>>" in (tmp_path / "prompt.md").read_text()


def test_changelog_written(make_writer, tmp_path):
    generator = FakeGenerator()
    path = make_writer(generator=generator).write_document("changelog", "a..b")
    assert path == str(tmp_path / "CHANGELOG.md")
    text = (tmp_path / "CHANGELOG.md").read_text()
    assert text == f"## Current Changes\n### Fixes\n\n- fixed a bug\n\n{MARKER}\n"
    final_prompt = generator.prompts[-1]
    assert "- summary of c1\n\n- summary of c2" in final_prompt
    assert "<<EXAMPLE_OUTPUT>>" in final_prompt


def test_existing_section_is_sent_and_replaced(make_writer, tmp_path):
    changelog = tmp_path / "CHANGELOG.md"
    changelog.write_text(f"# Changelog\n\n## v1.0.0\n- old item\n\n## v0.9.0\n- older\n\n{MARKER}\n")
    generator = FakeGenerator()
    make_writer(generator=generator, section_name="v1.0.0").write_document("changelog", "a..b")

    assert "<<EXISTING_SECTION>>\n- old item\n<<EXISTING_SECTION>>" in generator.prompts[-1]
    text = changelog.read_text()
    assert "- old item" not in text
    assert text.index("- fixed a bug") < text.index("## v0.9.0")
    assert text.count(MARKER) == 1


def test_prepend_mode(make_writer, tmp_path):
    changelog = tmp_path / "CHANGELOG.md"
    changelog.write_text("# Changelog\n\n## v1.0.0\n- old item\n")
    make_writer(update_mode="prepend", section_name="v1.1.0").write_document("release-notes", "a..b")
    assert changelog.read_text() == "# Changelog\n\n## v1.0.0\n- old item\n"
    notes = (tmp_path / "RELEASE_NOTES.md").read_text()
    assert notes.startswith("## v1.1.0\n")


def test_output_file_override(make_writer, tmp_path):
    target = tmp_path / "docs" / "HISTORY.md"
    path = make_writer(output_file=str(target)).write_document("changelog", "a..b")
    assert path == str(target)
    assert target.exists()
    assert not (tmp_path / "CHANGELOG.md").exists()


def test_skip_mode_prints_without_writing(make_writer, tmp_path, capsys):
    assert make_writer(update_mode="skip").write_document("changelog", "a..b") is None
    assert "- fixed a bug" in capsys.readouterr().out
    assert not (tmp_path / "CHANGELOG.md").exists()


def test_dry_run(make_writer, tmp_path, capsys):
    assert make_writer(dry_run=True).write_document("changelog", "a..b") is None
    assert "## Current Changes" in capsys.readouterr().out
    assert not (tmp_path / "CHANGELOG.md").exists()


def test_invalid_mode_fails_before_generation(make_writer):
    generator = FakeGenerator()
    with pytest.raises(InvalidUpdatePolicyError):
        make_writer(generator=generator, update_mode="merge").write_document("changelog", "a..b")
    assert generator.prompts == []


def test_disabled_generator_writes_nothing(make_writer, tmp_path):
    writer = make_writer(generator=FakeGenerator(enabled=False), verbose=True)
    assert writer.write_document("changelog", "a..b") is None
    assert not (tmp_path / "CHANGELOG.md").exists()


def test_announcement_written_whole(make_writer, tmp_path):
    (tmp_path / "ANNOUNCEMENT.md").write_text("old announcement\n")
    generator = FakeGenerator(document="# Demo 2.0\n\nIt is here.")
    make_writer(generator=generator).write_document("announce", "a..b")
    assert (tmp_path / "ANNOUNCEMENT.md").read_text() == "# Demo 2.0\n\nIt is here.\n"


def test_unknown_kind(make_writer):
    with pytest.raises(ValueError):
        make_writer().write_document("poem", "a..b")


def test_debug_lists_sections(make_writer, tmp_path, capsys):
    (tmp_path / "CHANGELOG.md").write_text("# Changelog\n\n## v1.0.0\n- old item\n")
    make_writer(debug=True, section_name="v1.1.0").write_document("changelog", "a..b")
    err = capsys.readouterr().err
    assert "has 2 sections: v1.1.0, v1.0.0" in err
