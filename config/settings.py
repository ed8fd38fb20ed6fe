"""
Configuration settings for changeish.
Loads values from a .env file in the working directory automatically.
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

# Load .env from the repository being documented
load_dotenv()


DEFAULT_FOOTER = "[Managed by changeish](https://github.com/itlackey/changeish)"


@dataclass
class LLMConfig:
    """LLM provider configuration."""
    provider: Optional[str] = None          # auto | local | remote | cerebras | none
    model: Optional[str] = None             # local (Ollama) model
    api_model: Optional[str] = None         # remote model, falls back to `model`
    api_url: Optional[str] = None
    api_key: Optional[str] = None
    temperature: float = 0.2
    max_tokens: int = 8192
    request_timeout: float = 300.0

    def __post_init__(self):
        if self.provider is None:
            self.provider = os.environ.get("CHANGEISH_MODEL_PROVIDER", "auto")
        if self.model is None:
            self.model = os.environ.get("CHANGEISH_MODEL", "qwen2.5-coder")
        if self.api_model is None:
            self.api_model = os.environ.get("CHANGEISH_API_MODEL", "")
        if self.api_url is None:
            self.api_url = os.environ.get("CHANGEISH_API_URL", "")
        if self.api_key is None:
            self.api_key = os.environ.get("CHANGEISH_API_KEY", "")


@dataclass
class HistoryConfig:
    """Git history extraction configuration."""
    include_pattern: Optional[str] = None
    exclude_pattern: Optional[str] = None
    todo_pattern: Optional[str] = None
    version_file: Optional[str] = None
    # Manifests checked, in order, when no version file is given
    version_candidates: tuple = (
        "package.json", "pyproject.toml", "setup.py",
        "Cargo.toml", "composer.json", "build.gradle", "pom.xml",
    )

    def __post_init__(self):
        if self.todo_pattern is None:
            self.todo_pattern = os.environ.get("CHANGEISH_TODO_PATTERN", "*todo*")


@dataclass
class AppConfig:
    """Top-level application configuration."""
    llm: LLMConfig = field(default_factory=LLMConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    changelog_file: str = "CHANGELOG.md"
    release_file: str = "RELEASE_NOTES.md"
    announce_file: str = "ANNOUNCEMENT.md"
    output_file: Optional[str] = None
    update_mode: str = "auto"
    section_name: str = "auto"
    footer_marker: str = DEFAULT_FOOTER
    template_dir: Optional[str] = None
    save_prompt: bool = False
    save_history: bool = False
    dry_run: bool = False
    verbose: bool = True
    debug: bool = False


def load_config_file(path: str) -> None:
    """
    Load an env-style config file, overriding values already in the
    environment. Raises FileNotFoundError when the file does not exist.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"config file '{path}' not found.")
    load_dotenv(path, override=True)
