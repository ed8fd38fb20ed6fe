"""
Response generator - sends a prompt to a language model and returns its text.

Providers:
    local     an Ollama model on this machine
    remote    any OpenAI-compatible chat completions endpoint
    cerebras  the Cerebras inference API
    none      no model; the prompt itself is returned
    auto      local when Ollama is running, else remote when an API key and
              URL are configured, else none
"""

import os
import re
import shutil
import subprocess
import sys
from typing import Optional

from config.settings import LLMConfig
from core.errors import GenerationError

PROVIDERS = ("auto", "local", "remote", "cerebras", "none")

_PROVIDER_ALIASES = {"api": "remote", "ollama": "local"}

_FENCE_RE = re.compile(r"^\s*```[\w-]*\s*\n(.*?)\n\s*```\s*$", re.DOTALL)


def ollama_available() -> bool:
    """True when the `ollama` binary exists and its daemon answers."""
    if shutil.which("ollama") is None:
        return False
    try:
        result = subprocess.run(
            ["ollama", "list"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired):
        return False
    return result.returncode == 0


def resolve_provider(config: LLMConfig, local_available: Optional[bool] = None) -> str:
    """
    Turn the configured provider into a concrete one, checking that the
    settings it needs are present.

    Raises:
        GenerationError: unknown provider, or remote/cerebras without credentials.
    """
    provider = (config.provider or "auto").strip().lower()
    provider = _PROVIDER_ALIASES.get(provider, provider)
    if provider not in PROVIDERS:
        raise GenerationError(
            f"Unknown --model-provider: '{config.provider}'. "
            f"Expected one of {', '.join(PROVIDERS)}."
        )

    if provider == "auto":
        if local_available is None:
            local_available = ollama_available()
        if local_available:
            return "local"
        if config.api_key and config.api_url:
            return "remote"
        print(
            "Warning: ollama is not available and no remote API is configured "
            "(set CHANGEISH_API_KEY and CHANGEISH_API_URL); generation disabled.",
            file=sys.stderr,
        )
        return "none"

    if provider == "remote":
        missing = []
        if not config.api_key:
            missing.append("CHANGEISH_API_KEY")
        if not config.api_url:
            missing.append("API URL (--api-url or CHANGEISH_API_URL)")
        if missing:
            raise GenerationError(
                f"remote provider selected but {' and '.join(missing)} is not set."
            )

    if provider == "cerebras" and not (config.api_key or os.environ.get("CEREBRAS_API_KEY")):
        raise GenerationError("cerebras provider selected but CEREBRAS_API_KEY is not set.")

    return provider


def api_base_from_url(url: str) -> str:
    """
    Chat-completions URLs are accepted as-is from the environment; the
    client wants the base, e.g. https://api.openai.com/v1.
    """
    base = url.rstrip("/")
    for suffix in ("/chat/completions", "/completions"):
        if base.endswith(suffix):
            return base[: -len(suffix)]
    return base


def build_llm(provider: str, config: LLMConfig):
    """Instantiate the llama_index LLM for a concrete provider."""
    # Lazy imports so only the selected client has to load
    if provider == "local":
        from llama_index.llms.ollama import Ollama

        return Ollama(
            model=config.model,
            temperature=config.temperature,
            request_timeout=config.request_timeout,
        )
    if provider == "remote":
        from llama_index.llms.openai_like import OpenAILike

        return OpenAILike(
            model=config.api_model or config.model,
            api_base=api_base_from_url(config.api_url),
            api_key=config.api_key,
            is_chat_model=True,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.request_timeout,
        )
    if provider == "cerebras":
        from llama_index.llms.cerebras import Cerebras

        return Cerebras(
            model=config.api_model or os.environ.get("CEREBRAS_MODEL", "llama-3.3-70b"),
            api_key=config.api_key or os.environ.get("CEREBRAS_API_KEY", ""),
            temperature=config.temperature,
        )
    raise GenerationError(f"No language model for provider '{provider}'.")


def clean_response(text: str) -> str:
    """Strip whitespace and a code fence wrapped around the whole answer."""
    text = text.strip()
    match = _FENCE_RE.match(text)
    if match:
        text = match.group(1).strip()
    return text


class ResponseGenerator:
    """Generates text from prompts with the configured language model."""

    def __init__(self, config: Optional[LLMConfig] = None, llm=None, debug: bool = False):
        """
        Args:
            config: LLM settings; defaults are read from the environment.
            llm: a ready object with a `complete(prompt)` method. When given,
                 provider resolution is skipped.
            debug: echo prompts and responses to stderr.
        """
        self.config = config or LLMConfig()
        self.debug = debug
        self._llm = llm
        self.provider = "custom" if llm is not None else resolve_provider(self.config)

    @property
    def enabled(self) -> bool:
        """False when no model is configured and prompts are echoed back."""
        return self.provider != "none"

    @property
    def model_name(self) -> str:
        if self.provider == "remote":
            return self.config.api_model or self.config.model
        if self.provider == "cerebras":
            return self.config.api_model or os.environ.get("CEREBRAS_MODEL", "llama-3.3-70b")
        return self.config.model

    def _get_llm(self):
        if self._llm is None:
            self._llm = build_llm(self.provider, self.config)
        return self._llm

    def generate(self, prompt: str) -> str:
        """
        Return the model's answer to *prompt*. With the `none` provider the
        prompt itself is returned.

        Raises:
            GenerationError: the model call failed.
        """
        if not self.enabled:
            return prompt

        if self.debug:
            print(f"Debug: generating with {self.provider} model {self.model_name}", file=sys.stderr)

        try:
            response = self._get_llm().complete(prompt)
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"{self.provider} model request failed: {e}") from e

        text = clean_response(str(response))
        if self.debug:
            print(f"Debug: response:\n{text}", file=sys.stderr)
        return text
