"""
Exception types shared across changeish.

Absence conditions (no version, no existing section, no document yet) are
never raised; they resolve to empty values and fallbacks instead.
"""


class ChangeishError(Exception):
    """Base class for errors that abort a changeish run."""


class InvalidUpdatePolicyError(ChangeishError, ValueError):
    """An update mode that is not one of the supported policies."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(
            f"Unknown update mode: '{value}'. "
            "Expected one of auto, update, replace, prepend, append, skip."
        )


class GitError(ChangeishError, RuntimeError):
    """A git invocation failed or the target is not a valid revision."""


class GenerationError(ChangeishError, RuntimeError):
    """The language model could not be configured or did not respond."""
