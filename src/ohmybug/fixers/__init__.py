"""Fixers that are not tied to a single linter."""

from ohmybug.fixers.ai import AIFixer
from ohmybug.fixers.llm import LLMClient, LLMError

__all__ = ["AIFixer", "LLMClient", "LLMError"]
