"""
LLM Summary Engine

This module composes the review prompt from the repository's priorities
and the linter output, and asks a completion endpoint to summarise it.
"""

from .prompts import PromptBuilder
from .summarizer import Summarizer, NO_RESPONSE_FALLBACK

__all__ = ['PromptBuilder', 'Summarizer', 'NO_RESPONSE_FALLBACK']
