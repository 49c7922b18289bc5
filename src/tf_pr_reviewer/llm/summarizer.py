"""
Review Summarizer

Sends the composed review prompt to an Ollama-compatible completion
endpoint and returns the model's text. Endpoint failures never
propagate: the caller always receives some text to post.
"""

import logging
from typing import Optional

import requests

from .prompts import PromptBuilder


logger = logging.getLogger(__name__)

NO_RESPONSE_FALLBACK = "No response from LLM."
ERROR_PREFIX = "LLM error: "


class Summarizer:
    """
    Summarises linter findings against the user's priorities.

    Talks to ``POST {endpoint}`` with ``{"model", "prompt", "stream": false}``
    and reads the ``response`` field of the reply.
    """

    def __init__(
        self,
        endpoint: str = "http://localhost:11434/api/generate",
        model: str = "llama2",
        timeout: int = 300,
        prompt_builder: Optional[PromptBuilder] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize summarizer.

        Args:
            endpoint: Completion endpoint URL
            model: Model name passed to the endpoint
            timeout: Request timeout in seconds
            prompt_builder: Optional prompt builder override
            session: Optional requests session
        """
        self.endpoint = endpoint
        self.model = model
        self.timeout = timeout
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.session = session or requests.Session()

    def summarize(self, priorities: str, lint_output: str) -> str:
        """
        Summarise lint output for the user's priorities.

        Args:
            priorities: The repository owner's review priorities
            lint_output: Raw linter output

        Returns:
            Model response text, or a fallback message; never empty
        """
        prompt = self.prompt_builder.build_review_prompt(priorities, lint_output)

        try:
            text = self._generate(prompt)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"LLM request to {self.endpoint} failed: {e}")
            return f"{ERROR_PREFIX}{e}"

        if not text or not text.strip():
            logger.warning("LLM returned no usable text")
            return NO_RESPONSE_FALLBACK

        return text

    def _generate(self, prompt: str) -> Optional[str]:
        """Call the completion endpoint and return the response text."""
        logger.info(f"Requesting summary from {self.model} at {self.endpoint}")

        response = self.session.post(
            self.endpoint,
            json={'model': self.model, 'prompt': prompt, 'stream': False},
            timeout=self.timeout,
        )
        response.raise_for_status()

        data = response.json()
        if not isinstance(data, dict):
            return None

        text = data.get('response')
        return text if isinstance(text, str) else None
