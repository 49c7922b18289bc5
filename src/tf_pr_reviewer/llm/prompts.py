"""
Prompt Builder

Builds the summarisation prompt sent to the language model.
"""

import logging


logger = logging.getLogger(__name__)


REVIEW_PROMPT_TEMPLATE = (
    'A user has asked for a Terraform PR review with the following priorities: "{priorities}".\n'
    '\n'
    'Here are the TFLint results for the changed files (in JSON):\n'
    '{lint_output}\n'
    '\n'
    'Please summarize the most important findings for the user, focusing on their stated priorities. '
    'If possible, suggest actionable improvements.'
)


class PromptBuilder:
    """
    Builds deterministic review prompts.

    Priorities and linter output are embedded verbatim; the same inputs
    always produce the same prompt.
    """

    def __init__(self, template: str = REVIEW_PROMPT_TEMPLATE):
        self.template = template

    def build_review_prompt(self, priorities: str, lint_output: str) -> str:
        """
        Build the review prompt.

        Args:
            priorities: The repository owner's review priorities
            lint_output: Raw linter output

        Returns:
            Complete prompt string
        """
        prompt = self.template.format(priorities=priorities, lint_output=lint_output)
        logger.debug(f"Built review prompt ({len(prompt)} chars)")
        return prompt
