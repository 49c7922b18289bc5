"""
Terraform PR Reviewer

Webhook-driven reviewer that lints Terraform changes in opened pull
requests and posts an LLM summary of the findings as a PR comment.
"""

__version__ = "1.0.0"

from .api import ReviewerAPI

__all__ = ["ReviewerAPI"]
