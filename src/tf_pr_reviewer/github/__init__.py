"""
GitHub Integration Layer

This module provides GitHub API integration for pull request file
retrieval, comment posting, and webhook verification.
"""

from .client import GitHubClient, GitHubAPIError, RateLimitExceeded
from .webhook import WebhookVerifier, WebhookDispatcher, WebhookEvent, WebhookVerificationError

__all__ = [
    'GitHubClient',
    'GitHubAPIError',
    'RateLimitExceeded',
    'WebhookVerifier',
    'WebhookDispatcher',
    'WebhookEvent',
    'WebhookVerificationError',
]
