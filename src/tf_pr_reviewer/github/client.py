"""
GitHub API Client

Handles GitHub API authentication, rate limiting, and communication.
Provides the pull request calls the review pipeline needs: listing
changed files, downloading file content at a commit, and posting comments.
"""

import base64
import time
import logging
from typing import Dict, List, Optional
from datetime import datetime
from urllib.parse import quote
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..models.pull_request import ChangedFile


logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """GitHub API related errors"""
    def __init__(self, message: str, status_code: Optional[int] = None, response_data: Optional[Dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class RateLimitExceeded(GitHubAPIError):
    """GitHub API rate limit exceeded"""
    def __init__(self, reset_time: datetime):
        super().__init__(f"Rate limit exceeded. Resets at {reset_time}", status_code=429)
        self.reset_time = reset_time


class GitHubClient:
    """
    GitHub API client with authentication, rate limiting, and error handling.

    Provides methods for:
    - Listing the files changed in a pull request
    - Downloading a single file at a commit reference
    - Posting issue/PR comments
    """

    def __init__(self, token: str, base_url: str = "https://api.github.com", timeout: int = 30):
        """
        Initialize GitHub client.

        Args:
            token: GitHub token with contents:read and issues:write scope
            base_url: GitHub API base URL (default: https://api.github.com)
            timeout: Per-request timeout in seconds
        """
        self.token = token
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = self._create_session()
        self.rate_limit_remaining = 5000
        self.rate_limit_reset = datetime.now()

    def _create_session(self) -> requests.Session:
        """Create requests session with retry strategy and authentication."""
        session = requests.Session()

        # Retry covers idempotent methods only; POST is never retried
        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        # Set authentication headers
        session.headers.update({
            'Authorization': f'token {self.token}',
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': 'TF-PR-Reviewer/1.0'
        })

        return session

    def _check_rate_limit(self) -> None:
        """Check and handle GitHub API rate limits."""
        if self.rate_limit_remaining <= 10 and datetime.now() < self.rate_limit_reset:
            wait_time = (self.rate_limit_reset - datetime.now()).total_seconds()
            if wait_time > 0:
                logger.warning(f"Rate limit low ({self.rate_limit_remaining}), resets in {wait_time:.1f}s")
                raise RateLimitExceeded(self.rate_limit_reset)

    def _update_rate_limit(self, response: requests.Response) -> None:
        """Update rate limit information from response headers."""
        if 'X-RateLimit-Remaining' in response.headers:
            self.rate_limit_remaining = int(response.headers['X-RateLimit-Remaining'])

        if 'X-RateLimit-Reset' in response.headers:
            reset_timestamp = int(response.headers['X-RateLimit-Reset'])
            self.rate_limit_reset = datetime.fromtimestamp(reset_timestamp)

    def _make_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """
        Make authenticated request to GitHub API with rate limiting.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (without base URL)
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            GitHubAPIError: For API errors
            RateLimitExceeded: When rate limit is exceeded
        """
        self._check_rate_limit()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        kwargs.setdefault('timeout', self.timeout)

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Request failed: {e}")
            raise GitHubAPIError(f"Request failed: {str(e)}") from e

        self._update_rate_limit(response)

        if response.status_code == 429:
            reset_time = datetime.fromtimestamp(int(response.headers.get('X-RateLimit-Reset', time.time() + 3600)))
            raise RateLimitExceeded(reset_time)

        if not response.ok:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {}
            raise GitHubAPIError(
                f"GitHub API error: {response.status_code} - {error_data.get('message', 'Unknown error')}",
                status_code=response.status_code,
                response_data=error_data
            )

        return response

    def list_pull_request_files(self, owner: str, repo: str, pr_number: int) -> List[ChangedFile]:
        """
        Get files changed in a pull request.

        Args:
            owner: Repository owner
            repo: Repository name
            pr_number: Pull request number

        Returns:
            List of changed files
        """
        logger.info(f"Fetching PR files for {owner}/{repo}#{pr_number}")

        files = []
        page = 1
        per_page = 100

        while True:
            response = self._make_request(
                'GET',
                f'/repos/{owner}/{repo}/pulls/{pr_number}/files',
                params={'page': page, 'per_page': per_page}
            )

            page_files = response.json()
            if not page_files:
                break

            files.extend(ChangedFile.from_api(file_data) for file_data in page_files)

            if len(page_files) < per_page:
                break

            page += 1

        logger.info(f"Found {len(files)} changed files")
        return files

    def get_file_content(self, owner: str, repo: str, path: str, ref: str) -> str:
        """
        Get the text content of a single file at a commit reference.

        Args:
            owner: Repository owner
            repo: Repository name
            path: File path relative to the repository root
            ref: Commit SHA, branch or tag

        Returns:
            Decoded file content, or an empty string when the path is not a
            regular file (directory, symlink, submodule) or has no content

        Raises:
            GitHubAPIError: When the file cannot be retrieved
        """
        logger.debug(f"Fetching {owner}/{repo}/{path}@{ref}")

        response = self._make_request(
            'GET',
            f'/repos/{owner}/{repo}/contents/{quote(path)}',
            params={'ref': ref}
        )
        data = response.json()

        # Directory listings come back as a JSON array
        if not isinstance(data, dict):
            logger.warning(f"{path} is not a file, skipping content")
            return ''

        if data.get('type', 'file') != 'file' or not data.get('content'):
            logger.warning(f"{path} has no inline content (type={data.get('type')})")
            return ''

        if data.get('encoding', 'base64') != 'base64':
            return data['content']

        return base64.b64decode(data['content']).decode('utf-8', errors='replace')

    def create_issue_comment(self, owner: str, repo: str, issue_number: int, body: str) -> Dict:
        """
        Post a comment on an issue or pull request.

        Args:
            owner: Repository owner
            repo: Repository name
            issue_number: Issue or pull request number
            body: Comment body (markdown)

        Returns:
            Created comment data
        """
        logger.info(f"Posting comment on {owner}/{repo}#{issue_number}")

        response = self._make_request(
            'POST',
            f'/repos/{owner}/{repo}/issues/{issue_number}/comments',
            json={'body': body}
        )
        return response.json()
