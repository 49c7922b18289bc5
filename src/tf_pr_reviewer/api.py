"""
Main Reviewer API

Main interface wiring the review pipeline together: preference storage,
webhook verification and dispatch, and the background review queue.
"""

import shutil
import logging
from typing import Dict, Optional
from datetime import datetime

from .config import AppConfig, get_config
from .github.client import GitHubClient
from .github.webhook import WebhookVerifier, WebhookDispatcher, WebhookEvent, DispatchResult
from .storage.preferences import PreferenceStore, PreferenceStoreError
from .lint.runner import LintRunner
from .llm.summarizer import Summarizer
from .models.pull_request import PullRequestContext
from .review.orchestrator import ReviewOrchestrator
from .review.tasks import ReviewTaskQueue


logger = logging.getLogger(__name__)


class ReviewerAPI:
    """
    Main Terraform PR Reviewer interface.

    Handles the two inbound operations:
    1. Saving a repository's review priorities
    2. Receiving webhook deliveries and queuing reviews of opened PRs
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        preference_store: Optional[PreferenceStore] = None,
        github_client: Optional[GitHubClient] = None,
        lint_runner: Optional[LintRunner] = None,
        summarizer: Optional[Summarizer] = None,
        synchronous: Optional[bool] = None
    ):
        """
        Initialize Reviewer API.

        Args:
            config: Optional configuration object
            preference_store: Optional preference store override
            github_client: Optional GitHub client override
            lint_runner: Optional lint runner override
            summarizer: Optional summarizer override
            synchronous: Run reviews inline; defaults to ``not config.server.process_async``
        """
        self.config = config or get_config()

        logger.info("Initializing Reviewer API components...")

        self.preference_store = preference_store or PreferenceStore(self.config.storage.preferences_path)
        self.github_client = github_client or GitHubClient(
            token=self.config.github.token,
            base_url=self.config.github.api_base_url,
            timeout=self.config.github.timeout_seconds
        )
        self.lint_runner = lint_runner or LintRunner(
            command=self.config.lint.command,
            timeout=self.config.lint.timeout_seconds
        )
        self.summarizer = summarizer or Summarizer(
            endpoint=self.config.llm.endpoint,
            model=self.config.llm.model,
            timeout=self.config.llm.timeout_seconds
        )

        self.orchestrator = ReviewOrchestrator(
            preference_store=self.preference_store,
            github=self.github_client,
            lint_runner=self.lint_runner,
            summarizer=self.summarizer,
            workspace_root=self.config.storage.workspace_root,
            tracked_extensions=self.config.lint.tracked_extensions,
            fetch_workers=self.config.server.fetch_workers
        )

        if synchronous is None:
            synchronous = not self.config.server.process_async
        self.task_queue = ReviewTaskQueue(
            self.orchestrator,
            max_workers=self.config.server.max_workers,
            synchronous=synchronous
        )

        if not self.config.webhook.secret:
            logger.warning("WEBHOOK_SECRET is not set; every webhook delivery will be rejected")

        self.verifier = WebhookVerifier(self.config.webhook.secret)
        self.dispatcher = WebhookDispatcher(self.verifier)
        self.dispatcher.on("pull_request.opened", self._handle_pull_request_opened)

        logger.info("Reviewer API initialized successfully")

    def save_preferences(self, repository: str, priorities: str) -> None:
        """
        Create or overwrite the review priorities for a repository.

        Args:
            repository: Repository name (owner/repo)
            priorities: Free-text review priorities
        """
        self.preference_store.set(repository, priorities)

    def get_preferences(self, repository: str) -> Optional[str]:
        """Get the review priorities for a repository, or None."""
        return self.preference_store.get(repository)

    def receive_webhook(self, event: WebhookEvent) -> DispatchResult:
        """
        Verify and dispatch a webhook delivery.

        Args:
            event: Inbound webhook delivery

        Returns:
            DispatchResult describing the routing

        Raises:
            WebhookVerificationError: When the delivery fails verification
            WebhookPayloadError: When the verified payload is unusable
        """
        logger.info(f"Received webhook delivery {event.id} ({event.name})")
        return self.dispatcher.receive(event)

    def _handle_pull_request_opened(self, payload: Dict) -> None:
        context = PullRequestContext.from_payload(payload)
        self.task_queue.submit(context)

    def get_system_health(self) -> Dict:
        """Get system health status."""
        health = {
            'status': 'healthy',
            'components': {},
            'timestamp': datetime.now().isoformat()
        }

        try:
            records = self.preference_store.load_all()
            health['components']['preference_store'] = {
                'status': 'healthy',
                'repositories': len(records)
            }
        except PreferenceStoreError as e:
            health['components']['preference_store'] = {
                'status': 'unhealthy',
                'error': str(e)
            }

        health['components']['webhook'] = {
            'status': 'healthy' if self.verifier.secret else 'degraded',
        }

        linter = self.lint_runner.build_command('.')[0]
        health['components']['linter'] = {
            'status': 'healthy' if shutil.which(linter) else 'degraded',
            'executable': linter
        }

        health['components']['llm'] = {
            'status': 'healthy',
            'endpoint': self.summarizer.endpoint,
            'model': self.summarizer.model
        }

        # Determine overall status
        component_statuses = [comp['status'] for comp in health['components'].values()]
        if 'unhealthy' in component_statuses:
            health['status'] = 'unhealthy'
        elif 'degraded' in component_statuses:
            health['status'] = 'degraded'

        return health

    def cleanup_resources(self, wait: bool = True):
        """Stop the review queue."""
        logger.info("Cleaning up Reviewer API resources")
        self.task_queue.shutdown(wait=wait)

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit with cleanup."""
        self.cleanup_resources()
