"""
Review Task Queue

Accepts reviews from the webhook request thread and runs them on a
worker pool, so the delivery is acknowledged without waiting for the
linter or the language model. Each run logs its own completion.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from ..models.pull_request import PullRequestContext
from ..models.review import ReviewResult


logger = logging.getLogger(__name__)


class ReviewTaskQueue:
    """
    Background executor for review runs.

    With ``synchronous=True`` reviews run inline on the caller's thread
    and the returned future is already resolved.
    """

    def __init__(self, orchestrator, max_workers: int = 4, synchronous: bool = False):
        """
        Initialize task queue.

        Args:
            orchestrator: ReviewOrchestrator executing each run
            max_workers: Concurrent reviews
            synchronous: Run reviews inline instead of on the pool
        """
        self.orchestrator = orchestrator
        self.synchronous = synchronous
        self._executor: Optional[ThreadPoolExecutor] = None
        if not synchronous:
            self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="review")

    def submit(self, context: PullRequestContext) -> "Future[ReviewResult]":
        """
        Queue a review of context.

        Args:
            context: Pull request to review

        Returns:
            Future resolving to the ReviewResult
        """
        logger.info(f"Queued review for {context.repository_key}#{context.pr_number}")

        if self.synchronous:
            future: Future = Future()
            try:
                future.set_result(self.orchestrator.run(context))
            except Exception as e:
                future.set_exception(e)
        else:
            future = self._executor.submit(self.orchestrator.run, context)

        future.add_done_callback(lambda f: self._log_completion(context, f))
        return future

    def _log_completion(self, context: PullRequestContext, future: Future) -> None:
        error = future.exception()
        if error is not None:
            logger.error(f"Review task for {context.repository_key}#{context.pr_number} crashed: {error}")
            return

        result = future.result()
        if result.status == "failed":
            logger.warning(f"Review task {result.review_id} failed: {result.error}")
        else:
            logger.info(f"Review task {result.review_id} {result.status}")

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting reviews and optionally wait for running ones."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            logger.info("Review task queue shut down")
