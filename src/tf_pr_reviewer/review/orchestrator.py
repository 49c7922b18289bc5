"""
Review Orchestrator

Runs one pull request review as an explicit sequence of states:

    idle -> preferences_checked -> files_listed -> files_fetched
         -> linted -> summarized -> commented -> cleaned

A run is skipped when the repository has no review preferences or the
pull request touches no tracked files. Once the workspace exists it is
removed on every exit path, whichever later stage fails.
"""

import time
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Sequence, Tuple

from ..github.client import GitHubAPIError
from ..llm.summarizer import NO_RESPONSE_FALLBACK
from ..models.pull_request import PullRequestContext, ChangedFile
from ..models.review import ReviewResult, ReviewState
from .workspace import ReviewWorkspace


logger = logging.getLogger(__name__)


class ReviewOrchestrator:
    """
    Pull-request-opened review pipeline.

    Collaborators are injected so the pipeline runs without a network:
    - preference_store: ``get(key) -> Optional[str]``
    - github: ``list_pull_request_files``, ``get_file_content``, ``create_issue_comment``
    - lint_runner: ``lint(directory) -> LintResult``
    - summarizer: ``summarize(priorities, lint_output) -> str``
    """

    def __init__(
        self,
        preference_store,
        github,
        lint_runner,
        summarizer,
        workspace_root: Optional[str] = None,
        tracked_extensions: Sequence[str] = (".tf",),
        fetch_workers: int = 1
    ):
        """
        Initialize review orchestrator.

        Args:
            preference_store: Repository priorities lookup
            github: Source-control host client
            lint_runner: Linter invoked over the workspace
            summarizer: Language-model summarizer
            workspace_root: Parent directory for review workspaces
            tracked_extensions: File suffixes that are reviewed
            fetch_workers: Parallel file downloads per review
        """
        self.preference_store = preference_store
        self.github = github
        self.lint_runner = lint_runner
        self.summarizer = summarizer
        self.workspace_root = workspace_root
        self.tracked_extensions = tuple(tracked_extensions)
        self.fetch_workers = max(1, fetch_workers)

    def select_files(self, files: Iterable[ChangedFile]) -> List[ChangedFile]:
        """Keep changed files with a tracked extension that still exist at head."""
        return [
            f for f in files
            if f.matches(self.tracked_extensions) and not f.is_removed
        ]

    def run(self, context: PullRequestContext) -> ReviewResult:
        """
        Review a newly opened pull request.

        Args:
            context: Pull request extracted from the verified webhook payload

        Returns:
            ReviewResult; failures are reported in it rather than raised
        """
        start_time = time.monotonic()
        result = ReviewResult(
            review_id=f"{context.repository_key}#{context.pr_number}-{int(time.time())}",
            repository=context.repository_key,
            pr_number=context.pr_number,
        )

        logger.info(f"Starting review: {result.review_id}")

        try:
            self._review(context, result)
        except Exception as e:
            logger.error(f"Review failed: {result.review_id} at {result.final_state.value} - {e}")
            result.status = "failed"
            result.error = str(e)

        if result.status == "pending":
            result.status = "completed"

        result.processing_time = time.monotonic() - start_time
        logger.info(
            f"Review {result.review_id} finished: {result.status} "
            f"({result.final_state.value}, {result.processing_time:.2f}s)"
        )
        return result

    def _review(self, context: PullRequestContext, result: ReviewResult) -> None:
        priorities = self.preference_store.get(context.repository_key)
        if priorities is None:
            logger.info(f"No review preferences for {context.repository_key}, skipping")
            self._skip(result)
            return
        result.advance(ReviewState.PREFERENCES_CHECKED)

        changed_files = self.github.list_pull_request_files(context.owner, context.repo, context.pr_number)
        tracked_files = self.select_files(changed_files)
        if not tracked_files:
            logger.info(f"No tracked files ({', '.join(self.tracked_extensions)}) changed in {result.review_id}")
            self._skip(result)
            return
        result.advance(ReviewState.FILES_LISTED)

        try:
            with ReviewWorkspace(self.workspace_root, context.pr_number) as workspace:
                result.workspace_path = workspace.path

                for filename, content in self._fetch_files(context, tracked_files):
                    workspace.write_file(filename, content)
                    result.files_reviewed.append(filename)
                result.advance(ReviewState.FILES_FETCHED)

                lint_result = self.lint_runner.lint(workspace.path)
                result.lint_exit_code = lint_result.exit_code
                result.advance(ReviewState.LINTED)

                summary = self.summarizer.summarize(priorities, lint_result.output) or NO_RESPONSE_FALLBACK
                result.summary = summary
                result.advance(ReviewState.SUMMARIZED)

                self._post_comment(context, result, summary)
        finally:
            if result.workspace_path:
                result.advance(ReviewState.CLEANED)

    def _fetch_files(
        self,
        context: PullRequestContext,
        files: List[ChangedFile]
    ) -> List[Tuple[str, str]]:
        """Download every file at the head commit; all complete before returning."""
        def fetch(changed_file: ChangedFile) -> Tuple[str, str]:
            content = self.github.get_file_content(
                context.owner, context.repo, changed_file.filename, context.head_sha
            )
            return changed_file.filename, content

        logger.info(f"Fetching {len(files)} file(s) at {context.head_sha}")

        if self.fetch_workers == 1 or len(files) == 1:
            return [fetch(f) for f in files]

        with ThreadPoolExecutor(max_workers=self.fetch_workers) as executor:
            return list(executor.map(fetch, files))

    def _post_comment(self, context: PullRequestContext, result: ReviewResult, body: str) -> None:
        try:
            self.github.create_issue_comment(context.owner, context.repo, context.pr_number, body)
        except GitHubAPIError as e:
            logger.error(f"Failed to post review comment on {result.review_id}: {e}")
            result.status = "failed"
            result.error = str(e)
            return

        result.comment_posted = True
        result.advance(ReviewState.COMMENTED)

    @staticmethod
    def _skip(result: ReviewResult) -> None:
        result.status = "skipped"
        result.advance(ReviewState.SKIPPED)
